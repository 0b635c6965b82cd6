"""Tests for CacheDict, CacheRecord and CacheList."""

import pytest

from jsoncache import CacheDict, CacheList, CacheRecord, unwrap
from jsoncache.nodes import wrap
from jsoncache.session import Session


class TestWrap:
    def test_scalars_pass_through(self, session):
        for value in (None, True, 3, 2.5, "x"):
            assert wrap(value, session) is value

    def test_nested_containers_become_nodes(self, session):
        node = wrap({"a": [1, 2, {"b": 3}]}, session)
        assert isinstance(node, CacheRecord)
        assert isinstance(node["a"], CacheList)
        assert isinstance(node["a"][2], CacheRecord)
        assert node == {"a": [1, 2, {"b": 3}]}

    def test_tuple_becomes_list(self, session):
        node = wrap((1, 2), session)
        assert isinstance(node, CacheList)
        assert node == [1, 2]

    def test_unsupported_value_rejected(self, session):
        with pytest.raises(TypeError):
            wrap({1, 2}, session)
        with pytest.raises(TypeError):
            session.root["when"] = object()

    def test_non_str_key_rejected(self, session):
        with pytest.raises(TypeError):
            session.root[1] = "x"
        with pytest.raises(TypeError):
            wrap({1: "x"}, session)

    def test_wrapping_does_not_mark_dirty(self, session):
        wrap({"a": [1]}, session)
        assert session.dirty is False

    def test_unwrap_returns_plain_copy(self, session):
        session.root["a"] = [1, {"b": 2}]
        plain = unwrap(session.root)
        assert plain == {"a": [1, {"b": 2}]}
        assert type(plain) is dict
        assert type(plain["a"]) is list
        assert type(plain["a"][1]) is dict


class TestCacheDict:
    def test_assignment_marks_dirty(self, session):
        session.root["x"] = 5
        assert session.dirty is True
        assert session.root["x"] == 5

    def test_assigned_container_shares_storage(self, session):
        obj = {"arr": [1, 2, 3], "l2": {}}
        session.root["obj"] = obj
        stored = session.root["obj"]
        assert stored is not obj
        assert isinstance(stored, CacheRecord)
        assert isinstance(obj["arr"], CacheList)
        session.dirty = False
        obj["arr"].append(4)
        obj["l2"]["one"] = 1
        assert session.dirty is True
        assert stored == {"arr": [1, 2, 3, 4], "l2": {"one": 1}}

    def test_assigned_list_shares_storage(self, session):
        deep = [[1], {"x": []}]
        session.root["deep"] = deep
        deep[0].append(2)
        deep[1]["x"].append(3)
        assert session.root["deep"] == [[1, 2], {"x": [3]}]

    def test_non_finite_float_rejected(self, session):
        for value in (float("nan"), float("inf"), float("-inf")):
            with pytest.raises(ValueError):
                session.root["x"] = value
        assert "x" not in session.root
        assert session.dirty is False

    def test_reads_return_same_node(self, session):
        session.root["a"] = {"b": 1}
        assert session.root["a"] is session.root["a"]

    def test_nested_mutation_marks_dirty(self, session):
        session.root["a"] = {"items": []}
        nested = session.root["a"]["items"]
        session.dirty = False
        nested.append({"n": 1})
        assert session.dirty is True
        assert isinstance(nested[0], CacheRecord)

    def test_delete_and_contains(self, session):
        session.root["a"] = 1
        assert "a" in session.root
        session.dirty = False
        del session.root["a"]
        assert "a" not in session.root
        assert session.dirty is True

    def test_pop_update_clear(self, session):
        root = session.root
        root.update({"a": 1, "b": [2]}, c=3)
        assert root == {"a": 1, "b": [2], "c": 3}
        assert isinstance(root["b"], CacheList)
        assert root.pop("a") == 1
        assert root.pop("missing", None) is None
        root.clear()
        assert len(root) == 0
        assert session.dirty is True

    def test_setdefault_returns_stored_node(self, session):
        history = session.root.setdefault("history", [])
        assert isinstance(history, CacheList)
        history.append(1)
        assert session.root["history"] == [1]
        assert session.root.setdefault("history", []) is history

    def test_get_keys_values_items(self, session):
        session.root.update({"a": 1, "b": 2})
        assert session.root.get("a") == 1
        assert session.root.get("z", 9) == 9
        assert set(session.root.keys()) == {"a", "b"}
        assert set(session.root.values()) == {1, 2}
        assert set(session.root.items()) == {("a", 1), ("b", 2)}

    def test_reassigning_node_copies_it(self, session):
        session.root["a"] = {"n": 1}
        session.root["b"] = session.root["a"]
        assert session.root["b"] == session.root["a"]
        assert session.root["b"] is not session.root["a"]
        session.root["b"]["n"] = 2
        assert session.root["a"]["n"] == 1

    def test_member_names_are_plain_keys(self, tmp_path):
        s = Session(str(tmp_path / "d.json"), save_period=60, dict_mode=True)
        s.load()
        try:
            assert type(s.root) is CacheDict
            for name in ("keys", "items", "get", "constructor", "__proto__", "toString"):
                s.root[name] = name.upper()
            for name in ("keys", "items", "get", "constructor", "__proto__", "toString"):
                assert s.root[name] == name.upper()
            assert callable(s.root.keys)
            with pytest.raises(AttributeError):
                s.root.title = "x"
        finally:
            s.close_sync()

    def test_repr(self, session):
        session.root["a"] = 1
        assert repr(session.root) == "CacheRecord({'a': 1})"


class TestCacheRecord:
    def test_attribute_access(self, session):
        session.root.title = "draft"
        assert session.root["title"] == "draft"
        assert session.root.title == "draft"
        assert session.dirty is True
        del session.root.title
        assert "title" not in session.root

    def test_missing_attribute(self, session):
        with pytest.raises(AttributeError):
            session.root.nope
        with pytest.raises(AttributeError):
            del session.root.nope

    def test_member_name_stays_member(self, session):
        session.root["keys"] = 1
        assert callable(session.root.keys)
        assert session.root["keys"] == 1
        with pytest.raises(AttributeError):
            session.root.keys = 2


class TestCacheList:
    def test_index_assignment_wraps(self, session):
        session.root["l"] = [1, 2, 3]
        lst = session.root["l"]
        lst[1] = {"x": 1}
        assert isinstance(lst[1], CacheRecord)
        assert lst == [1, {"x": 1}, 3]

    def test_delete_shifts_elements(self, session):
        session.root["l"] = ["a", "b", "c"]
        lst = session.root["l"]
        session.dirty = False
        del lst[1]
        assert lst == ["a", "c"]
        assert lst[1] == "c"
        assert session.dirty is True

    def test_slices(self, session):
        session.root["l"] = [1, 2, 3, 4]
        lst = session.root["l"]
        lst[1:3] = [[9]]
        assert lst == [1, [9], 4]
        assert isinstance(lst[1], CacheList)
        del lst[:2]
        assert lst == [4]

    def test_mutators(self, session):
        session.root["l"] = []
        lst = session.root["l"]
        lst.extend([3, 1])
        lst.insert(0, 2)
        lst += [5]
        assert lst == [2, 3, 1, 5]
        assert lst.pop() == 5
        lst.remove(3)
        assert lst == [2, 1]
        lst.sort()
        assert lst == [1, 2]
        lst.reverse()
        assert lst == [2, 1]
        assert lst.index(1) == 1
        assert lst.count(2) == 1
        lst.clear()
        assert lst == []

    def test_reorder_keeps_nodes(self, session):
        session.root["l"] = [{"n": 1}, {"n": 2}]
        lst = session.root["l"]
        first = lst[0]
        lst.reverse()
        assert lst[1] is first

    def test_equality(self, session):
        session.root["l"] = [1, [2]]
        assert session.root["l"] == [1, [2]]
        assert [1, [2]] == session.root["l"]
        assert session.root["l"] != [1, 2]
        assert session.root["l"] != (1, [2])

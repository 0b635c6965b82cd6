"""Wrapper nodes — JSON containers that record their own mutations.

Every container reachable from a cache root is a node owned by a Session.
Reads return the stored value unchanged. Writes wrap any container value
*before* storing it, then mark the Session dirty, so no raw dict or list is
ever reachable from the tree.

Wrapping a plain dict or list adopts it as the node's storage: its nested
containers are replaced by nodes in place, and the caller's object stays
linked to the tree. Nodes themselves are copied, since a node already has a
place in some tree.

Three node types:
- CacheDict: string-keyed mapping, data only through item access.
- CacheRecord: CacheDict plus attribute access to data (`node.title`).
  Names that are members of the type (`keys`, `get`, ...) stay members.
- CacheList: ordered sequence; deleting shifts later elements down.

Mutations and snapshots of one Session are serialized by its lock.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, MutableMapping, MutableSequence
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from jsoncache.session import Session

SCALAR_TYPES = (str, int, float, bool, type(None))


def wrap(value: Any, session: Session) -> Any:
    """Return value as stored in session's tree: scalars as-is, containers as nodes."""
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"Out of range float values are not JSON compliant: {value!r}")
    if isinstance(value, SCALAR_TYPES):
        return value
    if isinstance(value, (CacheDict, CacheList)):
        value = unwrap(value)
    if isinstance(value, Mapping):
        return session.record_type(session, value)
    if isinstance(value, (list, tuple)):
        return CacheList(session, value)
    raise TypeError(f"{type(value).__name__} values cannot be stored in a JSON cache")


def unwrap(value: Any) -> Any:
    """Plain deep copy of a node (dicts, lists, scalars). Scalars pass through."""
    if isinstance(value, CacheDict):
        return {key: unwrap(item) for key, item in value._data.items()}
    if isinstance(value, CacheList):
        return [unwrap(item) for item in value._items]
    return value


def _check_key(key: object) -> None:
    if not isinstance(key, str):
        raise TypeError(f"cache keys must be str, not {type(key).__name__}")


class CacheDict(MutableMapping):
    """A string-keyed mapping that marks its Session dirty on mutation.

    No key name is special: `node["keys"] = 1` stores data and
    `node["keys"]` reads it back.
    """

    __slots__ = ("_data", "_session")

    def __init__(self, session: Session, data: Mapping | None = None) -> None:
        self._session = session
        if data is None:
            data = {}
        elif not isinstance(data, dict):
            data = dict(data)
        for key in data:
            _check_key(key)
        for key in list(data):
            data[key] = wrap(data[key], session)
        self._data: dict[str, Any] = data

    # --- Read operations ---

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    # --- Write operations (mark dirty) ---

    def __setitem__(self, key: str, value: Any) -> None:
        _check_key(key)
        session = self._session
        with session.lock:
            self._data[key] = wrap(value, session)
            session.mark_dirty()

    def __delitem__(self, key: str) -> None:
        session = self._session
        with session.lock:
            del self._data[key]
            session.mark_dirty()

    def setdefault(self, key: str, default: Any = None) -> Any:
        # Return the stored node, not the raw default.
        with self._session.lock:
            if key not in self._data:
                self[key] = default
            return self._data[key]

    def update(self, other=(), /, **kwargs) -> None:
        with self._session.lock:
            super().update(other, **kwargs)

    def clear(self) -> None:
        session = self._session
        with session.lock:
            self._data.clear()
            session.mark_dirty()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"


class CacheRecord(CacheDict):
    """CacheDict that also exposes data keys as attributes.

        node.title = "draft"      # same as node["title"] = "draft"
        node.title                # "draft"
        del node.title

    Attribute writes to a member name such as `keys` are rejected; use item
    access for those keys, or open the cache with dict_mode=True.
    """

    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails.
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute or key {name!r}"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        elif hasattr(type(self), name):
            raise AttributeError(
                f"{name!r} is a {type(self).__name__} member; use node[{name!r}] = ..."
            )
        else:
            self[name] = value

    def __delattr__(self, name: str) -> None:
        if name.startswith("_"):
            object.__delattr__(self, name)
            return
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None


class CacheList(MutableSequence):
    """An ordered sequence that marks its Session dirty on mutation."""

    __slots__ = ("_items", "_session")

    def __init__(self, session: Session, items=None) -> None:
        self._session = session
        if items is None:
            items = []
        elif not isinstance(items, list):
            items = list(items)
        for i, item in enumerate(items):
            items[i] = wrap(item, session)
        self._items: list[Any] = items

    # --- Read operations ---

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CacheList):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    # --- Write operations (mark dirty) ---

    def __setitem__(self, index, value) -> None:
        session = self._session
        with session.lock:
            if isinstance(index, slice):
                self._items[index] = [wrap(item, session) for item in value]
            else:
                self._items[index] = wrap(value, session)
            session.mark_dirty()

    def __delitem__(self, index) -> None:
        session = self._session
        with session.lock:
            del self._items[index]
            session.mark_dirty()

    def insert(self, index: int, value: Any) -> None:
        session = self._session
        with session.lock:
            self._items.insert(index, wrap(value, session))
            session.mark_dirty()

    def extend(self, values) -> None:
        with self._session.lock:
            super().extend(values)

    def clear(self) -> None:
        session = self._session
        with session.lock:
            self._items.clear()
            session.mark_dirty()

    # Reordering keeps the existing nodes; the generic versions would re-wrap them.
    def reverse(self) -> None:
        session = self._session
        with session.lock:
            self._items.reverse()
            session.mark_dirty()

    def sort(self, *, key=None, reverse: bool = False) -> None:
        session = self._session
        with session.lock:
            self._items.sort(key=key, reverse=reverse)
            session.mark_dirty()

    def __repr__(self) -> str:
        return f"CacheList({self._items!r})"

"""open() / close() — the registry-backed entry points.

    data = jsoncache.open("state.json", save_period=5)
    data["runs"] = data.get("runs", 0) + 1
    data.setdefault("history", []).append({"ok": True})
    jsoncache.close(data)

Opening a path that is already open returns the very same root node, so all
code in the process shares one in-memory copy of each file.
"""

from __future__ import annotations

import logging
import math
import numbers
import os
from contextlib import contextmanager
from typing import Iterator

from jsoncache import _registry
from jsoncache.errors import ConfigurationError
from jsoncache.lifecycle import install_exit_hook
from jsoncache.nodes import CacheDict, CacheList
from jsoncache.session import Session

logger = logging.getLogger("jsoncache.cache")

DEFAULT_SAVE_PERIOD = 1.0


def _validate_save_period(save_period) -> None:
    if (
        isinstance(save_period, bool)
        or not isinstance(save_period, numbers.Real)
        or not math.isfinite(save_period)
        or save_period <= 0
    ):
        raise ConfigurationError(
            f"save_period must be a positive number of seconds, got {save_period!r}"
        )


def open(
    path: str | os.PathLike,
    *,
    save_period: float = DEFAULT_SAVE_PERIOD,
    dict_mode: bool = False,
) -> CacheDict | CacheList:
    """Open the JSON cache backed by path and return its root node.

    If path is already open, its root is returned and the options are
    ignored. Otherwise the file is loaded (or an empty record is created if
    it does not exist) and saved every save_period seconds while dirty.

    dict_mode=True makes records plain CacheDicts, so every key, including
    names like "keys" or "items", is reachable only as data via node[key].

    Raises ConfigurationError for an empty path or bad save_period,
    DecodeError for a malformed file, and OSError if the file can't be read.
    """
    if path is None or not os.fspath(path):
        raise ConfigurationError("path is required")
    key = os.path.abspath(os.fspath(path))

    with _registry.lock:
        session = _registry.sessions.get(key)
        if session is not None:
            logger.debug("Reusing open cache %s", key)
            return session.root

        _validate_save_period(save_period)
        session = Session(key, save_period=save_period, dict_mode=dict_mode)
        session.load()
        _registry.sessions[key] = session

    install_exit_hook()
    session.start()
    logger.debug("Opened cache %s (save_period=%s, dict_mode=%s)", key, save_period, dict_mode)
    return session.root


def session_of(node) -> Session | None:
    """The Session owning node, or None for anything that isn't a cache node."""
    if isinstance(node, (CacheDict, CacheList)):
        return node._session
    return None


def close(node) -> None:
    """Close the cache whose root is node, flushing unsaved changes.

    A no-op for anything that isn't the root of a live cache, including a
    root that was already closed.
    """
    session = session_of(node)
    if session is None or session.root is not node:
        return
    session.close()


@contextmanager
def batch(node) -> Iterator:
    """Group mutations so no save can capture only part of them.

    Only holds the cache's lock; nothing is rolled back if the block raises.

    Usage:
        with jsoncache.batch(data):
            data["balance"] -= 10
            data["ledger"].append(-10)
    """
    session = session_of(node)
    if session is None:
        raise TypeError(f"{type(node).__name__} is not a cache node")
    with session.batch():
        yield node

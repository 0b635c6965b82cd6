"""jsoncache: JSON files as live, auto-saving Python dicts and lists."""

from importlib.metadata import version as _version

__version__ = _version("jsoncache")

from jsoncache.errors import CacheError, ConfigurationError, DecodeError
from jsoncache.nodes import CacheDict, CacheRecord, CacheList, unwrap
from jsoncache.session import Session
from jsoncache.cache import open, close, session_of, batch
from jsoncache.lifecycle import flush_all, install_signal_handlers

__all__ = [
    "open",
    "close",
    "session_of",
    "batch",
    "flush_all",
    "install_signal_handlers",
    "unwrap",
    "CacheDict",
    "CacheRecord",
    "CacheList",
    "Session",
    "CacheError",
    "ConfigurationError",
    "DecodeError",
]

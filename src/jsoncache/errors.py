"""Exception taxonomy for jsoncache."""


class CacheError(Exception):
    """Base class for all jsoncache errors."""


class ConfigurationError(CacheError, ValueError):
    """Invalid arguments to open(): empty path or a bad save period."""


class DecodeError(CacheError, ValueError):
    """The backing file exists but does not hold a JSON object or array."""

"""Exceptions raised by steamswitch."""


class CacheFormatError(ValueError):
    """Persisted cache data could not be understood."""

from .cache_keys import CacheKeys

__all__ = ["CacheKeys"]

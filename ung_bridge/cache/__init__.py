"""
Entity cache module.

Time-bounded cache of parsed records so repeated view renders do not
re-invoke the tool.
"""

from .entity_cache import CacheEntry, CacheKey, EntityCache

__all__ = [
    "CacheEntry",
    "CacheKey",
    "EntityCache",
]

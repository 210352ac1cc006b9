"""
In-memory caching primitives for the Catalog Service.
"""

from .cache_on_success import CacheOnSuccess

__all__ = ["CacheOnSuccess"]

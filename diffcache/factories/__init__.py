"""Factories for assembling cache components."""

from diffcache.factories.cache_factory import create_cache

__all__ = ["create_cache"]

"""
Interface definitions for diffcache.

This module provides abstract base classes (ABCs) that define the contracts
for the cache components. Using interfaces enables:
- Better testability through substitute implementations
- Clear documentation of component capabilities
- Dependency injection and substitution

Available Interfaces:
    IContentStore: File version storage interface
    ISessionTracker: Session pointer interface
    IStatsAccumulator: Savings counter interface
    IFileCache: Session-scoped read cache interface
"""

from diffcache.interfaces.cache import (
    IContentStore,
    ISessionTracker,
    IStatsAccumulator,
    IFileCache,
)

__all__ = [
    "IContentStore",
    "ISessionTracker",
    "IStatsAccumulator",
    "IFileCache",
]

"""diffcache: agent file cache with diff tracking."""

__version__ = "0.1.0"

"""
API routes package.
"""

from diffcache.api.routes.cache import router as cache_router

__all__ = ["cache_router"]

"""
app/api/routers package marker.
"""

from app.api.routers.source_fetch import router as source_fetch_router

__all__ = [
    "source_fetch_router",
]

"""
app/api/routers package marker.
"""

from app.api.routers.content_ingestion import router as content_ingestion_router

__all__ = [
    "content_ingestion_router",
]

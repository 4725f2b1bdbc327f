"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.category import Category, CategoryAxis, ContentCategory
from db.models.content_item import ContentItem
from db.models.media_attachment import MediaAttachment

__all__ = [
    "Category",
    "CategoryAxis",
    "ContentCategory",
    "ContentItem",
    "MediaAttachment",
]

"""
app/repositories package marker.
"""

from app.repositories.category_repository import SqlCategoryRepository
from app.repositories.content_repository import (
    BatchTransactionError,
    ContentPersistenceError,
    SqlContentRepository,
)
from app.repositories.contracts import (
    ArchiveStorage,
    CategoryRecord,
    CategoryRepository,
    ContentRepository,
    JobScheduler,
    MediaGateway,
)

__all__ = [
    "ArchiveStorage",
    "BatchTransactionError",
    "CategoryRecord",
    "CategoryRepository",
    "ContentPersistenceError",
    "ContentRepository",
    "JobScheduler",
    "MediaGateway",
    "SqlCategoryRepository",
    "SqlContentRepository",
]

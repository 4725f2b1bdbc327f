"""
app/services package marker.
"""

from app.services.content_ingestion_service import (
    ContentIngestionService,
    IngestionContext,
    build_ingestion_context,
    get_content_ingestion_service,
)
from app.services.dedup_gate import DedupDecision, check_duplicate
from app.services.entity_factory import BuildOptions, EntityBuildError, build_entity, infer_news_position
from app.services.lifecycle_scheduler import (
    CALL_STATUS_TRANSITION_JOB,
    CallLifecycleScheduler,
    sweep_expired_calls,
    transition_call_status,
)
from app.services.media_acquisition import MediaAcquisition, resolve_download_url
from app.services.taxonomy_resolver import TaxonomyResolver

__all__ = [
    "BuildOptions",
    "CALL_STATUS_TRANSITION_JOB",
    "CallLifecycleScheduler",
    "ContentIngestionService",
    "DedupDecision",
    "EntityBuildError",
    "IngestionContext",
    "MediaAcquisition",
    "TaxonomyResolver",
    "build_entity",
    "build_ingestion_context",
    "check_duplicate",
    "get_content_ingestion_service",
    "infer_news_position",
    "resolve_download_url",
    "sweep_expired_calls",
    "transition_call_status",
]

"""Logging and provenance for the campaign pipeline."""

from campaign_pipeline.observability.logging import (
    ContextLogger,
    JSONFormatter,
    configure_logging,
    get_logger,
)
from campaign_pipeline.observability.provenance import (
    FieldSource,
    FieldStatus,
    ProvenanceLog,
    ProvenanceReport,
    SourceType,
)

__all__ = [
    # Logging
    "ContextLogger",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
    # Provenance
    "FieldSource",
    "FieldStatus",
    "ProvenanceLog",
    "ProvenanceReport",
    "SourceType",
]

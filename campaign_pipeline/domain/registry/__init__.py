"""Schema registry for stage contexts and handoff envelopes."""

from campaign_pipeline.domain.registry.schema_registry import (
    CompatValidator,
    SchemaIssue,
    SchemaRegistry,
    ValidationOutcome,
    format_path,
)
from campaign_pipeline.domain.registry.seed_schemas import (
    SEED_SCHEMAS,
    context_schema_key,
)

__all__ = [
    "CompatValidator",
    "SchemaIssue",
    "SchemaRegistry",
    "ValidationOutcome",
    "format_path",
    "SEED_SCHEMAS",
    "context_schema_key",
]

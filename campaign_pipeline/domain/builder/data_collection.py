"""Load the data collection context from upstream research artifacts."""

import logging
from typing import Any, Dict, Optional

from campaign_pipeline.domain.contexts import DATA_SOURCES, DataCollectionContext
from campaign_pipeline.domain.errors import PersistenceError, StructuralValidationError
from campaign_pipeline.domain.registry import SchemaRegistry, context_schema_key
from campaign_pipeline.domain.stages import Stage
from campaign_pipeline.observability.provenance import (
    FieldStatus,
    ProvenanceLog,
    SourceType,
)
from campaign_pipeline.persistence import DocumentGateway, artifact_key, decode_document

logger = logging.getLogger(__name__)


async def _read_artifact(
    gateway: DocumentGateway,
    key: str,
    campaign_id: str,
    sink: ProvenanceLog,
) -> Optional[Dict[str, Any]]:
    """One artifact document, or None when absent or malformed."""
    document = await gateway.get(key)
    if document is None:
        sink.record_source(key, SourceType.UPSTREAM_ARTIFACT, key, confidence=0, status=FieldStatus.MISSING)
        return None
    try:
        data = decode_document(document, key)
    except PersistenceError as e:
        logger.warning(
            f"Ignoring malformed artifact {key}: {e.message}",
            extra={"campaign_id": campaign_id, "stage": Stage.DATA_COLLECTION.value},
        )
        sink.record_source(key, SourceType.UPSTREAM_ARTIFACT, key, confidence=0, status=FieldStatus.ERROR)
        return None
    sink.record_source(key, SourceType.UPSTREAM_ARTIFACT, key, data)
    return data


async def load_data_collection(
    gateway: DocumentGateway,
    campaign_id: str,
    sink: Optional[ProvenanceLog] = None,
    registry: Optional[SchemaRegistry] = None,
    collected_at: Optional[str] = None,
) -> DataCollectionContext:
    """Read every upstream artifact that exists and classify the collection.

    Any subset of the six sources may be absent; the collection status and
    data-quality score degrade accordingly.

    Raises:
        PersistenceError: the gateway read failed.
        StructuralValidationError: the assembled context breaks its schema.
    """
    sink = sink or ProvenanceLog(campaign_id)
    registry = registry or SchemaRegistry()

    documents: Dict[str, Optional[Dict[str, Any]]] = {}
    for source in DATA_SOURCES:
        documents[source.field_name] = await _read_artifact(
            gateway, artifact_key(campaign_id, source.artifact), campaign_id, sink
        )

    context = DataCollectionContext.from_sources(campaign_id, documents, collected_at)

    outcome = registry.validate(context.to_dict(), context_schema_key(Stage.DATA_COLLECTION))
    if not outcome.ok:
        raise StructuralValidationError(
            "Data collection context failed schema validation", outcome.errors
        )
    for warning in outcome.warnings:
        logger.warning(
            f"Data collection compatibility warning: {warning}",
            extra={"campaign_id": campaign_id, "stage": Stage.DATA_COLLECTION.value},
        )

    metadata = context.collection_metadata
    logger.info(
        f"Data collection {metadata.collection_status.value}: "
        f"{len(metadata.data_sources)}/{len(DATA_SOURCES)} sources, "
        f"quality {metadata.data_quality_score}",
        extra={"campaign_id": campaign_id, "stage": Stage.DATA_COLLECTION.value},
    )
    return context

"""Persistence gateway implementations and document keys."""

from pathlib import Path
from typing import Optional

from campaign_pipeline.persistence.batch import WriteBatch
from campaign_pipeline.persistence.gateway import (
    DocumentGateway,
    FileDocumentGateway,
    InMemoryDocumentGateway,
    decode_document,
    encode_document,
)
from campaign_pipeline.persistence.keys import (
    artifact_key,
    context_artifact_name,
    context_key,
    handoff_key,
    provenance_report_key,
    workflow_state_key,
)
from campaign_pipeline.settings import Settings, get_settings


async def create_gateway(settings: Optional[Settings] = None) -> DocumentGateway:
    """Create the gateway selected by ``settings.storage_backend``.

    The SQL backend creates its table on first use.
    """
    settings = settings or get_settings()
    if settings.storage_backend == "file":
        return FileDocumentGateway(Path(settings.storage_path))
    if settings.storage_backend == "sql":
        from campaign_pipeline.core.database import (
            create_engine,
            create_session_factory,
            init_database,
        )
        from campaign_pipeline.persistence.sql_gateway import SqlDocumentGateway

        engine = create_engine(settings.database_url)
        await init_database(engine)
        return SqlDocumentGateway(create_session_factory(engine))
    return InMemoryDocumentGateway()


__all__ = [
    # Gateways
    "DocumentGateway",
    "FileDocumentGateway",
    "InMemoryDocumentGateway",
    "create_gateway",
    "WriteBatch",
    # Encoding
    "decode_document",
    "encode_document",
    # Keys
    "artifact_key",
    "context_artifact_name",
    "context_key",
    "handoff_key",
    "provenance_report_key",
    "workflow_state_key",
]

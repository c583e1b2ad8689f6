"""Handoff orchestrator - envelope, validate, persist.

Nothing is written unless the envelope passes schema validation and, when
a checker result is supplied, the context is complete. A failed handoff
leaves no document behind.
"""

import logging
import time
from typing import Optional

from campaign_pipeline.domain.contexts import StageContext
from campaign_pipeline.domain.errors import (
    ConsistencyError,
    PersistenceError,
    StructuralValidationError,
)
from campaign_pipeline.domain.handoff.envelope import HandoffEnvelope
from campaign_pipeline.domain.registry import (
    SchemaIssue,
    SchemaRegistry,
    ValidationOutcome,
    context_schema_key,
)
from campaign_pipeline.domain.stages import Stage, next_stage
from campaign_pipeline.domain.validation import ValidationResult
from campaign_pipeline.persistence import (
    DocumentGateway,
    decode_document,
    encode_document,
    handoff_key,
)

logger = logging.getLogger(__name__)

ENVELOPE_SCHEMA_KEY = "handoff_envelope"


class HandoffOrchestrator:
    """Wraps built contexts in envelopes and hands them to persistence."""

    def __init__(self, gateway: DocumentGateway, registry: Optional[SchemaRegistry] = None):
        self.gateway = gateway
        self.registry = registry or SchemaRegistry()

    def prepare_handoff(
        self,
        source_stage: Stage,
        target_stage: Stage,
        context: StageContext,
        trace_id: Optional[str] = None,
        execution_time_ms: Optional[float] = None,
    ) -> HandoffEnvelope:
        """Wrap ``context`` in a new envelope. Nothing is validated or written."""
        return HandoffEnvelope(
            campaign_id=context.campaign_id,
            source_stage=Stage(source_stage),
            target_stage=Stage(target_stage),
            payload=context.to_dict(),
            trace_id=trace_id,
            execution_time_ms=execution_time_ms,
        )

    def validate_envelope(self, envelope: HandoffEnvelope) -> ValidationOutcome:
        """Envelope metadata, payload schema, and stage adjacency."""
        data = envelope.to_dict()
        meta = self.registry.validate(data, ENVELOPE_SCHEMA_KEY)
        payload = self.registry.validate(
            data["payload"], context_schema_key(envelope.source_stage)
        ).prefixed("payload")

        ordering_errors = []
        expected = next_stage(envelope.source_stage)
        if Stage(envelope.target_stage) is not expected:
            ordering_errors.append(SchemaIssue(
                path="target_stage",
                message=(
                    f"'{Stage(envelope.target_stage).value}' does not follow "
                    f"'{Stage(envelope.source_stage).value}'"
                ),
                keyword="stage_order",
                severity="error",
            ))
        ordering = ValidationOutcome(ok=not ordering_errors, errors=ordering_errors)
        return ValidationOutcome.merge(meta, payload, ordering)

    def check(
        self,
        envelope: HandoffEnvelope,
        validation: Optional[ValidationResult] = None,
    ) -> None:
        """Raise unless ``envelope`` may be persisted. Nothing is written.

        Raises:
            StructuralValidationError: the envelope or payload breaks its schema.
            ConsistencyError: ``validation`` reports the context incomplete.
        """
        log_extra = _log_extra(envelope)
        outcome = self.validate_envelope(envelope)
        if not outcome.ok:
            logger.error(
                f"Handoff {envelope.key} rejected: {len(outcome.errors)} structural errors",
                extra=log_extra,
            )
            raise StructuralValidationError(
                f"Handoff {Stage(envelope.source_stage).value} -> "
                f"{Stage(envelope.target_stage).value} failed schema validation",
                outcome.errors,
            )
        for warning in outcome.warnings:
            logger.warning(f"Compatibility warning: {warning}", extra=log_extra)

        if validation is not None:
            if not validation.is_complete:
                errors = validation.blocking_errors()
                logger.error(
                    f"Handoff {envelope.key} rejected: {len(errors)} blocking findings",
                    extra=log_extra,
                )
                raise ConsistencyError(
                    f"{Stage(envelope.source_stage).value} context is incomplete",
                    errors,
                )
            for message in validation.warnings:
                logger.warning(message, extra=log_extra)

    def document(self, envelope: HandoffEnvelope) -> bytes:
        return encode_document(envelope.to_dict())

    async def submit(
        self,
        envelope: HandoffEnvelope,
        validation: Optional[ValidationResult] = None,
    ) -> str:
        """Validate and persist ``envelope``; returns its key.

        Raises:
            StructuralValidationError: the envelope or payload breaks its schema.
            ConsistencyError: ``validation`` reports the context incomplete.
            PersistenceError: the gateway write failed.
        """
        self.check(envelope, validation)
        started = time.perf_counter()
        await self.gateway.put(envelope.key, self.document(envelope))
        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Persisted handoff {envelope.key}",
            extra={**_log_extra(envelope), "duration_ms": round(duration_ms, 2)},
        )
        return envelope.key

    async def load(
        self,
        campaign_id: str,
        source_stage: Stage,
        target_stage: Stage,
    ) -> Optional[HandoffEnvelope]:
        """Read a persisted envelope back; None if it was never written."""
        key = handoff_key(campaign_id, source_stage, target_stage)
        document = await self.gateway.get(key)
        if document is None:
            return None
        try:
            return HandoffEnvelope.from_dict(decode_document(document, key))
        except (KeyError, ValueError) as e:
            raise PersistenceError(f"Corrupt handoff envelope at {key}: {e}", key, "decode") from e


def _log_extra(envelope: HandoffEnvelope) -> dict:
    return {
        "campaign_id": envelope.campaign_id,
        "stage": Stage(envelope.source_stage).value,
        "handoff_id": envelope.handoff_id,
        "trace_id": envelope.trace_id,
    }

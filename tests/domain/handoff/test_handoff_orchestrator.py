"""Tests for handoff envelopes and HandoffOrchestrator."""

import dataclasses
import re

import pytest

from campaign_pipeline.domain.errors import (
    ConsistencyError,
    PersistenceError,
    StructuralValidationError,
)
from campaign_pipeline.domain.handoff import DATA_VERSION, HandoffEnvelope, HandoffOrchestrator
from campaign_pipeline.domain.stages import Stage
from campaign_pipeline.domain.validation import ConsistencyChecker
from campaign_pipeline.persistence import decode_document


@pytest.fixture
def orchestrator(gateway):
    return HandoffOrchestrator(gateway)


@pytest.fixture
def checker(settings, clock):
    return ConsistencyChecker(settings, clock=clock)


class TestPrepareHandoff:
    """Tests for envelope creation."""

    def test_envelope_fields(self, orchestrator, content_context, campaign_id):
        """prepare_handoff() fills stages, context and trace fields."""
        envelope = orchestrator.prepare_handoff(
            Stage.CONTENT, Stage.DESIGN, content_context, trace_id="trace-1", execution_time_ms=12.5
        )
        assert envelope.campaign_id == campaign_id
        assert envelope.source_stage is Stage.CONTENT
        assert envelope.target_stage is Stage.DESIGN
        assert envelope.payload == content_context.to_dict()
        assert envelope.data_version == DATA_VERSION
        assert envelope.trace_id == "trace-1"
        assert re.fullmatch(r"handoff_[0-9a-f]{32}", envelope.handoff_id)
        assert envelope.key == f"{campaign_id}/handoffs/content-to-design"

    def test_handoff_ids_are_unique(self, orchestrator, content_context):
        """Each envelope gets a fresh handoff id."""
        first = orchestrator.prepare_handoff("content", "design", content_context)
        second = orchestrator.prepare_handoff("content", "design", content_context)
        assert first.handoff_id != second.handoff_id

    def test_envelope_round_trip(self, orchestrator, content_context):
        """to_dict() and from_dict() preserve the envelope."""
        envelope = orchestrator.prepare_handoff(Stage.CONTENT, Stage.DESIGN, content_context)
        assert HandoffEnvelope.from_dict(envelope.to_dict()) == envelope


class TestSubmit:
    """Tests for validation and persistence of envelopes."""

    @pytest.mark.asyncio
    async def test_valid_handoff_is_persisted(self, orchestrator, gateway, checker, content_context):
        """submit() stores a valid envelope under its key."""
        envelope = orchestrator.prepare_handoff(Stage.CONTENT, Stage.DESIGN, content_context)
        validation = checker.check(content_context)

        key = await orchestrator.submit(envelope, validation)

        assert key == envelope.key
        stored = decode_document(await gateway.get(key), key)
        assert stored["handoff_id"] == envelope.handoff_id
        assert stored["payload"]["generated_content"]["subject"] == "Barcelona from 12 500 RUB this autumn"

    @pytest.mark.asyncio
    async def test_load_returns_persisted_envelope(self, orchestrator, design_context, campaign_id):
        """load() returns the envelope that was submitted."""
        envelope = orchestrator.prepare_handoff(Stage.DESIGN, Stage.QUALITY, design_context, execution_time_ms=3.0)
        await orchestrator.submit(envelope)
        loaded = await orchestrator.load(campaign_id, Stage.DESIGN, Stage.QUALITY)
        assert loaded == envelope

    @pytest.mark.asyncio
    async def test_load_missing(self, orchestrator, campaign_id):
        """load() returns None for an absent handoff."""
        assert await orchestrator.load(campaign_id, Stage.CONTENT, Stage.DESIGN) is None

    @pytest.mark.asyncio
    async def test_load_corrupt(self, orchestrator, gateway, campaign_id):
        """load() raises PersistenceError for a corrupt document."""
        await gateway.put(f"{campaign_id}/handoffs/content-to-design", b'{"payload": {}}')
        with pytest.raises(PersistenceError):
            await orchestrator.load(campaign_id, Stage.CONTENT, Stage.DESIGN)

    @pytest.mark.asyncio
    async def test_non_adjacent_stages_rejected(self, orchestrator, gateway, content_context):
        """Handoffs between non-adjacent stages are rejected."""
        envelope = orchestrator.prepare_handoff(Stage.CONTENT, Stage.QUALITY, content_context)

        with pytest.raises(StructuralValidationError) as exc_info:
            await orchestrator.submit(envelope)

        assert "target_stage" in exc_info.value.paths
        assert not await gateway.exists(envelope.key)

    @pytest.mark.asyncio
    async def test_negative_execution_time_rejected(self, orchestrator, content_context):
        """A negative execution time fails structural validation."""
        envelope = orchestrator.prepare_handoff(
            Stage.CONTENT, Stage.DESIGN, content_context, execution_time_ms=-1
        )
        with pytest.raises(StructuralValidationError) as exc_info:
            await orchestrator.submit(envelope)
        assert exc_info.value.paths == ["execution_time_ms"]

    @pytest.mark.asyncio
    async def test_payload_errors_are_prefixed(self, orchestrator, gateway, content_context):
        """Payload schema errors carry the context path prefix."""
        envelope = orchestrator.prepare_handoff(Stage.CONTENT, Stage.DESIGN, content_context)
        payload = dict(envelope.payload)
        del payload["generated_content"]
        broken = dataclasses.replace(envelope, payload=payload)

        with pytest.raises(StructuralValidationError) as exc_info:
            await orchestrator.submit(broken)

        assert exc_info.value.paths == ["payload.generated_content"]
        assert not await gateway.exists(broken.key)

    @pytest.mark.asyncio
    async def test_incomplete_context_rejected(self, orchestrator, gateway, checker, builder, raw_content, data_collection):
        """An incomplete context raises ConsistencyError and writes nothing."""
        raw_content["pricing_analysis"].update(best_price=0, min_price=0, max_price=0, average_price=0)
        context = builder.build(Stage.CONTENT, raw_content, data_collection)
        envelope = orchestrator.prepare_handoff(Stage.CONTENT, Stage.DESIGN, context)

        with pytest.raises(ConsistencyError) as exc_info:
            await orchestrator.submit(envelope, checker.check(context))

        assert exc_info.value.paths == ["pricing_analysis"]
        assert not await gateway.exists(envelope.key)

    @pytest.mark.asyncio
    async def test_resubmission_replaces(self, orchestrator, gateway, content_context):
        """Submitting the same handoff again replaces the document."""
        first = orchestrator.prepare_handoff(Stage.CONTENT, Stage.DESIGN, content_context)
        second = orchestrator.prepare_handoff(Stage.CONTENT, Stage.DESIGN, content_context)
        await orchestrator.submit(first)
        await orchestrator.submit(second)
        stored = decode_document(await gateway.get(second.key), second.key)
        assert stored["handoff_id"] == second.handoff_id

"""Handoff envelopes and the orchestrator that validates and persists them."""

from campaign_pipeline.domain.handoff.envelope import DATA_VERSION, HandoffEnvelope, new_handoff_id
from campaign_pipeline.domain.handoff.orchestrator import HandoffOrchestrator

__all__ = [
    "DATA_VERSION",
    "HandoffEnvelope",
    "HandoffOrchestrator",
    "new_handoff_id",
]

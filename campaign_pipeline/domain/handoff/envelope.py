"""Handoff envelope - metadata wrapper around a stage context transfer."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from campaign_pipeline.domain.contexts.base import utc_now
from campaign_pipeline.domain.stages import Stage
from campaign_pipeline.persistence.keys import handoff_key

DATA_VERSION = "1.0"


def new_handoff_id() -> str:
    return f"handoff_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class HandoffEnvelope:
    """One stage-to-stage transfer. Created once, never modified.

    ``payload`` is the source stage context in its dict (wire) form.
    """

    campaign_id: str
    source_stage: Stage
    target_stage: Stage
    payload: Dict[str, Any]
    handoff_id: str = field(default_factory=new_handoff_id)
    created_at: str = field(default_factory=lambda: utc_now().isoformat())
    data_version: str = DATA_VERSION
    trace_id: Optional[str] = None
    execution_time_ms: Optional[float] = None

    @property
    def key(self) -> str:
        """Persistence key, ``{campaign}/handoffs/{source}-to-{target}``."""
        return handoff_key(self.campaign_id, self.source_stage, self.target_stage)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handoff_id": self.handoff_id,
            "campaign_id": self.campaign_id,
            "created_at": self.created_at,
            "source_stage": Stage(self.source_stage).value,
            "target_stage": Stage(self.target_stage).value,
            "data_version": self.data_version,
            "trace_id": self.trace_id,
            "execution_time_ms": self.execution_time_ms,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HandoffEnvelope":
        return cls(
            handoff_id=data["handoff_id"],
            campaign_id=data["campaign_id"],
            created_at=data["created_at"],
            source_stage=Stage(data["source_stage"]),
            target_stage=Stage(data["target_stage"]),
            data_version=data.get("data_version", DATA_VERSION),
            trace_id=data.get("trace_id"),
            execution_time_ms=data.get("execution_time_ms"),
            payload=data["payload"],
        )

"""Workflow state - the authoritative pipeline record for one campaign.

States are immutable values. The state machine produces a new state on
every advance and never removes history.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from campaign_pipeline.domain.contexts import (
    CONTEXT_TYPES,
    ContentContext,
    DataCollectionContext,
    DeliveryContext,
    DesignContext,
    QualityContext,
    StageContext,
)
from campaign_pipeline.domain.stages import EXPECTED_PROGRESSION, Stage


@dataclass(frozen=True)
class StageTransition:
    """Record of one stage advance."""
    from_stage: Stage
    to_stage: Stage
    timestamp: datetime
    duration_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_stage": self.from_stage.value,
            "to_stage": self.to_stage.value,
            "timestamp": self.timestamp.isoformat(),
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StageTransition":
        return cls(
            from_stage=Stage(data["from_stage"]),
            to_stage=Stage(data["to_stage"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            duration_ms=data["duration_ms"],
        )


@dataclass(frozen=True)
class WorkflowMetadata:
    started_at: datetime
    current_stage_started_at: datetime
    total_processing_time_ms: float = 0.0
    stage_transitions: Tuple[StageTransition, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "current_stage_started_at": self.current_stage_started_at.isoformat(),
            "total_processing_time_ms": self.total_processing_time_ms,
            "stage_transitions": [t.to_dict() for t in self.stage_transitions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowMetadata":
        return cls(
            started_at=datetime.fromisoformat(data["started_at"]),
            current_stage_started_at=datetime.fromisoformat(data["current_stage_started_at"]),
            total_processing_time_ms=data.get("total_processing_time_ms", 0.0),
            stage_transitions=tuple(
                StageTransition.from_dict(t) for t in data.get("stage_transitions", [])
            ),
        )


@dataclass(frozen=True)
class WorkflowState:
    """Complete pipeline state for one campaign."""

    campaign_id: str
    current_stage: Stage
    completed_stages: Tuple[Stage, ...]
    metadata: WorkflowMetadata
    data_collection_context: Optional[DataCollectionContext] = None
    content_context: Optional[ContentContext] = None
    design_context: Optional[DesignContext] = None
    quality_context: Optional[QualityContext] = None
    delivery_context: Optional[DeliveryContext] = None
    # Incremented on every advance; guards against stale persists
    version: int = 0

    def context_for(self, stage: Stage) -> Optional[StageContext]:
        return getattr(self, f"{Stage(stage).value}_context")

    @property
    def current_context(self) -> Optional[StageContext]:
        return self.context_for(self.current_stage)

    @property
    def is_finished(self) -> bool:
        return self.current_stage is EXPECTED_PROGRESSION[-1]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "campaign_id": self.campaign_id,
            "current_stage": self.current_stage.value,
            "completed_stages": [s.value for s in self.completed_stages],
            "metadata": self.metadata.to_dict(),
            "version": self.version,
        }
        for stage in EXPECTED_PROGRESSION:
            context = self.context_for(stage)
            data[f"{stage.value}_context"] = context.to_dict() if context else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowState":
        contexts = {}
        for stage, context_type in CONTEXT_TYPES.items():
            raw = data.get(f"{stage.value}_context")
            contexts[f"{stage.value}_context"] = context_type.from_dict(raw) if raw else None
        return cls(
            campaign_id=data["campaign_id"],
            current_stage=Stage(data["current_stage"]),
            completed_stages=tuple(Stage(s) for s in data["completed_stages"]),
            metadata=WorkflowMetadata.from_dict(data["metadata"]),
            version=data.get("version", 0),
            **contexts,
        )


@dataclass(frozen=True)
class AccumulationCheck:
    """Result of the accumulation sanity pass."""
    is_valid: bool
    issues: Tuple[str, ...] = field(default_factory=tuple)
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

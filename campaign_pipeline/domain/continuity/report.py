"""Continuity report types. Advisory only; never persisted as state."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from campaign_pipeline.domain.stages import Stage


@dataclass(frozen=True)
class PreservationScores:
    """Per-dimension preservation scores; None when not evaluated yet."""
    content: Optional[int] = None
    design: Optional[int] = None
    asset: Optional[int] = None
    brand: Optional[int] = None
    overall: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_preservation_score": self.content,
            "design_preservation_score": self.design,
            "asset_preservation_score": self.asset,
            "brand_preservation_score": self.brand,
            "overall_preservation_score": self.overall,
        }


@dataclass(frozen=True)
class ContinuityIssue:
    transition: str
    severity: str  # critical, high, medium, low
    issue_type: str  # data_loss, quality_degradation, specification_drift, context_loss
    description: str
    impact: str
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transition": self.transition,
            "severity": self.severity,
            "issue_type": self.issue_type,
            "description": self.description,
            "impact": self.impact,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class RollbackTrigger:
    """A threshold evaluation and the action it recommends."""
    trigger_type: str
    threshold: int
    current_value: int
    triggered: bool
    action_required: str
    rollback_to: Optional[Stage] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger_type": self.trigger_type,
            "threshold": self.threshold,
            "current_value": self.current_value,
            "triggered": self.triggered,
            "action_required": self.action_required,
            "rollback_to": self.rollback_to.value if self.rollback_to else None,
        }


@dataclass(frozen=True)
class ContinuityReport:
    campaign_id: str
    continuity_score: int
    # Keyed by transition name, e.g. "content_to_design"; None = not evaluated
    transition_quality: Dict[str, Optional[int]]
    overall_transition_quality: int
    preservation: PreservationScores
    issues: List[ContinuityIssue] = field(default_factory=list)
    rollback_triggers: List[RollbackTrigger] = field(default_factory=list)
    compliant: bool = False

    @property
    def triggered(self) -> List[RollbackTrigger]:
        return [t for t in self.rollback_triggers if t.triggered]

    @property
    def critical_issues(self) -> List[ContinuityIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "continuity_score": self.continuity_score,
            "transition_quality": {
                **self.transition_quality,
                "overall_transition_quality": self.overall_transition_quality,
            },
            "quality_preservation": self.preservation.to_dict(),
            "continuity_issues": [i.to_dict() for i in self.issues],
            "rollback_triggers": [t.to_dict() for t in self.rollback_triggers],
            "compliant": self.compliant,
        }

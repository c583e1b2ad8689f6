"""Quality stage context."""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

from campaign_pipeline.domain.contexts.base import SectionMixin
from campaign_pipeline.domain.contexts.data_collection import DataCollectionContext
from campaign_pipeline.domain.contexts.design import DesignContext
from campaign_pipeline.domain.stages import Stage


APPROVAL_STATUSES = ("approved", "needs_revision", "rejected")


@dataclass(frozen=True)
class TestArtifacts(SectionMixin):
    __test__ = False  # not a pytest class

    screenshots: List[Any] = field(default_factory=list)
    validation_logs: List[Any] = field(default_factory=list)
    performance_reports: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ComplianceStatus(SectionMixin):
    """None means the check was not assessed."""
    email_standards: Optional[bool] = None
    accessibility: Optional[bool] = None
    performance: Optional[bool] = None
    security: Optional[bool] = None
    brand_guidelines: Optional[bool] = None


@dataclass(frozen=True)
class QualityContext:
    """Quality stage output, embedding the design context it assessed."""

    stage: ClassVar[Stage] = Stage.QUALITY

    campaign_id: str
    design_context: DesignContext
    quality_report: Dict[str, Any]
    data_collection_context: Optional[DataCollectionContext] = None
    design_validation: Optional[Dict[str, Any]] = None
    asset_validation: Optional[Dict[str, Any]] = None
    test_artifacts: TestArtifacts = field(default_factory=TestArtifacts)
    compliance_status: ComplianceStatus = field(default_factory=ComplianceStatus)
    defaults_applied: List[str] = field(default_factory=list)

    @property
    def upstream(self) -> DesignContext:
        return self.design_context

    @property
    def overall_score(self) -> Optional[float]:
        return self.quality_report.get("overall_score")

    @property
    def approval_status(self) -> Optional[str]:
        return self.quality_report.get("approval_status")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "design_context": self.design_context.to_dict(),
            "data_collection_context": (
                self.data_collection_context.to_dict()
                if self.data_collection_context else None
            ),
            "quality_report": dict(self.quality_report),
            "design_validation": self.design_validation,
            "asset_validation": self.asset_validation,
            "test_artifacts": self.test_artifacts.to_dict(),
            "compliance_status": self.compliance_status.to_dict(),
            "defaults_applied": list(self.defaults_applied),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QualityContext":
        dcc = data.get("data_collection_context")
        return cls(
            campaign_id=data["campaign_id"],
            design_context=DesignContext.from_dict(data["design_context"]),
            data_collection_context=(
                DataCollectionContext.from_dict(dcc) if dcc else None
            ),
            quality_report=dict(data["quality_report"]),
            design_validation=data.get("design_validation"),
            asset_validation=data.get("asset_validation"),
            test_artifacts=TestArtifacts.from_dict(data.get("test_artifacts")),
            compliance_status=ComplianceStatus.from_dict(data.get("compliance_status")),
            defaults_applied=list(data.get("defaults_applied", [])),
        )

"""Delivery stage context."""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

from campaign_pipeline.domain.contexts.base import SectionMixin
from campaign_pipeline.domain.contexts.data_collection import DataCollectionContext
from campaign_pipeline.domain.contexts.quality import QualityContext
from campaign_pipeline.domain.stages import Stage


EXPORT_FORMATS = ("zip", "tar", "folder")
COMPRESSION_LEVELS = ("none", "standard", "maximum")
DELIVERY_STATUSES = ("packaging", "ready", "delivered", "error")


@dataclass(frozen=True)
class ExportFormat(SectionMixin):
    format: str = "zip"
    compression: str = "standard"
    export_path: Optional[str] = None
    download_url: Optional[str] = None


@dataclass(frozen=True)
class DeliveryContext:
    """Delivery stage output, embedding the quality context it packaged."""

    stage: ClassVar[Stage] = Stage.DELIVERY

    campaign_id: str
    quality_context: QualityContext
    delivery_manifest: Dict[str, Any]
    delivery_report: Dict[str, Any]
    delivery_timestamp: str
    data_collection_context: Optional[DataCollectionContext] = None
    export_format: ExportFormat = field(default_factory=ExportFormat)
    deployment_artifacts: Dict[str, Any] = field(default_factory=dict)
    quality_preservation: Optional[Dict[str, Any]] = None
    delivery_status: str = "ready"
    defaults_applied: List[str] = field(default_factory=list)

    @property
    def upstream(self) -> QualityContext:
        return self.quality_context

    @property
    def deployment_ready(self) -> Optional[bool]:
        return self.delivery_report.get("deployment_ready")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "quality_context": self.quality_context.to_dict(),
            "data_collection_context": (
                self.data_collection_context.to_dict()
                if self.data_collection_context else None
            ),
            "delivery_manifest": dict(self.delivery_manifest),
            "export_format": self.export_format.to_dict(),
            "delivery_report": dict(self.delivery_report),
            "deployment_artifacts": dict(self.deployment_artifacts),
            "quality_preservation": self.quality_preservation,
            "delivery_status": self.delivery_status,
            "delivery_timestamp": self.delivery_timestamp,
            "defaults_applied": list(self.defaults_applied),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeliveryContext":
        dcc = data.get("data_collection_context")
        return cls(
            campaign_id=data["campaign_id"],
            quality_context=QualityContext.from_dict(data["quality_context"]),
            data_collection_context=(
                DataCollectionContext.from_dict(dcc) if dcc else None
            ),
            delivery_manifest=dict(data["delivery_manifest"]),
            export_format=ExportFormat.from_dict(data.get("export_format")),
            delivery_report=dict(data["delivery_report"]),
            deployment_artifacts=dict(data.get("deployment_artifacts") or {}),
            quality_preservation=data.get("quality_preservation"),
            delivery_status=data.get("delivery_status", "ready"),
            delivery_timestamp=data["delivery_timestamp"],
            defaults_applied=list(data.get("defaults_applied", [])),
        )

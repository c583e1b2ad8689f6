"""Design stage context."""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

from campaign_pipeline.domain.contexts.base import SectionMixin
from campaign_pipeline.domain.contexts.content import ContentContext
from campaign_pipeline.domain.contexts.data_collection import DataCollectionContext
from campaign_pipeline.domain.stages import Stage


TEMPLATE_VALIDATION_STATUSES = ("valid", "warnings", "errors")
BRAND_ELEMENTS = ("primary_color", "secondary_color", "accent_color", "logo")
INTEGRATION_FIELDS = ("subject", "pricing", "travel_dates", "destination", "routes")


@dataclass(frozen=True)
class AssetManifest(SectionMixin):
    images: List[Dict[str, Any]] = field(default_factory=list)
    icons: List[Dict[str, Any]] = field(default_factory=list)
    fonts: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total_assets(self) -> int:
        """Visual assets collected (images and icons)."""
        return len(self.images) + len(self.icons)


@dataclass(frozen=True)
class TemplateArtifact(SectionMixin):
    source: str
    compiled_html: str
    inline_css: Optional[str] = None
    file_size: int = 0
    validation_status: str = "valid"
    validation_messages: List[str] = field(default_factory=list)
    responsive_breakpoints: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class BrandApplication(SectionMixin):
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    accent_color: Optional[str] = None
    logo: Optional[str] = None

    def missing_elements(self) -> List[str]:
        return [name for name in BRAND_ELEMENTS if not getattr(self, name)]


@dataclass(frozen=True)
class ContentIntegration(SectionMixin):
    """Which content values the design actually integrated."""
    subject: Optional[str] = None
    pricing: Optional[Any] = None
    travel_dates: Optional[Any] = None
    destination: Optional[str] = None
    routes: Optional[Any] = None

    def has(self, name: str) -> bool:
        value = getattr(self, name)
        return value is not None and value != "" and value != [] and value != {}


@dataclass(frozen=True)
class AssetUtilization(SectionMixin):
    used_assets: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DesignContext:
    """Design stage output, embedding the content context it was built from."""

    stage: ClassVar[Stage] = Stage.DESIGN

    campaign_id: str
    content_context: ContentContext
    asset_manifest: AssetManifest
    mjml_template: TemplateArtifact
    data_collection_context: Optional[DataCollectionContext] = None
    design_decisions: Dict[str, Any] = field(default_factory=dict)
    brand_application: BrandApplication = field(default_factory=BrandApplication)
    content_integration: ContentIntegration = field(default_factory=ContentIntegration)
    asset_utilization: AssetUtilization = field(default_factory=AssetUtilization)
    preview_files: List[Dict[str, Any]] = field(default_factory=list)
    performance_metrics: Dict[str, Any] = field(default_factory=dict)
    defaults_applied: List[str] = field(default_factory=list)

    @property
    def upstream(self) -> ContentContext:
        return self.content_context

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "content_context": self.content_context.to_dict(),
            "data_collection_context": (
                self.data_collection_context.to_dict()
                if self.data_collection_context else None
            ),
            "asset_manifest": self.asset_manifest.to_dict(),
            "mjml_template": self.mjml_template.to_dict(),
            "design_decisions": dict(self.design_decisions),
            "brand_application": self.brand_application.to_dict(),
            "content_integration": self.content_integration.to_dict(),
            "asset_utilization": self.asset_utilization.to_dict(),
            "preview_files": list(self.preview_files),
            "performance_metrics": dict(self.performance_metrics),
            "defaults_applied": list(self.defaults_applied),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DesignContext":
        dcc = data.get("data_collection_context")
        return cls(
            campaign_id=data["campaign_id"],
            content_context=ContentContext.from_dict(data["content_context"]),
            data_collection_context=(
                DataCollectionContext.from_dict(dcc) if dcc else None
            ),
            asset_manifest=AssetManifest.from_dict(data["asset_manifest"]),
            mjml_template=TemplateArtifact.from_dict(data["mjml_template"]),
            design_decisions=dict(data.get("design_decisions") or {}),
            brand_application=BrandApplication.from_dict(data.get("brand_application")),
            content_integration=ContentIntegration.from_dict(data.get("content_integration")),
            asset_utilization=AssetUtilization.from_dict(data.get("asset_utilization")),
            preview_files=list(data.get("preview_files") or []),
            performance_metrics=dict(data.get("performance_metrics") or {}),
            defaults_applied=list(data.get("defaults_applied", [])),
        )

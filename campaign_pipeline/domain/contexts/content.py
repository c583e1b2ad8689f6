"""Content stage context."""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

from campaign_pipeline.domain.contexts.base import SectionMixin
from campaign_pipeline.domain.contexts.data_collection import DataCollectionContext
from campaign_pipeline.domain.stages import Stage


CAMPAIGN_TYPES = ("promotional", "transactional", "newsletter", "announcement")
CAMPAIGN_STATUSES = ("active", "draft", "completed", "archived")
SEASONS = ("spring", "summer", "autumn", "winter", "year-round")
VISUAL_STYLES = ("modern", "classic", "minimalist", "vibrant", "elegant")
EMOTIONAL_TRIGGERS = ("excitement", "trust", "urgency", "relaxation", "adventure")
PERSONALIZATION_LEVELS = ("basic", "advanced", "premium")
URGENCY_LEVELS = ("low", "medium", "high")
ACCESSIBILITY_LEVELS = ("AA", "AAA")

DATE_SOURCE_SUPPLIED = "supplied"
DATE_SOURCE_GENERATED = "generated_placeholder"


@dataclass(frozen=True)
class CampaignInfo(SectionMixin):
    id: str
    name: str
    brand: str
    type: str = "promotional"
    target_audience: Optional[str] = None
    language: str = "ru"
    created_at: str = ""
    status: str = "active"
    campaign_path: Optional[str] = None


@dataclass(frozen=True)
class ContextAnalysis(SectionMixin):
    destination: str
    seasonal_trends: Optional[str] = None
    emotional_triggers: Optional[str] = None
    market_positioning: Optional[str] = None
    competitive_landscape: Optional[str] = None
    price_sensitivity: Optional[str] = None
    booking_patterns: Optional[str] = None


@dataclass(frozen=True)
class DateAnalysis(SectionMixin):
    destination: str
    season: str
    current_date: str
    optimal_dates: List[str] = field(default_factory=list)
    pricing_windows: List[str] = field(default_factory=list)
    booking_recommendation: Optional[str] = None
    seasonal_factors: Optional[str] = None
    date_source: str = DATE_SOURCE_SUPPLIED

    @property
    def dates_are_placeholders(self) -> bool:
        return self.date_source == DATE_SOURCE_GENERATED


@dataclass(frozen=True)
class Route(SectionMixin):
    from_city: Optional[str] = None
    to_city: Optional[str] = None
    from_code: Optional[str] = None
    to_code: Optional[str] = None


@dataclass(frozen=True)
class PricingAnalysis(SectionMixin):
    best_price: float
    min_price: float
    max_price: float
    average_price: float
    currency: Optional[str] = None
    offers_count: int = 0
    recommended_dates: List[str] = field(default_factory=list)
    route: Optional[Route] = None
    # Price fields whose raw value was absent or unparsable and coerced to zero
    missing_fields: List[str] = field(default_factory=list)

    @property
    def all_zero(self) -> bool:
        return self.best_price == 0 and self.min_price == 0 and self.max_price == 0

    @property
    def has_real_pricing(self) -> bool:
        return not self.all_zero and "best_price" not in self.missing_fields

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PricingAnalysis":
        data = dict(data or {})
        route = data.get("route")
        data["route"] = Route.from_dict(route) if route is not None else None
        return super().from_dict(data)


@dataclass(frozen=True)
class AssetStrategy(SectionMixin):
    visual_style: str = "modern"
    emotional_triggers: str = "excitement"
    theme: Optional[str] = None
    color_palette: Optional[str] = None
    typography: Optional[str] = None
    image_concepts: List[str] = field(default_factory=list)
    layout_hierarchy: Optional[str] = None
    brand_consistency: Optional[str] = None


@dataclass(frozen=True)
class CallToAction(SectionMixin):
    primary: Optional[str] = None
    secondary: Optional[str] = None


@dataclass(frozen=True)
class GeneratedContent(SectionMixin):
    subject: str
    body: str
    preheader: Optional[str] = None
    cta: CallToAction = field(default_factory=CallToAction)
    personalization_level: str = "advanced"
    urgency_level: str = "medium"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GeneratedContent":
        data = dict(data or {})
        data["cta"] = CallToAction.from_dict(data.get("cta"))
        return super().from_dict(data)


@dataclass(frozen=True)
class TechnicalRequirements(SectionMixin):
    max_width: str = "600px"
    email_clients: List[str] = field(
        default_factory=lambda: ["gmail", "outlook", "apple_mail"]
    )
    dark_mode_support: bool = True
    accessibility_level: str = "AA"


@dataclass(frozen=True)
class ContentContext:
    """Content stage output: analysis, dates, pricing and copy."""

    stage: ClassVar[Stage] = Stage.CONTENT

    campaign_id: str
    campaign: CampaignInfo
    context_analysis: ContextAnalysis
    date_analysis: DateAnalysis
    pricing_analysis: PricingAnalysis
    asset_strategy: AssetStrategy
    generated_content: GeneratedContent
    technical_requirements: TechnicalRequirements = field(default_factory=TechnicalRequirements)
    data_collection_context: Optional[DataCollectionContext] = None
    defaults_applied: List[str] = field(default_factory=list)

    @property
    def destination(self) -> str:
        return self.context_analysis.destination

    @property
    def upstream(self) -> Optional[DataCollectionContext]:
        return self.data_collection_context

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "campaign": self.campaign.to_dict(),
            "context_analysis": self.context_analysis.to_dict(),
            "date_analysis": self.date_analysis.to_dict(),
            "pricing_analysis": self.pricing_analysis.to_dict(),
            "asset_strategy": self.asset_strategy.to_dict(),
            "generated_content": self.generated_content.to_dict(),
            "technical_requirements": self.technical_requirements.to_dict(),
            "data_collection_context": (
                self.data_collection_context.to_dict()
                if self.data_collection_context else None
            ),
            "defaults_applied": list(self.defaults_applied),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentContext":
        dcc = data.get("data_collection_context")
        return cls(
            campaign_id=data["campaign_id"],
            campaign=CampaignInfo.from_dict(data["campaign"]),
            context_analysis=ContextAnalysis.from_dict(data["context_analysis"]),
            date_analysis=DateAnalysis.from_dict(data["date_analysis"]),
            pricing_analysis=PricingAnalysis.from_dict(data["pricing_analysis"]),
            asset_strategy=AssetStrategy.from_dict(data.get("asset_strategy")),
            generated_content=GeneratedContent.from_dict(data["generated_content"]),
            technical_requirements=TechnicalRequirements.from_dict(
                data.get("technical_requirements")
            ),
            data_collection_context=(
                DataCollectionContext.from_dict(dcc) if dcc else None
            ),
            defaults_applied=list(data.get("defaults_applied", [])),
        )

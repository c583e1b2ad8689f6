"""Stage context types.

Each stage owns one immutable context; every context embeds the context
of the stage before it and threads the data collection context through.
"""

from typing import Any, Dict, Type, Union

from campaign_pipeline.domain.contexts.content import (
    AssetStrategy,
    CallToAction,
    CampaignInfo,
    ContentContext,
    ContextAnalysis,
    DateAnalysis,
    GeneratedContent,
    PricingAnalysis,
    Route,
    TechnicalRequirements,
)
from campaign_pipeline.domain.contexts.data_collection import (
    DATA_SOURCES,
    CollectionMetadata,
    CollectionStatus,
    DataCollectionContext,
    DataSource,
    classify_collection,
)
from campaign_pipeline.domain.contexts.delivery import DeliveryContext, ExportFormat
from campaign_pipeline.domain.contexts.design import (
    AssetManifest,
    AssetUtilization,
    BrandApplication,
    ContentIntegration,
    DesignContext,
    TemplateArtifact,
)
from campaign_pipeline.domain.contexts.quality import (
    ComplianceStatus,
    QualityContext,
    TestArtifacts,
)
from campaign_pipeline.domain.stages import Stage


StageContext = Union[
    DataCollectionContext,
    ContentContext,
    DesignContext,
    QualityContext,
    DeliveryContext,
]

CONTEXT_TYPES: Dict[Stage, Type] = {
    Stage.DATA_COLLECTION: DataCollectionContext,
    Stage.CONTENT: ContentContext,
    Stage.DESIGN: DesignContext,
    Stage.QUALITY: QualityContext,
    Stage.DELIVERY: DeliveryContext,
}


def context_from_dict(stage: Stage, data: Dict[str, Any]) -> StageContext:
    """Restore the context for ``stage`` from its dict form."""
    return CONTEXT_TYPES[Stage(stage)].from_dict(data)


__all__ = [
    # Union / lookup
    "StageContext",
    "CONTEXT_TYPES",
    "context_from_dict",
    # Data collection
    "DATA_SOURCES",
    "CollectionMetadata",
    "CollectionStatus",
    "DataCollectionContext",
    "DataSource",
    "classify_collection",
    # Content
    "AssetStrategy",
    "CallToAction",
    "CampaignInfo",
    "ContentContext",
    "ContextAnalysis",
    "DateAnalysis",
    "GeneratedContent",
    "PricingAnalysis",
    "Route",
    "TechnicalRequirements",
    # Design
    "AssetManifest",
    "AssetUtilization",
    "BrandApplication",
    "ContentIntegration",
    "DesignContext",
    "TemplateArtifact",
    # Quality
    "ComplianceStatus",
    "QualityContext",
    "TestArtifacts",
    # Delivery
    "DeliveryContext",
    "ExportFormat",
]

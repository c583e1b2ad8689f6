"""Data collection context - upstream research artifacts."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple

from campaign_pipeline.domain.contexts.base import utc_now
from campaign_pipeline.domain.stages import Stage


class CollectionStatus(str, Enum):
    """How many upstream sources made it into the collection."""
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class DataSource:
    """An upstream artifact and the context field it lands in."""
    field_name: str
    artifact: str


DATA_SOURCES: Tuple[DataSource, ...] = (
    DataSource("destination_analysis", "destination-analysis"),
    DataSource("market_intelligence", "market-intelligence"),
    DataSource("emotional_profile", "emotional-profile"),
    DataSource("consolidated_insights", "consolidated-insights"),
    DataSource("travel_intelligence", "travel-intelligence"),
    DataSource("trend_analysis", "trend-analysis"),
)

COMPLETE_THRESHOLD = 4
PARTIAL_THRESHOLD = 2


def classify_collection(present: int, total: int = len(DATA_SOURCES)) -> Tuple[CollectionStatus, int]:
    """Collection status and 0-100 data-quality score for ``present`` sources."""
    score = round(present / total * 100) if total else 0
    if present >= COMPLETE_THRESHOLD:
        return CollectionStatus.COMPLETE, score
    if present >= PARTIAL_THRESHOLD:
        return CollectionStatus.PARTIAL, score
    return CollectionStatus.FAILED, score


@dataclass(frozen=True)
class CollectionMetadata:
    campaign_id: str
    collection_timestamp: str
    data_sources: List[str] = field(default_factory=list)
    collection_status: CollectionStatus = CollectionStatus.FAILED
    data_quality_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "collection_timestamp": self.collection_timestamp,
            "data_sources": list(self.data_sources),
            "collection_status": self.collection_status.value,
            "data_quality_score": self.data_quality_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollectionMetadata":
        return cls(
            campaign_id=data["campaign_id"],
            collection_timestamp=data["collection_timestamp"],
            data_sources=list(data.get("data_sources", [])),
            collection_status=CollectionStatus(data.get("collection_status", "failed")),
            data_quality_score=data.get("data_quality_score", 0),
        )


@dataclass(frozen=True)
class DataCollectionContext:
    """Research artifacts threaded unchanged through every later stage."""

    stage: ClassVar[Stage] = Stage.DATA_COLLECTION

    collection_metadata: CollectionMetadata
    destination_analysis: Optional[Dict[str, Any]] = None
    market_intelligence: Optional[Dict[str, Any]] = None
    emotional_profile: Optional[Dict[str, Any]] = None
    consolidated_insights: Optional[Dict[str, Any]] = None
    travel_intelligence: Optional[Dict[str, Any]] = None
    trend_analysis: Optional[Dict[str, Any]] = None

    @property
    def campaign_id(self) -> str:
        return self.collection_metadata.campaign_id

    @property
    def collection_status(self) -> CollectionStatus:
        return self.collection_metadata.collection_status

    def sources(self) -> Dict[str, Optional[Dict[str, Any]]]:
        """Source documents keyed by context field name."""
        return {src.field_name: getattr(self, src.field_name) for src in DATA_SOURCES}

    def has(self, field_name: str) -> bool:
        return getattr(self, field_name, None) is not None

    @classmethod
    def from_sources(
        cls,
        campaign_id: str,
        documents: Mapping[str, Optional[Dict[str, Any]]],
        collected_at: Optional[str] = None,
    ) -> "DataCollectionContext":
        """Build from source documents keyed by field name; absent ones may be omitted."""
        present = [
            src for src in DATA_SOURCES if documents.get(src.field_name) is not None
        ]
        status, score = classify_collection(len(present))
        metadata = CollectionMetadata(
            campaign_id=campaign_id,
            collection_timestamp=collected_at or utc_now().isoformat(),
            data_sources=[src.artifact for src in present],
            collection_status=status,
            data_quality_score=score,
        )
        return cls(
            collection_metadata=metadata,
            **{src.field_name: documents.get(src.field_name) for src in DATA_SOURCES},
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.sources())
        data["collection_metadata"] = self.collection_metadata.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataCollectionContext":
        return cls(
            collection_metadata=CollectionMetadata.from_dict(data["collection_metadata"]),
            **{src.field_name: data.get(src.field_name) for src in DATA_SOURCES},
        )

"""Per-run provenance log: where every context field came from.

One ``ProvenanceLog`` is created per pipeline run (per campaign) and passed
explicitly to the builder and checker, so concurrent campaigns never share
telemetry.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from campaign_pipeline.observability.logging import ContextLogger, get_logger

LOW_CONFIDENCE_THRESHOLD = 70
PREVIEW_LENGTH = 80


class SourceType(str, Enum):
    """Origin of a field value."""
    RAW_OUTPUT = "raw_output"
    UPSTREAM_ARTIFACT = "upstream_artifact"
    PRIOR_CONTEXT = "prior_context"
    STRUCTURAL_DEFAULT = "structural_default"
    GENERATED_PLACEHOLDER = "generated_placeholder"
    COERCED = "coerced"


class FieldStatus(str, Enum):
    VALID = "valid"
    DEFAULTED = "defaulted"
    MISSING = "missing"
    ERROR = "error"


# Confidence assigned when the caller does not give one
DEFAULT_CONFIDENCE = {
    SourceType.RAW_OUTPUT: 90,
    SourceType.UPSTREAM_ARTIFACT: 95,
    SourceType.PRIOR_CONTEXT: 95,
    SourceType.STRUCTURAL_DEFAULT: 60,
    SourceType.GENERATED_PLACEHOLDER: 30,
    SourceType.COERCED: 20,
}


def preview(value: Any) -> str:
    text = "" if value is None else str(value)
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH - 3] + "..."
    return text


@dataclass(frozen=True)
class FieldSource:
    """Where one field value came from."""

    field_path: str
    source_type: SourceType
    source_location: str
    confidence: int
    value_preview: str
    status: FieldStatus
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_path": self.field_path,
            "source_type": self.source_type.value,
            "source_location": self.source_location,
            "confidence": self.confidence,
            "value_preview": self.value_preview,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldSource":
        return cls(
            field_path=data["field_path"],
            source_type=SourceType(data["source_type"]),
            source_location=data["source_location"],
            confidence=int(data["confidence"]),
            value_preview=data.get("value_preview", ""),
            status=FieldStatus(data.get("status", FieldStatus.VALID.value)),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass(frozen=True)
class ProvenanceReport:
    campaign_id: str
    total_fields: int
    source_breakdown: Dict[str, int]
    confidence_average: int
    low_confidence_fields: List[str]
    defaulted_fields: List[str]
    findings: List[Dict[str, Any]]
    sources: List[FieldSource]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "total_fields": self.total_fields,
            "source_breakdown": dict(self.source_breakdown),
            "confidence_average": self.confidence_average,
            "low_confidence_fields": list(self.low_confidence_fields),
            "defaulted_fields": list(self.defaulted_fields),
            "findings": list(self.findings),
            "sources": [s.to_dict() for s in self.sources],
        }


class ProvenanceLog:
    """Collects field sources and checker findings for one campaign run."""

    def __init__(self, campaign_id: str, logger: Optional[ContextLogger] = None):
        self.campaign_id = campaign_id
        self._logger = (logger or get_logger(__name__)).with_context(campaign_id=campaign_id)
        self._sources: List[FieldSource] = []
        self._findings: List[Dict[str, Any]] = []

    @classmethod
    def from_report(
        cls,
        data: Dict[str, Any],
        logger: Optional[ContextLogger] = None,
    ) -> "ProvenanceLog":
        """Rebuild a log from a persisted ``ProvenanceReport.to_dict()``."""
        log = cls(data["campaign_id"], logger)
        log._sources = [FieldSource.from_dict(s) for s in data.get("sources", [])]
        log._findings = [dict(f) for f in data.get("findings", [])]
        return log

    @property
    def sources(self) -> List[FieldSource]:
        return list(self._sources)

    @property
    def findings(self) -> List[Dict[str, Any]]:
        return list(self._findings)

    def extend(self, other: "ProvenanceLog") -> None:
        """Append the entries of another run's log."""
        self._sources.extend(other.sources)
        self._findings.extend(other.findings)

    def record_source(
        self,
        field_path: str,
        source_type: SourceType,
        source_location: str,
        value: Any = None,
        confidence: Optional[int] = None,
        status: FieldStatus = FieldStatus.VALID,
    ) -> FieldSource:
        """Record the origin of a field value."""
        source_type = SourceType(source_type)
        entry = FieldSource(
            field_path=field_path,
            source_type=source_type,
            source_location=source_location,
            confidence=DEFAULT_CONFIDENCE[source_type] if confidence is None else confidence,
            value_preview=preview(value),
            status=FieldStatus(status),
        )
        self._sources.append(entry)

        if source_type in (SourceType.STRUCTURAL_DEFAULT, SourceType.GENERATED_PLACEHOLDER):
            self._logger.info(
                f"{field_path} filled by {source_type.value}: {entry.value_preview!r}"
            )
        elif entry.status in (FieldStatus.MISSING, FieldStatus.ERROR):
            self._logger.warning(
                f"{field_path} from {source_location} is {entry.status.value}"
            )
        return entry

    def record_finding(
        self,
        stage: str,
        rule: str,
        path: str,
        message: str,
        severity: str,
    ) -> None:
        """Record a checker finding against a field path."""
        self._findings.append({
            "stage": getattr(stage, "value", stage),
            "rule": rule,
            "path": path,
            "message": message,
            "severity": severity,
        })

    def report(self) -> ProvenanceReport:
        breakdown: Dict[str, int] = {t.value: 0 for t in SourceType}
        for entry in self._sources:
            breakdown[entry.source_type.value] += 1

        confidence_average = (
            round(sum(e.confidence for e in self._sources) / len(self._sources))
            if self._sources else 0
        )
        return ProvenanceReport(
            campaign_id=self.campaign_id,
            total_fields=len(self._sources),
            source_breakdown=breakdown,
            confidence_average=confidence_average,
            low_confidence_fields=[
                e.field_path for e in self._sources
                if e.confidence < LOW_CONFIDENCE_THRESHOLD
            ],
            defaulted_fields=[
                e.field_path for e in self._sources
                if e.source_type in (
                    SourceType.STRUCTURAL_DEFAULT,
                    SourceType.GENERATED_PLACEHOLDER,
                    SourceType.COERCED,
                )
            ],
            findings=list(self._findings),
            sources=list(self._sources),
        )

"""Tests for the per-run provenance log."""

from campaign_pipeline.domain.stages import Stage
from campaign_pipeline.observability import FieldStatus, ProvenanceLog, SourceType
from campaign_pipeline.observability.provenance import PREVIEW_LENGTH, preview


class TestProvenanceLog:
    """Tests for ProvenanceLog."""

    def test_default_confidence_by_source(self):
        """Confidence defaults depend on the source."""
        log = ProvenanceLog("camp_001")
        raw = log.record_source("pricing_analysis.best_price", SourceType.RAW_OUTPUT, "raw.pricing_analysis", 12500)
        placeholder = log.record_source(
            "date_analysis.optimal_dates", SourceType.GENERATED_PLACEHOLDER, "builder placeholder",
            status=FieldStatus.DEFAULTED,
        )
        assert raw.confidence == 90
        assert raw.value_preview == "12500"
        assert placeholder.confidence == 30

    def test_explicit_confidence(self):
        """An explicit confidence overrides the default."""
        log = ProvenanceLog("camp_001")
        entry = log.record_source("x", SourceType.UPSTREAM_ARTIFACT, "camp_001/data/x", confidence=0)
        assert entry.confidence == 0

    def test_report(self):
        """report() groups fields by source."""
        log = ProvenanceLog("camp_001")
        log.record_source("a", SourceType.RAW_OUTPUT, "raw.a", 1)
        log.record_source("b", SourceType.STRUCTURAL_DEFAULT, "builder default", "600px")
        log.record_source("c", SourceType.COERCED, "raw.c", 0.0)
        log.record_finding("content", "short_subject", "generated_content.subject", "too short", "soft")

        report = log.report()

        assert report.campaign_id == "camp_001"
        assert report.total_fields == 3
        assert report.source_breakdown["raw_output"] == 1
        assert report.source_breakdown["prior_context"] == 0
        assert report.confidence_average == round((90 + 60 + 20) / 3)
        assert report.low_confidence_fields == ["b", "c"]
        assert report.defaulted_fields == ["b", "c"]
        assert report.findings[0]["rule"] == "short_subject"

    def test_empty_report(self):
        """An empty log gives an empty report."""
        report = ProvenanceLog("camp_001").report()
        assert report.total_fields == 0
        assert report.confidence_average == 0

    def test_report_to_dict(self):
        """to_dict() is JSON serializable."""
        log = ProvenanceLog("camp_001")
        log.record_source("a", SourceType.PRIOR_CONTEXT, "content-context")
        data = log.report().to_dict()
        assert data["sources"][0]["source_type"] == "prior_context"
        assert data["sources"][0]["status"] == "valid"

    def test_logs_are_isolated(self):
        """Separate logs do not share entries."""
        first = ProvenanceLog("camp_001")
        second = ProvenanceLog("camp_002")
        first.record_source("a", SourceType.RAW_OUTPUT, "raw.a")
        assert second.sources == []

    def test_finding_stage_enum_is_flattened(self):
        """Stage enums in findings are stored as strings."""
        log = ProvenanceLog("camp_001")
        log.record_finding(Stage.DESIGN, "rule", "path", "message", "critical")
        assert log.findings[0]["stage"] == "design"


class TestPreview:
    """Tests for value previews."""

    def test_long_values_truncated(self):
        """Long values are truncated in previews."""
        text = preview("x" * 200)
        assert len(text) == PREVIEW_LENGTH
        assert text.endswith("...")

    def test_none(self):
        """None previews as an empty string."""
        assert preview(None) == ""

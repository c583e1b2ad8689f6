"""Tests for the continuity and preservation auditor."""

import pytest

from campaign_pipeline.domain.continuity import (
    ContinuityAuditor,
    asset_utilization,
    brand_preservation,
    content_preservation,
    design_preservation,
)
from campaign_pipeline.domain.continuity.auditor import (
    round_half_up,
    score_content_to_design,
    score_data_to_content,
    score_design_to_quality,
    score_quality_to_delivery,
)
from campaign_pipeline.domain.stages import Stage
from campaign_pipeline.domain.workflow import WorkflowStateMachine
from campaign_pipeline.settings import Settings


@pytest.fixture
def auditor(settings):
    return ContinuityAuditor(settings)


@pytest.fixture
def workflow(gateway, clock, campaign_id, data_collection):
    """Build a workflow state by advancing through the given contexts."""
    machine = WorkflowStateMachine(gateway, clock)

    def advance(*contexts):
        state = machine.create(campaign_id, data_collection)
        for context in contexts:
            state = machine.advance(state, context.stage, context)
        return state

    return advance


@pytest.fixture
def seven_image_design(builder, raw_design, content_context):
    """Seven collected images, one used."""
    raw_design["asset_manifest"]["images"] = [
        {"id": f"img_{i}", "path": f"assets/{i}.jpg", "alt_text": f"Image {i}"} for i in range(7)
    ]
    raw_design["asset_manifest"]["icons"] = []
    raw_design["asset_utilization"]["used_assets"] = ["img_0"]
    return builder.build(Stage.DESIGN, raw_design, content_context)


class TestRounding:
    """Tests for round_half_up."""

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (14.2857, 14), (82.6, 83), (-2.5, -3), (0.0, 0)])
    def test_round_half_up(self, value, expected):
        """Scores round half up to two places."""
        assert round_half_up(value) == expected


class TestTransitionScores:
    """Tests for the per-transition scorers."""

    def test_clean_transitions(self, data_collection, content_context, design_context, quality_context, delivery_context):
        """Clean transitions score 100."""
        assert score_data_to_content(data_collection, content_context) == 100
        assert score_content_to_design(content_context, design_context) == 100
        assert score_design_to_quality(design_context, quality_context) == 100
        assert score_quality_to_delivery(quality_context, delivery_context) == 100

    def test_data_to_content_penalties(self, builder, raw_content, data_collection):
        """Data-to-content losses lower the score."""
        del raw_content["date_analysis"]["optimal_dates"]
        raw_content["pricing_analysis"].update(best_price=0, min_price=0, max_price=0, average_price=0)
        content = builder.build(Stage.CONTENT, raw_content, data_collection)
        assert score_data_to_content(data_collection, content) == 65

    def test_upstream_absence_is_not_penalized(self, builder, raw_content, empty_data_collection):
        """Missing upstream sources do not lower the score."""
        del raw_content["date_analysis"]["optimal_dates"]
        content = builder.build(Stage.CONTENT, raw_content, empty_data_collection)
        assert score_data_to_content(empty_data_collection, content) == 100

    def test_content_to_design_losses(self, builder, raw_design, content_context):
        """Content lost in design lowers the score."""
        raw_design["content_integration"] = {}
        design = builder.build(Stage.DESIGN, raw_design, content_context)
        assert score_content_to_design(content_context, design) == 30

    def test_design_to_quality_without_validation(self, builder, raw_quality, design_context):
        """Unvalidated design lowers the quality transition."""
        del raw_quality["design_validation"]
        del raw_quality["asset_validation"]
        quality = builder.build(Stage.QUALITY, raw_quality, design_context)
        assert score_design_to_quality(design_context, quality) == 45

    def test_quality_to_delivery_without_preservation(self, builder, raw_delivery, quality_context):
        """Unpreserved quality lowers the delivery transition."""
        del raw_delivery["quality_preservation"]
        delivery = builder.build(Stage.DELIVERY, raw_delivery, quality_context)
        assert score_quality_to_delivery(quality_context, delivery) == 70


class TestPreservationScores:
    """Tests for the preservation scorers."""

    def test_clean_preservation(self, content_context, design_context, quality_context):
        """Fully preserved contexts score 100."""
        assert content_preservation(content_context, design_context) == 100
        assert design_preservation(quality_context) == 100
        assert asset_utilization(design_context) == 100
        assert brand_preservation(design_context) == 100

    def test_one_of_seven_assets_used(self, seven_image_design):
        """Asset utilization is the used share of assets."""
        assert asset_utilization(seven_image_design) == 14

    def test_no_assets_is_full_utilization(self, builder, raw_design, content_context):
        """No assets counts as full utilization."""
        raw_design["asset_manifest"] = {"images": [], "icons": []}
        raw_design["asset_utilization"] = {"used_assets": ["ghost"]}
        design = builder.build(Stage.DESIGN, raw_design, content_context)
        assert asset_utilization(design) == 100

    def test_used_count_is_capped(self, builder, raw_design, content_context):
        """Used assets never exceed available assets."""
        raw_design["asset_utilization"]["used_assets"] = ["a", "b", "c", "d", "e"]
        design = builder.build(Stage.DESIGN, raw_design, content_context)
        assert asset_utilization(design) == 100

    def test_missing_brand_elements(self, builder, raw_design, content_context):
        """Missing brand elements lower brand consistency."""
        raw_design["brand_application"] = {"primary_color": "#FF6B00", "secondary_color": "#1A1A2E"}
        design = builder.build(Stage.DESIGN, raw_design, content_context)
        assert brand_preservation(design) == 50

    def test_content_not_integrated(self, builder, raw_design, content_context):
        """Unintegrated content lowers content integration."""
        raw_design["content_integration"] = {"subject": "Barcelona from 12 500 RUB this autumn"}
        design = builder.build(Stage.DESIGN, raw_design, content_context)
        assert content_preservation(content_context, design) == 0

    def test_partial_design_validation(self, builder, raw_quality, design_context):
        """Partial design validation lowers design preservation."""
        raw_quality["design_validation"] = {"layout_consistency": True}
        quality = builder.build(Stage.QUALITY, raw_quality, design_context)
        assert design_preservation(quality) == 65


class TestAudit:
    """Tests for full continuity reports."""

    def test_full_chain_is_compliant(
        self, auditor, workflow, content_context, design_context, quality_context, delivery_context
    ):
        """A clean full chain is compliant."""
        state = workflow(content_context, design_context, quality_context, delivery_context)

        report = auditor.audit(state)

        assert report.continuity_score == 100
        assert report.overall_transition_quality == 100
        assert report.preservation.overall == 100
        assert report.compliant
        assert report.issues == []
        assert report.triggered == []
        assert set(report.transition_quality) == {
            "data_collection_to_content",
            "content_to_design",
            "design_to_quality",
            "quality_to_delivery",
        }

    def test_unevaluated_entries_are_none(self, auditor, workflow, content_context):
        """Stages not yet reached are reported as None."""
        report = auditor.audit(workflow(content_context))

        assert report.transition_quality["data_collection_to_content"] == 100
        assert report.transition_quality["content_to_design"] is None
        assert report.preservation.asset is None
        assert report.preservation.overall == 100
        assert [t.trigger_type for t in report.rollback_triggers] == ["overall_continuity"]

    def test_initial_state_audits_cleanly(self, auditor, workflow):
        """A freshly created state audits without findings."""
        report = auditor.audit(workflow())
        assert report.continuity_score == 100
        assert report.rollback_triggers[0].rollback_to is None

    def test_low_asset_utilization_triggers_design_rollback(
        self, auditor, workflow, content_context, seven_image_design
    ):
        """Low asset utilization recommends a design rollback."""
        state = workflow(content_context, seven_image_design)

        report = auditor.audit(state)

        assert report.preservation.asset == 14
        assert report.preservation.overall == 71
        assert report.continuity_score == 83
        assert not report.compliant
        triggered = {t.trigger_type: t for t in report.triggered}
        assert triggered["asset_utilization"].rollback_to is Stage.DESIGN
        assert triggered["asset_utilization"].current_value == 14
        assert triggered["overall_continuity"].rollback_to is Stage.CONTENT
        assert [i.issue_type for i in report.issues] == ["specification_drift"]

    def test_lost_content_triggers_content_rollback(
        self, auditor, workflow, builder, raw_design, content_context
    ):
        """Lost content recommends a content rollback."""
        raw_design["content_integration"] = {}
        design = builder.build(Stage.DESIGN, raw_design, content_context)

        report = auditor.audit(workflow(content_context, design))

        assert report.transition_quality["content_to_design"] == 30
        assert report.overall_transition_quality == 65
        assert report.preservation.content == 0
        assert report.preservation.overall == 67
        assert report.continuity_score == 66
        assert len(report.critical_issues) == 2
        triggered = {t.trigger_type: t for t in report.triggered}
        assert triggered["content_preservation"].rollback_to is Stage.CONTENT
        assert "Rollback to content stage" in triggered["content_preservation"].action_required

    def test_thresholds_come_from_settings(self, workflow, content_context, seven_image_design):
        """Thresholds are read from settings."""
        lenient = ContinuityAuditor(Settings(
            continuity_threshold=50,
            preservation_threshold=50,
            asset_utilization_threshold=10,
        ))
        report = lenient.audit(workflow(content_context, seven_image_design))
        assert report.triggered == []

    def test_audit_does_not_modify_state(self, auditor, workflow, content_context, seven_image_design):
        """audit() leaves the workflow state untouched."""
        state = workflow(content_context, seven_image_design)
        before = state.to_dict()
        auditor.audit(state)
        assert state.to_dict() == before

    def test_report_to_dict(self, auditor, workflow, content_context, seven_image_design, campaign_id):
        """to_dict() is JSON serializable."""
        data = auditor.audit(workflow(content_context, seven_image_design)).to_dict()

        assert data["campaign_id"] == campaign_id
        assert data["transition_quality"]["overall_transition_quality"] == 100
        assert data["quality_preservation"]["asset_preservation_score"] == 14
        assert data["quality_preservation"]["design_preservation_score"] is None
        triggers = {t["trigger_type"]: t for t in data["rollback_triggers"]}
        assert triggers["asset_utilization"]["rollback_to"] == "design"

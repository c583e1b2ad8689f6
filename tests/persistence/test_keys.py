"""Tests for document key construction."""

import pytest

from campaign_pipeline.domain.stages import Stage
from campaign_pipeline.persistence import (
    artifact_key,
    context_artifact_name,
    context_key,
    handoff_key,
    provenance_report_key,
    workflow_state_key,
)


class TestKeys:
    """Tests for key helpers."""

    def test_workflow_state_key(self):
        """workflow_state_key() is scoped to the campaign."""
        assert workflow_state_key("camp_001") == "camp_001/workflow-state"

    def test_context_key(self):
        """context_key() names the stage context."""
        assert context_key("camp_001", Stage.DATA_COLLECTION) == "camp_001/data_collection-context"
        assert context_key("camp_001", "quality") == "camp_001/quality-context"

    def test_context_artifact_name(self):
        """context_artifact_name() gives the stage artifact name."""
        assert context_artifact_name(Stage.DESIGN) == "design-context"

    def test_handoff_key(self):
        """handoff_key() names both stages."""
        assert handoff_key("camp_001", Stage.CONTENT, Stage.DESIGN) == "camp_001/handoffs/content-to-design"

    def test_artifact_key(self):
        """artifact_key() lives under data/."""
        assert artifact_key("camp_001", "emotional-profile") == "camp_001/data/emotional-profile"

    def test_provenance_report_key(self):
        """provenance_report_key() is per campaign."""
        assert provenance_report_key("camp_001") == "camp_001/data-source-report"

    @pytest.mark.parametrize("campaign_id", ["", "a/b", ".", ".."])
    def test_invalid_campaign_ids(self, campaign_id):
        """Campaign ids with separators or blanks are rejected."""
        with pytest.raises(ValueError):
            workflow_state_key(campaign_id)

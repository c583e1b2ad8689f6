"""Tests for stage progression helpers."""

import pytest

from campaign_pipeline.domain.stages import (
    EXPECTED_PROGRESSION,
    Stage,
    is_valid_progression,
    next_stage,
    previous_stage,
    stage_index,
    transition_name,
)


class TestProgression:
    """Tests for the fixed stage order."""

    def test_expected_order(self):
        """Progression runs data collection through delivery."""
        assert [s.value for s in EXPECTED_PROGRESSION] == [
            "data_collection", "content", "design", "quality", "delivery",
        ]

    def test_stage_index(self):
        """stage_index() follows pipeline order."""
        assert stage_index(Stage.DATA_COLLECTION) == 0
        assert stage_index("delivery") == 4

    def test_next_stage(self):
        """Each stage has exactly one successor, the last has none."""
        assert next_stage(Stage.DATA_COLLECTION) is Stage.CONTENT
        assert next_stage(Stage.QUALITY) is Stage.DELIVERY
        assert next_stage(Stage.DELIVERY) is None

    def test_previous_stage(self):
        """previous_stage() returns the predecessor or None."""
        assert previous_stage(Stage.CONTENT) is Stage.DATA_COLLECTION
        assert previous_stage(Stage.DATA_COLLECTION) is None

    def test_unknown_stage_rejected(self):
        """Unknown stage names raise ValueError."""
        with pytest.raises(ValueError):
            next_stage("publishing")

    def test_transition_name(self):
        """transition_name() joins the two stages."""
        assert transition_name(Stage.CONTENT, Stage.DESIGN) == "content_to_design"


class TestIsValidProgression:
    """Tests for prefix checks on completed stages."""

    @pytest.mark.parametrize("length", range(len(EXPECTED_PROGRESSION) + 1))
    def test_every_prefix_is_valid(self, length):
        """Every prefix of the pipeline order is valid."""
        assert is_valid_progression(EXPECTED_PROGRESSION[:length])

    def test_skipped_stage_is_invalid(self):
        """Skipping a stage is invalid."""
        assert not is_valid_progression([Stage.DATA_COLLECTION, Stage.DESIGN])

    def test_reordered_stages_are_invalid(self):
        """Reordered stages are invalid."""
        assert not is_valid_progression(["content", "data_collection"])

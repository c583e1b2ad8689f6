"""Pipeline stages and their fixed progression."""

from enum import Enum
from typing import Optional, Tuple


class Stage(str, Enum):
    """A step in the campaign pipeline."""
    DATA_COLLECTION = "data_collection"
    CONTENT = "content"
    DESIGN = "design"
    QUALITY = "quality"
    DELIVERY = "delivery"


EXPECTED_PROGRESSION: Tuple[Stage, ...] = (
    Stage.DATA_COLLECTION,
    Stage.CONTENT,
    Stage.DESIGN,
    Stage.QUALITY,
    Stage.DELIVERY,
)


def stage_index(stage: Stage) -> int:
    """Position of a stage in the progression."""
    return EXPECTED_PROGRESSION.index(Stage(stage))


def next_stage(stage: Stage) -> Optional[Stage]:
    """Immediate successor of a stage, or None for the last stage."""
    index = stage_index(stage)
    if index + 1 < len(EXPECTED_PROGRESSION):
        return EXPECTED_PROGRESSION[index + 1]
    return None


def previous_stage(stage: Stage) -> Optional[Stage]:
    """Immediate predecessor of a stage, or None for the first stage."""
    index = stage_index(stage)
    if index > 0:
        return EXPECTED_PROGRESSION[index - 1]
    return None


def transition_name(source: Stage, target: Stage) -> str:
    """Name used for a transition in reports, e.g. ``content_to_design``."""
    return f"{Stage(source).value}_to_{Stage(target).value}"


def is_valid_progression(stages) -> bool:
    """True if ``stages`` is exactly a prefix of the expected progression."""
    stages = [Stage(s) for s in stages]
    return stages == list(EXPECTED_PROGRESSION[:len(stages)])

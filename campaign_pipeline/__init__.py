"""Campaign context accumulation and handoff pipeline."""

from campaign_pipeline.domain.errors import (
    BuilderInputError,
    ConsistencyError,
    OrderingError,
    PersistenceError,
    PipelineError,
    StructuralValidationError,
)
from campaign_pipeline.domain.stages import EXPECTED_PROGRESSION, Stage
from campaign_pipeline.pipeline import CampaignPipeline, StageRun

__version__ = "0.1.0"

__all__ = [
    "CampaignPipeline",
    "StageRun",
    "Stage",
    "EXPECTED_PROGRESSION",
    "PipelineError",
    "BuilderInputError",
    "ConsistencyError",
    "OrderingError",
    "PersistenceError",
    "StructuralValidationError",
]

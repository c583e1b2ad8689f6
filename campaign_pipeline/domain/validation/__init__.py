"""Consistency & dependency checking of built stage contexts."""

from campaign_pipeline.domain.validation.consistency_checker import (
    PENALTY_TABLE,
    REQUIRED_ARTIFACTS,
    ConsistencyChecker,
)
from campaign_pipeline.domain.validation.validation_result import (
    CRITICAL,
    SOFT,
    Finding,
    ValidationResult,
)

__all__ = [
    "PENALTY_TABLE",
    "REQUIRED_ARTIFACTS",
    "ConsistencyChecker",
    "CRITICAL",
    "SOFT",
    "Finding",
    "ValidationResult",
]

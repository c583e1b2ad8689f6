"""Continuity and preservation auditing of workflow states."""

from campaign_pipeline.domain.continuity.auditor import (
    ContinuityAuditor,
    asset_utilization,
    brand_preservation,
    content_preservation,
    design_preservation,
)
from campaign_pipeline.domain.continuity.report import (
    ContinuityIssue,
    ContinuityReport,
    PreservationScores,
    RollbackTrigger,
)

__all__ = [
    "ContinuityAuditor",
    "asset_utilization",
    "brand_preservation",
    "content_preservation",
    "design_preservation",
    "ContinuityIssue",
    "ContinuityReport",
    "PreservationScores",
    "RollbackTrigger",
]

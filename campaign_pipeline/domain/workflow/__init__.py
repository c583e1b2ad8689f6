"""Workflow state, the state machine that advances it, and per-campaign locks."""

from campaign_pipeline.domain.workflow.locks import CampaignLocks
from campaign_pipeline.domain.workflow.state_machine import WorkflowStateMachine
from campaign_pipeline.domain.workflow.workflow_state import (
    AccumulationCheck,
    StageTransition,
    WorkflowMetadata,
    WorkflowState,
)

__all__ = [
    "AccumulationCheck",
    "CampaignLocks",
    "StageTransition",
    "WorkflowMetadata",
    "WorkflowState",
    "WorkflowStateMachine",
]

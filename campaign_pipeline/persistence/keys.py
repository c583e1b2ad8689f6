"""Well-known document keys, namespaced by campaign id."""

from campaign_pipeline.domain.stages import Stage

WORKFLOW_STATE = "workflow-state"
DATA_SOURCE_REPORT = "data-source-report"


def _check_campaign_id(campaign_id: str) -> str:
    if not campaign_id or "/" in campaign_id or campaign_id in (".", ".."):
        raise ValueError(f"Invalid campaign id: {campaign_id!r}")
    return campaign_id


def workflow_state_key(campaign_id: str) -> str:
    return f"{_check_campaign_id(campaign_id)}/{WORKFLOW_STATE}"


def context_artifact_name(stage: Stage) -> str:
    """Artifact name of a stage's persisted context, e.g. ``content-context``."""
    return f"{Stage(stage).value}-context"


def context_key(campaign_id: str, stage: Stage) -> str:
    return f"{_check_campaign_id(campaign_id)}/{context_artifact_name(stage)}"


def handoff_key(campaign_id: str, source: Stage, target: Stage) -> str:
    return (
        f"{_check_campaign_id(campaign_id)}/handoffs/"
        f"{Stage(source).value}-to-{Stage(target).value}"
    )


def artifact_key(campaign_id: str, artifact: str) -> str:
    """Key of an upstream data artifact such as ``destination-analysis``."""
    return f"{_check_campaign_id(campaign_id)}/data/{artifact}"


def provenance_report_key(campaign_id: str) -> str:
    return f"{_check_campaign_id(campaign_id)}/{DATA_SOURCE_REPORT}"

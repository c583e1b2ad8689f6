"""Continuity & preservation auditor.

Scores how well information survives each stage transition and how much
of the high-value content (pricing, dates, destination, assets, brand)
is preserved downstream. Read-only: the audited state is never changed.

    continuity = round(0.4 * avg(transition quality) + 0.6 * avg(preservation))

Averages cover evaluated entries only; with nothing evaluated the average
is 100.
"""

import logging
from typing import Iterable, List, Optional

from campaign_pipeline.domain.contexts import (
    ContentContext,
    DataCollectionContext,
    DeliveryContext,
    DesignContext,
    QualityContext,
)
from campaign_pipeline.domain.continuity.report import (
    ContinuityIssue,
    ContinuityReport,
    PreservationScores,
    RollbackTrigger,
)
from campaign_pipeline.domain.stages import Stage, previous_stage, transition_name
from campaign_pipeline.domain.workflow.workflow_state import WorkflowState
from campaign_pipeline.settings import Settings, get_settings

logger = logging.getLogger(__name__)

TRANSITION_WEIGHT = 0.4
PRESERVATION_WEIGHT = 0.6

DATA_TO_CONTENT = transition_name(Stage.DATA_COLLECTION, Stage.CONTENT)
CONTENT_TO_DESIGN = transition_name(Stage.CONTENT, Stage.DESIGN)
DESIGN_TO_QUALITY = transition_name(Stage.DESIGN, Stage.QUALITY)
QUALITY_TO_DELIVERY = transition_name(Stage.QUALITY, Stage.DELIVERY)

# Issue thresholds
CONTENT_TO_DESIGN_MINIMUM = 80
CONTENT_PRESERVATION_MINIMUM = 90
DESIGN_PRESERVATION_MINIMUM = 80
ASSET_UTILIZATION_MINIMUM = 80
BRAND_PRESERVATION_MINIMUM = 70

DESIGN_VALIDATION_PENALTIES = (
    ("layout_consistency", 20),
    ("visual_hierarchy", 20),
    ("typography_consistency", 15),
)


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _average(scores: Iterable[Optional[int]]) -> int:
    evaluated = [s for s in scores if s is not None]
    if not evaluated:
        return 100
    return round_half_up(sum(evaluated) / len(evaluated))


def _clamp(score: int) -> int:
    return max(0, min(100, score))


# =============================================================================
# Transition quality
# =============================================================================

def score_data_to_content(dcc: DataCollectionContext, content: ContentContext) -> int:
    score = 100
    if dcc.destination_analysis is not None and not content.destination:
        score -= 20
    if (dcc.travel_intelligence is not None or dcc.trend_analysis is not None) and \
            content.date_analysis.dates_are_placeholders:
        score -= 15
    if dcc.market_intelligence is not None and content.pricing_analysis.all_zero:
        score -= 20
    return _clamp(score)


def score_content_to_design(content: ContentContext, design: DesignContext) -> int:
    integration = design.content_integration
    score = 100
    if content.generated_content.subject and not integration.has("subject"):
        score -= 25
    if not content.pricing_analysis.all_zero and not integration.has("pricing"):
        score -= 25
    if content.date_analysis.optimal_dates and not integration.has("travel_dates"):
        score -= 20
    return _clamp(score)


def score_design_to_quality(design: DesignContext, quality: QualityContext) -> int:
    score = 100
    if not quality.design_validation:
        score -= 30
    if design.asset_manifest.total_assets > 0 and not quality.asset_validation:
        score -= 25
    return _clamp(score)


def score_quality_to_delivery(quality: QualityContext, delivery: DeliveryContext) -> int:
    score = 100
    if not delivery.quality_preservation:
        score -= 30
    return _clamp(score)


# =============================================================================
# Preservation
# =============================================================================

def content_preservation(content: ContentContext, design: DesignContext) -> int:
    """-25 for each content element present upstream but not integrated."""
    present = {
        "pricing": not content.pricing_analysis.all_zero,
        "travel_dates": bool(content.date_analysis.optimal_dates),
        "destination": bool(content.destination),
        "routes": content.pricing_analysis.route is not None,
    }
    score = 100
    for element, is_present in present.items():
        if is_present and not design.content_integration.has(element):
            score -= 25
    return _clamp(score)


def design_preservation(quality: QualityContext) -> int:
    validation = quality.design_validation or {}
    score = 100
    for element, penalty in DESIGN_VALIDATION_PENALTIES:
        if not validation.get(element):
            score -= penalty
    return _clamp(score)


def asset_utilization(design: DesignContext) -> int:
    """Share of collected assets (images and icons) referenced downstream."""
    total = design.asset_manifest.total_assets
    if total == 0:
        return 100
    used = min(len(set(design.asset_utilization.used_assets)), total)
    return round_half_up(used / total * 100)


def brand_preservation(design: DesignContext) -> int:
    return _clamp(100 - 25 * len(design.brand_application.missing_elements()))


class ContinuityAuditor:
    """Builds continuity reports from workflow states.

    Usage:
        auditor = ContinuityAuditor()
        report = auditor.audit(state)
        for trigger in report.triggered:
            print(trigger.action_required)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def audit(self, state: WorkflowState) -> ContinuityReport:
        dcc = state.data_collection_context
        content = state.content_context
        design = state.design_context
        quality = state.quality_context
        delivery = state.delivery_context

        transitions = {
            DATA_TO_CONTENT: score_data_to_content(dcc, content) if dcc and content else None,
            CONTENT_TO_DESIGN: score_content_to_design(content, design) if content and design else None,
            DESIGN_TO_QUALITY: score_design_to_quality(design, quality) if design and quality else None,
            QUALITY_TO_DELIVERY: score_quality_to_delivery(quality, delivery) if quality and delivery else None,
        }
        overall_transition = _average(transitions.values())

        content_score = content_preservation(content, design) if content and design else None
        design_score = design_preservation(quality) if design and quality else None
        asset_score = asset_utilization(design) if design else None
        brand_score = brand_preservation(design) if design else None
        preservation = PreservationScores(
            content=content_score,
            design=design_score,
            asset=asset_score,
            brand=brand_score,
            overall=_average([content_score, design_score, asset_score, brand_score]),
        )

        continuity = round_half_up(
            overall_transition * TRANSITION_WEIGHT + preservation.overall * PRESERVATION_WEIGHT
        )
        issues = self._issues(transitions, preservation)
        triggers = self._triggers(state, continuity, preservation)
        compliant = (
            continuity >= self.settings.continuity_threshold
            and preservation.overall >= self.settings.preservation_threshold
            and overall_transition >= self.settings.transition_quality_threshold
        )

        report = ContinuityReport(
            campaign_id=state.campaign_id,
            continuity_score=continuity,
            transition_quality=transitions,
            overall_transition_quality=overall_transition,
            preservation=preservation,
            issues=issues,
            rollback_triggers=triggers,
            compliant=compliant,
        )
        logger.info(
            f"Continuity {continuity} (transitions {overall_transition}, "
            f"preservation {preservation.overall}), {len(report.triggered)} triggers fired",
            extra={"campaign_id": state.campaign_id, "stage": state.current_stage.value},
        )
        return report

    def _issues(self, transitions, preservation: PreservationScores) -> List[ContinuityIssue]:
        issues = []
        content_to_design = transitions[CONTENT_TO_DESIGN]
        if content_to_design is not None and content_to_design < CONTENT_TO_DESIGN_MINIMUM:
            issues.append(ContinuityIssue(
                transition=CONTENT_TO_DESIGN,
                severity="critical",
                issue_type="data_loss",
                description="Critical content elements lost during content-to-design transition",
                impact="Key information (pricing, dates, routes) missing from the template",
                recommendation="Record subject, pricing and travel dates in content_integration",
            ))
        if preservation.content is not None and preservation.content < CONTENT_PRESERVATION_MINIMUM:
            issues.append(ContinuityIssue(
                transition="workflow_wide",
                severity="critical",
                issue_type="quality_degradation",
                description=f"Content preservation {preservation.content} below {CONTENT_PRESERVATION_MINIMUM}",
                impact="Important content details lost during the workflow",
                recommendation="Strengthen content handoff validation and tracking",
            ))
        if preservation.design is not None and preservation.design < DESIGN_PRESERVATION_MINIMUM:
            issues.append(ContinuityIssue(
                transition=DESIGN_TO_QUALITY,
                severity="medium",
                issue_type="context_loss",
                description=f"Design preservation {preservation.design} below {DESIGN_PRESERVATION_MINIMUM}",
                impact="Design decisions not confirmed by quality validation",
                recommendation="Validate layout, hierarchy and typography in the quality stage",
            ))
        if preservation.asset is not None and preservation.asset < ASSET_UTILIZATION_MINIMUM:
            issues.append(ContinuityIssue(
                transition="design_phase",
                severity="high",
                issue_type="specification_drift",
                description=f"Asset utilization {preservation.asset} below {ASSET_UTILIZATION_MINIMUM}",
                impact="Collected assets not integrated into the template",
                recommendation="Enforce asset utilization requirements in the design stage",
            ))
        if preservation.brand is not None and preservation.brand < BRAND_PRESERVATION_MINIMUM:
            issues.append(ContinuityIssue(
                transition="design_phase",
                severity="high",
                issue_type="specification_drift",
                description=f"Brand consistency {preservation.brand} below {BRAND_PRESERVATION_MINIMUM}",
                impact="Brand guidelines not applied in the template",
                recommendation="Apply primary, secondary and accent colors and the logo",
            ))
        return issues

    def _triggers(
        self,
        state: WorkflowState,
        continuity: int,
        preservation: PreservationScores,
    ) -> List[RollbackTrigger]:
        settings = self.settings
        rollback_stage = previous_stage(state.current_stage)
        fired = continuity < settings.continuity_threshold
        triggers = [RollbackTrigger(
            trigger_type="overall_continuity",
            threshold=settings.continuity_threshold,
            current_value=continuity,
            triggered=fired,
            action_required=(
                f"Rollback to {rollback_stage.value} stage to restore continuity"
                if fired and rollback_stage else "Continue workflow"
            ),
            rollback_to=rollback_stage if fired else None,
        )]

        if preservation.content is not None:
            fired = preservation.content < settings.preservation_threshold
            triggers.append(RollbackTrigger(
                trigger_type="content_preservation",
                threshold=settings.preservation_threshold,
                current_value=preservation.content,
                triggered=fired,
                action_required=(
                    "Rollback to content stage to restore lost content"
                    if fired else "Content preservation acceptable"
                ),
                rollback_to=Stage.CONTENT if fired else None,
            ))

        if preservation.asset is not None:
            fired = preservation.asset < settings.asset_utilization_threshold
            triggers.append(RollbackTrigger(
                trigger_type="asset_utilization",
                threshold=settings.asset_utilization_threshold,
                current_value=preservation.asset,
                triggered=fired,
                action_required=(
                    "Rollback to design stage to improve asset integration"
                    if fired else "Asset utilization acceptable"
                ),
                rollback_to=Stage.DESIGN if fired else None,
            ))
        return triggers

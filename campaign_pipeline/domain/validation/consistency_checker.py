"""Consistency & dependency checker.

Cross-field validation of built stage contexts: destination agreement,
price and date sanity, copy quality heuristics, and the presence of the
upstream artifacts a stage depends on. The quality score starts at 100 and
loses a fixed, documented penalty per finding; it is clamped to [0, 100].

The checker is stateless: checking the same context twice yields equal
results. Findings are also recorded in the per-run provenance sink when
the caller supplies one.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from campaign_pipeline.domain.contexts import (
    CONTEXT_TYPES,
    CollectionStatus,
    ContentContext,
    DataCollectionContext,
    DeliveryContext,
    DesignContext,
    QualityContext,
    StageContext,
)
from campaign_pipeline.domain.contexts.base import utc_now
from campaign_pipeline.domain.builder.normalizers import future_dates
from campaign_pipeline.domain.errors import StructuralValidationError
from campaign_pipeline.domain.registry import SchemaRegistry, context_schema_key
from campaign_pipeline.domain.stages import Stage
import campaign_pipeline.domain.validation.text_rules as text_rules
from campaign_pipeline.domain.validation.validation_result import (
    CONSISTENCY,
    CRITICAL,
    SOFT,
    VIOLATION,
    WARNING,
    Finding,
    ValidationResult,
)
from campaign_pipeline.observability.provenance import ProvenanceLog
from campaign_pipeline.settings import Settings, get_settings

logger = logging.getLogger(__name__)


# Rule name -> (category, penalty). Penalties can be overridden per rule
# through ``Settings.penalties``.
PENALTY_TABLE: Dict[str, Tuple[str, int]] = {
    # Placeholder / template text
    "placeholder_text": (VIOLATION, 20),
    "template_marker": (VIOLATION, 15),
    "generic_phrase": (VIOLATION, 15),
    # Content
    "short_text": (WARNING, 10),
    "destination_mismatch": (CONSISTENCY, 10),
    "zero_pricing": (CONSISTENCY, 20),
    "unparsed_price": (CONSISTENCY, 10),
    "price_range": (CONSISTENCY, 10),
    "best_price_outside_range": (WARNING, 5),
    "no_future_dates": (CONSISTENCY, 10),
    "generated_dates": (WARNING, 5),
    "unusual_currency": (WARNING, 0),
    "missing_currency": (WARNING, 5),
    "short_subject": (WARNING, 15),
    "short_preheader": (WARNING, 10),
    "short_body": (WARNING, 15),
    "long_subject": (WARNING, 5),
    "destination_not_mentioned": (WARNING, 10),
    "collection_incomplete": (WARNING, 10),
    # Design
    "oversized_template": (WARNING, 10),
    "large_image": (WARNING, 5),
    "template_errors": (CONSISTENCY, 15),
    "missing_alt_text": (CONSISTENCY, 5),
    # Quality
    "low_quality_score": (CONSISTENCY, 15),
    "quality_below_target": (WARNING, 5),
    "not_approved": (CONSISTENCY, 10),
    # Delivery
    "not_deployment_ready": (CONSISTENCY, 15),
}

# Upstream artifacts that must exist before a stage's output is complete
REQUIRED_ARTIFACTS: Dict[Stage, Tuple[str, ...]] = {
    Stage.DATA_COLLECTION: (),
    Stage.CONTENT: ("destination-analysis", "market-intelligence", "emotional-profile"),
    Stage.DESIGN: ("content-context",),
    Stage.QUALITY: ("design-context",),
    Stage.DELIVERY: ("quality-context",),
}

KNOWN_CURRENCIES = ("RUB", "USD", "EUR")
MIN_SUBJECT_LENGTH = 10
MAX_SUBJECT_LENGTH = 50
MIN_PREHEADER_LENGTH = 10
MIN_BODY_LENGTH = 50
MAX_TEMPLATE_BYTES = 100_000
MAX_IMAGE_BYTES = 500 * 1024
LOW_QUALITY_SCORE = 70
TARGET_QUALITY_SCORE = 85
ADVISORY_SCORE = 70

Clock = Callable[[], datetime]


class _Findings:
    """Collects findings for one context and applies the penalty table."""

    def __init__(self, penalties: Dict[str, int]):
        self._penalties = penalties
        self.items: List[Finding] = []

    def add(self, rule: str, path: str, message: str) -> None:
        category, _ = PENALTY_TABLE[rule]
        self.items.append(Finding(
            rule=rule,
            path=path,
            message=message,
            severity=SOFT if category == WARNING else CRITICAL,
            penalty=self._penalties[rule],
            category=category,
        ))

    def score(self) -> int:
        total = sum(f.penalty for f in self.items)
        return max(0, min(100, 100 - total))


class ConsistencyChecker:
    """Checks built stage contexts.

    Usage:
        checker = ConsistencyChecker()
        result = checker.check(context, Stage.CONTENT)
        if not result.is_complete:
            for finding in result.consistency_issues:
                print(f"{finding.path}: {finding.message}")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[SchemaRegistry] = None,
        clock: Optional[Clock] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or SchemaRegistry()
        self._clock = clock or utc_now
        self.penalties = {
            rule: penalty for rule, (_, penalty) in PENALTY_TABLE.items()
        }
        self.penalties.update({
            rule: value for rule, value in self.settings.penalties.items()
            if rule in PENALTY_TABLE
        })

    def check(
        self,
        context: StageContext,
        stage: Optional[Stage] = None,
        available_artifacts: Optional[Iterable[str]] = None,
        sink: Optional[ProvenanceLog] = None,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """Validate ``context`` as the output of ``stage``.

        Args:
            context: Built stage context
            stage: Stage to check as (defaults to the context's own stage)
            available_artifacts: Names of upstream artifacts that exist. The
                dependency check only runs when this is given.
            sink: Per-run provenance log receiving every finding
            now: Reference time for the future-dates check

        Raises:
            StructuralValidationError: ``context`` is not the type of ``stage``.
        """
        stage = Stage(stage) if stage is not None else context.stage
        expected_type = CONTEXT_TYPES[stage]
        if not isinstance(context, expected_type):
            raise StructuralValidationError(
                f"Cannot check {type(context).__name__} as {stage.value}",
                [{"path": "$", "message": f"expected {expected_type.__name__}"}],
            )
        now = now or self._clock()

        outcome = self.registry.validate(context.to_dict(), context_schema_key(stage))
        missing_fields = [
            issue.path for issue in outcome.errors if issue.keyword == "required"
        ]
        findings, score = self._check_stage(context, stage, now)
        findings.extend(
            Finding(
                rule="schema",
                path=issue.path,
                message=issue.message,
                severity=CRITICAL,
                penalty=0,
                category=CONSISTENCY,
            )
            for issue in outcome.errors
            if issue.keyword != "required"
        )

        missing_dependencies: List[str] = []
        if available_artifacts is not None:
            available = set(available_artifacts)
            missing_dependencies = [
                name for name in REQUIRED_ARTIFACTS[stage] if name not in available
            ]

        violations = [f for f in findings if f.category == VIOLATION]
        consistency = [f for f in findings if f.category == CONSISTENCY]
        soft = [f for f in findings if f.category == WARNING]

        warnings = [f"{issue.path}: {issue.message}" for issue in outcome.warnings]
        warnings.extend(f"{f.path}: {f.message}" for f in soft)
        if violations:
            warnings.append(f"Detected {len(violations)} hardcode violations")
        if score < ADVISORY_SCORE:
            warnings.append("Quality score below 70")

        gate = self.settings.quality_gate
        is_complete = (
            not missing_fields
            and not missing_dependencies
            and not violations
            and not consistency
            and (gate is None or score >= gate)
        )

        if sink is not None:
            for finding in findings:
                sink.record_finding(stage, finding.rule, finding.path, finding.message, finding.severity)

        result = ValidationResult(
            stage=stage,
            is_complete=is_complete,
            quality_score=score,
            missing_fields=missing_fields,
            missing_dependencies=missing_dependencies,
            warnings=warnings,
            placeholder_violations=violations,
            consistency_issues=consistency,
            soft_findings=soft,
            quality_gate=gate,
        )
        log = logger.info if is_complete else logger.warning
        log(
            f"{stage.value} check: complete={is_complete} score={score} "
            f"violations={len(violations)} issues={len(consistency)} "
            f"missing={len(missing_fields) + len(missing_dependencies)}",
            extra={"campaign_id": context.campaign_id, "stage": stage.value},
        )
        return result

    # =========================================================================
    # Per-stage rules
    # =========================================================================

    def _check_stage(self, context: StageContext, stage: Stage, now: datetime) -> Tuple[List[Finding], int]:
        """Own findings plus nested upstream findings; score is the minimum."""
        found = _Findings(self.penalties)
        nested: List[Finding] = []
        nested_score = 100

        if stage is Stage.CONTENT:
            self._check_content(context, found, now)
        elif stage is Stage.DESIGN:
            nested, nested_score = self._check_nested(context.content_context, Stage.CONTENT, "content_context", now)
            self._check_design(context, found)
        elif stage is Stage.QUALITY:
            nested, nested_score = self._check_nested(context.design_context, Stage.DESIGN, "design_context", now)
            self._check_quality(context, found)
        elif stage is Stage.DELIVERY:
            nested, nested_score = self._check_nested(context.quality_context, Stage.QUALITY, "quality_context", now)
            self._check_delivery(context, found)
        elif stage is Stage.DATA_COLLECTION:
            self._check_collection(context, found, "")

        return nested + found.items, min(found.score(), nested_score)

    def _check_nested(self, upstream: StageContext, stage: Stage, prefix: str, now: datetime):
        findings, score = self._check_stage(upstream, stage, now)
        return [f.nested(prefix) for f in findings], score

    def _assess_text(self, found: _Findings, path: str, text: Optional[str], short: bool = False) -> None:
        """Placeholder, template-marker and (optionally) length checks on one text field."""
        if text is None:
            return
        if short and text_rules.is_short(text):
            found.add("short_text", path, f"content too short ({len(text.strip())} chars)")
        for pattern in text_rules.find_placeholders(text):
            found.add("placeholder_text", path, f"contains placeholder text '{pattern}'")
        marker = text_rules.find_template_marker(text)
        if marker:
            found.add("template_marker", path, f"contains template marker '{marker}'")

    def _check_generic(self, found: _Findings, path: str, text: Optional[str]) -> None:
        phrase = text_rules.find_generic_phrase(text)
        if phrase:
            found.add("generic_phrase", path, f"contains generic template value '{phrase}'")

    def _check_collection(self, dcc: Optional[DataCollectionContext], found: _Findings, path: str) -> None:
        if dcc is None:
            found.add("collection_incomplete", path or "data_collection_context", "no data collection context")
            return
        status = dcc.collection_status
        if status is not CollectionStatus.COMPLETE:
            found.add(
                "collection_incomplete",
                f"{path}.collection_metadata.collection_status" if path else "collection_metadata.collection_status",
                f"data collection is {status.value} "
                f"(quality {dcc.collection_metadata.data_quality_score})",
            )

    def _check_content(self, ctx: ContentContext, found: _Findings, now: datetime) -> None:
        analysis = ctx.context_analysis
        dates = ctx.date_analysis
        pricing = ctx.pricing_analysis
        content = ctx.generated_content

        # Generic template values
        self._check_generic(found, "context_analysis.destination", analysis.destination)
        self._check_generic(found, "context_analysis.market_positioning", analysis.market_positioning)
        self._check_generic(found, "context_analysis.competitive_landscape", analysis.competitive_landscape)
        self._check_generic(found, "date_analysis.destination", dates.destination)

        # Copy quality
        self._assess_text(found, "generated_content.subject", content.subject)
        self._assess_text(found, "generated_content.body", content.body)
        self._assess_text(found, "generated_content.preheader", content.preheader)
        self._assess_text(found, "asset_strategy.theme", ctx.asset_strategy.theme, short=True)

        # Destination agreement
        if _norm(analysis.destination) != _norm(dates.destination):
            found.add(
                "destination_mismatch",
                "date_analysis.destination",
                f"Destination mismatch: context_analysis='{analysis.destination}' "
                f"vs date_analysis='{dates.destination}'",
            )

        # Pricing sanity
        if pricing.all_zero:
            found.add(
                "zero_pricing",
                "pricing_analysis",
                "All pricing values are zero - indicates missing real pricing data",
            )
        for name in pricing.missing_fields:
            found.add(
                "unparsed_price",
                f"pricing_analysis.{name}",
                f"{name} was absent or unparsable and coerced to zero",
            )
        if pricing.min_price > pricing.max_price:
            found.add(
                "price_range",
                "pricing_analysis.min_price",
                f"min_price {pricing.min_price} exceeds max_price {pricing.max_price}",
            )
        elif not pricing.all_zero and not (
            pricing.min_price <= pricing.best_price <= pricing.max_price
        ):
            found.add(
                "best_price_outside_range",
                "pricing_analysis.best_price",
                f"best_price {pricing.best_price} outside "
                f"[{pricing.min_price}, {pricing.max_price}]",
            )
        if pricing.currency is None:
            found.add("missing_currency", "pricing_analysis.currency", "currency is missing")
        elif pricing.currency not in KNOWN_CURRENCIES:
            found.add("unusual_currency", "pricing_analysis.currency", f"unusual currency code '{pricing.currency}'")

        # Temporal sanity
        if not future_dates(dates.optimal_dates, now.date()):
            found.add(
                "no_future_dates",
                "date_analysis.optimal_dates",
                "No future dates found in optimal_dates",
            )
        if dates.dates_are_placeholders:
            found.add(
                "generated_dates",
                "date_analysis.optimal_dates",
                "optimal_dates are generated placeholders, not supplied dates",
            )

        # Copy length
        subject = content.subject or ""
        if len(subject) < MIN_SUBJECT_LENGTH:
            found.add("short_subject", "generated_content.subject", f"Email subject is too short ({len(subject)} chars)")
        elif len(subject) > MAX_SUBJECT_LENGTH:
            found.add("long_subject", "generated_content.subject", f"Email subject is too long ({len(subject)} chars)")
        if content.preheader is not None and len(content.preheader) < MIN_PREHEADER_LENGTH:
            found.add(
                "short_preheader",
                "generated_content.preheader",
                f"Preheader is too short ({len(content.preheader)} chars)",
            )
        if len(content.body or "") < MIN_BODY_LENGTH:
            found.add(
                "short_body",
                "generated_content.body",
                "Email body content is too short - may lack substance",
            )
        if not text_rules.find_generic_phrase(analysis.destination) and not (
            text_rules.mentions(subject, analysis.destination)
            or text_rules.mentions(content.body, analysis.destination)
        ):
            found.add(
                "destination_not_mentioned",
                "generated_content",
                f"Generated content doesn't mention the destination '{analysis.destination}'",
            )

        self._check_collection(ctx.data_collection_context, found, "data_collection_context")

    def _check_design(self, ctx: DesignContext, found: _Findings) -> None:
        template = ctx.mjml_template
        self._assess_text(found, "mjml_template.source", template.source)

        if template.file_size > MAX_TEMPLATE_BYTES:
            found.add(
                "oversized_template",
                "mjml_template.file_size",
                f"MJML template size ({template.file_size} bytes) exceeds 100KB limit",
            )
        if template.validation_status == "errors":
            found.add(
                "template_errors",
                "mjml_template.validation_status",
                "Template failed validation: " + "; ".join(template.validation_messages or ["errors"]),
            )

        for index, image in enumerate(ctx.asset_manifest.images):
            path = f"asset_manifest.images[{index}]"
            if not _text_value(image, "alt_text", "alt"):
                found.add("missing_alt_text", f"{path}.alt_text", "image has no alt text")
            size = _number_value(image, "file_size", "size")
            if size is not None and size > MAX_IMAGE_BYTES:
                found.add("large_image", f"{path}.file_size", f"image is {size} bytes (limit 500KB)")

    def _check_quality(self, ctx: QualityContext, found: _Findings) -> None:
        score = ctx.overall_score
        if isinstance(score, (int, float)):
            if score < LOW_QUALITY_SCORE:
                found.add(
                    "low_quality_score",
                    "quality_report.overall_score",
                    f"Quality score ({score}) below acceptable threshold {LOW_QUALITY_SCORE}",
                )
            elif score < TARGET_QUALITY_SCORE:
                found.add(
                    "quality_below_target",
                    "quality_report.overall_score",
                    f"Quality score ({score}) below target {TARGET_QUALITY_SCORE}",
                )
        if ctx.approval_status != "approved":
            found.add(
                "not_approved",
                "quality_report.approval_status",
                f"Quality approval status: {ctx.approval_status}",
            )

    def _check_delivery(self, ctx: DeliveryContext, found: _Findings) -> None:
        if ctx.deployment_ready is not True:
            found.add(
                "not_deployment_ready",
                "delivery_report.deployment_ready",
                "Campaign not marked as deployment ready",
            )
        summary = ctx.delivery_report.get("campaign_summary")
        if isinstance(summary, str):
            self._assess_text(found, "delivery_report.campaign_summary", summary, short=True)


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().casefold()


def _text_value(item: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _number_value(item: Dict[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = item.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
    return None

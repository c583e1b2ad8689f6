"""Context Builder - raw stage output plus prior context to a typed context.

Builds are pure: the only side effects are log lines and entries in the
per-run provenance sink passed in by the caller. A build either returns a
complete context or raises ``BuilderInputError`` listing every missing
required path; no partial context is ever returned.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from campaign_pipeline.domain.builder.normalizers import Normalized, normalize_choice
from campaign_pipeline.domain.builder.rule_tables import (
    CONTENT_RULES,
    DELIVERY_RULES,
    DESIGN_RULES,
    QUALITY_RULES,
)
from campaign_pipeline.domain.builder.rules import (
    BuildEnv,
    SectionResult,
    SectionRules,
    apply_section,
)
from campaign_pipeline.domain.contexts import (
    CONTEXT_TYPES,
    AssetManifest,
    AssetStrategy,
    AssetUtilization,
    BrandApplication,
    CampaignInfo,
    ComplianceStatus,
    ContentContext,
    ContentIntegration,
    ContextAnalysis,
    DataCollectionContext,
    DateAnalysis,
    DeliveryContext,
    DesignContext,
    ExportFormat,
    GeneratedContent,
    PricingAnalysis,
    QualityContext,
    StageContext,
    TechnicalRequirements,
    TemplateArtifact,
    TestArtifacts,
)
from campaign_pipeline.domain.contexts.base import utc_now
from campaign_pipeline.domain.contexts.content import (
    DATE_SOURCE_GENERATED,
    DATE_SOURCE_SUPPLIED,
)
from campaign_pipeline.domain.contexts.delivery import DELIVERY_STATUSES
from campaign_pipeline.domain.errors import BuilderInputError
from campaign_pipeline.domain.raw_outputs import parse_raw_output
from campaign_pipeline.domain.stages import Stage, previous_stage
from campaign_pipeline.observability.provenance import (
    FieldStatus,
    ProvenanceLog,
    SourceType,
)
from campaign_pipeline.settings import Settings, get_settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ContextBuilder:
    """Builds stage contexts from raw outputs using the per-stage rule tables."""

    def __init__(self, settings: Optional[Settings] = None, clock: Optional[Clock] = None):
        self.settings = settings or get_settings()
        self._clock = clock or utc_now

    def build(
        self,
        stage: Stage,
        raw: Any,
        prior: Optional[StageContext],
        data_collection: Optional[DataCollectionContext] = None,
        sink: Optional[ProvenanceLog] = None,
        now: Optional[datetime] = None,
    ) -> StageContext:
        """Build the context for ``stage``.

        Args:
            stage: Stage being built (content, design, quality or delivery)
            raw: Raw stage output (mapping or parsed raw-output model)
            prior: Context of the preceding stage. For content this is the
                data collection context and may be None when
                ``data_collection`` is given.
            data_collection: Newer data collection context to thread
                through instead of the one carried by ``prior``
            sink: Per-run provenance log
            now: Reference time for generated dates and timestamps

        Raises:
            BuilderInputError: unknown raw shape, wrong prior context type,
                or required inputs absent.
        """
        stage = Stage(stage)
        if stage is Stage.DATA_COLLECTION:
            raise BuilderInputError(
                stage,
                "The data collection context is loaded from upstream artifacts, not built",
                [{"path": "stage", "message": "use load_data_collection()"}],
            )

        parsed = parse_raw_output(raw, stage)
        prior = self._check_prior(stage, prior, data_collection)
        dcc = self._carry_data_collection(stage, prior, data_collection)
        campaign_id = self._campaign_id(stage, prior, dcc)

        sink = sink or ProvenanceLog(campaign_id)
        env = BuildEnv(
            campaign_id=campaign_id,
            now=now or self._clock(),
            settings=self.settings,
            raw=parsed,
            data_collection=dcc,
        )
        if prior is not None and not isinstance(prior, DataCollectionContext):
            sink.record_source(
                f"{stage.value}.{prior.stage.value}_context",
                SourceType.PRIOR_CONTEXT,
                f"{prior.stage.value}-context",
            )

        builders = {
            Stage.CONTENT: self._build_content,
            Stage.DESIGN: self._build_design,
            Stage.QUALITY: self._build_quality,
            Stage.DELIVERY: self._build_delivery,
        }
        context = builders[stage](env, parsed, prior, dcc, sink)

        logger.info(
            f"Built {stage.value} context with {len(context.defaults_applied)} defaults applied",
            extra={"campaign_id": campaign_id, "stage": stage.value},
        )
        return context

    # =========================================================================
    # Inputs
    # =========================================================================

    @staticmethod
    def _check_prior(
        stage: Stage,
        prior: Optional[StageContext],
        data_collection: Optional[DataCollectionContext],
    ) -> Optional[StageContext]:
        expected_stage = previous_stage(stage)
        expected_type = CONTEXT_TYPES[expected_stage]

        if prior is None:
            if stage is Stage.CONTENT and data_collection is not None:
                return None
            raise BuilderInputError(
                stage,
                f"Building {stage.value} requires the {expected_stage.value} context",
                [{"path": f"{expected_stage.value}_context", "message": "prior context absent"}],
            )
        if not isinstance(prior, expected_type):
            raise BuilderInputError(
                stage,
                f"Prior context for {stage.value} must be {expected_type.__name__}",
                [{
                    "path": f"{expected_stage.value}_context",
                    "message": f"got {type(prior).__name__}",
                }],
            )
        return prior

    @staticmethod
    def _carry_data_collection(
        stage: Stage,
        prior: Optional[StageContext],
        data_collection: Optional[DataCollectionContext],
    ) -> Optional[DataCollectionContext]:
        if data_collection is not None:
            return data_collection
        if isinstance(prior, DataCollectionContext):
            return prior
        return getattr(prior, "data_collection_context", None)

    @staticmethod
    def _campaign_id(
        stage: Stage,
        prior: Optional[StageContext],
        dcc: Optional[DataCollectionContext],
    ) -> str:
        if prior is not None:
            return prior.campaign_id
        if dcc is not None:
            return dcc.campaign_id
        raise BuilderInputError(
            stage,
            "Cannot determine campaign id",
            [{"path": "campaign_id", "message": "no prior or data collection context"}],
        )

    # =========================================================================
    # Sections
    # =========================================================================

    def _apply_all(
        self,
        stage: Stage,
        tables: Tuple[SectionRules, ...],
        env: BuildEnv,
        parsed: Any,
        sink: ProvenanceLog,
    ) -> Dict[str, SectionResult]:
        results: Dict[str, SectionResult] = {}
        missing: List[str] = []
        for rules in tables:
            result = apply_section(rules, getattr(parsed, rules.section, None), env, sink)
            results[rules.section] = result
            missing.extend(result.missing)

        if missing:
            logger.warning(
                f"Cannot build {stage.value} context: missing {', '.join(missing)}",
                extra={"campaign_id": env.campaign_id, "stage": stage.value},
            )
            raise BuilderInputError(
                stage,
                f"Required {stage.value} inputs are missing",
                [{"path": path, "message": "required value absent"} for path in missing],
            )
        return results

    @staticmethod
    def _defaults(results: Dict[str, SectionResult], *extra: str) -> List[str]:
        paths: List[str] = []
        for result in results.values():
            paths.extend(result.defaulted)
        paths.extend(extra)
        return list(dict.fromkeys(paths))

    @staticmethod
    def _passthrough(
        name: str,
        value: Optional[Dict[str, Any]],
        sink: ProvenanceLog,
    ) -> Optional[Dict[str, Any]]:
        """Free-form sections copied as supplied (None when absent)."""
        if value is None:
            return None
        sink.record_source(name, SourceType.RAW_OUTPUT, f"raw.{name}", value)
        return dict(value)

    # =========================================================================
    # Stages
    # =========================================================================

    def _build_content(self, env, parsed, prior, dcc, sink) -> ContentContext:
        results = self._apply_all(Stage.CONTENT, CONTENT_RULES, env, parsed, sink)

        dates = dict(results["date_analysis"].values)
        dates["date_source"] = (
            DATE_SOURCE_GENERATED
            if "date_analysis.optimal_dates" in env.defaulted
            else DATE_SOURCE_SUPPLIED
        )

        pricing_rules = next(r for r in CONTENT_RULES if r.section == "pricing_analysis")
        flagged = {rule.name for rule in pricing_rules.rules if rule.flag_unparsed}
        pricing = dict(results["pricing_analysis"].values)
        pricing["missing_fields"] = [
            name for name in results["pricing_analysis"].unparsed if name in flagged
        ]
        if pricing["missing_fields"]:
            logger.warning(
                f"Unparsable price fields coerced to zero: {', '.join(pricing['missing_fields'])}",
                extra={"campaign_id": env.campaign_id, "stage": Stage.CONTENT.value},
            )

        return ContentContext(
            campaign_id=env.campaign_id,
            campaign=CampaignInfo.from_dict(results["campaign"].values),
            context_analysis=ContextAnalysis.from_dict(results["context_analysis"].values),
            date_analysis=DateAnalysis.from_dict(dates),
            pricing_analysis=PricingAnalysis.from_dict(pricing),
            asset_strategy=AssetStrategy.from_dict(results["asset_strategy"].values),
            generated_content=GeneratedContent.from_dict(results["generated_content"].values),
            technical_requirements=TechnicalRequirements.from_dict(
                results["technical_requirements"].values
            ),
            data_collection_context=dcc,
            defaults_applied=self._defaults(results),
        )

    def _build_design(self, env, parsed, prior, dcc, sink) -> DesignContext:
        results = self._apply_all(Stage.DESIGN, DESIGN_RULES, env, parsed, sink)
        return DesignContext(
            campaign_id=env.campaign_id,
            content_context=prior,
            data_collection_context=dcc,
            asset_manifest=AssetManifest.from_dict(results["asset_manifest"].values),
            mjml_template=TemplateArtifact.from_dict(results["mjml_template"].values),
            design_decisions=results["design_decisions"].values,
            brand_application=BrandApplication.from_dict(results["brand_application"].values),
            content_integration=ContentIntegration.from_dict(results["content_integration"].values),
            asset_utilization=AssetUtilization.from_dict(results["asset_utilization"].values),
            preview_files=list(parsed.preview_files or []),
            performance_metrics=results["performance_metrics"].values,
            defaults_applied=self._defaults(results),
        )

    def _build_quality(self, env, parsed, prior, dcc, sink) -> QualityContext:
        results = self._apply_all(Stage.QUALITY, QUALITY_RULES, env, parsed, sink)
        return QualityContext(
            campaign_id=env.campaign_id,
            design_context=prior,
            data_collection_context=dcc,
            quality_report=results["quality_report"].values,
            design_validation=self._passthrough("design_validation", parsed.design_validation, sink),
            asset_validation=self._passthrough("asset_validation", parsed.asset_validation, sink),
            test_artifacts=TestArtifacts.from_dict(results["test_artifacts"].values),
            compliance_status=ComplianceStatus.from_dict(results["compliance_status"].values),
            defaults_applied=self._defaults(results),
        )

    def _build_delivery(self, env, parsed, prior, dcc, sink) -> DeliveryContext:
        results = self._apply_all(Stage.DELIVERY, DELIVERY_RULES, env, parsed, sink)

        extra_defaults = []
        if parsed.delivery_status is None:
            status = Normalized("ready", False)
        else:
            status = normalize_choice(parsed.delivery_status, DELIVERY_STATUSES, "ready")
        if status.matched:
            sink.record_source("delivery_status", SourceType.RAW_OUTPUT, "raw.delivery_status", status.value)
        else:
            extra_defaults.append("delivery_status")
            sink.record_source(
                "delivery_status", SourceType.STRUCTURAL_DEFAULT, "builder default",
                status.value, status=FieldStatus.DEFAULTED,
            )

        return DeliveryContext(
            campaign_id=env.campaign_id,
            quality_context=prior,
            data_collection_context=dcc,
            delivery_manifest=results["delivery_manifest"].values,
            delivery_report=results["delivery_report"].values,
            delivery_timestamp=env.now.isoformat(),
            export_format=ExportFormat.from_dict(results["export_format"].values),
            deployment_artifacts=results["deployment_artifacts"].values,
            quality_preservation=self._passthrough(
                "quality_preservation", parsed.quality_preservation, sink
            ),
            delivery_status=status.value,
            defaults_applied=self._defaults(results, *extra_defaults),
        )

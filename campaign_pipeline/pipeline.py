"""Campaign pipeline facade.

Wires the builder, checker, orchestrator, state machine and auditor
together around one persistence gateway. Stage collaborators call into
this; it never calls out to them.

Usage:
    pipeline = await CampaignPipeline.from_settings()
    await pipeline.start("camp_001")
    run = await pipeline.run_stage("camp_001", Stage.CONTENT, raw_content)
    print(run.validation.quality_score, run.report.continuity_score)
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Set, Tuple

from campaign_pipeline.domain.builder import ContextBuilder, load_data_collection
from campaign_pipeline.domain.contexts import StageContext, context_from_dict
from campaign_pipeline.domain.contexts.base import utc_now
from campaign_pipeline.domain.continuity import ContinuityAuditor, ContinuityReport
from campaign_pipeline.domain.errors import (
    BuilderInputError,
    ConsistencyError,
    OrderingError,
    PersistenceError,
)
from campaign_pipeline.domain.handoff import HandoffEnvelope, HandoffOrchestrator
from campaign_pipeline.domain.registry import SchemaRegistry
from campaign_pipeline.domain.stages import Stage, next_stage, previous_stage
from campaign_pipeline.domain.validation import (
    REQUIRED_ARTIFACTS,
    ConsistencyChecker,
    ValidationResult,
)
from campaign_pipeline.domain.workflow import (
    CampaignLocks,
    WorkflowState,
    WorkflowStateMachine,
)
from campaign_pipeline.observability.logging import configure_logging
from campaign_pipeline.observability.provenance import ProvenanceLog
from campaign_pipeline.persistence import (
    DocumentGateway,
    WriteBatch,
    artifact_key,
    context_artifact_name,
    context_key,
    create_gateway,
    decode_document,
    encode_document,
    provenance_report_key,
)
from campaign_pipeline.settings import Settings, get_settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_CONTEXT_ARTIFACTS = {context_artifact_name(stage): stage for stage in Stage}


@dataclass(frozen=True)
class StageRun:
    """Everything one ``run_stage`` call produced."""
    stage: Stage
    context: StageContext
    validation: ValidationResult
    # None for the final stage, which hands off to nobody
    envelope: Optional[HandoffEnvelope]
    state: WorkflowState
    report: ContinuityReport


class CampaignPipeline:
    """Context accumulation and handoff pipeline for email campaigns."""

    def __init__(
        self,
        gateway: DocumentGateway,
        settings: Optional[Settings] = None,
        registry: Optional[SchemaRegistry] = None,
        clock: Optional[Clock] = None,
        locks: Optional[CampaignLocks] = None,
    ):
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.registry = registry or SchemaRegistry()
        self._clock = clock or utc_now
        self.locks = locks or CampaignLocks()

        self.builder = ContextBuilder(self.settings, self._clock)
        self.checker = ConsistencyChecker(self.settings, self.registry, self._clock)
        self.orchestrator = HandoffOrchestrator(gateway, self.registry)
        self.state_machine = WorkflowStateMachine(gateway, self._clock)
        self.auditor = ContinuityAuditor(self.settings)

    @classmethod
    async def from_settings(cls, settings: Optional[Settings] = None) -> "CampaignPipeline":
        """Pipeline over the storage backend named in ``settings``.

        Also installs the log handler and level ``settings`` ask for.
        """
        settings = settings or get_settings()
        configure_logging(settings.log_format, settings.log_level)
        gateway = await create_gateway(settings)
        return cls(gateway, settings)

    # =========================================================================
    # Exposed surface
    # =========================================================================

    def build_context(
        self,
        stage: Stage,
        raw_output: Any,
        prior_context: Optional[StageContext],
        data_collection=None,
        sink: Optional[ProvenanceLog] = None,
    ) -> StageContext:
        return self.builder.build(stage, raw_output, prior_context, data_collection, sink)

    def validate(
        self,
        context: StageContext,
        stage: Optional[Stage] = None,
        available_artifacts: Optional[Iterable[str]] = None,
        sink: Optional[ProvenanceLog] = None,
    ) -> ValidationResult:
        return self.checker.check(context, stage, available_artifacts, sink)

    async def prepare_handoff(
        self,
        source: Stage,
        target: Stage,
        context: StageContext,
        trace_id: Optional[str] = None,
        execution_time_ms: Optional[float] = None,
        validation: Optional[ValidationResult] = None,
    ) -> HandoffEnvelope:
        """Envelope, validate and persist ``context``.

        The context is checked here unless a ``validation`` for it is given.

        Raises:
            StructuralValidationError: envelope or payload breaks its schema.
            ConsistencyError: the context has blocking findings.
            PersistenceError: the write failed.
        """
        envelope = self.orchestrator.prepare_handoff(
            source, target, context, trace_id=trace_id, execution_time_ms=execution_time_ms
        )
        if validation is None:
            validation = self.checker.check(context, source)
        await self.orchestrator.submit(envelope, validation)
        return envelope

    async def advance_workflow(
        self,
        state: WorkflowState,
        stage: Stage,
        context: StageContext,
    ) -> WorkflowState:
        """Advance ``state`` to ``stage`` and persist it under the campaign lock."""
        async with self.locks.for_campaign(state.campaign_id):
            return await self._advance(state, stage, context)

    def audit_continuity(self, state: WorkflowState) -> ContinuityReport:
        return self.auditor.audit(state)

    # =========================================================================
    # Campaign runs
    # =========================================================================

    async def start(self, campaign_id: str, sink: Optional[ProvenanceLog] = None) -> WorkflowState:
        """Recover the campaign's state, or create it from the upstream artifacts.

        When the state is created, the upstream loading provenance is saved.
        """
        sink = sink or ProvenanceLog(campaign_id)
        async with self.locks.for_campaign(campaign_id):
            state, created = await self._recover_or_start(campaign_id, sink)
            if created:
                await self.save_provenance_report(campaign_id, sink)
            return state

    async def run_stage(
        self,
        campaign_id: str,
        stage: Stage,
        raw_output: Any,
        trace_id: Optional[str] = None,
        sink: Optional[ProvenanceLog] = None,
    ) -> StageRun:
        """Build, check, hand off, advance, persist and audit one stage.

        The new state, the handoff envelope and the stage context are
        written together or not at all, and only once the context passes
        validation. The provenance report is written either way.

        Raises:
            OrderingError: ``stage`` does not follow the current stage.
            BuilderInputError: required raw inputs are absent.
            StructuralValidationError: the context breaks its schema.
            ConsistencyError: the context has blocking findings.
            PersistenceError: a read or write failed.
        """
        stage = Stage(stage)
        if stage is Stage.DATA_COLLECTION:
            raise BuilderInputError(
                stage,
                "Data collection is started, not run",
                [{"path": "stage", "message": "use start()"}],
            )
        sink = sink or ProvenanceLog(campaign_id)
        log_extra = {"campaign_id": campaign_id, "stage": stage.value, "trace_id": trace_id}

        async with self.locks.for_campaign(campaign_id):
            try:
                state, _ = await self._recover_or_start(campaign_id, sink)
                expected = next_stage(state.current_stage)
                if stage is not expected:
                    raise OrderingError(state.current_stage, stage, expected)

                started = time.perf_counter()
                prior = state.context_for(previous_stage(stage))
                context = self.builder.build(stage, raw_output, prior, sink=sink)
                artifacts = await self.available_artifacts(campaign_id, stage)
                validation = self.checker.check(
                    context, stage, available_artifacts=artifacts, sink=sink
                )
                execution_time_ms = (time.perf_counter() - started) * 1000

                envelope = None
                target = next_stage(stage)
                if target is not None:
                    envelope = self.orchestrator.prepare_handoff(
                        stage,
                        target,
                        context,
                        trace_id=trace_id,
                        execution_time_ms=round(execution_time_ms, 2),
                    )
                    self.orchestrator.check(envelope, validation)
                elif not validation.is_complete:
                    raise ConsistencyError(
                        f"{stage.value} context is incomplete", validation.blocking_errors()
                    )

                new_state = self.state_machine.advance(state, stage, context)
                await self.state_machine.check_version(new_state)

                # State first, then the handoff and context; all or nothing
                documents = self.state_machine.documents(new_state)
                batch = WriteBatch(self.gateway)
                batch.put(*documents[0])
                if envelope is not None:
                    batch.put(envelope.key, self.orchestrator.document(envelope))
                for key, document in documents[1:]:
                    batch.put(key, document)
                await batch.commit()
            finally:
                await self.save_provenance_report(campaign_id, sink)

        report = self.auditor.audit(new_state)
        for trigger in report.triggered:
            logger.warning(
                f"Rollback trigger {trigger.trigger_type}: "
                f"{trigger.current_value} < {trigger.threshold}. {trigger.action_required}",
                extra=log_extra,
            )
        logger.info(
            f"Completed {stage.value} stage: score={validation.quality_score} "
            f"continuity={report.continuity_score}",
            extra={**log_extra, "duration_ms": round(execution_time_ms, 2)},
        )
        return StageRun(
            stage=stage,
            context=context,
            validation=validation,
            envelope=envelope,
            state=new_state,
            report=report,
        )

    async def recover_context(self, campaign_id: str, stage: Stage) -> Optional[StageContext]:
        """Read a persisted stage context; None if it was never written."""
        key = context_key(campaign_id, stage)
        document = await self.gateway.get(key)
        if document is None:
            return None
        try:
            return context_from_dict(stage, decode_document(document, key))
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt context at {key}: {e}", key, "decode") from e

    async def available_artifacts(self, campaign_id: str, stage: Stage) -> Set[str]:
        """Names of the artifacts ``stage`` depends on that exist in storage."""
        available = set()
        for name in REQUIRED_ARTIFACTS[Stage(stage)]:
            if name in _CONTEXT_ARTIFACTS:
                key = context_key(campaign_id, _CONTEXT_ARTIFACTS[name])
            else:
                key = artifact_key(campaign_id, name)
            if await self.gateway.exists(key):
                available.add(name)
        return available

    async def save_provenance_report(self, campaign_id: str, sink: ProvenanceLog) -> str:
        """Append ``sink`` to the campaign's persisted report; returns its key.

        An unreadable earlier report is replaced.
        """
        key = provenance_report_key(campaign_id)
        log = ProvenanceLog(campaign_id)
        existing = await self.gateway.get(key)
        if existing is not None:
            try:
                log = ProvenanceLog.from_report(decode_document(existing, key))
            except (PersistenceError, KeyError, TypeError, ValueError) as e:
                logger.warning(
                    f"Replacing unreadable provenance report at {key}: {e}",
                    extra={"campaign_id": campaign_id},
                )
        log.extend(sink)
        await self.gateway.put(key, encode_document(log.report().to_dict()))
        return key

    # =========================================================================
    # Internals (callers hold the campaign lock)
    # =========================================================================

    async def _recover_or_start(
        self,
        campaign_id: str,
        sink: Optional[ProvenanceLog],
    ) -> Tuple[WorkflowState, bool]:
        """The persisted state, or a new one; the flag is True when created."""
        state = await self.state_machine.recover(campaign_id)
        if state is not None:
            return state, False

        data_collection = await load_data_collection(
            self.gateway,
            campaign_id,
            sink=sink,
            registry=self.registry,
            collected_at=self._clock().isoformat(),
        )
        state = self.state_machine.create(campaign_id, data_collection)
        await self.state_machine.persist(state)
        return state, True

    async def _advance(
        self,
        state: WorkflowState,
        stage: Stage,
        context: StageContext,
    ) -> WorkflowState:
        new_state = self.state_machine.advance(state, stage, context)
        await self.state_machine.persist(new_state)
        return new_state

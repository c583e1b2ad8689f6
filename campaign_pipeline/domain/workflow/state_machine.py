"""Workflow state machine - strictly linear stage progression.

data_collection -> content -> design -> quality -> delivery. Advancing to
anything but the immediate successor of the current stage is an
``OrderingError``. Every advance returns a new ``WorkflowState``; the input
state is never touched.
"""

import dataclasses
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from campaign_pipeline.domain.contexts import (
    CONTEXT_TYPES,
    DataCollectionContext,
    StageContext,
)
from campaign_pipeline.domain.contexts.base import utc_now
from campaign_pipeline.domain.errors import (
    OrderingError,
    PersistenceError,
    StructuralValidationError,
)
from campaign_pipeline.domain.stages import (
    EXPECTED_PROGRESSION,
    Stage,
    is_valid_progression,
    next_stage,
    previous_stage,
)
from campaign_pipeline.domain.workflow.workflow_state import (
    AccumulationCheck,
    StageTransition,
    WorkflowMetadata,
    WorkflowState,
)
from campaign_pipeline.persistence import (
    DocumentGateway,
    WriteBatch,
    context_key,
    decode_document,
    encode_document,
    workflow_state_key,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class WorkflowStateMachine:
    """Creates, advances, persists and recovers workflow states."""

    def __init__(self, gateway: DocumentGateway, clock: Optional[Clock] = None):
        self.gateway = gateway
        self._clock = clock or utc_now

    # =========================================================================
    # Transitions
    # =========================================================================

    def create(
        self,
        campaign_id: str,
        data_collection_context: DataCollectionContext,
        now: Optional[datetime] = None,
    ) -> WorkflowState:
        """Initial state: data collection is current and already completed."""
        if not isinstance(data_collection_context, DataCollectionContext):
            raise StructuralValidationError(
                "Workflow must start from a data collection context",
                [{"path": "data_collection_context", "message": f"got {type(data_collection_context).__name__}"}],
            )
        now = now or self._clock()
        state = WorkflowState(
            campaign_id=campaign_id,
            current_stage=Stage.DATA_COLLECTION,
            completed_stages=(Stage.DATA_COLLECTION,),
            metadata=WorkflowMetadata(started_at=now, current_stage_started_at=now),
            data_collection_context=data_collection_context,
        )
        logger.info(
            "Created workflow state",
            extra={"campaign_id": campaign_id, "stage": Stage.DATA_COLLECTION.value},
        )
        return state

    def advance(
        self,
        state: WorkflowState,
        target: Stage,
        context: StageContext,
        now: Optional[datetime] = None,
    ) -> WorkflowState:
        """Move to ``target`` storing ``context`` in its slot.

        Raises:
            OrderingError: ``target`` is not the immediate successor.
            StructuralValidationError: ``context`` is not ``target``'s type
                or belongs to another campaign.
        """
        target = Stage(target)
        expected = next_stage(state.current_stage)
        if target is not expected:
            logger.warning(
                f"Rejected advance {state.current_stage.value} -> {target.value}",
                extra={"campaign_id": state.campaign_id, "stage": state.current_stage.value},
            )
            raise OrderingError(state.current_stage, target, expected)

        expected_type = CONTEXT_TYPES[target]
        if not isinstance(context, expected_type):
            raise StructuralValidationError(
                f"Context for {target.value} must be {expected_type.__name__}",
                [{"path": f"{target.value}_context", "message": f"got {type(context).__name__}"}],
            )
        if context.campaign_id != state.campaign_id:
            raise StructuralValidationError(
                f"Context belongs to campaign '{context.campaign_id}'",
                [{"path": f"{target.value}_context.campaign_id", "message": f"expected '{state.campaign_id}'"}],
            )

        now = now or self._clock()
        metadata = state.metadata
        duration_ms = max(0.0, (now - metadata.current_stage_started_at).total_seconds() * 1000)
        transition = StageTransition(
            from_stage=state.current_stage,
            to_stage=target,
            timestamp=now,
            duration_ms=duration_ms,
        )
        new_state = dataclasses.replace(
            state,
            current_stage=target,
            completed_stages=state.completed_stages + (target,),
            metadata=dataclasses.replace(
                metadata,
                current_stage_started_at=now,
                total_processing_time_ms=metadata.total_processing_time_ms + duration_ms,
                stage_transitions=metadata.stage_transitions + (transition,),
            ),
            version=state.version + 1,
            **{f"{target.value}_context": context},
        )
        logger.info(
            f"Advanced {transition.from_stage.value} -> {target.value} in {duration_ms:.0f}ms",
            extra={
                "campaign_id": state.campaign_id,
                "stage": target.value,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return new_state

    # =========================================================================
    # Persistence
    # =========================================================================

    async def persist(self, state: WorkflowState) -> str:
        """Write the state and its current stage context; returns the state key.

        Both documents are written or neither is.

        Raises:
            PersistenceError: the write failed, or a newer version of the
                state is already persisted.
        """
        await self.check_version(state)
        batch = WriteBatch(self.gateway)
        for key, document in self.documents(state):
            batch.put(key, document)
        await batch.commit()
        logger.info(
            f"Persisted workflow state v{state.version}",
            extra={"campaign_id": state.campaign_id, "stage": state.current_stage.value},
        )
        return workflow_state_key(state.campaign_id)

    async def check_version(self, state: WorkflowState) -> None:
        """Refuse to overwrite a newer persisted version of ``state``.

        Raises:
            PersistenceError: the persisted version is ahead of ``state``.
        """
        key = workflow_state_key(state.campaign_id)
        existing = await self.gateway.get(key)
        if existing is None:
            return
        persisted_version = decode_document(existing, key).get("version", 0)
        if persisted_version > state.version:
            raise PersistenceError(
                f"Stale workflow state for {state.campaign_id}: "
                f"version {state.version} < persisted {persisted_version}",
                key,
                "write",
            )

    def documents(self, state: WorkflowState) -> List[Tuple[str, bytes]]:
        """Key/document pairs ``persist`` writes: the state, then the current context."""
        documents = [(workflow_state_key(state.campaign_id), encode_document(state.to_dict()))]
        context = state.current_context
        if context is not None:
            documents.append((
                context_key(state.campaign_id, state.current_stage),
                encode_document(context.to_dict()),
            ))
        return documents

    async def recover(self, campaign_id: str) -> Optional[WorkflowState]:
        """Rebuild the persisted state; None if none was ever written.

        Raises:
            PersistenceError: the stored document is unreadable.
        """
        key = workflow_state_key(campaign_id)
        document = await self.gateway.get(key)
        if document is None:
            return None
        data = decode_document(document, key)
        try:
            state = WorkflowState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt workflow state at {key}: {e}", key, "decode") from e
        logger.info(
            f"Recovered workflow state v{state.version}",
            extra={"campaign_id": campaign_id, "stage": state.current_stage.value},
        )
        return state

    # =========================================================================
    # Sanity
    # =========================================================================

    def validate_accumulation(self, state: WorkflowState) -> AccumulationCheck:
        """Non-schema sanity pass over the accumulated contexts."""
        issues: List[str] = []
        recommendations: List[str] = []

        if not is_valid_progression(state.completed_stages):
            issues.append(
                "completed_stages "
                f"{[s.value for s in state.completed_stages]} is not a prefix of the expected progression"
            )
            recommendations.append("Recover the workflow state from persistence")
        elif state.completed_stages and state.completed_stages[-1] is not state.current_stage:
            issues.append(
                f"current_stage '{state.current_stage.value}' is not the last completed stage"
            )
            recommendations.append("Recover the workflow state from persistence")

        if state.data_collection_context is None:
            issues.append("data_collection_context is missing")
            recommendations.append("Reload the upstream data artifacts")

        for stage in EXPECTED_PROGRESSION[1:]:
            context = state.context_for(stage)
            if context is None:
                continue
            if context.data_collection_context is None:
                issues.append(f"{stage.value}_context has no data_collection_context")
                recommendations.append(f"Rebuild the {stage.value} context with the data collection context")
            if context.campaign_id != state.campaign_id:
                issues.append(
                    f"{stage.value}_context campaign '{context.campaign_id}' "
                    f"does not match '{state.campaign_id}'"
                )
                recommendations.append(f"Rebuild the {stage.value} context for {state.campaign_id}")

        if state.context_for(state.current_stage) is None:
            issues.append(f"{state.current_stage.value}_context is missing")
            recommendations.append(f"Rerun the {state.current_stage.value} stage")
        required = previous_stage(state.current_stage)
        if required is not None and state.context_for(required) is None:
            issues.append(f"{required.value}_context required by {state.current_stage.value} is missing")
            recommendations.append(f"Rerun the {required.value} stage")

        return AccumulationCheck(
            is_valid=not issues,
            issues=tuple(issues),
            recommendations=tuple(recommendations),
        )

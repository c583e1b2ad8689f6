"""Grouped document writes that are undone together on failure.

The gateway contract has no transactions, so a ``WriteBatch`` remembers
what each key held before it was overwritten. When a later write fails,
earlier keys are restored (or deleted if they did not exist) and the
original error is re-raised.

Usage:
    batch = WriteBatch(gateway)
    batch.put(workflow_state_key(campaign_id), state_document)
    batch.put(envelope.key, envelope_document)
    await batch.commit()
"""

import logging
from typing import List, Optional, Tuple

from campaign_pipeline.domain.errors import PersistenceError
from campaign_pipeline.persistence.gateway import DocumentGateway

logger = logging.getLogger(__name__)


class WriteBatch:
    """Documents written in order; a failed commit leaves the store as it was."""

    def __init__(self, gateway: DocumentGateway):
        self.gateway = gateway
        self._documents: List[Tuple[str, bytes]] = []

    def put(self, key: str, document: bytes) -> None:
        self._documents.append((key, document))

    @property
    def keys(self) -> List[str]:
        return [key for key, _ in self._documents]

    def __len__(self) -> int:
        return len(self._documents)

    async def commit(self) -> List[str]:
        """Write every document; returns the keys written.

        Raises:
            PersistenceError: a read or write failed. Documents already
                written by this batch have been restored.
        """
        written: List[Tuple[str, Optional[bytes]]] = []
        try:
            for key, document in self._documents:
                previous = await self.gateway.get(key)
                await self.gateway.put(key, document)
                written.append((key, previous))
        except PersistenceError as e:
            logger.error(
                f"Write of {e.key} failed, restoring {len(written)} documents",
                extra={"campaign_id": e.key.split("/", 1)[0]},
            )
            await self._restore(written)
            raise
        return self.keys

    async def _restore(self, written: List[Tuple[str, Optional[bytes]]]) -> None:
        for key, previous in reversed(written):
            try:
                if previous is None:
                    await self.gateway.delete(key)
                else:
                    await self.gateway.put(key, previous)
            except PersistenceError as e:
                # Keep restoring the rest; the caller sees the original failure
                logger.error(
                    f"Could not restore {key}: {e}",
                    extra={"campaign_id": key.split("/", 1)[0]},
                )

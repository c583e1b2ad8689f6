"""Per-campaign mutual exclusion for state advancement."""

import asyncio
import weakref


class CampaignLocks:
    """One ``asyncio.Lock`` per campaign id, created on first use.

    Distinct campaigns never share a lock. A lock is dropped once nobody
    holds or waits on it, so idle campaigns cost nothing. Holds only within
    one process; across processes state persistence is last-writer-wins
    apart from the version check in ``WorkflowStateMachine.persist``.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def for_campaign(self, campaign_id: str) -> asyncio.Lock:
        lock = self._locks.get(campaign_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[campaign_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)

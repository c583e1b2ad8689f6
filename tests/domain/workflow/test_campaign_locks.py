"""Tests for per-campaign locks."""

import asyncio
import gc

import pytest

from campaign_pipeline.domain.workflow import CampaignLocks


class TestCampaignLocks:
    """Tests for CampaignLocks."""

    def test_same_campaign_same_lock(self):
        """A campaign gets the same lock while it is referenced."""
        locks = CampaignLocks()
        lock = locks.for_campaign("camp_001")
        assert locks.for_campaign("camp_001") is lock
        assert len(locks) == 1

    def test_distinct_campaigns_distinct_locks(self):
        """Each campaign has its own lock."""
        locks = CampaignLocks()
        first = locks.for_campaign("camp_001")
        second = locks.for_campaign("camp_002")
        assert first is not second
        assert len(locks) == 2

    @pytest.mark.asyncio
    async def test_released_locks_are_dropped(self):
        """A lock nobody holds or waits on is forgotten."""
        locks = CampaignLocks()
        for index in range(50):
            async with locks.for_campaign(f"camp_{index:03d}"):
                pass
        gc.collect()
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_survives_while_held(self):
        """A held lock stays registered for later callers."""
        locks = CampaignLocks()
        async with locks.for_campaign("camp_001"):
            gc.collect()
            assert len(locks) == 1
            assert locks.for_campaign("camp_001").locked()

    @pytest.mark.asyncio
    async def test_serializes_one_campaign(self):
        """Two runs of one campaign never interleave."""
        locks = CampaignLocks()
        events = []

        async def worker(name):
            async with locks.for_campaign("camp_001"):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert events == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_campaigns_do_not_block_each_other(self):
        """Holding one campaign's lock does not block another campaign."""
        locks = CampaignLocks()
        async with locks.for_campaign("camp_001"):
            other = locks.for_campaign("camp_002")
            await asyncio.wait_for(other.acquire(), timeout=1)
            other.release()

"""Tests for loading the data collection context from upstream artifacts."""

import pytest

from campaign_pipeline.domain.builder import load_data_collection
from campaign_pipeline.domain.contexts import CollectionStatus
from campaign_pipeline.observability.provenance import FieldStatus, SourceType
from campaign_pipeline.persistence import artifact_key


class TestLoadDataCollection:
    """Tests for load_data_collection."""

    @pytest.mark.asyncio
    async def test_empty_gateway_is_failed(self, gateway, campaign_id):
        """No artifacts gives a failed collection."""
        context = await load_data_collection(gateway, campaign_id)
        metadata = context.collection_metadata
        assert metadata.collection_status is CollectionStatus.FAILED
        assert metadata.data_quality_score == 0
        assert metadata.data_sources == []
        assert context.destination_analysis is None

    @pytest.mark.asyncio
    async def test_all_sources_present(self, gateway, seed_upstream, campaign_id, upstream_documents):
        """All artifacts present gives a complete collection."""
        await seed_upstream()
        context = await load_data_collection(gateway, campaign_id, collected_at="2025-09-01T12:00:00+00:00")
        metadata = context.collection_metadata
        assert metadata.collection_status is CollectionStatus.COMPLETE
        assert metadata.data_quality_score == 100
        assert metadata.collection_timestamp == "2025-09-01T12:00:00+00:00"
        assert context.market_intelligence == upstream_documents["market_intelligence"]

    @pytest.mark.asyncio
    async def test_partial_collection(self, gateway, seed_upstream, campaign_id):
        """Some artifacts present gives a partial collection."""
        await seed_upstream(only={"destination_analysis", "market_intelligence", "trend_analysis"})
        context = await load_data_collection(gateway, campaign_id)
        assert context.collection_status is CollectionStatus.PARTIAL
        assert context.collection_metadata.data_quality_score == 50
        assert context.collection_metadata.data_sources == [
            "destination-analysis", "market-intelligence", "trend-analysis",
        ]

    @pytest.mark.asyncio
    async def test_malformed_artifact_is_skipped(self, gateway, seed_upstream, campaign_id, sink):
        """A corrupt artifact counts as absent instead of failing the load."""
        await seed_upstream()
        key = artifact_key(campaign_id, "trend-analysis")
        await gateway.put(key, b"{not json")

        context = await load_data_collection(gateway, campaign_id, sink=sink)

        assert context.trend_analysis is None
        assert context.collection_metadata.data_quality_score == 83
        entry = next(s for s in sink.sources if s.field_path == key)
        assert entry.status is FieldStatus.ERROR

    @pytest.mark.asyncio
    async def test_every_source_recorded(self, gateway, seed_upstream, campaign_id, sink):
        """Each loaded artifact is recorded in provenance."""
        await seed_upstream(only={"emotional_profile"})
        await load_data_collection(gateway, campaign_id, sink=sink)

        assert len(sink.sources) == 6
        assert all(s.source_type is SourceType.UPSTREAM_ARTIFACT for s in sink.sources)
        missing = [s for s in sink.sources if s.status is FieldStatus.MISSING]
        assert len(missing) == 5

    @pytest.mark.asyncio
    async def test_campaigns_are_isolated(self, gateway, seed_upstream):
        """Artifacts of one campaign are not visible to another."""
        await seed_upstream(campaign_id="camp_other")
        context = await load_data_collection(gateway, "camp_001")
        assert context.collection_status is CollectionStatus.FAILED

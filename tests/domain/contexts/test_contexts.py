"""Tests for stage context types."""

import pytest

from campaign_pipeline.domain.contexts import (
    AssetManifest,
    BrandApplication,
    CollectionStatus,
    ContentContext,
    ContentIntegration,
    DataCollectionContext,
    DeliveryContext,
    DesignContext,
    PricingAnalysis,
    QualityContext,
    classify_collection,
    context_from_dict,
)
from campaign_pipeline.domain.stages import Stage


class TestClassifyCollection:
    """Tests for collection status thresholds."""

    @pytest.mark.parametrize("present,status,score", [
        (6, CollectionStatus.COMPLETE, 100),
        (4, CollectionStatus.COMPLETE, 67),
        (3, CollectionStatus.PARTIAL, 50),
        (2, CollectionStatus.PARTIAL, 33),
        (1, CollectionStatus.FAILED, 17),
        (0, CollectionStatus.FAILED, 0),
    ])
    def test_thresholds(self, present, status, score):
        """Collection status follows the number of sources present."""
        assert classify_collection(present) == (status, score)


class TestDataCollectionContext:
    """Tests for the upstream research bundle."""

    def test_all_sources_present(self, data_collection):
        """All sources present gives a complete data collection."""
        metadata = data_collection.collection_metadata
        assert metadata.collection_status is CollectionStatus.COMPLETE
        assert metadata.data_quality_score == 100
        assert "destination-analysis" in metadata.data_sources
        assert data_collection.campaign_id == "camp_001"

    def test_no_sources_present(self, empty_data_collection):
        """Zero sources yields a failed collection with score 0."""
        assert empty_data_collection.collection_status is CollectionStatus.FAILED
        assert empty_data_collection.collection_metadata.data_quality_score == 0
        assert empty_data_collection.destination_analysis is None

    def test_subset_of_sources(self, upstream_documents):
        """A subset of sources gives a partial data collection."""
        context = DataCollectionContext.from_sources(
            "camp_001",
            {
                "destination_analysis": upstream_documents["destination_analysis"],
                "trend_analysis": upstream_documents["trend_analysis"],
            },
        )
        assert context.collection_status is CollectionStatus.PARTIAL
        assert context.has("trend_analysis")
        assert not context.has("market_intelligence")

    def test_round_trip(self, data_collection):
        """to_dict() and from_dict() preserve the context."""
        assert DataCollectionContext.from_dict(data_collection.to_dict()) == data_collection


class TestContextRoundTrip:
    """Every built context survives to_dict/from_dict unchanged."""

    def test_content(self, content_context):
        """Content context survives a dict round trip."""
        assert ContentContext.from_dict(content_context.to_dict()) == content_context

    def test_design(self, design_context):
        """Design context survives a dict round trip."""
        assert DesignContext.from_dict(design_context.to_dict()) == design_context

    def test_quality(self, quality_context):
        """Quality context survives a dict round trip."""
        assert QualityContext.from_dict(quality_context.to_dict()) == quality_context

    def test_delivery(self, delivery_context):
        """Delivery context survives a dict round trip."""
        assert DeliveryContext.from_dict(delivery_context.to_dict()) == delivery_context

    def test_context_from_dict_by_stage(self, design_context):
        """context_from_dict() picks the class for the stage."""
        restored = context_from_dict(Stage.DESIGN, design_context.to_dict())
        assert isinstance(restored, DesignContext)


class TestAccumulation:
    """Each context embeds its predecessor unchanged."""

    def test_design_embeds_content(self, content_context, design_context):
        """Design context carries the full content context."""
        assert design_context.content_context == content_context
        assert design_context.to_dict()["content_context"] == content_context.to_dict()

    def test_delivery_embeds_whole_chain(self, content_context, delivery_context):
        """Delivery context reaches back to content."""
        assert delivery_context.quality_context.design_context.content_context == content_context

    def test_data_collection_threaded_through(self, data_collection, delivery_context):
        """Data collection is reachable from every later context."""
        assert delivery_context.data_collection_context == data_collection


class TestSections:
    """Tests for section helpers."""

    def test_pricing_all_zero(self):
        """Pricing with every price zero reports all_zero."""
        pricing = PricingAnalysis(best_price=0, min_price=0, max_price=0, average_price=0)
        assert pricing.all_zero
        assert not pricing.has_real_pricing

    def test_pricing_not_zero(self):
        """Pricing with any price set is not all_zero."""
        pricing = PricingAnalysis(best_price=100.0, min_price=90.0, max_price=120.0, average_price=100.0)
        assert not pricing.all_zero
        assert pricing.has_real_pricing

    def test_total_assets_counts_images_and_icons(self):
        """Total assets counts images and icons."""
        manifest = AssetManifest(images=[{"id": "a"}, {"id": "b"}], icons=[{"id": "c"}], fonts=[{"family": "Inter"}])
        assert manifest.total_assets == 3

    def test_brand_missing_elements(self):
        """Missing brand elements are listed."""
        brand = BrandApplication(primary_color="#000", logo="logo.svg")
        assert brand.missing_elements() == ["secondary_color", "accent_color"]

    def test_content_integration_has(self):
        """Content integration reports which parts are present."""
        integration = ContentIntegration(subject="Hi", pricing={}, travel_dates=[])
        assert integration.has("subject")
        assert not integration.has("pricing")
        assert not integration.has("travel_dates")
        assert not integration.has("routes")

"""
Shared pytest fixtures for all tests.

Provides a fixed clock, explicit settings, upstream research documents,
raw stage outputs and contexts built from them.
"""

import copy
import os
from datetime import datetime, timezone

import pytest

from campaign_pipeline.domain.builder import ContextBuilder
from campaign_pipeline.domain.contexts import DataCollectionContext
from campaign_pipeline.domain.contexts.data_collection import DATA_SOURCES
from campaign_pipeline.domain.errors import PersistenceError
from campaign_pipeline.domain.stages import Stage
from campaign_pipeline.observability.provenance import ProvenanceLog
from campaign_pipeline.persistence import (
    InMemoryDocumentGateway,
    artifact_key,
    encode_document,
)
from campaign_pipeline.settings import Settings, clear_settings_cache

CAMPAIGN_ID = "camp_001"
FIXED_NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch):
    """Keep CAMPAIGN_PIPELINE_* variables from leaking into tests."""
    for name in list(os.environ):
        if name.startswith("CAMPAIGN_PIPELINE_"):
            monkeypatch.delenv(name)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def campaign_id():
    return CAMPAIGN_ID


@pytest.fixture
def sink():
    return ProvenanceLog(CAMPAIGN_ID)


# =============================================================================
# UPSTREAM DATA FIXTURES
# =============================================================================

UPSTREAM_DOCUMENTS = {
    "destination_analysis": {
        "destination": "Barcelona",
        "travel_experience_quality": "high",
    },
    "market_intelligence": {
        "pricing_insights": "Fares drop 15% after mid-October",
        "competitive_position": "Lowest fares among three carriers",
        "demand_patterns": "Weekend demand peaks",
        "booking_recommendations": "Book four weeks ahead",
    },
    "emotional_profile": {
        "core_motivations": ["rest", "culture"],
        "emotional_triggers": "sun and sea",
        "key_desires": "warm evenings",
        "psychological_benefits": "recharge",
    },
    "consolidated_insights": {"summary": "Strong autumn demand"},
    "travel_intelligence": {"best_months": ["October"]},
    "trend_analysis": {"seasonal_trends": "Autumn city breaks are growing"},
}


@pytest.fixture
def upstream_documents():
    return copy.deepcopy(UPSTREAM_DOCUMENTS)


@pytest.fixture
def data_collection(upstream_documents):
    return DataCollectionContext.from_sources(
        CAMPAIGN_ID, upstream_documents, collected_at=FIXED_NOW.isoformat()
    )


@pytest.fixture
def empty_data_collection():
    return DataCollectionContext.from_sources(CAMPAIGN_ID, {}, collected_at=FIXED_NOW.isoformat())


@pytest.fixture
def gateway():
    return InMemoryDocumentGateway()


class FlakyGateway(InMemoryDocumentGateway):
    """In-memory gateway whose writes fail for keys ending in any of ``failing``."""

    def __init__(self):
        super().__init__()
        self.failing = set()

    async def put(self, key, document):
        if any(key.endswith(suffix) for suffix in self.failing):
            raise PersistenceError(f"Failed to write {key}: disk full", key, "put")
        await super().put(key, document)


@pytest.fixture
def flaky_gateway():
    return FlakyGateway()


@pytest.fixture
def seed_upstream(gateway, upstream_documents):
    """Async helper writing upstream artifacts into the gateway."""

    async def seed(campaign_id=CAMPAIGN_ID, only=None, target=None):
        target = target or gateway
        for source in DATA_SOURCES:
            if only is not None and source.field_name not in only:
                continue
            await target.put(
                artifact_key(campaign_id, source.artifact),
                encode_document(upstream_documents[source.field_name]),
            )

    return seed


# =============================================================================
# RAW OUTPUT FIXTURES
# =============================================================================

@pytest.fixture
def raw_content():
    return {
        "campaign": {
            "name": "Barcelona Autumn Escape",
            "brand": "Kupibilet",
            "type": "promotional",
            "target_audience": "families",
        },
        "context_analysis": {
            "destination": "Barcelona",
            "seasonal_trends": "Mild autumn weather and fewer crowds",
        },
        "date_analysis": {
            "season": "autumn",
            "optimal_dates": ["2025-10-10", "2025-10-17", "2025-10-24"],
            "booking_recommendation": "Book four weeks ahead",
        },
        "pricing_analysis": {
            "best_price": 12500,
            "min_price": 12500,
            "max_price": 21000,
            "average_price": 16800,
            "currency": "rub",
            "offers_count": 14,
            "route": {"from": "Moscow", "to": "Barcelona", "from_code": "MOW", "to_code": "BCN"},
        },
        "asset_strategy": {
            "visual_style": "vibrant",
            "emotional_triggers": "adventure",
            "theme": "Mediterranean autumn getaway",
        },
        "generated_content": {
            "subject": "Barcelona from 12 500 RUB this autumn",
            "preheader": "Warm sea and fewer crowds in October",
            "body": (
                "Discover Barcelona in October: warm evenings, quiet beaches and "
                "flights from 12 500 RUB. Book by the end of September to lock in "
                "the best fares."
            ),
            "cta": {"primary": "Find flights", "secondary": "See dates"},
        },
    }


@pytest.fixture
def raw_design():
    return {
        "asset_manifest": {
            "images": [
                {"id": "hero", "path": "assets/hero.jpg", "alt_text": "Barcelona beach at sunset", "file_size": 120000},
                {"id": "sagrada", "path": "assets/sagrada.jpg", "alt_text": "Sagrada Familia", "file_size": 95000},
            ],
            "icons": [{"id": "plane", "path": "assets/plane.svg", "alt_text": "Plane"}],
            "fonts": [{"family": "Inter"}],
        },
        "mjml_template": {
            "source": "<mjml><mj-body><mj-text>Barcelona from 12 500 RUB</mj-text></mj-body></mjml>",
            "compiled_html": "<html><body><p>Barcelona from 12 500 RUB</p></body></html>",
        },
        "design_decisions": {"layout": "single-column"},
        "brand_application": {
            "primary_color": "#FF6B00",
            "secondary_color": "#1A1A2E",
            "accent_color": "#00B894",
            "logo": "assets/logo.svg",
        },
        "content_integration": {
            "subject": "Barcelona from 12 500 RUB this autumn",
            "pricing": {"best_price": 12500, "currency": "RUB"},
            "travel_dates": ["2025-10-10", "2025-10-17"],
            "destination": "Barcelona",
            "routes": [{"from": "MOW", "to": "BCN"}],
        },
        "asset_utilization": {"used_assets": ["hero", "sagrada", "plane"]},
        "preview_files": [{"type": "desktop", "path": "previews/desktop.png"}],
        "performance_metrics": {"optimization_score": 88},
    }


@pytest.fixture
def raw_quality():
    return {
        "quality_report": {
            "overall_score": 92,
            "approval_status": "approved",
            "recommendations": ["Ship it"],
        },
        "design_validation": {
            "layout_consistency": True,
            "visual_hierarchy": True,
            "typography_consistency": True,
        },
        "asset_validation": {"all_assets_resolved": True},
        "compliance_status": {
            "email_standards": "pass",
            "accessibility": True,
            "performance": True,
            "security": True,
            "brand_guidelines": True,
        },
    }


@pytest.fixture
def raw_delivery():
    return {
        "delivery_manifest": {"files": ["email.html", "email.mjml"]},
        "export_format": {"format": "zip", "compression": "standard"},
        "delivery_report": {
            "campaign_summary": "Barcelona autumn campaign packaged for deployment",
            "deployment_ready": True,
            "next_steps": ["Upload to the email service"],
        },
        "quality_preservation": {"score_carried": 92},
        "delivery_status": "ready",
    }


# =============================================================================
# CONTEXT FIXTURES
# =============================================================================

@pytest.fixture
def builder(settings, clock):
    return ContextBuilder(settings, clock)


@pytest.fixture
def content_context(builder, raw_content, data_collection):
    return builder.build(Stage.CONTENT, raw_content, data_collection)


@pytest.fixture
def design_context(builder, raw_design, content_context):
    return builder.build(Stage.DESIGN, raw_design, content_context)


@pytest.fixture
def quality_context(builder, raw_quality, design_context):
    return builder.build(Stage.QUALITY, raw_quality, design_context)


@pytest.fixture
def delivery_context(builder, raw_delivery, quality_context):
    return builder.build(Stage.DELIVERY, raw_delivery, quality_context)

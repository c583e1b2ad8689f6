"""
Seed schemas for stage contexts and handoff envelopes.

Schemas are JSON Schema draft 2020-12. Besides the standard keywords they
use ``x-recommended``: properties listed there may be absent (or null)
without blocking progression; their absence is reported as a
compatibility warning instead of an error.
"""

from typing import Any, Dict

DRAFT_2020_12 = "https://json-schema.org/draft/2020-12/schema"

NON_EMPTY_STRING = {"type": "string", "minLength": 1}
OPTIONAL_STRING = {"type": ["string", "null"]}
OPTIONAL_OBJECT = {"type": ["object", "null"]}
STRING_LIST = {"type": "array", "items": {"type": "string"}}
PRICE = {"type": "number", "minimum": 0}
SCORE = {"type": "number", "minimum": 0, "maximum": 100}
STAGE_ENUM = ["data_collection", "content", "design", "quality", "delivery"]


# =============================================================================
# DATA COLLECTION
# =============================================================================

_DESTINATION_ANALYSIS = {
    "type": ["object", "null"],
    "required": ["destination"],
    "properties": {
        "destination": NON_EMPTY_STRING,
    },
    "x-recommended": ["travel_experience_quality"],
}

_MARKET_INTELLIGENCE = {
    "type": ["object", "null"],
    "x-recommended": [
        "pricing_insights",
        "competitive_position",
        "demand_patterns",
        "booking_recommendations",
    ],
}

_EMOTIONAL_PROFILE = {
    "type": ["object", "null"],
    "x-recommended": [
        "core_motivations",
        "emotional_triggers",
        "key_desires",
        "psychological_benefits",
    ],
}

_COLLECTION_METADATA = {
    "type": "object",
    "required": [
        "campaign_id",
        "collection_timestamp",
        "data_sources",
        "collection_status",
        "data_quality_score",
    ],
    "properties": {
        "campaign_id": NON_EMPTY_STRING,
        "collection_timestamp": NON_EMPTY_STRING,
        "data_sources": STRING_LIST,
        "collection_status": {"enum": ["complete", "partial", "failed"]},
        "data_quality_score": {"type": "integer", "minimum": 0, "maximum": 100},
    },
}

_DATA_COLLECTION_CONTEXT = {
    "type": "object",
    "required": ["collection_metadata"],
    "properties": {
        "collection_metadata": _COLLECTION_METADATA,
        "destination_analysis": _DESTINATION_ANALYSIS,
        "market_intelligence": _MARKET_INTELLIGENCE,
        "emotional_profile": _EMOTIONAL_PROFILE,
        "consolidated_insights": OPTIONAL_OBJECT,
        "travel_intelligence": OPTIONAL_OBJECT,
        "trend_analysis": OPTIONAL_OBJECT,
    },
}

# Embedded form: null allowed, x-recommended still reported as warnings
_OPTIONAL_DATA_COLLECTION = {**_DATA_COLLECTION_CONTEXT, "type": ["object", "null"]}


# =============================================================================
# CONTENT
# =============================================================================

_CONTENT_CONTEXT = {
    "type": "object",
    "required": [
        "campaign_id",
        "campaign",
        "context_analysis",
        "date_analysis",
        "pricing_analysis",
        "asset_strategy",
        "generated_content",
        "technical_requirements",
    ],
    "properties": {
        "campaign_id": NON_EMPTY_STRING,
        "campaign": {
            "type": "object",
            "required": ["id", "name", "brand", "type", "language", "created_at", "status"],
            "properties": {
                "id": NON_EMPTY_STRING,
                "name": NON_EMPTY_STRING,
                "brand": NON_EMPTY_STRING,
                "type": {"enum": ["promotional", "transactional", "newsletter", "announcement"]},
                "target_audience": OPTIONAL_STRING,
                "language": NON_EMPTY_STRING,
                "created_at": NON_EMPTY_STRING,
                "status": {"enum": ["active", "draft", "completed", "archived"]},
                "campaign_path": OPTIONAL_STRING,
            },
        },
        "context_analysis": {
            "type": "object",
            "required": ["destination"],
            "properties": {
                "destination": NON_EMPTY_STRING,
                "seasonal_trends": OPTIONAL_STRING,
                "emotional_triggers": OPTIONAL_STRING,
                "market_positioning": OPTIONAL_STRING,
                "competitive_landscape": OPTIONAL_STRING,
                "price_sensitivity": OPTIONAL_STRING,
                "booking_patterns": OPTIONAL_STRING,
            },
            "x-recommended": [
                "seasonal_trends",
                "market_positioning",
                "competitive_landscape",
                "price_sensitivity",
                "booking_patterns",
            ],
        },
        "date_analysis": {
            "type": "object",
            "required": ["destination", "season", "optimal_dates", "current_date", "date_source"],
            "properties": {
                "destination": NON_EMPTY_STRING,
                "season": {"enum": ["spring", "summer", "autumn", "winter", "year-round"]},
                "optimal_dates": STRING_LIST,
                "pricing_windows": STRING_LIST,
                "booking_recommendation": OPTIONAL_STRING,
                "seasonal_factors": OPTIONAL_STRING,
                "current_date": NON_EMPTY_STRING,
                "date_source": {"enum": ["supplied", "generated_placeholder"]},
            },
        },
        "pricing_analysis": {
            "type": "object",
            "required": ["best_price", "min_price", "max_price", "average_price"],
            "properties": {
                "best_price": PRICE,
                "min_price": PRICE,
                "max_price": PRICE,
                "average_price": PRICE,
                "currency": OPTIONAL_STRING,
                "offers_count": {"type": "integer", "minimum": 0},
                "recommended_dates": STRING_LIST,
                "route": {
                    "type": ["object", "null"],
                    "properties": {
                        "from_city": OPTIONAL_STRING,
                        "to_city": OPTIONAL_STRING,
                        "from_code": OPTIONAL_STRING,
                        "to_code": OPTIONAL_STRING,
                    },
                },
                "missing_fields": STRING_LIST,
            },
        },
        "asset_strategy": {
            "type": "object",
            "required": ["visual_style", "emotional_triggers"],
            "properties": {
                "theme": OPTIONAL_STRING,
                "visual_style": {"enum": ["modern", "classic", "minimalist", "vibrant", "elegant"]},
                "color_palette": OPTIONAL_STRING,
                "typography": OPTIONAL_STRING,
                "image_concepts": STRING_LIST,
                "layout_hierarchy": OPTIONAL_STRING,
                "emotional_triggers": {
                    "enum": ["excitement", "trust", "urgency", "relaxation", "adventure"],
                },
                "brand_consistency": OPTIONAL_STRING,
            },
        },
        "generated_content": {
            "type": "object",
            "required": ["subject", "body", "cta", "personalization_level", "urgency_level"],
            "properties": {
                "subject": NON_EMPTY_STRING,
                "preheader": OPTIONAL_STRING,
                "body": NON_EMPTY_STRING,
                "cta": {
                    "type": "object",
                    "properties": {
                        "primary": OPTIONAL_STRING,
                        "secondary": OPTIONAL_STRING,
                    },
                },
                "personalization_level": {"enum": ["basic", "advanced", "premium"]},
                "urgency_level": {"enum": ["low", "medium", "high"]},
            },
        },
        "technical_requirements": {
            "type": "object",
            "required": ["max_width", "email_clients", "dark_mode_support", "accessibility_level"],
            "properties": {
                "max_width": NON_EMPTY_STRING,
                "email_clients": STRING_LIST,
                "dark_mode_support": {"type": "boolean"},
                "accessibility_level": {"enum": ["AA", "AAA"]},
            },
        },
        "data_collection_context": _OPTIONAL_DATA_COLLECTION,
        "defaults_applied": STRING_LIST,
    },
}


# =============================================================================
# DESIGN
# =============================================================================

_ASSET_ITEM = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "path": {"type": "string"},
        "alt_text": OPTIONAL_STRING,
        "file_size": {"type": "number", "minimum": 0},
    },
}

_DESIGN_CONTEXT = {
    "type": "object",
    "required": ["campaign_id", "content_context", "asset_manifest", "mjml_template"],
    "properties": {
        "campaign_id": NON_EMPTY_STRING,
        "content_context": _CONTENT_CONTEXT,
        "data_collection_context": _OPTIONAL_DATA_COLLECTION,
        "asset_manifest": {
            "type": "object",
            "required": ["images", "icons", "fonts"],
            "properties": {
                "images": {"type": "array", "items": _ASSET_ITEM},
                "icons": {"type": "array", "items": _ASSET_ITEM},
                "fonts": {"type": "array", "items": {"type": "object"}},
            },
        },
        "mjml_template": {
            "type": "object",
            "required": ["source", "compiled_html", "file_size", "validation_status"],
            "properties": {
                "source": NON_EMPTY_STRING,
                "compiled_html": NON_EMPTY_STRING,
                "inline_css": OPTIONAL_STRING,
                "file_size": {"type": "integer", "minimum": 0},
                "validation_status": {"enum": ["valid", "warnings", "errors"]},
                "validation_messages": STRING_LIST,
                "responsive_breakpoints": STRING_LIST,
            },
        },
        "design_decisions": {"type": "object"},
        "brand_application": {
            "type": "object",
            "properties": {
                "primary_color": OPTIONAL_STRING,
                "secondary_color": OPTIONAL_STRING,
                "accent_color": OPTIONAL_STRING,
                "logo": OPTIONAL_STRING,
            },
        },
        "content_integration": {"type": "object"},
        "asset_utilization": {
            "type": "object",
            "properties": {"used_assets": STRING_LIST},
        },
        "preview_files": {"type": "array", "items": {"type": "object"}},
        "performance_metrics": {
            "type": "object",
            "properties": {"optimization_score": SCORE},
        },
        "defaults_applied": STRING_LIST,
    },
}


# =============================================================================
# QUALITY
# =============================================================================

_OPTIONAL_BOOL = {"type": ["boolean", "null"]}

_QUALITY_CONTEXT = {
    "type": "object",
    "required": ["campaign_id", "design_context", "quality_report", "test_artifacts", "compliance_status"],
    "properties": {
        "campaign_id": NON_EMPTY_STRING,
        "design_context": _DESIGN_CONTEXT,
        "data_collection_context": _OPTIONAL_DATA_COLLECTION,
        "quality_report": {
            "type": "object",
            "required": ["overall_score", "approval_status"],
            "properties": {
                "overall_score": SCORE,
                "approval_status": {"enum": ["approved", "needs_revision", "rejected"]},
                "recommendations": {"type": "array"},
            },
        },
        "design_validation": OPTIONAL_OBJECT,
        "asset_validation": OPTIONAL_OBJECT,
        "test_artifacts": {
            "type": "object",
            "properties": {
                "screenshots": {"type": "array"},
                "validation_logs": {"type": "array"},
                "performance_reports": {"type": "array"},
            },
        },
        "compliance_status": {
            "type": "object",
            "properties": {
                "email_standards": _OPTIONAL_BOOL,
                "accessibility": _OPTIONAL_BOOL,
                "performance": _OPTIONAL_BOOL,
                "security": _OPTIONAL_BOOL,
                "brand_guidelines": _OPTIONAL_BOOL,
            },
        },
        "defaults_applied": STRING_LIST,
    },
}


# =============================================================================
# DELIVERY
# =============================================================================

_DELIVERY_CONTEXT = {
    "type": "object",
    "required": [
        "campaign_id",
        "quality_context",
        "delivery_manifest",
        "export_format",
        "delivery_report",
        "delivery_status",
        "delivery_timestamp",
    ],
    "properties": {
        "campaign_id": NON_EMPTY_STRING,
        "quality_context": _QUALITY_CONTEXT,
        "data_collection_context": _OPTIONAL_DATA_COLLECTION,
        "delivery_manifest": {"type": "object"},
        "export_format": {
            "type": "object",
            "required": ["format", "compression"],
            "properties": {
                "format": {"enum": ["zip", "tar", "folder"]},
                "compression": {"enum": ["none", "standard", "maximum"]},
                "export_path": OPTIONAL_STRING,
                "download_url": OPTIONAL_STRING,
            },
        },
        "delivery_report": {
            "type": "object",
            "properties": {
                "campaign_summary": OPTIONAL_STRING,
                "deployment_ready": {"type": ["boolean", "null"]},
                "next_steps": STRING_LIST,
            },
            "x-recommended": ["campaign_summary", "deployment_ready"],
        },
        "deployment_artifacts": {"type": "object"},
        "quality_preservation": OPTIONAL_OBJECT,
        "delivery_status": {"enum": ["packaging", "ready", "delivered", "error"]},
        "delivery_timestamp": NON_EMPTY_STRING,
        "defaults_applied": STRING_LIST,
    },
}


# =============================================================================
# HANDOFF ENVELOPE
# =============================================================================

_HANDOFF_ENVELOPE = {
    "type": "object",
    "required": [
        "handoff_id",
        "campaign_id",
        "created_at",
        "source_stage",
        "target_stage",
        "data_version",
        "payload",
    ],
    "properties": {
        "handoff_id": {"type": "string", "pattern": "^handoff_[0-9a-f]{32}$"},
        "campaign_id": NON_EMPTY_STRING,
        "created_at": NON_EMPTY_STRING,
        "source_stage": {"enum": STAGE_ENUM},
        "target_stage": {"enum": STAGE_ENUM},
        "data_version": {"type": "string", "pattern": r"^\d+\.\d+$"},
        "trace_id": OPTIONAL_STRING,
        "execution_time_ms": {"type": ["number", "null"], "minimum": 0},
        "payload": {"type": "object"},
    },
}


def _with_draft(schema: Dict[str, Any], schema_id: str, title: str) -> Dict[str, Any]:
    return {"$id": schema_id, "$schema": DRAFT_2020_12, "title": title, **schema}


SEED_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "data_collection_context": _with_draft(
        _DATA_COLLECTION_CONTEXT, "schema:DataCollectionContextV1", "Data Collection Context"
    ),
    "content_context": _with_draft(
        _CONTENT_CONTEXT, "schema:ContentContextV1", "Content Context"
    ),
    "design_context": _with_draft(
        _DESIGN_CONTEXT, "schema:DesignContextV1", "Design Context"
    ),
    "quality_context": _with_draft(
        _QUALITY_CONTEXT, "schema:QualityContextV1", "Quality Context"
    ),
    "delivery_context": _with_draft(
        _DELIVERY_CONTEXT, "schema:DeliveryContextV1", "Delivery Context"
    ),
    "handoff_envelope": _with_draft(
        _HANDOFF_ENVELOPE, "schema:HandoffEnvelopeV1", "Handoff Envelope"
    ),
}


def context_schema_key(stage) -> str:
    """Registry key for a stage's context schema."""
    return f"{getattr(stage, 'value', stage)}_context"

"""Tests for the schema registry."""

import pytest
from jsonschema.exceptions import SchemaError

from campaign_pipeline.domain.registry import (
    SEED_SCHEMAS,
    SchemaRegistry,
    ValidationOutcome,
    context_schema_key,
    format_path,
)
from campaign_pipeline.domain.stages import Stage


@pytest.fixture
def registry():
    return SchemaRegistry()


class TestSeedSchemas:
    """Tests for the built-in schemas."""

    def test_keys(self, registry):
        """Every stage and envelope schema is seeded."""
        assert registry.keys() == sorted([
            "content_context",
            "data_collection_context",
            "delivery_context",
            "design_context",
            "handoff_envelope",
            "quality_context",
        ])

    def test_context_schema_key(self):
        """context_schema_key() names the stage schema."""
        assert context_schema_key(Stage.CONTENT) == "content_context"
        assert context_schema_key("delivery") == "delivery_context"

    def test_get_returns_copy(self, registry):
        """get() returns a copy the caller may modify."""
        schema = registry.get("content_context")
        schema["required"].append("nonsense")
        assert "nonsense" not in registry.get("content_context")["required"]

    def test_unknown_key(self, registry):
        """get() raises KeyError for an unknown schema."""
        with pytest.raises(KeyError):
            registry.get("publishing_context")

    def test_register_rejects_malformed_schema(self, registry):
        """register() rejects an invalid JSON schema."""
        with pytest.raises(SchemaError):
            registry.register("broken", {"type": 12})


class TestValidate:
    """Tests for validation outcomes."""

    def test_built_contexts_are_valid(self, registry, content_context, delivery_context):
        """Built contexts validate against their schemas."""
        assert registry.validate(content_context.to_dict(), "content_context").ok
        assert registry.validate(delivery_context.to_dict(), "delivery_context").ok

    def test_missing_required_field_reports_its_path(self, registry, content_context):
        """A missing required field is reported with its path."""
        data = content_context.to_dict()
        del data["generated_content"]["subject"]
        outcome = registry.validate(data, "content_context")
        assert not outcome.ok
        assert [(e.path, e.keyword) for e in outcome.errors] == [
            ("generated_content.subject", "required"),
        ]

    def test_enum_violation(self, registry, content_context):
        """A value outside an enum is reported."""
        data = content_context.to_dict()
        data["date_analysis"]["season"] = "monsoon"
        outcome = registry.validate(data, "content_context")
        assert outcome.errors[0].path == "date_analysis.season"
        assert outcome.errors[0].keyword == "enum"

    def test_negative_price(self, registry, content_context):
        """A negative price fails validation."""
        data = content_context.to_dict()
        data["pricing_analysis"]["best_price"] = -1
        outcome = registry.validate(data, "content_context")
        assert "pricing_analysis.best_price" in [e.path for e in outcome.errors]

    def test_recommended_fields_are_warnings(self, registry, content_context):
        """x-recommended fields never block, they warn."""
        data = content_context.to_dict()
        data["context_analysis"]["competitive_landscape"] = None
        outcome = registry.validate(data, "content_context")
        assert outcome.ok
        assert "context_analysis.competitive_landscape" in [w.path for w in outcome.warnings]
        assert all(w.severity == "warning" for w in outcome.warnings)

    def test_shared_substring_is_not_optional(self, registry, content_context):
        """A required field sharing a name with an optional one still blocks."""
        data = content_context.to_dict()
        del data["date_analysis"]["destination"]
        outcome = registry.validate(data, "content_context")
        assert not outcome.ok
        assert outcome.errors[0].path == "date_analysis.destination"

    def test_nested_paths(self, registry, design_context):
        """Errors in nested contexts carry the full path."""
        data = design_context.to_dict()
        data["content_context"]["pricing_analysis"]["currency"] = 5
        outcome = registry.validate(data, "design_context")
        assert outcome.errors[0].path == "content_context.pricing_analysis.currency"


class TestValidationOutcome:
    """Tests for outcome helpers."""

    def test_prefixed_and_merge(self, registry):
        """prefixed() and merge() combine outcomes."""
        bad = registry.validate({}, "handoff_envelope").prefixed("envelope")
        merged = ValidationOutcome.merge(ValidationOutcome(ok=True), bad)
        assert not merged.ok
        assert all(e.path.startswith("envelope.") for e in merged.errors)

    def test_bool(self):
        """An outcome is truthy only when valid."""
        assert ValidationOutcome(ok=True)
        assert not ValidationOutcome(ok=False)


class TestFormatPath:
    def test_format_path(self):
        """format_path() joins keys and indexes."""
        assert format_path(["asset_manifest", "images", 0, "alt_text"]) == "asset_manifest.images[0].alt_text"
        assert format_path([]) == "$"


def test_seed_schemas_are_draft_2020_12():
    for schema in SEED_SCHEMAS.values():
        assert schema["$schema"].endswith("2020-12/schema")

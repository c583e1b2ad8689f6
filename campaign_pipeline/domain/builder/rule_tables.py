"""Per-stage field rule tables.

One ``SectionRules`` per context section. Sections are applied in table
order, so later sections may derive values from earlier ones through
``BuildEnv.resolved``.
"""

from typing import Optional, Tuple

from campaign_pipeline.domain.builder.normalizers import (
    candidate_dates,
    choice,
    ensure_dict_list,
    ensure_text,
    ensure_text_list,
    normalize_emotional_trigger,
    normalize_season,
    normalize_visual_style,
    parse_count,
    parse_price,
    parse_score,
    pricing_windows,
    to_optional_bool,
    Normalized,
)
from campaign_pipeline.domain.builder.rules import (
    BuildEnv,
    DefaultPolicy as P,
    Derived,
    FieldRule,
    SectionRules,
)
from campaign_pipeline.domain.contexts.content import (
    ACCESSIBILITY_LEVELS,
    CAMPAIGN_STATUSES,
    CAMPAIGN_TYPES,
    PERSONALIZATION_LEVELS,
    URGENCY_LEVELS,
)
from campaign_pipeline.domain.contexts.delivery import (
    COMPRESSION_LEVELS,
    EXPORT_FORMATS,
)
from campaign_pipeline.domain.contexts.design import TEMPLATE_VALIDATION_STATUSES
from campaign_pipeline.domain.contexts.quality import APPROVAL_STATUSES
from campaign_pipeline.observability.provenance import SourceType


def _text(value) -> Normalized:
    return ensure_text(value)


def _upper_text(value) -> Normalized:
    text = ensure_text(value).value
    return Normalized(text.upper() if text else None)


def _route(value) -> Normalized:
    """Accept ``{from, to, from_code, to_code}`` or the ``*_city`` spelling."""
    if not isinstance(value, dict):
        return Normalized(None, False)
    return Normalized({
        "from_city": ensure_text(value.get("from_city", value.get("from"))).value,
        "to_city": ensure_text(value.get("to_city", value.get("to"))).value,
        "from_code": ensure_text(value.get("from_code")).value,
        "to_code": ensure_text(value.get("to_code")).value,
    })


def _cta(value) -> Normalized:
    if isinstance(value, str):
        return Normalized({"primary": ensure_text(value).value, "secondary": None})
    if isinstance(value, dict):
        return Normalized({
            "primary": ensure_text(value.get("primary")).value,
            "secondary": ensure_text(value.get("secondary")).value,
        })
    return Normalized({"primary": None, "secondary": None}, False)


# =============================================================================
# Derivations
# =============================================================================

def _derive_destination(env: BuildEnv) -> Optional[Derived]:
    """Destination from other raw sections, then from the destination analysis."""
    date_dest = ensure_text(env.raw_section("date_analysis").get("destination")).value
    if date_dest:
        return date_dest, SourceType.RAW_OUTPUT, "raw.date_analysis.destination"

    route = _route(env.raw_section("pricing_analysis").get("route")).value or {}
    if route.get("to_city"):
        return route["to_city"], SourceType.RAW_OUTPUT, "raw.pricing_analysis.route.to_city"

    upstream = ensure_text(env.upstream("destination_analysis").get("destination")).value
    if upstream:
        return upstream, SourceType.UPSTREAM_ARTIFACT, "destination-analysis.destination"
    return None


def _from_upstream(source_field: str, artifact: str, *keys: str):
    def derive(env: BuildEnv) -> Optional[Derived]:
        document = env.upstream(source_field)
        for key in keys:
            value = ensure_text(document.get(key)).value
            if value:
                return value, SourceType.UPSTREAM_ARTIFACT, f"{artifact}.{key}"
        return None
    return derive


def _from_resolved(path: str, source_type: SourceType = SourceType.RAW_OUTPUT):
    def derive(env: BuildEnv) -> Optional[Derived]:
        if path in env.resolved and env.resolved[path] is not None:
            return env.resolved[path], source_type, path
        return None
    return derive


def _derive_recommended_dates(env: BuildEnv) -> Optional[Derived]:
    if "date_analysis.optimal_dates" in env.defaulted:
        return None
    dates = env.resolved.get("date_analysis.optimal_dates") or []
    if dates:
        return list(dates[:2]), SourceType.RAW_OUTPUT, "date_analysis.optimal_dates"
    return None


def _derive_file_size(env: BuildEnv) -> Optional[Derived]:
    html = env.resolved.get("mjml_template.compiled_html")
    if html is None:
        return None
    return len(html.encode("utf-8")), SourceType.STRUCTURAL_DEFAULT, "len(compiled_html)"


def _candidate_optimal_dates(env: BuildEnv):
    return candidate_dates(env.now, env.settings.candidate_date_months)[:3]


def _candidate_recommended_dates(env: BuildEnv):
    return candidate_dates(env.now, env.settings.candidate_date_months)[:2]


# =============================================================================
# CONTENT
# =============================================================================

CONTENT_RULES: Tuple[SectionRules, ...] = (
    SectionRules("campaign", (
        FieldRule("id", P.STRUCTURAL, _text, default=lambda env: env.campaign_id,
                  sources=("id", "campaign_id")),
        FieldRule("name", P.STRUCTURAL, _text, default=lambda env: f"Campaign {env.campaign_id}"),
        FieldRule("brand", P.STRUCTURAL, _text, default=lambda env: env.settings.default_brand),
        FieldRule("type", P.STRUCTURAL, choice(CAMPAIGN_TYPES, "promotional"), default="promotional"),
        FieldRule("target_audience", P.OPTIONAL, _text),
        FieldRule("language", P.STRUCTURAL, _text, default=lambda env: env.settings.default_language),
        FieldRule("created_at", P.STRUCTURAL, _text, default=lambda env: env.now.isoformat()),
        FieldRule("status", P.STRUCTURAL, choice(CAMPAIGN_STATUSES, "active"), default="active"),
        FieldRule("campaign_path", P.OPTIONAL, _text),
    )),
    SectionRules("context_analysis", (
        FieldRule("destination", P.REQUIRED, _text, derive=_derive_destination),
        FieldRule("seasonal_trends", P.OPTIONAL, _text,
                  derive=_from_upstream("trend_analysis", "trend-analysis", "seasonal_trends")),
        FieldRule("emotional_triggers", P.OPTIONAL, _text,
                  derive=_from_upstream("emotional_profile", "emotional-profile", "emotional_triggers")),
        FieldRule("market_positioning", P.OPTIONAL, _text,
                  derive=_from_upstream("market_intelligence", "market-intelligence", "competitive_position")),
        FieldRule("competitive_landscape", P.OPTIONAL, _text,
                  derive=_from_upstream("market_intelligence", "market-intelligence", "competitive_landscape")),
        FieldRule("price_sensitivity", P.OPTIONAL, _text,
                  derive=_from_upstream("market_intelligence", "market-intelligence", "pricing_insights")),
        FieldRule("booking_patterns", P.OPTIONAL, _text,
                  derive=_from_upstream("market_intelligence", "market-intelligence",
                                        "demand_patterns", "booking_recommendations")),
    )),
    SectionRules("date_analysis", (
        FieldRule("destination", P.STRUCTURAL, _text, derive=_from_resolved("context_analysis.destination")),
        FieldRule("season", P.STRUCTURAL, normalize_season, default="year-round"),
        FieldRule("optimal_dates", P.PLACEHOLDER, ensure_text_list, default=_candidate_optimal_dates),
        FieldRule("pricing_windows", P.PLACEHOLDER, ensure_text_list,
                  default=lambda env: pricing_windows(env.now)),
        FieldRule("booking_recommendation", P.OPTIONAL, _text),
        FieldRule("seasonal_factors", P.OPTIONAL, _text),
        FieldRule("current_date", P.STRUCTURAL, _text, default=lambda env: env.now.date().isoformat()),
    )),
    SectionRules("pricing_analysis", (
        FieldRule("best_price", P.REQUIRED, parse_price, flag_unparsed=True),
        FieldRule("min_price", P.STRUCTURAL, parse_price, default=0.0, flag_unparsed=True,
                  derive=_from_resolved("pricing_analysis.best_price", SourceType.STRUCTURAL_DEFAULT)),
        FieldRule("max_price", P.STRUCTURAL, parse_price, default=0.0, flag_unparsed=True,
                  derive=_from_resolved("pricing_analysis.best_price", SourceType.STRUCTURAL_DEFAULT)),
        FieldRule("average_price", P.STRUCTURAL, parse_price, default=0.0, flag_unparsed=True,
                  derive=_from_resolved("pricing_analysis.best_price", SourceType.STRUCTURAL_DEFAULT)),
        FieldRule("currency", P.OPTIONAL, _upper_text),
        FieldRule("offers_count", P.STRUCTURAL, parse_count, default=0),
        FieldRule("recommended_dates", P.PLACEHOLDER, ensure_text_list,
                  default=_candidate_recommended_dates, derive=_derive_recommended_dates),
        FieldRule("route", P.OPTIONAL, _route),
    ), required=True),
    SectionRules("asset_strategy", (
        FieldRule("visual_style", P.STRUCTURAL, normalize_visual_style, default="modern"),
        FieldRule("emotional_triggers", P.STRUCTURAL, normalize_emotional_trigger, default="excitement",
                  sources=("emotional_triggers", "emotional_trigger")),
        FieldRule("theme", P.OPTIONAL, _text),
        FieldRule("color_palette", P.OPTIONAL, _text),
        FieldRule("typography", P.OPTIONAL, _text),
        FieldRule("image_concepts", P.OPTIONAL, ensure_text_list, default=[]),
        FieldRule("layout_hierarchy", P.OPTIONAL, _text),
        FieldRule("brand_consistency", P.OPTIONAL, _text),
    )),
    SectionRules("generated_content", (
        FieldRule("subject", P.REQUIRED, _text, sources=("subject", "subject_line")),
        FieldRule("body", P.REQUIRED, _text, sources=("body", "body_text")),
        FieldRule("preheader", P.OPTIONAL, _text),
        FieldRule("cta", P.OPTIONAL, _cta, default={"primary": None, "secondary": None}),
        FieldRule("personalization_level", P.STRUCTURAL,
                  choice(PERSONALIZATION_LEVELS, "advanced"), default="advanced"),
        FieldRule("urgency_level", P.STRUCTURAL, choice(URGENCY_LEVELS, "medium"), default="medium"),
    ), required=True),
    SectionRules("technical_requirements", (
        FieldRule("max_width", P.STRUCTURAL, _text, default="600px"),
        FieldRule("email_clients", P.STRUCTURAL, ensure_text_list,
                  default=["gmail", "outlook", "apple_mail"]),
        FieldRule("dark_mode_support", P.STRUCTURAL, to_optional_bool, default=True),
        FieldRule("accessibility_level", P.STRUCTURAL, choice(ACCESSIBILITY_LEVELS, "AA"), default="AA"),
    )),
)


# =============================================================================
# DESIGN
# =============================================================================

DESIGN_RULES: Tuple[SectionRules, ...] = (
    SectionRules("asset_manifest", (
        FieldRule("images", P.OPTIONAL, ensure_dict_list, default=[]),
        FieldRule("icons", P.OPTIONAL, ensure_dict_list, default=[]),
        FieldRule("fonts", P.OPTIONAL, ensure_dict_list, default=[]),
    ), required=True),
    SectionRules("mjml_template", (
        FieldRule("source", P.REQUIRED, _text, sources=("source", "mjml_source", "mjml")),
        FieldRule("compiled_html", P.REQUIRED, _text, sources=("compiled_html", "html")),
        FieldRule("inline_css", P.OPTIONAL, _text),
        FieldRule("file_size", P.STRUCTURAL, parse_count, default=0, derive=_derive_file_size),
        FieldRule("validation_status", P.STRUCTURAL,
                  choice(TEMPLATE_VALIDATION_STATUSES, "valid"), default="valid"),
        FieldRule("validation_messages", P.OPTIONAL, ensure_text_list, default=[]),
        FieldRule("responsive_breakpoints", P.OPTIONAL, ensure_text_list, default=[]),
    ), required=True),
    SectionRules("design_decisions", passthrough=True),
    SectionRules("brand_application", (
        FieldRule("primary_color", P.OPTIONAL, _text),
        FieldRule("secondary_color", P.OPTIONAL, _text),
        FieldRule("accent_color", P.OPTIONAL, _text),
        FieldRule("logo", P.OPTIONAL, _text),
    )),
    SectionRules("content_integration", (
        FieldRule("subject", P.OPTIONAL, _text),
        FieldRule("pricing", P.OPTIONAL),
        FieldRule("travel_dates", P.OPTIONAL),
        FieldRule("destination", P.OPTIONAL, _text),
        FieldRule("routes", P.OPTIONAL),
    )),
    SectionRules("asset_utilization", (
        FieldRule("used_assets", P.OPTIONAL, ensure_text_list, default=[]),
    )),
    SectionRules("performance_metrics", passthrough=True),
)


# =============================================================================
# QUALITY
# =============================================================================

QUALITY_RULES: Tuple[SectionRules, ...] = (
    SectionRules("quality_report", (
        FieldRule("overall_score", P.REQUIRED, parse_score, sources=("overall_score", "score")),
        FieldRule("approval_status", P.REQUIRED, choice(APPROVAL_STATUSES)),
        FieldRule("recommendations", P.OPTIONAL, ensure_text_list, default=[]),
    ), required=True, passthrough=True),
    SectionRules("test_artifacts", (
        FieldRule("screenshots", P.OPTIONAL, default=[]),
        FieldRule("validation_logs", P.OPTIONAL, default=[]),
        FieldRule("performance_reports", P.OPTIONAL, default=[]),
    )),
    SectionRules("compliance_status", (
        FieldRule("email_standards", P.OPTIONAL, to_optional_bool),
        FieldRule("accessibility", P.OPTIONAL, to_optional_bool),
        FieldRule("performance", P.OPTIONAL, to_optional_bool),
        FieldRule("security", P.OPTIONAL, to_optional_bool),
        FieldRule("brand_guidelines", P.OPTIONAL, to_optional_bool),
    )),
)


# =============================================================================
# DELIVERY
# =============================================================================

DELIVERY_RULES: Tuple[SectionRules, ...] = (
    SectionRules("delivery_manifest", required=True, passthrough=True),
    SectionRules("delivery_report", (
        FieldRule("campaign_summary", P.OPTIONAL, _text),
        FieldRule("deployment_ready", P.OPTIONAL, to_optional_bool),
        FieldRule("next_steps", P.OPTIONAL, ensure_text_list, default=[]),
    ), required=True, passthrough=True),
    SectionRules("export_format", (
        FieldRule("format", P.STRUCTURAL, choice(EXPORT_FORMATS, "zip"), default="zip"),
        FieldRule("compression", P.STRUCTURAL, choice(COMPRESSION_LEVELS, "standard"), default="standard"),
        FieldRule("export_path", P.OPTIONAL, _text),
        FieldRule("download_url", P.OPTIONAL, _text),
    )),
    SectionRules("deployment_artifacts", passthrough=True),
)

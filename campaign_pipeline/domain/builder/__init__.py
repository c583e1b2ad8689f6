"""Context builder: raw stage outputs to typed stage contexts."""

from campaign_pipeline.domain.builder.context_builder import ContextBuilder
from campaign_pipeline.domain.builder.data_collection import load_data_collection
from campaign_pipeline.domain.builder.rules import (
    BuildEnv,
    DefaultPolicy,
    FieldRule,
    SectionResult,
    SectionRules,
    apply_section,
)

__all__ = [
    "ContextBuilder",
    "load_data_collection",
    "BuildEnv",
    "DefaultPolicy",
    "FieldRule",
    "SectionResult",
    "SectionRules",
    "apply_section",
]

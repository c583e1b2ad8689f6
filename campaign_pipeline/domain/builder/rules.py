"""Declarative field rules and the engine that applies them.

A rule says, for one target field: which raw keys feed it, how the raw
value is normalized, and what happens when nothing usable was supplied
(the default policy). Business values are never invented: only
``structural`` and ``placeholder`` policies fill gaps, and every fill is
recorded in ``defaults_applied`` and in the provenance log.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from campaign_pipeline.domain.builder.normalizers import Normalized, is_blank
from campaign_pipeline.domain.contexts.data_collection import DataCollectionContext
from campaign_pipeline.observability.provenance import (
    FieldStatus,
    ProvenanceLog,
    SourceType,
    preview,
)
from campaign_pipeline.settings import Settings


class DefaultPolicy(str, Enum):
    """What to do when a field has no usable raw value."""
    REQUIRED = "required"        # collect as missing; the build fails
    STRUCTURAL = "structural"    # formatting default, logged and tagged
    PLACEHOLDER = "placeholder"  # generated stand-in for missing input, tagged
    OPTIONAL = "optional"        # leave empty


@dataclass
class BuildEnv:
    """Inputs shared by all rules of one build."""

    campaign_id: str
    now: datetime
    settings: Settings
    raw: Any = None
    data_collection: Optional[DataCollectionContext] = None
    resolved: Dict[str, Any] = field(default_factory=dict)
    defaulted: Set[str] = field(default_factory=set)

    def raw_section(self, name: str) -> Dict[str, Any]:
        section = getattr(self.raw, name, None)
        return section if isinstance(section, dict) else {}

    def upstream(self, source_field: str) -> Dict[str, Any]:
        if self.data_collection is None:
            return {}
        document = getattr(self.data_collection, source_field, None)
        return document if isinstance(document, dict) else {}


# value, source type, source location
Derived = Tuple[Any, SourceType, str]


@dataclass(frozen=True)
class FieldRule:
    name: str
    policy: DefaultPolicy
    normalizer: Optional[Callable[[Any], Normalized]] = None
    default: Any = None
    sources: Tuple[str, ...] = ()
    derive: Optional[Callable[[BuildEnv], Optional[Derived]]] = None
    # Unparsable raw values are coerced and reported as missing data
    flag_unparsed: bool = False

    @property
    def raw_keys(self) -> Tuple[str, ...]:
        return self.sources or (self.name,)


@dataclass(frozen=True)
class SectionRules:
    section: str
    rules: Tuple[FieldRule, ...] = ()
    required: bool = False
    # Keep raw keys that have no rule (free-form report sections)
    passthrough: bool = False


@dataclass
class SectionResult:
    values: Dict[str, Any]
    missing: List[str] = field(default_factory=list)
    defaulted: List[str] = field(default_factory=list)
    unparsed: List[str] = field(default_factory=list)


def _resolve_default(default: Any, env: BuildEnv) -> Any:
    if callable(default):
        return default(env)
    return copy.deepcopy(default)


def _first_supplied(raw: Mapping[str, Any], keys: Tuple[str, ...]) -> Tuple[Optional[str], Any]:
    for key in keys:
        value = raw.get(key)
        if not is_blank(value):
            return key, value
    return None, None


def apply_section(
    rules: SectionRules,
    raw: Optional[Mapping[str, Any]],
    env: BuildEnv,
    sink: ProvenanceLog,
) -> SectionResult:
    """Apply one section's rules to its raw mapping."""
    section = rules.section
    if raw is None:
        if rules.required:
            sink.record_source(
                section, SourceType.RAW_OUTPUT, f"raw.{section}",
                status=FieldStatus.MISSING, confidence=0,
            )
            return SectionResult(values={}, missing=[section])
        raw = {}

    result = SectionResult(values=dict(raw) if rules.passthrough else {})

    for rule in rules.rules:
        path = f"{section}.{rule.name}"
        raw_key, raw_value = _first_supplied(raw, rule.raw_keys)

        if raw_key is not None:
            location = f"raw.{section}.{raw_key}"
            normalized = rule.normalizer(raw_value) if rule.normalizer else Normalized(raw_value)

            if normalized.matched and normalized.value is not None:
                sink.record_source(path, SourceType.RAW_OUTPUT, location, normalized.value)
            elif rule.policy is DefaultPolicy.REQUIRED and normalized.value is None:
                sink.record_source(
                    path, SourceType.RAW_OUTPUT, location, raw_value,
                    confidence=0, status=FieldStatus.ERROR,
                )
                result.missing.append(path)
                continue
            elif not normalized.matched:
                result.unparsed.append(rule.name)
                result.defaulted.append(path)
                sink.record_source(
                    path,
                    SourceType.COERCED if rule.flag_unparsed else SourceType.STRUCTURAL_DEFAULT,
                    f"{location} (unrecognized {preview(raw_value)!r})",
                    normalized.value,
                    status=FieldStatus.MISSING if rule.flag_unparsed else FieldStatus.DEFAULTED,
                )
            result.values[rule.name] = normalized.value
            env.resolved[path] = normalized.value
            continue

        derived = rule.derive(env) if rule.derive else None
        if derived is not None:
            value, source_type, location = derived
            if rule.normalizer:
                value = rule.normalizer(value).value
            if source_type in (SourceType.STRUCTURAL_DEFAULT, SourceType.GENERATED_PLACEHOLDER):
                result.defaulted.append(path)
                status = FieldStatus.DEFAULTED
            else:
                status = FieldStatus.VALID
            sink.record_source(path, source_type, location, value, status=status)
            result.values[rule.name] = value
            env.resolved[path] = value
            continue

        if rule.policy is DefaultPolicy.REQUIRED:
            sink.record_source(
                path, SourceType.RAW_OUTPUT, f"raw.{section}",
                confidence=0, status=FieldStatus.MISSING,
            )
            result.missing.append(path)
            continue

        value = _resolve_default(rule.default, env)
        if rule.policy is DefaultPolicy.STRUCTURAL:
            result.defaulted.append(path)
            sink.record_source(
                path, SourceType.STRUCTURAL_DEFAULT, "builder default", value,
                status=FieldStatus.DEFAULTED,
            )
        elif rule.policy is DefaultPolicy.PLACEHOLDER:
            result.defaulted.append(path)
            sink.record_source(
                path, SourceType.GENERATED_PLACEHOLDER, "builder placeholder", value,
                status=FieldStatus.DEFAULTED,
            )
        result.values[rule.name] = value
        env.resolved[path] = value

    env.defaulted.update(result.defaulted)
    return result

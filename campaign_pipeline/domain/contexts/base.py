"""Serialization helpers shared by the stage context types."""

from dataclasses import fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def dump_value(value: Any) -> Any:
    """Convert a field value into its JSON-compatible form."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [dump_value(v) for v in value]
    if isinstance(value, dict):
        return {k: dump_value(v) for k, v in value.items()}
    return value


class SectionMixin:
    """to_dict/from_dict for flat sections whose fields are JSON values.

    Sections with nested dataclasses override ``from_dict`` for those fields.
    """

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: dump_value(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        data = data or {}
        return cls(**{f.name: data[f.name] for f in fields(cls) if f.name in data})

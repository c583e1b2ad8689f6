"""Schema registry - structural contracts for contexts and envelopes.

Validation is mechanical only: required fields, types, enum domains and
numeric bounds. Cross-field judgments belong to the consistency checker.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import jsonschema
from jsonschema import validators
from jsonschema.exceptions import ValidationError as SchemaValidationError

from campaign_pipeline.domain.registry.seed_schemas import SEED_SCHEMAS

logger = logging.getLogger(__name__)

RECOMMENDED_KEYWORD = "x-recommended"


def format_path(parts: Iterable[Any]) -> str:
    """Render a jsonschema path deque as ``a.b[0].c`` ("$" for the root)."""
    rendered = ""
    for part in parts:
        if isinstance(part, int):
            rendered += f"[{part}]"
        elif rendered:
            rendered += f".{part}"
        else:
            rendered = str(part)
    return rendered or "$"


def _recommended(validator, recommended, instance, schema):
    """``x-recommended`` keyword: report absent or null properties."""
    if not validator.is_type(instance, "object"):
        return
    for name in recommended:
        if instance.get(name) is None:
            yield SchemaValidationError(
                f"'{name}' is recommended but absent",
                path=[name],
            )


def _required(validator, required, instance, schema):
    """``required`` keyword reporting the missing property in the error path."""
    if not validator.is_type(instance, "object"):
        return
    for name in required:
        if name not in instance:
            yield SchemaValidationError(
                f"'{name}' is a required property",
                path=[name],
            )


CompatValidator = validators.extend(
    jsonschema.Draft202012Validator,
    validators={
        "required": _required,
        RECOMMENDED_KEYWORD: _recommended,
    },
)


@dataclass(frozen=True)
class SchemaIssue:
    """A single schema finding."""

    path: str
    message: str
    keyword: str
    severity: str  # "error" or "warning"

    def __str__(self) -> str:
        return f"[{self.keyword}] {self.path}: {self.message}"


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one payload against one schema."""

    ok: bool
    errors: List[SchemaIssue] = field(default_factory=list)
    warnings: List[SchemaIssue] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.ok

    def prefixed(self, prefix: str) -> "ValidationOutcome":
        """Copy with every path nested under ``prefix``."""
        def move(issue: SchemaIssue) -> SchemaIssue:
            path = prefix if issue.path == "$" else f"{prefix}.{issue.path}"
            return SchemaIssue(path, issue.message, issue.keyword, issue.severity)
        return ValidationOutcome(
            ok=self.ok,
            errors=[move(e) for e in self.errors],
            warnings=[move(w) for w in self.warnings],
        )

    @classmethod
    def merge(cls, *outcomes: "ValidationOutcome") -> "ValidationOutcome":
        errors: List[SchemaIssue] = []
        warnings: List[SchemaIssue] = []
        for outcome in outcomes:
            errors.extend(outcome.errors)
            warnings.extend(outcome.warnings)
        return cls(ok=not errors, errors=errors, warnings=warnings)


class SchemaRegistry:
    """Registry of JSON schemas keyed by name.

    Usage:
        registry = SchemaRegistry()
        outcome = registry.validate(context.to_dict(), "content_context")
        if not outcome.ok:
            for error in outcome.errors:
                print(error)
    """

    def __init__(self, schemas: Optional[Dict[str, Dict[str, Any]]] = None):
        self._schemas: Dict[str, Dict[str, Any]] = {}
        self._validators: Dict[str, Any] = {}
        for key, schema in (schemas if schemas is not None else SEED_SCHEMAS).items():
            self.register(key, schema)

    def register(self, key: str, schema: Dict[str, Any]) -> None:
        """Register (or replace) a schema after checking it is well-formed."""
        CompatValidator.check_schema(schema)
        self._schemas[key] = copy.deepcopy(schema)
        self._validators[key] = CompatValidator(self._schemas[key])
        logger.debug(f"Registered schema {key}")

    def keys(self) -> List[str]:
        return sorted(self._schemas)

    def get(self, key: str) -> Dict[str, Any]:
        """Return a copy of a registered schema. Raises KeyError if unknown."""
        return copy.deepcopy(self._schemas[key])

    def validate(self, payload: Any, schema_key: str) -> ValidationOutcome:
        """Validate payload; standard keywords are errors, x-recommended warnings."""
        validator = self._validators[schema_key]

        errors: List[SchemaIssue] = []
        warnings: List[SchemaIssue] = []
        for error in validator.iter_errors(payload):
            keyword = str(error.validator)
            issue = SchemaIssue(
                path=format_path(error.absolute_path),
                message=error.message,
                keyword=keyword,
                severity="warning" if keyword == RECOMMENDED_KEYWORD else "error",
            )
            if issue.severity == "warning":
                warnings.append(issue)
            else:
                errors.append(issue)

        errors.sort(key=lambda i: (i.path, i.keyword, i.message))
        warnings.sort(key=lambda i: (i.path, i.message))
        return ValidationOutcome(ok=not errors, errors=errors, warnings=warnings)

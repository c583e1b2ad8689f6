"""Pipeline error taxonomy.

Every blocking error carries the field paths and reasons that caused it,
as a list of ``{"path": ..., "message": ...}`` entries.
"""

from typing import Any, Dict, Iterable, List, Optional


def _normalize_errors(errors: Optional[Iterable[Any]]) -> List[Dict[str, str]]:
    """Accept dicts or objects exposing ``path``/``message`` attributes."""
    normalized = []
    for error in errors or []:
        if isinstance(error, dict):
            normalized.append({
                "path": str(error.get("path", "")),
                "message": str(error.get("message", "")),
            })
        else:
            normalized.append({
                "path": str(getattr(error, "path", "")),
                "message": str(getattr(error, "message", error)),
            })
    return normalized


class PipelineError(Exception):
    """Base class for pipeline errors."""

    error_code = "PIPELINE_ERROR"

    def __init__(self, message: str, errors: Optional[Iterable[Any]] = None):
        self.message = message
        self.errors = _normalize_errors(errors)
        super().__init__(self._render())

    def _render(self) -> str:
        if not self.errors:
            return self.message
        details = "; ".join(
            f"{e['path']}: {e['message']}" if e["path"] else e["message"]
            for e in self.errors
        )
        return f"{self.message} ({details})"

    @property
    def paths(self) -> List[str]:
        return [e["path"] for e in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.errors:
            result["errors"] = self.errors
        return result


class StructuralValidationError(PipelineError):
    """Schema contract violated: field missing, wrong type, enum out of domain."""

    error_code = "STRUCTURAL_VALIDATION_ERROR"


class ConsistencyError(PipelineError):
    """Blocking cross-field or dependency violation."""

    error_code = "CONSISTENCY_ERROR"


class OrderingError(PipelineError):
    """Attempted stage advance out of sequence."""

    error_code = "ORDERING_ERROR"

    def __init__(self, current: Any, attempted: Any, expected: Any = None):
        self.current = current
        self.attempted = attempted
        self.expected = expected
        current_value = getattr(current, "value", current)
        attempted_value = getattr(attempted, "value", attempted)
        expected_value = getattr(expected, "value", expected)
        if expected is None:
            reason = f"stage '{current_value}' has no successor"
        else:
            reason = f"expected '{expected_value}'"
        super().__init__(
            f"Cannot advance from '{current_value}' to '{attempted_value}'",
            [{"path": "current_stage", "message": reason}],
        )

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["current"] = getattr(self.current, "value", self.current)
        result["attempted"] = getattr(self.attempted, "value", self.attempted)
        return result


class PersistenceError(PipelineError):
    """Underlying document read/write failed."""

    error_code = "PERSISTENCE_ERROR"

    def __init__(self, message: str, key: str, operation: str):
        self.key = key
        self.operation = operation
        super().__init__(message, [{"path": key, "message": f"{operation} failed"}])


class BuilderInputError(PipelineError):
    """Required raw input absent; the context cannot be built."""

    error_code = "BUILDER_INPUT_ERROR"

    def __init__(self, stage: Any, message: str, errors: Optional[Iterable[Any]] = None):
        self.stage = stage
        super().__init__(message, errors)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["stage"] = getattr(self.stage, "value", self.stage)
        return result

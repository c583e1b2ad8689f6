"""Data classes for checker findings and validation results."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from campaign_pipeline.domain.stages import Stage

CRITICAL = "critical"
SOFT = "soft"

# Finding categories
VIOLATION = "violation"      # placeholder / template / generic text
CONSISTENCY = "consistency"  # cross-field or dependency problem
WARNING = "warning"          # advisory


@dataclass(frozen=True)
class Finding:
    """A single checker finding.

    Attributes:
        rule: Rule name from the penalty table (e.g. zero_pricing)
        path: Dotted field path the finding is about
        message: Human-readable description
        severity: "critical" blocks completeness, "soft" is advisory
        penalty: Points subtracted from the quality score
        category: violation, consistency or warning
    """
    rule: str
    path: str
    message: str
    severity: Literal["critical", "soft"]
    penalty: int
    category: str = WARNING

    def nested(self, prefix: str) -> "Finding":
        """Copy with ``path`` moved under ``prefix``."""
        return Finding(
            rule=self.rule,
            path=f"{prefix}.{self.path}" if self.path else prefix,
            message=self.message,
            severity=self.severity,
            penalty=self.penalty,
            category=self.category,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule,
            "path": self.path,
            "message": self.message,
            "severity": self.severity,
            "penalty": self.penalty,
            "category": self.category,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Result of checking one stage context.

    Attributes:
        stage: Stage the context belongs to
        is_complete: No missing fields or dependencies, no violations, no
            consistency issues, and the quality gate (if any) passed
        quality_score: 0-100
        missing_fields: Paths of required fields/sections that are absent
        missing_dependencies: Names of required upstream artifacts not found
        warnings: Advisory messages
        placeholder_violations: Placeholder/template/generic text findings
        consistency_issues: Blocking cross-field findings
        soft_findings: Advisory findings behind ``warnings``
    """
    stage: Stage
    is_complete: bool
    quality_score: int
    missing_fields: List[str] = field(default_factory=list)
    missing_dependencies: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    placeholder_violations: List[Finding] = field(default_factory=list)
    consistency_issues: List[Finding] = field(default_factory=list)
    soft_findings: List[Finding] = field(default_factory=list)
    quality_gate: Optional[int] = None

    @property
    def blocking_findings(self) -> List[Finding]:
        return list(self.placeholder_violations) + list(self.consistency_issues)

    def blocking_errors(self) -> List[Dict[str, str]]:
        """Every reason the context is incomplete, as path/message entries."""
        errors = [{"path": p, "message": "required field missing"} for p in self.missing_fields]
        errors.extend(
            {"path": name, "message": "required upstream artifact missing"}
            for name in self.missing_dependencies
        )
        errors.extend({"path": f.path, "message": f.message} for f in self.blocking_findings)
        if self.quality_gate is not None and self.quality_score < self.quality_gate:
            errors.append({
                "path": "quality_score",
                "message": f"{self.quality_score} is below the quality gate {self.quality_gate}",
            })
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.value,
            "is_complete": self.is_complete,
            "quality_score": self.quality_score,
            "missing_fields": list(self.missing_fields),
            "missing_dependencies": list(self.missing_dependencies),
            "warnings": list(self.warnings),
            "placeholder_violations": [f.to_dict() for f in self.placeholder_violations],
            "consistency_issues": [f.to_dict() for f in self.consistency_issues],
            "soft_findings": [f.to_dict() for f in self.soft_findings],
        }

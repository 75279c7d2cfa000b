"""
Validation result models.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    severity: str
    code: str
    message: str
    node_id: Optional[str] = None
    category: str = "structure"
    hint: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationReport:
    """Summary used by editors: block save on errors, confirm save on warnings."""

    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == WARNING]

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == ERROR for issue in self.issues)

    @property
    def can_save(self) -> bool:
        return not self.has_errors

    @property
    def needs_confirmation(self) -> bool:
        return not self.has_errors and bool(self.warnings)

    def summary(self) -> Dict[str, int]:
        return {"errors": len(self.errors), "warnings": len(self.warnings)}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": not self.has_errors,
            "can_save": self.can_save,
            "needs_confirmation": self.needs_confirmation,
            "summary": self.summary(),
            "issues": [issue.to_dict() for issue in self.issues],
        }

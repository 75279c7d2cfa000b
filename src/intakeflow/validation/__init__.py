"""
Flow validation subsystem.
"""

from .models import ERROR, WARNING, ValidationIssue, ValidationReport
from .registry import IssueDefinition, all_definitions, create_issue, get_definition
from .validator import has_errors, reachable_node_ids, validate, validate_report

__all__ = [
    "ERROR",
    "WARNING",
    "IssueDefinition",
    "ValidationIssue",
    "ValidationReport",
    "all_definitions",
    "create_issue",
    "get_definition",
    "has_errors",
    "reachable_node_ids",
    "validate",
    "validate_report",
]

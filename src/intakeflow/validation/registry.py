from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .models import ValidationIssue


@dataclass(frozen=True)
class IssueDefinition:
    code: str
    category: str
    default_severity: str
    message_template: str
    hint: Optional[str] = None


_DEFINITIONS: Dict[str, IssueDefinition] = {
    # Presence
    "IF-1001": IssueDefinition(
        code="IF-1001",
        category="structure",
        default_severity="error",
        message_template="Flow has no nodes",
        hint="Add a Start node, at least one question and an End node.",
    ),
    "IF-1002": IssueDefinition(
        code="IF-1002",
        category="structure",
        default_severity="error",
        message_template="Flow must have a Start node",
        hint="Add exactly one node of type 'start'.",
    ),
    "IF-1003": IssueDefinition(
        code="IF-1003",
        category="structure",
        default_severity="error",
        message_template="Flow has more than one Start node ('{node_id}')",
        hint="Keep a single Start node and remove the others.",
    ),
    "IF-1004": IssueDefinition(
        code="IF-1004",
        category="structure",
        default_severity="error",
        message_template="Flow must have at least one End or Success node",
        hint="Add a node of type 'end' or 'success'.",
    ),
    "IF-1005": IssueDefinition(
        code="IF-1005",
        category="structure",
        default_severity="error",
        message_template="Node '{node_id}' has unsupported type '{node_type}'",
        hint="Remove this node and use a different type.",
    ),
    "IF-1006": IssueDefinition(
        code="IF-1006",
        category="structure",
        default_severity="error",
        message_template="Node id '{node_id}' is used more than once",
        hint="Give every node a unique id.",
    ),
    # Connectivity
    "IF-2001": IssueDefinition(
        code="IF-2001",
        category="connectivity",
        default_severity="error",
        message_template="Connection '{connection_id}' references non-existent node '{missing_id}'",
        hint="Reconnect the edge or remove it.",
    ),
    "IF-2002": IssueDefinition(
        code="IF-2002",
        category="connectivity",
        default_severity="error",
        message_template="Node '{node_id}' has no incoming connections",
        hint="Connect a previous step to this node.",
    ),
    "IF-2003": IssueDefinition(
        code="IF-2003",
        category="connectivity",
        default_severity="error",
        message_template="Node '{node_id}' has no connections to next steps",
        hint="Connect this node to a following step or an End node.",
    ),
    "IF-2004": IssueDefinition(
        code="IF-2004",
        category="connectivity",
        default_severity="error",
        message_template="Node '{node_id}' is not reachable from the Start node",
        hint="Connect the node to the rest of the flow or remove it.",
    ),
    # Soft warnings
    "IF-3001": IssueDefinition(
        code="IF-3001",
        category="execution",
        default_severity="warning",
        message_template="Date Picker node '{node_id}' is not fully supported during screenings",
        hint="Use a Text Input node and ask for the date in the question.",
    ),
    "IF-3002": IssueDefinition(
        code="IF-3002",
        category="execution",
        default_severity="warning",
        message_template="Form node '{node_id}' has no form fields",
        hint="Add at least one field so the form collects something.",
    ),
    "IF-3003": IssueDefinition(
        code="IF-3003",
        category="execution",
        default_severity="warning",
        message_template="Answer '{answer}' on node '{node_id}' has no matching connection",
        hint="Connect this answer or add an 'any' connection as a fallback.",
    ),
    "IF-3004": IssueDefinition(
        code="IF-3004",
        category="content",
        default_severity="warning",
        message_template="Node '{node_id}' is missing question text",
        hint=None,
    ),
}


def get_definition(code: str) -> IssueDefinition:
    try:
        return _DEFINITIONS[code]
    except KeyError as exc:  # pragma: no cover - programming error
        raise KeyError(f"Unknown validation code '{code}'") from exc


def all_definitions() -> Dict[str, IssueDefinition]:
    return dict(_DEFINITIONS)


def create_issue(code: str, node_id: Optional[str] = None, severity: Optional[str] = None, **params: object) -> ValidationIssue:
    definition = get_definition(code)
    message = definition.message_template.format(node_id=node_id, **params)
    return ValidationIssue(
        severity=severity or definition.default_severity,
        code=definition.code,
        category=definition.category,
        message=message,
        node_id=node_id,
        hint=definition.hint,
    )

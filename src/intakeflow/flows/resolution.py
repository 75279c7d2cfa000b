"""
Branch resolution and answer handling per node kind.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Tuple

from ..errors import GraphError, GraphErrorKind
from ..graph import (
    Connection,
    DateNode,
    FlowDefinition,
    FormNode,
    MultipleChoiceNode,
    Node,
    TextNode,
    YesNoNode,
)
from ..graph.models import ANY_CONDITION, NO_CONDITION, YES_CONDITION

NOT_PROVIDED = "N/A"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first_any(connections: Tuple[Connection, ...]) -> Optional[Connection]:
    for conn in connections:
        if conn.condition.lower() == ANY_CONDITION:
            return conn
    return None


def yes_no_condition(node: YesNoNode, answer: Any) -> Optional[str]:
    if isinstance(answer, bool):
        return YES_CONDITION if answer else NO_CONDITION
    if not isinstance(answer, str):
        return None
    lowered = answer.strip().lower()
    if lowered in (YES_CONDITION, (node.yes_label or "").lower()):
        return YES_CONDITION
    if lowered in (NO_CONDITION, (node.no_label or "").lower()):
        return NO_CONDITION
    return None


def normalize_answer(node: Node, answer: Any) -> Any:
    """Translate positional multiple-choice answers to the option label."""

    if isinstance(node, MultipleChoiceNode) and isinstance(answer, int) and not isinstance(answer, bool):
        label = node.option_label(answer)
        return label if label is not None else answer
    return answer


def format_form_answer(node: FormNode, values: Mapping) -> str:
    parts = []
    for form_field in node.form_fields:
        value = values.get(form_field.id, values.get(form_field.label))
        parts.append(f"{form_field.label or form_field.id}: {NOT_PROVIDED if _is_blank(value) else value}")
    return ", ".join(parts)


def check_answer(node: Node, answer: Any) -> Optional[GraphError]:
    if isinstance(node, FormNode):
        required = [f for f in node.form_fields if f.required]
        if not required:
            return None
        if not isinstance(answer, Mapping):
            return GraphError(
                "Form answers must supply a value for every required field",
                kind=GraphErrorKind.INVALID_ANSWER,
                node_id=node.id,
            )
        missing = [f.label or f.id for f in required if _is_blank(answer.get(f.id, answer.get(f.label)))]
        if missing:
            return GraphError(
                f"Missing required form fields: {', '.join(missing)}",
                kind=GraphErrorKind.INVALID_ANSWER,
                node_id=node.id,
            )
        return None
    if isinstance(node, (TextNode, DateNode)) and node.required and _is_blank(answer):
        return GraphError("An answer is required", kind=GraphErrorKind.INVALID_ANSWER, node_id=node.id)
    return None


def recorded_answer(node: Node, answer: Any) -> str:
    if isinstance(node, FormNode) and isinstance(answer, Mapping):
        return format_form_answer(node, answer)
    if isinstance(node, YesNoNode) and isinstance(answer, bool):
        return node.yes_label if answer else node.no_label
    if answer is None:
        return ""
    return str(answer)


def resolve_connection(flow: FlowDefinition, node: Node, answer: Any) -> Optional[Connection]:
    """Pick the outgoing connection for ``answer``; None when nothing matches."""

    outgoing = flow.outgoing(node.id)
    if isinstance(node, YesNoNode):
        condition = yes_no_condition(node, answer)
        if condition is not None:
            for conn in outgoing:
                if conn.condition.lower() == condition:
                    return conn
        return _first_any(outgoing)
    if isinstance(node, MultipleChoiceNode):
        if answer is not None:
            accepted = {str(answer)}
            for option in node.options:
                if option.label == answer or option.id == answer:
                    accepted.update({option.label, option.id})
            for conn in outgoing:
                if conn.condition in accepted:
                    return conn
        return _first_any(outgoing)
    fallback = _first_any(outgoing)
    if fallback is not None:
        return fallback
    return outgoing[0] if outgoing else None

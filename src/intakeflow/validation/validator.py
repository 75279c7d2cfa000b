"""
Structural validator for flow graphs.

Every check runs independently (no short-circuiting, apart from the empty
flow) and in a fixed order so output is stable across runs.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Optional

from ..graph import (
    ANY_CONDITION,
    NO_CONDITION,
    SUPPORTED_NODE_TYPES,
    YES_CONDITION,
    FlowDefinition,
    FormNode,
    MultipleChoiceNode,
    NodeType,
    YesNoNode,
)
from .models import ValidationIssue, ValidationReport
from .registry import create_issue

logger = logging.getLogger("intakeflow.validation")


def reachable_node_ids(flow: FlowDefinition, start_id: Optional[str] = None) -> List[str]:
    """Breadth-first visit order from the start node over connections to existing nodes."""

    if start_id is None:
        start = flow.start_node
        if start is None:
            return []
        start_id = start.id
    if not flow.has_node(start_id):
        return []
    visited: List[str] = [start_id]
    seen = {start_id}
    queue = deque([start_id])
    while queue:
        node_id = queue.popleft()
        for conn in flow.outgoing(node_id):
            target = conn.target_node_id
            if target in seen or not flow.has_node(target):
                continue
            seen.add(target)
            visited.append(target)
            queue.append(target)
    return visited


def _check_start(flow: FlowDefinition) -> List[ValidationIssue]:
    starts = flow.start_nodes
    if not starts:
        return [create_issue("IF-1002")]
    return [create_issue("IF-1003", node_id=extra.id) for extra in starts[1:]]


def _check_terminal(flow: FlowDefinition) -> List[ValidationIssue]:
    if flow.terminal_nodes:
        return []
    return [create_issue("IF-1004")]


def _check_types(flow: FlowDefinition) -> List[ValidationIssue]:
    return [
        create_issue("IF-1005", node_id=node.id, node_type=node.type)
        for node in flow.nodes
        if node.type not in SUPPORTED_NODE_TYPES
    ]


def _check_unique_ids(flow: FlowDefinition) -> List[ValidationIssue]:
    counts: Dict[str, int] = {}
    for node in flow.nodes:
        counts[node.id] = counts.get(node.id, 0) + 1
    return [create_issue("IF-1006", node_id=node_id) for node_id, count in counts.items() if count > 1]


def _check_references(flow: FlowDefinition) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for conn in flow.connections:
        source_ok = flow.has_node(conn.source_node_id)
        for endpoint in (conn.source_node_id, conn.target_node_id):
            if not flow.has_node(endpoint):
                issues.append(
                    create_issue(
                        "IF-2001",
                        node_id=conn.source_node_id if source_ok else None,
                        connection_id=conn.id,
                        missing_id=endpoint,
                    )
                )
    return issues


def _unique_nodes(flow: FlowDefinition):
    seen = set()
    for node in flow.nodes:
        if node.id in seen:
            continue
        seen.add(node.id)
        yield node


def _check_incoming(flow: FlowDefinition) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for node in _unique_nodes(flow):
        if node.is_start:
            continue
        if not any(flow.has_node(conn.source_node_id) for conn in flow.incoming(node.id)):
            issues.append(create_issue("IF-2002", node_id=node.id))
    return issues


def _check_outgoing(flow: FlowDefinition) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for node in _unique_nodes(flow):
        if node.is_terminal:
            continue
        if not any(flow.has_node(conn.target_node_id) for conn in flow.outgoing(node.id)):
            issues.append(create_issue("IF-2003", node_id=node.id))
    return issues


def _check_reachability(flow: FlowDefinition) -> List[ValidationIssue]:
    if flow.start_node is None:
        return []
    visited = set(reachable_node_ids(flow))
    return [create_issue("IF-2004", node_id=node.id) for node in _unique_nodes(flow) if node.id not in visited]


def _dead_end_answers(flow: FlowDefinition, node) -> List[str]:
    conditions = {conn.condition.lower() for conn in flow.outgoing(node.id)}
    if ANY_CONDITION in conditions:
        return []
    if isinstance(node, YesNoNode):
        missing = []
        if YES_CONDITION not in conditions and node.yes_label.lower() not in conditions:
            missing.append(node.yes_label)
        if NO_CONDITION not in conditions and node.no_label.lower() not in conditions:
            missing.append(node.no_label)
        return missing
    if isinstance(node, MultipleChoiceNode):
        return [
            option.label
            for option in node.options
            if option.label.lower() not in conditions and option.id.lower() not in conditions
        ]
    return []


def _check_soft_warnings(flow: FlowDefinition) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for node in _unique_nodes(flow):
        if node.type == NodeType.DATE.value:
            issues.append(create_issue("IF-3001", node_id=node.id))
        if isinstance(node, FormNode) and not node.form_fields:
            issues.append(create_issue("IF-3002", node_id=node.id))
        for answer in _dead_end_answers(flow, node):
            issues.append(create_issue("IF-3003", node_id=node.id, answer=answer))
        if not node.is_start and not node.is_terminal and not node.display_question.strip():
            issues.append(create_issue("IF-3004", node_id=node.id))
    return issues


def validate(flow: FlowDefinition) -> List[ValidationIssue]:
    if not flow.nodes:
        return [create_issue("IF-1001")]

    issues: List[ValidationIssue] = []
    issues.extend(_check_start(flow))
    issues.extend(_check_terminal(flow))
    issues.extend(_check_types(flow))
    issues.extend(_check_unique_ids(flow))
    issues.extend(_check_references(flow))
    issues.extend(_check_incoming(flow))
    issues.extend(_check_outgoing(flow))
    issues.extend(_check_reachability(flow))
    issues.extend(_check_soft_warnings(flow))
    if issues:
        logger.debug(
            "Flow '%s' validated with %d error(s) and %d warning(s)",
            flow.name,
            sum(1 for issue in issues if issue.is_error),
            sum(1 for issue in issues if not issue.is_error),
        )
    return issues


def validate_report(flow: FlowDefinition) -> ValidationReport:
    return ValidationReport(issues=validate(flow))


def has_errors(issues: List[ValidationIssue]) -> bool:
    return any(issue.is_error for issue in issues)

"""
Canvas manifest builder for the visual flow editor.

Produces a read-only payload of nodes (with layout positions and display
labels) and edges (with the source handle each edge leaves from). This relies
solely on the FlowDefinition and does not mutate any state.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ..graph import Connection, EndNode, FlowDefinition, FormNode, InfoNode, MultipleChoiceNode, Node, YesNoNode
from ..graph.models import NO_CONDITION, YES_CONDITION
from ..parser import node_to_dict
from .layout import LayoutConfig, Position, layout


def _label(flow: FlowDefinition, node: Node) -> str:
    if node.is_start:
        return flow.name
    if isinstance(node, FormNode):
        return node.form_title or node.question
    if isinstance(node, EndNode):
        return node.thank_you_title or "Thank you!"
    return node.question


def _description(flow: FlowDefinition, node: Node) -> str:
    if node.is_start:
        return flow.description or ""
    if isinstance(node, FormNode):
        return node.form_description or ""
    if isinstance(node, EndNode):
        return node.thank_you_message or ""
    if isinstance(node, InfoNode):
        return node.info_message or ""
    return ""


def source_handle(flow: FlowDefinition, conn: Connection) -> Optional[str]:
    source = flow.get(conn.source_node_id)
    if isinstance(source, YesNoNode):
        condition = conn.condition.lower()
        if condition in (YES_CONDITION, NO_CONDITION):
            return condition
        return None
    if isinstance(source, MultipleChoiceNode):
        for index, option in enumerate(source.options):
            if option.label == conn.condition:
                return f"option-{index}"
    return None


def build_canvas_manifest(
    flow: FlowDefinition | None,
    positions: Dict[str, Position] | None = None,
    config: LayoutConfig | None = None,
) -> dict:
    if flow is None or not flow.nodes:
        return {"nodes": [], "edges": [], "status": "empty"}

    positions = positions if positions is not None else layout(flow, config)
    nodes: List[dict] = []
    seen = set()
    for node in flow.nodes:
        if node.id in seen:
            continue
        seen.add(node.id)
        pos = positions.get(node.id) or Position(0, 0)
        nodes.append(
            {
                "id": node.id,
                "type": node.type,
                "label": _label(flow, node),
                "description": _description(flow, node),
                "position": pos.to_dict(),
                "data": node_to_dict(node),
            }
        )

    edges: List[dict] = []
    for conn in flow.connections:
        edges.append(
            {
                "id": conn.id,
                "source": conn.source_node_id,
                "target": conn.target_node_id,
                "sourceHandle": source_handle(flow, conn),
                "condition": conn.condition,
                "label": conn.label,
            }
        )

    return {
        "flow": {"id": flow.id, "name": flow.name, "description": flow.description},
        "nodes": nodes,
        "edges": edges,
        "status": "ok",
    }

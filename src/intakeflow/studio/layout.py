"""
Deterministic layered layout for the visual flow editor.

Layers come from a breadth-first walk from the start node; a merge point
reachable through a longer path is pushed to the later layer. Edges that close
a cycle are ignored for layering. Nodes within a layer are ordered by the
barycenter of their already-placed predecessors, and nodes the start node
cannot reach are stacked in an overflow column past the deepest layer.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ..config import IntakeConfig
from ..graph import FlowDefinition
from ..validation import reachable_node_ids


@dataclass(frozen=True)
class Position:
    x: int
    y: int

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class LayoutConfig:
    horizontal_spacing: int = 450
    vertical_spacing: int = 250
    origin_x: int = 100
    origin_y: int = 100
    grid_columns: int = 3

    @classmethod
    def from_config(cls, config: IntakeConfig) -> "LayoutConfig":
        return cls(
            horizontal_spacing=config.horizontal_spacing,
            vertical_spacing=config.vertical_spacing,
            origin_x=config.origin_x,
            origin_y=config.origin_y,
        )


Edge = Tuple[str, str]


def _edges(flow: FlowDefinition, node_id: str) -> List[str]:
    return [conn.target_node_id for conn in flow.outgoing(node_id) if flow.has_node(conn.target_node_id)]


def find_back_edges(flow: FlowDefinition, start_id: str) -> Set[Edge]:
    """Edges pointing at an ancestor on the depth-first stack, visited in connection order."""

    back: Set[Edge] = set()
    on_stack: Set[str] = {start_id}
    done: Set[str] = set()
    stack = [(start_id, iter(_edges(flow, start_id)))]
    while stack:
        node_id, targets = stack[-1]
        advanced = False
        for target in targets:
            if target in on_stack:
                back.add((node_id, target))
                continue
            if target in done:
                continue
            on_stack.add(target)
            stack.append((target, iter(_edges(flow, target))))
            advanced = True
            break
        if not advanced:
            stack.pop()
            on_stack.discard(node_id)
            done.add(node_id)
    return back


def assign_layers(flow: FlowDefinition, start_id: str) -> Dict[str, int]:
    """Longest-path layering over the acyclic part of the graph reachable from start."""

    back = find_back_edges(flow, start_id)
    reachable = reachable_node_ids(flow, start_id)
    indegree: Dict[str, int] = {node_id: 0 for node_id in reachable}
    for node_id in reachable:
        for target in _edges(flow, node_id):
            if (node_id, target) not in back:
                indegree[target] += 1

    layers: Dict[str, int] = {start_id: 0}
    queue = deque([start_id])
    while queue:
        node_id = queue.popleft()
        for target in _edges(flow, node_id):
            if (node_id, target) in back:
                continue
            candidate = layers[node_id] + 1
            if layers.get(target, -1) < candidate:
                layers[target] = candidate
            indegree[target] -= 1
            if indegree[target] == 0:
                queue.append(target)
    return layers


def _grid_layout(node_ids: List[str], config: LayoutConfig) -> Dict[str, Position]:
    positions: Dict[str, Position] = {}
    for idx, node_id in enumerate(node_ids):
        positions[node_id] = Position(
            x=config.origin_x + (idx % config.grid_columns) * config.horizontal_spacing,
            y=config.origin_y + (idx // config.grid_columns) * config.vertical_spacing,
        )
    return positions


def _barycenter(flow: FlowDefinition, positions: Dict[str, Position], node_id: str) -> float:
    ys = [positions[conn.source_node_id].y for conn in flow.incoming(node_id) if conn.source_node_id in positions]
    return sum(ys) / len(ys) if ys else 0.0


def layout(flow: FlowDefinition, config: Optional[LayoutConfig] = None) -> Dict[str, Position]:
    config = config or LayoutConfig()
    node_ids: List[str] = list(dict.fromkeys(node.id for node in flow.nodes))
    start = flow.start_node
    if start is None:
        return _grid_layout(node_ids, config)

    layers = assign_layers(flow, start.id)
    discovery = {node_id: idx for idx, node_id in enumerate(reachable_node_ids(flow, start.id))}
    by_layer: Dict[int, List[str]] = {}
    for node_id in sorted(layers, key=lambda nid: discovery[nid]):
        by_layer.setdefault(layers[node_id], []).append(node_id)

    positions: Dict[str, Position] = {}
    for layer in sorted(by_layer):
        members = by_layer[layer]
        if layer > 0:
            members = sorted(members, key=lambda nid: (_barycenter(flow, positions, nid), discovery[nid]))
        for index, node_id in enumerate(members):
            positions[node_id] = Position(
                x=config.origin_x + layer * config.horizontal_spacing,
                y=config.origin_y + index * config.vertical_spacing,
            )

    max_layer = max(by_layer)
    overflow_x = config.origin_x + (max_layer + 2) * config.horizontal_spacing
    stacked = 0
    for node_id in node_ids:
        if node_id in positions:
            continue
        positions[node_id] = Position(x=overflow_x, y=config.origin_y + stacked * config.vertical_spacing)
        stacked += 1

    return {node_id: positions[node_id] for node_id in node_ids}


def layout_dict(flow: FlowDefinition, config: Optional[LayoutConfig] = None) -> Dict[str, Dict[str, int]]:
    return {node_id: pos.to_dict() for node_id, pos in layout(flow, config).items()}

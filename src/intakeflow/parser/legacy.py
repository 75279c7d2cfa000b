"""
Heading-based parser for legacy Markdown flows.

    # Flow title
    Optional description text.
    ## Q1: Have you filed before?
    - Yes -> Q3
    - No
    ## Q2: Describe your situation

Each ``##`` heading is a step. Steps without option bullets become free-text
nodes; a Yes/No bullet pair becomes a yes-no node; any other bullets become a
multiple-choice node. Bullets without ``-> target`` and steps without bullets
continue to the next heading in document order. A start node is synthesized
before the first step and an end node after the last.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from ..graph import (
    ANY_CONDITION,
    NO_CONDITION,
    YES_CONDITION,
    ChoiceOption,
    Connection,
    EndNode,
    FlowDefinition,
    MultipleChoiceNode,
    Node,
    StartNode,
    TextNode,
    YesNoNode,
)
from .result import ParseResult

logger = logging.getLogger("intakeflow.parser")

_END_ALIASES = {"end", "done", "finish"}
_BULLETS = ("- ", "* ")


@dataclass
class _LegacyStep:
    id: str
    question: str
    line: int
    options: List[Tuple[str, Optional[str]]] = field(default_factory=list)


def _split_heading(text: str, ordinal: int) -> Tuple[str, str]:
    if ":" in text:
        head, tail = text.split(":", 1)
        head = head.strip()
        if head and not any(ch.isspace() for ch in head):
            return head, tail.strip()
    return f"q{ordinal}", text


def _split_option(text: str) -> Tuple[str, Optional[str]]:
    if "->" not in text:
        return text.strip(), None
    label, target = text.split("->", 1)
    return label.strip(), (target.strip() or None)


def _unique_id(base: str, taken: Set[str]) -> str:
    candidate = base
    suffix = 1
    while candidate in taken:
        candidate = f"{base}-{suffix}"
        suffix += 1
    taken.add(candidate)
    return candidate


def _collect_steps(document: str) -> Tuple[str, List[str], List[_LegacyStep]]:
    title = ""
    description: List[str] = []
    steps: List[_LegacyStep] = []
    current: Optional[_LegacyStep] = None
    for line_no, raw_line in enumerate(document.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("# ") and not title:
            title = line[2:].strip()
            continue
        if line.startswith("## "):
            step_id, question = _split_heading(line[3:].strip(), len(steps) + 1)
            current = _LegacyStep(id=step_id, question=question, line=line_no)
            steps.append(current)
            continue
        if line.startswith(_BULLETS) and current is not None:
            label, target = _split_option(line[2:])
            if label:
                current.options.append((label, target))
            continue
        if current is None and title:
            description.append(line)
    return title, description, steps


def parse_legacy(document: str, flow_id: Optional[str] = None) -> ParseResult:
    title, description, steps = _collect_steps(document)
    if not steps:
        return ParseResult.schema_error("Document has no structured flow block and no '## ' question headings")

    step_ids = {step.id for step in steps}
    taken = set(step_ids)
    start_id = _unique_id("start", taken)
    end_id = _unique_id("end", taken)

    def resolve_target(target: Optional[str], fallthrough: str) -> str:
        if target is None:
            return fallthrough
        if target not in step_ids and target.lower() in _END_ALIASES:
            return end_id
        return target

    nodes: List[Node] = [StartNode(id=start_id)]
    connections: List[Connection] = []

    def connect(source: str, target: str, condition: str, label: Optional[str] = None) -> None:
        connections.append(
            Connection(
                id=f"c{len(connections) + 1}",
                source_node_id=source,
                target_node_id=target,
                condition=condition,
                label=label,
            )
        )

    connect(start_id, steps[0].id, ANY_CONDITION)
    for idx, step in enumerate(steps):
        fallthrough = steps[idx + 1].id if idx + 1 < len(steps) else end_id
        labels = [label for label, _ in step.options]
        if not step.options:
            nodes.append(TextNode(id=step.id, question=step.question))
            connect(step.id, fallthrough, ANY_CONDITION)
        elif len(labels) == 2 and {label.lower() for label in labels} == {YES_CONDITION, NO_CONDITION}:
            yes_label = next(label for label in labels if label.lower() == YES_CONDITION)
            no_label = next(label for label in labels if label.lower() == NO_CONDITION)
            nodes.append(YesNoNode(id=step.id, question=step.question, yes_label=yes_label, no_label=no_label))
            for label, target in step.options:
                connect(step.id, resolve_target(target, fallthrough), label.lower(), label)
        else:
            options = tuple(ChoiceOption(id=str(pos + 1), label=label) for pos, label in enumerate(labels))
            nodes.append(MultipleChoiceNode(id=step.id, question=step.question, options=options))
            for label, target in step.options:
                connect(step.id, resolve_target(target, fallthrough), label)

    nodes.append(EndNode(id=end_id, thank_you_title="Thank you!"))
    logger.debug("Legacy document parsed into %d step(s)", len(steps))
    flow = FlowDefinition(
        id=flow_id or "",
        name=title or "Untitled Flow",
        description=" ".join(description) or None,
        nodes=tuple(nodes),
        connections=tuple(connections),
    )
    return ParseResult.ok(flow, format="legacy")

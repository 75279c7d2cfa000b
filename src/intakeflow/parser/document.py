"""
Flow document parser and serializer.

A document is plain text holding zero or more fenced JSON blocks. When any
exist the last one is canonical; earlier blocks are preview or partial
exports and are ignored even when malformed. Documents without a block fall
back to the heading-based legacy format.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Dict, List, Optional

from ..graph import (
    NODE_CLASSES,
    ChoiceOption,
    Connection,
    FlowDefinition,
    FormField,
    Node,
    UnknownNode,
)
from ..graph.models import ANY_CONDITION
from .blocks import extract_blocks, looks_like_bare_json
from .errors import ParseError, ParseErrorKind
from .legacy import parse_legacy
from .result import ParseResult

logger = logging.getLogger("intakeflow.parser")

DEFAULT_FLOW_NAME = "Untitled Flow"
_BASE_FIELDS = {"id", "question", "type"}


class _SchemaViolation(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _build_options(raw: Any, node_id: str) -> tuple:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise _SchemaViolation(f"Node '{node_id}' options must be a list")
    options: List[ChoiceOption] = []
    for idx, entry in enumerate(raw):
        if isinstance(entry, str):
            options.append(ChoiceOption(id=str(idx), label=entry))
            continue
        if not isinstance(entry, dict):
            raise _SchemaViolation(f"Node '{node_id}' option {idx} must be an object")
        options.append(ChoiceOption(id=str(entry.get("id", idx)), label=str(entry.get("label") or "")))
    return tuple(options)


def _build_form_fields(raw: Any, node_id: str) -> tuple:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise _SchemaViolation(f"Node '{node_id}' formFields must be a list")
    fields: List[FormField] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise _SchemaViolation(f"Node '{node_id}' form field {idx} must be an object")
        options = entry.get("options") or []
        if not isinstance(options, list):
            raise _SchemaViolation(f"Node '{node_id}' form field {idx} options must be a list")
        fields.append(
            FormField(
                id=str(entry.get("id", f"field-{idx}")),
                type=str(entry.get("type") or "text"),
                label=str(entry.get("label") or ""),
                placeholder=_optional_str(entry.get("placeholder")),
                required=bool(entry.get("required", False)),
                options=tuple(str(opt) for opt in options),
                default_value=_optional_str(entry.get("defaultValue")),
            )
        )
    return tuple(fields)


def _build_node(raw: Any, index: int) -> Node:
    if not isinstance(raw, dict):
        raise _SchemaViolation(f"nodes[{index}] must be an object")
    if raw.get("id") in (None, ""):
        raise _SchemaViolation(f"nodes[{index}] is missing 'id'")
    if raw.get("type") in (None, ""):
        raise _SchemaViolation(f"nodes[{index}] is missing 'type'")
    node_id = str(raw["id"])
    node_type = str(raw["type"])
    question = str(raw.get("question") or "")
    cls = NODE_CLASSES.get(node_type)
    if cls is None:
        return UnknownNode(id=node_id, question=question, type=node_type)

    kwargs: Dict[str, Any] = {}
    for fdef in dataclasses.fields(cls):
        if fdef.name in _BASE_FIELDS or not fdef.init:
            continue
        value = raw.get(_camel(fdef.name))
        if fdef.name == "options":
            kwargs["options"] = _build_options(value, node_id)
        elif fdef.name == "form_fields":
            kwargs["form_fields"] = _build_form_fields(value, node_id)
        elif fdef.name == "required":
            kwargs["required"] = bool(value)
        elif fdef.name in {"yes_label", "no_label"}:
            # null/empty labels fall back to the dataclass defaults
            if value:
                kwargs[fdef.name] = str(value)
        else:
            kwargs[fdef.name] = _optional_str(value)
    return cls(id=node_id, question=question, **kwargs)


def _build_connection(raw: Any, index: int) -> Connection:
    if not isinstance(raw, dict):
        raise _SchemaViolation(f"connections[{index}] must be an object")
    for key in ("sourceNodeId", "targetNodeId"):
        if raw.get(key) in (None, ""):
            raise _SchemaViolation(f"connections[{index}] is missing '{key}'")
    condition = raw.get("condition")
    return Connection(
        id=str(raw.get("id") or f"c{index + 1}"),
        source_node_id=str(raw["sourceNodeId"]),
        target_node_id=str(raw["targetNodeId"]),
        condition=ANY_CONDITION if condition in (None, "") else str(condition),
        label=_optional_str(raw.get("label")),
    )


def flow_from_dict(data: Any, flow_id: Optional[str] = None) -> FlowDefinition:
    """Build a FlowDefinition from a decoded canonical block; raises ParseError(schema)."""

    try:
        if not isinstance(data, dict):
            raise _SchemaViolation("Flow block must be a JSON object")
        nodes_raw = data.get("nodes")
        connections_raw = data.get("connections")
        if not isinstance(nodes_raw, list):
            raise _SchemaViolation("Flow block is missing a 'nodes' array")
        if not isinstance(connections_raw, list):
            raise _SchemaViolation("Flow block is missing a 'connections' array")
        nodes = [_build_node(raw, idx) for idx, raw in enumerate(nodes_raw)]
        connections = [_build_connection(raw, idx) for idx, raw in enumerate(connections_raw)]
    except _SchemaViolation as exc:
        raise ParseError(message=exc.message, kind=ParseErrorKind.SCHEMA) from exc
    return FlowDefinition(
        id=flow_id or str(data.get("id") or ""),
        name=str(data.get("name") or DEFAULT_FLOW_NAME),
        description=_optional_str(data.get("description")),
        nodes=tuple(nodes),
        connections=tuple(connections),
    )


def _parse_block(body: str, first_line: int, flow_id: Optional[str]) -> ParseResult:
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        return ParseResult.failure(
            ParseError(
                message=f"Malformed flow JSON: {exc.msg}",
                line=first_line + exc.lineno - 1,
                column=exc.colno,
                kind=ParseErrorKind.SYNTAX,
            )
        )
    except RecursionError:
        return ParseResult.failure(
            ParseError(message="Malformed flow JSON: nesting is too deep", line=first_line, kind=ParseErrorKind.SYNTAX)
        )
    try:
        flow = flow_from_dict(data, flow_id=flow_id)
    except ParseError as exc:
        exc.line = first_line
        return ParseResult.failure(exc)
    return ParseResult.ok(flow, format="json")


def parse(document: str, *, flow_id: Optional[str] = None) -> ParseResult:
    """Parse a flow document. Never raises for malformed input."""

    if not isinstance(document, str):
        return ParseResult.schema_error("Flow document must be text")

    blocks = extract_blocks(document)
    if blocks:
        canonical = blocks[-1]
        logger.debug("Found %d structured block(s); using the last one (line %d)", len(blocks), canonical.line)
        return _parse_block(canonical.body, canonical.line, flow_id)

    if looks_like_bare_json(document):
        logger.debug("Document is a bare JSON object")
        return _parse_block(document, 1, flow_id)

    logger.debug("No structured block found; using heading parser")
    return parse_legacy(document, flow_id=flow_id)


def parse_document(document: str, *, flow_id: Optional[str] = None) -> FlowDefinition:
    """Raise-on-failure convenience wrapper around parse()."""

    return parse(document, flow_id=flow_id).unwrap()


# Serialization


def _form_field_to_dict(form_field: FormField) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": form_field.id,
        "type": form_field.type,
        "label": form_field.label,
        "required": form_field.required,
    }
    if form_field.placeholder is not None:
        payload["placeholder"] = form_field.placeholder
    if form_field.options:
        payload["options"] = list(form_field.options)
    if form_field.default_value is not None:
        payload["defaultValue"] = form_field.default_value
    return payload


def node_to_dict(node: Node) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"id": node.id, "type": node.type, "question": node.question}
    for fdef in dataclasses.fields(node):
        if fdef.name in _BASE_FIELDS:
            continue
        value = getattr(node, fdef.name)
        if value is None:
            continue
        if fdef.name == "options":
            value = [{"id": opt.id, "label": opt.label} for opt in value]
        elif fdef.name == "form_fields":
            value = [_form_field_to_dict(item) for item in value]
        payload[_camel(fdef.name)] = value
    return payload


def connection_to_dict(conn: Connection) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": conn.id,
        "sourceNodeId": conn.source_node_id,
        "targetNodeId": conn.target_node_id,
        "condition": conn.condition,
    }
    if conn.label is not None:
        payload["label"] = conn.label
    return payload


def flow_to_dict(flow: FlowDefinition) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if flow.id:
        payload["id"] = flow.id
    payload["name"] = flow.name
    if flow.description is not None:
        payload["description"] = flow.description
    payload["nodes"] = [node_to_dict(node) for node in flow.nodes]
    payload["connections"] = [connection_to_dict(conn) for conn in flow.connections]
    return payload


def render_document(flow: FlowDefinition) -> str:
    """Render a flow as a Markdown document whose last fenced block is canonical."""

    lines = [f"# {flow.name}", ""]
    if flow.description:
        lines.extend([flow.description, ""])
    lines.extend(
        [
            "## Full JSON Export",
            "",
            "```json",
            json.dumps(flow_to_dict(flow), indent=2, ensure_ascii=False),
            "```",
            "",
        ]
    )
    return "\n".join(lines)


def revise(flow: FlowDefinition, **changes: Any) -> ParseResult:
    """
    Produce an edited flow by re-parsing its re-serialized text.

    FlowDefinition is never mutated in place; callers receive a fresh parse
    result for the edited document.
    """

    candidate = dataclasses.replace(flow, **changes)
    return parse(render_document(candidate), flow_id=candidate.id or None)


__all__ = [
    "DEFAULT_FLOW_NAME",
    "connection_to_dict",
    "flow_from_dict",
    "flow_to_dict",
    "node_to_dict",
    "parse",
    "parse_document",
    "render_document",
    "revise",
]

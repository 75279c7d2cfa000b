"""
In-memory flow graph: nodes, connections and the immutable FlowDefinition arena.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union


class NodeType(str, Enum):
    START = "start"
    END = "end"
    SUCCESS = "success"
    YES_NO = "yes-no"
    MULTIPLE_CHOICE = "multiple-choice"
    TEXT = "text"
    DATE = "date"
    FORM = "form"
    INFO = "info"
    SUBFLOW = "subflow"


SUPPORTED_NODE_TYPES = frozenset(t.value for t in NodeType)
TERMINAL_NODE_TYPES = frozenset({NodeType.END.value, NodeType.SUCCESS.value})

ANY_CONDITION = "any"
YES_CONDITION = "yes"
NO_CONDITION = "no"


@dataclass(frozen=True)
class ChoiceOption:
    id: str
    label: str


@dataclass(frozen=True)
class FormField:
    id: str
    type: str = "text"
    label: str = ""
    placeholder: Optional[str] = None
    required: bool = False
    options: Tuple[str, ...] = ()
    default_value: Optional[str] = None


@dataclass(frozen=True)
class BaseNode:
    id: str
    question: str = ""
    type: str = ""

    @property
    def is_start(self) -> bool:
        return self.type == NodeType.START.value

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_NODE_TYPES

    @property
    def display_question(self) -> str:
        return self.question


@dataclass(frozen=True)
class StartNode(BaseNode):
    type: str = field(default=NodeType.START.value, init=False)

    @property
    def display_question(self) -> str:
        return "Start"


@dataclass(frozen=True)
class YesNoNode(BaseNode):
    type: str = field(default=NodeType.YES_NO.value, init=False)
    yes_label: str = "Yes"
    no_label: str = "No"


@dataclass(frozen=True)
class MultipleChoiceNode(BaseNode):
    type: str = field(default=NodeType.MULTIPLE_CHOICE.value, init=False)
    options: Tuple[ChoiceOption, ...] = ()

    def option_label(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.options):
            return self.options[index].label
        return None


@dataclass(frozen=True)
class TextNode(BaseNode):
    type: str = field(default=NodeType.TEXT.value, init=False)
    placeholder: Optional[str] = None
    default_value: Optional[str] = None
    field_name: Optional[str] = None
    required: bool = False


@dataclass(frozen=True)
class DateNode(BaseNode):
    type: str = field(default=NodeType.DATE.value, init=False)
    default_value: Optional[str] = None
    field_name: Optional[str] = None
    required: bool = False


@dataclass(frozen=True)
class FormNode(BaseNode):
    type: str = field(default=NodeType.FORM.value, init=False)
    form_title: Optional[str] = None
    form_description: Optional[str] = None
    form_fields: Tuple[FormField, ...] = ()

    @property
    def display_question(self) -> str:
        return self.form_title or self.question


@dataclass(frozen=True)
class EndNode(BaseNode):
    type: str = field(default=NodeType.END.value, init=False)
    thank_you_title: Optional[str] = None
    thank_you_message: Optional[str] = None

    @property
    def display_question(self) -> str:
        return self.thank_you_title or self.question


@dataclass(frozen=True)
class SuccessNode(EndNode):
    type: str = field(default=NodeType.SUCCESS.value, init=False)


@dataclass(frozen=True)
class InfoNode(BaseNode):
    type: str = field(default=NodeType.INFO.value, init=False)
    info_message: Optional[str] = None

    @property
    def display_question(self) -> str:
        return self.info_message or self.question


@dataclass(frozen=True)
class SubflowNode(BaseNode):
    type: str = field(default=NodeType.SUBFLOW.value, init=False)
    subflow_id: Optional[str] = None


@dataclass(frozen=True)
class UnknownNode(BaseNode):
    """A node whose type is outside the supported set; kept so validation can report it."""

    type: str = "unknown"


Node = Union[
    StartNode,
    YesNoNode,
    MultipleChoiceNode,
    TextNode,
    DateNode,
    FormNode,
    EndNode,
    SuccessNode,
    InfoNode,
    SubflowNode,
    UnknownNode,
]

NODE_CLASSES: Dict[str, type] = {
    NodeType.START.value: StartNode,
    NodeType.YES_NO.value: YesNoNode,
    NodeType.MULTIPLE_CHOICE.value: MultipleChoiceNode,
    NodeType.TEXT.value: TextNode,
    NodeType.DATE.value: DateNode,
    NodeType.FORM.value: FormNode,
    NodeType.END.value: EndNode,
    NodeType.SUCCESS.value: SuccessNode,
    NodeType.INFO.value: InfoNode,
    NodeType.SUBFLOW.value: SubflowNode,
}


@dataclass(frozen=True)
class Connection:
    id: str
    source_node_id: str
    target_node_id: str
    condition: str = ANY_CONDITION
    label: Optional[str] = None

    @property
    def is_unconditional(self) -> bool:
        return self.condition == ANY_CONDITION


@dataclass(frozen=True)
class FlowDefinition:
    """
    Immutable flow graph stored as flat, id-indexed collections.

    Lookups go through a read-only index built once at construction; when ids
    collide the first node wins (duplicates are reported by the validator).
    """

    id: str
    name: str
    nodes: Tuple[Node, ...] = ()
    connections: Tuple[Connection, ...] = ()
    description: Optional[str] = None
    _index: Mapping[str, Node] = field(default=None, init=False, repr=False, compare=False)  # type: ignore[assignment]
    _outgoing: Mapping[str, Tuple[Connection, ...]] = field(default=None, init=False, repr=False, compare=False)  # type: ignore[assignment]
    _incoming: Mapping[str, Tuple[Connection, ...]] = field(default=None, init=False, repr=False, compare=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "connections", tuple(self.connections))
        index: Dict[str, Node] = {}
        for node in self.nodes:
            index.setdefault(node.id, node)
        outgoing: Dict[str, List[Connection]] = {}
        incoming: Dict[str, List[Connection]] = {}
        for conn in self.connections:
            outgoing.setdefault(conn.source_node_id, []).append(conn)
            incoming.setdefault(conn.target_node_id, []).append(conn)
        object.__setattr__(self, "_index", MappingProxyType(index))
        object.__setattr__(self, "_outgoing", MappingProxyType({k: tuple(v) for k, v in outgoing.items()}))
        object.__setattr__(self, "_incoming", MappingProxyType({k: tuple(v) for k, v in incoming.items()}))

    def get(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        return self._index.get(node_id)

    def has_node(self, node_id: Optional[str]) -> bool:
        return node_id is not None and node_id in self._index

    @property
    def node_ids(self) -> Tuple[str, ...]:
        return tuple(node.id for node in self.nodes)

    @property
    def start_nodes(self) -> Tuple[Node, ...]:
        return tuple(node for node in self.nodes if node.is_start)

    @property
    def start_node(self) -> Optional[Node]:
        starts = self.start_nodes
        return starts[0] if starts else None

    @property
    def terminal_nodes(self) -> Tuple[Node, ...]:
        return tuple(node for node in self.nodes if node.is_terminal)

    def outgoing(self, node_id: str) -> Tuple[Connection, ...]:
        return self._outgoing.get(node_id, ())

    def incoming(self, node_id: str) -> Tuple[Connection, ...]:
        return self._incoming.get(node_id, ())

    def find_by_question(self, question: str) -> Optional[Node]:
        for node in self.nodes:
            if node.display_question == question or node.question == question:
                return node
        return None

    def revise(self, **changes):
        """Re-parse this flow's rendered document with ``changes`` applied; returns a ParseResult."""

        from ..parser import revise

        return revise(self, **changes)

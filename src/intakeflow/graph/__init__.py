"""
Flow graph model.
"""

from .models import (
    ANY_CONDITION,
    NO_CONDITION,
    NODE_CLASSES,
    SUPPORTED_NODE_TYPES,
    TERMINAL_NODE_TYPES,
    YES_CONDITION,
    BaseNode,
    ChoiceOption,
    Connection,
    DateNode,
    EndNode,
    FlowDefinition,
    FormField,
    FormNode,
    InfoNode,
    MultipleChoiceNode,
    Node,
    NodeType,
    StartNode,
    SubflowNode,
    SuccessNode,
    TextNode,
    UnknownNode,
    YesNoNode,
)

__all__ = [
    "ANY_CONDITION",
    "NO_CONDITION",
    "NODE_CLASSES",
    "SUPPORTED_NODE_TYPES",
    "TERMINAL_NODE_TYPES",
    "YES_CONDITION",
    "BaseNode",
    "ChoiceOption",
    "Connection",
    "DateNode",
    "EndNode",
    "FlowDefinition",
    "FormField",
    "FormNode",
    "InfoNode",
    "MultipleChoiceNode",
    "Node",
    "NodeType",
    "StartNode",
    "SubflowNode",
    "SuccessNode",
    "TextNode",
    "UnknownNode",
    "YesNoNode",
]

import json

import pytest

from intakeflow.graph import MultipleChoiceNode, NodeType, UnknownNode, YesNoNode
from intakeflow.parser import (
    ParseError,
    ParseErrorKind,
    flow_to_dict,
    parse,
    parse_document,
    render_document,
    revise,
)
from intakeflow.validation import validate


def test_parse_markdown_document(scenario_document):
    result = parse(scenario_document)
    assert result.success
    assert result.format == "json"
    flow = result.flow
    assert flow.name == "Debt Screening"
    assert flow.node_ids == ("S", "Q1", "Q2", "E1")
    assert isinstance(flow.get("Q1"), YesNoNode)
    assert flow.get("E1").thank_you_title == "All done"
    assert [c.id for c in flow.outgoing("Q1")] == ["c2", "c3"]


def test_last_block_is_canonical_even_when_earlier_block_is_broken(scenario_data):
    preview = "```json\n{ this is not json\n```"
    doc = f"# Preview\n\n{preview}\n\n## Full export\n\n```json\n{json.dumps(scenario_data)}\n```\n"
    result = parse(doc)
    assert result.success
    assert result.flow.name == "Debt Screening"


def test_earlier_valid_block_is_ignored(scenario_data):
    partial = {"name": "Partial", "nodes": [], "connections": []}
    doc = f"```json\n{json.dumps(partial)}\n```\n\n```json\n{json.dumps(scenario_data)}\n```"
    assert parse(doc).flow.name == "Debt Screening"


def test_malformed_canonical_block_reports_location():
    doc = '# T\n\n```json\n{\n  "name": ,\n}\n```\n'
    result = parse(doc)
    assert not result.success
    assert result.flow is None
    assert result.error.kind == ParseErrorKind.SYNTAX
    assert result.error.line == 5
    assert result.error.column == 11


def test_deeply_nested_block_is_a_syntax_error():
    depth = 100000
    result = parse("```json\n" + "[" * depth + "]" * depth + "\n```")
    assert not result.success
    assert result.flow is None
    assert result.error.kind == ParseErrorKind.SYNTAX
    assert "too deep" in result.error.message


def test_bare_json_document(scenario_data):
    result = parse(json.dumps(scenario_data))
    assert result.success
    assert len(result.flow.nodes) == 4


def test_schema_errors():
    missing_nodes = parse('```json\n{"name": "x", "connections": []}\n```')
    assert missing_nodes.error.kind == ParseErrorKind.SCHEMA
    assert "nodes" in missing_nodes.error.message

    missing_target = parse(
        json.dumps({"nodes": [{"id": "a", "type": "start"}], "connections": [{"sourceNodeId": "a"}]})
    )
    assert missing_target.error.kind == ParseErrorKind.SCHEMA
    assert "targetNodeId" in missing_target.error.message


def test_non_text_document_is_schema_error():
    result = parse(None)  # type: ignore[arg-type]
    assert not result.success
    assert result.error.kind == ParseErrorKind.SCHEMA


def test_document_without_blocks_or_headings():
    result = parse("Just some notes.\n\n```python\nprint('hi')\n```\n")
    assert not result.success
    assert result.error.kind == ParseErrorKind.SCHEMA


def test_defaults_for_connections_and_name():
    data = {
        "nodes": [{"id": "s", "type": "start"}, {"id": "e", "type": "end"}],
        "connections": [{"sourceNodeId": "s", "targetNodeId": "e"}],
    }
    flow = parse(json.dumps(data)).flow
    assert flow.name == "Untitled Flow"
    conn = flow.connections[0]
    assert conn.id == "c1"
    assert conn.condition == "any"
    assert conn.is_unconditional


def test_unknown_type_is_kept_and_reported():
    data = {
        "nodes": [{"id": "s", "type": "start"}, {"id": "x", "type": "slider", "question": "Rate"}],
        "connections": [],
    }
    flow = parse(json.dumps(data)).flow
    node = flow.get("x")
    assert isinstance(node, UnknownNode)
    assert node.type == "slider"
    assert "IF-1005" in [issue.code for issue in validate(flow)]


def test_choice_options_accept_strings_and_objects():
    data = {
        "nodes": [
            {"id": "m", "type": "multiple-choice", "question": "Pick", "options": ["Red", {"id": "b", "label": "Blue"}]},
        ],
        "connections": [],
    }
    node = parse(json.dumps(data)).flow.get("m")
    assert isinstance(node, MultipleChoiceNode)
    assert [(o.id, o.label) for o in node.options] == [("0", "Red"), ("b", "Blue")]


def test_null_yes_no_labels_fall_back_to_defaults():
    data = {"nodes": [{"id": "q", "type": "yes-no", "question": "Ok?", "yesLabel": None}], "connections": []}
    node = parse(json.dumps(data)).flow.get("q")
    assert node.yes_label == "Yes"
    assert node.no_label == "No"


def test_form_fields_are_parsed():
    data = {
        "nodes": [
            {
                "id": "f",
                "type": "form",
                "formTitle": "Contact",
                "formFields": [
                    {"id": "name", "label": "Name", "required": True},
                    {"id": "state", "type": "select", "label": "State", "options": ["CA", "NY"]},
                ],
            }
        ],
        "connections": [],
    }
    node = parse(json.dumps(data)).flow.get("f")
    assert node.type == NodeType.FORM.value
    assert node.display_question == "Contact"
    assert node.form_fields[0].required is True
    assert node.form_fields[1].options == ("CA", "NY")


def test_render_document_parses_back(scenario_flow):
    rendered = render_document(scenario_flow)
    assert rendered.startswith("# Debt Screening")
    reparsed = parse(rendered).flow
    assert flow_to_dict(reparsed) == flow_to_dict(scenario_flow)


def test_revise_returns_new_flow(scenario_flow):
    result = revise(scenario_flow, name="Renamed")
    assert result.success
    assert result.flow.name == "Renamed"
    assert scenario_flow.name == "Debt Screening"


def test_parse_document_raises():
    with pytest.raises(ParseError):
        parse_document("```json\n[1, 2]\n```")


def test_flow_id_override(scenario_document):
    assert parse(scenario_document, flow_id="custom").flow.id == "custom"


def test_flow_definition_revise_helper(scenario_flow):
    edited = scenario_flow.revise(description="Updated")
    assert edited.flow.description == "Updated"
    assert edited.flow.node_ids == scenario_flow.node_ids

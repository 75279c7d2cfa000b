from intakeflow.graph import Connection, EndNode, FlowDefinition, StartNode, TextNode, YesNoNode
from intakeflow.parser import flow_from_dict
from intakeflow.validation import (
    ERROR,
    WARNING,
    all_definitions,
    has_errors,
    reachable_node_ids,
    validate,
    validate_report,
)


def _codes(issues):
    return [issue.code for issue in issues]


def _with(data, nodes=(), connections=()):
    data["nodes"].extend(nodes)
    data["connections"].extend(connections)
    return flow_from_dict(data)


def test_valid_flow_has_no_issues(scenario_flow):
    assert validate(scenario_flow) == []
    report = validate_report(scenario_flow)
    assert report.can_save
    assert not report.needs_confirmation


def test_empty_flow_reports_only_empty():
    issues = validate(FlowDefinition(id="f", name="Empty"))
    assert _codes(issues) == ["IF-1001"]
    assert issues[0].severity == ERROR


def test_missing_terminal_on_otherwise_valid_graph_is_single_error():
    flow = FlowDefinition(
        id="loop",
        name="Loop",
        nodes=(
            StartNode(id="S"),
            YesNoNode(id="Q1", question="Continue?"),
            TextNode(id="Q2", question="Why?"),
        ),
        connections=(
            Connection(id="c1", source_node_id="S", target_node_id="Q1"),
            Connection(id="c2", source_node_id="Q1", target_node_id="Q2", condition="yes"),
            Connection(id="c3", source_node_id="Q1", target_node_id="Q2", condition="no"),
            Connection(id="c4", source_node_id="Q2", target_node_id="Q1"),
        ),
    )
    issues = validate(flow)
    assert _codes(issues) == ["IF-1004"]


def test_missing_start_skips_reachability():
    flow = FlowDefinition(
        id="f",
        name="No start",
        nodes=(TextNode(id="a", question="A?"), EndNode(id="e")),
        connections=(Connection(id="c1", source_node_id="a", target_node_id="e"),),
    )
    codes = _codes(validate(flow))
    assert "IF-1002" in codes
    assert "IF-2004" not in codes


def test_extra_start_nodes(scenario_data):
    flow = _with(
        scenario_data,
        nodes=[{"id": "S2", "type": "start"}],
        connections=[{"id": "c9", "sourceNodeId": "S2", "targetNodeId": "Q2"}],
    )
    issues = [i for i in validate(flow) if i.code == "IF-1003"]
    assert [i.node_id for i in issues] == ["S2"]


def test_broken_reference(scenario_data):
    flow = _with(scenario_data, connections=[{"id": "bad", "sourceNodeId": "Q2", "targetNodeId": "ghost"}])
    broken = [i for i in validate(flow) if i.code == "IF-2001"]
    assert len(broken) == 1
    assert broken[0].node_id == "Q2"
    assert "ghost" in broken[0].message


def test_unreachable_island(scenario_data):
    flow = _with(
        scenario_data,
        nodes=[{"id": "X", "type": "text", "question": "Island"}],
        connections=[{"id": "c9", "sourceNodeId": "X", "targetNodeId": "E1"}],
    )
    issues = validate(flow)
    assert ("IF-2002", "X") in [(i.code, i.node_id) for i in issues]
    assert ("IF-2004", "X") in [(i.code, i.node_id) for i in issues]
    assert "X" not in reachable_node_ids(flow)


def test_missing_outgoing(scenario_data):
    scenario_data["connections"] = [c for c in scenario_data["connections"] if c["id"] != "c4"]
    flow = flow_from_dict(scenario_data)
    assert ("IF-2003", "Q2") in [(i.code, i.node_id) for i in validate(flow)]


def test_duplicate_ids(scenario_data):
    flow = _with(scenario_data, nodes=[{"id": "Q2", "type": "text", "question": "Again"}])
    assert ("IF-1006", "Q2") in [(i.code, i.node_id) for i in validate(flow)]


def test_reachable_order_is_breadth_first(scenario_flow):
    assert reachable_node_ids(scenario_flow) == ["S", "Q1", "Q2", "E1"]


def test_soft_warnings_do_not_block_saving(scenario_data):
    scenario_data["nodes"][2] = {"id": "Q2", "type": "date", "question": "When did it start?"}
    flow = flow_from_dict(scenario_data)
    report = validate_report(flow)
    assert _codes(report.warnings) == ["IF-3001"]
    assert report.warnings[0].severity == WARNING
    assert report.can_save
    assert report.needs_confirmation
    assert not has_errors(report.issues)


def test_empty_form_warning(scenario_data):
    scenario_data["nodes"][2] = {"id": "Q2", "type": "form", "formTitle": "Details", "formFields": []}
    flow = flow_from_dict(scenario_data)
    assert _codes(validate(flow)) == ["IF-3002"]


def test_unconnected_choice_is_warning_only():
    data = {
        "nodes": [
            {"id": "S", "type": "start"},
            {"id": "M", "type": "multiple-choice", "question": "Pick", "options": ["A", "B", "C"]},
            {"id": "E", "type": "end"},
        ],
        "connections": [
            {"sourceNodeId": "S", "targetNodeId": "M"},
            {"sourceNodeId": "M", "targetNodeId": "E", "condition": "A"},
            {"sourceNodeId": "M", "targetNodeId": "E", "condition": "B"},
        ],
    }
    issues = validate(flow_from_dict(data))
    assert not has_errors(issues)
    assert [(i.code, i.node_id) for i in issues] == [("IF-3003", "M")]
    assert "'C'" in issues[0].message


def test_any_connection_covers_every_answer():
    data = {
        "nodes": [
            {"id": "S", "type": "start"},
            {"id": "Q", "type": "yes-no", "question": "Ok?"},
            {"id": "E", "type": "end"},
        ],
        "connections": [
            {"sourceNodeId": "S", "targetNodeId": "Q"},
            {"sourceNodeId": "Q", "targetNodeId": "E", "condition": "any"},
        ],
    }
    assert validate(flow_from_dict(data)) == []


def test_missing_question_warning(scenario_data):
    scenario_data["nodes"][2]["question"] = "  "
    codes = _codes(validate(flow_from_dict(scenario_data)))
    assert codes == ["IF-3004"]


def test_issue_registry_codes_are_unique():
    definitions = all_definitions()
    assert all(code == definition.code for code, definition in definitions.items())
    assert {d.default_severity for d in definitions.values()} == {ERROR, WARNING}


def test_report_dict(scenario_flow):
    payload = validate_report(scenario_flow).to_dict()
    assert payload["valid"] is True
    assert payload["summary"] == {"errors": 0, "warnings": 0}

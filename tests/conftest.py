import copy
import json

import pytest

from intakeflow.parser import flow_from_dict

SCENARIO = {
    "id": "intake-1",
    "name": "Debt Screening",
    "description": "Short eligibility screening",
    "nodes": [
        {"id": "S", "type": "start", "question": ""},
        {"id": "Q1", "type": "yes-no", "question": "Have you filed before?", "yesLabel": "Yes", "noLabel": "No"},
        {"id": "Q2", "type": "text", "question": "Describe your situation"},
        {"id": "E1", "type": "end", "question": "", "thankYouTitle": "All done"},
    ],
    "connections": [
        {"id": "c1", "sourceNodeId": "S", "targetNodeId": "Q1", "condition": "any"},
        {"id": "c2", "sourceNodeId": "Q1", "targetNodeId": "Q2", "condition": "yes"},
        {"id": "c3", "sourceNodeId": "Q1", "targetNodeId": "E1", "condition": "no"},
        {"id": "c4", "sourceNodeId": "Q2", "targetNodeId": "E1", "condition": "any"},
    ],
}


@pytest.fixture(autouse=True)
def _clean_intakeflow_env(monkeypatch):
    """Keep tests independent of INTAKEFLOW_* variables on the host."""
    for name in (
        "INTAKEFLOW_LAYOUT_HSPACING",
        "INTAKEFLOW_LAYOUT_VSPACING",
        "INTAKEFLOW_LAYOUT_ORIGIN_X",
        "INTAKEFLOW_LAYOUT_ORIGIN_Y",
        "INTAKEFLOW_DRAFT_DIR",
        "INTAKEFLOW_LOG_REDACT_ANSWERS",
        "INTAKEFLOW_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def scenario_data():
    return copy.deepcopy(SCENARIO)


@pytest.fixture
def scenario_flow(scenario_data):
    return flow_from_dict(scenario_data)


@pytest.fixture
def as_document():
    def _render(data, title="Intake"):
        return f"# {title}\n\nGenerated export.\n\n```json\n{json.dumps(data, indent=2)}\n```\n"

    return _render


@pytest.fixture
def scenario_document(scenario_data, as_document):
    return as_document(scenario_data)

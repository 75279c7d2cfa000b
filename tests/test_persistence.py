import asyncio
import json

import pytest

from intakeflow.errors import DraftNotFoundError, GraphError, GraphErrorKind, SealedStateError, SessionBusyError
from intakeflow.flows import (
    FlowSession,
    InMemoryPersistenceAdapter,
    JsonFilePersistenceAdapter,
    SessionStatus,
    build_persistence,
)


def test_save_draft_and_load_in_memory(scenario_flow):
    adapter = InMemoryPersistenceAdapter()
    session = FlowSession(scenario_flow, persistence=adapter)
    session.advance()
    session.advance("Yes")

    handle = asyncio.run(session.save_draft())
    draft = adapter.drafts[handle]
    assert draft.current_node_id == "Q2"
    assert draft.flow_id == "intake-1"
    assert [r.answer for r in draft.responses] == ["Yes"]

    resumed = asyncio.run(FlowSession.load(scenario_flow, handle, adapter))
    assert resumed.state.current_node_id == "Q2"
    assert resumed.state.answer_cache == {"Q1": "Yes"}


def test_finalize_seals_state(scenario_flow):
    adapter = InMemoryPersistenceAdapter()
    session = FlowSession(scenario_flow, persistence=adapter)
    session.advance()
    session.advance("No")

    submission_id = asyncio.run(session.finalize())
    assert adapter.submissions[submission_id]["responses"] == [
        {"question": "Have you filed before?", "answer": "No"}
    ]
    assert session.status == SessionStatus.COMPLETED
    for refused in (session.back(), session.advance("Yes"), session.restart()):
        assert not refused.success
        assert refused.error.kind == GraphErrorKind.SEALED
    assert session.state.current_node_id == "E1"
    with pytest.raises(SealedStateError):
        asyncio.run(session.finalize())


def test_finalize_requires_terminal_node(scenario_flow):
    session = FlowSession(scenario_flow)
    with pytest.raises(GraphError) as excinfo:
        asyncio.run(session.finalize())
    assert excinfo.value.kind == GraphErrorKind.NOT_TERMINAL


class _GatedAdapter(InMemoryPersistenceAdapter):
    def __init__(self, fail=False):
        super().__init__()
        self.release = None
        self.fail = fail

    async def save_draft(self, flow_id, responses, current_node_id, answers=None):
        await self.release.wait()
        if self.fail:
            raise RuntimeError("storage offline")
        return await super().save_draft(flow_id, responses, current_node_id, answers)


def test_session_is_busy_while_persisting(scenario_flow):
    adapter = _GatedAdapter()
    session = FlowSession(scenario_flow, persistence=adapter)
    session.advance()

    async def scenario():
        adapter.release = asyncio.Event()
        pending = asyncio.create_task(session.save_draft())
        await asyncio.sleep(0)
        assert session.busy
        blocked = session.advance("Yes")
        assert blocked.error.kind == GraphErrorKind.BUSY
        assert session.restart().error.kind == GraphErrorKind.BUSY
        with pytest.raises(SessionBusyError):
            await session.save_draft()
        adapter.release.set()
        return await pending

    handle = asyncio.run(scenario())
    assert handle in adapter.drafts
    assert not session.busy
    assert session.advance("Yes").success


def test_busy_flag_cleared_on_failure(scenario_flow):
    adapter = _GatedAdapter(fail=True)
    session = FlowSession(scenario_flow, persistence=adapter)

    async def scenario():
        adapter.release = asyncio.Event()
        adapter.release.set()
        await session.save_draft()

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())
    assert not session.busy
    assert session.advance().success


def test_json_file_adapter_round_trip(tmp_path, scenario_flow):
    adapter = JsonFilePersistenceAdapter(tmp_path)
    session = FlowSession(scenario_flow, persistence=adapter)
    session.advance()
    session.advance("Yes")
    handle = asyncio.run(session.save_draft())

    stored = json.loads((tmp_path / "drafts" / f"{handle}.json").read_text(encoding="utf-8"))
    assert stored["current_node_id"] == "Q2"
    assert stored["answers"] == {"Q1": "Yes"}

    draft = asyncio.run(adapter.load_draft(handle))
    assert draft.current_node_id == "Q2"
    assert draft.responses[0].question == "Have you filed before?"

    session.advance("Some details")
    submission_id = asyncio.run(session.finalize())
    assert adapter.list_submissions() == [submission_id]


def test_unknown_draft_handles(tmp_path):
    with pytest.raises(DraftNotFoundError):
        asyncio.run(InMemoryPersistenceAdapter().load_draft("nope"))
    with pytest.raises(DraftNotFoundError):
        asyncio.run(JsonFilePersistenceAdapter(tmp_path).load_draft("../etc/passwd"))


def test_build_persistence(tmp_path):
    assert isinstance(build_persistence(None), InMemoryPersistenceAdapter)
    assert isinstance(build_persistence(str(tmp_path)), JsonFilePersistenceAdapter)

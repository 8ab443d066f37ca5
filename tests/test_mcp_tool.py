from contextlib import contextmanager

import anyio
import pytest
from mcp.server.fastmcp.exceptions import ToolError
from starlette.requests import Request as StarletteRequest

from lift_tracker import mcp_server
from lift_tracker.domain.errors import ValidationError
from lift_tracker.mcp_server import (
    handle_add_lift,
    handle_delete_lift,
    handle_estimate_one_rep_max,
    handle_list_lifts,
    handle_list_sessions,
)


@pytest.fixture
def as_principal(monkeypatch, db_session):
    """Route the tool wrappers to the test session under a given identity."""

    def install(principal):
        @contextmanager
        def scope():
            yield db_session

        monkeypatch.setattr(mcp_server, "session_scope", scope)
        monkeypatch.setattr(mcp_server, "current_principal", lambda: principal)

    return install


def test_add_lift_handler_writes_lift(db_session, owner, lift_payload):
    result = handle_add_lift(lift_payload, owner, db_session)

    listed = handle_list_lifts(None, owner, db_session)

    assert [lift["id"] for lift in listed["lifts"]] == [result["lift_id"]]
    assert listed["lifts"][0]["estimated_one_rep_max"] == 114


def test_list_lifts_handler_applies_filters(db_session, owner, lift_payload):
    handle_add_lift(lift_payload, owner, db_session)
    handle_add_lift({**lift_payload, "date": "2024-03-01"}, owner, db_session)

    listed = handle_list_lifts({"start_date": "2024-02-01"}, owner, db_session)

    assert [lift["date"] for lift in listed["lifts"]] == ["2024-03-01"]


def test_delete_lift_handler(db_session, owner, lift_payload):
    lift_id = handle_add_lift(lift_payload, owner, db_session)["lift_id"]

    result = handle_delete_lift({"lift_id": lift_id}, owner, db_session)

    assert result == {"lift_id": lift_id, "deleted": True}
    assert handle_list_lifts(None, owner, db_session) == {"lifts": []}


def test_list_sessions_handler(db_session, owner, lift_payload):
    handle_add_lift(lift_payload, owner, db_session)
    handle_add_lift({**lift_payload, "exercise": "Chest Fly", "sets": 4}, owner, db_session)

    sessions = handle_list_sessions(None, owner, db_session)["sessions"]

    assert len(sessions) == 1
    assert sessions[0]["workout_type"] == "Chest & Shoulders"
    assert sessions[0]["date"] == "2024-01-02"
    assert sessions[0]["exercise_count"] == 2
    assert sessions[0]["total_sets"] == 7


def test_estimate_one_rep_max_handler():
    assert handle_estimate_one_rep_max({"weight": 100, "reps": 10})["estimated_one_rep_max"] == 133
    with pytest.raises(ValidationError):
        handle_estimate_one_rep_max({"weight": 100, "reps": -1})


def test_tool_reports_missing_identity(as_principal, lift_payload):
    as_principal(None)

    with pytest.raises(ValueError, match="^authentication_error"):
        mcp_server.add_lift(lift_payload)


def test_tool_reports_foreign_delete(as_principal, db_session, owner, intruder, lift_payload):
    lift_id = handle_add_lift(lift_payload, owner, db_session)["lift_id"]
    as_principal(intruder)

    with pytest.raises(ValueError, match="^authorization_error"):
        mcp_server.delete_lift_tool(lift_id)

    assert len(handle_list_lifts(None, owner, db_session)["lifts"]) == 1


def test_tool_reports_unknown_lift(as_principal, owner):
    as_principal(owner)

    with pytest.raises(ValueError, match="^not_found"):
        mcp_server.delete_lift_tool("00000000-0000-0000-0000-000000000000")


def test_tool_reports_bad_filters(as_principal, owner):
    as_principal(owner)

    with pytest.raises(ValueError, match="^validation_error"):
        mcp_server.list_lifts_tool({"start_date": "2024-02-01", "end_date": "2024-01-01"})


def test_call_tool_reports_inverted_range_as_validation_error(as_principal, owner):
    as_principal(owner)
    arguments = {"filters": {"start_date": "2024-02-01", "end_date": "2024-01-01"}}

    with pytest.raises(ToolError, match="validation_error"):
        anyio.run(mcp_server.mcp.call_tool, "list_lifts", arguments)


def test_call_tool_reports_bad_lift_as_validation_error(
    as_principal, db_session, owner, lift_payload
):
    as_principal(owner)
    arguments = {"payload": {**lift_payload, "reps": 0}}

    with pytest.raises(ToolError, match="validation_error"):
        anyio.run(mcp_server.mcp.call_tool, "add_lift", arguments)

    assert handle_list_lifts(None, owner, db_session)["lifts"] == []


def test_list_workout_types_tool():
    names = [workout["name"] for workout in mcp_server.list_workout_types()["workout_types"]]

    assert names == ["Chest & Shoulders", "Back & Arms", "Legs"]


def test_oauth_authorize_redirects_to_google():
    request = StarletteRequest(
        {
            "type": "http",
            "method": "GET",
            "path": "/oauth/authorize",
            "query_string": b"redirect_uri=https%3A%2F%2Fclient.example%2Fcb&state=abc",
            "headers": [],
        }
    )

    response = anyio.run(mcp_server.oauth_authorize, request)

    location = response.headers["location"]
    assert location.startswith(mcp_server.GOOGLE_AUTH_URL)
    assert "scope=openid+email" in location
    assert "response_type=code" in location
    assert "state=abc" in location

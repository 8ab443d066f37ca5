from __future__ import annotations

import os
import secrets
import time
from typing import Any, Callable, Optional
from urllib.parse import urlencode, urlparse

import httpx
import structlog
from pydantic import AnyHttpUrl
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.requests import Request as StarletteRequest
from starlette.responses import RedirectResponse, Response

from mcp.server.auth.handlers.metadata import MetadataHandler, ProtectedResourceMetadataHandler
from mcp.server.auth.json_response import PydanticJSONResponse
from mcp.server.auth.routes import build_resource_metadata_url
from mcp.server.auth.settings import AuthSettings
from mcp.server.fastmcp import FastMCP
from mcp.shared.auth import (
    OAuthClientInformationFull,
    OAuthClientMetadata,
    OAuthMetadata,
    ProtectedResourceMetadata,
)

from lift_tracker.auth.identity import (
    GoogleTokenVerifier,
    Principal,
    current_principal,
    load_api_keys,
)
from lift_tracker.db.session import session_scope
from lift_tracker.domain.catalog import WORKOUT_TYPES
from lift_tracker.domain.errors import LiftTrackerError
from lift_tracker.domain.payloads import (
    LiftFilters,
    LiftInput,
    validate_delete_request,
    validate_one_rep_max_request,
)
from lift_tracker.domain.sessions import session_as_dict
from lift_tracker.domain.strength import estimate_one_rep_max as epley_one_rep_max
from lift_tracker.service.lifts import create_lift, delete_lift, list_lifts, list_sessions

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
RESOURCE_SERVER_URL = os.getenv("RESOURCE_SERVER_URL", f"http://{HOST}:{PORT}/mcp")
AUTH_SERVER_URL = os.getenv("AUTH_SERVER_URL")
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
API_KEY = os.getenv("API_KEY")
API_KEYS_FILE = os.getenv("API_KEYS_FILE", "api_keys.txt")

if not AUTH_SERVER_URL:
    parsed_resource = urlparse(RESOURCE_SERVER_URL)
    AUTH_SERVER_URL = f"{parsed_resource.scheme}://{parsed_resource.netloc}"

logger = structlog.get_logger(__name__)


mcp = FastMCP(
    "lift-tracker-mcp",
    instructions=(
        "Log weightlifting sets for the signed-in user, list them back, "
        "and review them grouped into workout sessions."
    ),
    host=HOST,
    port=PORT,
    auth=AuthSettings(
        issuer_url=AnyHttpUrl(AUTH_SERVER_URL),
        resource_server_url=RESOURCE_SERVER_URL,
    ),
    token_verifier=GoogleTokenVerifier(GOOGLE_CLIENT_ID, load_api_keys(API_KEYS_FILE, API_KEY)),
)


resource_url = AnyHttpUrl(RESOURCE_SERVER_URL)
resource_metadata = ProtectedResourceMetadata(
    resource=resource_url,
    authorization_servers=[AnyHttpUrl(AUTH_SERVER_URL)],
    scopes_supported=["openid", "email"],
    resource_name="Lift Tracker MCP",
)
resource_metadata_handler = ProtectedResourceMetadataHandler(resource_metadata)
resource_metadata_path = urlparse(str(build_resource_metadata_url(resource_url))).path


@mcp.custom_route(resource_metadata_path, methods=["GET", "OPTIONS"])
async def oauth_protected_resource(request: StarletteRequest) -> Response:
    return await resource_metadata_handler.handle(request)


oauth_metadata = OAuthMetadata(
    issuer=AnyHttpUrl(AUTH_SERVER_URL),
    authorization_endpoint=AnyHttpUrl(f"{AUTH_SERVER_URL}/oauth/authorize"),
    token_endpoint=AnyHttpUrl(f"{AUTH_SERVER_URL}/oauth/token"),
    scopes_supported=["openid", "email"],
    response_types_supported=["code"],
    grant_types_supported=["authorization_code", "refresh_token"],
    token_endpoint_auth_methods_supported=["client_secret_post", "client_secret_basic"],
    registration_endpoint=AnyHttpUrl(f"{AUTH_SERVER_URL}/oauth/register"),
)
oauth_metadata_handler = MetadataHandler(oauth_metadata)


@mcp.custom_route("/.well-known/oauth-authorization-server", methods=["GET", "OPTIONS"])
async def oauth_authorization_server(request: StarletteRequest) -> Response:
    return await oauth_metadata_handler.handle(request)


@mcp.custom_route("/oauth/authorize", methods=["GET"])
async def oauth_authorize(request: StarletteRequest) -> Response:
    """Send the user to Google's consent screen with our client id."""
    params = dict(request.query_params)
    if not params.get("scope"):
        params["scope"] = "openid email"
    if not params.get("response_type"):
        params["response_type"] = "code"
    if GOOGLE_CLIENT_ID:
        params["client_id"] = GOOGLE_CLIENT_ID
    return RedirectResponse(f"{GOOGLE_AUTH_URL}?{urlencode(params)}")


@mcp.custom_route("/oauth/token", methods=["POST"])
async def oauth_token(request: StarletteRequest) -> Response:
    form = await request.form()
    data = dict(form)
    if GOOGLE_CLIENT_ID:
        data["client_id"] = GOOGLE_CLIENT_ID
    if GOOGLE_CLIENT_SECRET:
        data["client_secret"] = GOOGLE_CLIENT_SECRET
    headers = {}
    auth_header = request.headers.get("authorization")
    if auth_header:
        headers["authorization"] = auth_header
    async with httpx.AsyncClient(timeout=30) as client:
        resp = await client.post(GOOGLE_TOKEN_URL, data=data, headers=headers)
    return Response(
        content=resp.content,
        status_code=resp.status_code,
        media_type=resp.headers.get("content-type", "application/json"),
    )


@mcp.custom_route("/oauth/register", methods=["POST"])
async def oauth_register(request: StarletteRequest) -> Response:
    body = await request.json()
    client_metadata = OAuthClientMetadata.model_validate(body)
    client_info = OAuthClientInformationFull(
        **client_metadata.model_dump(),
        client_id=f"lift-tracker-{secrets.token_urlsafe(12)}",
        client_secret=secrets.token_urlsafe(32),
        client_id_issued_at=int(time.time()),
        client_secret_expires_at=0,
    )
    return PydanticJSONResponse(content=client_info)


def handle_add_lift(
    payload: LiftInput | dict, principal: Principal | None, session: Session
) -> dict:
    return {"lift_id": create_lift(session, principal, payload)}


def handle_list_lifts(
    payload: LiftFilters | dict | None, principal: Principal | None, session: Session
) -> dict:
    return {"lifts": [lift.as_dict() for lift in list_lifts(session, principal, payload)]}


def handle_delete_lift(payload: dict, principal: Principal | None, session: Session) -> dict:
    request = validate_delete_request(payload)
    delete_lift(session, principal, request.lift_id)
    return {"lift_id": request.lift_id, "deleted": True}


def handle_list_sessions(
    payload: LiftFilters | dict | None, principal: Principal | None, session: Session
) -> dict:
    sessions = list_sessions(session, principal, payload)
    return {"sessions": [session_as_dict(workout) for workout in sessions]}


def handle_estimate_one_rep_max(payload: dict) -> dict:
    request = validate_one_rep_max_request(payload)
    return {
        "weight": request.weight,
        "reps": request.reps,
        "estimated_one_rep_max": epley_one_rep_max(request.weight, request.reps),
    }


def _run_tool(tool: str, handler: Callable[[Any, Principal | None, Session], dict], payload: Any) -> dict:
    try:
        principal = current_principal()
        with session_scope() as session:
            return handler(payload, principal, session)
    except LiftTrackerError as exc:
        detail = exc.message or repr(exc)
        raise ValueError(f"{exc.code}: {detail}") from exc
    except SQLAlchemyError as exc:
        logger.exception("tool_database_error", tool=tool)
        raise ValueError(f"database_error: {exc}") from exc
    except Exception as exc:
        logger.exception("tool_unexpected_error", tool=tool)
        detail = str(exc) or repr(exc)
        raise ValueError(f"unexpected_error: {detail}") from exc


@mcp.tool(name="add_lift")
def add_lift(payload: dict[str, Any]) -> dict:
    """Log a lift for the signed-in user.

    payload: exercise, weight (kg), reps, sets, date (YYYY-MM-DD), optional workout_type.
    """
    return _run_tool("add_lift", handle_add_lift, payload)


@mcp.tool(name="list_lifts")
def list_lifts_tool(filters: Optional[dict[str, Any]] = None) -> dict:
    """List the signed-in user's lifts, most recent first.

    filters: optional exercise, workout_type, start_date, end_date (inclusive).
    """
    return _run_tool("list_lifts", handle_list_lifts, filters)


@mcp.tool(name="delete_lift")
def delete_lift_tool(lift_id: str) -> dict:
    """Delete one of the signed-in user's lifts by id."""
    return _run_tool("delete_lift", handle_delete_lift, {"lift_id": lift_id})


@mcp.tool(name="list_sessions")
def list_sessions_tool(filters: Optional[dict[str, Any]] = None) -> dict:
    """Group the signed-in user's lifts into sessions by workout type and date."""
    return _run_tool("list_sessions", handle_list_sessions, filters)


@mcp.tool(name="list_workout_types")
def list_workout_types() -> dict:
    """Workout categories with their suggested exercises."""
    return {"workout_types": WORKOUT_TYPES}


@mcp.tool(name="estimate_one_rep_max")
def estimate_one_rep_max(weight: float, reps: int) -> dict:
    """Epley estimate of the one-repetition max for a weight lifted for some reps."""
    try:
        return handle_estimate_one_rep_max({"weight": weight, "reps": reps})
    except LiftTrackerError as exc:
        raise ValueError(f"{exc.code}: {exc.message}") from exc

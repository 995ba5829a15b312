"""
HTTP routes.

- Health and Bullhorn connection status
- Bullhorn OAuth start/callback
- Candidate search (same service the bridge uses)
- Ephemeral Realtime session + voice preview (OpenAI passthrough)
- Server-hosted conversations and their events

Collaborators live on app.state (see web.app.create_app) and are injected with
Depends, so tests can swap any of them.
"""

from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from pydantic import BaseModel, Field

from bridge.conversations import ConversationManager
from bridge.instructions import get_preview_text
from bridge.openai_api import OpenAIAudioAPI, UpstreamProvisioningFailure
from bullhorn.client import BullhornClient
from bullhorn.credentials import CredentialStore
from bullhorn.errors import BackendError, BackendUnauthenticated, BackendUnavailable
from bullhorn.freshness import FreshnessGate
from bullhorn.query import CandidateResult, SearchCommand
from bullhorn.search import CandidateSearch
from logging_setup import get_logger, Component as LogComponent
from observability.event_store import event_store
from observability.events import Component as ObsComponent, EventEmitter, Severity


router = APIRouter()
logger = get_logger(LogComponent.WEB_SERVER)
emitter = EventEmitter(ObsComponent.WEB)


# --- Dependencies ---


def get_credentials(request: Request) -> CredentialStore:
    return request.app.state.credentials


def get_bullhorn(request: Request) -> BullhornClient:
    return request.app.state.bullhorn


def get_gate(request: Request) -> FreshnessGate:
    return request.app.state.gate


def get_search(request: Request) -> CandidateSearch:
    return request.app.state.search


def get_openai(request: Request) -> OpenAIAudioAPI:
    return request.app.state.openai


def get_conversations(request: Request) -> ConversationManager:
    return request.app.state.conversations


def _upstream_response(error: UpstreamProvisioningFailure) -> Response:
    """Pass an upstream failure through with its status and body."""
    if isinstance(error.body, (dict, list)):
        return JSONResponse(status_code=error.status, content=error.body)
    return PlainTextResponse(str(error.body), status_code=error.status)


# --- Models ---


class SearchResponse(BaseModel):
    query: str
    results: List[CandidateResult]


class StatusResponse(BaseModel):
    connected: bool


class TTSRequest(BaseModel):
    voice: str = "aria"
    text: Optional[str] = None


class UserMessage(BaseModel):
    text: str = Field(..., min_length=1)


# --- Health / status ---


@router.get("/api/health")
async def health() -> dict:
    return {"ok": True}


@router.get("/api/bullhorn/status", response_model=StatusResponse)
async def bullhorn_status(store: CredentialStore = Depends(get_credentials)) -> StatusResponse:
    """Whether a Bullhorn session exists; freshness is not checked here."""
    return StatusResponse(connected=store.is_connected)


# --- Bullhorn OAuth ---


@router.get("/api/bullhorn/oauth/start")
async def bullhorn_oauth_start(client: BullhornClient = Depends(get_bullhorn)) -> RedirectResponse:
    return RedirectResponse(client.authorize_url(), status_code=302)


@router.get("/api/bullhorn/oauth/callback")
async def bullhorn_oauth_callback(
    code: Optional[str] = Query(None),
    client: BullhornClient = Depends(get_bullhorn),
    gate: FreshnessGate = Depends(get_gate),
) -> Response:
    if not code:
        return PlainTextResponse("Missing code", status_code=400)

    try:
        grant = await client.exchange_code(code)
        await gate.connect(grant.access_token, grant.refresh_token)
    except BackendError as e:
        logger.error("Bullhorn connect failed", category=e.category, status=e.status)
        emitter.emit("bullhorn.connect_failed", session_id="http", severity=Severity.ERROR, category=e.category)
        return PlainTextResponse("Bullhorn login failed", status_code=500)

    emitter.emit("bullhorn.connected", session_id="http")
    return RedirectResponse("/?bullhorn=connected", status_code=302)


# --- Candidate search ---


@router.post("/api/search-candidates", response_model=SearchResponse)
async def search_candidates(
    command: Optional[SearchCommand] = Body(None),
    search: CandidateSearch = Depends(get_search),
) -> Any:
    try:
        outcome = await search.search(command or SearchCommand())
    except BackendUnauthenticated as e:
        return JSONResponse(
            status_code=400,
            content={"error": "Bullhorn not connected", "category": e.category},
        )
    except BackendUnavailable as e:
        return JSONResponse(
            status_code=502,
            content={"error": "Bullhorn search failed", "category": e.category, "detail": e.detail},
        )
    return outcome.to_payload()


# --- OpenAI passthrough ---


async def ephemeral_session(openai_api: OpenAIAudioAPI = Depends(get_openai)) -> Any:
    """Ephemeral Realtime session for browser clients."""
    try:
        return await openai_api.create_realtime_session()
    except UpstreamProvisioningFailure as e:
        return _upstream_response(e)


router.add_api_route("/api/voice-token", ephemeral_session, methods=["POST"])
router.add_api_route("/session", ephemeral_session, methods=["GET", "POST"])


@router.post("/api/tts")
async def tts_preview(
    req: Optional[TTSRequest] = Body(None),
    openai_api: OpenAIAudioAPI = Depends(get_openai),
) -> Response:
    req = req or TTSRequest()
    try:
        audio = await openai_api.synthesize(req.voice, req.text or get_preview_text())
    except UpstreamProvisioningFailure as e:
        return _upstream_response(e)
    return Response(content=audio, media_type="audio/mpeg")


# --- Conversations ---


@router.post("/api/conversations", status_code=201)
async def start_conversation(manager: ConversationManager = Depends(get_conversations)) -> Any:
    try:
        conversation = await manager.start()
    except UpstreamProvisioningFailure as e:
        return _upstream_response(e)
    return {
        "session_id": conversation.session_id,
        "started_at": conversation.started_at.isoformat(),
    }


@router.post("/api/conversations/{session_id}/messages")
async def send_conversation_message(
    session_id: str,
    message: UserMessage,
    manager: ConversationManager = Depends(get_conversations),
) -> dict:
    if not await manager.send_user_text(session_id, message.text):
        raise HTTPException(status_code=404, detail="Conversation not active")
    return {"status": "ok"}


@router.delete("/api/conversations/{session_id}")
async def stop_conversation(
    session_id: str,
    manager: ConversationManager = Depends(get_conversations),
) -> dict:
    if not await manager.stop(session_id):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return {"status": "ok"}


@router.get("/api/conversations/{session_id}/events")
async def get_conversation_events(
    session_id: str,
    event_type: Optional[str] = Query(None, description="Filter by event_type"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max events to return"),
    manager: ConversationManager = Depends(get_conversations),
) -> dict:
    """Narrative lines, commands and search outcomes of one conversation."""
    events = event_store.query(session_id=session_id, event_type=event_type, limit=limit)
    if not events and manager.get(session_id) is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return {
        "session_id": session_id,
        "events": events,
        "count": len(events),
    }

"""
FastAPI application factory.

create_app() wires one credential store, one Bullhorn client, the freshness
gate, the search service, the OpenAI client and the conversation manager, and
keeps them on app.state. Every collaborator can be passed in (tests do).
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from bridge.conversations import ConversationManager
from bridge.openai_api import OpenAIAudioAPI
from bullhorn.client import BullhornClient
from bullhorn.credentials import CredentialStore
from bullhorn.freshness import FreshnessGate
from bullhorn.search import CandidateSearch
from logging_setup import get_logger, Component
from .routes import router


logger = get_logger(Component.WEB_SERVER)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    conversations: ConversationManager = app.state.conversations
    active = conversations.active()
    if active is not None:
        await conversations.stop(active.session_id)
    app.state.credentials.clear()
    logger.info("Server shut down")


def create_app(
    *,
    store: Optional[CredentialStore] = None,
    bullhorn: Optional[BullhornClient] = None,
    openai_api: Optional[OpenAIAudioAPI] = None,
    conversations: Optional[ConversationManager] = None,
) -> FastAPI:
    app = FastAPI(title="Wave-Molly Voice Agent", lifespan=lifespan)

    store = store if store is not None else CredentialStore.from_env()
    bullhorn = bullhorn if bullhorn is not None else BullhornClient()
    gate = FreshnessGate(store, bullhorn)
    search = CandidateSearch(gate, bullhorn)

    app.state.credentials = store
    app.state.bullhorn = bullhorn
    app.state.gate = gate
    app.state.search = search
    app.state.openai = openai_api if openai_api is not None else OpenAIAudioAPI()
    app.state.conversations = conversations if conversations is not None else ConversationManager(search)

    app.include_router(router)
    return app


app = create_app()

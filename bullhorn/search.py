"""
Candidate search service.

One search = freshness check -> query construction -> Candidate search ->
normalised records. Shared by the HTTP endpoint and the conversation bridge.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from logging_setup import get_logger, Component as LogComponent
from observability.events import Component as ObsComponent, EventEmitter, Severity
from .client import BullhornClient
from .errors import BackendError
from .freshness import FreshnessGate
from .query import (
    CANDIDATE_FIELDS,
    CandidateResult,
    SearchCommand,
    build_candidate_query,
    normalize_candidate,
)


logger = get_logger(LogComponent.BULLHORN)
emitter = EventEmitter(ObsComponent.SEARCH)


@dataclass
class SearchOutcome:
    query: str
    count: int
    results: List[CandidateResult] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready body: {"query": ..., "results": [...]}"""
        return {
            "query": self.query,
            "results": [r.model_dump(by_alias=True) for r in self.results],
        }


class CandidateSearch:
    """Runs candidate searches against Bullhorn behind the freshness gate."""

    def __init__(self, gate: FreshnessGate, client: BullhornClient):
        self.gate = gate
        self._client = client

    async def search(self, command: SearchCommand, *, session_id: Optional[str] = None) -> SearchOutcome:
        """
        Run one search.

        Raises BackendUnauthenticated (nothing sent) or BackendUnavailable.
        """
        session_id = session_id or "http"
        correlation_id = f"search_{uuid.uuid4().hex[:12]}"
        start_ts = time.time()

        try:
            credentials = await self.gate.ensure_fresh()
            query = build_candidate_query(command)
            count = command.top_n
            raw = await self._client.search_candidates(
                credentials.rest_url,
                credentials.session_token,
                query,
                count,
                CANDIDATE_FIELDS,
            )
        except BackendError as e:
            emitter.emit(
                "search.failed",
                session_id=session_id,
                severity=Severity.WARN,
                correlation_id=correlation_id,
                category=e.category,
                status=e.status,
            )
            raise

        results = [r for r in (normalize_candidate(c) for c in raw if isinstance(c, dict)) if r]
        latency_ms = int((time.time() - start_ts) * 1000)

        logger.info(
            "Candidate search completed",
            session_id=session_id,
            query=query,
            count=count,
            result_count=len(results),
            latency_ms=latency_ms,
        )
        emitter.emit(
            "search.completed",
            session_id=session_id,
            severity=Severity.INFO,
            correlation_id=correlation_id,
            query=query,
            result_count=len(results),
            latency_ms=latency_ms,
        )
        return SearchOutcome(query=query, count=count, results=results)

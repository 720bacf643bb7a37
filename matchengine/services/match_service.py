"""
Match endpoint service.

Validates requests, enforces that a requester only acts on their own
records, and delegates to the orchestrator. Only ``ValidationError`` and
``AuthorizationError`` (plus ``NotFoundError`` for direct record reads)
leave this layer; every other failure is absorbed by the pipeline.
"""

from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from matchengine.core.cache import TTLCache
from matchengine.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from matchengine.core.matching.orchestrator import MatchOrchestrator
from matchengine.core.matching.terminal_log import TerminalLogGenerator
from matchengine.data.database import InMemoryRecordStore, RecordStore
from matchengine.data.models import MatchRecord, MatchRequest, MatchResponse
from matchengine.data.repositories import (
    CandidateRepository,
    JobRepository,
    MatchRepository,
    UserRepository,
)
from matchengine.services.ai_client import AIClient
from matchengine.services.blob_store import BlobStore, CloudinaryBlobStore
from matchengine.services.resume_locator import ResumeLocator
from matchengine.utils.config import AppSettings, get_settings
from matchengine.utils.constants import RESULT_LIST_LIMIT
from matchengine.utils.logger import LoggerMixin, audit_log


def _require_requester(requester_id: Optional[str]) -> str:
    if not requester_id or not str(requester_id).strip():
        raise AuthorizationError("Authenticated requester required")
    return str(requester_id).strip()


class MatchService(LoggerMixin):
    """Request-level operations over the matching pipeline."""

    def __init__(
        self,
        orchestrator: MatchOrchestrator,
        matches: MatchRepository,
        terminal_log: Optional[TerminalLogGenerator] = None,
    ):
        self.orchestrator = orchestrator
        self.matches = matches
        self.terminal_log = terminal_log or TerminalLogGenerator()

    async def match(self, requester_id: Optional[str], payload: dict[str, Any]) -> MatchResponse:
        """
        Run a match for the requester.

        Args:
            requester_id: Authenticated user id
            payload: ``{subjectId, jobId, fastFirst?}``

        Raises:
            ValidationError: Missing or malformed fields
            AuthorizationError: Requester is not the subject
        """
        try:
            request = MatchRequest.model_validate(payload or {})
        except PydanticValidationError as e:
            raise ValidationError(
                "subjectId and jobId are required", details={"errors": e.errors()}
            ) from e

        requester = _require_requester(requester_id)
        if requester != request.subject_id:
            audit_log(
                "match_forbidden",
                {"requester_id": requester, "subject_id": request.subject_id},
                audit_type="ACCESS",
            )
            raise AuthorizationError("You can only analyze your own resume")

        outcome = await self.orchestrator.match(
            request.subject_id, request.job_id, fast_first=request.fast_first
        )
        return MatchResponse(
            success=True,
            match=outcome.result,
            job_title=outcome.job_title,
            company_name=outcome.company_name,
            source=outcome.result.source,
            cached=outcome.cached,
            match_id=outcome.match_id,
        )

    async def list_results(self, requester_id: Optional[str]) -> list[MatchRecord]:
        """The requester's newest match records."""
        requester = _require_requester(requester_id)
        return await self.matches.list_for_subject(requester, limit=RESULT_LIST_LIMIT)

    async def get_result(self, requester_id: Optional[str], match_id: str) -> MatchRecord:
        """
        One match record owned by the requester.

        Raises:
            NotFoundError: No record with this id
            AuthorizationError: Record belongs to another user
        """
        requester = _require_requester(requester_id)
        if not match_id:
            raise ValidationError("match id is required")

        record = await self.matches.get_by_id(match_id)
        if record is None:
            raise NotFoundError(f"Match result {match_id} not found")
        if record.subject_id != requester:
            raise AuthorizationError("Match result belongs to another user")
        return record

    def render_terminal_log(self, requester_id: Optional[str], payload: dict[str, Any]) -> str:
        """
        Render a synthetic pipeline trace.

        Args:
            payload: ``{resume_source, job_title, job_id, steps: [...], results: {...}}``

        Raises:
            ValidationError: ``steps`` missing or not a list
        """
        _require_requester(requester_id)
        payload = payload or {}
        steps = payload.get("steps")
        if not isinstance(steps, list):
            raise ValidationError("steps array required")

        results = payload.get("results")
        return self.terminal_log.generate(
            resume_source=str(payload.get("resume_source") or ""),
            job_title=str(payload.get("job_title") or ""),
            job_id=payload.get("job_id"),
            steps=steps,
            results=results if isinstance(results, dict) else {},
        )


def create_match_service(
    store: Optional[RecordStore] = None,
    blob_store: Optional[BlobStore] = None,
    ai_client: Optional[AIClient] = None,
    settings: Optional[AppSettings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> MatchService:
    """
    Wire a match service with its collaborators.

    Caches are created here, once per service instance.
    """
    settings = settings or get_settings()
    store = store if store is not None else InMemoryRecordStore()
    matches = MatchRepository(store)

    locator = ResumeLocator(
        blob_store or CloudinaryBlobStore(settings.storage),
        http_client=http_client,
        fetch_timeout=settings.matching.resume_fetch_timeout_seconds,
        signed_url_ttl=settings.matching.signed_url_ttl_seconds,
    )
    terminal_log = TerminalLogGenerator()
    orchestrator = MatchOrchestrator(
        users=UserRepository(store),
        candidates=CandidateRepository(store),
        jobs=JobRepository(store),
        matches=matches,
        locator=locator,
        ai_client=ai_client or AIClient(settings.ai),
        result_cache=TTLCache(name="match-results", maxsize=settings.matching.cache_max_entries),
        text_cache=TTLCache(name="resume-text", maxsize=settings.matching.cache_max_entries),
        settings=settings.matching,
        terminal_log=terminal_log,
        http_client=http_client,
    )
    return MatchService(orchestrator, matches, terminal_log=terminal_log)

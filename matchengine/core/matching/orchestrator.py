"""
Match orchestrator.

Coordinates one resume-to-job match:

    cache check -> profile/job lookup -> resume location -> text extraction
    -> fallback score -> AI race -> result selection -> persist -> cache

Every stage after the cache check degrades instead of failing: a missing
profile or job yields an informational zero-score result, an unreachable
resume yields empty text, and an AI call that errors or overruns its time
budget yields the fallback score. The AI call that loses the race is left
to finish on its own; it is never awaited and never touches the caches.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional

import httpx

from matchengine.core.cache import TTLCache
from matchengine.core.exceptions import PersistenceError
from matchengine.core.matching.ai_response import parse_ai_reply
from matchengine.core.matching.fallback_scorer import (
    FallbackScorer,
    get_fallback_scorer,
    no_job_result,
    no_profile_result,
    no_resume_result,
)
from matchengine.core.matching.prompts import build_match_prompt
from matchengine.core.matching.terminal_log import TerminalLogGenerator
from matchengine.data.models import (
    CandidateProfile,
    JobPosting,
    MatchRecord,
    MatchResult,
    MatchSource,
    User,
)
from matchengine.data.repositories import (
    CandidateRepository,
    JobRepository,
    MatchRepository,
    UserRepository,
)
from matchengine.ml.nlp.extractors import ExtractorFactory
from matchengine.services.ai_client import AIClient, CompletionResult
from matchengine.services.resume_locator import (
    LocatorErrorKind,
    LocatorResult,
    ResumeLocator,
)
from matchengine.utils.config import MatchingSettings, get_settings
from matchengine.utils.constants import PIPELINE_STEPS, SNAPSHOT_RESUME_CHARS
from matchengine.utils.logger import audit_log, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CachedMatch:
    """What the result cache holds per (subject, job)."""

    result: MatchResult
    job_title: str
    company_name: str
    match_id: Optional[str] = None


@dataclass
class MatchOutcome:
    """Everything the match endpoint needs to answer."""

    result: MatchResult
    job_title: str = ""
    company_name: str = ""
    cached: bool = False
    match_id: Optional[str] = None
    resume_reason: str = ""
    ai_error: Optional[str] = None
    steps: list[str] = field(default_factory=list)

    @property
    def source(self) -> str:
        return self.result.source


@dataclass
class ResumeText:
    text: str = ""
    source: str = ""
    reason: str = ""
    had_reference: bool = True


class MatchOrchestrator:
    """
    Entry point of the matching pipeline.

    The result cache and the extracted-text cache are injected so tests
    and long-running processes control their lifetime.
    """

    def __init__(
        self,
        users: UserRepository,
        candidates: CandidateRepository,
        jobs: JobRepository,
        matches: MatchRepository,
        locator: ResumeLocator,
        ai_client: AIClient,
        result_cache: TTLCache,
        text_cache: TTLCache,
        settings: Optional[MatchingSettings] = None,
        scorer: Optional[FallbackScorer] = None,
        terminal_log: Optional[TerminalLogGenerator] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.users = users
        self.candidates = candidates
        self.jobs = jobs
        self.matches = matches
        self.locator = locator
        self.ai_client = ai_client
        self.result_cache = result_cache
        self.text_cache = text_cache
        self.settings = settings or get_settings().matching
        self.scorer = scorer or get_fallback_scorer()
        self.terminal_log = terminal_log or TerminalLogGenerator()
        self._http_client = http_client

        # AI calls that lost the race and are still settling
        self._abandoned: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def match(
        self, subject_id: str, job_id: str, fast_first: bool = False
    ) -> MatchOutcome:
        """
        Produce a match result for a subject and job.

        Args:
            subject_id: Candidate user id (already authorized)
            job_id: Job posting id
            fast_first: Use the shorter AI time budget

        Returns:
            MatchOutcome; never raises for downstream failures
        """
        cache_key = (subject_id, job_id)
        cached, hit = self.result_cache.get(cache_key)
        if hit:
            logger.info(f"Match cache hit for {subject_id}:{job_id}")
            self._audit(subject_id, job_id, cached.result, cached=True)
            return MatchOutcome(
                result=cached.result,
                job_title=cached.job_title,
                company_name=cached.company_name,
                cached=True,
                match_id=cached.match_id,
            )

        profile = await self._read(self.candidates.get_by_subject(subject_id), "profile")
        if profile is None:
            logger.info(f"No profile for subject {subject_id}")
            result = no_profile_result()
            self._audit(subject_id, job_id, result, cached=False)
            return MatchOutcome(result=result)

        job = await self._read(self.jobs.get_by_id(job_id), "job")
        if job is None:
            logger.info(f"No job {job_id}")
            result = no_job_result()
            self._audit(subject_id, job_id, result, cached=False)
            return MatchOutcome(result=result)

        user = await self._read(self.users.get_by_id(subject_id), "user")

        resume = await self._resume_text(profile, user)
        if not resume.had_reference:
            result = no_resume_result(job, profile)
            return await self._finish(
                subject_id, job, profile, user, resume, result, raw_ai=None, ai_error=None
            )

        fallback = self.scorer.score(job, resume.text, profile)

        result, raw_ai, ai_error = await self._race_ai(job, profile, resume.text, fast_first, fallback)
        return await self._finish(
            subject_id, job, profile, user, resume, result, raw_ai=raw_ai, ai_error=ai_error
        )

    @property
    def pending_abandoned(self) -> int:
        """AI calls that lost their race and have not settled yet."""
        return len(self._abandoned)

    # -------------------------------------------------------------------------
    # Resume
    # -------------------------------------------------------------------------

    async def _resume_text(
        self, profile: CandidateProfile, user: Optional[User]
    ) -> ResumeText:
        located: LocatorResult = await self.locator.resolve(
            profile.resume,
            user.resume_reference if user is not None else None,
            timeout=self.settings.resume_fetch_timeout_seconds,
        )
        source = located.url or located.reference or profile.resume.reference
        if not located.success:
            logger.info(f"Resume not located ({located.reason})")
            return ResumeText(
                source=source,
                reason=located.reason,
                had_reference=located.error_kind != LocatorErrorKind.NO_RESUME_REFERENCE,
            )

        text, hit = self.text_cache.get(located.url)
        if hit:
            return ResumeText(text=text, source=source, reason=located.reason)

        content = located.content
        if content is None:
            content = await self._download(located.url)
            if content is None:
                return ResumeText(source=source, reason=located.reason)

        extraction = ExtractorFactory.extract_from_bytes(
            content, located.reference or located.url
        )
        if not extraction.success:
            logger.info(
                f"Resume text unavailable: {extraction.error_kind} ({extraction.error_message})"
            )
            return ResumeText(source=source, reason=located.reason)

        self.text_cache.set(located.url, extraction.text, self.settings.text_cache_ttl_seconds)
        return ResumeText(text=extraction.text, source=source, reason=located.reason)

    async def _download(self, url: str) -> Optional[bytes]:
        timeout = self.settings.document_download_timeout_seconds
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, timeout=timeout, follow_redirects=True)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, timeout=timeout, follow_redirects=True)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning(f"Resume download failed: {type(e).__name__}")
            return None

        if not response.is_success:
            logger.warning(f"Resume download returned {response.status_code}")
            return None
        return response.content

    # -------------------------------------------------------------------------
    # AI race
    # -------------------------------------------------------------------------

    async def _race_ai(
        self,
        job: JobPosting,
        profile: CandidateProfile,
        resume_text: str,
        fast_first: bool,
        fallback: MatchResult,
    ) -> tuple[MatchResult, Optional[dict], Optional[str]]:
        """
        Race the AI completion against the time budget.

        Returns:
            (selected result, decoded AI payload or None, AI error or None)
        """
        if not self.ai_client.is_configured:
            return fallback, None, "not_configured"

        prompt = build_match_prompt(
            job, profile, resume_text, self.settings.resume_text_prompt_chars
        )
        budget = self.settings.time_budget(fast_first)
        request_timeout = budget - self.settings.grace_period_seconds

        task = asyncio.create_task(self.ai_client.complete(prompt, timeout=request_timeout))
        done, _ = await asyncio.wait({task}, timeout=budget)

        if task not in done:
            logger.warning(f"AI call exceeded {budget:.1f}s budget; using fallback")
            self._abandon(task)
            return fallback, None, "timeout"

        try:
            completion: CompletionResult = task.result()
        except Exception as e:
            logger.exception(f"AI call raised: {e}")
            return fallback, None, "error"

        if not completion.success:
            kind = completion.error_kind.value if completion.error_kind else "error"
            return fallback, None, kind

        parsed = parse_ai_reply(completion.text, job.title, has_resume=bool(resume_text))
        if parsed is None:
            return fallback, None, "unparseable"
        return parsed.result, parsed.payload, None

    def _abandon(self, task: asyncio.Task) -> None:
        self._abandoned.add(task)
        task.add_done_callback(self._settle_abandoned)

    def _settle_abandoned(self, task: asyncio.Task) -> None:
        """Consume the late outcome so it is never reported as unhandled."""
        self._abandoned.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"Abandoned AI call failed late: {error!r}")
            return
        completion = task.result()
        logger.debug(
            f"Abandoned AI call settled late (success={completion.success}); ignored"
        )

    # -------------------------------------------------------------------------
    # Persist and cache
    # -------------------------------------------------------------------------

    async def _finish(
        self,
        subject_id: str,
        job: JobPosting,
        profile: CandidateProfile,
        user: Optional[User],
        resume: ResumeText,
        result: MatchResult,
        raw_ai: Optional[dict],
        ai_error: Optional[str],
    ) -> MatchOutcome:
        job_id = job.id or ""
        terminal_text = self.terminal_log.generate(
            resume_source=resume.source or "user_resume",
            job_title=job.title,
            job_id=job_id,
            steps=PIPELINE_STEPS,
            results={
                "fitScore": result.score,
                "matchedSkills": result.matched_skills,
                "missingSkills": result.missing_skills,
            },
        )

        match_id = await self._persist(
            subject_id, job, profile, user, resume, result, raw_ai, terminal_text
        )

        ttl = (
            self.settings.ai_cache_ttl_seconds
            if result.source == MatchSource.AI
            else self.settings.fallback_cache_ttl_seconds
        )
        self.result_cache.set(
            (subject_id, job_id),
            CachedMatch(
                result=result,
                job_title=job.title,
                company_name=job.company,
                match_id=match_id,
            ),
            ttl,
        )

        self._audit(subject_id, job_id, result, cached=False, ai_error=ai_error)
        return MatchOutcome(
            result=result,
            job_title=job.title,
            company_name=job.company,
            cached=False,
            match_id=match_id,
            resume_reason=resume.reason,
            ai_error=ai_error,
            steps=list(PIPELINE_STEPS),
        )

    async def _persist(
        self,
        subject_id: str,
        job: JobPosting,
        profile: CandidateProfile,
        user: Optional[User],
        resume: ResumeText,
        result: MatchResult,
        raw_ai: Optional[dict],
        terminal_text: str,
    ) -> Optional[str]:
        """Best-effort write of the match record; returns its id or None."""
        subject_name = profile.display_name or (user.display_name if user else "")
        record = MatchRecord.from_result(
            result,
            subject_id=subject_id,
            job_id=job.id or "",
            subject_name=subject_name,
            job_title=job.title,
            company_name=job.company,
            job_snapshot=job.snapshot(),
            resume_snapshot={
                "source": resume.source,
                "text": resume.text[:SNAPSHOT_RESUME_CHARS],
            },
            raw_ai_response=raw_ai,
            terminal_log=terminal_text,
        )
        try:
            saved = await self.matches.create(record)
        except Exception as e:
            logger.error(f"Failed to persist match for {subject_id}:{job.id}: {e}")
            return None
        return saved.id

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    async def _read(awaitable, label: str):
        """Await a repository read, treating store failures as a miss."""
        try:
            return await awaitable
        except PersistenceError as e:
            logger.error(f"Reading {label} failed: {e}")
            return None

    @staticmethod
    def _audit(
        subject_id: str,
        job_id: str,
        result: MatchResult,
        cached: bool,
        ai_error: Optional[str] = None,
    ) -> None:
        details = {
            "subject_id": subject_id,
            "job_id": job_id,
            "score": result.score,
            "source": result.source,
            "recommendation": result.recommendation,
            "cached": cached,
        }
        if ai_error:
            details["ai_error"] = ai_error
        audit_log("match_scored", details)

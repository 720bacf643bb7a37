"""
Shared test fixtures for the matching engine test suite.

Sets environment variables before any matchengine imports so settings
never pick up real credentials, then provides factories for jobs,
profiles and PDF bytes, fakes for the blob store and AI client, and a
builder for a fully wired orchestrator over an in-memory store.
"""

import os

# === Set environment BEFORE any matchengine imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ["LOG_FILE_OUTPUT"] = "false"
for _key in (
    "DEEPSEEK_API_KEY",
    "GEMINI_API_KEY",
    "AI_API_KEY",
    "DEEPSEEK_MODEL",
    "AI_MODEL",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
):
    os.environ.pop(_key, None)

import asyncio
from typing import Any, Callable, Optional

import httpx
import pytest

from matchengine.core.cache import TTLCache
from matchengine.core.exceptions import PersistenceError
from matchengine.core.matching.orchestrator import MatchOrchestrator
from matchengine.data.database import InMemoryRecordStore
from matchengine.data.models import CandidateProfile, JobPosting
from matchengine.data.repositories import (
    CandidateRepository,
    JobRepository,
    MatchRepository,
    UserRepository,
)
from matchengine.services.ai_client import CompletionResult, UpstreamErrorKind
from matchengine.services.blob_store import BlobStore
from matchengine.services.match_service import MatchService
from matchengine.services.resume_locator import ResumeLocator
from matchengine.utils.config import MatchingSettings


RESUME_URL = "https://files.example.com/resumes/u1.pdf"
SIGNED_HOST = "signed.example.com"

RESUME_LINES = [
    "Jane Doe - Frontend Engineer.",
    "4 years building React.js apps with Node.",
    "Skills: React, Node.js, TypeScript, Docker.",
    "Led the migration of a dashboard to React hooks and Jest tests.",
]

AI_REPLY = (
    "```json\n"
    '{"fitScore": 88, "summary": "Strong React and Node background.", '
    '"strengths": ["react", "node"], "weaknesses": ["kubernetes"], '
    '"recommendations": ["Highlight Node services"], '
    '"evidence": ["4 years building React.js apps with Node."]}\n'
    "```"
)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def build_pdf(lines: list[str]) -> bytes:
    """Single-page PDF with one Helvetica text line per entry."""
    ops = ["BT", "/F1 11 Tf", "14 TL", "72 720 Td"]
    for line in lines:
        escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        ops.append(f"({escaped}) Tj T*")
    ops.append("ET")
    stream = "\n".join(ops).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_at
    return bytes(out)


@pytest.fixture
def resume_pdf() -> bytes:
    return build_pdf(RESUME_LINES)


@pytest.fixture
def make_job():
    """Factory that returns a callable to build JobPosting models."""

    def _factory(**overrides: Any) -> JobPosting:
        data: dict[str, Any] = {
            "_id": "job-1",
            "title": "Frontend Developer",
            "company": "Acme",
            "description": "",
            "requirements": "",
            "skills": "React, Node.js",
            "experienceLevel": "",
        }
        data.update(overrides)
        return JobPosting.model_validate(data)

    return _factory


@pytest.fixture
def make_profile():
    """Factory that returns a callable to build CandidateProfile models."""

    def _factory(**overrides: Any) -> CandidateProfile:
        data: dict[str, Any] = {
            "_id": "profile-1",
            "userId": "user-1",
            "personalInfo": {"firstName": "Jane", "lastName": "Doe"},
            "professionalBio": {"bio": "Frontend engineer", "experience": "4 years"},
            "skills": {"technicalSkills": "React, Node.js", "softSkills": "", "languages": []},
            "resume": {"fileUrl": RESUME_URL, "fileName": "resume.pdf"},
            "experienceHistory": [],
        }
        data.update(overrides)
        return CandidateProfile.model_validate(data)

    return _factory


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBlobStore(BlobStore):
    """Signs any id with a predictable URL and counts calls."""

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.calls: list[tuple[str, int]] = []

    def signed_download_url(self, object_id: str, expires_in: int = 120) -> str:
        self.calls.append((object_id, expires_in))
        if not self.configured or not object_id:
            return ""
        return f"https://{SIGNED_HOST}/{object_id}?expires_in={expires_in}"


class FakeAIClient:
    """
    Stand-in for ``AIClient``.

    ``reply`` is returned as a successful completion, ``failure`` as a
    failed one; ``delay`` seconds are slept first, and ``hang`` never
    returns at all.
    """

    def __init__(
        self,
        reply: str = AI_REPLY,
        failure: Optional[UpstreamErrorKind] = None,
        delay: float = 0.0,
        hang: bool = False,
        configured: bool = True,
    ):
        self.reply = reply
        self.failure = failure
        self.delay = delay
        self.hang = hang
        self.configured = configured
        self.calls: list[tuple[str, float]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, prompt: str, timeout: float) -> CompletionResult:
        self.calls.append((prompt, timeout))
        if self.hang:
            await asyncio.Event().wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failure is not None:
            return CompletionResult.failure(self.failure, "upstream refused")
        return CompletionResult(success=True, text=self.reply, status_code=200, attempts=1)


class FailingWriteStore(InMemoryRecordStore):
    """In-memory store whose writes to one collection always fail."""

    def __init__(self, collection: str = "match_results"):
        super().__init__()
        self.failing_collection = collection

    async def put(self, collection: str, key: str, document: dict[str, Any]) -> None:
        if collection == self.failing_collection:
            raise PersistenceError(f"Write to {collection} failed: disk full")
        await super().put(collection, key, document)


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """httpx client whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def pdf_handler(pdf: bytes, requests: Optional[list] = None):
    """Handler serving ``pdf`` for every GET."""

    def _handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(200, content=pdf, headers={"Content-Type": "application/pdf"})

    return _handler


@pytest.fixture
def fake_blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


async def seed_store(
    store: InMemoryRecordStore,
    users: Optional[list[dict[str, Any]]] = None,
    profiles: Optional[list[dict[str, Any]]] = None,
    jobs: Optional[list[dict[str, Any]]] = None,
) -> None:
    for collection, documents in (
        ("users", users or []),
        ("user_profiles", profiles or []),
        ("jobs", jobs or []),
    ):
        for document in documents:
            await store.put(collection, document["_id"], document)


def default_documents() -> dict[str, list[dict[str, Any]]]:
    """One user with a PDF resume and one React/Node job."""
    return {
        "users": [{"_id": "user-1", "firstName": "Jane", "lastName": "Doe"}],
        "profiles": [
            {
                "_id": "profile-1",
                "userId": "user-1",
                "personalInfo": {"firstName": "Jane", "lastName": "Doe"},
                "professionalBio": {"experience": "4 years"},
                "skills": {"technicalSkills": "React, Node.js"},
                "resume": {"fileUrl": RESUME_URL, "fileName": "resume.pdf"},
            }
        ],
        "jobs": [
            {
                "_id": "job-1",
                "title": "Frontend Developer",
                "company": "Acme",
                "skills": "React, Node.js",
                "requirements": "",
                "description": "Build React apps on a Node backend.",
            }
        ],
    }


def fast_settings(**overrides: Any) -> MatchingSettings:
    """Matching settings with sub-second AI budgets."""
    values: dict[str, Any] = {
        "time_budget_seconds": 0.3,
        "fast_time_budget_seconds": 0.15,
        "grace_period_seconds": 0.05,
    }
    values.update(overrides)
    return MatchingSettings(**values)


class Harness:
    """A wired orchestrator plus handles on every collaborator."""

    def __init__(
        self,
        store: InMemoryRecordStore,
        ai_client: FakeAIClient,
        blob_store: FakeBlobStore,
        http_client: httpx.AsyncClient,
        clock: FakeClock,
        settings: MatchingSettings,
    ):
        self.store = store
        self.ai_client = ai_client
        self.blob_store = blob_store
        self.http_client = http_client
        self.clock = clock
        self.result_cache = TTLCache(name="match-results", clock=clock)
        self.text_cache = TTLCache(name="resume-text", clock=clock)
        self.matches = MatchRepository(store)
        self.orchestrator = MatchOrchestrator(
            users=UserRepository(store),
            candidates=CandidateRepository(store),
            jobs=JobRepository(store),
            matches=self.matches,
            locator=ResumeLocator(blob_store, http_client=http_client, fetch_timeout=1.0),
            ai_client=ai_client,
            result_cache=self.result_cache,
            text_cache=self.text_cache,
            settings=settings,
            http_client=http_client,
        )
        self.service = MatchService(self.orchestrator, self.matches)


@pytest.fixture
def make_harness(resume_pdf, clock):
    """
    Factory building a ``Harness`` seeded with ``default_documents``.

    Must be awaited from inside the test's event loop, since the mock
    HTTP client is bound to it.
    """

    async def _factory(
        ai_client: Optional[FakeAIClient] = None,
        store: Optional[InMemoryRecordStore] = None,
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
        settings: Optional[MatchingSettings] = None,
        documents: Optional[dict[str, list[dict[str, Any]]]] = None,
    ) -> Harness:
        store = store if store is not None else InMemoryRecordStore()
        documents = documents if documents is not None else default_documents()
        await seed_store(store, **documents)
        return Harness(
            store=store,
            ai_client=ai_client or FakeAIClient(),
            blob_store=FakeBlobStore(),
            http_client=mock_http_client(handler or pdf_handler(resume_pdf)),
            clock=clock,
            settings=settings or fast_settings(),
        )

    return _factory

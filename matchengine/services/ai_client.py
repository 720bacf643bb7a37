"""
Chat-completion client for the hosted AI provider.

Owns provider resolution, request shaping and the retry policy for
transient upstream failures. ``complete`` never raises for upstream
problems; every failure comes back as a typed ``CompletionResult``.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx

from matchengine.core.retry import RetryPolicy, run_with_retry
from matchengine.utils.config import AISettings, ProviderConfig, get_settings, resolve_provider
from matchengine.utils.logger import LoggerMixin


class UpstreamErrorKind(str, Enum):
    """Classified reason a completion failed."""

    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    AUTH_FAILURE = "auth_failure"
    BAD_REQUEST = "bad_request"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"


@dataclass
class CompletionResult:
    """Outcome of a completion request, after retries."""

    success: bool
    text: str = ""
    error_kind: Optional[UpstreamErrorKind] = None
    error_message: Optional[str] = None
    status_code: Optional[int] = None
    attempts: int = 0
    total_wait: float = 0.0
    retry_after: Optional[float] = None

    @property
    def is_retryable(self) -> bool:
        """429 and 5xx are transient; everything else is final."""
        if self.success or self.status_code is None:
            return False
        return self.status_code == 429 or 500 <= self.status_code < 600

    @classmethod
    def failure(
        cls,
        kind: UpstreamErrorKind,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ) -> "CompletionResult":
        return cls(
            success=False,
            error_kind=kind,
            error_message=message,
            status_code=status_code,
            retry_after=retry_after,
        )


def classify_status(status_code: int) -> UpstreamErrorKind:
    """Map a failed HTTP status to an error kind."""
    if status_code == 401:
        return UpstreamErrorKind.AUTH_FAILURE
    if status_code == 429:
        return UpstreamErrorKind.RATE_LIMITED
    if 500 <= status_code < 600:
        return UpstreamErrorKind.SERVER_ERROR
    return UpstreamErrorKind.BAD_REQUEST


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After in seconds; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text[:200]


class AIClient(LoggerMixin):
    """
    Thin async client over an OpenAI-compatible chat-completions endpoint.

    Usage:
        client = AIClient()
        if client.is_configured:
            result = await client.complete(prompt, timeout=22.0)
    """

    def __init__(
        self,
        settings: Optional[AISettings] = None,
        provider: Optional[ProviderConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the client.

        Args:
            settings: AI settings (defaults to the application settings)
            provider: Explicit provider; resolved from the API key otherwise
            http_client: Shared httpx client; one is opened per call if omitted
            policy: Retry policy (defaults built from settings)
            sleep: Awaitable sleep used between retries
        """
        self.settings = settings or get_settings().ai
        self.provider = provider or resolve_provider(self.settings)
        self._http_client = http_client
        self._sleep = sleep
        self.policy = policy or RetryPolicy(
            max_attempts=self.settings.max_attempts,
            base_delay=self.settings.base_delay_seconds,
            max_delay=self.settings.max_delay_seconds,
            jitter=self.settings.jitter_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return self.provider is not None

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.provider.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }

    async def complete(self, prompt: str, timeout: float) -> CompletionResult:
        """
        Request a completion, retrying 429 and 5xx responses.

        Args:
            prompt: User message content
            timeout: Per-request HTTP timeout in seconds

        Returns:
            CompletionResult with the reply text or a classified error
        """
        if not self.is_configured:
            return CompletionResult.failure(
                UpstreamErrorKind.NOT_CONFIGURED, "AI provider not configured"
            )

        self.logger.info(
            f"Requesting completion from {self.provider.provider} "
            f"(model={self.provider.model}, prompt_chars={len(prompt)})"
        )

        if self._http_client is not None:
            return await self._complete_with(self._http_client, prompt, timeout)

        async with httpx.AsyncClient(timeout=timeout) as client:
            return await self._complete_with(client, prompt, timeout)

    async def _complete_with(
        self, client: httpx.AsyncClient, prompt: str, timeout: float
    ) -> CompletionResult:
        payload = self.build_payload(prompt)

        outcome = await run_with_retry(
            lambda: self._attempt(client, payload, timeout),
            self.policy,
            should_retry=lambda r: r.is_retryable,
            retry_after_of=lambda r: r.retry_after,
            sleep=self._sleep,
        )
        result: CompletionResult = outcome.value
        result.attempts = outcome.attempts
        result.total_wait = outcome.total_wait

        if result.success:
            self.logger.info(
                f"Completion received after {result.attempts} attempt(s), "
                f"{len(result.text)} chars"
            )
        else:
            self.logger.warning(
                f"Completion failed after {result.attempts} attempt(s): "
                f"{result.error_kind.value} ({result.status_code})"
            )
        return result

    async def _attempt(
        self, client: httpx.AsyncClient, payload: dict, timeout: float
    ) -> CompletionResult:
        """One HTTP round trip."""
        try:
            response = await client.post(
                self.provider.completions_url,
                json=payload,
                headers=self.provider.headers,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            return CompletionResult.failure(UpstreamErrorKind.TIMEOUT, f"Request timed out: {e}")
        except httpx.RequestError as e:
            return CompletionResult.failure(UpstreamErrorKind.NETWORK_ERROR, f"Request error: {e}")

        if response.is_success:
            try:
                body = response.json()
                content = body["choices"][0]["message"]["content"] or ""
            except (ValueError, KeyError, IndexError, TypeError):
                self.logger.warning("Completion response had no message content")
                content = ""
            return CompletionResult(success=True, text=str(content), status_code=response.status_code)

        status = response.status_code
        self.logger.debug(f"Upstream error {status}: {_error_detail(response)}")
        return CompletionResult.failure(
            classify_status(status),
            _error_detail(response),
            status_code=status,
            retry_after=parse_retry_after(response.headers.get("retry-after")),
        )

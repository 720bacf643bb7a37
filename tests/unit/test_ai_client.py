"""
Tests for matchengine.services.ai_client: provider resolution, status
classification and retry behaviour against a mocked transport.
"""

import asyncio
import json
import random

import httpx
import pytest

from matchengine.core.retry import RetryPolicy
from matchengine.services.ai_client import (
    AIClient,
    UpstreamErrorKind,
    classify_status,
    parse_retry_after,
)
from matchengine.utils.config import AISettings, resolve_provider

from conftest import mock_http_client


def completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


class Script:
    """Answers successive requests from a list of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def run_client(script: Script, api_key: str = "sk-test", sleep=None, **policy_args):
    """Call ``complete`` once through a mock transport."""
    sleep = sleep or RecordingSleep()
    policy = RetryPolicy(rng=random.Random(0), **policy_args)

    async def _run():
        async with mock_http_client(script) as http:
            client = AIClient(
                settings=AISettings(api_key=api_key),
                http_client=http,
                policy=policy,
                sleep=sleep,
            )
            return await client.complete("prompt", timeout=5.0)

    return asyncio.run(_run()), sleep


# ── configuration ────────────────────────────────────────────────────────────


class TestProviderResolution:
    def test_no_key(self):
        assert resolve_provider(AISettings(api_key="")) is None

    def test_openrouter_prefix(self):
        provider = resolve_provider(AISettings(api_key="sk-or-v1-abc"))
        assert provider.provider == "openrouter"
        assert provider.completions_url == "https://openrouter.ai/api/v1/chat/completions"

    def test_direct_provider(self):
        provider = resolve_provider(AISettings(api_key="sk-abc"))
        assert provider.provider == "deepseek"
        assert provider.model == "deepseek-chat"
        assert provider.headers["Authorization"] == "Bearer sk-abc"

    def test_model_override(self):
        provider = resolve_provider(AISettings(api_key="sk-abc", model="deepseek-reasoner"))
        assert provider.model == "deepseek-reasoner"


class TestHelpers:
    @pytest.mark.parametrize(
        "status, kind",
        [
            (401, UpstreamErrorKind.AUTH_FAILURE),
            (429, UpstreamErrorKind.RATE_LIMITED),
            (500, UpstreamErrorKind.SERVER_ERROR),
            (503, UpstreamErrorKind.SERVER_ERROR),
            (400, UpstreamErrorKind.BAD_REQUEST),
            (404, UpstreamErrorKind.BAD_REQUEST),
        ],
    )
    def test_classify_status(self, status, kind):
        assert classify_status(status) == kind

    @pytest.mark.parametrize(
        "value, expected",
        [("3", 3.0), (" 1.5 ", 1.5), ("", None), (None, None), ("-1", None),
         ("Wed, 21 Oct 2015 07:28:00 GMT", None)],
    )
    def test_parse_retry_after(self, value, expected):
        assert parse_retry_after(value) == expected


# ── complete ─────────────────────────────────────────────────────────────────


class TestComplete:
    def test_success(self):
        script = Script(completion('{"fitScore": 70}'))
        result, sleep = run_client(script)
        assert result.success
        assert result.text == '{"fitScore": 70}'
        assert result.attempts == 1

        body = json.loads(script.requests[0].content)
        assert body["model"] == "deepseek-chat"
        assert body["messages"] == [{"role": "user", "content": "prompt"}]
        assert script.requests[0].headers["authorization"] == "Bearer sk-test"

    def test_rate_limited_then_success(self):
        script = Script(httpx.Response(429, json={"error": {"message": "slow down"}}), completion("ok"))
        result, sleep = run_client(script)
        assert result.success
        assert result.attempts == 2
        assert result.attempts <= 3
        assert len(sleep.delays) == 1
        assert result.total_wait <= 30.0 * (result.attempts - 1)

    def test_retry_after_header_honoured(self):
        script = Script(httpx.Response(429, headers={"Retry-After": "2"}), completion("ok"))
        result, sleep = run_client(script, jitter=0.0)
        assert sleep.delays == [2.0]

    def test_server_errors_exhaust_attempts(self):
        script = Script(httpx.Response(502), httpx.Response(503), httpx.Response(500))
        result, sleep = run_client(script)
        assert not result.success
        assert result.error_kind == UpstreamErrorKind.SERVER_ERROR
        assert result.attempts == 3
        assert result.status_code == 500
        assert len(script.requests) == 3

    def test_auth_failure_not_retried(self):
        script = Script(httpx.Response(401, json={"error": {"message": "bad key"}}))
        result, sleep = run_client(script)
        assert result.error_kind == UpstreamErrorKind.AUTH_FAILURE
        assert result.error_message == "bad key"
        assert result.attempts == 1
        assert sleep.delays == []

    def test_bad_request_not_retried(self):
        script = Script(httpx.Response(400, text="nope"))
        result, _ = run_client(script)
        assert result.error_kind == UpstreamErrorKind.BAD_REQUEST
        assert len(script.requests) == 1

    def test_timeout_not_retried(self):
        script = Script(httpx.ReadTimeout("too slow"))
        result, _ = run_client(script)
        assert result.error_kind == UpstreamErrorKind.TIMEOUT
        assert result.attempts == 1

    def test_network_error(self):
        script = Script(httpx.ConnectError("refused"))
        result, _ = run_client(script)
        assert result.error_kind == UpstreamErrorKind.NETWORK_ERROR

    def test_missing_content_is_empty_text(self):
        script = Script(httpx.Response(200, json={"choices": []}))
        result, _ = run_client(script)
        assert result.success
        assert result.text == ""

    def test_not_configured_makes_no_request(self):
        script = Script()
        result, _ = run_client(script, api_key="")
        assert result.error_kind == UpstreamErrorKind.NOT_CONFIGURED
        assert script.requests == []

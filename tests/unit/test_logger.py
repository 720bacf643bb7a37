"""
Tests for matchengine.utils.logger: audit redaction.
"""

from matchengine.utils.logger import REDACTED, LoggerMixin, redact


class TestRedact:
    def test_secret_keys_redacted(self):
        cleaned = redact({"api_key": "sk-1", "Authorization": "Bearer x", "jobId": "job-1"})
        assert cleaned == {"api_key": REDACTED, "Authorization": REDACTED, "jobId": "job-1"}

    def test_nested_structures(self):
        cleaned = redact({"resume": {"url": "https://x", "signature": "abc"}, "items": [{"token": "t"}]})
        assert cleaned["resume"] == {"url": "https://x", "signature": REDACTED}
        assert cleaned["items"] == [{"token": REDACTED}]

    def test_scalars_untouched(self):
        assert redact("plain") == "plain"
        assert redact(42) == 42


class TestLoggerMixin:
    def test_logger_is_cached(self):
        class Worker(LoggerMixin):
            pass

        worker = Worker()
        assert worker.logger is worker.logger

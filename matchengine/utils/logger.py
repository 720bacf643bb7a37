"""
Logging for the matching engine.

Everything goes through Loguru. Three sinks are installed by
`setup_logging`:

- stderr, colorized, for operators
- a rotating application log under ``logs/``
- ``audit.log``, which only receives records bound with ``audit_type``
  (match decisions and refused access)

Secrets that can show up in request or provider payloads (API keys,
signed-URL signatures, bearer headers) are redacted before an audit entry
is written.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from matchengine.utils.config import LoggingSettings, get_settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
AUDIT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {extra[audit_type]} | {message}"

REDACTED = "***REDACTED***"
_SECRET_MARKERS = frozenset({
    "api_key", "apikey", "api_secret", "secret", "token", "authorization",
    "password", "signature", "credential", "cookie",
})


def _add_console_sink(log_settings: LoggingSettings, diagnose: bool) -> None:
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=log_settings.level,
        colorize=True,
        backtrace=True,
        diagnose=diagnose,
    )


def _add_file_sinks(log_settings: LoggingSettings, diagnose: bool) -> Path:
    log_file = log_settings.file_path
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        format=log_settings.format,
        level=log_settings.level,
        rotation=log_settings.rotation,
        retention=log_settings.retention,
        compression="zip",
        diagnose=diagnose,
        enqueue=True,
    )

    audit_path = log_file.parent / "audit.log"
    logger.add(
        audit_path,
        format=AUDIT_FORMAT,
        level="INFO",
        filter=lambda record: "audit_type" in record["extra"],
        rotation="1 week",
        retention="90 days",
        enqueue=True,
    )
    return log_file


def setup_logging() -> None:
    """
    (Re)install the application sinks from the current settings.

    Variable values are only rendered in tracebacks when running in
    development with debug enabled.
    """
    settings = get_settings()
    log_settings = settings.logging
    diagnose = settings.debug and settings.environment == "development"

    logger.remove()

    if log_settings.console_output:
        _add_console_sink(log_settings, diagnose)

    if log_settings.file_output:
        log_file = _add_file_sinks(log_settings, diagnose)
        logger.debug(f"Logging to {log_file} at {log_settings.level}")


def get_logger(name: str) -> Any:
    """Return the shared logger bound to ``name``."""
    return logger.bind(name=name)


def redact(data: Any) -> Any:
    """Replace values under secret-looking keys, recursing into dicts and lists."""
    if isinstance(data, dict):
        return {
            key: REDACTED
            if any(marker in str(key).lower() for marker in _SECRET_MARKERS)
            else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return data


def audit_log(action: str, details: dict[str, Any], audit_type: str = "DECISION") -> None:
    """
    Write one audit entry.

    Args:
        action: What happened, e.g. ``match_scored`` or ``match_forbidden``
        details: Context for the entry; secrets are redacted
        audit_type: ``DECISION`` for scoring outcomes, ``ACCESS`` for
            ownership refusals
    """
    logger.bind(audit_type=audit_type).info(f"{action} | {redact(details)}")


class LoggerMixin:
    """Gives a class a ``self.logger`` bound to its class name."""

    @property
    def logger(self) -> Any:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(type(self).__name__)
        return self._logger


log = logger


try:
    setup_logging()
except OSError as e:
    # Unwritable log directory; keep whatever sinks are installed.
    logger.warning(f"File logging disabled: {e}")

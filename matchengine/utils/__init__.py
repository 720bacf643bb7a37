"""
Utility modules for the matching engine.

This package contains shared utilities used across the application:
- config: Configuration management
- logger: Logging infrastructure
- constants: Application-wide constants
"""

from matchengine.utils.config import (
    AISettings,
    AppSettings,
    MatchingSettings,
    ProviderConfig,
    get_settings,
    reload_settings,
    resolve_provider,
    ROOT_DIR,
)
from matchengine.utils.constants import (
    APP_NAME,
    APP_DISPLAY_NAME,
    VERSION,
)
from matchengine.utils.logger import (
    setup_logging,
    get_logger,
    audit_log,
    LoggerMixin,
    log,
    redact,
)

__all__ = [
    # Config
    "AISettings",
    "AppSettings",
    "MatchingSettings",
    "ProviderConfig",
    "get_settings",
    "reload_settings",
    "resolve_provider",
    "ROOT_DIR",
    # Constants
    "APP_NAME",
    "APP_DISPLAY_NAME",
    "VERSION",
    # Logger
    "setup_logging",
    "get_logger",
    "audit_log",
    "LoggerMixin",
    "log",
    "redact",
]

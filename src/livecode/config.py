"""Centralized configuration management for livecode.

Reads from environment variables with sensible defaults.
The server, the CLI and the tests all use this module for configuration.

Environment variables follow the pattern LIVECODE_*. ``FRONTEND_URL`` and
``PORT`` are honoured as fallbacks for hosting platforms that set them.

Example:
    >>> from livecode.config import get_config
    >>> config = get_config()
    >>> print(config.server_port)
    5000
"""

import enum
import logging
import os
from dataclasses import dataclass, field

log = logging.getLogger(__name__)

DEFAULT_EXECUTION_URL = "https://emkc.org/api/v2/piston/execute"


class LockPolicy(str, enum.Enum):
    """When the edit lock is requested and released."""

    EXPLICIT = "explicit"
    IDLE = "idle"
    NONE = "none"


class LanguageScope(str, enum.Enum):
    OTHERS = "others"
    ROOM = "room"


class RunResultScope(str, enum.Enum):
    SENDER = "sender"
    ROOM = "room"


def _getenv_int(key: str, default: int, fallback_key: str | None = None) -> int:
    """Get integer from environment with fallback to default."""
    value = os.getenv(key)
    if value is None and fallback_key is not None:
        value = os.getenv(fallback_key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        log.warning(f"Invalid integer value for {key}={value}, using default {default}")
        return default


def _getenv_float(key: str, default: float) -> float:
    """Get float from environment with fallback to default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        log.warning(f"Invalid float value for {key}={value}, using default {default}")
        return default


@dataclass
class LiveCodeConfig:
    """livecode configuration loaded from environment variables.

    Attributes
    ----------
    frontend_url : str | None
        Allowed cross-origin client URL. None allows any origin.
    server_host : str
        Server bind host address.
    server_port : int
        Server bind port number.
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    lock_policy : LockPolicy
        When clients claim and give up the room edit lock.
    lock_timeout : float
        Seconds of editing inactivity after which a held lock is released.
    language_scope : LanguageScope
        Whether language changes are echoed back to the sender.
    run_result_scope : RunResultScope
        Whether execution results go to the requester or the whole room.
    execution_url : str
        Endpoint of the remote code execution service.
    execution_timeout : float
        Request timeout for the execution service in seconds.
    """

    frontend_url: str | None = field(
        default_factory=lambda: os.getenv(
            "LIVECODE_FRONTEND_URL", os.getenv("FRONTEND_URL")
        )
    )
    server_host: str = field(
        default_factory=lambda: os.getenv("LIVECODE_SERVER_HOST", "localhost")
    )
    server_port: int = field(
        default_factory=lambda: _getenv_int("LIVECODE_SERVER_PORT", 5000, "PORT")
    )

    # Logging
    log_level: str = field(
        default_factory=lambda: os.getenv("LIVECODE_LOG_LEVEL", "WARNING")
    )

    # Edit lock
    lock_policy: LockPolicy = field(
        default_factory=lambda: os.getenv("LIVECODE_LOCK_POLICY", "explicit")
    )
    lock_timeout: float = field(
        default_factory=lambda: _getenv_float("LIVECODE_LOCK_TIMEOUT", 2.0)
    )

    # Fan-out scopes
    language_scope: LanguageScope = field(
        default_factory=lambda: os.getenv("LIVECODE_LANGUAGE_SCOPE", "others")
    )
    run_result_scope: RunResultScope = field(
        default_factory=lambda: os.getenv("LIVECODE_RUN_RESULT_SCOPE", "sender")
    )

    # Execution service
    execution_url: str = field(
        default_factory=lambda: os.getenv(
            "LIVECODE_EXECUTION_URL", DEFAULT_EXECUTION_URL
        )
    )
    execution_timeout: float = field(
        default_factory=lambda: _getenv_float("LIVECODE_EXECUTION_TIMEOUT", 10.0)
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()
        self._log_config()

    def _validate(self):
        """Validate configuration values.

        Raises
        ------
        ValueError
            If configuration is invalid.
        """
        self.lock_policy = LockPolicy(self.lock_policy)
        self.language_scope = LanguageScope(self.language_scope)
        self.run_result_scope = RunResultScope(self.run_result_scope)

        if not 1 <= self.server_port <= 65535:
            raise ValueError(
                f"Invalid port number: {self.server_port}. Must be between 1 and 65535"
            )

        if self.lock_timeout <= 0:
            raise ValueError(
                f"Invalid lock timeout: {self.lock_timeout}s. Must be positive"
            )

        if self.execution_timeout <= 0:
            raise ValueError(
                f"Invalid execution timeout: {self.execution_timeout}s. Must be positive"
            )

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_levels:
            log.warning(
                f"Invalid log level '{self.log_level}', using WARNING. "
                f"Valid levels: {', '.join(valid_levels)}"
            )
            self.log_level = "WARNING"

    @property
    def cors_origins(self) -> str:
        """Allowed origin for Socket.IO and HTTP CORS checks."""
        return self.frontend_url or "*"

    def _log_config(self):
        """Log configuration for debugging."""
        log.info("=" * 80)
        log.info("livecode Configuration:")
        log.info(f"  Frontend URL: {self.frontend_url or '* (any origin)'}")
        log.info(f"  Server: {self.server_host}:{self.server_port}")
        log.info(f"  Log Level: {self.log_level}")
        log.info(f"  Lock Policy: {self.lock_policy.value}")
        log.info(f"  Lock Timeout: {self.lock_timeout}s")
        log.info(f"  Language Scope: {self.language_scope.value}")
        log.info(f"  Run Result Scope: {self.run_result_scope.value}")
        log.info(f"  Execution Service: {self.execution_url}")
        log.info("=" * 80)


# Global config instance (singleton pattern)
_config: LiveCodeConfig | None = None


def get_config() -> LiveCodeConfig:
    """Get or create the global configuration instance.

    Returns
    -------
    LiveCodeConfig
        Global configuration instance loaded from environment variables.
    """
    global _config
    if _config is None:
        _config = LiveCodeConfig()
    return _config


def reload_config() -> LiveCodeConfig:
    """Reload configuration from environment.

    Useful for testing or when environment variables change at runtime.

    Returns
    -------
    LiveCodeConfig
        Newly created configuration instance.
    """
    global _config
    _config = LiveCodeConfig()
    return _config

from __future__ import annotations

import dataclasses
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

DEFAULT_COMMAND_NAME = "inkscape.exe" if sys.platform == "win32" else "inkscape"
SHELL_MODE_BANNER = "Inkscape interactive shell mode"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Options:
    """Immutable settings for one proxy session.

    Build it once, then derive variants with ``merged(**overrides)``;
    the proxy never mutates it.
    """

    # executable name, resolved on PATH; varies with the system setup
    command_name: str = DEFAULT_COMMAND_NAME
    # consecutive failed starts tolerated before the session gives up
    max_retry: int = 5
    # bound on the request and output signal queues
    queue_length: int = 100
    verbose: bool = False
    suppress_warning: bool = True
    # seconds a command waits for the shell prompt before CommandNotReadyError
    ready_timeout: float = 30.0
    shutdown_timeout: float = 5.0
    retry_delay: float = 0.5
    max_retry_delay: float = 30.0
    prompt: str = ">"
    banner: str = SHELL_MODE_BANNER
    warning_marker: str = "WARNING"

    def __post_init__(self) -> None:
        if not self.command_name:
            raise ValueError("command_name must not be empty")
        if self.max_retry < 1:
            raise ValueError(f"max_retry must be at least 1, got {self.max_retry}")
        if self.queue_length < 1:
            raise ValueError(
                f"queue_length must be at least 1, got {self.queue_length}"
            )
        for name in ("ready_timeout", "shutdown_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.retry_delay < 0 or self.max_retry_delay < self.retry_delay:
            raise ValueError("retry delays must satisfy 0 <= retry_delay <= max_retry_delay")
        if not self.prompt.strip():
            raise ValueError("prompt must not be blank")

    def merged(self, **overrides: Any) -> Options:
        """Return a copy with the named fields replaced."""
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_env(cls, env_path: str | Path | None = None, **overrides: Any) -> Options:
        """Read options from the environment (and an optional ``.env`` file).

        Explicit ``overrides`` win over the environment.
        """
        load_dotenv(env_path)

        defaults = cls()
        values: dict[str, Any] = {
            "command_name": os.getenv("INKSCAPE_COMMAND") or defaults.command_name,
            "max_retry": int(os.getenv("INKSCAPE_MAX_RETRY", defaults.max_retry)),
            "queue_length": int(
                os.getenv("INKSCAPE_QUEUE_LENGTH", defaults.queue_length)
            ),
            "verbose": _env_bool("INKSCAPE_VERBOSE", defaults.verbose),
            "suppress_warning": _env_bool(
                "INKSCAPE_SUPPRESS_WARNING", defaults.suppress_warning
            ),
            "ready_timeout": float(
                os.getenv("INKSCAPE_READY_TIMEOUT", defaults.ready_timeout)
            ),
        }
        values.update(overrides)
        return cls(**values)

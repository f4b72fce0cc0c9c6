"""Shell protocol: turns raw inkscape output into command signals.

``inkscape --shell`` has no framing: it prints result lines on stdout,
diagnostics on stderr, and a ``> `` prompt (no newline) when it is ready
for the next line of input.  ``ShellProtocol`` reassembles lines from the
chunks the transport reads and classifies each one.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence

from .config import SHELL_MODE_BANNER
from .models import Origin, OutputEvent, ProtocolSignal, SignalKind

log = logging.getLogger(__name__)


class ProtocolState(str, enum.Enum):
    STARTING = "starting"  # spawned, banner not yet followed by a prompt
    IDLE = "idle"
    BUSY = "busy"          # a command was written and its prompt is pending


def build_command(buffer: bytearray, actions: Sequence[str]) -> bytes:
    """Serialize ``actions`` into one newline-terminated shell line.

    ``buffer`` is scratch space (usually pooled); the returned bytes are a
    copy, so the buffer may be recycled right away.
    """
    if isinstance(actions, (str, bytes)):
        raise TypeError("actions must be a sequence of strings, not a single string")
    if not actions:
        raise ValueError("at least one action is required")
    buffer.extend(";".join(actions).encode("utf-8"))
    if not buffer.endswith(b"\n"):
        buffer.extend(b"\n")
    return bytes(buffer)


class ShellProtocol:
    def __init__(
        self,
        *,
        prompt: str = ">",
        banner: str = SHELL_MODE_BANNER,
        warning_marker: str = "WARNING",
        suppress_warning: bool = True,
    ) -> None:
        self._prompt = prompt.strip().encode("utf-8")
        self._prompt_tail = self._prompt + b" "
        self._banner = banner.encode("utf-8")
        self._warning_marker = warning_marker.encode("utf-8")
        self._suppress_warning = suppress_warning
        self.state = ProtocolState.STARTING
        self._partial: dict[Origin, bytes] = {Origin.STDOUT: b"", Origin.STDERR: b""}

    def reset(self) -> None:
        """Forget everything; a fresh process is about to start."""
        self.state = ProtocolState.STARTING
        self._partial = {Origin.STDOUT: b"", Origin.STDERR: b""}

    def begin(self) -> None:
        """Mark a command as written to the shell."""
        if self.state is not ProtocolState.IDLE:
            raise RuntimeError(f"cannot start a command while {self.state.value}")
        self.state = ProtocolState.BUSY

    def feed(self, event: OutputEvent) -> list[ProtocolSignal]:
        data = self._partial[event.origin] + event.data
        *lines, rest = data.split(b"\n")

        # The prompt is written without a trailing newline.  An unterminated
        # tail only counts when it is the exact prompt bytes and the read
        # that produced it emptied the pipe; anything else may be the start
        # of a longer line.
        if (
            event.origin is Origin.STDOUT
            and event.drained
            and rest == self._prompt_tail
        ):
            lines.append(rest)
            rest = b""
        self._partial[event.origin] = rest

        signals: list[ProtocolSignal] = []
        for raw in lines:
            signal = self._classify(event.origin, raw.strip())
            if signal is not None:
                signals.append(signal)
        return signals

    def _classify(self, origin: Origin, line: bytes) -> ProtocolSignal | None:
        if not line:
            return None

        if self._banner in line:
            log.debug("shell banner: %s", line.decode("utf-8", errors="replace"))
            return None

        if origin is Origin.STDERR:
            if self._suppress_warning and self._warning_marker in line:
                return None
            return ProtocolSignal(SignalKind.ERROR, line)

        if line == self._prompt:
            if self.state is ProtocolState.STARTING:
                self.state = ProtocolState.IDLE
                return ProtocolSignal(SignalKind.READY)
            if self.state is ProtocolState.BUSY:
                self.state = ProtocolState.IDLE
                return ProtocolSignal(SignalKind.PROMPT)
            return None

        if self.state is ProtocolState.BUSY:
            return ProtocolSignal(SignalKind.RESULT, line)

        log.debug("discarding %s output: %r", self.state.value, line)
        return None

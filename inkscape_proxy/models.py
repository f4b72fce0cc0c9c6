from __future__ import annotations

import enum
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# OutputEvent: a raw chunk read from one of the shell's output streams
# ---------------------------------------------------------------------------

class Origin(str, enum.Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True)
class OutputEvent:
    origin: Origin
    data: bytes
    # the read returned less than it asked for, so nothing more was pending
    drained: bool = True


# ---------------------------------------------------------------------------
# ProtocolSignal: what the shell protocol makes of the output
# ---------------------------------------------------------------------------

class SignalKind(enum.Enum):
    READY = "ready"      # first prompt after a (re)spawn
    RESULT = "result"    # one stdout line belonging to the in-flight command
    ERROR = "error"      # one stderr diagnostic line
    PROMPT = "prompt"    # in-flight command finished, shell is idle again
    EXITED = "exited"    # the shell process went away


@dataclass(frozen=True)
class ProtocolSignal:
    kind: SignalKind
    data: bytes = b""

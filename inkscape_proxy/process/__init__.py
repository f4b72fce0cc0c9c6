"""Process layer: spawning and supervising the inkscape shell.

  - ProcessTransport: runs one ``inkscape --shell`` and pumps its pipes
  - RetrySupervisor:  respawns the transport with exponential backoff
"""

from inkscape_proxy.process.supervisor import (
    ExponentialBackoff,
    RetrySupervisor,
    SupervisorState,
)
from inkscape_proxy.process.transport import ProcessTransport

__all__ = [
    "ExponentialBackoff",
    "ProcessTransport",
    "RetrySupervisor",
    "SupervisorState",
]

"""Inkscape proxy: drive a long-lived ``inkscape --shell`` from asyncio code.

    async with Proxy(verbose=True) as proxy:
        await proxy.svg2pdf("in.svg", "out.pdf")
        out = await proxy.raw_commands(actions.file_open("in.svg"), actions.query_all())

Can run standalone:
    python -m inkscape_proxy --input in.svg --output out.pdf
    python -m inkscape_proxy.service
"""

from inkscape_proxy import actions
from inkscape_proxy.config import Options
from inkscape_proxy.errors import (
    CommandError,
    CommandNotAvailableError,
    CommandNotReadyError,
    ExecutionCanceledError,
    InkscapeError,
    ProcessExitedError,
    ProxyClosedError,
    RetriesExhaustedError,
)
from inkscape_proxy.proxy import Proxy

__all__ = [
    "CommandError",
    "CommandNotAvailableError",
    "CommandNotReadyError",
    "ExecutionCanceledError",
    "InkscapeError",
    "Options",
    "ProcessExitedError",
    "Proxy",
    "ProxyClosedError",
    "RetriesExhaustedError",
    "actions",
]

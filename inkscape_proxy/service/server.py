"""MCP server exposing a shared inkscape proxy over HTTP."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from inkscape_proxy.errors import ExecutionCanceledError, InkscapeError
from inkscape_proxy.proxy import Proxy

# Default port for the persistent HTTP daemon
DEFAULT_PORT = 8902


def create_server(proxy: Proxy, port: int = DEFAULT_PORT) -> FastMCP:
    """Create and configure the MCP inkscape server around a running proxy."""

    mcp = FastMCP(
        name="inkscape",
        instructions=(
            "Drives a long-running inkscape shell. Use svg_to_pdf for conversions, "
            "run_actions for arbitrary inkscape actions (e.g. 'file-open:in.svg', "
            "'query-all'), and proxy_status to check the shell's health."
        ),
        host="127.0.0.1",
        port=port,
        stateless_http=True,
    )

    # ------------------------------------------------------------------
    # Tool: run_actions
    # ------------------------------------------------------------------
    @mcp.tool()
    async def run_actions(
        actions: list[str],
        timeout: float | None = None,
    ) -> dict:
        """Run one inkscape shell command and return its output.

        Commands are serialized: if the shell is busy this waits its turn.

        Args:
            actions: Action tokens, joined with ';' (e.g. ["file-open:a.svg", "query-all"]).
            timeout: Seconds to allow, including the wait for the shell.
        """
        try:
            output = await proxy.send_command(actions, timeout=timeout)
        except ExecutionCanceledError as exc:
            return {"status": "canceled", "error": str(exc)}
        except (InkscapeError, ValueError) as exc:
            return {"status": "error", "error": str(exc)}
        return {"status": "ok", "output": output.decode("utf-8", errors="replace")}

    # ------------------------------------------------------------------
    # Tool: svg_to_pdf
    # ------------------------------------------------------------------
    @mcp.tool()
    async def svg_to_pdf(
        svg_in: str,
        pdf_out: str,
        timeout: float | None = None,
    ) -> dict:
        """Convert an SVG file to PDF.

        Args:
            svg_in: Path of the SVG file, as seen by the inkscape process.
            pdf_out: Path to write the PDF to.
            timeout: Seconds to allow for the conversion.
        """
        try:
            await proxy.svg2pdf_with_deadline(timeout, svg_in, pdf_out)
        except ExecutionCanceledError as exc:
            return {"status": "canceled", "error": str(exc)}
        except InkscapeError as exc:
            return {"status": "error", "error": str(exc)}
        return {"status": "ok", "output": pdf_out}

    # ------------------------------------------------------------------
    # Tool: proxy_status
    # ------------------------------------------------------------------
    @mcp.tool()
    async def proxy_status() -> dict:
        """Report supervisor state, restart counts, pid and readiness."""
        return proxy.status()

    return mcp

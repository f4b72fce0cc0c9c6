"""Run the inkscape proxy as a persistent MCP daemon over HTTP.

Usage:
    python -m inkscape_proxy.service [--port PORT] [--env-file FILE] [-- INKSCAPE_ARGS...]

One inkscape shell is started at boot and shared by every client; the
daemon keeps it alive (respawning on crashes) until it is signalled.
"""

import argparse
import asyncio
import logging
import signal
from pathlib import Path

import uvicorn

from inkscape_proxy.config import Options
from inkscape_proxy.proxy import Proxy
from inkscape_proxy.service.server import DEFAULT_PORT, create_server

log = logging.getLogger(__name__)


async def _run(port: int, options: Options, inkscape_args: list[str]) -> None:
    proxy = Proxy(options)
    await proxy.run(*inkscape_args)
    server = create_server(proxy=proxy, port=port)

    # Run uvicorn in the same event loop so the proxy's tasks (supervisor,
    # stream readers, stdin writer) stay alive.
    app = server.streamable_http_app()
    config = uvicorn.Config(
        app, host="127.0.0.1", port=port, log_level="info",
    )
    uvi = uvicorn.Server(config)

    # _serve() skips uvicorn's capture_signals(), which would replace the
    # loop signal handlers installed below.
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    serve_task = asyncio.create_task(uvi._serve())

    await shutdown.wait()
    log.info("Signal received, shutting down")

    uvi.should_exit = True
    await serve_task
    log.info("Closing inkscape proxy")
    await proxy.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Inkscape MCP daemon")
    parser.add_argument(
        "--port", type=int, default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--env-file", type=Path, default=None,
        help="Optional .env file with INKSCAPE_* settings",
    )
    parser.add_argument("--verbose", action="store_true", help="Trace shell traffic")
    parser.add_argument(
        "inkscape_args", nargs="*",
        help="Extra arguments passed to inkscape after --shell",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [inkscape-proxy] %(levelname)s %(message)s",
    )

    overrides = {"verbose": True} if args.verbose else {}
    options = Options.from_env(args.env_file, **overrides)

    log.info("Starting inkscape-proxy on http://127.0.0.1:%d/mcp", args.port)
    asyncio.run(_run(args.port, options, args.inkscape_args))


if __name__ == "__main__":
    main()

"""Convert one SVG file to PDF through a supervised inkscape shell.

Usage:
    python -m inkscape_proxy --input drawing.svg [--output result.pdf]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from inkscape_proxy.config import Options
from inkscape_proxy.errors import InkscapeError
from inkscape_proxy.proxy import Proxy

log = logging.getLogger(__name__)


async def _convert(options: Options, svg_in: str, pdf_out: str, timeout: float | None) -> None:
    async with Proxy(options) as proxy:
        await proxy.svg2pdf_with_deadline(timeout, svg_in, pdf_out)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="inkscape-proxy", description="Convert SVG to PDF with inkscape"
    )
    parser.add_argument("--input", default="", help="SVG input")
    parser.add_argument("--output", default="result.pdf", help="PDF output (default: result.pdf)")
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Seconds to allow for the conversion (default: no limit)",
    )
    parser.add_argument("--verbose", action="store_true", help="Trace shell traffic")
    parser.add_argument("--env-file", type=Path, default=None, help="Optional .env file")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    if not args.input:
        print("svg input is missing", file=sys.stderr)
        return 1

    overrides = {"verbose": True} if args.verbose else {}
    try:
        options = Options.from_env(args.env_file, **overrides)
        asyncio.run(_convert(options, args.input, args.output, args.timeout))
    except (InkscapeError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1

    print("done")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""MCP service: shares one inkscape proxy with HTTP clients.

Exposes three MCP tools:
  - run_actions:  Run an inkscape shell command line
  - svg_to_pdf:   Convert an SVG file to PDF
  - proxy_status: Supervisor state, restart counts and readiness

Can run standalone:
    python -m inkscape_proxy.service
"""

from inkscape_proxy.service.server import create_server

__all__ = ["create_server"]

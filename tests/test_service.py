"""
Tests for the MCP tools, run against the fake inkscape shell.
"""

import sys

import pytest

from inkscape_proxy.service.server import create_server

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell wrapper")


async def call(server, name, **arguments):
    """Invoke a registered tool and return the function's own result."""
    return await server._tool_manager.call_tool(name, arguments)


class TestRunActions:
    @pytest.mark.asyncio
    async def test_ok(self, make_proxy):
        server = create_server(await make_proxy())
        result = await call(server, "run_actions", actions=["echo:hello", "lines:2"])
        assert result == {"status": "ok", "output": "hello\nline 0\nline 1"}

    @pytest.mark.asyncio
    async def test_diagnostic_is_error(self, make_proxy):
        server = create_server(await make_proxy())
        result = await call(server, "run_actions", actions=["fail:boom"])
        assert result["status"] == "error"
        assert "boom" in result["error"]

    @pytest.mark.asyncio
    async def test_empty_actions_is_error(self, make_proxy):
        server = create_server(await make_proxy())
        result = await call(server, "run_actions", actions=[])
        assert result["status"] == "error"

    @pytest.mark.asyncio
    async def test_deadline_is_canceled(self, make_proxy):
        proxy = await make_proxy()
        server = create_server(proxy)
        result = await call(server, "run_actions", actions=["hold:0.5"], timeout=0.05)
        assert result == {"status": "canceled", "error": "command execution canceled"}

        # the shell is usable again once the held command finishes
        result = await call(server, "run_actions", actions=["echo:after"], timeout=10)
        assert result == {"status": "ok", "output": "after"}


class TestSvgToPdf:
    @pytest.mark.asyncio
    async def test_ok(self, make_proxy, tmp_path):
        svg = tmp_path / "in.svg"
        svg.write_text('<svg xmlns="http://www.w3.org/2000/svg"/>')
        pdf = tmp_path / "out.pdf"

        server = create_server(await make_proxy())
        result = await call(server, "svg_to_pdf", svg_in=str(svg), pdf_out=str(pdf))

        assert result == {"status": "ok", "output": str(pdf)}
        assert pdf.read_bytes().startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_missing_svg(self, make_proxy, tmp_path):
        server = create_server(await make_proxy())
        result = await call(
            server, "svg_to_pdf",
            svg_in=str(tmp_path / "missing.svg"), pdf_out=str(tmp_path / "out.pdf"),
        )
        assert result["status"] == "error"
        assert "missing.svg" in result["error"]


class TestProxyStatus:
    @pytest.mark.asyncio
    async def test_reports_running_shell(self, make_proxy):
        proxy = await make_proxy()
        await proxy.raw_commands("echo:warm")
        server = create_server(proxy)

        status = await call(server, "proxy_status")

        assert status["state"] == "running"
        assert status["ready"] is True
        assert status["closed"] is False
        assert status["pid"] is not None

    @pytest.mark.asyncio
    async def test_reports_closed(self, make_proxy):
        proxy = await make_proxy()
        server = create_server(proxy)
        await proxy.close()

        status = await call(server, "proxy_status")
        assert status["closed"] is True

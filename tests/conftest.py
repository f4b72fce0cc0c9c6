"""Shared pytest fixtures and configuration."""

import stat
import sys
from pathlib import Path

import pytest
import pytest_asyncio

from inkscape_proxy import Proxy

FAKE_INKSCAPE = Path(__file__).parent / "fake_inkscape.py"


@pytest.fixture
def fake_inkscape(tmp_path):
    """Path of an executable that behaves like ``inkscape --shell``."""
    wrapper = tmp_path / "inkscape"
    wrapper.write_text(
        "#!/bin/sh\n"
        f'exec "{sys.executable}" -u "{FAKE_INKSCAPE}" "$@"\n'
    )
    wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(wrapper)


@pytest_asyncio.fixture
async def make_proxy(fake_inkscape):
    """Factory for running proxies against the fake shell; closes them afterwards."""
    proxies = []

    async def _make(*args, **overrides):
        overrides.setdefault("command_name", fake_inkscape)
        overrides.setdefault("retry_delay", 0.01)
        overrides.setdefault("max_retry_delay", 0.05)
        overrides.setdefault("ready_timeout", 10.0)
        overrides.setdefault("shutdown_timeout", 2.0)
        proxy = Proxy(**overrides)
        proxies.append(proxy)
        await proxy.run(*args)
        return proxy

    yield _make

    for proxy in proxies:
        await proxy.close()

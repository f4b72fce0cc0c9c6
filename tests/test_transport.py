"""
Tests for the process transport, run against the fake inkscape shell.
"""

import asyncio
import sys

import pytest

from inkscape_proxy.errors import ProcessExitedError
from inkscape_proxy.models import Origin
from inkscape_proxy.process.transport import ProcessTransport

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell wrapper")


class Collector:
    def __init__(self):
        self.events = []
        self.changed = asyncio.Event()

    async def __call__(self, event):
        self.events.append(event)
        self.changed.set()

    def text(self, origin):
        return b"".join(e.data for e in self.events if e.origin is origin)

    async def wait_for(self, origin, needle, timeout=10):
        async def _wait():
            while needle not in self.text(origin):
                self.changed.clear()
                await self.changed.wait()
        await asyncio.wait_for(_wait(), timeout)


class TestProcessTransport:
    @pytest.mark.asyncio
    async def test_pipes_commands_and_output(self, fake_inkscape):
        requests = asyncio.Queue()
        sink = Collector()
        transport = ProcessTransport(fake_inkscape, requests=requests, sink=sink)
        task = asyncio.create_task(transport.run())

        await sink.wait_for(Origin.STDOUT, b"> ")
        assert b"Inkscape interactive shell mode" in sink.text(Origin.STDOUT)
        assert transport.pid is not None

        await requests.put(b"echo:hi;fail:oops\n")
        await sink.wait_for(Origin.STDOUT, b"hi\n")
        await sink.wait_for(Origin.STDERR, b"oops\n")

        await requests.put(b"quit\n")
        await asyncio.wait_for(task, 10)
        assert transport.returncode == 0

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self, fake_inkscape):
        transport = ProcessTransport(
            fake_inkscape, ["--exit-code=4"], requests=asyncio.Queue(), sink=Collector()
        )
        with pytest.raises(ProcessExitedError) as excinfo:
            await asyncio.wait_for(transport.run(), 10)
        assert excinfo.value.returncode == 4

    @pytest.mark.asyncio
    async def test_cancel_stops_process(self, fake_inkscape):
        sink = Collector()
        transport = ProcessTransport(
            fake_inkscape, requests=asyncio.Queue(), sink=sink, stop_timeout=1.0
        )
        task = asyncio.create_task(transport.run())
        await sink.wait_for(Origin.STDOUT, b"> ")

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(task, 10)
        # closing stdin is enough for the shell to exit
        assert transport.returncode == 0

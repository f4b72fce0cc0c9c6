"""Process transport: owns one ``inkscape --shell`` process and its pipes."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Awaitable, Callable, Sequence

from inkscape_proxy.errors import ProcessExitedError
from inkscape_proxy.models import Origin, OutputEvent

log = logging.getLogger(__name__)

SHELL_FLAG = "--shell"
READ_SIZE = 4096

OutputSink = Callable[[OutputEvent], Awaitable[None]]


class ProcessTransport:
    """Spawn the shell, pump its output into ``sink`` and ``requests`` into stdin.

    ``run`` lives as long as the process does.  It returns ``None`` after a
    clean exit (code 0), raises ``ProcessExitedError`` for any other exit, and
    on cancellation shuts the process down before re-raising.
    """

    def __init__(
        self,
        command_path: str,
        args: Sequence[str] = (),
        *,
        requests: asyncio.Queue[bytes],
        sink: OutputSink,
        stop_timeout: float = 5.0,
    ) -> None:
        self.command_path = command_path
        self.args = list(args)
        self._requests = requests
        self._sink = sink
        self._stop_timeout = stop_timeout
        self._process: asyncio.subprocess.Process | None = None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process else None

    async def run(self) -> None:
        argv = [SHELL_FLAG, *self.args]
        log.debug("spawning %s %s", self.command_path, " ".join(argv))

        process = await asyncio.create_subprocess_exec(
            self.command_path,
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            # New process group so the whole tree can be signalled
            start_new_session=True,
        )
        self._process = process
        log.debug("inkscape running (pid=%s)", process.pid)

        readers = [
            asyncio.create_task(
                self._read_stream(process.stdout, Origin.STDOUT),  # type: ignore[arg-type]
                name=f"inkscape-{process.pid}-stdout",
            ),
            asyncio.create_task(
                self._read_stream(process.stderr, Origin.STDERR),  # type: ignore[arg-type]
                name=f"inkscape-{process.pid}-stderr",
            ),
        ]
        writer = asyncio.create_task(
            self._write_requests(process.stdin),  # type: ignore[arg-type]
            name=f"inkscape-{process.pid}-stdin",
        )

        try:
            code = await process.wait()
        except asyncio.CancelledError:
            await self._cancel_tasks([writer])
            await self._stop(process)
            await self._cancel_tasks(readers)
            raise

        await self._cancel_tasks([writer])
        # Let the readers hand over whatever the process wrote before exiting
        _, pending = await asyncio.wait(readers, timeout=1.0)
        await self._cancel_tasks(list(pending))

        log.debug("inkscape (pid=%s) exited with code %s", process.pid, code)
        if code != 0:
            raise ProcessExitedError(code)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _read_stream(self, stream: asyncio.StreamReader, origin: Origin) -> None:
        """Forward each chunk read from ``stream`` to the sink."""
        try:
            while True:
                chunk = await stream.read(READ_SIZE)
                if not chunk:
                    break
                await self._sink(
                    OutputEvent(origin, bytes(chunk), drained=len(chunk) < READ_SIZE)
                )
        except asyncio.CancelledError:
            pass

    async def _write_requests(self, stdin: asyncio.StreamWriter) -> None:
        while True:
            command = await self._requests.get()
            try:
                stdin.write(command)
                await stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as exc:
                log.warning("failed to write command to inkscape: %s", exc)
                await self._sink(
                    OutputEvent(Origin.STDERR, f"write failed: {exc}\n".encode())
                )

    async def _stop(self, process: asyncio.subprocess.Process) -> None:
        """Close stdin, then escalate SIGTERM → SIGKILL until the process exits."""
        if process.returncode is not None:
            return

        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        try:
            await asyncio.wait_for(process.wait(), timeout=self._stop_timeout)
            return
        except asyncio.TimeoutError:
            pass

        _signal_group(process, signal.SIGTERM)
        try:
            await asyncio.wait_for(process.wait(), timeout=self._stop_timeout)
            return
        except asyncio.TimeoutError:
            log.warning("inkscape (pid=%s) ignored SIGTERM, killing", process.pid)

        _signal_group(process, getattr(signal, "SIGKILL", signal.SIGTERM))
        try:
            await asyncio.wait_for(process.wait(), timeout=self._stop_timeout)
        except asyncio.TimeoutError:
            log.error("inkscape (pid=%s) did not exit after SIGKILL", process.pid)

    @staticmethod
    async def _cancel_tasks(tasks: list[asyncio.Task[None]]) -> None:
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass


def _signal_group(process: asyncio.subprocess.Process, sig: int) -> None:
    try:
        if hasattr(os, "killpg"):
            os.killpg(os.getpgid(process.pid), sig)
        else:
            process.send_signal(sig)
    except (ProcessLookupError, OSError):
        pass

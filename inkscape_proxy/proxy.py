"""Inkscape proxy: one supervised ``inkscape --shell`` behind a command API.

The shell is a single-threaded REPL: it reads one line of ``;``-joined
actions, prints the results, and prints a ``> `` prompt when it is done.
Its output carries no request identifiers, so the proxy lets exactly one
command be in flight at a time:

    caller ─► limiter (one permit) ─► request queue ─► transport ─► stdin
    stdout/stderr ─► transport readers ─► ShellProtocol ─► signal queue ─► caller

The permit holder owns the signal queue until its prompt arrives.  A caller
that gives up early hands the permit to a drainer task that consumes the
rest of the abandoned reply, so the next caller never reads stale output.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Sequence
from typing import Any

from . import actions
from .bufferpool import SizedBufferPool
from .config import Options
from .errors import (
    CommandError,
    CommandNotAvailableError,
    CommandNotReadyError,
    ExecutionCanceledError,
    InkscapeError,
    ProcessExitedError,
    ProxyClosedError,
    RetriesExhaustedError,
)
from .models import OutputEvent, ProtocolSignal, SignalKind
from .process.supervisor import ExponentialBackoff, RetrySupervisor
from .process.transport import ProcessTransport
from .protocol import ProtocolState, ShellProtocol, build_command

log = logging.getLogger(__name__)

QUIT_COMMAND = b"quit\n"

# Shared by every proxy in the process; the pool itself is thread-safe.
_buffer_pool = SizedBufferPool(5, 1024 * 1024)


def _drain(queue: asyncio.Queue[Any]) -> int:
    dropped = 0
    while True:
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            return dropped
        dropped += 1


class Proxy:
    def __init__(self, options: Options | None = None, **overrides: Any) -> None:
        base = options or Options()
        self.options = base.merged(**overrides) if overrides else base
        self._trace_level = logging.INFO if self.options.verbose else logging.DEBUG

        self._protocol = ShellProtocol(
            prompt=self.options.prompt,
            banner=self.options.banner,
            warning_marker=self.options.warning_marker,
            suppress_warning=self.options.suppress_warning,
        )

        # One permit: whoever holds it owns the shell and the signal queue
        self._limiter = asyncio.Lock()
        # Set while the shell sits at its prompt
        self._ready = asyncio.Event()
        self._awaiting_prompt = False

        self._requests: asyncio.Queue[bytes] = asyncio.Queue(
            maxsize=self.options.queue_length
        )
        self._signals: asyncio.Queue[ProtocolSignal] = asyncio.Queue(
            maxsize=self.options.queue_length
        )

        self._supervisor: RetrySupervisor | None = None
        self._task: asyncio.Task[None] | None = None
        self._transport: ProcessTransport | None = None
        self._drainers: set[asyncio.Task[None]] = set()
        self._closed = False
        self._terminal_reason: str | None = None

    async def __aenter__(self) -> Proxy:
        await self.run()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, *args: str) -> None:
        """Start inkscape in the background and return without waiting for it.

        ``args`` are passed to inkscape after ``--shell``.
        """
        self._ensure_open()
        if self._task is not None:
            raise RuntimeError("proxy is already running")

        command_path = shutil.which(self.options.command_name)
        if command_path is None:
            raise CommandNotAvailableError(self.options.command_name)
        self._trace("using %s", command_path)

        self._supervisor = RetrySupervisor(
            lambda: self._serve_once(command_path, args),
            max_attempts=self.options.max_retry,
            backoff=ExponentialBackoff(
                initial=self.options.retry_delay,
                maximum=self.options.max_retry_delay,
            ),
            name="inkscape",
        )
        self._task = asyncio.create_task(self._supervise(), name="inkscape-supervisor")

    async def send_command(
        self,
        actions: Sequence[str],
        timeout: float | None = None,
    ) -> bytes:
        """Run one command line and return its stdout.

        Waits for the shell to be free, writes ``actions`` joined with
        ``;``, and collects output until the prompt returns.  ``timeout``
        bounds the whole call, including the wait for the shell.
        """
        if isinstance(actions, (str, bytes)):
            raise TypeError("actions must be a sequence of strings, not a single string")
        self._ensure_open()
        if self._task is None:
            raise CommandNotReadyError("inkscape proxy is not running; call run() first")
        if timeout is not None and timeout <= 0:
            raise ExecutionCanceledError()

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        def remaining() -> float | None:
            return None if deadline is None else deadline - loop.time()

        self._trace("wait available")
        try:
            await asyncio.wait_for(self._limiter.acquire(), remaining())
        except asyncio.TimeoutError:
            raise ExecutionCanceledError() from None

        release = True
        try:
            self._ensure_open()
            await self._wait_ready(remaining())

            stale = _drain(self._signals)
            if stale:
                self._trace("dropped %d stale signals", stale)

            with _buffer_pool.borrow() as buffer:
                command = build_command(buffer, actions)

            self._trace("write command %r", command)
            self._protocol.begin()
            self._ready.clear()
            self._awaiting_prompt = True
            await self._requests.put(command)

            try:
                output = await asyncio.wait_for(self._collect(), remaining())
            except (asyncio.TimeoutError, asyncio.CancelledError) as exc:
                if self._awaiting_prompt:
                    release = False
                    self._hand_off()
                if isinstance(exc, asyncio.CancelledError):
                    raise
                raise ExecutionCanceledError() from None

            self._trace("result %r", output)
            return output
        finally:
            if release:
                self._limiter.release()

    async def raw_commands(self, *actions: str) -> bytes:
        return await self.send_command(actions)

    async def raw_commands_with_deadline(self, timeout: float | None, *actions: str) -> bytes:
        return await self.send_command(actions, timeout=timeout)

    async def svg2pdf(self, svg_in: str, pdf_out: str) -> None:
        """Convert ``svg_in`` into the PDF ``pdf_out``."""
        await self.svg2pdf_with_deadline(None, svg_in, pdf_out)

    async def svg2pdf_with_deadline(
        self, timeout: float | None, svg_in: str, pdf_out: str
    ) -> None:
        await self.send_command(
            [
                actions.file_open(svg_in),
                actions.export_filename(pdf_out),
                actions.export_do(),
                actions.file_close(),
            ],
            timeout=timeout,
        )

    async def close(self) -> None:
        """Quit inkscape (gracefully if it is idle) and tear the session down.

        Calling it again is a no-op.
        """
        if self._closed:
            return
        self._closed = True

        task = self._task
        if task is not None and not task.done():
            await self._quit(task)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._terminate("inkscape proxy is closed")
        if self._drainers:
            await asyncio.gather(*self._drainers, return_exceptions=True)

    def status(self) -> dict[str, Any]:
        sv = self._supervisor
        transport = self._transport
        return {
            "state": sv.state.value if sv else "not_started",
            "attempts": sv.attempts if sv else 0,
            "failures": sv.failures if sv else 0,
            "pid": transport.pid if transport else None,
            "ready": self._ready.is_set() and self._terminal_reason is None,
            "closed": self._closed or self._terminal_reason is not None,
        }

    # ------------------------------------------------------------------
    # Supervision
    # ------------------------------------------------------------------

    async def _supervise(self) -> None:
        if self._supervisor is None:
            raise RuntimeError("inkscape proxy supervisor was not created")
        try:
            await self._supervisor.run()
        except RetriesExhaustedError as exc:
            log.error("%s", exc)
            self._terminate(f"inkscape unavailable: {exc}")
        except asyncio.CancelledError:
            self._terminate("inkscape proxy is closed")
            raise
        else:
            self._terminate("inkscape exited")

    async def _serve_once(self, command_path: str, args: Sequence[str]) -> None:
        self._protocol.reset()
        self._ready.clear()
        _drain(self._requests)

        transport = ProcessTransport(
            command_path,
            args,
            requests=self._requests,
            sink=self._on_output,
            stop_timeout=self.options.shutdown_timeout,
        )
        self._transport = transport
        try:
            await transport.run()
        finally:
            self._transport = None
            self._ready.clear()
            self._post(ProtocolSignal(SignalKind.EXITED))

    def _terminate(self, reason: str) -> None:
        """Make the session permanently unusable and wake every waiter."""
        if self._terminal_reason is None:
            self._terminal_reason = reason
            self._trace("session terminated: %s", reason)
        self._ready.set()
        self._post(ProtocolSignal(SignalKind.EXITED))

    async def _quit(self, task: asyncio.Task[None]) -> None:
        if self._supervisor is not None:
            self._supervisor.stop()

        limit = self.options.shutdown_timeout
        try:
            await asyncio.wait_for(self._limiter.acquire(), limit)
        except asyncio.TimeoutError:
            log.warning("inkscape still busy after %.1fs, not sending quit", limit)
            return

        try:
            if not self._ready.is_set() or self._protocol.state is not ProtocolState.IDLE:
                return
            self._trace("send quit")
            self._protocol.begin()
            self._ready.clear()
            await self._requests.put(QUIT_COMMAND)
            try:
                await asyncio.wait_for(asyncio.shield(task), limit)
            except asyncio.TimeoutError:
                log.warning("inkscape did not quit within %.1fs", limit)
        finally:
            self._limiter.release()

    # ------------------------------------------------------------------
    # Output handling
    # ------------------------------------------------------------------

    async def _on_output(self, event: OutputEvent) -> None:
        busy = self._protocol.state is ProtocolState.BUSY
        for signal in self._protocol.feed(event):
            if signal.kind is SignalKind.READY:
                self._trace("inkscape ready")
                if self._supervisor is not None:
                    self._supervisor.reset()
                self._ready.set()
                continue

            if signal.kind is SignalKind.PROMPT:
                self._ready.set()

            if signal.kind is SignalKind.ERROR and not busy:
                # Nobody is waiting; the next command drains it
                self._post(signal)
            else:
                # RESULT and PROMPT only occur while a command is in flight,
                # so a consumer exists; apply backpressure to the reader.
                await self._signals.put(signal)

    def _post(self, signal: ProtocolSignal) -> None:
        try:
            self._signals.put_nowait(signal)
        except asyncio.QueueFull:
            if signal.kind is not SignalKind.EXITED:
                log.debug("signal queue full, dropping %s", signal.kind.value)
                return
            self._signals.get_nowait()
            self._signals.put_nowait(signal)

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    async def _wait_ready(self, timeout: float | None) -> None:
        budget = self.options.ready_timeout
        limit = budget if timeout is None else min(budget, timeout)
        try:
            await asyncio.wait_for(self._ready.wait(), limit)
        except asyncio.TimeoutError:
            if timeout is not None and timeout <= budget:
                raise ExecutionCanceledError() from None
            raise CommandNotReadyError(
                f"inkscape not ready after {budget:.1f}s"
            ) from None
        self._ensure_open()

    async def _collect(self) -> bytes:
        output = bytearray()
        diagnostics: list[str] = []

        while self._awaiting_prompt:
            signal = await self._signals.get()
            if signal.kind is SignalKind.RESULT:
                if output:
                    output += b"\n"
                output += signal.data
            elif signal.kind is SignalKind.ERROR:
                diagnostics.append(signal.data.decode("utf-8", errors="replace"))
            elif signal.kind is SignalKind.PROMPT:
                self._awaiting_prompt = False
            elif signal.kind is SignalKind.EXITED:
                self._awaiting_prompt = False
                raise ProcessExitedError()

        # stderr can trail the prompt by a loop iteration
        await asyncio.sleep(0)
        while True:
            try:
                signal = self._signals.get_nowait()
            except asyncio.QueueEmpty:
                break
            if signal.kind is SignalKind.ERROR:
                diagnostics.append(signal.data.decode("utf-8", errors="replace"))

        if diagnostics:
            raise CommandError("\n".join(diagnostics), output=bytes(output))
        return bytes(output)

    def _hand_off(self) -> None:
        task = asyncio.create_task(self._drain_abandoned(), name="inkscape-drain")
        self._drainers.add(task)
        task.add_done_callback(self._drainers.discard)

    async def _drain_abandoned(self) -> None:
        """Consume an abandoned command's reply, then release the permit."""
        try:
            await self._collect()
        except InkscapeError as exc:
            self._trace("abandoned command finished with: %s", exc)
        finally:
            self._limiter.release()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise ProxyClosedError()
        if self._terminal_reason is not None:
            raise ProxyClosedError(self._terminal_reason)

    def _trace(self, msg: str, *args: object) -> None:
        log.log(self._trace_level, "proxy: " + msg, *args)

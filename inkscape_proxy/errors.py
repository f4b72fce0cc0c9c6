"""Exceptions raised by the inkscape proxy.

Every public call either returns its result or raises an ``InkscapeError``
subclass, so callers can catch the whole family in one place.
"""

from __future__ import annotations


class InkscapeError(Exception):
    """Base class for all proxy errors."""


class CommandNotAvailableError(InkscapeError):
    """The inkscape executable could not be found on the search path."""

    def __init__(self, command_name: str) -> None:
        super().__init__(f"{command_name} not available")
        self.command_name = command_name


class CommandNotReadyError(InkscapeError):
    def __init__(self, message: str = "inkscape not ready") -> None:
        super().__init__(message)


class ExecutionCanceledError(InkscapeError):
    def __init__(self, message: str = "command execution canceled") -> None:
        super().__init__(message)


class CommandError(InkscapeError):
    """The shell wrote diagnostics to stderr while running a command.

    ``output`` carries whatever stdout the command produced before its
    prompt came back.
    """

    def __init__(self, diagnostics: str, output: bytes = b"") -> None:
        super().__init__(diagnostics)
        self.diagnostics = diagnostics
        self.output = output


class ProcessExitedError(InkscapeError):
    def __init__(self, returncode: int | None = None) -> None:
        if returncode is None:
            message = "inkscape exited"
        else:
            message = f"inkscape exited with code {returncode}"
        super().__init__(message)
        self.returncode = returncode


class RetriesExhaustedError(InkscapeError):
    def __init__(self, name: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"{name} gave up after {attempts} attempts: {last_error}"
        )
        self.name = name
        self.attempts = attempts
        self.last_error = last_error


class ProxyClosedError(InkscapeError):
    def __init__(self, message: str = "inkscape proxy is closed") -> None:
        super().__init__(message)

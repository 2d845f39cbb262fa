"""Async runner for external commands."""

from __future__ import annotations

import asyncio
import codecs
import shlex
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, TextIO

from .utils import sanitize_environment

_CHUNK_SIZE = 4096


class CommandError(RuntimeError):
    """Base class for command runner errors."""


class CommandNotFoundError(CommandError):
    """Raised when a command's executable cannot be located."""


class CommandFailedError(CommandError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, result: CommandResult) -> None:
        super().__init__(
            f"Command failed with exit code {result.returncode}: {shlex.join(result.args)}"
        )
        self.result = result


@dataclass(slots=True)
class CommandResult:
    """Holds the outcome of a single command invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> CommandResult:
        if not self.ok:
            raise CommandFailedError(self)
        return self


def timestamp_line(line: str, now: datetime | None = None) -> str:
    """Prefix a line with a UTC ISO-8601 timestamp."""

    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stamp = moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{stamp} {line}\n"


async def _pump_lines(reader: asyncio.StreamReader, sink: TextIO) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    while True:
        chunk = await reader.read(_CHUNK_SIZE)
        if not chunk:
            break
        buffer += decoder.decode(chunk)
        *lines, buffer = buffer.split("\n")
        for line in lines:
            sink.write(timestamp_line(line))
            sink.flush()

    buffer += decoder.decode(b"", final=True)
    if buffer:
        sink.write(timestamp_line(buffer))
        sink.flush()


class CommandRunner:
    """Execute external commands asynchronously from a fixed working directory."""

    def __init__(
        self,
        cwd: Path | None = None,
        *,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._cwd = Path(cwd) if cwd is not None else None
        self._stdout = stdout
        self._stderr = stderr
        self._env = dict(env) if env is not None else None

    @property
    def cwd(self) -> Path | None:
        return self._cwd

    async def run(self, *args: str) -> CommandResult:
        """Run a command attached to the terminal's output streams."""

        process = await self._spawn(args, stdout=None, stderr=None)
        returncode = await process.wait()
        return CommandResult(args=tuple(args), returncode=returncode)

    async def capture(self, *args: str) -> CommandResult:
        """Run a command and collect its output as text."""

        process = await self._spawn(
            args, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
        stdout_bytes, stderr_bytes = await process.communicate()
        return CommandResult(
            args=tuple(args),
            returncode=process.returncode,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )

    async def stream(self, *args: str) -> CommandResult:
        """Run a command, echoing each output line with a timestamp prefix.

        Standard output and standard error are drained concurrently so a full
        pipe on one channel never stalls the other. Both channels reach
        end-of-stream before the exit status is collected.
        """

        process = await self._spawn(
            args, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
        assert process.stdout is not None and process.stderr is not None
        await asyncio.gather(
            _pump_lines(process.stdout, self._stdout or sys.stdout),
            _pump_lines(process.stderr, self._stderr or sys.stderr),
        )
        returncode = await process.wait()
        return CommandResult(args=tuple(args), returncode=returncode)

    async def _spawn(self, args: tuple[str, ...], *, stdout, stderr) -> asyncio.subprocess.Process:
        if not args:
            raise CommandError("No command given")
        try:
            return await asyncio.create_subprocess_exec(
                *args,
                stdin=None,
                stdout=stdout,
                stderr=stderr,
                cwd=str(self._cwd) if self._cwd is not None else None,
                env=sanitize_environment(self._env),
            )
        except FileNotFoundError as exc:
            if self._cwd is not None and exc.filename == str(self._cwd):
                raise CommandError(f"Working directory not found: {self._cwd}") from exc
            raise CommandNotFoundError(f"Executable not found: {args[0]}") from exc
        except OSError as exc:
            raise CommandError(f"Cannot run {args[0]}: {exc}") from exc


class FakeCommandRunner(CommandRunner):
    """Test double that returns scripted results instead of running commands.

    Results are looked up by the longest key that is a prefix of the invoked
    arguments. A scripted exception is raised instead of returned. Commands
    without a script succeed with empty output.
    """

    def __init__(  # type: ignore[override]
        self,
        responses: Mapping[tuple[str, ...], CommandResult | Exception] | None = None,
    ) -> None:
        super().__init__()
        self._responses = dict(responses or {})
        self._invocations: list[tuple[str, tuple[str, ...]]] = []

    async def run(self, *args: str) -> CommandResult:  # type: ignore[override]
        return self._respond("run", args)

    async def capture(self, *args: str) -> CommandResult:  # type: ignore[override]
        return self._respond("capture", args)

    async def stream(self, *args: str) -> CommandResult:  # type: ignore[override]
        return self._respond("stream", args)

    def _respond(self, mode: str, args: tuple[str, ...]) -> CommandResult:
        self._invocations.append((mode, tuple(args)))
        matches = [key for key in self._responses if tuple(args[: len(key)]) == key]
        if not matches:
            return CommandResult(args=tuple(args), returncode=0)
        response = self._responses[max(matches, key=len)]
        if isinstance(response, Exception):
            raise response
        return CommandResult(
            args=tuple(args),
            returncode=response.returncode,
            stdout=response.stdout,
            stderr=response.stderr,
        )

    @property
    def invocations(self) -> list[tuple[str, tuple[str, ...]]]:
        return self._invocations

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [args for _, args in self._invocations]

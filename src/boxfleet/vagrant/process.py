"""
Subprocess runner.

Spawns the provisioning tool (or the provisioning script) as an asyncio
subprocess. Output from stdout and stderr is read in chunks by two reader
tasks and handed out through a single queue, so a consumer sees the
chunks of one process in the order they arrived. Completion is exposed
as a future that resolves to 0 or is rejected with ``ProcessFailedError``.
The future follows the exit status of the process, not the closing of
its pipes.
"""

import asyncio
import os
from collections.abc import AsyncIterator
from dataclasses import dataclass

from boxfleet.models.enums import OutputStream
from boxfleet.utils.logger import get_logger
from boxfleet.vagrant.exceptions import ProcessFailedError

logger = get_logger(__name__)

READ_CHUNK_SIZE = 4096

# Seconds between exit checks while output is still open
EXIT_POLL_INTERVAL = 0.1

# Seconds the readers get to finish once the process has exited
DRAIN_TIMEOUT = 1.0

# Exit codes reported when the process could not be spawned at all
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


@dataclass(frozen=True)
class OutputChunk:
    """Raw output read from one channel of a process."""

    stream: OutputStream
    data: bytes


def build_environment(overrides: dict | None = None) -> dict[str, str]:
    """Parent environment shallow-merged with ``overrides`` (overrides win)."""
    env = dict(os.environ)
    for key, value in (overrides or {}).items():
        env[key] = "" if value is None else str(value)
    return env


class ProcessHandle:
    """
    A running process.

    ``chunks()`` may be consumed once. Output is buffered until it is
    consumed, so a handle nobody reads from never blocks the process.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        command: list[str],
        label: str = "",
    ):
        self.process = process
        self.command = command
        self.label = label
        self._queue: asyncio.Queue[OutputChunk | None] = asyncio.Queue()
        self._readers = [
            asyncio.create_task(self._pump(process.stdout, OutputStream.NORMAL)),
            asyncio.create_task(self._pump(process.stderr, OutputStream.DIAGNOSTIC)),
        ]
        self.completion: asyncio.Future[int] = (
            asyncio.get_running_loop().create_future()
        )
        self._waiter = asyncio.create_task(self._wait())

    async def _pump(
        self, reader: asyncio.StreamReader | None, stream: OutputStream
    ) -> None:
        if reader is None:
            return
        while True:
            data = await reader.read(READ_CHUNK_SIZE)
            if not data:
                break
            await self._queue.put(OutputChunk(stream, data))

    async def _exit_status(self) -> int:
        """
        Wait for the process itself to exit.

        A grandchild can keep the pipes open after the process is gone, so
        the readers finishing is not required. ``returncode`` is set as
        soon as the process is reaped.
        """
        while self.process.returncode is None:
            if all(task.done() for task in self._readers):
                return await self.process.wait()
            await asyncio.wait(self._readers, timeout=EXIT_POLL_INTERVAL)
        return self.process.returncode

    async def _drain(self) -> None:
        """Give the readers a bounded time to finish, then cancel them."""
        _, pending = await asyncio.wait(self._readers, timeout=DRAIN_TIMEOUT)
        for task in pending:
            task.cancel()
        if pending:
            logger.debug(
                f"{' '.join(self.command)} exited with its output still open; "
                "stopped reading"
            )

        results = await asyncio.gather(*self._readers, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.debug(f"Output reader failed: {result}")

    async def _wait(self) -> None:
        try:
            exit_code = await self._exit_status()
            await self._drain()
        except asyncio.CancelledError:
            for task in self._readers:
                task.cancel()
            self.completion.cancel()
            raise
        except Exception as e:
            self.completion.set_exception(e)
            return
        finally:
            self._queue.put_nowait(None)

        logger.debug(f"{' '.join(self.command)} exited with status {exit_code}")
        if exit_code == 0:
            self.completion.set_result(exit_code)
        else:
            self.completion.set_exception(
                ProcessFailedError(self.command, exit_code, self.label)
            )

    async def chunks(self) -> AsyncIterator[OutputChunk]:
        """Yield output chunks from both channels until the process exits."""
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk

    async def wait(self) -> int:
        """
        Wait for the process to exit.

        Raises:
            ProcessFailedError: If the exit status is non-zero.
        """
        return await self.completion

    async def collect(self) -> str:
        """
        Drain all output and wait for completion.

        Returns:
            stdout followed by stderr, decoded.

        Raises:
            ProcessFailedError: If the exit status is non-zero.
        """
        normal: list[bytes] = []
        diagnostic: list[bytes] = []
        async for chunk in self.chunks():
            if chunk.stream is OutputStream.NORMAL:
                normal.append(chunk.data)
            else:
                diagnostic.append(chunk.data)
        await self.wait()

        text = b"".join(normal).decode(errors="replace")
        if diagnostic:
            text += "\n" + b"".join(diagnostic).decode(errors="replace")
        return text


class ProcessRunner:
    """Spawns processes and wraps them in ``ProcessHandle`` objects."""

    async def run(
        self,
        command: list[str],
        cwd: str | None = None,
        env: dict | None = None,
        label: str = "",
    ) -> ProcessHandle:
        """
        Start ``command``.

        Args:
            command: argv list; the first element is looked up on PATH.
            cwd: Working directory (None=the current directory).
            env: Overrides merged over the parent environment.
            label: Instance label carried into ``ProcessFailedError``.

        Raises:
            ProcessFailedError: If the process cannot be spawned.
        """
        logger.debug(f"Running {' '.join(command)} (cwd={cwd or os.getcwd()})")
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                env=build_environment(env),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            logger.error(f"Cannot run {command[0]}: {e}")
            raise ProcessFailedError(command, EXIT_NOT_FOUND, label) from e
        except PermissionError as e:
            logger.error(f"Cannot run {command[0]}: {e}")
            raise ProcessFailedError(command, EXIT_NOT_EXECUTABLE, label) from e

        return ProcessHandle(process, command, label)

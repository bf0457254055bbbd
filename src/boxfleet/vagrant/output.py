"""
Output multiplexer.

Every launched process gets a color slot from a shared ``ColorPalette``.
Its output lines are written as ``<label>: <line>`` with the label in the
slot color; stderr lines use the dimmed color and grey text. Lines are
printed as soon as they are complete, so output of concurrently running
instances interleaves at line granularity.
"""

import codecs
import itertools
import threading

from rich.console import Console
from rich.text import Text

from boxfleet.models.enums import OutputStream
from boxfleet.vagrant.process import ProcessHandle, ProcessRunner

PALETTE = ("cyan", "green", "magenta", "yellow", "blue")
DIAGNOSTIC_TEXT_STYLE = "grey50"


class ColorPalette:
    """Round-robin color slots backed by one monotonic counter."""

    def __init__(self, colors: tuple[str, ...] = PALETTE):
        if not colors:
            raise ValueError("palette needs at least one color")
        self.colors = tuple(colors)
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.colors)

    def next_slot(self) -> int:
        """Take the next slot; each call advances the counter exactly once."""
        with self._lock:
            return next(self._counter) % len(self.colors)

    def color(self, slot: int) -> str:
        return self.colors[slot % len(self.colors)]


class _LineBuffer:
    """Reassembles lines from raw chunks of one output channel."""

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, data: bytes) -> list[str]:
        text = self._pending + self._decoder.decode(data)
        # Progress output rewrites the line with bare carriage returns
        parts = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        self._pending = parts.pop()
        return [line for line in parts if line.strip()]

    def flush(self) -> list[str]:
        rest = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        return [rest] if rest.strip() else []


class OutputMultiplexer:
    """Writes labelled, colored output of many processes to one console."""

    def __init__(
        self,
        console: Console | None = None,
        palette: ColorPalette | None = None,
    ):
        self.console = console or Console(highlight=False)
        self.palette = palette or ColorPalette()

    def write_line(
        self, label: str, slot: int, stream: OutputStream, line: str
    ) -> None:
        color = self.palette.color(slot)
        if stream is OutputStream.DIAGNOSTIC:
            text = Text.assemble(
                (f"{label}: ", f"dim {color}"), (line, DIAGNOSTIC_TEXT_STYLE)
            )
        else:
            text = Text.assemble((f"{label}: ", color), line)
        self.console.print(text, soft_wrap=True, highlight=False)

    async def attach(self, handle: ProcessHandle, label: str, slot: int) -> None:
        """Print every line of ``handle`` until its output ends."""
        buffers = {stream: _LineBuffer() for stream in OutputStream}
        async for chunk in handle.chunks():
            for line in buffers[chunk.stream].feed(chunk.data):
                self.write_line(label, slot, chunk.stream, line)
        for stream, buffer in buffers.items():
            for line in buffer.flush():
                self.write_line(label, slot, stream, line)

    async def launch(
        self,
        runner: ProcessRunner,
        command: list[str],
        label: str,
        cwd: str | None = None,
        env: dict | None = None,
    ) -> int:
        """
        Run ``command`` with its output attached under ``label``.

        Raises:
            ProcessFailedError: If the process exits non-zero or cannot start.
        """
        slot = self.palette.next_slot()
        handle = await runner.run(command, cwd=cwd, env=env, label=label)
        await self.attach(handle, label, slot)
        return await handle.wait()

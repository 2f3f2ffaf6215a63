"""Streams used to wire commands together.

Every command reads from an ``InputStream`` and writes to ``OutputStream``
sinks. Pipeline stages are connected by a ``Pipe``: a bounded, in-memory
byte channel. A writer suspends while the pipe is full and a reader
suspends while it is empty and the write end is still open, so neither
side needs the other's full output buffered up front.
"""

import asyncio
import codecs
import io
from dataclasses import dataclass, replace
from typing import IO, Optional

DEFAULT_PIPE_CAPACITY = 64 * 1024


class Pipe:
    """Bounded byte channel between two pipeline stages."""

    def __init__(self, capacity: int = DEFAULT_PIPE_CAPACITY):
        if capacity < 1:
            raise ValueError("pipe capacity must be at least 1 byte")
        self._capacity = capacity
        self._buffer = bytearray()
        self._write_closed = False
        self._read_closed = False
        self._changed = asyncio.Condition()

    @property
    def buffered(self) -> int:
        """Number of bytes written but not yet read."""
        return len(self._buffer)

    async def write(self, data: bytes) -> None:
        """Write all of ``data``, waiting for the reader whenever the pipe is full.

        Raises BrokenPipeError once the read end has been closed.
        """
        view = memoryview(data)
        async with self._changed:
            while view:
                if self._read_closed:
                    raise BrokenPipeError("read end of pipe is closed")
                if self._write_closed:
                    raise ValueError("write to a closed pipe")
                space = self._capacity - len(self._buffer)
                if space == 0:
                    await self._changed.wait()
                    continue
                self._buffer.extend(view[:space])
                view = view[space:]
                self._changed.notify_all()

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` buffered bytes (all of them when negative).

        Waits while the pipe is empty and still open. Returns b"" at EOF.
        """
        async with self._changed:
            while not self._buffer and not self._write_closed and not self._read_closed:
                await self._changed.wait()
            if self._read_closed:
                return b""
            if size < 0 or size >= len(self._buffer):
                data = bytes(self._buffer)
                self._buffer.clear()
            else:
                data = bytes(self._buffer[:size])
                del self._buffer[:size]
            self._changed.notify_all()
            return data

    async def close_write(self) -> None:
        """Signal EOF to the reader."""
        async with self._changed:
            self._write_closed = True
            self._changed.notify_all()

    async def close_read(self) -> None:
        """Stop reading: discard buffered data and fail later writes."""
        async with self._changed:
            self._read_closed = True
            self._buffer.clear()
            self._changed.notify_all()


class InputStream:
    """Source of text for a command's standard input.

    Subclasses implement ``_next_chunk``; this class adds line reading on
    top of it and keeps any unread remainder for the next reader, so
    several commands can take turns consuming one stream.
    """

    def __init__(self) -> None:
        self._pending = ""

    async def _next_chunk(self) -> str:
        raise NotImplementedError

    async def read_chunk(self) -> str:
        """Return the next available piece of text, or "" at EOF."""
        if self._pending:
            chunk, self._pending = self._pending, ""
            return chunk
        return await self._next_chunk()

    async def read(self) -> str:
        """Read everything up to EOF."""
        parts = []
        while True:
            chunk = await self.read_chunk()
            if not chunk:
                break
            parts.append(chunk)
        return "".join(parts)

    async def readline(self) -> str:
        """Read one line including its newline; "" at EOF."""
        while "\n" not in self._pending:
            chunk = await self._next_chunk()
            if not chunk:
                line, self._pending = self._pending, ""
                return line
            self._pending += chunk
        index = self._pending.index("\n") + 1
        line, self._pending = self._pending[:index], self._pending[index:]
        return line

    async def close(self) -> None:
        pass


class StringInput(InputStream):
    """Input backed by a fixed string."""

    def __init__(self, text: str = ""):
        super().__init__()
        self._text = text

    async def _next_chunk(self) -> str:
        chunk, self._text = self._text, ""
        return chunk


class PipeInput(InputStream):
    """Read end of a Pipe, decoding UTF-8 incrementally."""

    def __init__(self, pipe: Pipe):
        super().__init__()
        self._pipe = pipe
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._eof = False

    async def _next_chunk(self) -> str:
        while not self._eof:
            data = await self._pipe.read()
            if not data:
                self._eof = True
                return self._decoder.decode(b"", final=True)
            text = self._decoder.decode(data)
            if text:
                return text
        return ""

    async def close(self) -> None:
        await self._pipe.close_read()


class TextIOInput(InputStream):
    """Input read from a host text file object such as sys.stdin."""

    def __init__(self, stream: IO[str], chunk_size: int = 4096):
        super().__init__()
        self._stream = stream
        self._chunk_size = chunk_size

    async def _next_chunk(self) -> str:
        return await asyncio.to_thread(self._stream.read, self._chunk_size)


class OutputStream:
    """Sink for a command's standard output or standard error."""

    async def write(self, text: str) -> None:
        raise NotImplementedError

    async def flush(self) -> None:
        pass

    async def close(self) -> None:
        pass


class BufferOutput(OutputStream):
    """Collects everything written to it in memory."""

    def __init__(self) -> None:
        self._buffer = io.StringIO()

    async def write(self, text: str) -> None:
        self._buffer.write(text)

    def getvalue(self) -> str:
        return self._buffer.getvalue()


class TextIOOutput(OutputStream):
    """Writes to a host text file object such as sys.stdout."""

    def __init__(self, stream: IO[str]):
        self._stream = stream

    async def write(self, text: str) -> None:
        self._stream.write(text)

    async def flush(self) -> None:
        self._stream.flush()


class PipeOutput(OutputStream):
    """Write end of a Pipe."""

    def __init__(self, pipe: Pipe):
        self._pipe = pipe

    async def write(self, text: str) -> None:
        if text:
            await self._pipe.write(text.encode("utf-8"))

    async def close(self) -> None:
        await self._pipe.close_write()


@dataclass(frozen=True)
class StreamSet:
    """The three standard streams a command runs with."""

    stdin: InputStream
    stdout: OutputStream
    stderr: OutputStream

    def with_stdout(self, stdout: OutputStream) -> "StreamSet":
        return replace(self, stdout=stdout)


def as_input(source: "Optional[str | InputStream]") -> InputStream:
    """Accept either a string or an InputStream for standard input."""
    if source is None:
        return StringInput("")
    if isinstance(source, str):
        return StringInput(source)
    return source

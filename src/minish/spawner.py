"""Process spawners: how the interpreter starts external programs.

The interpreter only needs two things from the host: whether a name can
be started, and a way to run it against a set of streams. In-process
``Command`` objects and real OS programs both fit behind the same
protocol, so pipeline stages don't care which kind they are talking to.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import shutil
from typing import Iterable, Mapping, Optional, Protocol

from .errors import CommandNotFound
from .streams import InputStream, OutputStream
from .types import Command, CommandContext

logger = logging.getLogger(__name__)


class ProcessSpawner(Protocol):
    def can_spawn(self, name: str) -> bool:
        ...

    async def spawn(
        self,
        name: str,
        args: list[str],
        *,
        stdin: InputStream,
        stdout: OutputStream,
        stderr: OutputStream,
        env: dict[str, str],
    ) -> int:
        ...


class CommandRegistrySpawner:
    """Runs in-process Command objects looked up by name."""

    def __init__(self, commands: Optional[Mapping[str, Command]] = None):
        self._commands: dict[str, Command] = dict(commands or {})

    def register(self, command: Command) -> None:
        self._commands[command.name] = command

    @property
    def names(self) -> list[str]:
        return sorted(self._commands)

    def can_spawn(self, name: str) -> bool:
        return name in self._commands

    async def spawn(
        self,
        name: str,
        args: list[str],
        *,
        stdin: InputStream,
        stdout: OutputStream,
        stderr: OutputStream,
        env: dict[str, str],
    ) -> int:
        command = self._commands.get(name)
        if command is None:
            raise CommandNotFound(name)
        ctx = CommandContext(env=dict(env), stdin=stdin, stdout=stdout, stderr=stderr)
        result = await command.execute(list(args), ctx)
        if result.stdout:
            await stdout.write(result.stdout)
        if result.stderr:
            await stderr.write(result.stderr)
        return result.exit_code & 255


class SubprocessSpawner:
    """Runs real programs found on PATH with asyncio subprocesses.

    Exported shell variables are layered over the host environment
    unless ``inherit_environ`` is False.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        *,
        inherit_environ: bool = True,
        chunk_size: int = 65536,
    ):
        self._path = path
        self._inherit_environ = inherit_environ
        self._chunk_size = chunk_size

    def _which(self, name: str) -> Optional[str]:
        return shutil.which(name, path=self._path)

    def can_spawn(self, name: str) -> bool:
        return self._which(name) is not None

    async def spawn(
        self,
        name: str,
        args: list[str],
        *,
        stdin: InputStream,
        stdout: OutputStream,
        stderr: OutputStream,
        env: dict[str, str],
    ) -> int:
        executable = self._which(name)
        if executable is None:
            raise CommandNotFound(name)

        child_env = dict(os.environ) if self._inherit_environ else {}
        child_env.update(env)
        logger.debug("starting subprocess %s", executable)
        process = await asyncio.create_subprocess_exec(
            executable,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=child_env,
        )
        feeder = asyncio.ensure_future(self._feed(stdin, process.stdin))
        try:
            await asyncio.gather(
                self._drain(process.stdout, stdout),
                self._drain(process.stderr, stderr),
            )
            returncode = await process.wait()
        except BrokenPipeError:
            # Our reader went away: stop the program like SIGPIPE would.
            if process.returncode is None:
                process.kill()
            await process.wait()
            raise
        finally:
            # A program that never reads stdin must not wait on it.
            feeder.cancel()
            await asyncio.gather(feeder, return_exceptions=True)
        logger.debug("subprocess %s exited with %d", executable, returncode)
        if returncode < 0:
            return 128 - returncode
        return returncode & 255

    async def _feed(self, source: InputStream, sink: asyncio.StreamWriter) -> None:
        try:
            while True:
                chunk = await source.read_chunk()
                if not chunk:
                    break
                sink.write(chunk.encode("utf-8"))
                await sink.drain()
        except (BrokenPipeError, ConnectionResetError):
            # The program exited without reading all of its input.
            pass
        finally:
            sink.close()

    async def _drain(self, source: asyncio.StreamReader, sink: OutputStream) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await source.read(self._chunk_size)
            if not data:
                break
            text = decoder.decode(data)
            if text:
                await sink.write(text)
        tail = decoder.decode(b"", final=True)
        if tail:
            await sink.write(tail)


class ChainSpawner:
    """Tries several spawners in order; the first that knows a name wins."""

    def __init__(self, spawners: Iterable[ProcessSpawner]):
        self._spawners = list(spawners)

    def _find(self, name: str) -> Optional[ProcessSpawner]:
        for spawner in self._spawners:
            if spawner.can_spawn(name):
                return spawner
        return None

    def can_spawn(self, name: str) -> bool:
        return self._find(name) is not None

    async def spawn(
        self,
        name: str,
        args: list[str],
        *,
        stdin: InputStream,
        stdout: OutputStream,
        stderr: OutputStream,
        env: dict[str, str],
    ) -> int:
        spawner = self._find(name)
        if spawner is None:
            raise CommandNotFound(name)
        return await spawner.spawn(
            name, args, stdin=stdin, stdout=stdout, stderr=stderr, env=env
        )

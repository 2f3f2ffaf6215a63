"""Main Shell class - the primary API for minish.

Example usage:
    from minish import Shell

    # Synchronous usage (for REPL, scripts)
    shell = Shell()
    result = shell.run("echo hello world")
    print(result.stdout)  # "hello world\n"

    # Async usage (for async applications)
    shell = Shell()
    result = await shell.exec("echo hello world")
    print(result.stdout)  # "hello world\n"

    # Feeding standard input
    result = shell.run("cat | tac", stdin="a\\nb\\n")

    # Real host programs instead of the in-process commands
    shell = Shell(spawner=SubprocessSpawner())

    # With execution limits
    shell = Shell(limits=ExecutionLimits(max_command_count=1000))
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import contextmanager
from typing import Optional

import nest_asyncio  # type: ignore[import-untyped]

from .commands import create_command_registry
from .errors import ExecutionLimitError, ExitError
from .interpreter import Environment, ExecutionCounters, Interpreter
from .parser import parse
from .spawner import CommandRegistrySpawner, ProcessSpawner
from .streams import BufferOutput, InputStream, OutputStream, StreamSet, as_input
from .types import Command, ExecResult, ExecutionLimits

logger = logging.getLogger(__name__)

# Python frames used by one level of shell function call, with room for
# the compound commands between the call and the next one.
FRAMES_PER_CALL = 40


@contextmanager
def _call_depth_headroom(limits: ExecutionLimits):
    """Raise the interpreter recursion limit so max_call_depth is reachable."""
    previous = sys.getrecursionlimit()
    needed = previous + limits.max_call_depth * FRAMES_PER_CALL
    sys.setrecursionlimit(needed)
    try:
        yield
    finally:
        # Another run may have raised the limit further in the meantime
        if sys.getrecursionlimit() == needed:
            sys.setrecursionlimit(previous)


class Shell:
    """Main minish interpreter class.

    Keeps one Environment across calls to ``exec``/``run``, so variables
    and functions defined by one script are visible to the next.
    """

    def __init__(
        self,
        *,
        env: Optional[dict[str, str]] = None,
        spawner: Optional[ProcessSpawner] = None,
        commands: Optional[dict[str, Command]] = None,
        limits: Optional[ExecutionLimits] = None,
        stdin: Optional[str | InputStream] = None,
        stdout: Optional[OutputStream] = None,
        stderr: Optional[OutputStream] = None,
        name: str = "minish",
        args: Optional[list[str]] = None,
    ):
        """Initialize the shell.

        Args:
            env: Initial variables. They are exported to external commands.
            spawner: Starts external programs. Defaults to the in-process
                command registry.
            commands: Custom command registry, used when no spawner is given.
                Merged over the default commands.
            limits: Execution limits for runaway scripts.
            stdin: Default standard input for every run.
            stdout: Stream to write standard output to instead of capturing it.
            stderr: Stream to write standard error to instead of capturing it.
            name: Shell name, used as $0 and in diagnostics.
            args: Initial positional parameters ($1, $2, ...).
        """
        self._limits = limits or ExecutionLimits()
        if spawner is None:
            registry = create_command_registry()
            if commands:
                registry.update(commands)
            spawner = CommandRegistrySpawner(registry)
        self._spawner = spawner
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr
        self._name = name

        self._initial_env = dict(env or {})
        self._initial_args = list(args or [])
        self._env = self._create_environment()

    def _create_environment(self) -> Environment:
        return Environment(
            self._initial_env,
            exported=self._initial_env.keys(),
            args=self._initial_args,
            script_name=self._name,
        )

    @property
    def env(self) -> Environment:
        """Get the shell environment."""
        return self._env

    @property
    def limits(self) -> ExecutionLimits:
        return self._limits

    async def exec(
        self,
        script: str,
        *,
        stdin: Optional[str | InputStream] = None,
    ) -> ExecResult:
        """Execute a script.

        Args:
            script: The script source.
            stdin: Standard input for this run, overriding the default.

        Returns:
            ExecResult with stdout, stderr, exit_code, and final variables.
            Output written to injected streams is not repeated here.

        Raises:
            LexError: The source could not be tokenized.
            ParseError: The source is not a valid script.
        """
        ast = parse(script)

        stdout = self._stdout or BufferOutput()
        stderr = self._stderr or BufferOutput()
        io = StreamSet(as_input(stdin if stdin is not None else self._stdin), stdout, stderr)
        interpreter = Interpreter(
            self._env,
            spawner=self._spawner,
            io=io,
            limits=self._limits,
            shell_name=self._name,
            counters=ExecutionCounters(),
        )

        try:
            with _call_depth_headroom(self._limits):
                exit_code = await interpreter.execute_script(ast)
        except ExitError as error:
            exit_code = error.exit_code
        except ExecutionLimitError as error:
            logger.debug("run aborted: %s", error)
            await stderr.write(f"{self._name}: {error}\n")
            exit_code = 126
        self._env.last_exit_code = exit_code

        await stdout.flush()
        await stderr.flush()
        return ExecResult(
            stdout=stdout.getvalue() if isinstance(stdout, BufferOutput) else "",
            stderr=stderr.getvalue() if isinstance(stderr, BufferOutput) else "",
            exit_code=exit_code,
            env=self._env.to_dict(),
        )

    def run(
        self,
        script: str,
        *,
        stdin: Optional[str | InputStream] = None,
    ) -> ExecResult:
        """Execute a script synchronously.

        This is a convenience wrapper around exec() that works in any context,
        including Jupyter notebooks and async frameworks.

        Example:
            >>> shell = Shell()
            >>> result = shell.run('echo "Hello, World!"')
            >>> print(result.stdout)
            Hello, World!
        """
        try:
            asyncio.get_running_loop()
            # Already inside an event loop: allow asyncio.run to nest
            nest_asyncio.apply()
        except RuntimeError:
            pass
        return asyncio.run(self.exec(script, stdin=stdin))

    def reset(self) -> None:
        """Reset variables, functions and positional parameters."""
        self._env = self._create_environment()


def run(
    source: str,
    environment: Optional[dict[str, str]] = None,
    **options,
) -> ExecResult:
    """Run ``source`` in a fresh Shell and return its result.

    ``options`` are passed to Shell; ``stdin`` may be given here too.
    """
    stdin = options.pop("stdin", None)
    return Shell(env=environment, **options).run(source, stdin=stdin)

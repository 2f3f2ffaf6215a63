"""Core types shared by the shell, the interpreter and host commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .streams import InputStream, OutputStream


@dataclass
class ExecResult:
    """Result of executing a script or a single command."""

    stdout: str
    stderr: str
    exit_code: int
    env: dict[str, str] | None = None
    """Final variable table, filled in by ``Shell.exec``."""


@dataclass
class ExecutionLimits:
    """Execution limits that keep runaway scripts bounded."""

    max_call_depth: int = 50
    """Maximum nesting of function calls."""

    max_command_count: int = 100_000
    """Maximum number of statements executed in one run."""

    max_loop_iterations: int = 100_000
    """Maximum iterations of a single while/until/for loop."""

    pipe_capacity: int = 64 * 1024
    """Byte capacity of each channel between pipeline stages."""


@dataclass
class CommandContext:
    """What an in-process host command gets to work with."""

    env: dict[str, str] = field(default_factory=dict)
    """Exported variables visible to the command."""

    stdin: InputStream | None = None
    stdout: OutputStream | None = None
    stderr: OutputStream | None = None


class Command(Protocol):
    """An in-process program that can be registered with the shell."""

    name: str

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        ...

"""minish - a small POSIX-flavoured shell interpreter for Python.

Example usage:
    from minish import Shell, run

    result = run("for i in a b; do echo $i; done")
    print(result.stdout)  # "a\\nb\\n"
"""

from .errors import (
    CommandNotFound,
    ExecutionLimitError,
    ExitError,
    ExpansionError,
    LexError,
    ParseError,
    RecursionLimitExceeded,
    ShellArithmeticError,
    ShellError,
    ShellSyntaxError,
)
from .interpreter import Environment
from .shell import Shell, run
from .spawner import ChainSpawner, CommandRegistrySpawner, ProcessSpawner, SubprocessSpawner
from .streams import (
    BufferOutput,
    InputStream,
    OutputStream,
    Pipe,
    StringInput,
    TextIOInput,
    TextIOOutput,
)
from .types import Command, CommandContext, ExecResult, ExecutionLimits

__version__ = "0.1.0"

__all__ = [
    "BufferOutput",
    "ChainSpawner",
    "Command",
    "CommandContext",
    "CommandNotFound",
    "CommandRegistrySpawner",
    "Environment",
    "ExecResult",
    "ExecutionLimitError",
    "ExecutionLimits",
    "ExitError",
    "ExpansionError",
    "InputStream",
    "LexError",
    "OutputStream",
    "ParseError",
    "Pipe",
    "ProcessSpawner",
    "RecursionLimitExceeded",
    "Shell",
    "ShellArithmeticError",
    "ShellError",
    "ShellSyntaxError",
    "StringInput",
    "SubprocessSpawner",
    "TextIOInput",
    "TextIOOutput",
    "run",
]

"""In-process commands shipped with minish.

These are small stand-ins for common host programs. They run through
the same ProcessSpawner interface as real subprocesses, so scripts can
pipe through them without touching the host.
"""

from .argv import ArgvCommand
from .cat import CatCommand
from .env import EnvCommand, PrintenvCommand
from .head import HeadCommand
from .tac import TacCommand
from ..types import Command


def create_command_registry() -> dict[str, Command]:
    """Create a registry of the default in-process commands."""
    commands: list[Command] = [
        ArgvCommand(),
        CatCommand(),
        EnvCommand(),
        HeadCommand(),
        PrintenvCommand(),
        TacCommand(),
    ]
    return {command.name: command for command in commands}


__all__ = [
    "ArgvCommand",
    "CatCommand",
    "EnvCommand",
    "HeadCommand",
    "PrintenvCommand",
    "TacCommand",
    "create_command_registry",
]

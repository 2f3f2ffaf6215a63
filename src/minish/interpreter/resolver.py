"""Command name resolution.

A command name resolves, in order, to a builtin, a user-defined
function, or an external program the spawner knows how to start.
Builtins win over functions, so a function named ``echo`` is never
called.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Awaitable, Callable, Mapping, Optional

from ..errors import CommandNotFound

if TYPE_CHECKING:
    from ..ast.types import FunctionDefinition
    from ..spawner import ProcessSpawner
    from .types import Environment

BuiltinHandler = Callable[..., Awaitable]


class CommandKind(Enum):
    BUILTIN = auto()
    FUNCTION = auto()
    EXTERNAL = auto()


@dataclass(frozen=True)
class Resolution:
    kind: CommandKind
    name: str
    handler: Optional[BuiltinHandler] = None
    function: Optional[FunctionDefinition] = None


class CommandResolver:
    def __init__(self, builtins: Mapping[str, BuiltinHandler], spawner: ProcessSpawner):
        self._builtins = builtins
        self._spawner = spawner

    def resolve(self, name: str, env: Environment) -> Resolution:
        """Resolve ``name`` or raise CommandNotFound."""
        handler = self._builtins.get(name)
        if handler is not None:
            return Resolution(CommandKind.BUILTIN, name, handler=handler)
        function = env.get_function(name)
        if function is not None:
            return Resolution(CommandKind.FUNCTION, name, function=function)
        if self._spawner.can_spawn(name):
            return Resolution(CommandKind.EXTERNAL, name)
        raise CommandNotFound(name)

"""Interpreter types for minish."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, Optional, Union

if TYPE_CHECKING:
    from ..ast.types import CommandNode, FunctionDefinition, Sequence
    from ..spawner import ProcessSpawner
    from ..streams import StreamSet
    from ..types import ExecutionLimits


# =============================================================================
# Control signals
# =============================================================================


@dataclass(frozen=True)
class ReturnSignal:
    """Produced by ``return``; unwound at the nearest function call."""

    exit_code: int


@dataclass(frozen=True)
class BreakSignal:
    """Produced by ``break [N]``; consumed by the enclosing loops."""

    levels: int = 1


@dataclass(frozen=True)
class ContinueSignal:
    """Produced by ``continue [N]``; consumed by the enclosing loops."""

    levels: int = 1


ControlSignal = Union[ReturnSignal, BreakSignal, ContinueSignal]

Outcome = Union[int, ControlSignal]
"""What every node evaluates to: an exit status or a control signal."""


# =============================================================================
# Environment
# =============================================================================


@dataclass
class PositionalFrame:
    """Positional parameters of the script or of one function call."""

    args: list[str] = field(default_factory=list)
    function_name: Optional[str] = None


class Environment:
    """Mutable state of one shell session.

    Holds the variable table, the exported-name set, the function table,
    the exit-status register and a stack of positional-parameter frames.

    Variables are dynamically scoped: a function body reads and writes the
    same table as its caller, so an assignment inside a function is still
    visible after it returns. Only positional parameters are call-local.
    """

    def __init__(
        self,
        variables: Optional[dict[str, str]] = None,
        *,
        exported: Optional[Iterable[str]] = None,
        args: Optional[list[str]] = None,
        script_name: str = "minish",
    ):
        self._variables: dict[str, str] = dict(variables or {})
        self._exported: set[str] = set(exported or ())
        self._functions: dict[str, FunctionDefinition] = {}
        self.frames: list[PositionalFrame] = [PositionalFrame(list(args or []))]
        self.script_name = script_name
        self.last_exit_code = 0
        self.call_depth = 0
        self._arithmetic_parent: Optional[Environment] = None

    # -------------------------------------------------------------------------
    # Variables
    # -------------------------------------------------------------------------

    def get(self, name: str) -> Optional[str]:
        return self._variables.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._variables

    def set(self, name: str, value: str) -> None:
        self._variables[name] = value

    def unset(self, name: str) -> None:
        self._variables.pop(name, None)
        self._exported.discard(name)

    def set_arithmetic(self, name: str, value: str) -> None:
        """Assignment made by arithmetic evaluation.

        A command substitution's environment passes these through to the
        environment it was forked from.
        """
        self.set(name, value)
        if self._arithmetic_parent is not None:
            self._arithmetic_parent.set_arithmetic(name, value)

    def to_dict(self) -> dict[str, str]:
        return dict(self._variables)

    # -------------------------------------------------------------------------
    # Exports
    # -------------------------------------------------------------------------

    def export(self, name: str) -> None:
        self._exported.add(name)

    def unexport(self, name: str) -> None:
        self._exported.discard(name)

    def exported_variables(self) -> dict[str, str]:
        """Exported variables that currently have a value."""
        return {
            name: self._variables[name]
            for name in sorted(self._exported)
            if name in self._variables
        }

    def apply_temporary(self, values: dict[str, str]) -> list[tuple[str, Optional[str], bool]]:
        """Set and export ``values`` for one command; returns what to restore."""
        saved = []
        for name, value in values.items():
            saved.append((name, self._variables.get(name), name in self._exported))
            self._variables[name] = value
            self._exported.add(name)
        return saved

    def restore_temporary(self, saved: list[tuple[str, Optional[str], bool]]) -> None:
        for name, value, was_exported in reversed(saved):
            if value is None:
                self._variables.pop(name, None)
            else:
                self._variables[name] = value
            if not was_exported:
                self._exported.discard(name)

    # -------------------------------------------------------------------------
    # Positional parameters
    # -------------------------------------------------------------------------

    @property
    def positional(self) -> list[str]:
        return self.frames[-1].args

    def set_positional(self, args: list[str]) -> None:
        self.frames[-1].args = list(args)

    def shift(self, count: int = 1) -> bool:
        """Drop the first ``count`` positional parameters."""
        frame = self.frames[-1]
        if count < 0 or count > len(frame.args):
            return False
        frame.args = frame.args[count:]
        return True

    def push_frame(self, args: list[str], function_name: Optional[str] = None) -> None:
        self.frames.append(PositionalFrame(list(args), function_name))

    def pop_frame(self) -> PositionalFrame:
        if len(self.frames) == 1:
            raise RuntimeError("cannot pop the script's positional frame")
        return self.frames.pop()

    # -------------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------------

    def define_function(self, node: FunctionDefinition) -> None:
        self._functions[node.name] = node

    def get_function(self, name: str) -> Optional[FunctionDefinition]:
        return self._functions.get(name)

    def remove_function(self, name: str) -> bool:
        return self._functions.pop(name, None) is not None

    # -------------------------------------------------------------------------
    # Forking
    # -------------------------------------------------------------------------

    def fork(self, *, share_arithmetic: bool = False) -> Environment:
        """Child environment for a subshell, pipeline stage or substitution.

        The child starts with everything the parent can see; its own
        assignments, function definitions and positional changes never
        reach the parent. With ``share_arithmetic`` set, arithmetic
        assignments are still written through to the parent.
        """
        child = Environment(
            self._variables,
            exported=self._exported,
            script_name=self.script_name,
        )
        child._functions = dict(self._functions)
        frame = self.frames[-1]
        child.frames = [PositionalFrame(list(frame.args), frame.function_name)]
        child.last_exit_code = self.last_exit_code
        child.call_depth = self.call_depth
        if share_arithmetic:
            child._arithmetic_parent = self
        return child


# =============================================================================
# Interpreter context
# =============================================================================


@dataclass
class ExecutionCounters:
    """Counters shared by an interpreter and every child it forks."""

    command_count: int = 0


@dataclass
class InterpreterContext:
    """What builtins and the control-flow helpers need from the interpreter."""

    env: Environment
    io: StreamSet
    limits: ExecutionLimits
    spawner: ProcessSpawner
    shell_name: str
    counters: ExecutionCounters
    execute_sequence: Callable[[Sequence], Awaitable[Outcome]]
    execute_command: Callable[[CommandNode], Awaitable[Outcome]]
    execute_source: Callable[[str], Awaitable[Outcome]]
    run_isolated: Callable[..., Awaitable[int]]
    loop_depth: int = 0
    substitution_status: Optional[int] = None
    """Status of the last command substitution, for assignment-only statements."""

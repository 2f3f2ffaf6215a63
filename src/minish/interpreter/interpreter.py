"""Interpreter - AST Execution Engine.

Main interpreter class that executes minish AST nodes.
Delegates to specialized modules for:
- Word expansion (expansion.py)
- Arithmetic evaluation (arithmetic.py)
- Control flow (control_flow.py)
- Pipelines (pipeline.py)
- Built-in commands (builtins/)
- Command name resolution (resolver.py)

Each node evaluates to an Outcome: an exit status or a control signal.
Output is written straight to the current stream set rather than
accumulated, so pipeline stages see each other's output as it is made.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Union

from ..ast.types import (
    AndOrList,
    ArithmeticCommand,
    CommandNode,
    For,
    FunctionDefinition,
    Group,
    If,
    Sequence,
    SimpleCommand,
    Subshell,
    Until,
    While,
)
from ..errors import (
    CommandNotFound,
    ExecutionLimitError,
    ExitError,
    ExpansionError,
    RecursionLimitExceeded,
)
from ..types import ExecResult, ExecutionLimits
from .builtins import BUILTINS
from .control_flow import execute_for, execute_if, execute_until, execute_while
from .expansion import evaluate_arithmetic_word, expand_word, expand_words
from .pipeline import execute_pipeline
from .resolver import CommandKind, CommandResolver
from .types import (
    Environment,
    ExecutionCounters,
    InterpreterContext,
    Outcome,
    ReturnSignal,
)

if TYPE_CHECKING:
    from ..spawner import ProcessSpawner
    from ..streams import StreamSet

logger = logging.getLogger(__name__)


class Interpreter:
    """AST interpreter for minish scripts."""

    def __init__(
        self,
        env: Environment,
        *,
        spawner: ProcessSpawner,
        io: StreamSet,
        limits: Optional[ExecutionLimits] = None,
        shell_name: str = "minish",
        counters: Optional[ExecutionCounters] = None,
    ):
        """Initialize the interpreter.

        Args:
            env: Environment to execute against (mutated in place)
            spawner: Starts external programs
            io: Standard streams for everything this interpreter runs
            limits: Execution limits
            shell_name: Name used as $0 and as the prefix of diagnostics
            counters: Counters shared with a parent interpreter
        """
        self._env = env
        self._spawner = spawner
        self._limits = limits or ExecutionLimits()
        self._resolver = CommandResolver(BUILTINS, spawner)
        self._ctx = InterpreterContext(
            env=env,
            io=io,
            limits=self._limits,
            spawner=spawner,
            shell_name=shell_name,
            counters=counters or ExecutionCounters(),
            execute_sequence=self.execute_sequence,
            execute_command=self.execute_command,
            execute_source=self.execute_source,
            run_isolated=self.run_isolated,
        )

    @property
    def env(self) -> Environment:
        return self._env

    @property
    def context(self) -> InterpreterContext:
        return self._ctx

    async def _diagnose(self, message: str) -> None:
        await self._ctx.io.stderr.write(f"{self._ctx.shell_name}: {message}\n")

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    async def execute_script(self, node: Sequence) -> int:
        """Execute a whole script and return its exit status."""
        outcome = await self.execute_sequence(node)
        if isinstance(outcome, ReturnSignal):
            return outcome.exit_code
        if not isinstance(outcome, int):
            return 0
        return outcome

    async def execute_source(self, source: str) -> Outcome:
        """Parse and execute source text in this interpreter (used by eval)."""
        from ..parser import parse

        return await self.execute_sequence(parse(source))

    async def execute_sequence(self, node: Sequence) -> Outcome:
        exit_code = 0
        for statement in node.statements:
            outcome = await self.execute_and_or(statement)
            if not isinstance(outcome, int):
                return outcome
            exit_code = outcome
        return exit_code

    async def execute_and_or(self, node: AndOrList) -> Outcome:
        counters = self._ctx.counters
        counters.command_count += 1
        if counters.command_count > self._limits.max_command_count:
            logger.debug("command count limit reached")
            raise ExecutionLimitError(
                f"too many commands executed (>{self._limits.max_command_count}), "
                "increase ExecutionLimits.max_command_count",
                "commands",
            )

        outcome = await execute_pipeline(self._ctx, node.pipelines[0])
        for operator, pipeline in zip(node.operators, node.pipelines[1:]):
            if not isinstance(outcome, int):
                return outcome
            if operator == "&&" and outcome != 0:
                continue
            if operator == "||" and outcome == 0:
                continue
            outcome = await execute_pipeline(self._ctx, pipeline)
        return outcome

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def execute_command(self, node: CommandNode) -> Outcome:
        """Execute a command AST node."""
        if isinstance(node, SimpleCommand):
            return await self._execute_simple_command(node)
        if isinstance(node, If):
            return await execute_if(self._ctx, node)
        if isinstance(node, While):
            return await execute_while(self._ctx, node)
        if isinstance(node, Until):
            return await execute_until(self._ctx, node)
        if isinstance(node, For):
            return await execute_for(self._ctx, node)
        if isinstance(node, Group):
            return await self.execute_sequence(node.body)
        if isinstance(node, Subshell):
            return await self.run_isolated(node.body, self._ctx.io)
        if isinstance(node, FunctionDefinition):
            self._env.define_function(node)
            return 0
        if isinstance(node, ArithmeticCommand):
            return await self._execute_arithmetic(node)
        raise TypeError(f"unknown command node: {type(node).__name__}")

    async def run_isolated(
        self,
        node: Union[Sequence, CommandNode],
        io: StreamSet,
        *,
        share_arithmetic: bool = False,
    ) -> int:
        """Run ``node`` against a forked environment with its own streams.

        Used for subshells, pipeline stages and command substitutions.
        ``exit``, ``return``, ``break`` and ``continue`` end only the
        isolated run.
        """
        child = Interpreter(
            self._env.fork(share_arithmetic=share_arithmetic),
            spawner=self._spawner,
            io=io,
            limits=self._limits,
            shell_name=self._ctx.shell_name,
            counters=self._ctx.counters,
        )
        # break and continue inside the child end only the child
        child.context.loop_depth = self._ctx.loop_depth
        try:
            if isinstance(node, Sequence):
                outcome = await child.execute_sequence(node)
            else:
                outcome = await child.execute_command(node)
        except ExitError as error:
            return error.exit_code
        if isinstance(outcome, ReturnSignal):
            return outcome.exit_code
        if not isinstance(outcome, int):
            return 0
        return outcome

    async def _execute_arithmetic(self, node: ArithmeticCommand) -> int:
        try:
            value = await evaluate_arithmetic_word(self._ctx, node.expression)
        except ExpansionError as error:
            await self._diagnose(str(error))
            return 1
        return 0 if value != 0 else 1

    async def _execute_simple_command(self, node: SimpleCommand) -> Outcome:
        env = self._env

        if node.name is None:
            # Assignment-only statement: assignments persist, and the status
            # is that of the last command substitution, if any
            self._ctx.substitution_status = None
            for assignment in node.assignments:
                try:
                    value = await expand_word(self._ctx, assignment.value)
                except ExpansionError as error:
                    await self._diagnose(str(error))
                    return 1
                if assignment.append:
                    value = (env.get(assignment.name) or "") + value
                env.set(assignment.name, value)
            return self._ctx.substitution_status or 0

        temporary: dict[str, str] = {}
        try:
            for assignment in node.assignments:
                value = await expand_word(self._ctx, assignment.value)
                if assignment.append:
                    value = (env.get(assignment.name) or "") + value
                temporary[assignment.name] = value
        except ExpansionError as error:
            await self._diagnose(str(error))
            return 1

        # Prefix assignments are visible while the arguments are expanded
        # and while the command runs, then restored.
        saved = env.apply_temporary(temporary)
        try:
            try:
                fields = await expand_words(self._ctx, (node.name,) + node.args)
            except ExpansionError as error:
                await self._diagnose(str(error))
                return 1
            if not fields:
                return 0

            name, args = fields[0], fields[1:]
            try:
                resolution = self._resolver.resolve(name, env)
            except CommandNotFound as error:
                await self._diagnose(str(error))
                return 127

            if resolution.kind is CommandKind.BUILTIN:
                return await self._execute_builtin(resolution.handler, args)
            if resolution.kind is CommandKind.FUNCTION:
                return await self._call_function(resolution.function, args)
            return await self._execute_external(name, args)
        finally:
            env.restore_temporary(saved)

    async def _execute_builtin(self, handler, args: list[str]) -> Outcome:
        result = await handler(self._ctx, args)
        if not isinstance(result, ExecResult):
            return result
        if result.stdout:
            await self._ctx.io.stdout.write(result.stdout)
        if result.stderr:
            await self._ctx.io.stderr.write(result.stderr)
        return result.exit_code

    async def _execute_external(self, name: str, args: list[str]) -> int:
        io = self._ctx.io
        logger.debug("spawning external command %s %r", name, args)
        exit_code = await self._spawner.spawn(
            name,
            args,
            stdin=io.stdin,
            stdout=io.stdout,
            stderr=io.stderr,
            env=self._env.exported_variables(),
        )
        return exit_code & 255

    async def _call_function(self, function: FunctionDefinition, args: list[str]) -> int:
        """Call a user-defined function."""
        env = self._env
        if env.call_depth >= self._limits.max_call_depth:
            logger.debug("call depth limit reached in %s", function.name)
            raise RecursionLimitExceeded(self._limits.max_call_depth)

        env.call_depth += 1
        env.push_frame(args, function.name)
        saved_loop_depth = self._ctx.loop_depth
        self._ctx.loop_depth = 0
        try:
            outcome = await self.execute_sequence(function.body)
        except RecursionError as error:
            # Python ran out of frames before max_call_depth was reached
            raise RecursionLimitExceeded(
                env.call_depth,
                f"function calls nested too deeply for Python (depth {env.call_depth})",
            ) from error
        finally:
            self._ctx.loop_depth = saved_loop_depth
            env.pop_frame()
            env.call_depth -= 1

        if isinstance(outcome, ReturnSignal):
            return outcome.exit_code
        if not isinstance(outcome, int):
            return 0
        return outcome

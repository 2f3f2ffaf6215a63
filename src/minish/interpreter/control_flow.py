"""Control Flow Execution.

Handles control flow constructs:
- if/elif/else
- for loops
- while loops
- until loops

Every function returns an Outcome: an exit status, or a control signal
that the caller must propagate. Loops consume break/continue signals
aimed at them and hand the rest upward with one level fewer.
"""

from typing import TYPE_CHECKING, Optional

from ..ast.types import For, If, Sequence, Until, While
from ..errors import ExecutionLimitError, ExpansionError
from .expansion import expand_words
from .types import BreakSignal, ContinueSignal, Outcome

if TYPE_CHECKING:
    from .types import InterpreterContext

_BREAK = "break"
_CONTINUE = "continue"


async def execute_if(ctx: "InterpreterContext", node: If) -> Outcome:
    """Execute an if statement."""
    clauses = [(node.condition, node.then_body)]
    clauses.extend((branch.condition, branch.body) for branch in node.elif_branches)

    for condition, body in clauses:
        outcome = await ctx.execute_sequence(condition)
        if not isinstance(outcome, int):
            return outcome
        if outcome == 0:
            return await ctx.execute_sequence(body)

    if node.else_body is not None:
        return await ctx.execute_sequence(node.else_body)
    return 0


def _loop_signal(outcome: Outcome) -> tuple[Optional[str], Outcome]:
    """Classify a body outcome for the innermost loop.

    Returns ("break" | "continue", _) for a signal this loop consumes,
    (None, outcome) for anything to keep or propagate as is.
    """
    if isinstance(outcome, BreakSignal):
        if outcome.levels > 1:
            return None, BreakSignal(outcome.levels - 1)
        return _BREAK, 0
    if isinstance(outcome, ContinueSignal):
        if outcome.levels > 1:
            return None, ContinueSignal(outcome.levels - 1)
        return _CONTINUE, 0
    return None, outcome


def _check_iterations(ctx: "InterpreterContext", kind: str, iterations: int) -> None:
    if iterations > ctx.limits.max_loop_iterations:
        raise ExecutionLimitError(
            f"{kind} loop: too many iterations ({ctx.limits.max_loop_iterations})",
            "iterations",
        )


async def _execute_conditional_loop(
    ctx: "InterpreterContext", kind: str, condition: Sequence, body: Sequence, until: bool
) -> Outcome:
    exit_code = 0
    iterations = 0

    ctx.loop_depth += 1
    try:
        while True:
            iterations += 1
            _check_iterations(ctx, kind, iterations)

            outcome = await ctx.execute_sequence(condition)
            action, outcome = _loop_signal(outcome)
            if action == _BREAK:
                break
            if action == _CONTINUE:
                continue
            if not isinstance(outcome, int):
                return outcome
            if (outcome == 0) == until:
                break

            outcome = await ctx.execute_sequence(body)
            action, outcome = _loop_signal(outcome)
            if action == _BREAK:
                exit_code = 0
                break
            if action == _CONTINUE:
                exit_code = 0
                continue
            if not isinstance(outcome, int):
                return outcome
            exit_code = outcome
    finally:
        ctx.loop_depth -= 1

    return exit_code


async def execute_while(ctx: "InterpreterContext", node: While) -> Outcome:
    """Execute a while loop."""
    return await _execute_conditional_loop(ctx, "while", node.condition, node.body, until=False)


async def execute_until(ctx: "InterpreterContext", node: Until) -> Outcome:
    """Execute an until loop."""
    return await _execute_conditional_loop(ctx, "until", node.condition, node.body, until=True)


async def execute_for(ctx: "InterpreterContext", node: For) -> Outcome:
    """Execute a for loop."""
    if node.words is None:
        words = list(ctx.env.positional)
    else:
        try:
            words = await expand_words(ctx, node.words)
        except ExpansionError as e:
            await ctx.io.stderr.write(f"{ctx.shell_name}: {e}\n")
            return 1

    exit_code = 0
    ctx.loop_depth += 1
    try:
        for iterations, word in enumerate(words, start=1):
            _check_iterations(ctx, "for", iterations)
            ctx.env.set(node.variable, word)

            outcome = await ctx.execute_sequence(node.body)
            action, outcome = _loop_signal(outcome)
            if action == _BREAK:
                exit_code = 0
                break
            if action == _CONTINUE:
                exit_code = 0
                continue
            if not isinstance(outcome, int):
                return outcome
            exit_code = outcome
    finally:
        ctx.loop_depth -= 1

    return exit_code

"""Control flow builtins: break, continue, return, exit.

break, continue and return hand a control signal back to the
interpreter instead of raising; exit raises ExitError because it ends
the whole script.
"""

from typing import TYPE_CHECKING, Union

from ...errors import ExitError
from ..types import BreakSignal, ContinueSignal, ReturnSignal

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def _result(stderr: str, exit_code: int) -> "ExecResult":
    from ...types import ExecResult
    return ExecResult(stdout="", stderr=stderr, exit_code=exit_code)


def _loop_levels(
    ctx: "InterpreterContext", name: str, args: list[str]
) -> Union[int, "ExecResult"]:
    """Parse the optional loop count of break/continue."""
    if not args:
        return 1
    if len(args) > 1:
        return _result(f"{ctx.shell_name}: {name}: too many arguments\n", 1)
    try:
        levels = int(args[0])
    except ValueError:
        return _result(f"{ctx.shell_name}: {name}: {args[0]}: numeric argument required\n", 1)
    if levels < 1:
        return _result(f"{ctx.shell_name}: {name}: {args[0]}: loop count out of range\n", 1)
    return levels


async def handle_break(
    ctx: "InterpreterContext", args: list[str]
) -> Union["ExecResult", BreakSignal]:
    """Execute the break builtin.

    Usage: break [n]

    Exit from within a for, while or until loop. If n is specified,
    break out of n enclosing loops (all of them if there are fewer).
    """
    levels = _loop_levels(ctx, "break", args)
    if not isinstance(levels, int):
        return levels
    if ctx.loop_depth == 0:
        return _result(
            f"{ctx.shell_name}: break: only meaningful in a `for', `while', or `until' loop\n", 0
        )
    return BreakSignal(min(levels, ctx.loop_depth))


async def handle_continue(
    ctx: "InterpreterContext", args: list[str]
) -> Union["ExecResult", ContinueSignal]:
    """Execute the continue builtin.

    Usage: continue [n]

    Resume the next iteration of the nth enclosing loop.
    """
    levels = _loop_levels(ctx, "continue", args)
    if not isinstance(levels, int):
        return levels
    if ctx.loop_depth == 0:
        return _result(
            f"{ctx.shell_name}: continue: only meaningful in a `for', `while', or `until' loop\n", 0
        )
    return ContinueSignal(min(levels, ctx.loop_depth))


async def handle_return(
    ctx: "InterpreterContext", args: list[str]
) -> Union["ExecResult", ReturnSignal]:
    """Execute the return builtin.

    Usage: return [n]

    Return from a shell function. n is the return value (0-255). If n is
    omitted, the return value is the exit status of the last command.
    Outside a function this is a usage error and execution continues.
    """
    exit_code = ctx.env.last_exit_code
    if args:
        if len(args) > 1:
            return _result(f"{ctx.shell_name}: return: too many arguments\n", 1)
        try:
            exit_code = int(args[0]) & 255
        except ValueError:
            return _result(
                f"{ctx.shell_name}: return: {args[0]}: numeric argument required\n", 2
            )

    if ctx.env.call_depth == 0:
        return _result(
            f"{ctx.shell_name}: return: can only `return' from a function\n",
            exit_code or 1,
        )
    return ReturnSignal(exit_code)


async def handle_exit(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the exit builtin.

    Usage: exit [n]

    Exit the shell with status n. If n is omitted, the exit status is
    that of the last command executed.
    """
    exit_code = ctx.env.last_exit_code
    if args:
        if len(args) > 1:
            return _result(f"{ctx.shell_name}: exit: too many arguments\n", 1)
        try:
            exit_code = int(args[0]) & 255
        except ValueError:
            return _result(
                f"{ctx.shell_name}: exit: {args[0]}: numeric argument required\n", 2
            )

    raise ExitError(exit_code)

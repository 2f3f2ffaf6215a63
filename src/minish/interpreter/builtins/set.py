"""Set and shift builtin implementations.

set - List variables or replace the positional parameters.

Usage: set
       set [--] [arg ...]

Shell options are not supported; any option other than -- is an error.

shift - Shift positional parameters.

Usage: shift [n]

Shift positional parameters to the left by n (default 1).
"""

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult

_SAFE_VALUE_RE = re.compile(r'^[a-zA-Z0-9_/.,:@%^+=~-]+$')


def _shell_quote_value(value: str) -> str:
    """Quote a value for set output.

    Simple values are left unquoted, empty values become '' and anything
    else is single-quoted with embedded single quotes escaped as '\\''.
    """
    if not value:
        return "''"
    if _SAFE_VALUE_RE.match(value):
        return value
    return "'" + value.replace("'", "'\\''") + "'"


async def handle_set(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the set builtin."""
    from ...types import ExecResult

    # No arguments: print all variables
    if not args:
        lines = [
            f"{name}={_shell_quote_value(value)}"
            for name, value in sorted(ctx.env.to_dict().items())
        ]
        stdout = "\n".join(lines) + "\n" if lines else ""
        return ExecResult(stdout=stdout, stderr="", exit_code=0)

    if args[0] == "--":
        args = args[1:]
    elif args[0][:1] in ("-", "+") and len(args[0]) > 1:
        return ExecResult(
            stdout="",
            stderr=f"{ctx.shell_name}: set: {args[0]}: invalid option\n",
            exit_code=2,
        )

    ctx.env.set_positional(args)
    return ExecResult(stdout="", stderr="", exit_code=0)


async def handle_shift(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the shift builtin."""
    from ...types import ExecResult

    n = 1
    if args:
        if len(args) > 1:
            return ExecResult(
                stdout="",
                stderr=f"{ctx.shell_name}: shift: too many arguments\n",
                exit_code=1,
            )
        try:
            n = int(args[0])
        except ValueError:
            return ExecResult(
                stdout="",
                stderr=f"{ctx.shell_name}: shift: {args[0]}: numeric argument required\n",
                exit_code=1,
            )

    if not ctx.env.shift(n):
        return ExecResult(
            stdout="",
            stderr=f"{ctx.shell_name}: shift: {n}: shift count out of range\n",
            exit_code=1,
        )
    return ExecResult(stdout="", stderr="", exit_code=0)

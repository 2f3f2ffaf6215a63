"""Unset builtin implementation.

Usage: unset [-v] [-f] [name ...]

Without an option, unset removes a variable, or a function of that name
when no such variable exists.
"""

from typing import TYPE_CHECKING

from ...parser.lexer import is_valid_name

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_unset(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the unset builtin."""
    from ...types import ExecResult

    mode = None
    names = []
    for i, arg in enumerate(args):
        if arg == "--":
            names.extend(args[i + 1:])
            break
        if arg in ("-v", "-f"):
            mode = arg[1]
        elif arg.startswith("-") and len(arg) > 1:
            return ExecResult(
                stdout="",
                stderr=f"{ctx.shell_name}: unset: {arg}: invalid option\n",
                exit_code=2,
            )
        else:
            names.append(arg)

    stderr_parts = []
    exit_code = 0
    for name in names:
        if mode == "f":
            ctx.env.remove_function(name)
            continue
        if not is_valid_name(name):
            stderr_parts.append(f"{ctx.shell_name}: unset: `{name}': not a valid identifier\n")
            exit_code = 1
            continue
        if mode is None and name not in ctx.env:
            ctx.env.remove_function(name)
        else:
            ctx.env.unset(name)

    return ExecResult(stdout="", stderr="".join(stderr_parts), exit_code=exit_code)

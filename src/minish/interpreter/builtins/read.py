"""Read builtin implementation.

Usage: read [-r] [name ...]

Reads one line from standard input and splits it on IFS. Each name gets
one field and the last name gets the rest of the line. With no names
the whole line is stored in REPLY. Without -r, backslash escapes the
next character and a trailing backslash continues the line.
"""

from typing import TYPE_CHECKING

from ...parser.lexer import is_valid_name

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def _unescape(line: str) -> str:
    out = []
    i = 0
    while i < len(line):
        if line[i] == "\\" and i + 1 < len(line):
            out.append(line[i + 1])
            i += 2
        else:
            out.append(line[i])
            i += 1
    return "".join(out)


def _assign_fields(line: str, names: list[str], ifs: str) -> list[str]:
    whitespace = "".join(c for c in ifs if c in " \t\n")
    rest = line.strip(whitespace)
    values = []
    for _ in names[:-1]:
        end = 0
        while end < len(rest) and rest[end] not in ifs:
            end += 1
        values.append(rest[:end])
        rest = rest[end + 1:] if end < len(rest) else ""
        rest = rest.lstrip(whitespace)
    values.append(rest.rstrip(whitespace))
    return values


async def handle_read(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the read builtin."""
    from ...types import ExecResult

    raw = False
    names = []
    for arg in args:
        if arg == "-r" and not names:
            raw = True
        elif arg.startswith("-") and not names:
            return ExecResult(
                stdout="",
                stderr=f"{ctx.shell_name}: read: {arg}: invalid option\n",
                exit_code=2,
            )
        elif not is_valid_name(arg):
            return ExecResult(
                stdout="",
                stderr=f"{ctx.shell_name}: read: `{arg}': not a valid identifier\n",
                exit_code=1,
            )
        else:
            names.append(arg)

    line = await ctx.io.stdin.readline()
    at_eof = not line.endswith("\n")
    line = line[:-1] if not at_eof else line
    while not raw and line.endswith("\\") and not line.endswith("\\\\") and not at_eof:
        more = await ctx.io.stdin.readline()
        at_eof = not more.endswith("\n")
        line = line[:-1] + (more if at_eof else more[:-1])
    if not raw:
        line = _unescape(line)

    if not names:
        ctx.env.set("REPLY", line)
    else:
        ifs = ctx.env.get("IFS")
        ifs = " \t\n" if ifs is None else ifs
        for name, value in zip(names, _assign_fields(line, names, ifs)):
            ctx.env.set(name, value)

    # EOF before a newline: variables are still assigned, status is 1
    return ExecResult(stdout="", stderr="", exit_code=1 if at_eof else 0)

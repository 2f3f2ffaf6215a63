"""Miscellaneous builtins: colon, true, false, echo, eval, let.

These are simple builtins that don't need their own files.
"""

from typing import TYPE_CHECKING, Union

from ...errors import ExpansionError, ShellSyntaxError

if TYPE_CHECKING:
    from ..types import ControlSignal, InterpreterContext
    from ...types import ExecResult


def _result(stdout: str, stderr: str, exit_code: int) -> "ExecResult":
    """Create an ExecResult."""
    from ...types import ExecResult
    return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


async def handle_colon(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the : (colon) builtin - null command, always succeeds."""
    return _result("", "", 0)


async def handle_true(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the true builtin - always succeeds."""
    return _result("", "", 0)


async def handle_false(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the false builtin - always fails."""
    return _result("", "", 1)


_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
    "E": "\x1b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
}


def _interpret_escapes(text: str) -> tuple[str, bool]:
    """Process echo -e escapes. Returns (output, stop) where stop means \\c was seen."""
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        code = text[i + 1]
        if code in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[code])
            i += 2
        elif code == "c":
            return "".join(out), True
        elif code == "0":
            j = i + 2
            while j < len(text) and j < i + 5 and text[j] in "01234567":
                j += 1
            out.append(chr(int(text[i + 2:j] or "0", 8) & 0xFF))
            i = j
        elif code == "x":
            j = i + 2
            while j < len(text) and j < i + 4 and text[j] in "0123456789abcdefABCDEF":
                j += 1
            if j == i + 2:
                out.append("\\x")
            else:
                out.append(chr(int(text[i + 2:j], 16)))
            i = j
        else:
            out.append("\\" + code)
            i += 2
    return "".join(out), False


async def handle_echo(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the echo builtin.

    Usage: echo [-neE] [arg ...]

    -n suppresses the trailing newline, -e enables backslash escapes and
    -E disables them (the default).
    """
    newline = True
    escapes = False
    index = 0
    while index < len(args):
        arg = args[index]
        if len(arg) < 2 or arg[0] != "-" or any(c not in "neE" for c in arg[1:]):
            break
        for flag in arg[1:]:
            if flag == "n":
                newline = False
            elif flag == "e":
                escapes = True
            else:
                escapes = False
        index += 1

    text = " ".join(args[index:])
    if escapes:
        text, stop = _interpret_escapes(text)
        if stop:
            return _result(text, "", 0)
    if newline:
        text += "\n"
    return _result(text, "", 0)


async def handle_eval(
    ctx: "InterpreterContext", args: list[str]
) -> Union["ExecResult", "ControlSignal"]:
    """Execute the eval builtin: run the joined arguments as a script."""
    source = " ".join(args)
    if not source.strip():
        return _result("", "", 0)
    try:
        outcome = await ctx.execute_source(source)
    except ShellSyntaxError as e:
        return _result("", f"{ctx.shell_name}: eval: {e}\n", 2)
    if isinstance(outcome, int):
        return _result("", "", outcome)
    return outcome


async def handle_let(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the let builtin.

    Usage: let EXPR [EXPR ...]

    Evaluates each arithmetic expression; the status is 0 when the last
    value is non-zero and 1 otherwise.
    """
    from ..expansion import evaluate_arithmetic

    if not args:
        return _result("", f"{ctx.shell_name}: let: expression expected\n", 1)
    value = 0
    for expression in args:
        try:
            value = evaluate_arithmetic(ctx, expression)
        except ExpansionError as e:
            return _result("", f"{ctx.shell_name}: let: {e}\n", 1)
    return _result("", "", 0 if value != 0 else 1)

"""Introspection builtins: type, command, builtin.

type    - describe how each name would be interpreted as a command
command - run a command, skipping shell functions
builtin - run a shell builtin, skipping functions and external programs

Names are reported in resolution order: reserved word, builtin,
function, then an external program the spawner can start.
"""

from typing import TYPE_CHECKING, Union

from ...parser.lexer import RESERVED_WORDS

if TYPE_CHECKING:
    from ..types import ControlSignal, InterpreterContext
    from ...types import ExecResult


def _result(stdout: str, stderr: str, exit_code: int) -> "ExecResult":
    from ...types import ExecResult
    return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


def _builtins() -> dict:
    from . import BUILTINS
    return BUILTINS


def _describe(ctx: "InterpreterContext", name: str) -> list[tuple[str, str]]:
    """Every way ``name`` resolves, as (kind, description) pairs."""
    matches = []
    if name in RESERVED_WORDS:
        matches.append(("keyword", f"{name} is a shell keyword"))
    if name in _builtins():
        matches.append(("builtin", f"{name} is a shell builtin"))
    if ctx.env.get_function(name) is not None:
        matches.append(("function", f"{name} is a function"))
    if ctx.spawner.can_spawn(name):
        matches.append(("file", f"{name} is an external command"))
    return matches


async def handle_type(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the type builtin.

    Usage: type [-at] name [name ...]

    -t prints a single word (keyword, builtin, function or file) and
    -a prints every match instead of the first.
    """
    kind_only = False
    show_all = False
    names = []
    for i, arg in enumerate(args):
        if arg == "--":
            names.extend(args[i + 1:])
            break
        if arg.startswith("-") and len(arg) > 1 and not names:
            for flag in arg[1:]:
                if flag == "t":
                    kind_only = True
                elif flag == "a":
                    show_all = True
                else:
                    return _result(
                        "",
                        f"{ctx.shell_name}: type: -{flag}: invalid option\n"
                        "type: usage: type [-at] name [name ...]\n",
                        2,
                    )
        else:
            names.append(arg)

    if not names:
        return _result("", f"{ctx.shell_name}: type: usage: type [-at] name [name ...]\n", 1)

    stdout = []
    stderr = []
    exit_code = 0
    for name in names:
        matches = _describe(ctx, name)
        if not matches:
            if not kind_only:
                stderr.append(f"{ctx.shell_name}: type: {name}: not found\n")
            exit_code = 1
            continue
        if not show_all:
            matches = matches[:1]
        for kind, description in matches:
            stdout.append(f"{kind if kind_only else description}\n")
    return _result("".join(stdout), "".join(stderr), exit_code)


async def handle_command(
    ctx: "InterpreterContext", args: list[str]
) -> Union["ExecResult", "ControlSignal"]:
    """Execute the command builtin.

    Usage: command [-v | -V] name [argument ...]

    Without options, run a builtin or external program named ``name``
    even when a function of that name exists. -v prints the name when it
    would resolve and -V describes it the way ``type`` does.
    """
    mode = None
    index = 0
    while index < len(args) and args[index].startswith("-") and len(args[index]) > 1:
        arg = args[index]
        index += 1
        if arg == "--":
            break
        for flag in arg[1:]:
            if flag in "vV":
                mode = flag
            elif flag != "p":
                return _result(
                    "",
                    f"{ctx.shell_name}: command: -{flag}: invalid option\n"
                    "command: usage: command [-pVv] command [arg ...]\n",
                    2,
                )
    if index >= len(args):
        return _result("", "", 0)

    name, arguments = args[index], args[index + 1:]

    if mode is not None:
        stdout = []
        stderr = []
        exit_code = 0
        for candidate in args[index:]:
            matches = _describe(ctx, candidate)
            if not matches:
                if mode == "V":
                    stderr.append(f"{ctx.shell_name}: command: {candidate}: not found\n")
                exit_code = 1
            elif mode == "v":
                stdout.append(f"{candidate}\n")
            else:
                stdout.append(f"{matches[0][1]}\n")
        return _result("".join(stdout), "".join(stderr), exit_code)

    handler = _builtins().get(name)
    if handler is not None:
        return await handler(ctx, arguments)
    if not ctx.spawner.can_spawn(name):
        return _result("", f"{ctx.shell_name}: {name}: command not found\n", 127)
    io = ctx.io
    exit_code = await ctx.spawner.spawn(
        name,
        arguments,
        stdin=io.stdin,
        stdout=io.stdout,
        stderr=io.stderr,
        env=ctx.env.exported_variables(),
    )
    return _result("", "", exit_code & 255)


async def handle_builtin(
    ctx: "InterpreterContext", args: list[str]
) -> Union["ExecResult", "ControlSignal"]:
    """Execute the builtin builtin: run a shell builtin, ignoring functions."""
    if not args:
        return _result("", "", 0)
    handler = _builtins().get(args[0])
    if handler is None:
        return _result("", f"{ctx.shell_name}: builtin: {args[0]}: not a shell builtin\n", 1)
    return await handler(ctx, args[1:])

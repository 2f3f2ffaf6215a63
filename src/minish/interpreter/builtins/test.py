"""Test / [ builtin implementation.

The test command evaluates conditional expressions and returns
exit code 0 (true), 1 (false) or 2 (malformed expression).

Usage: test expression
       [ expression ]

File operators (checked against the host filesystem):
  -e FILE     True if FILE exists
  -f FILE     True if FILE exists and is a regular file
  -d FILE     True if FILE exists and is a directory
  -s FILE     True if FILE exists and has size > 0
  -r FILE     True if FILE exists and is readable
  -w FILE     True if FILE exists and is writable
  -x FILE     True if FILE exists and is executable
  -h/-L FILE  True if FILE exists and is a symbolic link

String operators:
  -z STRING   True if STRING is empty
  -n STRING   True if STRING is not empty
  STRING      True if STRING is not empty
  S1 = S2     True if strings are equal (also ==)
  S1 != S2    True if strings are not equal
  S1 < S2     True if S1 sorts before S2
  S1 > S2     True if S1 sorts after S2

Numeric operators:
  N1 -eq N2, -ne, -lt, -le, -gt, -ge

Logical operators:
  ! EXPR, ( EXPR ), EXPR -a EXPR, EXPR -o EXPR

Other:
  -v NAME     True if the shell variable NAME is set
"""

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


_BINARY_OPS = frozenset({
    "=", "==", "!=", "<", ">",
    "-eq", "-ne", "-lt", "-le", "-gt", "-ge",
})

_FILE_TESTS = {
    "-e": os.path.exists,
    "-f": os.path.isfile,
    "-d": os.path.isdir,
    "-h": os.path.islink,
    "-L": os.path.islink,
    "-s": lambda path: os.path.exists(path) and os.path.getsize(path) > 0,
    "-r": lambda path: os.access(path, os.R_OK),
    "-w": lambda path: os.access(path, os.W_OK),
    "-x": lambda path: os.access(path, os.X_OK),
}


async def handle_test(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the test builtin."""
    return _run(ctx, "test", args)


async def handle_bracket(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the [ builtin (requires closing ])."""
    from ...types import ExecResult

    if not args or args[-1] != "]":
        return ExecResult(stdout="", stderr=f"{ctx.shell_name}: [: missing `]'\n", exit_code=2)
    return _run(ctx, "[", args[:-1])


def _run(ctx: "InterpreterContext", name: str, args: list[str]) -> "ExecResult":
    from ...types import ExecResult

    # Empty test is false
    if not args:
        return ExecResult(stdout="", stderr="", exit_code=1)
    try:
        result = _evaluate(ctx, args)
    except ValueError as e:
        return ExecResult(stdout="", stderr=f"{ctx.shell_name}: {name}: {e}\n", exit_code=2)
    return ExecResult(stdout="", stderr="", exit_code=0 if result else 1)


def _evaluate(ctx: "InterpreterContext", args: list[str]) -> bool:
    """Evaluate a test expression."""
    if not args:
        raise ValueError("argument expected")

    # Single argument: non-empty string is true (POSIX rule)
    if len(args) == 1:
        return args[0] != ""

    # Three arguments with a binary operator in the middle take priority
    # over ! and ( so that [ ! = x ] compares strings.
    if len(args) == 3 and args[1] in _BINARY_OPS:
        return _binary_test(args[0], args[1], args[2])

    # -o binds looser than -a; split on the first top-level occurrence
    for op in ("-o", "-a"):
        index = _find_top_level(args, op)
        if index is not None:
            left = _evaluate(ctx, args[:index])
            right = _evaluate(ctx, args[index + 1:])
            return (left or right) if op == "-o" else (left and right)

    if args[0] == "!":
        return not _evaluate(ctx, args[1:])

    if args[0] == "(":
        if args[-1] != ")":
            raise ValueError("missing `)'")
        return _evaluate(ctx, args[1:-1])

    if len(args) == 2:
        return _unary_test(ctx, args[0], args[1])

    if len(args) == 3:
        raise ValueError(f"{args[1]}: binary operator expected")

    raise ValueError("too many arguments")


def _find_top_level(args: list[str], op: str):
    """Index of ``op`` outside parentheses, skipping operand positions."""
    depth = 0
    for index, arg in enumerate(args):
        if arg == "(":
            depth += 1
        elif arg == ")":
            depth -= 1
        elif arg == op and depth == 0 and 0 < index < len(args) - 1:
            return index
    return None


def _unary_test(ctx: "InterpreterContext", op: str, arg: str) -> bool:
    """Evaluate a unary test."""
    if op == "-z":
        return arg == ""
    if op == "-n":
        return arg != ""
    if op == "-v":
        return arg in ctx.env
    file_test = _FILE_TESTS.get(op)
    if file_test is not None:
        try:
            return bool(file_test(arg))
        except OSError:
            return False
    raise ValueError(f"{op}: unary operator expected")


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"{value}: integer expression expected") from None


def _binary_test(left: str, op: str, right: str) -> bool:
    """Evaluate a binary test."""
    if op in ("=", "=="):
        return left == right
    if op == "!=":
        return left != right
    if op == "<":
        return left < right
    if op == ">":
        return left > right

    left_num = _to_int(left)
    right_num = _to_int(right)
    if op == "-eq":
        return left_num == right_num
    if op == "-ne":
        return left_num != right_num
    if op == "-lt":
        return left_num < right_num
    if op == "-le":
        return left_num <= right_num
    if op == "-gt":
        return left_num > right_num
    return left_num >= right_num

"""Argv command implementation.

Usage: argv [arg ...]

Prints its arguments as a bracketed list of single-quoted strings,
one entry per argument. Useful for checking how words were split.
"""

from ...types import CommandContext, ExecResult


def _quote(arg: str) -> str:
    escaped = (
        arg.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f"'{escaped}'"


class ArgvCommand:
    """The argv command for inspecting argument handling."""

    name = "argv"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the argv command."""
        output = "[" + ", ".join(_quote(arg) for arg in args) + "]\n"
        return ExecResult(stdout=output, stderr="", exit_code=0)

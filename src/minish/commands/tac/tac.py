"""Tac command implementation."""

from ...types import CommandContext, ExecResult


class TacCommand:
    """The tac command - reverse lines of standard input."""

    name = "tac"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the tac command."""
        if args:
            return ExecResult(
                stdout="",
                stderr="tac: only standard input is supported\n",
                exit_code=1,
            )

        content = await ctx.stdin.read()
        if not content:
            return ExecResult(stdout="", stderr="", exit_code=0)

        lines = content.splitlines()
        output = "\n".join(reversed(lines))
        if content.endswith("\n"):
            output += "\n"
        return ExecResult(stdout=output, stderr="", exit_code=0)

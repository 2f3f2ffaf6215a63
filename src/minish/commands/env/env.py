"""Env and printenv command implementations.

Both only see exported variables: the shell passes its export set as
the command's environment.
"""

from ...types import CommandContext, ExecResult


def _format_environment(env: dict[str, str]) -> str:
    lines = [f"{k}={v}" for k, v in sorted(env.items())]
    return "\n".join(lines) + "\n" if lines else ""


class EnvCommand:
    """The env command - print the exported environment."""

    name = "env"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the env command."""
        if args:
            return ExecResult(
                stdout="",
                stderr="env: running commands is not supported\n",
                exit_code=125,
            )
        return ExecResult(stdout=_format_environment(ctx.env), stderr="", exit_code=0)


class PrintenvCommand:
    """The printenv command - print environment variables."""

    name = "printenv"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the printenv command."""
        if not args:
            return ExecResult(stdout=_format_environment(ctx.env), stderr="", exit_code=0)

        output_lines = []
        exit_code = 0
        for name in args:
            if name in ctx.env:
                output_lines.append(ctx.env[name])
            else:
                exit_code = 1

        output = "\n".join(output_lines)
        if output:
            output += "\n"
        return ExecResult(stdout=output, stderr="", exit_code=exit_code)

"""Head command implementation.

Usage: head [-n COUNT | -COUNT]

Prints the first COUNT lines of standard input (default 10) and stops
reading, so an upstream pipeline stage sees a closed pipe.
"""

from ...types import CommandContext, ExecResult


def _parse_count(args: list[str]) -> int:
    count = 10
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "-n" and i + 1 < len(args):
            count = int(args[i + 1])
            i += 2
            continue
        if arg.startswith("-n"):
            count = int(arg[2:])
        elif arg.startswith("-") and arg[1:].isdigit():
            count = int(arg[1:])
        else:
            raise ValueError(f"invalid argument '{arg}'")
        i += 1
    if count < 0:
        raise ValueError(f"invalid number of lines: '{count}'")
    return count


class HeadCommand:
    """The head command - output the first lines of input."""

    name = "head"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the head command."""
        try:
            count = _parse_count(args)
        except ValueError as e:
            return ExecResult(stdout="", stderr=f"head: {e}\n", exit_code=1)

        for _ in range(count):
            line = await ctx.stdin.readline()
            if not line:
                break
            await ctx.stdout.write(line)
        return ExecResult(stdout="", stderr="", exit_code=0)

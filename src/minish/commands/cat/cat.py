"""Cat command implementation.

Usage: cat [-n] [FILE]...

Copies standard input (or each FILE, read from the host filesystem) to
standard output as it arrives. ``-`` names standard input.
"""

from pathlib import Path

from ...types import CommandContext, ExecResult


class CatCommand:
    """The cat command - concatenate input to output."""

    name = "cat"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        """Execute the cat command."""
        number_lines = False
        files: list[str] = []

        for arg in args:
            if arg == "-n":
                number_lines = True
            elif arg.startswith("-") and len(arg) > 1:
                return ExecResult(
                    stdout="",
                    stderr=f"cat: invalid option -- '{arg[1:]}'\n",
                    exit_code=1,
                )
            else:
                files.append(arg)

        stderr_parts = []
        exit_code = 0
        line_number = 0
        for source in files or ["-"]:
            if source == "-":
                if number_lines:
                    while True:
                        line = await ctx.stdin.readline()
                        if not line:
                            break
                        line_number += 1
                        await ctx.stdout.write(f"{line_number:6d}\t{line}")
                else:
                    while True:
                        chunk = await ctx.stdin.read_chunk()
                        if not chunk:
                            break
                        await ctx.stdout.write(chunk)
                continue

            try:
                content = Path(source).read_text(encoding="utf-8", errors="replace")
            except FileNotFoundError:
                stderr_parts.append(f"cat: {source}: No such file or directory\n")
                exit_code = 1
                continue
            except OSError as e:
                stderr_parts.append(f"cat: {source}: {e.strerror}\n")
                exit_code = 1
                continue
            if number_lines:
                for line in content.splitlines(keepends=True):
                    line_number += 1
                    await ctx.stdout.write(f"{line_number:6d}\t{line}")
            else:
                await ctx.stdout.write(content)

        return ExecResult(stdout="", stderr="".join(stderr_parts), exit_code=exit_code)

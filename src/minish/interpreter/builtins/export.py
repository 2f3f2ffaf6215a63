"""Export builtin implementation.

Usage: export [name[=value] ...]
       export -p
       export -n name

Mark variables for export to external programs. If no arguments are
given, list all exported variables.
"""

from typing import TYPE_CHECKING

from ...parser.lexer import is_valid_name

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_export(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the export builtin."""
    from ...types import ExecResult

    remove_export = False
    print_mode = False
    names_to_process = []

    for i, arg in enumerate(args):
        if arg == "--":
            names_to_process.extend(args[i + 1:])
            break
        if arg.startswith("-") and len(arg) > 1:
            for ch in arg[1:]:
                if ch == "n":
                    remove_export = True
                elif ch == "p":
                    print_mode = True
                else:
                    return ExecResult(
                        stdout="",
                        stderr=f"{ctx.shell_name}: export: -{ch}: invalid option\n",
                        exit_code=2,
                    )
        else:
            names_to_process.append(arg)

    if not names_to_process or print_mode:
        lines = []
        for name, value in ctx.env.exported_variables().items():
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            lines.append(f'export {name}="{escaped}"')
        if not names_to_process:
            stdout = "\n".join(lines) + "\n" if lines else ""
            return ExecResult(stdout=stdout, stderr="", exit_code=0)

    stderr_parts = []
    exit_code = 0
    for arg in names_to_process:
        is_append = False
        if "=" in arg:
            name, value = arg.split("=", 1)
        else:
            name, value = arg, None

        if name.endswith("+"):
            is_append = True
            name = name[:-1]

        if not is_valid_name(name):
            stderr_parts.append(f"{ctx.shell_name}: export: `{arg}': not a valid identifier\n")
            exit_code = 1
            continue

        if value is not None:
            if is_append:
                value = (ctx.env.get(name) or "") + value
            ctx.env.set(name, value)

        if remove_export:
            ctx.env.unexport(name)
        else:
            ctx.env.export(name)

    return ExecResult(stdout="", stderr="".join(stderr_parts), exit_code=exit_code)

"""Error types for minish.

Front-end errors (LexError, ParseError) are fatal and raised before any
execution starts. Expansion errors and unknown commands are local: the
interpreter turns them into a non-zero exit status for the command that
failed and keeps running the script.
"""


class ShellError(Exception):
    """Base class for all minish errors."""


class ShellSyntaxError(ShellError):
    """Error in the script text, reported with a source position."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        if line:
            super().__init__(f"line {line}, column {column}: {message}")
        else:
            super().__init__(message)


class LexError(ShellSyntaxError):
    """Unterminated quote or input the lexer cannot tokenize."""


class ParseError(ShellSyntaxError):
    """Grammar violation: missing keyword, empty pipeline, bad delimiters."""


class ExpansionError(ShellError):
    """Word expansion failed (bad arithmetic, ${VAR:?} on an unset name)."""


class ShellArithmeticError(ExpansionError, ArithmeticError):
    """Arithmetic evaluation failed, e.g. division by zero."""


class CommandNotFound(ShellError):
    """No builtin, function or external program matches a command name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name}: command not found")


class ExecutionLimitError(ShellError):
    """A configured execution limit was exceeded."""

    def __init__(self, message: str, limit_type: str):
        self.limit_type = limit_type
        super().__init__(message)


class RecursionLimitExceeded(ExecutionLimitError):
    """Function calls nested deeper than ``ExecutionLimits.max_call_depth``."""

    def __init__(self, max_depth: int, message: str = ""):
        self.max_depth = max_depth
        super().__init__(
            message or f"maximum function call depth exceeded ({max_depth})",
            "call_depth",
        )


class ExitError(ShellError):
    """Raised by the exit builtin to terminate the whole script."""

    def __init__(self, exit_code: int):
        self.exit_code = exit_code & 255
        super().__init__(f"exit {self.exit_code}")

"""Shell builtins.

Builtins run inside the interpreter with direct access to the
environment. Each handler takes ``(ctx, args)`` and returns an
ExecResult, or a control signal for break/continue/return.
"""

from .control import handle_break, handle_continue, handle_exit, handle_return
from .export import handle_export
from .introspection import handle_builtin, handle_command, handle_type
from .misc import (
    handle_colon,
    handle_echo,
    handle_eval,
    handle_false,
    handle_let,
    handle_true,
)
from .printf import handle_printf
from .read import handle_read
from .set import handle_set, handle_shift
from .test import handle_bracket, handle_test
from .unset import handle_unset

BUILTINS = {
    ":": handle_colon,
    "true": handle_true,
    "false": handle_false,
    "echo": handle_echo,
    "exit": handle_exit,
    "return": handle_return,
    "break": handle_break,
    "continue": handle_continue,
    "test": handle_test,
    "[": handle_bracket,
    "shift": handle_shift,
    "set": handle_set,
    "unset": handle_unset,
    "export": handle_export,
    "eval": handle_eval,
    "read": handle_read,
    "let": handle_let,
    "printf": handle_printf,
    "type": handle_type,
    "command": handle_command,
    "builtin": handle_builtin,
}

__all__ = ["BUILTINS"]

"""Printf builtin implementation.

Usage: printf [-v var] format [arguments]

Write the arguments formatted under control of the format. The format is
reused until every argument has been consumed; missing arguments read as
an empty string or zero. With -v the output is assigned to a variable
instead of being printed.

Conversions: %s %b %q %c %d %i %o %u %x %X %e %E %f %F %g %G and %%,
with flags, width and precision (``*`` takes them from the arguments).
"""

import re
import string
from typing import TYPE_CHECKING, Optional

from ...parser.lexer import is_valid_name
from .misc import _SIMPLE_ESCAPES

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult

_CONVERSION_RE = re.compile(r"([-+# 0']*)(\*|\d+)?(?:\.(\*|\d*))?([diouxXeEfFgGcsbq])")
_INTEGER_RE = re.compile(r"[+-]?(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")
_LEADING_DIGITS_RE = re.compile(r"[+-]?[0-9]+")

_ESCAPES = {**_SIMPLE_ESCAPES, '"': '"', "'": "'"}
_HEX_ESCAPE_WIDTHS = {"x": 2, "u": 4, "U": 8}

# Characters %q leaves unquoted
_SAFE_CHARS = frozenset(string.ascii_letters + string.digits + "_@%+=:,./-")
_QUOTED_ESCAPES = {"\n": "\\n", "\t": "\\t", "\r": "\\r", "\a": "\\a", "\b": "\\b", "\x1b": "\\E"}

_USAGE = "printf: usage: printf [-v var] format [arguments]"


def _decode_escape(text: str, i: int, *, argument: bool = False) -> tuple[str, int, bool]:
    """Decode the backslash escape at ``text[i]``.

    Returns (decoded, length, stop); ``stop`` is set by ``\\c``. In %b
    arguments (``argument``) a leading zero of an octal escape does not
    count towards its three digits.
    """
    if i + 1 >= len(text):
        return "\\", 1, False
    char = text[i + 1]
    if char in _ESCAPES:
        return _ESCAPES[char], 2, False
    if char == "c":
        return "", 2, True
    if char in "01234567":
        start = i + 2 if argument and char == "0" else i + 1
        end = start
        while end < len(text) and end < start + 3 and text[end] in "01234567":
            end += 1
        digits = text[start:end]
        return (chr(int(digits, 8) & 0xFF) if digits else "\0"), end - i, False
    if char in _HEX_ESCAPE_WIDTHS:
        end = i + 2
        while (
            end < len(text)
            and end < i + 2 + _HEX_ESCAPE_WIDTHS[char]
            and text[end] in string.hexdigits
        ):
            end += 1
        if end > i + 2:
            try:
                return chr(int(text[i + 2:end], 16)), end - i, False
            except ValueError:
                pass
    return "\\" + char, 2, False


def _expand_escapes(text: str) -> tuple[str, bool]:
    """Expand the escapes of a %b argument. Returns (text, stop)."""
    out = []
    i = 0
    while i < len(text):
        if text[i] == "\\":
            decoded, length, stop = _decode_escape(text, i, argument=True)
            out.append(decoded)
            if stop:
                return "".join(out), True
            i += length
        else:
            out.append(text[i])
            i += 1
    return "".join(out), False


def _shell_quote(value: str) -> str:
    """Quote ``value`` so the shell reads it back as one word."""
    if not value:
        return "''"
    if all(c in _SAFE_CHARS for c in value):
        return value
    if any(ord(c) < 32 or ord(c) == 127 for c in value):
        out = ["$'"]
        for c in value:
            if c in "'\\":
                out.append("\\" + c)
            elif c in _QUOTED_ESCAPES:
                out.append(_QUOTED_ESCAPES[c])
            elif ord(c) < 32 or ord(c) == 127:
                out.append(f"\\x{ord(c):02x}")
            else:
                out.append(c)
        out.append("'")
        return "".join(out)
    return "".join("\\" + c if c not in _SAFE_CHARS and ord(c) < 128 else c for c in value)


def _pad(text: str, flags: str, width: Optional[int]) -> str:
    if width is None:
        return text
    if "-" in flags:
        return text.ljust(width)
    return text.rjust(width)


class _Formatter:
    """Formats one printf invocation, consuming arguments as it goes."""

    def __init__(self, shell_name: str, arguments: list[str]):
        self._shell_name = shell_name
        self._arguments = arguments
        self._index = 0
        self.errors: list[str] = []
        self.stopped = False

    def _error(self, message: str) -> None:
        self.errors.append(f"{self._shell_name}: printf: {message}\n")

    def _next_argument(self) -> str:
        if self._index >= len(self._arguments):
            return ""
        value = self._arguments[self._index]
        self._index += 1
        return value

    def format(self, fmt: str) -> str:
        out = []
        while True:
            start = self._index
            out.append(self._format_once(fmt))
            if self.stopped or self._index == start or self._index >= len(self._arguments):
                return "".join(out)

    def _format_once(self, fmt: str) -> str:
        out = []
        i = 0
        while i < len(fmt):
            char = fmt[i]
            if char == "\\":
                decoded, length, stop = _decode_escape(fmt, i)
                out.append(decoded)
                if stop:
                    self.stopped = True
                    break
                i += length
            elif char == "%" and fmt.startswith("%%", i):
                out.append("%")
                i += 2
            elif char == "%":
                match = _CONVERSION_RE.match(fmt, i + 1)
                if match is None:
                    bad = fmt[i + 1:i + 2]
                    if bad:
                        self._error(f"`{bad}': invalid format character")
                    else:
                        self._error("missing format character")
                    self.stopped = True
                    break
                out.append(self._convert(*match.groups()))
                if self.stopped:
                    break
                i = match.end()
            else:
                out.append(char)
                i += 1
        return "".join(out)

    def _convert(
        self, flags: str, width_text: Optional[str], precision_text: Optional[str], conversion: str
    ) -> str:
        flags = flags.replace("'", "")
        width = None
        if width_text == "*":
            width = self._integer(self._next_argument())
        elif width_text:
            width = int(width_text)
        if width is not None and width < 0:
            flags += "-"
            width = -width

        precision = None
        if precision_text == "*":
            precision = max(self._integer(self._next_argument()), 0)
        elif precision_text is not None:
            precision = int(precision_text or "0")

        argument = self._next_argument()

        if conversion == "s":
            if precision is not None:
                argument = argument[:precision]
            return _pad(argument, flags, width)
        if conversion == "b":
            text, stop = _expand_escapes(argument)
            if stop:
                self.stopped = True
            return _pad(text, flags, width)
        if conversion == "q":
            return _pad(_shell_quote(argument), flags, width)
        if conversion == "c":
            return _pad(argument[:1], flags, width)

        pattern = "%" + flags
        if width is not None:
            pattern += str(width)
        if precision is not None:
            pattern += f".{precision}"

        if conversion in "eEfFgG":
            return (pattern + conversion) % self._float(argument)

        value = self._integer(argument)
        if conversion in "ouxX":
            value &= 0xFFFF_FFFF_FFFF_FFFF
        text = (pattern + ("d" if conversion in "iu" else conversion)) % value
        if "#" in flags and conversion == "o":
            # C spells the alternate octal form with a single leading zero
            text = text.replace("0o", "0", 1)
        elif "#" in flags and conversion in "xX" and value == 0:
            text = text.replace("0" + conversion, "", 1)
        return text

    def _integer(self, argument: str) -> int:
        """Numeric value of an argument: decimal, 0x hex, 0 octal or 'c for a character code."""
        text = argument.strip()
        if not text:
            return 0
        if text[0] in "'\"":
            return ord(text[1]) if len(text) > 1 else 0
        if _INTEGER_RE.fullmatch(text):
            sign = -1 if text[0] == "-" else 1
            digits = text.lstrip("+-")
            if digits[:2] in ("0x", "0X"):
                return sign * int(digits[2:], 16)
            if len(digits) > 1 and digits[0] == "0":
                return sign * int(digits[1:], 8)
            return sign * int(digits)
        self._error(f"{argument}: invalid number")
        prefix = _LEADING_DIGITS_RE.match(text)
        return int(prefix.group(0)) if prefix else 0

    def _float(self, argument: str) -> float:
        text = argument.strip()
        if not text:
            return 0.0
        if text[0] in "'\"":
            return float(ord(text[1])) if len(text) > 1 else 0.0
        try:
            return float(text)
        except ValueError:
            self._error(f"{argument}: invalid number")
            return 0.0


async def handle_printf(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the printf builtin."""
    from ...types import ExecResult

    target = None
    index = 0
    if args[:1] == ["-v"]:
        if len(args) < 2:
            return ExecResult(stdout="", stderr=f"{ctx.shell_name}: {_USAGE}\n", exit_code=2)
        target = args[1]
        if not is_valid_name(target):
            return ExecResult(
                stdout="",
                stderr=f"{ctx.shell_name}: printf: `{target}': not a valid identifier\n",
                exit_code=2,
            )
        index = 2
    if args[index:index + 1] == ["--"]:
        index += 1
    if index >= len(args):
        return ExecResult(stdout="", stderr=f"{ctx.shell_name}: {_USAGE}\n", exit_code=2)

    formatter = _Formatter(ctx.shell_name, args[index + 1:])
    output = formatter.format(args[index])
    exit_code = 1 if formatter.errors else 0

    if target is not None:
        ctx.env.set(target, output)
        output = ""
    return ExecResult(stdout=output, stderr="".join(formatter.errors), exit_code=exit_code)

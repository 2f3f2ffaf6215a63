"""Lexer for minish scripts.

Turns script text into a flat list of tokens. Word tokens carry their
quoting structure as a tuple of word parts; the raw source text of each
token is kept in ``value`` for reserved-word checks and error messages.

Reserved words are only recognized in command-start position, so
``echo if`` is an ordinary command with the argument ``if``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from ..ast.types import (
    ArithmeticPart,
    CommandSubstitutionPart,
    DoubleQuotedPart,
    EscapedPart,
    LiteralPart,
    ParameterPart,
    SingleQuotedPart,
    WordNode,
    WordPart,
)
from ..errors import LexError, ParseError

MAX_INPUT_SIZE = 1_000_000


class TokenType(Enum):
    WORD = auto()
    OPERATOR = auto()
    RESERVED = auto()
    ARITH_COMMAND = auto()
    NEWLINE = auto()
    EOF = auto()


RESERVED_WORDS = frozenset({
    "if", "then", "elif", "else", "fi",
    "while", "until", "for", "do", "done",
    "function", "{", "}", "!",
})

# Two-character operators first so "&&" wins over "&".
OPERATORS = ("&&", "||", ";", "|", "&", "(", ")", "<", ">")

_METACHARACTERS = frozenset(" \t\n;|&()<>")
_SPECIAL_PARAMETERS = frozenset("?#@*$")

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ASSIGNMENT_WORD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\+?=")
_LENGTH_RE = re.compile(r"^#([A-Za-z_][A-Za-z0-9_]*|[0-9]+|[@*#?])$")
_PARAMETER_RE = re.compile(
    r"^([A-Za-z_][A-Za-z0-9_]*|[0-9]+|[@*#?$])(:?[-=+?])?(.*)$", re.DOTALL
)


def is_valid_name(name: str) -> bool:
    """Check whether ``name`` is a valid variable name."""
    return bool(_NAME_RE.match(name))


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int = 1
    column: int = 1
    parts: tuple[WordPart, ...] = ()
    quoted: bool = False


class Lexer:
    """Single-pass scanner over one script (or one embedded fragment)."""

    def __init__(self, text: str, origin: tuple[int, int] = (1, 1)):
        if len(text) > MAX_INPUT_SIZE:
            raise LexError(f"input too large ({len(text)} > {MAX_INPUT_SIZE} characters)")
        self._text = text
        self._pos = 0
        self._origin = origin
        self._tokens: list[Token] = []
        self._command_start = True

    # -------------------------------------------------------------------------
    # Positions
    # -------------------------------------------------------------------------

    def _position(self, pos: int) -> tuple[int, int]:
        line = self._origin[0] + self._text.count("\n", 0, pos)
        last_newline = self._text.rfind("\n", 0, pos)
        if last_newline >= 0:
            return line, pos - last_newline
        return line, self._origin[1] + pos

    def _emit(self, type_: TokenType, value: str, start: int, **kwargs) -> None:
        line, column = self._position(start)
        self._tokens.append(Token(type_, value, line, column, **kwargs))

    def _lex_error(self, message: str, pos: int) -> LexError:
        return LexError(message, *self._position(pos))

    def _parse_error(self, message: str, pos: int) -> ParseError:
        return ParseError(message, *self._position(pos))

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    def tokenize(self) -> list[Token]:
        text = self._text
        while True:
            self._skip_blanks()
            if self._pos >= len(text):
                self._emit(TokenType.EOF, "", self._pos)
                return self._tokens

            ch = text[self._pos]
            if ch == "\n":
                self._emit(TokenType.NEWLINE, "\n", self._pos)
                self._pos += 1
                self._command_start = True
                continue
            if ch == "#":
                end = text.find("\n", self._pos)
                self._pos = len(text) if end < 0 else end
                continue
            if self._command_start and text.startswith("((", self._pos):
                self._read_arith_command()
                continue

            operator = self._match_operator()
            if operator:
                self._emit(TokenType.OPERATOR, operator, self._pos)
                self._pos += len(operator)
                self._command_start = True
                continue

            self._read_word_token()

    def _skip_blanks(self) -> None:
        text = self._text
        while self._pos < len(text):
            if text[self._pos] in " \t":
                self._pos += 1
            elif text.startswith("\\\n", self._pos):
                self._pos += 2
            else:
                break

    def _match_operator(self) -> str | None:
        for operator in OPERATORS:
            if self._text.startswith(operator, self._pos):
                return operator
        return None

    def _read_word_token(self) -> None:
        start = self._pos
        parts = self._read_parts(_METACHARACTERS)
        raw = self._text[start:self._pos]
        quoted = WordNode(parts).quoted
        if self._command_start and not quoted and raw in RESERVED_WORDS:
            self._emit(TokenType.RESERVED, raw, start, parts=parts)
            return
        previous = self._tokens[-1] if self._tokens else None
        after_function = (
            previous is not None
            and previous.type is TokenType.RESERVED
            and previous.value == "function"
        )
        self._emit(TokenType.WORD, raw, start, parts=parts, quoted=quoted)
        # Assignments keep the command position open: `x=1 if` is still
        # looking for a command name. So does a name after `function`,
        # whose body brace follows.
        self._command_start = after_function or (
            self._command_start and bool(_ASSIGNMENT_WORD_RE.match(raw))
        )

    def _read_arith_command(self) -> None:
        start = self._pos
        end = self._scan_arithmetic(start + 2, "arithmetic command")
        expression = self._text[start + 2:end]
        parts = self._lex_fragment(expression, start + 2)
        self._pos = end + 2
        self._emit(TokenType.ARITH_COMMAND, expression, start, parts=parts)
        self._command_start = False

    # -------------------------------------------------------------------------
    # Word parts
    # -------------------------------------------------------------------------

    def _read_parts(self, stop: frozenset[str]) -> tuple[WordPart, ...]:
        """Read word parts until an unquoted character in ``stop`` or EOF."""
        text = self._text
        parts: list[WordPart] = []
        literal: list[str] = []

        def flush() -> None:
            if literal:
                parts.append(LiteralPart("".join(literal)))
                literal.clear()

        while self._pos < len(text):
            ch = text[self._pos]
            if ch in stop:
                break
            if ch == "\\":
                if self._pos + 1 >= len(text):
                    literal.append("\\")
                    self._pos += 1
                    continue
                escaped = text[self._pos + 1]
                self._pos += 2
                if escaped == "\n":
                    continue
                flush()
                parts.append(EscapedPart(escaped))
                continue
            if ch == "'":
                flush()
                parts.append(self._read_single_quoted())
                continue
            if ch == '"':
                flush()
                parts.append(self._read_double_quoted())
                continue
            if ch == "$":
                part = self._read_dollar()
                if isinstance(part, LiteralPart):
                    literal.append(part.value)
                else:
                    flush()
                    parts.append(part)
                continue
            if ch == "`":
                flush()
                parts.append(self._read_backquote())
                continue
            literal.append(ch)
            self._pos += 1

        flush()
        return tuple(parts)

    def _read_single_quoted(self) -> SingleQuotedPart:
        start = self._pos
        end = self._text.find("'", start + 1)
        if end < 0:
            raise self._lex_error("unterminated single quote", start)
        self._pos = end + 1
        return SingleQuotedPart(self._text[start + 1:end])

    def _read_double_quoted(self) -> DoubleQuotedPart:
        text = self._text
        start = self._pos
        self._pos += 1
        parts: list[WordPart] = []
        literal: list[str] = []

        def flush() -> None:
            if literal:
                parts.append(LiteralPart("".join(literal)))
                literal.clear()

        while True:
            if self._pos >= len(text):
                raise self._lex_error("unterminated double quote", start)
            ch = text[self._pos]
            if ch == '"':
                self._pos += 1
                break
            if ch == "\\" and self._pos + 1 < len(text):
                escaped = text[self._pos + 1]
                if escaped == "\n":
                    self._pos += 2
                    continue
                if escaped in '"\\$`':
                    literal.append(escaped)
                    self._pos += 2
                    continue
                literal.append("\\")
                self._pos += 1
                continue
            if ch == "$":
                part = self._read_dollar()
                if isinstance(part, LiteralPart):
                    literal.append(part.value)
                else:
                    flush()
                    parts.append(part)
                continue
            if ch == "`":
                flush()
                parts.append(self._read_backquote())
                continue
            literal.append(ch)
            self._pos += 1

        flush()
        return DoubleQuotedPart(tuple(parts))

    def _read_dollar(self) -> WordPart:
        text = self._text
        start = self._pos
        following = text[start + 1] if start + 1 < len(text) else ""

        if text.startswith("$((", start):
            end = self._scan_arithmetic(start + 3, "arithmetic expansion")
            expression = self._lex_fragment(text[start + 3:end], start + 3)
            self._pos = end + 2
            return ArithmeticPart(WordNode(expression, self._position(start)[0]))

        if following == "(":
            end = self._scan_balanced(start + 2, "(", ")", "command substitution")
            self._pos = end + 1
            line, column = self._position(start + 2)
            return CommandSubstitutionPart(text[start + 2:end], line=line, column=column)

        if following == "{":
            end = self._scan_balanced(start + 2, "{", "}", "parameter expansion")
            self._pos = end + 1
            return self._parse_braced_parameter(text[start + 2:end], start)

        if following and (following.isalpha() or following == "_"):
            end = start + 1
            while end < len(text) and (text[end].isalnum() or text[end] == "_"):
                end += 1
            self._pos = end
            return ParameterPart(text[start + 1:end])

        if following and (following.isdigit() or following in _SPECIAL_PARAMETERS):
            self._pos = start + 2
            return ParameterPart(following)

        self._pos = start + 1
        return LiteralPart("$")

    def _parse_braced_parameter(self, content: str, start: int) -> ParameterPart:
        match = _LENGTH_RE.match(content)
        if match:
            return ParameterPart(match.group(1), length=True)
        match = _PARAMETER_RE.match(content)
        if match is None or (match.group(2) is None and match.group(3)):
            raise self._parse_error(f"bad substitution: ${{{content}}}", start)
        name, operator, rest = match.groups()
        if operator is None:
            return ParameterPart(name)
        argument = WordNode(self._lex_fragment(rest, start + 2 + len(name) + len(operator)))
        return ParameterPart(name, operator, argument)

    def _read_backquote(self) -> CommandSubstitutionPart:
        text = self._text
        start = self._pos
        pos = start + 1
        source: list[str] = []
        while True:
            if pos >= len(text):
                raise self._parse_error("unterminated backquote substitution", start)
            ch = text[pos]
            if ch == "`":
                break
            if ch == "\\" and pos + 1 < len(text) and text[pos + 1] in "`\\$":
                source.append(text[pos + 1])
                pos += 2
                continue
            source.append(ch)
            pos += 1
        self._pos = pos + 1
        line, column = self._position(start + 1)
        return CommandSubstitutionPart("".join(source), line=line, column=column)

    def _lex_fragment(self, fragment: str, offset: int) -> tuple[WordPart, ...]:
        """Lex embedded text where whitespace and operators are literal."""
        return Lexer(fragment, self._position(offset))._read_parts(frozenset())

    # -------------------------------------------------------------------------
    # Delimiter scanning
    # -------------------------------------------------------------------------

    def _skip_quoted(self, pos: int) -> int:
        """Return the index just past the quoted string starting at ``pos``."""
        text = self._text
        quote = text[pos]
        if quote == "'":
            end = text.find("'", pos + 1)
            if end < 0:
                raise self._lex_error("unterminated single quote", pos)
            return end + 1
        i = pos + 1
        while i < len(text):
            if text[i] == "\\":
                i += 2
                continue
            if text[i] == quote:
                return i + 1
            i += 1
        raise self._lex_error("unterminated double quote", pos)

    def _scan_balanced(self, pos: int, opener: str, closer: str, what: str) -> int:
        """Find the ``closer`` matching an already consumed ``opener``."""
        text = self._text
        depth = 0
        i = pos
        while i < len(text):
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch in "'\"":
                i = self._skip_quoted(i)
                continue
            if ch == opener:
                depth += 1
            elif ch == closer:
                if depth == 0:
                    return i
                depth -= 1
            i += 1
        raise self._parse_error(f"unterminated {what}", pos - 2)

    def _scan_arithmetic(self, pos: int, what: str) -> int:
        """Find the ``))`` closing an arithmetic expression that starts at ``pos``."""
        text = self._text
        depth = 0
        i = pos
        while i < len(text):
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch in "'\"":
                i = self._skip_quoted(i)
                continue
            if ch == "(":
                depth += 1
            elif ch == ")":
                if depth > 0:
                    depth -= 1
                elif text.startswith("))", i):
                    return i
                else:
                    raise self._parse_error(f"malformed {what}: expected '))'", i)
            i += 1
        raise self._parse_error(f"unterminated {what}", pos - 2)


def tokenize(text: str, origin: tuple[int, int] = (1, 1)) -> list[Token]:
    """Tokenize a script."""
    return Lexer(text, origin).tokenize()

"""Shell arithmetic: the language of $(( ... )), (( ... )) and let.

Values are signed 64-bit integers that wrap on overflow. Division and
remainder truncate toward zero like C. Variables are read through a
lookup callback and written through an assign callback, so evaluation
mutates the caller's environment directly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..errors import ExpansionError, ShellArithmeticError

_MAX_RESOLVE_DEPTH = 32

_INT_MIN = -(1 << 63)
_UINT_RANGE = 1 << 64

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NUMBER_RE = re.compile(r"[0-9]+#[0-9A-Za-z@_]+|0[xX][0-9A-Fa-f]+|[0-9][0-9A-Za-z_]*")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Longest first so "<<=" wins over "<<" and "<".
_OPERATORS = (
    "<<=", ">>=",
    "**", "++", "--", "<<", ">>", "<=", ">=", "==", "!=", "&&", "||",
    "+=", "-=", "*=", "/=", "%=", "&=", "^=", "|=",
    "+", "-", "*", "/", "%", "(", ")", "<", ">", "!", "~", "&", "|", "^",
    "?", ":", ",", "=",
)

_ASSIGNMENT_OPERATORS = frozenset({
    "=", "+=", "-=", "*=", "/=", "%=", "<<=", ">>=", "&=", "^=", "|=",
})

# Binary operators by precedence level, loosest first.
_BINARY_LEVELS = (
    ("||",),
    ("&&",),
    ("|",),
    ("^",),
    ("&",),
    ("==", "!="),
    ("<", ">", "<=", ">="),
    ("<<", ">>"),
    ("+", "-"),
    ("*", "/", "%"),
)


def wrap_int64(value: int) -> int:
    return (value - _INT_MIN) % _UINT_RANGE + _INT_MIN


# =============================================================================
# Expression tree
# =============================================================================


@dataclass(frozen=True)
class ArithNumber:
    value: int


@dataclass(frozen=True)
class ArithVariable:
    name: str


@dataclass(frozen=True)
class ArithUnary:
    operator: str
    operand: ArithExpr


@dataclass(frozen=True)
class ArithBinary:
    operator: str
    left: ArithExpr
    right: ArithExpr


@dataclass(frozen=True)
class ArithTernary:
    condition: ArithExpr
    if_true: ArithExpr
    if_false: ArithExpr


@dataclass(frozen=True)
class ArithAssignment:
    operator: str
    name: str
    value: ArithExpr


@dataclass(frozen=True)
class ArithUpdate:
    """++x, --x, x++ or x--."""

    operator: str
    name: str
    prefix: bool


@dataclass(frozen=True)
class ArithComma:
    left: ArithExpr
    right: ArithExpr


ArithExpr = Union[
    ArithNumber, ArithVariable, ArithUnary, ArithBinary,
    ArithTernary, ArithAssignment, ArithUpdate, ArithComma,
]


# =============================================================================
# Numbers
# =============================================================================


def _parse_base_n_value(digits: str, base: int, text: str) -> int:
    """Digits 0-9, then a-z, A-Z, @ and _ (letters fold case up to base 36)."""
    result = 0
    for char in digits:
        if char.isdigit():
            digit = int(char)
        elif "a" <= char <= "z":
            digit = ord(char) - ord("a") + 10
        elif "A" <= char <= "Z":
            digit = ord(char.lower()) - ord("a") + 10 if base <= 36 else ord(char) - ord("A") + 36
        elif char == "@":
            digit = 62
        elif char == "_":
            digit = 63
        else:
            digit = base
        if digit >= base:
            raise ExpansionError(f"{text}: value too great for base (error token is \"{text}\")")
        result = result * base + digit
    return result


def parse_number(text: str) -> int:
    """Parse an integer constant: decimal, 0x hex, leading-zero octal or BASE#digits."""
    if "#" in text:
        base_text, digits = text.split("#", 1)
        base = int(base_text)
        if not 2 <= base <= 64:
            raise ExpansionError(f"{text}: invalid arithmetic base (error token is \"{text}\")")
        return wrap_int64(_parse_base_n_value(digits, base, text))
    try:
        if text[:2] in ("0x", "0X"):
            return wrap_int64(int(text[2:], 16))
        if len(text) > 1 and text.startswith("0"):
            return wrap_int64(int(text[1:], 8))
        return wrap_int64(int(text, 10))
    except ValueError:
        raise ExpansionError(
            f"{text}: value too great for base (error token is \"{text}\")"
        ) from None


# =============================================================================
# Parser
# =============================================================================


class _ArithParser:
    def __init__(self, text: str):
        self._text = text
        self._tokens = self._tokenize(text)
        self._pos = 0

    def _error(self, token: Optional[str] = None) -> ExpansionError:
        if token is None:
            rest = " ".join(self._tokens[self._pos:]) or self._text
            return ExpansionError(
                f"{self._text.strip()}: syntax error: operand expected (error token is \"{rest}\")"
            )
        return ExpansionError(
            f"{self._text.strip()}: syntax error: invalid arithmetic operator (error token is \"{token}\")"
        )

    def _tokenize(self, text: str) -> list[str]:
        tokens = []
        pos = 0
        while pos < len(text):
            ch = text[pos]
            if ch.isspace():
                pos += 1
                continue
            if ch.isdigit():
                match = _NUMBER_RE.match(text, pos)
                tokens.append(match.group())
                pos = match.end()
                continue
            if ch.isalpha() or ch == "_":
                match = _IDENT_RE.match(text, pos)
                tokens.append(match.group())
                pos = match.end()
                continue
            for operator in _OPERATORS:
                if text.startswith(operator, pos):
                    tokens.append(operator)
                    pos += len(operator)
                    break
            else:
                raise self._error(text[pos:])
        return tokens

    def _peek(self) -> Optional[str]:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise self._error()
        self._pos += 1
        return token

    def parse(self) -> Optional[ArithExpr]:
        if not self._tokens:
            return None
        expr = self._parse_comma()
        if self._peek() is not None:
            raise self._error(" ".join(self._tokens[self._pos:]))
        return expr

    def _parse_comma(self) -> ArithExpr:
        expr = self._parse_assignment()
        while self._peek() == ",":
            self._take()
            expr = ArithComma(expr, self._parse_assignment())
        return expr

    def _parse_assignment(self) -> ArithExpr:
        start = self._pos
        token = self._peek()
        if token is not None and _NAME_RE.match(token):
            self._pos += 1
            operator = self._peek()
            if operator in _ASSIGNMENT_OPERATORS:
                self._pos += 1
                return ArithAssignment(operator, token, self._parse_assignment())
            self._pos = start
        expr = self._parse_ternary()
        if self._peek() in _ASSIGNMENT_OPERATORS:
            raise ExpansionError(
                f"{self._text.strip()}: attempted assignment to non-variable"
            )
        return expr

    def _parse_ternary(self) -> ArithExpr:
        condition = self._parse_binary(0)
        if self._peek() != "?":
            return condition
        self._take()
        if_true = self._parse_comma()
        if self._take() != ":":
            raise self._error()
        if_false = self._parse_assignment()
        return ArithTernary(condition, if_true, if_false)

    def _parse_binary(self, level: int) -> ArithExpr:
        if level == len(_BINARY_LEVELS):
            return self._parse_power()
        operators = _BINARY_LEVELS[level]
        left = self._parse_binary(level + 1)
        while self._peek() in operators:
            operator = self._take()
            left = ArithBinary(operator, left, self._parse_binary(level + 1))
        return left

    def _parse_power(self) -> ArithExpr:
        base = self._parse_unary()
        if self._peek() == "**":
            self._take()
            return ArithBinary("**", base, self._parse_power())
        return base

    def _parse_unary(self) -> ArithExpr:
        token = self._peek()
        if token in ("++", "--"):
            self._take()
            name = self._take()
            if not _NAME_RE.match(name):
                raise ExpansionError(f"{self._text.strip()}: attempted assignment to non-variable")
            return ArithUpdate(token, name, prefix=True)
        if token in ("+", "-", "!", "~"):
            self._take()
            return ArithUnary(token, self._parse_unary())
        return self._parse_postfix()

    def _parse_postfix(self) -> ArithExpr:
        expr = self._parse_primary()
        if self._peek() in ("++", "--"):
            if not isinstance(expr, ArithVariable):
                raise ExpansionError(f"{self._text.strip()}: attempted assignment to non-variable")
            return ArithUpdate(self._take(), expr.name, prefix=False)
        return expr

    def _parse_primary(self) -> ArithExpr:
        token = self._take()
        if token == "(":
            expr = self._parse_comma()
            if self._peek() != ")":
                raise self._error()
            self._take()
            return expr
        if token[0].isdigit():
            return ArithNumber(parse_number(token))
        if _NAME_RE.match(token):
            return ArithVariable(token)
        raise self._error(token)


def parse_arithmetic(text: str) -> Optional[ArithExpr]:
    """Parse expression text; None for an empty expression."""
    return _ArithParser(text).parse()


# =============================================================================
# Evaluator
# =============================================================================


def _c_divide(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def _binary(operator: str, left: int, right: int, text: str) -> int:
    if operator in ("/", "%"):
        if right == 0:
            raise ShellArithmeticError(f"{text.strip()}: division by 0 (error token is \"{right}\")")
        quotient = _c_divide(left, right)
        return quotient if operator == "/" else left - right * quotient
    if operator == "+":
        return left + right
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if operator == "**":
        if right < 0:
            raise ShellArithmeticError(f"{text.strip()}: exponent less than 0")
        return pow(left, right, _UINT_RANGE)
    if operator == "<<":
        return left << (right & 63)
    if operator == ">>":
        return left >> (right & 63)
    if operator == "&":
        return left & right
    if operator == "|":
        return left | right
    if operator == "^":
        return left ^ right
    if operator == "==":
        return int(left == right)
    if operator == "!=":
        return int(left != right)
    if operator == "<":
        return int(left < right)
    if operator == ">":
        return int(left > right)
    if operator == "<=":
        return int(left <= right)
    if operator == ">=":
        return int(left >= right)
    raise ExpansionError(f"{text.strip()}: unknown operator '{operator}'")


class ArithmeticEvaluator:
    """Evaluates arithmetic expressions against a variable store.

    ``lookup(name)`` returns a variable's string value or None;
    ``assign(name, value)`` stores a new string value.
    """

    def __init__(
        self,
        lookup: Callable[[str], Optional[str]],
        assign: Callable[[str, str], None],
    ):
        self._lookup = lookup
        self._assign = assign
        self._depth = 0

    def evaluate(self, text: str) -> int:
        expr = parse_arithmetic(text)
        if expr is None:
            return 0
        return self._eval(expr, text)

    def _resolve(self, name: str) -> int:
        """Value of a variable; values that are names or expressions are evaluated."""
        value = (self._lookup(name) or "").strip()
        if not value:
            return 0
        body = value.lstrip("+-")
        if body and body[0].isdigit() and _NUMBER_RE.fullmatch(body):
            number = parse_number(body)
            return wrap_int64(-number) if value.startswith("-") else number
        self._depth += 1
        try:
            if self._depth > _MAX_RESOLVE_DEPTH:
                raise ExpansionError(f"{name}: expression recursion level exceeded")
            return self.evaluate(value)
        finally:
            self._depth -= 1

    def _store(self, name: str, value: int) -> int:
        value = wrap_int64(value)
        self._assign(name, str(value))
        return value

    def _eval(self, expr: ArithExpr, text: str) -> int:
        if isinstance(expr, ArithNumber):
            return expr.value
        if isinstance(expr, ArithVariable):
            return self._resolve(expr.name)
        if isinstance(expr, ArithUnary):
            operand = self._eval(expr.operand, text)
            if expr.operator == "-":
                return wrap_int64(-operand)
            if expr.operator == "!":
                return int(operand == 0)
            if expr.operator == "~":
                return ~operand
            return operand
        if isinstance(expr, ArithBinary):
            left = self._eval(expr.left, text)
            if expr.operator == "&&":
                return int(left != 0 and self._eval(expr.right, text) != 0)
            if expr.operator == "||":
                return int(left != 0 or self._eval(expr.right, text) != 0)
            right = self._eval(expr.right, text)
            return wrap_int64(_binary(expr.operator, left, right, text))
        if isinstance(expr, ArithTernary):
            if self._eval(expr.condition, text) != 0:
                return self._eval(expr.if_true, text)
            return self._eval(expr.if_false, text)
        if isinstance(expr, ArithAssignment):
            value = self._eval(expr.value, text)
            if expr.operator != "=":
                value = _binary(expr.operator[:-1], self._resolve(expr.name), value, text)
            return self._store(expr.name, value)
        if isinstance(expr, ArithUpdate):
            old = self._resolve(expr.name)
            new = self._store(expr.name, old + 1 if expr.operator == "++" else old - 1)
            return new if expr.prefix else old
        if isinstance(expr, ArithComma):
            self._eval(expr.left, text)
            return self._eval(expr.right, text)
        raise TypeError(f"unknown arithmetic node: {type(expr).__name__}")

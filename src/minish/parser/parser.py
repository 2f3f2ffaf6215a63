"""Recursive descent parser for minish.

Grammar, loosest to tightest::

    list      := and_or ((';' | NEWLINE) and_or)*
    and_or    := pipeline (('&&' | '||') NEWLINE* pipeline)*
    pipeline  := '!'* command ('|' NEWLINE* command)*
    command   := compound | function_def | simple_command

Command substitution bodies are parsed here too, so the interpreter
never sees raw source text.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Optional

from ..ast.types import (
    AndOrList,
    ArithmeticCommand,
    ArithmeticPart,
    Assignment,
    CommandNode,
    CommandSubstitutionPart,
    ConditionalBranch,
    DoubleQuotedPart,
    For,
    FunctionDefinition,
    Group,
    If,
    LiteralPart,
    ParameterPart,
    Pipeline,
    Sequence,
    SimpleCommand,
    Subshell,
    Until,
    While,
    WordNode,
    WordPart,
)
from ..errors import ParseError, ShellSyntaxError
from .lexer import Token, TokenType, is_valid_name, tokenize

MAX_TOKENS = 100_000
MAX_PARSE_ITERATIONS = 1_000_000

_ASSIGNMENT_RE = re.compile(r"^([A-Za-z0-9_]+)(\+?)=")
_FUNCTION_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.:-]*$")

_COMPOUND_STARTERS = frozenset({"if", "while", "until", "for", "{", "function"})


class Parser:
    """Parser over the token list of one script."""

    def __init__(self, tokens: list[Token]):
        if len(tokens) > MAX_TOKENS:
            raise ParseError(f"too many tokens ({len(tokens)} > {MAX_TOKENS})")
        self._tokens = tokens
        self._pos = 0
        self._iterations = 0

    def parse(self) -> Sequence:
        body = self._parse_list(frozenset())
        token = self._peek()
        if token.type is not TokenType.EOF:
            raise self._unexpected(token)
        return body

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        self._iterations += 1
        if self._iterations > MAX_PARSE_ITERATIONS:
            raise ParseError("parse iteration limit exceeded")
        token = self._tokens[self._pos]
        if token.type is not TokenType.EOF:
            self._pos += 1
        return token

    def _is_operator(self, value: str, token: Optional[Token] = None) -> bool:
        token = token or self._peek()
        return token.type is TokenType.OPERATOR and token.value == value

    def _is_reserved(self, value: str, token: Optional[Token] = None) -> bool:
        token = token or self._peek()
        return token.type is TokenType.RESERVED and token.value == value

    def _is_keyword(self, value: str) -> bool:
        """Reserved word, or an unquoted word spelled like one."""
        token = self._peek()
        if token.type is TokenType.WORD and not token.quoted:
            return token.value == value
        return self._is_reserved(value, token)

    def _at_terminator(self, terminators: frozenset[str]) -> bool:
        token = self._peek()
        if token.type is TokenType.EOF:
            return True
        return token.type in (TokenType.RESERVED, TokenType.OPERATOR) and token.value in terminators

    def _skip_newlines(self) -> None:
        while self._peek().type is TokenType.NEWLINE:
            self._advance()

    def _expect_keyword(self, value: str, context: str) -> Token:
        if not self._is_keyword(value):
            token = self._peek()
            raise ParseError(
                f"expected '{value}' {context}, found {self._describe(token)}",
                token.line,
                token.column,
            )
        return self._advance()

    def _expect_operator(self, value: str, context: str) -> Token:
        if not self._is_operator(value):
            token = self._peek()
            raise ParseError(
                f"expected '{value}' {context}, found {self._describe(token)}",
                token.line,
                token.column,
            )
        return self._advance()

    @staticmethod
    def _describe(token: Token) -> str:
        if token.type is TokenType.EOF:
            return "end of input"
        if token.type is TokenType.NEWLINE:
            return "newline"
        return f"'{token.value}'"

    def _unexpected(self, token: Token, expected: Optional[str] = None) -> ParseError:
        if token.type is TokenType.EOF:
            message = "syntax error: unexpected end of input"
        else:
            message = f"syntax error near unexpected token {self._describe(token)}"
        if expected:
            message += f" (expected {expected})"
        return ParseError(message, token.line, token.column)

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    def _parse_list(self, terminators: frozenset[str]) -> Sequence:
        statements = []
        self._skip_newlines()
        while not self._at_terminator(terminators):
            statements.append(self._parse_and_or())
            token = self._peek()
            if self._is_operator("&", token):
                raise ParseError(
                    "background execution with '&' is not supported", token.line, token.column
                )
            if self._is_operator(";"):
                self._advance()
            elif self._peek().type is not TokenType.NEWLINE:
                break
            # A second ';' before the next command is an empty statement
            self._skip_newlines()
        return Sequence(tuple(statements))

    def _parse_body(self, terminators: frozenset[str], context: str) -> Sequence:
        body = self._parse_list(terminators)
        if not body.statements:
            raise self._unexpected(self._peek(), f"commands {context}")
        return body

    def _parse_and_or(self) -> AndOrList:
        pipelines = [self._parse_pipeline()]
        operators = []
        while self._is_operator("&&") or self._is_operator("||"):
            operators.append(self._advance().value)
            self._skip_newlines()
            pipelines.append(self._parse_pipeline())
        return AndOrList(tuple(pipelines), tuple(operators))

    def _parse_pipeline(self) -> Pipeline:
        negated = False
        while self._is_reserved("!"):
            self._advance()
            negated = not negated
        commands = [self._parse_command()]
        while self._is_operator("|"):
            self._advance()
            self._skip_newlines()
            commands.append(self._parse_command())
        return Pipeline(tuple(commands), negated)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def _parse_command(self) -> CommandNode:
        token = self._peek()

        if token.type is TokenType.RESERVED and token.value in _COMPOUND_STARTERS:
            if token.value == "if":
                return self._parse_if()
            if token.value in ("while", "until"):
                return self._parse_loop()
            if token.value == "for":
                return self._parse_for()
            if token.value == "{":
                return self._parse_group()
            return self._parse_function_keyword()

        if token.type is TokenType.OPERATOR:
            if token.value == "(":
                return self._parse_subshell()
            if token.value == "&":
                raise ParseError(
                    "background execution with '&' is not supported", token.line, token.column
                )
            if token.value in ("<", ">"):
                raise ParseError("I/O redirection is not supported", token.line, token.column)

        if token.type is TokenType.ARITH_COMMAND:
            self._advance()
            expression = self._resolve_word(WordNode(token.parts, token.line))
            return ArithmeticCommand(expression, token.line)

        if token.type is TokenType.WORD:
            if self._is_operator("(", self._peek(1)):
                return self._parse_function_definition()
            return self._parse_simple_command()

        raise self._unexpected(token, "a command")

    def _parse_simple_command(self) -> SimpleCommand:
        first = self._peek()
        assignments = []
        words = []
        while self._peek().type is TokenType.WORD:
            token = self._advance()
            if not words:
                assignment = self._as_assignment(token)
                if assignment is not None:
                    assignments.append(assignment)
                    continue
            words.append(self._resolve_word(WordNode(token.parts, token.line)))

        token = self._peek()
        if token.type is TokenType.OPERATOR and token.value in ("<", ">"):
            raise ParseError("I/O redirection is not supported", token.line, token.column)
        if self._is_operator("("):
            raise self._unexpected(token)

        name = words[0] if words else None
        return SimpleCommand(name, tuple(words[1:]), tuple(assignments), first.line)

    def _as_assignment(self, token: Token) -> Optional[Assignment]:
        if not token.parts or not isinstance(token.parts[0], LiteralPart):
            return None
        head = token.parts[0].value
        match = _ASSIGNMENT_RE.match(head)
        if match is None:
            return None
        name = match.group(1)
        if not is_valid_name(name):
            raise ParseError(
                f"invalid variable name in assignment: '{name}'", token.line, token.column
            )
        rest = head[match.end():]
        value_parts: tuple[WordPart, ...] = token.parts[1:]
        if rest:
            value_parts = (LiteralPart(rest),) + value_parts
        value = self._resolve_word(WordNode(value_parts, token.line))
        return Assignment(name, value, bool(match.group(2)), token.line)

    def _parse_if(self) -> If:
        start = self._advance()
        condition = self._parse_body(frozenset({"then"}), "after 'if'")
        self._expect_keyword("then", f"after 'if' condition (line {start.line})")
        then_body = self._parse_body(frozenset({"elif", "else", "fi"}), "after 'then'")

        branches = []
        while self._is_reserved("elif"):
            self._advance()
            elif_condition = self._parse_body(frozenset({"then"}), "after 'elif'")
            self._expect_keyword("then", "after 'elif' condition")
            elif_body = self._parse_body(frozenset({"elif", "else", "fi"}), "after 'then'")
            branches.append(ConditionalBranch(elif_condition, elif_body))

        else_body = None
        if self._is_reserved("else"):
            self._advance()
            else_body = self._parse_body(frozenset({"fi"}), "after 'else'")

        self._expect_keyword("fi", f"to close 'if' (line {start.line})")
        return If(condition, then_body, tuple(branches), else_body, start.line)

    def _parse_loop(self) -> While | Until:
        start = self._advance()
        keyword = start.value
        condition = self._parse_body(frozenset({"do"}), f"after '{keyword}'")
        self._expect_keyword("do", f"after '{keyword}' condition (line {start.line})")
        body = self._parse_body(frozenset({"done"}), "after 'do'")
        self._expect_keyword("done", f"to close '{keyword}' (line {start.line})")
        node_type = While if keyword == "while" else Until
        return node_type(condition, body, start.line)

    def _parse_for(self) -> For:
        start = self._advance()
        name_token = self._peek()
        if name_token.type is not TokenType.WORD or not is_valid_name(name_token.value):
            raise ParseError(
                f"expected a variable name after 'for', found {self._describe(name_token)}",
                name_token.line,
                name_token.column,
            )
        self._advance()
        self._skip_newlines()

        words = None
        if self._is_keyword("in"):
            self._advance()
            words = []
            while self._peek().type is TokenType.WORD:
                token = self._advance()
                words.append(self._resolve_word(WordNode(token.parts, token.line)))
            words = tuple(words)
        if self._is_operator(";"):
            self._advance()
        self._skip_newlines()

        self._expect_keyword("do", f"in 'for' loop (line {start.line})")
        body = self._parse_body(frozenset({"done"}), "after 'do'")
        self._expect_keyword("done", f"to close 'for' (line {start.line})")
        return For(name_token.value, words, body, start.line)

    def _parse_group(self) -> Group:
        start = self._advance()
        body = self._parse_body(frozenset({"}"}), "after '{'")
        self._expect_keyword("}", f"to close '{{' (line {start.line})")
        return Group(body, start.line)

    def _parse_subshell(self) -> Subshell:
        start = self._advance()
        body = self._parse_body(frozenset({")"}), "after '('")
        self._expect_operator(")", f"to close '(' (line {start.line})")
        return Subshell(body, start.line)

    def _parse_function_keyword(self) -> FunctionDefinition:
        start = self._advance()
        name_token = self._peek()
        if name_token.type is not TokenType.WORD:
            raise self._unexpected(name_token, "a function name")
        self._advance()
        if self._is_operator("("):
            self._advance()
            self._expect_operator(")", "in function definition")
        return self._finish_function(name_token, start)

    def _parse_function_definition(self) -> FunctionDefinition:
        name_token = self._advance()
        self._expect_operator("(", "in function definition")
        self._expect_operator(")", "in function definition")
        return self._finish_function(name_token, name_token)

    def _finish_function(self, name_token: Token, start: Token) -> FunctionDefinition:
        name = name_token.value
        if name_token.quoted or not _FUNCTION_NAME_RE.match(name):
            raise ParseError(
                f"'{name}': not a valid function name", name_token.line, name_token.column
            )
        self._skip_newlines()
        if self._is_reserved("{"):
            body = self._parse_group().body
        elif self._is_operator("("):
            subshell = self._parse_subshell()
            body = Sequence((AndOrList((Pipeline((subshell,)),)),))
        else:
            raise self._unexpected(self._peek(), f"'{{' to start the body of function '{name}'")
        return FunctionDefinition(name, body, start.line)

    # -------------------------------------------------------------------------
    # Words
    # -------------------------------------------------------------------------

    def _resolve_word(self, word: WordNode) -> WordNode:
        return replace(word, parts=self._resolve_parts(word.parts))

    def _resolve_parts(self, parts: tuple[WordPart, ...]) -> tuple[WordPart, ...]:
        """Parse command substitution bodies nested anywhere in ``parts``."""
        resolved = []
        for part in parts:
            if isinstance(part, CommandSubstitutionPart) and part.body is None:
                part = replace(part, body=parse(part.source, origin=(part.line, part.column)))
            elif isinstance(part, DoubleQuotedPart):
                part = replace(part, parts=self._resolve_parts(part.parts))
            elif isinstance(part, ParameterPart) and part.argument is not None:
                part = replace(part, argument=self._resolve_word(part.argument))
            elif isinstance(part, ArithmeticPart):
                part = replace(part, expression=self._resolve_word(part.expression))
            resolved.append(part)
        return tuple(resolved)


def parse(source: str, *, origin: tuple[int, int] = (1, 1)) -> Sequence:
    """Parse script text into a Sequence.

    Raises:
        LexError: on unterminated quotes.
        ParseError: on any grammar violation.
    """
    return Parser(tokenize(source, origin)).parse()


__all__ = ["Parser", "parse", "ParseError", "ShellSyntaxError", "MAX_TOKENS", "MAX_PARSE_ITERATIONS"]

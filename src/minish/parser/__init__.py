"""Lexer and parser for minish scripts."""

from .lexer import RESERVED_WORDS, Token, TokenType, is_valid_name, tokenize
from .parser import Parser, parse

__all__ = [
    "RESERVED_WORDS",
    "Parser",
    "Token",
    "TokenType",
    "is_valid_name",
    "parse",
    "tokenize",
]

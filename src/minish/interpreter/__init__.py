"""Interpreter module for minish."""

from .interpreter import Interpreter
from .types import (
    BreakSignal,
    ContinueSignal,
    Environment,
    ExecutionCounters,
    InterpreterContext,
    Outcome,
    PositionalFrame,
    ReturnSignal,
)

__all__ = [
    "BreakSignal",
    "ContinueSignal",
    "Environment",
    "ExecutionCounters",
    "Interpreter",
    "InterpreterContext",
    "Outcome",
    "PositionalFrame",
    "ReturnSignal",
]

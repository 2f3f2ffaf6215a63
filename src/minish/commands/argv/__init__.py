"""Argv command."""

from .argv import ArgvCommand

__all__ = ["ArgvCommand"]

"""Tac command."""

from .tac import TacCommand

__all__ = ["TacCommand"]

"""Env and printenv commands."""

from .env import EnvCommand, PrintenvCommand

__all__ = ["EnvCommand", "PrintenvCommand"]

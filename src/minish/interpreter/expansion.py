"""Word expansion for minish.

Handles parameter expansion, command substitution, arithmetic expansion
and field splitting on IFS. There is no filename globbing: words that
look like patterns are passed through unchanged.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

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
from ..errors import ExpansionError
from ..streams import BufferOutput
from .arithmetic import ArithmeticEvaluator

if TYPE_CHECKING:
    from .types import InterpreterContext

logger = logging.getLogger(__name__)

DEFAULT_IFS = " \t\n"


@dataclass
class ExpandedSegment:
    """A segment of expanded text with quoting context."""
    text: str
    quoted: bool  # True = protected from IFS splitting
    field_break: bool = False  # boundary between "$@" elements


_FIELD_BREAK = ExpandedSegment("", quoted=False, field_break=True)


def get_variable(ctx: "InterpreterContext", name: str) -> Optional[str]:
    """Value of a variable or special parameter; None when unset."""
    env = ctx.env
    if name == "?":
        return str(env.last_exit_code)
    if name == "#":
        return str(len(env.positional))
    if name in ("@", "*"):
        if not env.positional:
            return None
        return " ".join(env.positional)
    if name == "$":
        return str(os.getpid())
    if name == "0":
        return env.script_name
    if name.isdigit():
        index = int(name) - 1
        return env.positional[index] if index < len(env.positional) else None
    return env.get(name)


def _ifs(ctx: "InterpreterContext") -> str:
    value = ctx.env.get("IFS")
    return DEFAULT_IFS if value is None else value


# =============================================================================
# Public entry points
# =============================================================================


async def expand_word(ctx: "InterpreterContext", word: WordNode) -> str:
    """Expand a word to a single string without field splitting."""
    segments = await expand_word_segments(ctx, word)
    return "".join(" " if seg.field_break else seg.text for seg in segments)


async def expand_word_fields(ctx: "InterpreterContext", word: WordNode) -> list[str]:
    """Expand a word into zero or more fields."""
    segments = await expand_word_segments(ctx, word)
    return split_fields(segments, _ifs(ctx))


async def expand_words(ctx: "InterpreterContext", words) -> list[str]:
    fields: list[str] = []
    for word in words:
        fields.extend(await expand_word_fields(ctx, word))
    return fields


async def expand_word_segments(
    ctx: "InterpreterContext", word: WordNode, in_double_quotes: bool = False
) -> list[ExpandedSegment]:
    segments: list[ExpandedSegment] = []
    for part in word.parts:
        segments.extend(await _expand_part_segments(ctx, part, in_double_quotes))
    return segments


def evaluate_arithmetic(ctx: "InterpreterContext", text: str) -> int:
    """Evaluate already expanded arithmetic text against the environment."""
    evaluator = ArithmeticEvaluator(
        lambda name: get_variable(ctx, name),
        ctx.env.set_arithmetic,
    )
    return evaluator.evaluate(text)


async def evaluate_arithmetic_word(ctx: "InterpreterContext", word: WordNode) -> int:
    return evaluate_arithmetic(ctx, await expand_word(ctx, word))


# =============================================================================
# Parts
# =============================================================================


async def _expand_part_segments(
    ctx: "InterpreterContext", part: WordPart, in_double_quotes: bool
) -> list[ExpandedSegment]:
    if isinstance(part, (LiteralPart, SingleQuotedPart, EscapedPart)):
        return [ExpandedSegment(part.value, quoted=True)]

    if isinstance(part, DoubleQuotedPart):
        segments: list[ExpandedSegment] = []
        for inner in part.parts:
            segments.extend(await _expand_part_segments(ctx, inner, True))
        if not segments and not _contains_at(part):
            # "" is still one (empty) field
            return [ExpandedSegment("", quoted=True)]
        return segments

    if isinstance(part, ParameterPart):
        return await _expand_parameter_segments(ctx, part, in_double_quotes)

    if isinstance(part, CommandSubstitutionPart):
        output = await run_command_substitution(ctx, part)
        return [ExpandedSegment(output, quoted=in_double_quotes)]

    if isinstance(part, ArithmeticPart):
        value = await evaluate_arithmetic_word(ctx, part.expression)
        return [ExpandedSegment(str(value), quoted=in_double_quotes)]

    raise TypeError(f"unknown word part: {type(part).__name__}")


def _contains_at(part: DoubleQuotedPart) -> bool:
    return any(
        isinstance(inner, ParameterPart) and inner.name == "@" and inner.operator is None
        for inner in part.parts
    )


async def run_command_substitution(ctx: "InterpreterContext", part: CommandSubstitutionPart) -> str:
    """Run $(...) in a forked environment and return its trimmed output."""
    output = BufferOutput()
    io = ctx.io.with_stdout(output)
    exit_code = await ctx.run_isolated(part.body, io, share_arithmetic=True)
    ctx.env.last_exit_code = exit_code
    ctx.substitution_status = exit_code
    logger.debug("command substitution exited with %d", exit_code)
    return output.getvalue().rstrip("\n")


def _positional_segments(
    ctx: "InterpreterContext", name: str, in_double_quotes: bool
) -> list[ExpandedSegment]:
    args = ctx.env.positional
    if name == "*" and in_double_quotes:
        ifs = _ifs(ctx)
        return [ExpandedSegment((ifs[:1]).join(args), quoted=True)] if args else []
    segments: list[ExpandedSegment] = []
    for index, arg in enumerate(args):
        if index:
            segments.append(_FIELD_BREAK)
        segments.append(ExpandedSegment(arg, quoted=in_double_quotes))
    return segments


async def _expand_parameter_segments(
    ctx: "InterpreterContext", part: ParameterPart, in_double_quotes: bool
) -> list[ExpandedSegment]:
    name = part.name

    if part.length:
        if name in ("@", "*"):
            length = len(ctx.env.positional)
        else:
            length = len(get_variable(ctx, name) or "")
        return [ExpandedSegment(str(length), quoted=in_double_quotes)]

    if part.operator is None:
        if name in ("@", "*"):
            return _positional_segments(ctx, name, in_double_quotes)
        return [ExpandedSegment(get_variable(ctx, name) or "", quoted=in_double_quotes)]

    value = get_variable(ctx, name)
    check_empty = part.operator.startswith(":")
    operator = part.operator.lstrip(":")
    missing = value is None or (check_empty and value == "")

    if operator == "-":
        if missing:
            return await expand_word_segments(ctx, part.argument, in_double_quotes)
        return [ExpandedSegment(value, quoted=in_double_quotes)]

    if operator == "=":
        if not missing:
            return [ExpandedSegment(value, quoted=in_double_quotes)]
        if not (name[0].isalpha() or name[0] == "_"):
            raise ExpansionError(f"${name}: cannot assign in this way")
        text = await expand_word(ctx, part.argument)
        ctx.env.set(name, text)
        return [ExpandedSegment(text, quoted=in_double_quotes)]

    if operator == "+":
        if missing:
            return []
        return await expand_word_segments(ctx, part.argument, in_double_quotes)

    # "?"
    if missing:
        message = await expand_word(ctx, part.argument)
        if not message:
            message = "parameter null or not set" if check_empty else "parameter not set"
        raise ExpansionError(f"{name}: {message}")
    return [ExpandedSegment(value, quoted=in_double_quotes)]


# =============================================================================
# Field splitting
# =============================================================================


def split_fields(segments: list[ExpandedSegment], ifs: str) -> list[str]:
    """Split segments into fields, only splitting unquoted text on IFS.

    IFS splitting rules:
    - IFS whitespace (space/tab/newline): leading/trailing stripped, consecutive
      merged into one delimiter
    - IFS non-whitespace: each produces a field boundary
    - Whitespace adjacent to non-whitespace IFS is part of that delimiter

    A field exists once it has any text or any quoted segment, so ""
    yields one empty field while an unquoted empty expansion yields none.
    """
    ifs_whitespace = {c for c in ifs if c in " \t\n"}
    ifs_other = {c for c in ifs if c not in " \t\n"}

    fields: list[str] = []
    current: list[str] = []
    field_open = False
    after_whitespace = False  # last delimiter was IFS whitespace

    def finish() -> None:
        nonlocal field_open
        fields.append("".join(current))
        current.clear()
        field_open = False

    for segment in segments:
        if segment.field_break:
            if field_open:
                finish()
            after_whitespace = False
            continue
        if segment.quoted:
            current.append(segment.text)
            field_open = True
            after_whitespace = False
            continue
        for char in segment.text:
            if char in ifs_whitespace:
                if field_open:
                    finish()
                    after_whitespace = True
            elif char in ifs_other:
                if field_open:
                    finish()
                elif not after_whitespace:
                    fields.append("")
                after_whitespace = False
            else:
                current.append(char)
                field_open = True
                after_whitespace = False

    if field_open:
        finish()
    return fields

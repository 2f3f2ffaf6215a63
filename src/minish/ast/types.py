"""AST node types for minish.

The parser produces one ``Sequence`` per script. All nodes are frozen:
the tree is built once and then only read by the interpreter.

Words are tuples of parts so the expander knows which text was quoted.
Quoted text is never field-split; unquoted expansion results are.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


# =============================================================================
# Word parts
# =============================================================================


@dataclass(frozen=True)
class LiteralPart:
    """Unquoted literal text."""

    value: str


@dataclass(frozen=True)
class SingleQuotedPart:
    """Text inside '...', taken verbatim."""

    value: str


@dataclass(frozen=True)
class EscapedPart:
    """A single character escaped with a backslash."""

    value: str


@dataclass(frozen=True)
class DoubleQuotedPart:
    """Text inside "...": literals and expansions, never split."""

    parts: tuple[WordPart, ...] = ()


@dataclass(frozen=True)
class ParameterPart:
    """$NAME, ${NAME} or ${NAME<op>word}.

    ``operator`` is one of ``:- - := = :+ + :? ?`` or None. ``length`` is
    set for ``${#NAME}``.
    """

    name: str
    operator: Optional[str] = None
    argument: Optional[WordNode] = None
    length: bool = False


@dataclass(frozen=True)
class CommandSubstitutionPart:
    """$(...) or `...`; ``body`` is filled in by the parser."""

    source: str
    body: Optional[Sequence] = None
    line: int = 1
    column: int = 1


@dataclass(frozen=True)
class ArithmeticPart:
    """$((...)); the expression is expanded before it is evaluated."""

    expression: WordNode


WordPart = Union[
    LiteralPart,
    SingleQuotedPart,
    EscapedPart,
    DoubleQuotedPart,
    ParameterPart,
    CommandSubstitutionPart,
    ArithmeticPart,
]


@dataclass(frozen=True)
class WordNode:
    """A shell word."""

    parts: tuple[WordPart, ...] = ()
    line: int = 0

    @property
    def quoted(self) -> bool:
        return any(
            isinstance(p, (SingleQuotedPart, EscapedPart, DoubleQuotedPart))
            for p in self.parts
        )

    def literal_text(self) -> Optional[str]:
        """The word's text if it contains no expansions, else None."""
        chunks = []
        for part in self.parts:
            if isinstance(part, (LiteralPart, SingleQuotedPart, EscapedPart)):
                chunks.append(part.value)
            elif isinstance(part, DoubleQuotedPart):
                inner = WordNode(part.parts).literal_text()
                if inner is None:
                    return None
                chunks.append(inner)
            else:
                return None
        return "".join(chunks)


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class Assignment:
    """NAME=word, or NAME+=word when ``append`` is set."""

    name: str
    value: WordNode
    append: bool = False
    line: int = 0


@dataclass(frozen=True)
class SimpleCommand:
    """Assignments followed by an optional command name and arguments."""

    name: Optional[WordNode]
    args: tuple[WordNode, ...] = ()
    assignments: tuple[Assignment, ...] = ()
    line: int = 0


@dataclass(frozen=True)
class ConditionalBranch:
    """One ``elif`` arm of an if statement."""

    condition: Sequence
    body: Sequence


@dataclass(frozen=True)
class If:
    condition: Sequence
    then_body: Sequence
    elif_branches: tuple[ConditionalBranch, ...] = ()
    else_body: Optional[Sequence] = None
    line: int = 0


@dataclass(frozen=True)
class While:
    condition: Sequence
    body: Sequence
    line: int = 0


@dataclass(frozen=True)
class Until:
    condition: Sequence
    body: Sequence
    line: int = 0


@dataclass(frozen=True)
class For:
    """for NAME [in WORDS]; do BODY; done

    ``words`` is None when the ``in`` clause is missing, in which case the
    loop runs over the positional parameters.
    """

    variable: str
    words: Optional[tuple[WordNode, ...]]
    body: Sequence
    line: int = 0


@dataclass(frozen=True)
class Group:
    """{ ...; } run in the current environment."""

    body: Sequence
    line: int = 0


@dataclass(frozen=True)
class Subshell:
    """( ... ) run in a forked environment."""

    body: Sequence
    line: int = 0


@dataclass(frozen=True)
class ArithmeticCommand:
    """(( expr ))"""

    expression: WordNode
    line: int = 0


@dataclass(frozen=True)
class FunctionDefinition:
    name: str
    body: Sequence
    line: int = 0


CommandNode = Union[
    SimpleCommand,
    If,
    While,
    Until,
    For,
    Group,
    Subshell,
    ArithmeticCommand,
    FunctionDefinition,
]


# =============================================================================
# Lists
# =============================================================================


@dataclass(frozen=True)
class Pipeline:
    """One or more commands joined by ``|``, optionally negated with ``!``."""

    commands: tuple[CommandNode, ...]
    negated: bool = False


@dataclass(frozen=True)
class AndOrList:
    """Pipelines joined by ``&&`` and ``||``, evaluated left to right.

    ``operators[i]`` sits between ``pipelines[i]`` and ``pipelines[i + 1]``.
    """

    pipelines: tuple[Pipeline, ...]
    operators: tuple[str, ...] = ()


@dataclass(frozen=True)
class Sequence:
    """Statements separated by ``;`` or newlines."""

    statements: tuple[AndOrList, ...] = ()

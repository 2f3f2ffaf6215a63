"""AST types for minish."""

from .types import (
    AndOrList,
    ArithmeticCommand,
    ArithmeticPart,
    Assignment,
    CommandNode,
    CommandSubstitutionPart,
    ConditionalBranch,
    DoubleQuotedPart,
    EscapedPart,
    For,
    FunctionDefinition,
    Group,
    If,
    LiteralPart,
    ParameterPart,
    Pipeline,
    Sequence,
    SimpleCommand,
    SingleQuotedPart,
    Subshell,
    Until,
    While,
    WordNode,
    WordPart,
)

__all__ = [
    "AndOrList",
    "ArithmeticCommand",
    "ArithmeticPart",
    "Assignment",
    "CommandNode",
    "CommandSubstitutionPart",
    "ConditionalBranch",
    "DoubleQuotedPart",
    "EscapedPart",
    "For",
    "FunctionDefinition",
    "Group",
    "If",
    "LiteralPart",
    "ParameterPart",
    "Pipeline",
    "Sequence",
    "SimpleCommand",
    "SingleQuotedPart",
    "Subshell",
    "Until",
    "While",
    "WordNode",
    "WordPart",
]

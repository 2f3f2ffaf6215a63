"""Tests for the parser."""

import pytest
from minish import ParseError
from minish.ast import (
    AndOrList,
    ArithmeticCommand,
    CommandSubstitutionPart,
    For,
    FunctionDefinition,
    Group,
    If,
    Pipeline,
    Sequence,
    SimpleCommand,
    Subshell,
    Until,
    While,
)
from minish.parser import parse


def first_command(source):
    return parse(source).statements[0].pipelines[0].commands[0]


class TestLists:
    """Test sequences, and-or lists and pipelines."""

    def test_sequence(self):
        ast = parse("a; b\nc")
        assert isinstance(ast, Sequence)
        assert len(ast.statements) == 3

    def test_trailing_separators(self):
        assert len(parse("a;\n\nb;\n").statements) == 2

    def test_empty_script(self):
        assert parse("").statements == ()
        assert parse("\n\n# only a comment\n").statements == ()

    def test_and_or(self):
        statement = parse("a && b || c").statements[0]
        assert isinstance(statement, AndOrList)
        assert statement.operators == ("&&", "||")
        assert len(statement.pipelines) == 3

    def test_pipeline(self):
        pipeline = parse("a | b | c").statements[0].pipelines[0]
        assert isinstance(pipeline, Pipeline)
        assert len(pipeline.commands) == 3
        assert not pipeline.negated

    def test_negation(self):
        assert parse("! a | b").statements[0].pipelines[0].negated
        assert not parse("! ! a").statements[0].pipelines[0].negated


class TestSimpleCommands:
    """Test simple commands and assignments."""

    def test_name_and_args(self):
        command = first_command("echo a b")
        assert isinstance(command, SimpleCommand)
        assert command.name.literal_text() == "echo"
        assert [w.literal_text() for w in command.args] == ["a", "b"]

    def test_assignment_only(self):
        command = first_command("x=1 y+=2")
        assert command.name is None
        assert [(a.name, a.append) for a in command.assignments] == [("x", False), ("y", True)]

    def test_prefix_assignment(self):
        command = first_command("LANG=C cmd x=1")
        assert [a.name for a in command.assignments] == ["LANG"]
        assert command.name.literal_text() == "cmd"
        assert command.args[0].literal_text() == "x=1"

    def test_quoted_name_is_not_assignment(self):
        command = first_command("'x=1'")
        assert command.assignments == ()
        assert command.name is not None

    def test_invalid_assignment_name(self):
        with pytest.raises(ParseError, match="invalid variable name"):
            parse("1x=2")

    def test_command_substitution_body_is_parsed(self):
        command = first_command("echo $(a | b)")
        part = command.args[0].parts[0]
        assert isinstance(part, CommandSubstitutionPart)
        assert isinstance(part.body, Sequence)
        assert len(part.body.statements[0].pipelines[0].commands) == 2

    def test_error_inside_substitution_has_outer_position(self):
        with pytest.raises(ParseError) as info:
            parse("echo ok\necho $(if)")
        assert info.value.line == 2


class TestCompoundCommands:
    """Test compound commands."""

    def test_if_elif_else(self):
        command = first_command("if a; then b; elif c; then d; else e; fi")
        assert isinstance(command, If)
        assert len(command.elif_branches) == 1
        assert command.else_body is not None

    def test_multiline_if(self):
        command = first_command("if a\nthen\n  b\nfi")
        assert isinstance(command, If)
        assert command.else_body is None

    def test_while_and_until(self):
        assert isinstance(first_command("while a; do b; done"), While)
        assert isinstance(first_command("until a; do b; done"), Until)

    def test_for_with_words(self):
        command = first_command("for i in a b c; do echo $i; done")
        assert isinstance(command, For)
        assert command.variable == "i"
        assert [w.literal_text() for w in command.words] == ["a", "b", "c"]

    def test_for_without_in(self):
        command = first_command("for i\ndo echo $i\ndone")
        assert command.words is None

    def test_group_and_subshell(self):
        assert isinstance(first_command("{ a; b; }"), Group)
        assert isinstance(first_command("(a; b)"), Subshell)

    def test_arithmetic_command(self):
        command = first_command("(( i++ ))")
        assert isinstance(command, ArithmeticCommand)

    def test_function_forms(self):
        for source in ("f() { a; }", "function f { a; }", "function f() { a; }", "f()\n{\n a\n}"):
            command = first_command(source)
            assert isinstance(command, FunctionDefinition)
            assert command.name == "f"

    def test_function_subshell_body(self):
        command = first_command("f() (a)")
        inner = command.body.statements[0].pipelines[0].commands[0]
        assert isinstance(inner, Subshell)

    def test_compound_in_pipeline(self):
        pipeline = parse("a | while read x; do b; done").statements[0].pipelines[0]
        assert isinstance(pipeline.commands[1], While)


class TestParseErrors:
    """Test grammar violations."""

    @pytest.mark.parametrize("source", [
        "if a; then b",
        "if a; b; fi",
        "while a; do done",
        "for 1 in a; do b; done",
        "{ a",
        "(a",
        "a |",
        "a &&",
        "fi",
        "f() a",
        "echo )",
        "echo a;;",
        "echo a; ; echo b",
        "echo a\n; echo b",
    ])
    def test_invalid_scripts(self, source):
        with pytest.raises(ParseError):
            parse(source)

    def test_error_position(self):
        with pytest.raises(ParseError) as info:
            parse("echo a\nwhile true; do\ndone")
        assert info.value.line == 3

    def test_unsupported_redirection(self):
        with pytest.raises(ParseError, match="redirection"):
            parse("cat < file")

    def test_unsupported_background(self):
        with pytest.raises(ParseError, match="background"):
            parse("a & b")

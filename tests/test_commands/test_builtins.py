"""Tests for shell builtins."""

import pytest
from minish import Shell


class TestEcho:
    """Test the echo builtin."""

    @pytest.mark.asyncio
    async def test_no_newline(self):
        shell = Shell()
        result = await shell.exec("echo -n hello")
        assert result.stdout == "hello"

    @pytest.mark.asyncio
    async def test_escapes_with_e(self):
        shell = Shell()
        result = await shell.exec("echo -e 'a\\tb'")
        assert result.stdout == "a\tb\n"

    @pytest.mark.asyncio
    async def test_escapes_off_by_default(self):
        shell = Shell()
        result = await shell.exec("echo 'a\\tb'")
        assert result.stdout == "a\\tb\n"

    @pytest.mark.asyncio
    async def test_backslash_c_stops_output(self):
        shell = Shell()
        result = await shell.exec("echo -e 'one\\ctwo'")
        assert result.stdout == "one"

    @pytest.mark.asyncio
    async def test_combined_flags(self):
        shell = Shell()
        result = await shell.exec("echo -ne 'x\\n'")
        assert result.stdout == "x\n"

    @pytest.mark.asyncio
    async def test_unknown_flag_is_printed(self):
        shell = Shell()
        result = await shell.exec("echo -x hi")
        assert result.stdout == "-x hi\n"


class TestTest:
    """Test the test and [ builtins."""

    @pytest.mark.asyncio
    async def test_string_equality(self):
        shell = Shell()
        assert (await shell.exec("[ abc = abc ]")).exit_code == 0
        assert (await shell.exec("[ abc = abd ]")).exit_code == 1
        assert (await shell.exec("[ abc != abd ]")).exit_code == 0

    @pytest.mark.asyncio
    async def test_numeric_comparisons(self):
        shell = Shell()
        assert (await shell.exec("test 15 -gt 10")).exit_code == 0
        assert (await shell.exec("test 5 -ge 10")).exit_code == 1
        assert (await shell.exec("[ 3 -eq 3 ]")).exit_code == 0
        assert (await shell.exec("[ -2 -lt 1 ]")).exit_code == 0

    @pytest.mark.asyncio
    async def test_non_integer_operand(self):
        shell = Shell()
        result = await shell.exec("[ abc -eq 1 ]")
        assert result.exit_code == 2
        assert "integer expression expected" in result.stderr

    @pytest.mark.asyncio
    async def test_empty_and_nonempty(self):
        shell = Shell()
        assert (await shell.exec('[ -z "" ]')).exit_code == 0
        assert (await shell.exec("[ -n x ]")).exit_code == 0
        assert (await shell.exec('[ "" ]')).exit_code == 1
        assert (await shell.exec("[ ]")).exit_code == 1

    @pytest.mark.asyncio
    async def test_negation_and_logic(self):
        shell = Shell()
        assert (await shell.exec("[ ! a = b ]")).exit_code == 0
        assert (await shell.exec("[ a = a -a b = c ]")).exit_code == 1
        assert (await shell.exec("[ a = a -o b = c ]")).exit_code == 0

    @pytest.mark.asyncio
    async def test_variable_is_set(self):
        shell = Shell()
        assert (await shell.exec("V=1; [ -v V ]")).exit_code == 0
        assert (await shell.exec("[ -v NOT_SET_ANYWHERE ]")).exit_code == 1

    @pytest.mark.asyncio
    async def test_missing_bracket(self):
        shell = Shell()
        result = await shell.exec("[ a = a")
        assert result.exit_code == 2
        assert "missing" in result.stderr

    @pytest.mark.asyncio
    async def test_file_tests(self, tmp_path):
        path = tmp_path / "data.txt"
        path.write_text("content")
        shell = Shell(env={"P": str(path), "D": str(tmp_path)})
        assert (await shell.exec('[ -f "$P" ]')).exit_code == 0
        assert (await shell.exec('[ -d "$D" ]')).exit_code == 0
        assert (await shell.exec('[ -s "$P" ]')).exit_code == 0
        assert (await shell.exec('[ -e "$D/missing" ]')).exit_code == 1

    @pytest.mark.asyncio
    async def test_if_elif_else_selects_one_branch(self):
        shell = Shell()
        script = """
        value=15
        if [ $value -lt 10 ]; then
          echo "less than 10"
        elif [ $value -lt 15 ]; then
          echo "between 10 and 14"
        else
          echo "15 or more"
        fi
        """
        result = await shell.exec(script)
        assert result.stdout == "15 or more\n"


class TestControlFlow:
    """Test loops and conditionals."""

    @pytest.mark.asyncio
    async def test_for_loop(self):
        shell = Shell()
        result = await shell.exec("for i in a b; do echo $i; done")
        assert result.stdout == "a\nb\n"

    @pytest.mark.asyncio
    async def test_for_loop_splits_expansions(self):
        shell = Shell()
        result = await shell.exec('list="x y z"; for i in $list; do echo $i; done')
        assert result.stdout == "x\ny\nz\n"

    @pytest.mark.asyncio
    async def test_for_without_in_uses_positional(self):
        shell = Shell()
        result = await shell.exec("f() { for a; do echo $a; done; }; f p q")
        assert result.stdout == "p\nq\n"

    @pytest.mark.asyncio
    async def test_for_over_nothing(self):
        shell = Shell()
        result = await shell.exec("for i in; do echo $i; done; echo $?")
        assert result.stdout == "0\n"

    @pytest.mark.asyncio
    async def test_while_loop(self):
        shell = Shell()
        result = await shell.exec("i=0; while [ $i -lt 3 ]; do echo $i; i=$((i+1)); done")
        assert result.stdout == "0\n1\n2\n"

    @pytest.mark.asyncio
    async def test_until_loop(self):
        shell = Shell()
        result = await shell.exec("i=0; until [ $i -ge 2 ]; do echo $i; (( i++ )); done")
        assert result.stdout == "0\n1\n"

    @pytest.mark.asyncio
    async def test_break(self):
        shell = Shell()
        result = await shell.exec("for i in 1 2 3; do if [ $i = 2 ]; then break; fi; echo $i; done")
        assert result.stdout == "1\n"

    @pytest.mark.asyncio
    async def test_continue(self):
        shell = Shell()
        script = "for i in 1 2 3; do if [ $i = 2 ]; then continue; fi; echo $i; done"
        result = await shell.exec(script)
        assert result.stdout == "1\n3\n"

    @pytest.mark.asyncio
    async def test_break_multiple_levels(self):
        shell = Shell()
        script = "for a in 1 2; do for b in x y; do echo $a$b; break 2; done; done; echo end"
        result = await shell.exec(script)
        assert result.stdout == "1x\nend\n"

    @pytest.mark.asyncio
    async def test_continue_multiple_levels(self):
        shell = Shell()
        script = "for a in 1 2; do for b in x y; do echo $a$b; continue 2; done; echo never; done"
        result = await shell.exec(script)
        assert result.stdout == "1x\n2x\n"

    @pytest.mark.asyncio
    async def test_break_count_larger_than_nesting(self):
        shell = Shell()
        result = await shell.exec("for a in 1 2; do break 5; done; echo after")
        assert result.stdout == "after\n"

    @pytest.mark.asyncio
    async def test_break_outside_loop(self):
        shell = Shell()
        result = await shell.exec("break; echo after")
        assert "only meaningful" in result.stderr
        assert result.stdout == "after\n"

    @pytest.mark.asyncio
    async def test_break_in_function_does_not_leave_callers_loop(self):
        shell = Shell()
        script = "f() { break; }; for i in 1 2; do f; echo $i; done"
        result = await shell.exec(script)
        assert result.stdout == "1\n2\n"

    @pytest.mark.asyncio
    async def test_break_in_pipeline_stage_ends_only_the_stage(self):
        shell = Shell()
        result = await shell.exec("for i in 1 2; do break | cat; echo $i; done")
        assert result.stdout == "1\n2\n"
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_break_in_subshell_ends_only_the_subshell(self):
        shell = Shell()
        result = await shell.exec("for i in 1 2; do (break; echo no); echo $i; done")
        assert result.stdout == "1\n2\n"
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_if_status_without_branch(self):
        shell = Shell()
        result = await shell.exec("if false; then echo x; fi; echo $?")
        assert result.stdout == "0\n"

    @pytest.mark.asyncio
    async def test_loop_status_is_last_body_status(self):
        shell = Shell()
        result = await shell.exec("for i in 1; do false; done")
        assert result.exit_code == 1

    @pytest.mark.asyncio
    async def test_group_runs_in_current_environment(self):
        shell = Shell()
        result = await shell.exec("{ x=in-group; echo a; }; echo $x")
        assert result.stdout == "a\nin-group\n"

    @pytest.mark.asyncio
    async def test_subshell_isolated(self):
        shell = Shell()
        result = await shell.exec("x=outer; (x=inner; echo $x); echo $x")
        assert result.stdout == "inner\nouter\n"

    @pytest.mark.asyncio
    async def test_reserved_words_as_arguments(self):
        shell = Shell()
        result = await shell.exec("echo if then done")
        assert result.stdout == "if then done\n"


class TestSetAndShift:
    """Test set and shift."""

    @pytest.mark.asyncio
    async def test_set_positional(self):
        shell = Shell()
        result = await shell.exec("set -- a b c; echo $# $2")
        assert result.stdout == "3 b\n"

    @pytest.mark.asyncio
    async def test_set_lists_variables(self):
        shell = Shell()
        result = await shell.exec("A='x y'; B=plain; set")
        assert "A='x y'\n" in result.stdout
        assert "B=plain\n" in result.stdout

    @pytest.mark.asyncio
    async def test_set_rejects_options(self):
        shell = Shell()
        result = await shell.exec("set -e")
        assert result.exit_code == 2

    @pytest.mark.asyncio
    async def test_shift(self):
        shell = Shell()
        result = await shell.exec("set -- a b c; shift; echo $@; shift 2; echo $#")
        assert result.stdout == "b c\n0\n"

    @pytest.mark.asyncio
    async def test_shift_out_of_range(self):
        shell = Shell()
        result = await shell.exec("set -- a; shift 2")
        assert result.exit_code == 1
        assert "shift count out of range" in result.stderr

    @pytest.mark.asyncio
    async def test_shift_inside_function_is_local(self):
        shell = Shell()
        result = await shell.exec("set -- a b; f() { shift; echo $1; }; f x y; echo $1")
        assert result.stdout == "y\na\n"


class TestExportAndUnset:
    """Test export and unset."""

    @pytest.mark.asyncio
    async def test_export_listing(self):
        shell = Shell()
        result = await shell.exec('export GREETING="hi there"; export')
        assert 'export GREETING="hi there"\n' in result.stdout

    @pytest.mark.asyncio
    async def test_export_n_removes_export(self):
        shell = Shell()
        result = await shell.exec("export V=1; export -n V; printenv V; echo $? $V")
        assert result.stdout == "1 1\n"

    @pytest.mark.asyncio
    async def test_export_invalid_name(self):
        shell = Shell()
        result = await shell.exec("export 1abc=2")
        assert result.exit_code == 1
        assert "not a valid identifier" in result.stderr

    @pytest.mark.asyncio
    async def test_unset_variable(self):
        shell = Shell()
        result = await shell.exec('V=1; unset V; echo "[${V-gone}]"')
        assert result.stdout == "[gone]\n"

    @pytest.mark.asyncio
    async def test_unset_function(self):
        shell = Shell()
        result = await shell.exec("f() { echo hi; }; unset -f f; f")
        assert result.exit_code == 127

    @pytest.mark.asyncio
    async def test_unset_falls_back_to_function(self):
        shell = Shell()
        result = await shell.exec("f() { echo hi; }; unset f; f")
        assert result.exit_code == 127


class TestRead:
    """Test the read builtin."""

    @pytest.mark.asyncio
    async def test_reply_default(self):
        shell = Shell()
        result = await shell.exec("read; echo $REPLY", stdin="  spaced  \n")
        assert result.stdout == "spaced\n"

    @pytest.mark.asyncio
    async def test_last_name_gets_rest(self):
        shell = Shell()
        result = await shell.exec('read a b; echo "$a|$b"', stdin="1 2 3\n")
        assert result.stdout == "1|2 3\n"

    @pytest.mark.asyncio
    async def test_backslash_handling(self):
        shell = Shell()
        result = await shell.exec('read a; echo "$a"', stdin="x\\ty\n")
        assert result.stdout == "xty\n"
        result = await shell.exec('read -r a; echo "$a"', stdin="x\\ty\n")
        assert result.stdout == "x\\ty\n"

    @pytest.mark.asyncio
    async def test_eof_status(self):
        shell = Shell()
        result = await shell.exec("read a; echo $? $a", stdin="partial")
        assert result.stdout == "1 partial\n"

    @pytest.mark.asyncio
    async def test_custom_ifs(self):
        shell = Shell()
        result = await shell.exec('IFS=, read a b; echo "$b-$a"', stdin="x,y\n")
        assert result.stdout == "y-x\n"


class TestEval:
    """Test the eval builtin."""

    @pytest.mark.asyncio
    async def test_eval_runs_source(self):
        shell = Shell()
        result = await shell.exec("cmd='echo evaluated'; eval $cmd")
        assert result.stdout == "evaluated\n"

    @pytest.mark.asyncio
    async def test_eval_in_current_environment(self):
        shell = Shell()
        result = await shell.exec("eval 'x=5'; echo $x")
        assert result.stdout == "5\n"

    @pytest.mark.asyncio
    async def test_eval_syntax_error(self):
        shell = Shell()
        result = await shell.exec("eval 'if'; echo after")
        assert "eval" in result.stderr
        assert result.stdout == "after\n"

    @pytest.mark.asyncio
    async def test_eval_return_in_function(self):
        shell = Shell()
        result = await shell.exec("f() { eval 'return 6'; echo no; }; f")
        assert result.stdout == ""
        assert result.exit_code == 6


class TestPrintf:
    """Test the printf builtin."""

    @pytest.mark.asyncio
    async def test_strings(self):
        shell = Shell()
        result = await shell.exec("printf '%s-%s\\n' a b")
        assert result.stdout == "a-b\n"
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_format_reused_for_extra_arguments(self):
        shell = Shell()
        result = await shell.exec("printf '%s\\n' a b c")
        assert result.stdout == "a\nb\nc\n"

    @pytest.mark.asyncio
    async def test_missing_arguments(self):
        shell = Shell()
        result = await shell.exec("printf '%s|%d|\\n'")
        assert result.stdout == "|0|\n"

    @pytest.mark.asyncio
    async def test_width_precision_and_flags(self):
        shell = Shell()
        result = await shell.exec("printf '%5d|%-5s|%05.1f|%.2s\\n' 42 ab 3.14159 abcdef")
        assert result.stdout == "   42|ab   |003.1|ab\n"

    @pytest.mark.asyncio
    async def test_star_width(self):
        shell = Shell()
        result = await shell.exec("printf '%*d|\\n' 4 7")
        assert result.stdout == "   7|\n"

    @pytest.mark.asyncio
    async def test_integer_bases(self):
        shell = Shell()
        result = await shell.exec("printf '%x %X %o %#x %#o\\n' 255 255 8 255 8")
        assert result.stdout == "ff FF 10 0xff 010\n"

    @pytest.mark.asyncio
    async def test_numeric_arguments(self):
        shell = Shell()
        result = await shell.exec("printf '%d\\n' 0x10 010 \"'A\"")
        assert result.stdout == "16\n8\n65\n"

    @pytest.mark.asyncio
    async def test_invalid_number(self):
        shell = Shell()
        result = await shell.exec("printf '%d\\n' abc")
        assert result.stdout == "0\n"
        assert result.exit_code == 1
        assert "abc: invalid number" in result.stderr

    @pytest.mark.asyncio
    async def test_percent_and_char(self):
        shell = Shell()
        result = await shell.exec("printf '%%%c\\n' hello")
        assert result.stdout == "%h\n"

    @pytest.mark.asyncio
    async def test_escapes_in_b_only(self):
        shell = Shell()
        result = await shell.exec("printf '%b|%s\\n' 'a\\tb' 'a\\tb'")
        assert result.stdout == "a\tb|a\\tb\n"

    @pytest.mark.asyncio
    async def test_backslash_c_stops_output(self):
        shell = Shell()
        result = await shell.exec("printf 'a\\cb'")
        assert result.stdout == "a"

    @pytest.mark.asyncio
    async def test_shell_quoting(self):
        shell = Shell()
        result = await shell.exec("printf '%q\\n' 'a b' plain ''")
        assert result.stdout == "a\\ b\nplain\n''\n"

    @pytest.mark.asyncio
    async def test_assign_to_variable(self):
        shell = Shell()
        result = await shell.exec("printf -v out '%03d' 7; echo $out")
        assert result.stdout == "007\n"

    @pytest.mark.asyncio
    async def test_invalid_variable_name(self):
        shell = Shell()
        result = await shell.exec("printf -v 1x '%s' a")
        assert result.exit_code == 2
        assert "not a valid identifier" in result.stderr

    @pytest.mark.asyncio
    async def test_no_format(self):
        shell = Shell()
        result = await shell.exec("printf")
        assert result.exit_code == 2
        assert "usage" in result.stderr


class TestIntrospection:
    """Test type, command and builtin."""

    @pytest.mark.asyncio
    async def test_type_descriptions(self):
        shell = Shell()
        result = await shell.exec("f() { :; }; type echo f cat if")
        assert result.stdout == (
            "echo is a shell builtin\n"
            "f is a function\n"
            "cat is an external command\n"
            "if is a shell keyword\n"
        )
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_type_kind_only(self):
        shell = Shell()
        result = await shell.exec("f() { :; }; type -t echo f cat if")
        assert result.stdout == "builtin\nfunction\nfile\nkeyword\n"

    @pytest.mark.asyncio
    async def test_type_all_follows_resolution_order(self):
        shell = Shell()
        result = await shell.exec("echo() { :; }; cat() { :; }; type -a echo cat")
        assert result.stdout == (
            "echo is a shell builtin\n"
            "echo is a function\n"
            "cat is a function\n"
            "cat is an external command\n"
        )

    @pytest.mark.asyncio
    async def test_type_not_found(self):
        shell = Shell()
        result = await shell.exec("type nosuch")
        assert result.exit_code == 1
        assert "type: nosuch: not found" in result.stderr

    @pytest.mark.asyncio
    async def test_type_without_names(self):
        shell = Shell()
        result = await shell.exec("type")
        assert result.exit_code == 1
        assert "usage" in result.stderr

    @pytest.mark.asyncio
    async def test_command_skips_functions(self):
        shell = Shell()
        script = "cat() { echo wrapped; }; echo hi | cat; echo hi | command cat"
        result = await shell.exec(script)
        assert result.stdout == "wrapped\nhi\n"

    @pytest.mark.asyncio
    async def test_command_runs_builtin(self):
        shell = Shell()
        result = await shell.exec("command echo hi")
        assert result.stdout == "hi\n"

    @pytest.mark.asyncio
    async def test_command_not_found(self):
        shell = Shell()
        result = await shell.exec("f() { :; }; command f")
        assert result.exit_code == 127
        assert "f: command not found" in result.stderr

    @pytest.mark.asyncio
    async def test_command_v(self):
        shell = Shell()
        result = await shell.exec("f() { :; }; command -v echo f cat nosuch")
        assert result.stdout == "echo\nf\ncat\n"
        assert result.exit_code == 1

    @pytest.mark.asyncio
    async def test_command_upper_v(self):
        shell = Shell()
        result = await shell.exec("command -V echo")
        assert result.stdout == "echo is a shell builtin\n"

    @pytest.mark.asyncio
    async def test_builtin_runs_builtin(self):
        shell = Shell()
        result = await shell.exec("builtin echo hi")
        assert result.stdout == "hi\n"

    @pytest.mark.asyncio
    async def test_builtin_passes_control_signals(self):
        shell = Shell()
        result = await shell.exec("f() { builtin return 3; echo no; }; f; echo $?")
        assert result.stdout == "3\n"

    @pytest.mark.asyncio
    async def test_builtin_rejects_other_commands(self):
        shell = Shell()
        result = await shell.exec("builtin cat")
        assert result.exit_code == 1
        assert "cat: not a shell builtin" in result.stderr

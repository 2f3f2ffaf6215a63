"""Tests for process spawners."""

import shutil

import pytest
from minish import (
    BufferOutput,
    ChainSpawner,
    CommandContext,
    CommandNotFound,
    CommandRegistrySpawner,
    ExecResult,
    Shell,
    StringInput,
    SubprocessSpawner,
)
from minish.commands import create_command_registry


class GreetCommand:
    name = "greet"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        who = ctx.env.get("WHO", "nobody")
        return ExecResult(stdout=f"hello {who}\n", stderr="", exit_code=0)


class FailCommand:
    name = "fail"

    async def execute(self, args: list[str], ctx: CommandContext) -> ExecResult:
        return ExecResult(stdout="", stderr="failed\n", exit_code=int(args[0]) if args else 1)


class TestCommandRegistrySpawner:
    """Test in-process command dispatch."""

    def test_can_spawn(self):
        spawner = CommandRegistrySpawner({"greet": GreetCommand()})
        assert spawner.can_spawn("greet")
        assert not spawner.can_spawn("other")

    def test_register(self):
        spawner = CommandRegistrySpawner()
        spawner.register(FailCommand())
        assert spawner.names == ["fail"]

    @pytest.mark.asyncio
    async def test_spawn_writes_result(self):
        spawner = CommandRegistrySpawner({"greet": GreetCommand()})
        stdout, stderr = BufferOutput(), BufferOutput()
        status = await spawner.spawn(
            "greet", [], stdin=StringInput(), stdout=stdout, stderr=stderr, env={"WHO": "you"}
        )
        assert status == 0
        assert stdout.getvalue() == "hello you\n"

    @pytest.mark.asyncio
    async def test_spawn_unknown(self):
        spawner = CommandRegistrySpawner()
        with pytest.raises(CommandNotFound):
            await spawner.spawn(
                "nope", [], stdin=StringInput(), stdout=BufferOutput(),
                stderr=BufferOutput(), env={},
            )

    @pytest.mark.asyncio
    async def test_status_masked_to_byte(self):
        shell = Shell(commands={"fail": FailCommand()})
        result = await shell.exec("fail 258")
        assert result.exit_code == 2
        assert result.stderr == "failed\n"


class TestEnvironmentExport:
    """Test which variables external commands see."""

    @pytest.mark.asyncio
    async def test_unexported_variable_not_visible(self):
        shell = Shell(commands={"greet": GreetCommand()})
        result = await shell.exec("WHO=local; greet")
        assert result.stdout == "hello nobody\n"

    @pytest.mark.asyncio
    async def test_exported_variable_visible(self):
        shell = Shell(commands={"greet": GreetCommand()})
        result = await shell.exec("export WHO=world; greet")
        assert result.stdout == "hello world\n"

    @pytest.mark.asyncio
    async def test_prefix_assignment_visible(self):
        shell = Shell(commands={"greet": GreetCommand()})
        result = await shell.exec("WHO=prefix greet")
        assert result.stdout == "hello prefix\n"

    @pytest.mark.asyncio
    async def test_initial_env_is_exported(self):
        shell = Shell(env={"WHO": "initial"}, commands={"greet": GreetCommand()})
        result = await shell.exec("greet")
        assert result.stdout == "hello initial\n"


class TestChainSpawner:
    """Test spawner fallback order."""

    @pytest.mark.asyncio
    async def test_first_match_wins(self):
        first = CommandRegistrySpawner({"greet": GreetCommand()})
        second = CommandRegistrySpawner(create_command_registry())
        shell = Shell(spawner=ChainSpawner([first, second]))
        result = await shell.exec("greet | cat")
        assert result.stdout == "hello nobody\n"

    @pytest.mark.asyncio
    async def test_unknown_everywhere(self):
        shell = Shell(spawner=ChainSpawner([CommandRegistrySpawner()]))
        result = await shell.exec("cat")
        assert result.exit_code == 127


@pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX sh on PATH")
class TestSubprocessSpawner:
    """Test running real host programs."""

    @pytest.mark.asyncio
    async def test_run_program(self):
        shell = Shell(spawner=SubprocessSpawner())
        result = await shell.exec("sh -c 'echo from host'")
        assert result.stdout == "from host\n"
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_exit_status(self):
        shell = Shell(spawner=SubprocessSpawner())
        result = await shell.exec("sh -c 'exit 3'")
        assert result.exit_code == 3

    @pytest.mark.asyncio
    async def test_exported_environment(self):
        shell = Shell(spawner=SubprocessSpawner(inherit_environ=False))
        result = await shell.exec("export GREETING=hey; sh -c 'echo $GREETING'")
        assert result.stdout == "hey\n"

    @pytest.mark.asyncio
    async def test_pipe_through_host_program(self):
        spawner = ChainSpawner([
            CommandRegistrySpawner(create_command_registry()),
            SubprocessSpawner(),
        ])
        shell = Shell(spawner=spawner)
        result = await shell.exec("echo piped | sh -c 'cat' | tac")
        assert result.stdout == "piped\n"

    @pytest.mark.asyncio
    async def test_program_ignoring_stdin(self):
        shell = Shell(spawner=SubprocessSpawner())
        result = await shell.exec("sh -c 'echo done'", stdin="unread input\n")
        assert result.stdout == "done\n"

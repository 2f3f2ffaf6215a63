"""Pipeline execution.

A single-command pipeline runs directly in the current environment. A
multi-stage pipeline starts every stage as its own asyncio task, each
against a forked environment, and connects neighbouring stages with a
bounded Pipe. The pipeline's status is the status of the last stage;
negation is applied to that status once every stage has finished.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..ast.types import CommandNode, Pipeline
from ..errors import ExitError
from ..streams import Pipe, PipeInput, PipeOutput, StreamSet
from .types import Outcome

if TYPE_CHECKING:
    from .types import InterpreterContext

logger = logging.getLogger(__name__)

# Status of a stage that wrote to a pipe whose reader had already finished.
BROKEN_PIPE_STATUS = 141


async def execute_pipeline(ctx: "InterpreterContext", node: Pipeline) -> Outcome:
    """Execute a pipeline and record its status in ``$?``."""
    if len(node.commands) == 1:
        try:
            outcome = await ctx.execute_command(node.commands[0])
        except ExitError as error:
            # `! exit N` negates N instead of ending the script
            if not node.negated:
                raise
            outcome = error.exit_code
    else:
        outcome = await _run_stages(ctx, node.commands)

    if not isinstance(outcome, int):
        return outcome
    if node.negated:
        outcome = 1 if outcome == 0 else 0
    ctx.env.last_exit_code = outcome
    return outcome


async def _run_stages(ctx: "InterpreterContext", commands: tuple[CommandNode, ...]) -> int:
    pipes = [Pipe(ctx.limits.pipe_capacity) for _ in commands[1:]]
    tasks = []
    for index, command in enumerate(commands):
        stdin = ctx.io.stdin if index == 0 else PipeInput(pipes[index - 1])
        stdout = ctx.io.stdout if index == len(commands) - 1 else PipeOutput(pipes[index])
        io = StreamSet(stdin, stdout, ctx.io.stderr)
        tasks.append(asyncio.ensure_future(_run_stage(ctx, command, io, index)))

    try:
        statuses = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    logger.debug("pipeline finished with stage statuses %r", statuses)
    return statuses[-1]


async def _run_stage(
    ctx: "InterpreterContext", command: CommandNode, io: StreamSet, index: int
) -> int:
    logger.debug("pipeline stage %d starting", index)
    try:
        status = await ctx.run_isolated(command, io)
    except BrokenPipeError:
        status = BROKEN_PIPE_STATUS
    finally:
        # Closing our ends unblocks the neighbours: EOF for the reader
        # downstream, BrokenPipeError for the writer upstream.
        if isinstance(io.stdout, PipeOutput):
            await io.stdout.close()
        if isinstance(io.stdin, PipeInput):
            await io.stdin.close()
    logger.debug("pipeline stage %d exited with %d", index, status)
    return status

"""
Fan-out/fan-in of independent awaitables.

`gather_all` runs named coroutines concurrently in an `asyncio.TaskGroup`.
The first failure cancels the remaining tasks and is re-raised as is,
not wrapped in an ExceptionGroup, so callers see the same error a
sequential run would have raised.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any


def _first_error(group: BaseExceptionGroup) -> BaseException:
    error: BaseException = group
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error


async def gather_all(**aws: Coroutine[Any, Any, Any]) -> dict[str, Any]:
    """
    Await all coroutines concurrently and return their results by name.

    Completion order is unspecified; the result mapping is only built once
    every task has finished.

    Raises:
        The first exception raised by any task, after its siblings have
        been cancelled.
    """
    if not aws:
        return {}

    try:
        async with asyncio.TaskGroup() as tg:
            tasks = {name: tg.create_task(aw, name=name) for name, aw in aws.items()}
    except BaseExceptionGroup as group:
        raise _first_error(group) from None

    return {name: task.result() for name, task in tasks.items()}

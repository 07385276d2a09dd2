"""Concurrent lookups that settle before a failure is reported."""
from __future__ import annotations
import asyncio
from typing import Any, Awaitable, List


async def gather_settled(*awaitables: Awaitable[Any]) -> List[Any]:
    """Await every lookup, then raise the first failure in argument order.

    Unlike a plain ``asyncio.gather``, no sibling is left running (or
    holding an unretrieved exception) once the call has raised.

    Returns:
        Results in argument order when every lookup succeeded
    """
    outcomes = await asyncio.gather(*awaitables, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return list(outcomes)

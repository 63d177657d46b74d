"""Shared concurrency primitives for the ingestion pipeline.

:func:`throttled_gather` is a drop-in replacement for ``asyncio.gather``
that wraps each awaitable in a semaphore acquire/release.  The ingestion
service uses it to embed one batch of records concurrently without
exceeding the embedding API's parallel request limit.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")

# Upper bound on in-flight embedding requests when no semaphore is supplied.
DEFAULT_CONCURRENCY = 5


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore for concurrency control.  A fresh semaphore of
        ``DEFAULT_CONCURRENCY`` slots is created per call when omitted, so
        the helper is safe to use from several event loops (tests run one
        loop per test).
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(DEFAULT_CONCURRENCY)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)

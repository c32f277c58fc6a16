"""
Ordered fallback over lazily evaluated async attempts.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Attempt = Callable[[], Awaitable[T | None]]


async def first_result(attempts: Iterable[Attempt[T]], label: str = "") -> T | None:
    """
    Run attempts in order and return the first non-None result.

    Attempts are zero-argument callables returning an awaitable; each one is
    only called once every earlier attempt has produced None, so later
    attempts cost nothing when an earlier one succeeds.

    Args:
        attempts: Ordered attempts (generators work and stay lazy)
        label: Name used in debug logging

    Returns:
        First non-None result, or None when every attempt came up empty
    """
    for index, attempt in enumerate(attempts):
        result = await attempt()
        if result is not None:
            if label:
                logger.debug("%s: attempt %d succeeded", label, index + 1)
            return result
    if label:
        logger.debug("%s: no attempt produced a result", label)
    return None

from __future__ import annotations

import asyncio
import random


def compute_backoff(attempt: int, base: float = 1.5, jitter: float = 0.5) -> float:
    """Compute exponential backoff with jitter."""
    delay = base ** attempt
    return delay + random.uniform(0, jitter)


async def schedule_retry(attempt: int, base: float = 1.5, jitter: float = 0.5) -> float:
    """Sleep for computed backoff delay before retrying a run."""
    delay = compute_backoff(attempt, base=base, jitter=jitter)
    await asyncio.sleep(delay)
    return delay


# Client errors that may succeed when sent again.
_TRANSIENT_CLIENT_STATUSES = {408, 409, 429}


def is_permanent_status(status_code: int) -> bool:
    """Return ``True`` for HTTP statuses that signal a malformed request."""
    return 400 <= status_code < 500 and status_code not in _TRANSIENT_CLIENT_STATUSES

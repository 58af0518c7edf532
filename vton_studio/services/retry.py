"""Retry policy for transient provider failures (rate limits, overload)."""

import logging
import random
from typing import Awaitable, Callable, TypeVar

from ..errors import RequestCancelled
from .lifecycle import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STATUS_CODES = (429, 503)
TRANSIENT_MESSAGE_MARKERS = ("high demand", "temporarily overloaded", "503", "429")


def _numeric(value) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def is_transient_error(error: BaseException) -> bool:
    """Whether ``error`` looks like a rate-limit or overload that may clear on retry."""
    if isinstance(error, RequestCancelled):
        return False

    status = getattr(error, "status", None)
    code = getattr(error, "code", None)
    if _numeric(status) in TRANSIENT_STATUS_CODES or _numeric(code) in TRANSIENT_STATUS_CODES:
        return True
    if status == "UNAVAILABLE":
        return True

    message = str(getattr(error, "message", None) or error)
    if any(marker in message for marker in TRANSIENT_MESSAGE_MARKERS):
        return True
    return "rate limit" in message.lower()


def backoff_delay_ms(attempt: int, base_delay_ms: int, jitter_ms: int, rng: random.Random | None = None) -> float:
    """Delay before retry number ``attempt + 1``: exponential plus uniform jitter."""
    uniform = (rng or random).uniform
    return base_delay_ms * (2 ** attempt) + uniform(0, jitter_ms)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay_ms: int = 2000,
    *,
    token: CancellationToken | None = None,
    jitter_ms: int = 400,
    rng: random.Random | None = None,
) -> T:
    """Run ``operation``, retrying transient failures with backoff.

    The operation is invoked at most ``max_retries + 1`` times. Non-transient
    errors, and the last transient one, are re-raised unchanged. Cancellation
    is never retried.
    """
    token = token or CancellationToken()
    attempt = 0
    while True:
        token.raise_if_cancelled()
        try:
            return await operation()
        except RequestCancelled:
            raise
        except Exception as e:
            if not is_transient_error(e) or attempt >= max_retries:
                raise
            delay = backoff_delay_ms(attempt, base_delay_ms, jitter_ms, rng)
            logger.warning(
                "Transient provider error (%s). Retrying in %dms (attempt %d/%d)",
                e, delay, attempt + 1, max_retries,
            )
            await token.sleep(delay / 1000)
            attempt += 1

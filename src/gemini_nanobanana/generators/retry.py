"""Retry policy for Gemini API calls.

Decides which failures are worth another attempt and how long to wait
before it. The request pipeline drives a single tenacity loop with it.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import httpx
from tenacity import RetryCallState

from gemini_nanobanana.config.constants import Retries
from gemini_nanobanana.exceptions import RequestTimeoutError, TransientProviderError


class AttemptState(str, Enum):
    """Where a single pipeline execution currently is."""

    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED_PERMANENTLY = "failed_permanently"


def is_retryable_status(status: int) -> bool:
    """429 and every 5xx are transient; anything else is final."""
    return status in Retries.RETRYABLE_STATUS or 500 <= status < 600


def is_retryable(exc: BaseException) -> bool:
    """Check if exception is retryable (429, 5xx, timeouts, network errors)."""
    if isinstance(exc, (TransientProviderError, RequestTimeoutError)):
        return True
    if isinstance(exc, httpx.TransportError):
        return True
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff with a random jitter component.

    ``max_retries`` counts retries, so a call makes at most
    ``max_retries + 1`` attempts.
    """

    max_retries: int = Retries.MAX_RETRIES
    base_delay: float = Retries.BASE_DELAY
    jitter: float = Retries.JITTER
    random_fn: Callable[[float, float], float] = field(default=random.uniform, repr=False)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the zero-based ``attempt`` failed."""
        return self.base_delay * (2**attempt) + self.random_fn(0, self.jitter)

    def wait(self, retry_state: RetryCallState) -> float:
        """tenacity ``wait`` callback; attempt_number is one-based."""
        return self.delay_for(retry_state.attempt_number - 1)


@dataclass
class AttemptRecord:
    """Progress of one execution through the retry state machine."""

    state: AttemptState = AttemptState.ATTEMPTING
    attempt: int = 0
    last_status: int | None = None
    last_error: str | None = None

    @property
    def attempts(self) -> int:
        """Attempts made so far (``attempt`` is zero-based)."""
        return self.attempt + 1

    def log_extra(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "attempts": self.attempts,
            "lastStatus": self.last_status,
            "lastError": self.last_error,
        }

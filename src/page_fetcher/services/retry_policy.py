# src/page_fetcher/services/retry_policy.py
import enum
from dataclasses import dataclass, field
from typing import FrozenSet

from page_fetcher.exceptions import CONNECTION_ERROR, DNS_ERROR, EMPTY_CONTENT


class RetrievalState(str, enum.Enum):
    """States of a single retrieval run."""
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    TERMINAL_FAILURE = "terminal_failure"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"

    @property
    def is_final(self) -> bool:
        return self in (RetrievalState.TERMINAL_FAILURE, RetrievalState.SUCCESS, RetrievalState.EXHAUSTED)


class ErrorClass(str, enum.Enum):
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


DEFAULT_TERMINAL_CODES: FrozenSet[str] = frozenset({
    DNS_ERROR,
    CONNECTION_ERROR,
    EMPTY_CONTENT,
    "HTTP_403",
    "HTTP_404",
})


def classify_error(code: str, terminal_codes: FrozenSet[str] = DEFAULT_TERMINAL_CODES) -> ErrorClass:
    """Pure classification: is retrying this failure futile?"""
    return ErrorClass.TERMINAL if code in terminal_codes else ErrorClass.RETRYABLE


@dataclass(frozen=True)
class RetryPolicy:
    """
    Sequential retry policy with linear, attempt-indexed backoff.
    No jitter: attempt n waits n * backoff_ms before attempt n + 1.
    """
    max_attempts: int = 3
    backoff_ms: int = 1000
    terminal_codes: FrozenSet[str] = field(default=DEFAULT_TERMINAL_CODES)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_ms < 0:
            raise ValueError("backoff_ms cannot be negative")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after a failed attempt number `attempt` (1-based)."""
        return attempt * self.backoff_ms / 1000.0

    def next_state(self, attempt: int, code: str) -> RetrievalState:
        """Transition taken after attempt `attempt` failed with `code`."""
        if classify_error(code, self.terminal_codes) is ErrorClass.TERMINAL:
            return RetrievalState.TERMINAL_FAILURE
        if attempt >= self.max_attempts:
            return RetrievalState.EXHAUSTED
        return RetrievalState.BACKOFF

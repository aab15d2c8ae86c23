"""Bounded exponential-backoff retry for rate-limited provider calls.

Responsibilities:
- Normalize arbitrary provider exceptions into a small error record.
- Classify rate-limit shaped failures with an ordered list of predicate rules.
- Retry only rate-limited failures, doubling the wait after every attempt.

Key types:
- `ErrorRecord`: normalized `{status_codes, nested_code, message}` view of an exception.
- `RetryExecutor`: async executor applying a `RetryPolicy` to one operation.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..errors import RateLimitError
from ..models.datatypes import DEFAULT_RETRY_POLICY, RetryPolicy
from ..telemetry.logger import RunLogger

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]
Operation = Callable[[], Awaitable[T]]

_RATE_LIMIT_STATUS = 429
_RATE_LIMIT_MESSAGE_MARKERS = ("429", "RESOURCE_EXHAUSTED", "quota")


def _coerce_code(value: object) -> int | None:
    """Return an integer status code from int or digit-string values."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """Normalized failure shape used by rate-limit classification.

    Attributes:
        status_codes: Every numeric top-level status or code, then `response.status_code`.
        nested_code: Code of a nested `error` payload, when present.
        message: Textual error message plus any provider status string.
    """

    status_codes: tuple[int, ...]
    nested_code: int | None
    message: str

    @classmethod
    def from_exception(cls, error: BaseException) -> "ErrorRecord":
        """Build a record from the attribute shapes providers commonly raise."""

        candidates = [
            getattr(error, attribute, None) for attribute in ("status", "status_code", "code")
        ]
        candidates.append(getattr(getattr(error, "response", None), "status_code", None))
        status_codes = tuple(
            code for code in (_coerce_code(value) for value in candidates) if code is not None
        )

        nested = getattr(error, "error", None)
        if isinstance(nested, dict):
            nested_code = _coerce_code(nested.get("code"))
        else:
            nested_code = _coerce_code(getattr(nested, "code", None))

        parts = [str(error)]
        provider_code = getattr(error, "provider_code", None)
        if isinstance(provider_code, str) and provider_code:
            parts.append(provider_code)
        return cls(status_codes=status_codes, nested_code=nested_code, message=" ".join(parts))


RateLimitRule = Callable[[ErrorRecord], bool]

RATE_LIMIT_RULES: tuple[tuple[str, RateLimitRule], ...] = (
    ("status_code", lambda record: _RATE_LIMIT_STATUS in record.status_codes),
    ("nested_code", lambda record: record.nested_code == _RATE_LIMIT_STATUS),
    (
        "message",
        lambda record: any(marker in record.message for marker in _RATE_LIMIT_MESSAGE_MARKERS),
    ),
)


def is_rate_limited(error: BaseException) -> bool:
    """Return whether an exception should be treated as a retryable rate limit."""

    if isinstance(error, RateLimitError):
        return True
    record = ErrorRecord.from_exception(error)
    return any(rule(record) for _, rule in RATE_LIMIT_RULES)


class RetryExecutor:
    """Run async operations with bounded exponential backoff on rate limits."""

    def __init__(
        self,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        *,
        sleeper: Sleeper = asyncio.sleep,
        run_logger: RunLogger | None = None,
        classifier: Callable[[BaseException], bool] = is_rate_limited,
    ) -> None:
        """Initialize default policy, wait function, and classification hook."""

        self.policy = policy
        self._sleeper = sleeper
        self._run_logger = run_logger if run_logger is not None else RunLogger()
        self._classifier = classifier
        self.retry_attempt_count = 0

    async def execute(
        self,
        operation: Operation[T],
        policy: RetryPolicy | None = None,
        *,
        label: str = "operation",
    ) -> T:
        """Await `operation`, retrying rate-limited failures per policy.

        Non-rate-limited failures, and the last rate-limited failure once the budget is
        spent, propagate unchanged.
        """

        active_policy = policy if policy is not None else self.policy
        remaining = active_policy.max_retries
        delay_ms = active_policy.initial_delay_ms
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except Exception as exc:
                if remaining <= 0 or not self._classifier(exc):
                    raise
                self.retry_attempt_count += 1
                self._run_logger.log_retry(
                    attempt=attempt,
                    remaining=remaining,
                    delay_ms=delay_ms,
                    operation=label,
                )
                await self._sleeper(delay_ms / 1000.0)
                remaining -= 1
                delay_ms = int(delay_ms * active_policy.backoff_multiplier)


async def retry_operation(
    operation: Operation[T],
    retries: int = 3,
    initial_delay_ms: int = 2000,
    *,
    sleeper: Sleeper = asyncio.sleep,
) -> T:
    """Run one operation with an ad-hoc policy of `retries` and `initial_delay_ms`."""

    executor = RetryExecutor(
        RetryPolicy(max_retries=retries, initial_delay_ms=initial_delay_ms),
        sleeper=sleeper,
    )
    return await executor.execute(operation)

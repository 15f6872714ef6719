from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from catalog_sync.json_logger import JsonLogger

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 2
    base_delay_ms: int = 1_500
    max_delay_ms: int = 30_000
    task_name: str = "Task"

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0; got {self.retries}")
        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("retry delays must be non-negative")

    @property
    def attempts(self) -> int:
        return self.retries + 1

    def delay_ms(self, attempt: int) -> int:
        """Backoff before the attempt after ``attempt`` (1-based)."""

        return min(self.base_delay_ms * 2 ** (attempt - 1), self.max_delay_ms)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    logger: JsonLogger | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or the policy's attempts are spent.

    Any ``Exception`` counts as a failure. The last one is re-raised as-is once
    every attempt has failed.
    """

    attempt = 1
    while True:
        if logger:
            logger.debug(
                phase="retry",
                message=f"{policy.task_name}: attempt {attempt}/{policy.attempts}",
                task=policy.task_name,
                attempt=attempt,
            )
        try:
            return await operation()
        except Exception as exc:
            if attempt >= policy.attempts:
                if logger:
                    logger.error(
                        phase="retry",
                        message=f"{policy.task_name} failed after {policy.attempts} attempts",
                        task=policy.task_name,
                        error=str(exc),
                    )
                exc.add_note(f"{policy.task_name}: gave up after {policy.attempts} attempts")
                raise

            delay = policy.delay_ms(attempt)
            if logger:
                logger.warn(
                    phase="retry",
                    message=f"{policy.task_name} failed (attempt {attempt}); retrying in {delay}ms",
                    task=policy.task_name,
                    attempt=attempt,
                    delay_ms=delay,
                    error=str(exc),
                )
        await sleep(delay / 1000)
        attempt += 1

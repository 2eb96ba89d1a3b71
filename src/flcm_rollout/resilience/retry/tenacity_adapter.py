"""Resilience – TenacityRetryPolicy.

Remote flag config fetches are retried with a linearly growing back-off:
with ``linear(max_retries=3, delay=5)`` the waits are 5s, 10s and 15s, then
the last error propagates.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

import tenacity as ten

T = TypeVar("T")

RetryHook = Callable[[int, BaseException], None]


class TenacityRetryPolicy:
    """Async retry loop on top of ``tenacity.AsyncRetrying``.

    *on_retry* is called as ``on_retry(attempt_number, exc)`` before each
    sleep, i.e. only for failures that will be retried.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        wait: Any = None,
        retry: Any = None,
        on_retry: RetryHook | None = None,
    ) -> None:
        self._max_attempts = max_attempts
        self._wait = wait or ten.wait_fixed(1)
        self._retry = retry or ten.retry_if_exception_type(Exception)
        self._on_retry = on_retry

    @classmethod
    def linear(
        cls,
        max_retries: int,
        delay: float,
        *,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        on_retry: RetryHook | None = None,
    ) -> "TenacityRetryPolicy":
        return cls(
            max_attempts=max_retries + 1,
            wait=ten.wait_incrementing(start=delay, increment=delay),
            retry=ten.retry_if_exception_type(retry_on),
            on_retry=on_retry,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def _before_sleep(self, state: ten.RetryCallState) -> None:
        if self._on_retry is None or state.outcome is None:
            return
        exc = state.outcome.exception()
        if exc is not None:
            self._on_retry(state.attempt_number, exc)

    def _build_async_retrying(self) -> ten.AsyncRetrying:
        return ten.AsyncRetrying(
            stop=ten.stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=self._retry,
            reraise=True,
            before_sleep=self._before_sleep,
        )

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        async for attempt in self._build_async_retrying():
            with attempt:
                result = await func()
        return result  # type: ignore[return-value]


__all__ = ["RetryHook", "TenacityRetryPolicy"]

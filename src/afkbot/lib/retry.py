"""Uncapped retry loops using tenacity.

The reconnect loop must keep trying for as long as the caller wants it
to: no attempt cap, no growing backoff. Throttling is the caller's job
(the attempt body itself waits a fixed delay before doing any work), so
the retry controller re-runs a failed attempt immediately.

Examples:
    Retry a connect until it succeeds or the operator disables it::

        >>> async for attempt in retry_while(
        ...     keep_going=lambda: state.enabled,
        ...     exceptions=(ConnectFailed,),
        ... ):
        ...     with attempt:
        ...         await asyncio.sleep(delay)
        ...         await connect()

    When ``keep_going`` turns false after a failure, the last exception
    is re-raised to the caller.
"""

from collections.abc import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    wait_none,
)

FailureHook = Callable[[BaseException, int], None]
"""Called with (exception, attempt_number) after each failed attempt."""

RetryHook = Callable[[int], None]
"""Called with the number of the attempt about to start."""


def retry_while(
    *,
    keep_going: Callable[[], bool],
    exceptions: tuple[type[BaseException], ...],
    on_failure: FailureHook | None = None,
    before_retry: RetryHook | None = None,
) -> AsyncRetrying:
    """Build an ``AsyncRetrying`` that retries until *keep_going* is false.

    Args:
        keep_going: Checked after every failure; returning False stops
            the loop and re-raises the failure.
        exceptions: Exception types that count as retryable failures.
            Anything else propagates immediately.
        on_failure: Reporting hook for each failed attempt.
        before_retry: Hook run right before the next attempt starts.

    Returns:
        An async-iterable retry controller.
    """

    def stop(_retry_state: RetryCallState) -> bool:
        return not keep_going()

    def after(retry_state: RetryCallState) -> None:
        if on_failure is None or retry_state.outcome is None:
            return
        exc = retry_state.outcome.exception()
        if exc is not None:
            on_failure(exc, retry_state.attempt_number)

    def before_sleep(retry_state: RetryCallState) -> None:
        if before_retry is not None:
            before_retry(retry_state.attempt_number + 1)

    return AsyncRetrying(
        retry=retry_if_exception_type(exceptions),
        stop=stop,
        wait=wait_none(),
        after=after,
        before_sleep=before_sleep,
        reraise=True,
    )

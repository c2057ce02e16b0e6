"""Retry helpers for model calls.

Builds tenacity Retrying objects with exponential backoff and the
before_sleep callbacks that report each failed attempt.
"""

from collections.abc import Callable

import logfire
from rich.console import Console
from tenacity import (
    BaseRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


def get_retryer(
    max_attempts: int = 2,
    wait_min: float = 1.0,
    wait_max: float = 10.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    log_callback: Callable[[RetryCallState], None] | None = None,
) -> BaseRetrying:
    """Create a tenacity Retrying object that reraises the last failure.

    Args:
        max_attempts: Maximum number of attempts. Defaults to 2.
        wait_min: Minimum wait between attempts in seconds.
        wait_max: Maximum wait between attempts in seconds.
        exceptions: Exception types that trigger another attempt.
        log_callback: Optional before_sleep callback; receives the retry state.

    Returns:
        A configured tenacity.Retrying object.

    """
    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=wait_min, max=wait_max),
        retry=retry_if_exception_type(exceptions),
        before_sleep=log_callback,
        reraise=True,
    )


def log_retry(retry_state: RetryCallState) -> None:
    """Default before_sleep callback: log the failed attempt with logfire."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logfire.warn(
        'Retrying operation',
        attempt=retry_state.attempt_number,
        error=str(exception) if exception else 'Unknown error',
    )


def retry_reporter(
    operation: str, max_attempts: int, console: Console | None = None
) -> Callable[[RetryCallState], None]:
    """Build a before_sleep callback for one named operation.

    Args:
        operation: Short name used in log records and console lines
        max_attempts: Total attempts, shown as ``attempt/max``
        console: Optional Rich console for a progress line

    Returns:
        Callback suitable for ``get_retryer(log_callback=...)``.

    """

    def report(retry_state: RetryCallState) -> None:
        log_retry(retry_state)
        attempt = retry_state.attempt_number
        logfire.info('Retrying {operation}', operation=operation, attempt=attempt, max_attempts=max_attempts)
        if console:
            console.print(f'[yellow]  → {operation} retry {attempt}/{max_attempts}...[/yellow]')

    return report

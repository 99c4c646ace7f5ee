"""
Resilient execution of single provider requests.

``ResilientExecutor`` runs one network attempt at a time and, under a
``RetryPolicy``, retries transient failures with exponential backoff,
enforces a per-attempt timeout and honours the caller's cancellation token.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, TypeVar

from ..observability.logging import ResilienceLogger
from .backoff import calculate_backoff
from .cancellation import CancellationSignal, CancellationToken, cancellation_future, link_token
from .error_classifier import ErrorClassifier
from .errors import AttemptTimeoutError, CancelledError
from .policy import Callback, RetryContext, RetryEvents, RetryPolicy

logger = ResilienceLogger("retry")

T = TypeVar('T')

Operation = Callable[[CancellationToken], Awaitable[T]]


class ResilientExecutor:
    """
    Wraps async operations with retry, timeout and cancellation.

    This class handles:
    - Retry decisions through ErrorClassifier
    - Exponential backoff with multiplicative jitter
    - Per-attempt timeouts
    - Cooperative cancellation of attempts and backoff sleeps

    The executor keeps no per-call state, so one instance can serve
    concurrent calls. ``default_policy`` and ``default_events`` play the role
    of provider-level configuration; per-call values are layered on top.
    """

    def __init__(
        self,
        default_policy: Optional[RetryPolicy] = None,
        default_events: Optional[RetryEvents] = None
    ):
        self.default_policy = default_policy or RetryPolicy()
        self.default_events = default_events or RetryEvents()

    async def execute(
        self,
        operation: Operation[T],
        context: RetryContext,
        policy: Optional[RetryPolicy] = None,
        events: Optional[RetryEvents] = None,
        cancel_token: Optional[CancellationSignal] = None
    ) -> T:
        """
        Execute an operation with retry logic.

        Args:
            operation: Async callable performing exactly one attempt; receives
                a per-attempt cancellation token
            context: Call context passed to event callbacks
            policy: Per-call policy, merged over ``default_policy``
            events: Per-call callbacks, replacing ``default_events``
            cancel_token: Caller's cancellation token

        Returns:
            Result of the first successful attempt

        Raises:
            CancelledError: If ``cancel_token`` fires before or during an attempt
                or during a backoff sleep
            The original error if it is fatal, a context window error, or
            retries are exhausted
        """
        policy = self.default_policy.merge(policy)
        events = events if events is not None else self.default_events
        attempt = 0

        while True:
            if cancel_token is not None and cancel_token.is_cancelled:
                raise CancelledError(reason=getattr(cancel_token, "reason", None))

            try:
                result = await self._run_attempt(operation, context, policy, events, cancel_token)

            except CancelledError:
                logger.debug("Operation cancelled", context, attempt=attempt)
                raise

            except Exception as error:
                status = ErrorClassifier.get_status(error)

                # Never retried and never counted against max_retries
                if ErrorClassifier.is_context_window_error(error):
                    logger.debug(
                        "Context window exceeded, not retrying",
                        context,
                        attempt=attempt,
                        status=status
                    )
                    raise

                if attempt < policy.max_retries and ErrorClassifier.is_retryable(error, policy):
                    delay = calculate_backoff(attempt, policy)

                    logger.warning(
                        f"Retrying after {type(error).__name__}",
                        context,
                        attempt=attempt + 1,
                        max_retries=policy.max_retries,
                        status=status,
                        delay_ms=delay
                    )
                    await self._emit(events.on_retry, attempt, error, delay, context)

                    await self._sleep(delay, cancel_token)
                    attempt += 1
                    continue

                if attempt >= policy.max_retries:
                    logger.error(
                        "Max retries exceeded",
                        context,
                        error=error,
                        attempts=attempt,
                        status=status
                    )
                    await self._emit(events.on_max_retries_exceeded, attempt, error, context)
                else:
                    logger.debug(
                        f"Not retrying {type(error).__name__}",
                        context,
                        attempt=attempt,
                        status=status
                    )
                raise

            duration = context.elapsed_ms()
            if attempt > 0:
                logger.info(
                    f"Succeeded after {attempt} retries",
                    context,
                    attempts=attempt,
                    duration_ms=duration
                )
            else:
                logger.debug("Succeeded on first attempt", context, duration_ms=duration)

            await self._emit(events.on_success, attempt, duration, context)
            return result

    async def _run_attempt(
        self,
        operation: Operation[T],
        context: RetryContext,
        policy: RetryPolicy,
        events: RetryEvents,
        cancel_token: Optional[CancellationSignal]
    ) -> T:
        """Run one attempt, racing it against cancellation and the timeout."""
        attempt_token, unlink = link_token(cancel_token)
        cancel_waiter = None
        unsubscribe = None

        try:
            task = asyncio.ensure_future(operation(attempt_token))
            waiters = {task}

            if cancel_token is not None:
                cancel_waiter, unsubscribe = cancellation_future(cancel_token)
                waiters.add(cancel_waiter)

            timeout = policy.timeout_ms / 1000 if policy.timeout_ms else None

            try:
                done, _ = await asyncio.wait(
                    waiters,
                    timeout=timeout,
                    return_when=asyncio.FIRST_COMPLETED
                )
            except BaseException:
                # The surrounding task was cancelled; take the attempt down with it
                attempt_token.cancel("aborted")
                task.cancel()
                raise
        finally:
            unlink()
            if unsubscribe is not None:
                unsubscribe()
            if cancel_waiter is not None and not cancel_waiter.done():
                cancel_waiter.cancel()

        if task in done:
            return task.result()

        if cancel_waiter is not None and cancel_waiter in done:
            reason = getattr(cancel_token, "reason", None)
            attempt_token.cancel(reason)
            await _abandon(task)
            raise CancelledError(reason=reason)

        attempt_token.cancel("timeout")
        await _abandon(task)

        logger.warning("Attempt timed out", context, timeout_ms=policy.timeout_ms)
        await self._emit(events.on_timeout, policy.timeout_ms, context)
        raise AttemptTimeoutError(policy.timeout_ms)

    async def _sleep(self, delay_ms: int, cancel_token: Optional[CancellationSignal]) -> None:
        """Sleep between attempts; cancellation ends the sleep with CancelledError."""
        seconds = delay_ms / 1000

        if cancel_token is None:
            await asyncio.sleep(seconds)
            return

        waiter, unsubscribe = cancellation_future(cancel_token)
        try:
            await asyncio.wait_for(waiter, timeout=seconds)
        except asyncio.TimeoutError:
            return
        finally:
            unsubscribe()

        raise CancelledError(reason=getattr(cancel_token, "reason", None))

    async def _emit(self, callback: Optional[Callback], *args) -> None:
        """Invoke an event callback; failures are logged, not raised."""
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.error(
                "Retry event callback failed",
                callback=getattr(callback, "__name__", repr(callback)),
                exc_info=True
            )


async def _abandon(task: asyncio.Future) -> None:
    """Cancel an attempt we no longer wait for and give it one tick to unwind."""
    task.cancel()
    task.add_done_callback(_discard_result)
    await asyncio.sleep(0)


def _discard_result(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()


_default_executor = ResilientExecutor()


async def with_retry(
    operation: Operation[T],
    context: RetryContext,
    policy: Optional[RetryPolicy] = None,
    events: Optional[RetryEvents] = None,
    cancel_token: Optional[CancellationSignal] = None
) -> T:
    """Execute ``operation`` with the shared default executor."""
    return await _default_executor.execute(operation, context, policy, events, cancel_token)

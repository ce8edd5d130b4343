"""Retry Executor — re-invokes a remote call while its failures classify as transient.

Invariants:
    - Success returns immediately; attempt counter never outlives one execute() call
    - Non-retryable failure → ClientRejectedError after exactly one invocation (fail fast)
    - Retryable failure past the BackoffPolicy ceiling → RetriesExhaustedError with the last error
    - ComputeOpsError raised by the call itself propagates unchanged (already classified)
    - Waits go through the injected sleep and yield to the event loop; nothing is held across attempts
    - Cancellation signal aborts the wait (or the next attempt) → OperationCancelledError
    - Optional deadline: a retry wait that would reach it → DeadlineExceededError instead
    - A server Retry-After is a floor on the wait, never shortens the backoff curve
    - asyncio.CancelledError (BaseException) passes through uncaught

Design Decisions:
    - Classifier, sleep and clock injected via constructor: tests swap in deterministic fakes
      without patching module globals
    - The pending delay counts toward max_elapsed: never sleep past the elapsed ceiling
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from collections.abc import Callable

from computeops.core.backoff import BackoffPolicy
from computeops.core.classify import Classification, classify_error, retry_after_of
from computeops.core.errors import (
    ClientRejectedError,
    ComputeOpsError,
    DeadlineExceededError,
    ErrorCode,
    ErrorContext,
    OperationCancelledError,
    RetriesExhaustedError,
)
from computeops.core.protocols import AsyncCall, Clock, Sleep, T
from computeops.services.waiting import wait_or_cancel

logger = logging.getLogger(__name__)

Classifier = Callable[[BaseException | None, int], Classification]


@dataclass
class RetryAttempt:
    """Mutable counters for one logical call."""
    started_at: float
    attempts: int = 0
    last_error: BaseException | None = field(default=None, repr=False)

    def elapsed(self, now: float) -> float:
        return now - self.started_at


class RetryExecutor:
    """Applies classifier + backoff policy around an arbitrary async call."""

    def __init__(
        self,
        policy: BackoffPolicy,
        classifier: Classifier = classify_error,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ):
        self.policy = policy
        self.classifier = classifier
        self.sleep = sleep
        self.clock = clock

    async def execute(
        self,
        call: AsyncCall[T],
        *,
        description: str = "call",
        context: ErrorContext | None = None,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> T:
        """Run `call` until it succeeds or fails for good.

        `deadline` is an absolute reading of the executor's clock; no retry wait is
        started that would reach it.
        """
        state = RetryAttempt(started_at=self.clock())
        while True:
            if cancel is not None and cancel.is_set():
                raise OperationCancelledError(
                    f"{description} (before attempt {state.attempts + 1})",
                    context=self._context(context, state),
                )
            state.attempts += 1
            try:
                result = await call()
            except ComputeOpsError:
                raise
            except Exception as e:
                state.last_error = e
                delay = await self._next_delay_or_raise(
                    e, state, description, context, deadline,
                )
            else:
                if state.attempts > 1:
                    logger.info(
                        f"{description} succeeded after {state.attempts} attempts",
                        extra={"attempt": state.attempts},
                    )
                return result

            if not await wait_or_cancel(delay, cancel, self.sleep):
                raise OperationCancelledError(
                    f"{description} retry wait", context=self._context(context, state),
                )

    async def _next_delay_or_raise(
        self,
        error: Exception,
        state: RetryAttempt,
        description: str,
        context: ErrorContext | None,
        deadline: float | None,
    ) -> float:
        """Classify a failure; return the wait before the next attempt or raise the final error."""
        verdict = self.classifier(error, state.attempts)
        ctx = self._context(context, state)

        if not verdict.retry:
            logger.error(
                f"{description} rejected (non-retryable): {error}",
                extra={
                    **ctx.log_fields(),
                    "status_code": verdict.status_code,
                    "error_class": verdict.error_class.value,
                },
            )
            raise ClientRejectedError(
                f"{description} rejected: {error}",
                status_code=verdict.status_code,
                context=ctx,
            ) from error

        delay = self.policy.next_delay(state.attempts - 1)
        retry_after = retry_after_of(error)
        if retry_after is not None:
            delay = max(delay, retry_after)
        now = self.clock()
        elapsed = state.elapsed(now)
        if self.policy.exhausted(state.attempts, elapsed + delay):
            logger.error(
                f"{description} failed after {state.attempts} attempt(s): {error}",
                extra={**ctx.log_fields(), "error_code": verdict.error_code.value},
            )
            raise RetriesExhaustedError(
                state.attempts, error, verdict.error_code, context=ctx,
            ) from error

        if deadline is not None and now + delay >= deadline:
            logger.error(
                f"{description} failed after {state.attempts} attempt(s), "
                f"deadline reached: {error}",
                extra={**ctx.log_fields(), "error_code": ErrorCode.DEADLINE_EXCEEDED.value},
            )
            raise DeadlineExceededError(state.attempts, error, context=ctx) from error

        logger.warning(
            f"{description} failed ({verdict.error_class.value}), "
            f"retry after {int(delay * 1000)}ms: {error}",
            extra={
                **ctx.log_fields(),
                "delay_ms": int(delay * 1000),
                "status_code": verdict.status_code,
                "error_class": verdict.error_class.value,
            },
        )
        return delay

    @staticmethod
    def _context(context: ErrorContext | None, state: RetryAttempt) -> ErrorContext:
        base = context or ErrorContext()
        return ErrorContext(
            project=base.project,
            zone=base.zone,
            region=base.region,
            operation=base.operation,
            resource=base.resource,
            attempt=state.attempts,
            debug_info=base.debug_info,
        )

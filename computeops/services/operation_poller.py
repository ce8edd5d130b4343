"""Operation Poller — drives one OperationRef to a terminal state.

Invariants:
    - Every status fetch goes through the RetryExecutor and the endpoint of the ref's scope
    - "Not DONE yet" is a normal continuation, never a retryable failure
    - DONE + error payload → OperationFailedError; DONE without → final OperationStatus returned
    - Deadline (optional, no poll limit by default) → PollTimedOutError, classifier not consulted;
      it also bounds the retries of a failing status fetch
    - Cancellation signal aborts the poll wait promptly → OperationCancelledError
    - Poll cadence comes from its own BackoffPolicy, independent of the RPC retry policy

Design Decisions:
    - Deadline checked before each wait, and the wait is clipped to the remaining time:
      expiry is detected without an extra sleep
    - One wait() call owns its ref exclusively; no state is kept between calls
"""

import asyncio
import logging
import time

from computeops.core.backoff import BackoffPolicy
from computeops.core.domain_types import OperationScope, PollVerdict
from computeops.core.errors import (
    DeadlineExceededError,
    ErrorContext,
    OperationCancelledError,
    OperationFailedError,
    PollTimedOutError,
)
from computeops.core.evaluate_operation import evaluate_operation
from computeops.core.protocols import Clock, OperationsApi, Sleep
from computeops.schemas.operation import OperationRef, OperationStatus
from computeops.services.retry_executor import RetryExecutor
from computeops.services.waiting import wait_or_cancel

logger = logging.getLogger(__name__)


class OperationPoller:
    """Polls the scoped status endpoint until an operation is DONE."""

    def __init__(
        self,
        operations: OperationsApi,
        executor: RetryExecutor,
        poll_policy: BackoffPolicy,
        deadline: float | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ):
        self.operations = operations
        self.executor = executor
        self.poll_policy = poll_policy
        self.deadline = deadline
        self.sleep = sleep
        self.clock = clock

    async def wait(
        self,
        ref: OperationRef,
        *,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> OperationStatus:
        """Poll `ref` until DONE. `deadline` (seconds) overrides the poller default."""
        deadline = deadline if deadline is not None else self.deadline
        context = operation_context(ref)
        started = self.clock()
        polls = 0

        while True:
            try:
                status = await self.executor.execute(
                    lambda: self.fetch(ref),
                    description=f"get operation {ref.name}",
                    context=context,
                    cancel=cancel,
                    deadline=None if deadline is None else started + deadline,
                )
            except DeadlineExceededError as e:
                raise PollTimedOutError(ref.name, deadline, context=context) from e
            polls += 1
            verdict = evaluate_operation(status)

            if verdict is PollVerdict.SUCCEEDED:
                logger.info(
                    f"Operation {ref.name} done after {polls} poll(s)",
                    extra={**context.log_fields(), "scope": ref.scope.value},
                )
                return status

            if verdict is PollVerdict.FAILED:
                logger.error(
                    f"Operation {ref.name} finished with errors",
                    extra={**context.log_fields(), "scope": ref.scope.value},
                )
                raise OperationFailedError(
                    ref.name,
                    status.error_details,
                    http_status=status.http_error_status_code,
                    context=context,
                )

            delay = self.poll_policy.next_delay(polls - 1)
            if deadline is not None:
                remaining = deadline - (self.clock() - started)
                if remaining <= 0:
                    raise PollTimedOutError(ref.name, deadline, context=context)
                delay = min(delay, remaining)

            logger.debug(
                f"Operation {ref.name} is {status.status.value}, next poll in {int(delay * 1000)}ms",
                extra={**context.log_fields(), "delay_ms": int(delay * 1000)},
            )
            if not await wait_or_cancel(delay, cancel, self.sleep):
                raise OperationCancelledError(
                    f"poll wait for operation {ref.name}", context=context,
                )

    async def fetch(self, ref: OperationRef) -> OperationStatus:
        """Single status fetch, routed by scope, under the ref's API version."""
        version = ref.api_version.value
        if ref.scope is OperationScope.ZONAL:
            return await self.operations.get_zone_operation(
                ref.project, ref.location, ref.name, version=version,
            )
        if ref.scope is OperationScope.REGIONAL:
            return await self.operations.get_region_operation(
                ref.project, ref.location, ref.name, version=version,
            )
        return await self.operations.get_global_operation(ref.project, ref.name, version=version)


def operation_context(ref: OperationRef) -> ErrorContext:
    return ErrorContext(
        project=ref.project, zone=ref.zone, region=ref.region, operation=ref.name,
    )

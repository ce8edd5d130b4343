"""Mutation Orchestrator — submit, extract the operation handle, poll to DONE.

Invariants:
    - submit runs through the RetryExecutor (insert calls get rate-limited too)
    - Submission failure is raised as-is and the poller is never invoked
    - Submission success always hands the OperationRef to the poller: no fire-and-forget path
    - Returns only with a DONE, error-free OperationStatus; every other outcome is a typed ComputeOpsError

Design Decisions:
    - Resource adapters supply only a submit closure: retry/poll logic lives here once,
      not once per resource kind
"""

import asyncio
import logging

from computeops.core.errors import ErrorContext
from computeops.core.protocols import AsyncCall
from computeops.schemas.operation import OperationRef, OperationStatus
from computeops.services.operation_poller import OperationPoller
from computeops.services.retry_executor import RetryExecutor

logger = logging.getLogger(__name__)


class MutationOrchestrator:
    """Runs a mutating call and waits for the operation it starts."""

    def __init__(self, executor: RetryExecutor, poller: OperationPoller):
        self.executor = executor
        self.poller = poller

    async def mutate(
        self,
        submit: AsyncCall[OperationRef],
        *,
        description: str = "mutation",
        context: ErrorContext | None = None,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> OperationStatus:
        ref = await self.executor.execute(
            submit, description=description, context=context, cancel=cancel,
        )
        logger.info(
            f"{description} submitted as operation {ref.name}",
            extra={
                "project": ref.project,
                "operation": ref.name,
                "scope": ref.scope.value,
            },
        )
        return await self.poller.wait(ref, cancel=cancel, deadline=deadline)

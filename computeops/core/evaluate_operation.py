"""Operation Evaluation — maps a status snapshot to the poller's next move.

Invariants:
    - evaluate_operation is PURE: returns a verdict, does NOT fetch or sleep
    - PENDING and RUNNING are the same verdict (CONTINUE): back-and-forth is allowed
    - DONE + error payload → FAILED, never SUCCEEDED because the HTTP call itself succeeded

Design Decisions:
    - Separated from the poller: the poll loop (shell) applies the verdict, this module decides it
"""

from computeops.core.domain_types import PollVerdict
from computeops.schemas.operation import OperationStatus


def evaluate_operation(status: OperationStatus) -> PollVerdict:
    if not status.done:
        return PollVerdict.CONTINUE
    if status.failed:
        return PollVerdict.FAILED
    return PollVerdict.SUCCEEDED

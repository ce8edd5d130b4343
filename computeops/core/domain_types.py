"""Domain Types — enums shared by the operation engine.

Invariants:
    - Operation lifecycle states mirror the remote API strings (PENDING, RUNNING, DONE)
    - DONE is the only terminal state; PENDING/RUNNING are both "not yet terminal"
    - OperationScope decides which status endpoint polls an operation
    - All valid states encoded as Enums: no raw string matching

Design Decisions:
    - str Enums: serialize to JSON and compare against API payloads without custom encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class OperationScope(str, Enum):
    """Granularity of an operation: selects the status endpoint."""
    ZONAL = "zonal"
    REGIONAL = "regional"
    GLOBAL = "global"


class OperationState(str, Enum):
    """Operation lifecycle states as reported by the status endpoint."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"

    @property
    def is_terminal(self) -> bool:
        return self is OperationState.DONE


class ErrorClass(str, Enum):
    """Outcome of classifying a single call failure."""
    SUCCESS = "success"
    TRANSIENT_NETWORK = "transient_network"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"


class ApiVersion(str, Enum):
    """API surface versions. Schemas differ; the operation contract does not."""
    V1 = "v1"
    BETA = "beta"
    ALPHA = "alpha"


class PollVerdict(str, Enum):
    """What the poller does with a freshly fetched status snapshot."""
    CONTINUE = "continue"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

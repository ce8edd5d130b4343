"""Boundary Protocols — contracts between the operation engine and its collaborators.

Invariants:
    - The engine NEVER imports the transport: it receives an OperationsApi by injection
    - One status getter per scope; zonal/regional getters take a location, global does not
    - Status getters take the API version of the mutation that started the operation
    - Sleep and clock are injected callables, never module-level globals

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: every implementation does IO
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

from computeops.schemas.operation import OperationStatus


T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]
AsyncCall = Callable[[], Awaitable[T]]


class OperationsApi(Protocol):
    """Status endpoints, one per operation scope."""
    async def get_zone_operation(
        self, project: str, zone: str, name: str, *, version: str | None = None,
    ) -> OperationStatus: ...
    async def get_region_operation(
        self, project: str, region: str, name: str, *, version: str | None = None,
    ) -> OperationStatus: ...
    async def get_global_operation(
        self, project: str, name: str, *, version: str | None = None,
    ) -> OperationStatus: ...


class ResourceApi(Protocol):
    """Raw REST calls used by the resource adapters."""
    async def request(
        self,
        method: str,
        path: str,
        *,
        version: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]: ...

"""Compute Client — thin resource adapters over the mutation orchestrator.

Invariants:
    - Every mutation goes through MutationOrchestrator.mutate (submit → poll → DONE)
    - Every read goes through the RetryExecutor
    - Adapters build only the submit closure and its path; no retry/poll logic here
    - API version (v1/beta/alpha) is a parameter, not a separate code path
    - The poll scope is the resource kind's scope; the returned Operation only confirms it

Design Decisions:
    - create() re-reads the resource after DONE: the server fills defaults and
      self-links the caller's body does not have
    - Resource kinds from resource_catalog (explicit mapping, no per-kind methods)
"""

import asyncio
from typing import Any

from computeops.core.domain_types import ApiVersion, OperationScope
from computeops.core.errors import ErrorContext
from computeops.core.protocols import ResourceApi
from computeops.schemas.operation import OperationRef, OperationStatus
from computeops.services.mutation_orchestrator import MutationOrchestrator
from computeops.services.resource_catalog import RESOURCE_KINDS, ResourceKind, get_kind
from computeops.services.retry_executor import RetryExecutor


class ComputeClient:
    """Create/delete/get resources and run instance actions, each awaited to completion."""

    def __init__(
        self,
        api: ResourceApi,
        orchestrator: MutationOrchestrator,
        executor: RetryExecutor,
    ):
        self.api = api
        self.orchestrator = orchestrator
        self.executor = executor

    # ─── Generic verbs ──────────────────────────────────────────

    async def create(
        self,
        kind: str | ResourceKind,
        project: str,
        body: dict[str, Any],
        *,
        location: str | None = None,
        version: ApiVersion = ApiVersion.V1,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> dict[str, Any]:
        """Insert a resource, wait for the operation, return the resource as stored."""
        kind = get_kind(kind)
        name = body.get("name")
        if not name:
            raise ValueError(f"{kind.name} body requires a 'name'")
        await self._mutate(
            "POST", kind.collection_path(project, location),
            kind, project, location, version,
            description=f"create {kind.name}/{name}",
            context=_context(kind, project, location, name),
            json=body, cancel=cancel, deadline=deadline,
        )
        return await self.get(
            kind, project, name, location=location, version=version, cancel=cancel,
        )

    async def delete(
        self,
        kind: str | ResourceKind,
        project: str,
        name: str,
        *,
        location: str | None = None,
        version: ApiVersion = ApiVersion.V1,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> OperationStatus:
        kind = get_kind(kind)
        return await self._mutate(
            "DELETE", kind.resource_path(project, name, location),
            kind, project, location, version,
            description=f"delete {kind.name}/{name}",
            context=_context(kind, project, location, name),
            cancel=cancel, deadline=deadline,
        )

    async def get(
        self,
        kind: str | ResourceKind,
        project: str,
        name: str,
        *,
        location: str | None = None,
        version: ApiVersion = ApiVersion.V1,
        cancel: asyncio.Event | None = None,
    ) -> dict[str, Any]:
        kind = get_kind(kind)
        path = kind.resource_path(project, name, location)
        return await self.executor.execute(
            lambda: self.api.request("GET", path, version=version.value),
            description=f"get {kind.name}/{name}",
            context=_context(kind, project, location, name),
            cancel=cancel,
        )

    # ─── Instance actions ───────────────────────────────────────

    async def start_instance(self, project: str, zone: str, instance: str, **kw) -> OperationStatus:
        return await self._instance_action(project, zone, instance, "start", **kw)

    async def stop_instance(self, project: str, zone: str, instance: str, **kw) -> OperationStatus:
        return await self._instance_action(project, zone, instance, "stop", **kw)

    async def suspend_instance(self, project: str, zone: str, instance: str, **kw) -> OperationStatus:
        return await self._instance_action(project, zone, instance, "suspend", **kw)

    async def resume_instance(self, project: str, zone: str, instance: str, **kw) -> OperationStatus:
        return await self._instance_action(project, zone, instance, "resume", **kw)

    async def attach_disk(
        self, project: str, zone: str, instance: str, attached_disk: dict[str, Any], **kw,
    ) -> OperationStatus:
        return await self._instance_action(
            project, zone, instance, "attachDisk", json=attached_disk, **kw,
        )

    async def detach_disk(
        self, project: str, zone: str, instance: str, device_name: str, **kw,
    ) -> OperationStatus:
        return await self._instance_action(
            project, zone, instance, "detachDisk", params={"deviceName": device_name}, **kw,
        )

    async def set_instance_metadata(
        self, project: str, zone: str, instance: str, metadata: dict[str, Any], **kw,
    ) -> OperationStatus:
        return await self._instance_action(
            project, zone, instance, "setMetadata", json=metadata, **kw,
        )

    # ─── Other resource actions ─────────────────────────────────

    async def resize_disk(
        self,
        project: str,
        zone: str,
        disk: str,
        size_gb: int,
        *,
        version: ApiVersion = ApiVersion.V1,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> OperationStatus:
        kind = RESOURCE_KINDS["disks"]
        return await self._mutate(
            "POST", f"{kind.resource_path(project, disk, zone)}/resize",
            kind, project, zone, version,
            description=f"resize disks/{disk}",
            context=_context(kind, project, zone, disk),
            json={"sizeGb": str(size_gb)}, cancel=cancel, deadline=deadline,
        )

    async def deprecate_image(
        self,
        project: str,
        image: str,
        deprecation_status: dict[str, Any],
        *,
        version: ApiVersion = ApiVersion.V1,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> OperationStatus:
        kind = RESOURCE_KINDS["images"]
        return await self._mutate(
            "POST", f"{kind.resource_path(project, image)}/deprecate",
            kind, project, None, version,
            description=f"deprecate images/{image}",
            context=_context(kind, project, None, image),
            json=deprecation_status, cancel=cancel, deadline=deadline,
        )

    # ─── Internals ──────────────────────────────────────────────

    async def _instance_action(
        self,
        project: str,
        zone: str,
        instance: str,
        action: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        version: ApiVersion = ApiVersion.V1,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> OperationStatus:
        kind = RESOURCE_KINDS["instances"]
        return await self._mutate(
            "POST", f"{kind.resource_path(project, instance, zone)}/{action}",
            kind, project, zone, version,
            description=f"{action} instances/{instance}",
            context=_context(kind, project, zone, instance),
            json=json, params=params, cancel=cancel, deadline=deadline,
        )

    async def _mutate(
        self,
        method: str,
        path: str,
        kind: ResourceKind,
        project: str,
        location: str | None,
        version: ApiVersion,
        *,
        description: str,
        context: ErrorContext,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> OperationStatus:
        async def submit() -> OperationRef:
            payload = await self.api.request(
                method, path, version=version.value, json=json, params=params,
            )
            return OperationRef.from_operation(
                project, payload, version, scope=kind.scope, location=location,
            )

        return await self.orchestrator.mutate(
            submit, description=description, context=context,
            cancel=cancel, deadline=deadline,
        )


def _context(
    kind: ResourceKind, project: str, location: str | None, name: str,
) -> ErrorContext:
    return ErrorContext(
        project=project,
        zone=location if kind.scope is OperationScope.ZONAL else None,
        region=location if kind.scope is OperationScope.REGIONAL else None,
        resource=f"{kind.name}/{name}",
    )

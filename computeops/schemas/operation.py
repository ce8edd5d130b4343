"""Operation Schemas — Pydantic models for operation handles and status snapshots.

Invariants:
    - OperationRef is frozen: created once by a submission, consumed once by the poller
    - ZONAL refs carry a zone, REGIONAL refs carry a region, GLOBAL refs carry neither
    - Scope comes from the caller (the resource kind) when known; the Operation resource
      (zone URL → zonal, region URL → regional, else global) must not contradict it
    - OperationStatus requires a status: a payload without one is rejected, never read as PENDING
    - OperationStatus.failed is True only on DONE with an error payload or HTTP error status

Design Decisions:
    - camelCase aliases with populate_by_name: parse API payloads and build in Python alike
    - extra="ignore": the Operation resource has many fields the engine never reads
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from computeops.core.domain_types import ApiVersion, OperationScope, OperationState


def last_segment(value: str | None) -> str | None:
    """`https://.../zones/us-central1-a` → `us-central1-a`; plain names pass through."""
    if not value:
        return None
    return value.rstrip("/").rsplit("/", 1)[-1]


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )


class OperationErrorDetail(_ApiModel):
    code: str = "UNKNOWN"
    location: str | None = None
    message: str = ""


class OperationErrorPayload(_ApiModel):
    errors: list[OperationErrorDetail] = Field(default_factory=list)


class OperationRef(BaseModel):
    """Handle to a pending remote operation."""

    model_config = ConfigDict(frozen=True)

    project: str
    name: str = Field(min_length=1)
    scope: OperationScope
    zone: str | None = None
    region: str | None = None
    api_version: ApiVersion = ApiVersion.V1

    @model_validator(mode="after")
    def check_location(self) -> "OperationRef":
        if self.scope is OperationScope.ZONAL and not self.zone:
            raise ValueError("zonal operation requires a zone")
        if self.scope is OperationScope.REGIONAL and not self.region:
            raise ValueError("regional operation requires a region")
        if self.scope is OperationScope.GLOBAL and (self.zone or self.region):
            raise ValueError("global operation must not carry a zone or region")
        return self

    @property
    def location(self) -> str | None:
        return self.zone or self.region

    @classmethod
    def from_operation(
        cls,
        project: str,
        payload: dict[str, Any],
        api_version: ApiVersion = ApiVersion.V1,
        *,
        scope: OperationScope | None = None,
        location: str | None = None,
    ) -> "OperationRef":
        """Build a ref from the Operation resource returned by a mutating call.

        `scope`/`location` are what the caller mutated. When given, they fill in a
        payload that omits its zone/region, and a payload that names another
        scope or location is rejected (ValueError).
        """
        name = payload.get("name") or ""
        zone = last_segment(payload.get("zone"))
        region = last_segment(payload.get("region"))
        if zone:
            reported, region = OperationScope.ZONAL, None
        elif region:
            reported = OperationScope.REGIONAL
        else:
            reported = None

        if scope is None:
            scope = reported or OperationScope.GLOBAL
        else:
            if reported is not None and reported is not scope:
                raise ValueError(
                    f"operation {name} is {reported.value}, expected {scope.value}"
                )
            if location and (zone or region) and (zone or region) != location:
                raise ValueError(
                    f"operation {name} is in {zone or region}, expected {location}"
                )
            if scope is OperationScope.ZONAL:
                zone = zone or location
            elif scope is OperationScope.REGIONAL:
                region = region or location
        return cls(
            project=project,
            name=name,
            scope=scope,
            zone=zone,
            region=region,
            api_version=api_version,
        )


class OperationStatus(_ApiModel):
    """Snapshot of an operation, re-fetched on every poll."""

    name: str = ""
    status: OperationState
    error: OperationErrorPayload | None = None
    http_error_status_code: int | None = None
    http_error_message: str | None = None
    progress: int | None = None
    operation_type: str | None = None
    target_link: str | None = None
    warnings: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def done(self) -> bool:
        return self.status.is_terminal

    @property
    def error_details(self) -> list[dict[str, Any]]:
        """Error payload as plain dicts (empty when the operation succeeded)."""
        if self.error is not None:
            details = [e.model_dump(exclude_none=True) for e in self.error.errors]
            return details or [{"code": "UNKNOWN", "message": "operation reported an empty error"}]
        if self.http_error_status_code and self.http_error_status_code >= 400:
            return [{
                "code": str(self.http_error_status_code),
                "message": self.http_error_message or "",
            }]
        return []

    @property
    def failed(self) -> bool:
        return self.done and bool(self.error_details)

"""Resource Catalog — the fixed set of resource kinds and where their collections live.

Invariants:
    - Each kind has exactly one scope; zonal/regional kinds need a location, global kinds reject one
    - Catalog is an explicit dict (no auto-discovery)
"""

from dataclasses import dataclass

from computeops.core.domain_types import OperationScope


@dataclass(frozen=True)
class ResourceKind:
    name: str
    collection: str
    scope: OperationScope

    def collection_path(self, project: str, location: str | None = None) -> str:
        if self.scope is OperationScope.GLOBAL:
            if location:
                raise ValueError(f"{self.name} is global; got location '{location}'")
            return f"projects/{project}/global/{self.collection}"
        if not location:
            raise ValueError(f"{self.name} is {self.scope.value}; a location is required")
        segment = "zones" if self.scope is OperationScope.ZONAL else "regions"
        return f"projects/{project}/{segment}/{location}/{self.collection}"

    def resource_path(self, project: str, name: str, location: str | None = None) -> str:
        return f"{self.collection_path(project, location)}/{name}"


_Z, _R, _G = OperationScope.ZONAL, OperationScope.REGIONAL, OperationScope.GLOBAL

RESOURCE_KINDS: dict[str, ResourceKind] = {
    kind.name: kind
    for kind in (
        ResourceKind("disks", "disks", _Z),
        ResourceKind("instances", "instances", _Z),
        ResourceKind("targetInstances", "targetInstances", _Z),
        ResourceKind("forwardingRules", "forwardingRules", _R),
        ResourceKind("subnetworks", "subnetworks", _R),
        ResourceKind("regionTargetHttpProxies", "targetHttpProxies", _R),
        ResourceKind("regionUrlMaps", "urlMaps", _R),
        ResourceKind("regionBackendServices", "backendServices", _R),
        ResourceKind("regionHealthChecks", "healthChecks", _R),
        ResourceKind("regionNetworkEndpointGroups", "networkEndpointGroups", _R),
        ResourceKind("firewalls", "firewalls", _G),
        ResourceKind("images", "images", _G),
        ResourceKind("machineImages", "machineImages", _G),
        ResourceKind("networks", "networks", _G),
    )
}


def get_kind(kind: str | ResourceKind) -> ResourceKind:
    if isinstance(kind, ResourceKind):
        return kind
    try:
        return RESOURCE_KINDS[kind]
    except KeyError:
        raise KeyError(
            f"Unknown resource kind '{kind}'. Known: {', '.join(sorted(RESOURCE_KINDS))}"
        ) from None

"""Compute Client — end-to-end tests through the real transport over httpx.MockTransport.

Tests cover:
    - create: insert → poll → get for zonal, regional and global kinds (and alpha/beta)
    - delete: DELETE + poll on the endpoint of the kind's scope
    - instance actions (start/stop/suspend/resume/attach/detach/setMetadata), resize, deprecate
    - insert/get/operation errors surfaced as typed failures
    - throttled insert retried; unknown kinds and missing locations rejected before any call
    - poll endpoint chosen by the resource kind even when the Operation omits its zone/region
    - status payloads that are not a parseable Operation surface as ClientRejectedError
"""

import json

import httpx
import pytest

from computeops.bootstrap import build_compute_client
from computeops.config import Settings
from computeops.core.domain_types import ApiVersion
from computeops.core.errors import (
    ClientRejectedError,
    OperationFailedError,
)

PROJECT = "test-project"
ZONE = "test-zone"
REGION = "test-region"
BASE = "http://compute.test/compute/"


class FakeComputeApi:
    """Minimal compute REST fake: records requests, serves operations and resources."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.resources: dict[str, dict] = {}
        self.insert_status: list[int] = []
        self.operation_script: list[dict] = [{"status": "DONE"}]
        self.operation_polls = 0
        self.get_error: int | None = None
        self.operation_location = True
        self.operation_body: str | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/compute/")
        version, _, path = path.partition("/")

        if "/operations/" in path:
            self.operation_polls += 1
            if self.operation_body is not None:
                return httpx.Response(200, text=self.operation_body)
            body = self.operation_script[min(self.operation_polls - 1, len(self.operation_script) - 1)]
            return httpx.Response(200, json={"name": path.rsplit("/", 1)[-1], **body})

        if request.method == "GET":
            if self.get_error:
                return httpx.Response(self.get_error, json={"error": {"code": self.get_error, "message": "get err"}})
            if path not in self.resources:
                return httpx.Response(404, json={"error": {"code": 404, "message": "not found"}})
            return httpx.Response(200, json=self.resources[path])

        if self.insert_status:
            code = self.insert_status.pop(0)
            return httpx.Response(code, json={"error": {"code": code, "message": "insert err"}})

        if request.method == "POST" and request.content:
            body = json.loads(request.content)
            if "name" in body:
                self.resources[f"{path}/{body['name']}"] = {**body, "selfLink": f"{BASE}{version}/{path}/{body['name']}"}
        return httpx.Response(200, json=_operation_for(path, self.operation_location))

    def calls(self, method: str) -> list[str]:
        return [
            f"{r.url.path}{'?' + r.url.query.decode() if r.url.query else ''}"
            for r in self.requests if r.method == method
        ]


def _operation_for(path: str, with_location: bool = True) -> dict:
    parts = path.split("/")
    op = {"name": "operation-1", "status": "PENDING"}
    if not with_location:
        return op
    if parts[2] == "zones":
        op["zone"] = f"{BASE}v1/projects/{parts[1]}/zones/{parts[3]}"
    elif parts[2] == "regions":
        op["region"] = f"{BASE}v1/projects/{parts[1]}/regions/{parts[3]}"
    return op


@pytest.fixture
def api():
    return FakeComputeApi()


@pytest.fixture
async def client(api):
    settings = Settings(
        compute_api_base_url=BASE,
        retry_max_attempts=4,
        retry_base_delay_ms=0,
        retry_max_delay_ms=0,
        retry_jitter=0,
        poll_base_delay_ms=0,
        poll_max_delay_ms=0,
    )
    http = httpx.AsyncClient(transport=httpx.MockTransport(api.handler), base_url=BASE)
    compute, transport = build_compute_client(settings, http_client=http)
    yield compute
    await transport.aclose()
    await http.aclose()


# ─── create ──────────────────────────────────────────────────────

@pytest.mark.parametrize("kind, location, collection, op_path", [
    ("disks", ZONE, f"projects/{PROJECT}/zones/{ZONE}/disks", f"zones/{ZONE}"),
    ("instances", ZONE, f"projects/{PROJECT}/zones/{ZONE}/instances", f"zones/{ZONE}"),
    ("targetInstances", ZONE, f"projects/{PROJECT}/zones/{ZONE}/targetInstances", f"zones/{ZONE}"),
    ("forwardingRules", REGION, f"projects/{PROJECT}/regions/{REGION}/forwardingRules", f"regions/{REGION}"),
    ("subnetworks", REGION, f"projects/{PROJECT}/regions/{REGION}/subnetworks", f"regions/{REGION}"),
    ("regionTargetHttpProxies", REGION, f"projects/{PROJECT}/regions/{REGION}/targetHttpProxies", f"regions/{REGION}"),
    ("regionNetworkEndpointGroups", REGION, f"projects/{PROJECT}/regions/{REGION}/networkEndpointGroups", f"regions/{REGION}"),
    ("firewalls", None, f"projects/{PROJECT}/global/firewalls", "global"),
    ("images", None, f"projects/{PROJECT}/global/images", "global"),
    ("machineImages", None, f"projects/{PROJECT}/global/machineImages", "global"),
    ("networks", None, f"projects/{PROJECT}/global/networks", "global"),
])
async def test_create_inserts_polls_and_reads_back(api, client, kind, location, collection, op_path):
    created = await client.create(kind, PROJECT, {"name": f"test-{kind}"}, location=location)

    assert created["name"] == f"test-{kind}"
    assert created["selfLink"].endswith(f"{collection}/test-{kind}")
    assert api.calls("POST") == [f"/compute/v1/{collection}"]
    assert api.calls("GET") == [
        f"/compute/v1/projects/{PROJECT}/{op_path}/operations/operation-1",
        f"/compute/v1/{collection}/test-{kind}",
    ]


@pytest.mark.parametrize("version", [ApiVersion.ALPHA, ApiVersion.BETA])
async def test_create_with_preview_versions(api, client, version):
    await client.create("instances", PROJECT, {"name": "test-instance"}, location=ZONE, version=version)
    assert api.calls("POST") == [f"/compute/{version.value}/projects/{PROJECT}/zones/{ZONE}/instances"]


async def test_create_insert_error_is_rejected_without_polling(api, client):
    api.insert_status = [400]
    with pytest.raises(ClientRejectedError) as exc:
        await client.create("disks", PROJECT, {"name": "test-disk"}, location=ZONE)
    assert exc.value.status_code == 400
    assert api.operation_polls == 0


async def test_create_get_error_surfaces(api, client):
    api.get_error = 403
    with pytest.raises(ClientRejectedError):
        await client.create("networks", PROJECT, {"name": "test-network"})
    assert api.operation_polls == 1


async def test_create_operation_error_surfaces(api, client):
    api.operation_script = [
        {"status": "RUNNING"},
        {"status": "DONE", "error": {"errors": [{"code": "QUOTA_EXCEEDED", "message": "wait err"}]}},
    ]
    with pytest.raises(OperationFailedError):
        await client.create("images", PROJECT, {"name": "test-image"})
    assert api.calls("GET") == [
        f"/compute/v1/projects/{PROJECT}/global/operations/operation-1",
        f"/compute/v1/projects/{PROJECT}/global/operations/operation-1",
    ]


async def test_throttled_insert_is_retried(api, client):
    api.insert_status = [429, 503]
    created = await client.create("disks", PROJECT, {"name": "test-disk"}, location=ZONE)
    assert created["name"] == "test-disk"
    assert len(api.calls("POST")) == 3


async def test_create_requires_name(client):
    with pytest.raises(ValueError):
        await client.create("disks", PROJECT, {}, location=ZONE)


async def test_unknown_kind_rejected(client):
    with pytest.raises(KeyError):
        await client.create("teapots", PROJECT, {"name": "t"})


async def test_zonal_kind_requires_location(api, client):
    with pytest.raises(ValueError):
        await client.delete("disks", PROJECT, "test-disk")
    assert api.requests == []


@pytest.mark.parametrize("kind, location, op_path", [
    ("disks", ZONE, f"zones/{ZONE}"),
    ("subnetworks", REGION, f"regions/{REGION}"),
])
async def test_poll_scope_follows_kind_when_operation_omits_location(api, client, kind, location, op_path):
    api.operation_location = False
    await client.create(kind, PROJECT, {"name": f"test-{kind}"}, location=location)
    assert api.calls("GET")[0] == f"/compute/v1/projects/{PROJECT}/{op_path}/operations/operation-1"


@pytest.mark.parametrize("body", ["{}", '{"name": "operation-1"}', "<html>ok</html>"])
async def test_unparseable_operation_status_is_rejected(api, client, body):
    api.operation_body = body
    with pytest.raises(ClientRejectedError):
        await client.create("disks", PROJECT, {"name": "test-disk"}, location=ZONE)
    assert api.operation_polls == 1


# ─── delete ──────────────────────────────────────────────────────

@pytest.mark.parametrize("kind, location, path, op_path", [
    ("disks", ZONE, f"zones/{ZONE}/disks/test-disks", f"zones/{ZONE}"),
    ("regionUrlMaps", REGION, f"regions/{REGION}/urlMaps/test-regionUrlMaps", f"regions/{REGION}"),
    ("regionBackendServices", REGION, f"regions/{REGION}/backendServices/test-regionBackendServices", f"regions/{REGION}"),
    ("regionHealthChecks", REGION, f"regions/{REGION}/healthChecks/test-regionHealthChecks", f"regions/{REGION}"),
    ("firewalls", None, "global/firewalls/test-firewalls", "global"),
])
async def test_delete_polls_scoped_endpoint(api, client, kind, location, path, op_path):
    final = await client.delete(kind, PROJECT, f"test-{kind}", location=location)
    assert final.done
    assert api.calls("DELETE") == [f"/compute/v1/projects/{PROJECT}/{path}"]
    assert api.calls("GET") == [f"/compute/v1/projects/{PROJECT}/{op_path}/operations/operation-1"]


# ─── actions ─────────────────────────────────────────────────────

INSTANCE = f"/compute/v1/projects/{PROJECT}/zones/{ZONE}/instances/test-instance"


@pytest.mark.parametrize("method, action", [
    ("start_instance", "start"),
    ("stop_instance", "stop"),
    ("suspend_instance", "suspend"),
    ("resume_instance", "resume"),
])
async def test_instance_lifecycle_actions(api, client, method, action):
    final = await getattr(client, method)(PROJECT, ZONE, "test-instance")
    assert final.done
    assert api.calls("POST") == [f"{INSTANCE}/{action}"]


async def test_attach_disk_sends_body(api, client):
    await client.attach_disk(PROJECT, ZONE, "test-instance", {"source": "disks/test-disk"})
    assert api.calls("POST") == [f"{INSTANCE}/attachDisk"]
    assert json.loads(api.requests[0].content) == {"source": "disks/test-disk"}


async def test_detach_disk_sends_device_name(api, client):
    await client.detach_disk(PROJECT, ZONE, "test-instance", "test-disk")
    assert api.calls("POST") == [f"{INSTANCE}/detachDisk?deviceName=test-disk"]


async def test_set_instance_metadata(api, client):
    metadata = {"fingerprint": "abc", "items": [{"key": "k", "value": "v"}]}
    await client.set_instance_metadata(PROJECT, ZONE, "test-instance", metadata)
    assert api.calls("POST") == [f"{INSTANCE}/setMetadata"]


async def test_resize_disk(api, client):
    await client.resize_disk(PROJECT, ZONE, "test-disk", 128)
    assert api.calls("POST") == [f"/compute/v1/projects/{PROJECT}/zones/{ZONE}/disks/test-disk/resize"]
    assert json.loads(api.requests[0].content) == {"sizeGb": "128"}


@pytest.mark.parametrize("version", [ApiVersion.V1, ApiVersion.ALPHA])
async def test_deprecate_image(api, client, version):
    await client.deprecate_image(PROJECT, "test-image", {"state": "DEPRECATED"}, version=version)
    assert api.calls("POST") == [
        f"/compute/{version.value}/projects/{PROJECT}/global/images/test-image/deprecate",
    ]
    assert api.calls("GET") == [
        f"/compute/{version.value}/projects/{PROJECT}/global/operations/operation-1",
    ]

"""Compute Transport — thin httpx wrapper over the compute REST API.

Invariants:
    - Non-2xx responses become ApiError (status code, parsed error envelope, Retry-After)
    - A 2xx status body that does not parse as an Operation fails validation, never defaults
    - Transport exceptions (httpx.TransportError) propagate untouched for the classifier
    - No retry here: retries belong to the RetryExecutor, one layer up
    - Implements OperationsApi: one status endpoint per scope (GET, or POST .../wait),
      under the API version of the mutation that started the operation

Design Decisions:
    - Caller may pass its own httpx.AsyncClient (auth, proxies, mock transport);
      the transport closes only a client it created
    - Wait endpoint is opt-in: the server long-polls up to ~2 minutes per call,
      which shifts cadence from the poll policy to the server
"""

import logging
from typing import Any

import httpx

from computeops.core.domain_types import ApiVersion
from computeops.core.errors import ApiError
from computeops.schemas.operation import OperationStatus

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://compute.googleapis.com/compute/"


class ComputeTransport:
    """REST calls against `{base_url}{version}/projects/...`."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        default_version: ApiVersion = ApiVersion.V1,
        timeout_seconds: float = 60,
        use_wait_endpoint: bool = False,
        http_client: httpx.AsyncClient | None = None,
        auth: httpx.Auth | None = None,
    ):
        self.default_version = default_version
        self.use_wait_endpoint = use_wait_endpoint
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(
            base_url=base_url if base_url.endswith("/") else base_url + "/",
            timeout=timeout_seconds,
            auth=auth,
        )

    async def __aenter__(self) -> "ComputeTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        version: str | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Issue one call; return the decoded JSON body ({} when empty)."""
        version = version or self.default_version.value
        url = f"{version}/{path.lstrip('/')}"
        response = await self.client.request(method, url, json=json, params=params)
        if response.is_error:
            error = ApiError.from_payload(
                response.status_code, _decode(response), retry_after=_retry_after(response),
            )
            logger.debug(
                f"{method} {url} → {response.status_code}: {error.message}",
                extra={"status_code": response.status_code},
            )
            raise error
        body = _decode(response)
        return body if isinstance(body, dict) else {}

    # ─── OperationsApi ──────────────────────────────────────────

    async def get_zone_operation(
        self, project: str, zone: str, name: str, *, version: str | None = None,
    ) -> OperationStatus:
        return await self._operation(f"projects/{project}/zones/{zone}/operations/{name}", version)

    async def get_region_operation(
        self, project: str, region: str, name: str, *, version: str | None = None,
    ) -> OperationStatus:
        return await self._operation(f"projects/{project}/regions/{region}/operations/{name}", version)

    async def get_global_operation(
        self, project: str, name: str, *, version: str | None = None,
    ) -> OperationStatus:
        return await self._operation(f"projects/{project}/global/operations/{name}", version)

    async def _operation(self, path: str, version: str | None) -> OperationStatus:
        if self.use_wait_endpoint:
            payload = await self.request("POST", f"{path}/wait", version=version)
        else:
            payload = await self.request("GET", path, version=version)
        return OperationStatus.model_validate(payload)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


def _retry_after(response: httpx.Response) -> float | None:
    """`Retry-After` in seconds (delta-seconds form only)."""
    value = response.headers.get("retry-after", "").strip()
    return float(value) if value.isdigit() else None

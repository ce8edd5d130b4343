"""Composition Root — builds the transport, policies, engine and client from Settings.

Invariants:
    - The only place that knows concrete classes; services receive collaborators
    - Retry and poll policies built as two independent BackoffPolicy instances
"""

import random

import httpx

from computeops.config import Settings
from computeops.core.backoff import BackoffPolicy
from computeops.infrastructure.compute_transport import ComputeTransport
from computeops.infrastructure.observability import setup_logging
from computeops.services.compute_client import ComputeClient
from computeops.services.mutation_orchestrator import MutationOrchestrator
from computeops.services.operation_poller import OperationPoller
from computeops.services.retry_executor import RetryExecutor


def retry_policy(settings: Settings, rng: random.Random | None = None) -> BackoffPolicy:
    return BackoffPolicy.from_ms(
        settings.retry_base_delay_ms,
        settings.retry_max_delay_ms,
        max_attempts=settings.retry_max_attempts,
        max_elapsed=settings.retry_max_elapsed_seconds,
        jitter=settings.retry_jitter,
        rng=(rng or random.Random()) if settings.retry_jitter else None,
    )


def poll_policy(settings: Settings) -> BackoffPolicy:
    return BackoffPolicy.from_ms(settings.poll_base_delay_ms, settings.poll_max_delay_ms)


def build_compute_client(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    auth: httpx.Auth | None = None,
    rng: random.Random | None = None,
    configure_logging: bool = False,
) -> tuple[ComputeClient, ComputeTransport]:
    """Wire everything. Caller owns the returned transport (close it when done)."""
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)
    transport = ComputeTransport(
        settings.compute_api_base_url,
        default_version=settings.compute_api_version,
        timeout_seconds=settings.compute_timeout_seconds,
        use_wait_endpoint=settings.compute_use_wait_endpoint,
        http_client=http_client,
        auth=auth,
    )
    executor = RetryExecutor(retry_policy(settings, rng))
    poller = OperationPoller(
        transport, executor, poll_policy(settings),
        deadline=settings.poll_deadline_seconds,
    )
    orchestrator = MutationOrchestrator(executor, poller)
    return ComputeClient(transport, orchestrator, executor), transport

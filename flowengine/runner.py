"""Build a FlowExecutor from configuration."""

from __future__ import annotations

import httpx

from flowengine.config import EngineConfig
from flowengine.credentials import CredentialSource
from flowengine.execution.dispatcher import ExecutionClient, ExecutionDispatcher
from flowengine.execution.executor import FlowExecutor, RemoteExecutor
from flowengine.execution.local import LocalSimulationExecutor
from flowengine.tasks.translator import TaskTranslator


def create_flow_executor(
    config: EngineConfig | None = None,
    credentials: CredentialSource | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FlowExecutor:
    """
    Select the execution strategy named by ``config.executor``.

    Args:
        config: Engine settings (defaults to EngineConfig.load())
        credentials: Credential source for task payloads
            (defaults to the environment-backed CredentialManager)
        transport: Optional httpx transport, e.g. httpx.MockTransport in tests
    """
    config = config or EngineConfig.load()
    translator = TaskTranslator(credentials=credentials)

    if config.executor == "local":
        executor = LocalSimulationExecutor(simulated_latency_ms=config.simulated_latency_ms)
        return FlowExecutor(executor, translator=translator)

    client = ExecutionClient(
        base_url=config.backend_url,
        timeout=config.timeout_seconds,
        transport=transport,
        headers=config.headers,
    )
    dispatcher = ExecutionDispatcher(client, staged_granularity=config.staged_granularity)
    return FlowExecutor(
        RemoteExecutor(dispatcher, batch_payload=config.batch_payload),
        translator=translator,
    )

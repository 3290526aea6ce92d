"""Factory functions for creating completion clients and executors."""

from typing import Optional

import httpx
from loguru import logger

from ...settings import Settings
from ..graph.chains import ExecutionPolicy
from ..graph.executor import FlowExecutor
from .client import CompletionClient


def create_completion_client(
    settings: Optional[Settings] = None,
    api_key: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> CompletionClient:
    """Create a CompletionClient from application settings.

    The API key is read once here and handed to the client; the client never
    looks it up on its own.

    Args:
        settings: Application settings (loads from environment if None)
        api_key: Overrides ``settings.openai_api_key`` when given
        http_client: Optional httpx client for the OpenAI SDK

    Returns:
        Configured CompletionClient

    Examples:
        # Placeholder mode, no network:
        client = create_completion_client(api_key=None)

        # OpenAI:
        client = create_completion_client(api_key="sk-...")
    """
    settings = settings or Settings()
    key = api_key if api_key is not None else settings.openai_api_key

    if not key:
        logger.warning("[CLIENT] No API key configured, agents will return placeholder responses")

    return CompletionClient(
        api_key=key,
        api_base=settings.llm_api_base,
        timeout=settings.llm_timeout,
        reasoning_model_prefixes=settings.reasoning_model_prefixes,
        placeholder_chunk_size=settings.placeholder_chunk_size,
        placeholder_delay=settings.placeholder_delay,
        http_client=http_client
    )


def create_executor(
    settings: Optional[Settings] = None,
    client: Optional[CompletionClient] = None,
    policy: Optional[ExecutionPolicy] = None
) -> FlowExecutor:
    """Create a FlowExecutor wired to a completion client.

    Args:
        settings: Application settings (loads from environment if None)
        client: Completion client (built from settings if None)
        policy: Chain discovery policy (``settings.execution_policy`` if None)

    Returns:
        Configured FlowExecutor
    """
    settings = settings or Settings()
    return FlowExecutor(
        client=client or create_completion_client(settings),
        policy=policy or settings.execution_policy
    )

"""Chat completion client used by agent nodes."""

import asyncio
from typing import Any, Dict, Optional, Sequence

import httpx
import openai
from openai import AsyncOpenAI
from loguru import logger

from ..exceptions import UpstreamError
from .streaming import DeltaCallback, SSEDecoder, deliver

DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_REASONING_PREFIXES = ("gpt-5", "o1", "o3", "o4")


def placeholder_response(model: str, system_prompt: str, user_prompt: str) -> str:
    """Build the response returned when no API key is configured."""
    return (
        f"[Mock response for {model}]\n\n"
        f"System: {system_prompt}\n\n"
        f"User: {user_prompt}\n\n"
        "This is a placeholder response. Set OPENAI_API_KEY to enable real API calls."
    )


class CompletionClient:
    """Calls an OpenAI-compatible chat completion endpoint.

    Without an API key the client runs in placeholder mode: it answers with a
    labelled mock response and never touches the network.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: str = DEFAULT_API_BASE,
        timeout: Optional[float] = 120.0,
        reasoning_model_prefixes: Sequence[str] = DEFAULT_REASONING_PREFIXES,
        placeholder_chunk_size: int = 10,
        placeholder_delay: float = 0.05,
        llm: Optional[AsyncOpenAI] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the client.

        Args:
            api_key: Bearer token for the completion service (None for placeholder mode)
            api_base: Base URL of the OpenAI-compatible API
            timeout: Per-request timeout in seconds
            reasoning_model_prefixes: Model name prefixes of the reasoning family
            placeholder_chunk_size: Characters per streamed placeholder slice
            placeholder_delay: Delay between streamed placeholder slices, in seconds
            llm: Pre-built AsyncOpenAI client
            http_client: httpx client handed to AsyncOpenAI when building one
        """
        self.api_key = api_key or None
        self.api_base = api_base
        self.timeout = timeout
        self.reasoning_model_prefixes = tuple(reasoning_model_prefixes)
        self.placeholder_chunk_size = max(1, placeholder_chunk_size)
        self.placeholder_delay = placeholder_delay
        self._llm = llm
        self._http_client = http_client

    @property
    def placeholder_mode(self) -> bool:
        """True when no API key is configured."""
        return self.api_key is None

    def is_reasoning_model(self, model: str) -> bool:
        """Whether ``model`` belongs to the reasoning family."""
        return model.startswith(self.reasoning_model_prefixes)

    def build_request(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        reasoning_effort: Optional[str] = None,
        stream: bool = False
    ) -> Dict[str, Any]:
        """Build the chat completion request body.

        Reasoning-family models take ``max_completion_tokens`` and an optional
        ``reasoning_effort`` but no temperature.
        """
        body: Dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }

        if self.is_reasoning_model(model):
            body["max_completion_tokens"] = max_tokens
            if reasoning_effort:
                body["reasoning_effort"] = reasoning_effort
        else:
            body["max_tokens"] = max_tokens
            body["temperature"] = temperature

        if stream:
            body["stream"] = True

        return body

    async def complete(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        reasoning_effort: Optional[str] = None
    ) -> str:
        """Run a blocking completion.

        Returns:
            The completion text

        Raises:
            UpstreamError: If the service rejects the request or cannot be reached
        """
        if self.placeholder_mode:
            logger.debug(f"[CLIENT] No API key, placeholder response for {model}")
            return placeholder_response(model, system_prompt, user_prompt)

        body = self.build_request(
            model, system_prompt, user_prompt, temperature, max_tokens, reasoning_effort
        )
        logger.debug(f"[CLIENT] POST chat/completions model={model}")

        try:
            response = await self._get_llm().chat.completions.create(**body)
        except (openai.APIError, httpx.HTTPError) as e:
            raise self._upstream_error(e) from e

        if not response.choices:
            return "No response"
        return response.choices[0].message.content or "No response"

    async def complete_streaming(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        on_delta: DeltaCallback,
        reasoning_effort: Optional[str] = None
    ) -> str:
        """Run a streamed completion, reporting text as it arrives.

        Args:
            on_delta: Called (or awaited) with each text delta, in order

        Returns:
            The full completion text

        Raises:
            UpstreamError: If the service rejects the request or cannot be reached
        """
        if self.placeholder_mode:
            logger.debug(f"[CLIENT] No API key, streaming placeholder response for {model}")
            text = placeholder_response(model, system_prompt, user_prompt)
            for i in range(0, len(text), self.placeholder_chunk_size):
                await deliver(on_delta, text[i:i + self.placeholder_chunk_size])
                await asyncio.sleep(self.placeholder_delay)
            return text

        body = self.build_request(
            model, system_prompt, user_prompt, temperature, max_tokens, reasoning_effort,
            stream=True
        )
        logger.debug(f"[CLIENT] POST chat/completions model={model} (stream)")

        decoder = SSEDecoder()
        parts = []

        try:
            async with self._get_llm().chat.completions.with_streaming_response.create(
                **body
            ) as response:
                async for chunk in response.iter_text():
                    for delta in decoder.feed(chunk):
                        parts.append(delta)
                        await deliver(on_delta, delta)
        except (openai.APIError, httpx.HTTPError) as e:
            raise self._upstream_error(e) from e

        for delta in decoder.flush():
            parts.append(delta)
            await deliver(on_delta, delta)

        if decoder.dropped:
            logger.debug(f"[CLIENT] Dropped {decoder.dropped} undecodable event(s) from {model}")

        return "".join(parts)

    async def aclose(self) -> None:
        """Close the underlying HTTP client, if one was built."""
        if self._llm is not None:
            await self._llm.close()

    async def __aenter__(self) -> "CompletionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _get_llm(self) -> AsyncOpenAI:
        if self._llm is None:
            self._llm = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.api_base,
                timeout=self.timeout,
                max_retries=0,
                http_client=self._http_client
            )
        return self._llm

    @staticmethod
    def _upstream_error(error: Exception) -> UpstreamError:
        if isinstance(error, openai.APIStatusError):
            body = error.body
            message = None
            if isinstance(body, dict):
                message = body.get("message")
            return UpstreamError(message or "API call failed", status_code=error.status_code)
        return UpstreamError(str(error) or "API call failed")

"""Chat-completion client for the OpenRouter (OpenAI-compatible) API."""

import openai
from loguru import logger
from openai import AsyncOpenAI

from app.errors import UpstreamError


class CompletionClient:
    """Sends single-turn prompts to the completion provider.

    The client keeps no conversation state; every ``complete`` call is an
    independent round trip. The underlying AsyncOpenAI client is shared by
    concurrent requests and closed at application shutdown.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "http://localhost:5173",
        org_id: str | None = None,
        timeout: float = 60.0,
        openai_client: AsyncOpenAI | None = None,
    ):
        self._model = model
        headers = {"HTTP-Referer": referer}
        if org_id:
            headers["OpenAI-Organization"] = org_id
        self._client = openai_client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            default_headers=headers,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        fallback: str | None = None,
    ) -> str:
        """Return the model's reply to ``prompt``.

        Args:
            prompt: The user message.
            temperature: Sampling temperature in [0, 1].
            max_tokens: Positive completion token limit.
            fallback: Text returned when the provider answers without content.
                When None, a missing completion is an error.

        Raises:
            UpstreamError: On API/transport failure or timeout, or when the
                response has no content and no fallback was given.
        """
        if not 0.0 <= temperature <= 1.0:
            raise ValueError("temperature must be within [0, 1]")
        if max_tokens < 1:
            raise ValueError("max_tokens must be positive")

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as e:
            logger.warning("Completion request timed out")
            raise UpstreamError("completion", "completion request timed out") from e
        except openai.APIError as e:
            logger.warning(f"Completion API error: {e}")
            raise UpstreamError("completion", str(e)) from e

        content = None
        if response.choices:
            message = response.choices[0].message
            content = message.content if message is not None else None

        if content:
            return content
        if fallback is not None:
            logger.warning(f"Completion returned no content, using fallback '{fallback}'")
            return fallback
        raise UpstreamError("completion", "response contained no completion")

    async def close(self):
        """Close the underlying HTTP client."""
        await self._client.close()

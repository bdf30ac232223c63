"""
Ollama text generation client.

Talks to the Ollama HTTP API (non-streaming /api/generate) and maps every
transport or protocol failure onto the GenerationError hierarchy so the
enricher can isolate it per record.
"""

import httpx
import time
from typing import Optional
from core.config import settings
from core.exceptions import (
    GenerationError,
    GenerationConnectionError,
    GenerationTimeoutError,
    GenerationResponseError,
)
from etl.generation.base import TextGenerator, GenerationOptions
import logging

logger = logging.getLogger(__name__)


class OllamaClient(TextGenerator):
    """
    Generate text with a model served by Ollama.

    Attributes:
        endpoint: Full URL of the generate endpoint
        defaults: Model, temperature, token limit and timeout used when a
            call does not override them
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.endpoint = endpoint or settings.OLLAMA_ENDPOINT
        self.defaults = GenerationOptions(
            model=model or settings.OLLAMA_MODEL,
            temperature=temperature if temperature is not None else settings.OLLAMA_TEMPERATURE,
            max_tokens=max_tokens or settings.OLLAMA_MAX_TOKENS,
            timeout=timeout or settings.OLLAMA_TIMEOUT,
        )
        self._http_client = http_client

    @property
    def base_url(self) -> str:
        """Server root, e.g. http://localhost:11434"""
        return self.endpoint.split("/api")[0].rstrip("/")

    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Non-empty prompt string
            options: Per-call overrides

        Returns:
            The generated text

        Raises:
            GenerationConnectionError: Server unreachable
            GenerationTimeoutError: No answer within the timeout
            GenerationError: Non-2xx answer
            GenerationResponseError: Body without a `response` field
        """
        if not prompt or not isinstance(prompt, str):
            raise GenerationError("Invalid prompt: must be a non-empty string", status_code=400)

        effective = self.defaults.merge(options)
        payload = {
            "model": effective.model,
            "prompt": prompt,
            "options": {
                "temperature": effective.temperature,
                "num_predict": effective.max_tokens,
            },
            "stream": False,
        }

        logger.info(f"Generating text with Ollama model: {effective.model}")
        start_time = time.perf_counter()

        try:
            response = await self._post(payload, effective.timeout)
        except httpx.TimeoutException as e:
            raise GenerationTimeoutError(
                f"Ollama request timed out after {effective.timeout} seconds",
                context={"endpoint": self.endpoint, "model": effective.model},
                original_exception=e
            )
        except httpx.ConnectError as e:
            logger.error("Failed to connect to Ollama. Is the Ollama server running?")
            raise GenerationConnectionError(
                "Ollama server is not running",
                context={
                    "endpoint": self.endpoint,
                    "suggested_action": "Please start the Ollama server and try again"
                },
                original_exception=e
            )
        except httpx.HTTPError as e:
            raise GenerationConnectionError(
                f"Error calling Ollama: {str(e)}",
                context={"endpoint": self.endpoint},
                original_exception=e
            )

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.error(f"Ollama API error ({response.status_code}): {detail}")
            raise GenerationError(
                f"Ollama API error: {detail}",
                context={"endpoint": self.endpoint, "status_code": response.status_code},
                status_code=response.status_code if response.status_code < 500 else 502
            )

        try:
            body = response.json()
        except ValueError as e:
            raise GenerationResponseError(
                "Invalid response from Ollama",
                context={"endpoint": self.endpoint, "response_body": response.text[:500]},
                original_exception=e
            )

        text = body.get("response") if isinstance(body, dict) else None
        if not text:
            raise GenerationResponseError(
                "Invalid response from Ollama",
                context={"endpoint": self.endpoint, "response_body": response.text[:500]}
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"Generated text with Ollama in {duration_ms:.0f}ms")
        return text

    async def check_availability(self) -> bool:
        """GET /api/tags with a short timeout; any failure means unavailable"""
        try:
            if self._http_client is not None:
                response = await self._http_client.get(f"{self.base_url}/api/tags", timeout=5.0)
            else:
                async with httpx.AsyncClient(timeout=5.0) as client:
                    response = await client.get(f"{self.base_url}/api/tags")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Ollama availability check failed: {str(e)}")
            return False

    async def _post(self, payload: dict, timeout: float) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.endpoint, json=payload, timeout=timeout)

        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(self.endpoint, json=payload)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase

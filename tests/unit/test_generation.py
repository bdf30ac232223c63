"""
Unit tests for prompt handling and the Ollama client
"""

import json
import httpx
import pytest
from core.exceptions import (
    GenerationError,
    GenerationConnectionError,
    GenerationTimeoutError,
    GenerationResponseError,
)
from etl.generation.base import GenerationOptions
from etl.generation.ollama_client import OllamaClient
from etl.generation.parsing import build_prompt, extract_json_block, parse_generated_json

ENDPOINT = "http://ollama.test:11434/api/generate"


def make_client(handler, **kwargs) -> OllamaClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OllamaClient(
        endpoint=ENDPOINT,
        model="mistral",
        temperature=0.5,
        max_tokens=256,
        timeout=5.0,
        http_client=http_client,
        **kwargs
    )


class TestParsing:
    """Test prompt building and JSON extraction"""

    def test_build_prompt_without_json_suffix(self):
        prompt = build_prompt("Pick one", {"text": "hi"}, expect_json=False)
        assert prompt == 'Pick one\n\nData: {\n  "text": "hi"\n}\n\nResponse:'

    def test_build_prompt_with_string_data(self):
        prompt = build_prompt("Echo", "raw text")
        assert prompt.startswith("Echo\n\nData: raw text\n\n")
        assert prompt.endswith("Response:")

    def test_build_prompt_keeps_unicode(self):
        assert "Zoë" in build_prompt("Greet", {"name": "Zoë"})

    @pytest.mark.parametrize("text,expected", [
        ('{"a": 1}', '{"a": 1}'),
        ('Here you go:\n```json\n{"a": 1}\n```\nDone', '{"a": 1}'),
        ('```\n[1, 2]\n```', '[1, 2]'),
        ('```json{"a": 1}```', '{"a": 1}'),
        ('  plain  ', 'plain'),
    ])
    def test_extract_json_block(self, text, expected):
        assert extract_json_block(text) == expected

    def test_json_fence_is_preferred(self):
        text = '```text\nnot json\n```\n```json\n{"b": 2}\n```'
        assert parse_generated_json(text) == {"b": 2}

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_generated_json("no json here")


class TestGenerationOptions:
    """Test per-call option merging"""

    def test_merge_overrides_only_set_values(self):
        defaults = GenerationOptions(model="mistral", temperature=0.5, max_tokens=100, timeout=30.0)
        merged = defaults.merge(GenerationOptions(temperature=0.2))

        assert merged == GenerationOptions(model="mistral", temperature=0.2, max_tokens=100, timeout=30.0)

    def test_merge_with_none(self):
        defaults = GenerationOptions(model="mistral")
        assert defaults.merge(None) is defaults


class TestOllamaClient:
    """Test the Ollama HTTP client against a mock transport"""

    @pytest.mark.asyncio
    async def test_generate_sends_non_streaming_payload(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"response": "Hello", "done": True})

        client = make_client(handler)
        text = await client.generate("Say hello", GenerationOptions(temperature=0.1))

        assert text == "Hello"
        assert str(requests[0].url) == ENDPOINT
        assert json.loads(requests[0].content) == {
            "model": "mistral",
            "prompt": "Say hello",
            "options": {"temperature": 0.1, "num_predict": 256},
            "stream": False,
        }

    @pytest.mark.asyncio
    async def test_model_override(self):
        seen = {}

        def handler(request):
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"response": "ok"})

        await make_client(handler).generate("Hi", GenerationOptions(model="llama3"))
        assert seen["model"] == "llama3"

    @pytest.mark.asyncio
    async def test_empty_prompt_is_rejected(self):
        client = make_client(lambda request: httpx.Response(200, json={"response": "x"}))

        with pytest.raises(GenerationError) as exc_info:
            await client.generate("")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_error_status_uses_error_field(self):
        def handler(request):
            return httpx.Response(404, json={"error": "model 'mistral' not found"})

        with pytest.raises(GenerationError) as exc_info:
            await make_client(handler).generate("Hi")

        assert exc_info.value.message == "Ollama API error: model 'mistral' not found"
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_server_error_maps_to_bad_gateway(self):
        with pytest.raises(GenerationError) as exc_info:
            await make_client(lambda request: httpx.Response(500, text="boom")).generate("Hi")

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_missing_response_field(self):
        with pytest.raises(GenerationResponseError):
            await make_client(lambda request: httpx.Response(200, json={"done": True})).generate("Hi")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        with pytest.raises(GenerationResponseError):
            await make_client(lambda request: httpx.Response(200, text="<html>")).generate("Hi")

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(GenerationConnectionError) as exc_info:
            await make_client(handler).generate("Hi")

        assert exc_info.value.message == "Ollama server is not running"
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(GenerationTimeoutError) as exc_info:
            await make_client(handler).generate("Hi")

        assert exc_info.value.message == "Ollama request timed out after 5.0 seconds"
        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    async def test_check_availability(self):
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": []})

        assert await make_client(handler).check_availability() is True

    @pytest.mark.asyncio
    async def test_check_availability_when_down(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        assert await make_client(handler).check_availability() is False

    def test_base_url(self):
        client = OllamaClient(endpoint="http://localhost:11434/api/generate")
        assert client.base_url == "http://localhost:11434"

import json

import httpx
import pytest

from assessor.errors import CompletionNotConfiguredError
from assessor.gemini_client import GeminiClient, _to_gemini_payload, build_client, extract_json


def test_payload_maps_roles_and_generation_config():
	payload = _to_gemini_payload(
		[
			{"role": "system", "content": "Be terse."},
			{"role": "user", "content": "Hi"},
			{"role": "assistant", "content": "Hello"},
			{"role": "user", "content": "Again"},
		],
		temperature=0.2,
		json_mode=True,
		max_tokens=500,
	)
	assert payload["systemInstruction"] == {"parts": [{"text": "Be terse."}]}
	assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
	assert payload["generationConfig"] == {"temperature": 0.2, "responseMimeType": "application/json", "maxOutputTokens": 500}


def test_payload_without_system_or_json():
	payload = _to_gemini_payload([{"role": "user", "content": "Hi"}], temperature=0.7, json_mode=False, max_tokens=None)
	assert "systemInstruction" not in payload
	assert payload["generationConfig"] == {"temperature": 0.7}


@pytest.mark.parametrize(
	"text",
	[
		'{"score": 10}',
		'```json\n{"score": 10}\n```',
		'Sure! Here is the analysis: {"score": 10} Hope it helps.',
	],
)
def test_extract_json(text):
	assert extract_json(text) == {"score": 10}


def test_extract_json_failure():
	with pytest.raises(ValueError):
		extract_json("no json here")


def test_missing_key_is_reported(no_gemini_key):
	with pytest.raises(CompletionNotConfiguredError):
		GeminiClient()
	assert build_client() is None


def _gemini_ok(request: httpx.Request) -> httpx.Response:
	body = json.loads(request.content)
	assert request.url.params["key"] == "test-key"
	assert body["contents"][0]["parts"][0]["text"] == "Hi"
	return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Hello!"}]}}]})


async def _swap_transport(client: GeminiClient, primary, fallback=None) -> None:
	await client._client.aclose()
	client._client = httpx.AsyncClient(transport=httpx.MockTransport(primary))
	if fallback is not None:
		await client._fallback_client.aclose()
		client._fallback_client = httpx.AsyncClient(transport=httpx.MockTransport(fallback))


@pytest.mark.asyncio
async def test_complete_returns_candidate_text(no_gemini_key, monkeypatch):
	monkeypatch.setattr(no_gemini_key, "gemini_provider", "ai_studio")
	client = GeminiClient(api_key="test-key")
	await _swap_transport(client, _gemini_ok)
	try:
		assert await client.complete([{"role": "user", "content": "Hi"}]) == "Hello!"
	finally:
		await client.aclose()


@pytest.mark.asyncio
async def test_http_error_without_fallback_raises(no_gemini_key):
	client = GeminiClient(api_key="test-key")
	await _swap_transport(client, lambda request: httpx.Response(500, json={"error": "boom"}))
	try:
		with pytest.raises(httpx.HTTPStatusError):
			await client.complete([{"role": "user", "content": "Hi"}])
	finally:
		await client.aclose()


@pytest.mark.asyncio
async def test_openrouter_fallback(no_gemini_key, monkeypatch):
	monkeypatch.setattr(no_gemini_key, "openrouter_api_key", "or-key")
	seen = {}

	def openrouter(request: httpx.Request) -> httpx.Response:
		seen["auth"] = request.headers["Authorization"]
		seen["body"] = json.loads(request.content)
		return httpx.Response(200, json={"choices": [{"message": {"content": "fallback reply"}}]})

	client = GeminiClient(api_key="test-key")
	await _swap_transport(client, lambda request: httpx.Response(503), openrouter)
	try:
		reply = await client.complete([{"role": "user", "content": "Hi"}], json_mode=True, max_tokens=50)
	finally:
		await client.aclose()
	assert reply == "fallback reply"
	assert seen["auth"] == "Bearer or-key"
	assert seen["body"]["response_format"] == {"type": "json_object"}
	assert seen["body"]["max_tokens"] == 50

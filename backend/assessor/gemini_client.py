from __future__ import annotations
import json
import logging
import re
import httpx
from typing import Any, Dict, List, Optional
from .errors import CompletionNotConfiguredError
from .settings import settings

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class GeminiClient:
	def __init__(self, api_key: Optional[str] = None, *, base_url: Optional[str] = None, model: Optional[str] = None) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise CompletionNotConfiguredError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		timeout = settings.request_timeout_seconds
		self._client = httpx.AsyncClient(timeout=timeout)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._fallback_enabled = bool(settings.openrouter_api_key)
		self._openrouter_api_key = settings.openrouter_api_key
		self._openrouter_model = settings.openrouter_model
		self._openrouter_base_url = settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._fallback_enabled:
			self._fallback_client = httpx.AsyncClient(timeout=timeout)

	async def complete(
		self,
		messages: List[Message],
		*,
		temperature: float = 0.7,
		json_mode: bool = False,
		max_tokens: Optional[int] = None,
	) -> str:
		"""Run a chat-style completion and return the reply text.

		System messages become Gemini's systemInstruction; "assistant" turns are sent
		with the "model" role. With json_mode the model is asked for a JSON body.
		"""
		payload = _to_gemini_payload(messages, temperature=temperature, json_mode=json_mode, max_tokens=max_tokens)
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		last_error: Optional[Exception] = None
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPError as err:
			last_error = err
		if last_error is None:
			try:
				data = r.json()
				return data["candidates"][0]["content"]["parts"][0]["text"]
			except Exception:
				last_error = RuntimeError(f"Unexpected Gemini response: {r.text[:500]}")
		if not self._fallback_enabled:
			raise last_error
		logger.warning("Gemini call failed (%s); retrying via OpenRouter", last_error)
		return await self._fallback_complete(messages, last_error, temperature=temperature, json_mode=json_mode, max_tokens=max_tokens)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_complete(
		self,
		messages: List[Message],
		primary_error: Optional[Exception],
		*,
		temperature: float,
		json_mode: bool,
		max_tokens: Optional[int],
	) -> str:
		if not self._fallback_client or not self._openrouter_api_key:
			raise primary_error or RuntimeError("Fallback requested but OpenRouter is not configured")
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {
			"model": self._openrouter_model,
			"messages": messages,
			"temperature": temperature,
		}
		if json_mode:
			payload["response_format"] = {"type": "json_object"}
		if max_tokens is not None:
			payload["max_tokens"] = max_tokens
		try:
			r = await self._fallback_client.post(
				self._openrouter_base_url,
				headers=headers,
				json=payload,
			)
			r.raise_for_status()
			data = r.json()
			return data["choices"][0]["message"]["content"]
		except Exception as fallback_err:
			if primary_error is not None:
				raise RuntimeError(
					f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
				) from fallback_err
			raise fallback_err


def _to_gemini_payload(
	messages: List[Message],
	*,
	temperature: float,
	json_mode: bool,
	max_tokens: Optional[int],
) -> Dict[str, Any]:
	system_parts: List[Dict[str, str]] = []
	contents: List[Dict[str, Any]] = []
	for message in messages:
		role = message.get("role", "user")
		text = message.get("content", "")
		if role == "system":
			system_parts.append({"text": text})
			continue
		contents.append({"role": "model" if role == "assistant" else "user", "parts": [{"text": text}]})
	generation_config: Dict[str, Any] = {"temperature": temperature}
	if json_mode:
		generation_config["responseMimeType"] = "application/json"
	if max_tokens is not None:
		generation_config["maxOutputTokens"] = max_tokens
	payload: Dict[str, Any] = {"contents": contents, "generationConfig": generation_config}
	if system_parts:
		payload["systemInstruction"] = {"parts": system_parts}
	return payload


def build_client(**kwargs: Any) -> Optional[GeminiClient]:
	"""Return a client, or None when the completion service has no credentials."""
	try:
		return GeminiClient(**kwargs)
	except CompletionNotConfiguredError:
		logger.warning("Completion service is not configured; stages will use their fallbacks")
		return None


def extract_json(text: str) -> Any:
	"""Parse a JSON value out of a model reply.

	Tries the whole text, then a ```json fenced block, then the outermost {...}
	span. Raises ValueError when nothing parses.
	"""
	try:
		return json.loads(text)
	except Exception:
		pass
	code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
	if code_block:
		try:
			return json.loads(code_block.group(1))
		except Exception:
			pass
	first = text.find("{")
	last = text.rfind("}")
	if first != -1 and last > first:
		try:
			return json.loads(text[first : last + 1])
		except Exception:
			pass
	raise ValueError("Failed to parse JSON from model output")

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

Handler = Union[str, Exception, Callable[[List[Dict[str, str]]], Any]]


def stage_of(messages: List[Dict[str, str]]) -> str:
	"""Name the pipeline stage a prompt belongs to, from its system message."""
	system = messages[0]["content"] if messages and messages[0]["role"] == "system" else ""
	lowered = system.lower()
	if "language detection expert" in lowered:
		return "detect"
	if "educational assessment expert" in lowered:
		return "analyze"
	if "concise overviews" in lowered:
		return "topic"
	if "historical expert" in lowered:
		return "timeline"
	if "translat" in lowered or "traduct" in lowered or "अनुवादक" in system or "مترجم" in system:
		return "translate"
	return "feedback"


class FakeCompletionClient:
	"""Scripted stand-in for GeminiClient; replies are chosen per stage."""

	def __init__(self, handlers: Dict[str, Handler], delay: float = 0.0, stage_delays: Optional[Dict[str, float]] = None):
		self.handlers = handlers
		self.delay = delay
		self.stage_delays = stage_delays or {}
		self.calls: List[Dict[str, Any]] = []
		self.completed: List[str] = []
		self.closed = False

	async def complete(self, messages, *, temperature=0.7, json_mode=False, max_tokens=None):
		stage = stage_of(messages)
		self.calls.append(
			{
				"stage": stage,
				"messages": messages,
				"temperature": temperature,
				"json_mode": json_mode,
				"max_tokens": max_tokens,
			}
		)
		delay = self.stage_delays.get(stage, self.delay)
		if delay:
			await asyncio.sleep(delay)
		self.completed.append(stage)
		if stage not in self.handlers:
			raise RuntimeError(f"no scripted reply for stage {stage!r}")
		reply = self.handlers[stage]
		if callable(reply) and not isinstance(reply, Exception):
			reply = reply(messages)
		if isinstance(reply, Exception):
			raise reply
		return reply

	async def aclose(self):
		self.closed = True

	def stages(self) -> List[str]:
		return [call["stage"] for call in self.calls]

	def calls_for(self, stage: str) -> List[Dict[str, Any]]:
		return [call for call in self.calls if call["stage"] == stage]


def analysis_reply(score: float = 100, covered: int = 4, missing: int = 2, feedback: str = "Solid grasp of the basics.") -> str:
	return json.dumps(
		{
			"score": score,
			"coveredTopics": [{"name": f"Covered {i}", "description": f"Covered topic {i}"} for i in range(covered)],
			"missingTopics": [{"name": f"Missing {i}", "description": f"Missing topic {i}"} for i in range(missing)],
			"topicCoverage": [{"name": f"Area {i}", "percentage": 60 + i * 10} for i in range(3)],
			"feedback": feedback,
		}
	)


def topic_reply(messages) -> str:
	return json.dumps({"overview": "A short overview.", "keyPoints": ["First point", "Second point", "Third point"]})


@pytest.fixture
def make_client():
	def _make(delay: float = 0.0, stage_delays: Optional[Dict[str, float]] = None, **handlers: Handler) -> FakeCompletionClient:
		return FakeCompletionClient(handlers, delay=delay, stage_delays=stage_delays)

	return _make


@pytest.fixture
def healthy_handlers() -> Dict[str, Handler]:
	return {
		"detect": "en",
		"analyze": analysis_reply(),
		"topic": topic_reply,
		"feedback": "You explained the key ideas clearly. Keep exploring!",
	}


def words(n: int, word: str = "history") -> str:
	return " ".join([word] * n)


@pytest.fixture
def no_gemini_key(monkeypatch):
	from assessor.settings import settings

	monkeypatch.setattr(settings, "gemini_api_key", None)
	monkeypatch.setattr(settings, "openrouter_api_key", None)
	return settings

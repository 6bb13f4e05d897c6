"""
Knowledge analysis: the model's judgement of what a submission covers.

The completion service returns a raw score, covered and missing topics, a
per-topic coverage breakdown and narrative feedback, all in the detected
language. Malformed collections are coerced to empty lists; a failed call or a
reply that is not a JSON object fails the whole analysis, because there is no
safe substitute for "what does this text mean".
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

from ..errors import AnalysisError, ServiceUnavailableError
from ..gemini_client import GeminiClient, extract_json
from ..schemas import KnowledgeAnalysis, TopicCoverage, TopicRef
from .language import language_name

logger = logging.getLogger(__name__)


def _build_system_prompt(subject: str, language: str) -> str:
	name = language_name(language)
	return f"""
You are an educational assessment expert. Your task is to analyze a user's understanding of a specific subject and provide constructive feedback.

The user's input is in {name} (language code: {language}). Analyze the user's input on the subject "{subject}" and respond with a JSON object containing:
1. "score": An overall score from 0-100 based on the depth and accuracy of understanding
2. "coveredTopics": Array of objects with "name" and "description" for topics they covered correctly
3. "missingTopics": Array of objects with "name" and "description" for important topics they missed
4. "topicCoverage": Array of objects with "name" and "percentage" for each key topic area. CRITICAL: Make sure percentages are realistic and varied - never all at 100%! Even excellent responses should show a range (55-95%) across different topics. Distribute scores across this range to reflect relative strengths and weaknesses.
5. "feedback": Detailed constructive feedback string on their understanding

IMPORTANT: Every text value in your response must be in {name}, the same language as the user's input.

The analysis should be educational and helpful, not critical. Return STRICT JSON only.
""".strip()


def _safe_float(value: Any) -> Optional[float]:
	if isinstance(value, bool):
		return None
	try:
		if value is None:
			return None
		number = float(value)
	except (TypeError, ValueError):
		return None
	return number if math.isfinite(number) else None


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
	return max(low, min(high, value))


def _coerce_topics(value: Any) -> List[TopicRef]:
	if not isinstance(value, list):
		return []
	topics: List[TopicRef] = []
	for item in value:
		if not isinstance(item, dict):
			continue
		name = item.get("name")
		description = item.get("description")
		if isinstance(name, str) and name.strip() and isinstance(description, str) and description.strip():
			topics.append(TopicRef(name=name.strip(), description=description.strip()))
	return topics


def _coerce_coverage(value: Any) -> List[TopicCoverage]:
	if not isinstance(value, list):
		return []
	coverage: List[TopicCoverage] = []
	for item in value:
		if not isinstance(item, dict):
			continue
		name = item.get("name")
		percentage = _safe_float(item.get("percentage"))
		if isinstance(name, str) and name.strip() and percentage is not None:
			coverage.append(TopicCoverage(name=name.strip(), percentage=_clamp(percentage)))
	return coverage


def coerce_analysis(data: Dict[str, Any]) -> KnowledgeAnalysis:
	"""Coerce a decoded model reply into a KnowledgeAnalysis without ever failing."""
	score = _safe_float(data.get("score"))
	feedback = data.get("feedback")
	return KnowledgeAnalysis(
		raw_score=_clamp(score) if score is not None else 0.0,
		covered_topics=_coerce_topics(data.get("coveredTopics")),
		missing_topics=_coerce_topics(data.get("missingTopics")),
		topic_coverage=_coerce_coverage(data.get("topicCoverage")),
		feedback=feedback.strip() if isinstance(feedback, str) else "",
	)


async def analyze_knowledge(
	client: Optional[GeminiClient],
	subject: str,
	text: str,
	language: str,
) -> KnowledgeAnalysis:
	"""Ask the completion service to assess text against subject.

	Args:
		client: Completion client, or None when the service is not configured
		subject: Subject the user is demonstrating knowledge of
		text: Normalized user input (typed or transcribed)
		language: Detected language code; every returned string must be in it

	Returns:
		KnowledgeAnalysis with collections coerced to safe values

	Raises:
		ServiceUnavailableError: No completion credentials are configured
		AnalysisError: The upstream call failed or its reply was not a JSON object
	"""
	if client is None:
		raise ServiceUnavailableError("Knowledge analysis is unavailable: the completion service is not configured")
	logger.info("Analyzing knowledge for subject %r (%d characters, language=%s)", subject, len(text), language)
	try:
		raw = await client.complete(
			[
				{"role": "system", "content": _build_system_prompt(subject, language)},
				{"role": "user", "content": text},
			],
			temperature=0.5,
			json_mode=True,
		)
	except Exception as e:
		logger.error("Knowledge analysis call failed: %s", e)
		raise AnalysisError(f"Failed to analyze knowledge: {e}") from e

	try:
		data = extract_json(raw)
	except ValueError as e:
		logger.error("Knowledge analysis reply was not JSON")
		raise AnalysisError("Failed to analyze knowledge: completion service returned malformed JSON") from e
	if not isinstance(data, dict):
		raise AnalysisError("Failed to analyze knowledge: completion service returned an unexpected shape")

	analysis = coerce_analysis(data)
	logger.info(
		"Analysis: raw score %.0f, %d covered, %d missing topics",
		analysis.raw_score,
		len(analysis.covered_topics),
		len(analysis.missing_topics),
	)
	return analysis

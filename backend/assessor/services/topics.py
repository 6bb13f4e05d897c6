from __future__ import annotations
import asyncio
import logging
from typing import List, Optional, Sequence

from ..gemini_client import GeminiClient, extract_json
from ..schemas import EnrichedTopic, TopicExplanation, TopicRef
from .language import DEFAULT_LANGUAGE, language_name

logger = logging.getLogger(__name__)

PLACEHOLDER_OVERVIEW = "Overview unavailable"
PLACEHOLDER_KEY_POINTS = ["Explanation could not be generated"]
MAX_KEY_POINTS = 5


def _build_messages(subject: str, topic_name: str, topic_description: str, language: str):
	name = language_name(language)
	system = f"""
You are an educational expert providing concise overviews on academic topics. Your goal is to help users understand topics they're unfamiliar with by providing brief but insightful information.

Format your response as JSON with two keys:
1. "overview": A brief 2-3 sentence overview of the topic
2. "keyPoints": An array of 3-5 points highlighting the most important aspects to explore about this topic

Each point should be concise (15-25 words) and focus on a specific aspect, concept, or application of the topic.

IMPORTANT: Your response must be entirely in {name} (language code: {language}).

Make your content accessible to someone with basic knowledge of the subject area and focus on clarity over complexity.
""".strip()
	user = (
		f'Please provide a short overview and key exploration points for "{topic_name}" in the context of {subject}.\n\n'
		f'Here\'s a brief description to start from: "{topic_description}"\n\n'
		f"Remember to respond in {name}."
	)
	return [{"role": "system", "content": system}, {"role": "user", "content": user}]


async def request_topic_explanation(
	client: GeminiClient,
	subject: str,
	topic_name: str,
	topic_description: str,
	language: str,
) -> TopicExplanation:
	"""Ask for an overview and key points; raises on any upstream or shape failure."""
	raw = await client.complete(
		_build_messages(subject, topic_name, topic_description, language),
		temperature=0.7,
		json_mode=True,
		max_tokens=500,
	)
	data = extract_json(raw)
	if not isinstance(data, dict):
		raise ValueError("Topic explanation is not a JSON object")
	overview = data.get("overview")
	key_points = data.get("keyPoints")
	if not isinstance(overview, str) or not overview.strip():
		raise ValueError("Topic explanation has no overview")
	if not isinstance(key_points, list):
		raise ValueError("Topic explanation has no keyPoints list")
	points = [str(p).strip() for p in key_points if isinstance(p, (str, int, float)) and str(p).strip()]
	if not points:
		raise ValueError("Topic explanation has no usable key points")
	return TopicExplanation(overview=overview.strip(), key_points=points[:MAX_KEY_POINTS])


def static_explanation(subject: str, topic_name: str, topic_description: str) -> TopicExplanation:
	return TopicExplanation(
		overview=f"{topic_name} is an important concept in {subject}.",
		key_points=[topic_description, "More detailed information will be available soon."],
	)


async def explain_topic(
	client: Optional[GeminiClient],
	subject: str,
	topic_name: str,
	topic_description: str,
	language: str = DEFAULT_LANGUAGE,
) -> TopicExplanation:
	"""Standalone explanation for one topic; falls back to static text built from the topic."""
	if client is None:
		return static_explanation(subject, topic_name, topic_description)
	try:
		return await request_topic_explanation(client, subject, topic_name, topic_description, language)
	except Exception as e:
		logger.warning("Topic explanation for %r failed, using static text: %s", topic_name, e)
		return static_explanation(subject, topic_name, topic_description)


async def _enrich_one(client: GeminiClient, subject: str, topic: TopicRef, language: str) -> EnrichedTopic:
	try:
		explanation = await request_topic_explanation(client, subject, topic.name, topic.description, language)
	except Exception as e:
		logger.warning("Enrichment failed for topic %r: %s", topic.name, e)
		return EnrichedTopic(
			name=topic.name,
			description=topic.description,
			overview=PLACEHOLDER_OVERVIEW,
			key_points=list(PLACEHOLDER_KEY_POINTS),
		)
	return EnrichedTopic(
		name=topic.name,
		description=topic.description,
		overview=explanation.overview,
		key_points=explanation.key_points,
	)


async def enrich_missing_topics(
	client: GeminiClient,
	subject: str,
	topics: Sequence[TopicRef],
	language: str,
) -> List[EnrichedTopic]:
	"""Enrich every missing topic concurrently; one failure only affects its own topic."""
	if not topics:
		return []
	enriched = await asyncio.gather(*(_enrich_one(client, subject, topic, language) for topic in topics))
	logger.info("Enriched %d missing topics", len(enriched))
	return list(enriched)

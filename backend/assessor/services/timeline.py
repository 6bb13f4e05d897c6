from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..gemini_client import GeminiClient, extract_json
from ..schemas import TimelineEvent
from .language import DEFAULT_LANGUAGE, LANGUAGE_NAMES, language_name, normalize_language_code

logger = logging.getLogger(__name__)

TIMELINE_LENGTH = 6
FALLBACK_TIMELINES_PATH = Path(__file__).resolve().parents[1] / "data" / "fallback_timelines.json"


def load_fallback_timelines(path: Path = FALLBACK_TIMELINES_PATH) -> Dict[str, List[TimelineEvent]]:
	with path.open(encoding="utf-8") as fh:
		raw = json.load(fh)
	tables = {code: [TimelineEvent(**event) for event in events] for code, events in raw.items()}
	for code, events in tables.items():
		if len(events) != TIMELINE_LENGTH:
			raise ValueError(f"Fallback timeline for {code!r} has {len(events)} events, expected {TIMELINE_LENGTH}")
	if DEFAULT_LANGUAGE not in tables:
		raise ValueError(f"Fallback timelines must include {DEFAULT_LANGUAGE!r}")
	return tables


FALLBACK_TIMELINES = load_fallback_timelines()


def fallback_timeline(language: str) -> List[TimelineEvent]:
	return list(FALLBACK_TIMELINES.get(language) or FALLBACK_TIMELINES[DEFAULT_LANGUAGE])


def _normalize(language: Optional[str]) -> str:
	return normalize_language_code(language) or DEFAULT_LANGUAGE


def resolve_timeline_language(
	explicit: Optional[str] = None,
	session_language: Optional[str] = None,
	accept_language: Optional[str] = None,
) -> str:
	"""Pick the timeline language: explicit > session > Accept-Language (if supported) > en."""
	if explicit and explicit.strip():
		return _normalize(explicit)
	if session_language and session_language.strip():
		return _normalize(session_language)
	if accept_language:
		code = normalize_language_code(accept_language.split(",")[0].split(";")[0])
		if code in LANGUAGE_NAMES:
			return code
	return DEFAULT_LANGUAGE


def _build_messages(subject: str, language: str):
	name = language_name(language)
	system = f"""
You are a historical expert who creates concise, accurate timelines for educational purposes. Generate a timeline of {TIMELINE_LENGTH} key historical developments related to the given subject.

EXTREMELY IMPORTANT: Your response MUST be in {name} (code: {language}).
Do not translate the timeline - generate it directly in {name}.
The entire response including all years, titles, and descriptions must be in {name}.
""".strip()
	user = f"""
Create a historical timeline for "{subject}" with {TIMELINE_LENGTH} key events or developments.

Format your response as a JSON object with an "events" array, where each event has:
1. "year": A specific year or time period (e.g., "1905", "1970s", "300 BCE")
2. "title": A short title for the event or development (3-5 words)
3. "description": A brief description of the significance (maximum 10 words)

Make the timeline chronological, historically accurate, and educational. Focus on major discoveries, breakthroughs, or developments in the field.
""".strip()
	return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def _valid_events(data: Any) -> List[TimelineEvent]:
	if isinstance(data, dict):
		data = data.get("events")
	if not isinstance(data, list):
		return []
	events: List[TimelineEvent] = []
	for item in data:
		if not isinstance(item, dict):
			continue
		fields = [item.get(key) for key in ("year", "title", "description")]
		if all(isinstance(v, (str, int)) and str(v).strip() for v in fields):
			events.append(TimelineEvent(year=str(fields[0]).strip(), title=str(fields[1]).strip(), description=str(fields[2]).strip()))
	return events[:TIMELINE_LENGTH]


async def generate_timeline(client: Optional[GeminiClient], subject: str, language: str = DEFAULT_LANGUAGE) -> List[TimelineEvent]:
	"""Return exactly six chronological events for subject; never raises."""
	language = _normalize(language)
	if client is None:
		logger.info("Completion service not configured; using fallback timeline (%s)", language)
		return fallback_timeline(language)
	try:
		raw = await client.complete(_build_messages(subject, language), temperature=0.7, json_mode=True)
		events = _valid_events(extract_json(raw))
	except Exception as e:
		logger.warning("Timeline generation failed for %r, using fallback (%s): %s", subject, language, e)
		return fallback_timeline(language)
	if len(events) < TIMELINE_LENGTH:
		logger.warning("Timeline for %r had %d valid events; using fallback (%s)", subject, len(events), language)
		return fallback_timeline(language)
	return events

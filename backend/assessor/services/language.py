from __future__ import annotations
import logging
import re
from typing import Dict, Optional

from ..gemini_client import GeminiClient

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

LANGUAGE_NAMES: Dict[str, str] = {
	"en": "English",
	"hi": "Hindi",
	"ar": "Arabic",
	"es": "Spanish",
	"fr": "French",
	"de": "German",
	"ja": "Japanese",
	"zh": "Chinese",
	"ru": "Russian",
	"pt": "Portuguese",
	"gu": "Gujarati",
	"bn": "Bengali",
	"ta": "Tamil",
	"te": "Telugu",
	"kn": "Kannada",
	"ml": "Malayalam",
	"mr": "Marathi",
	"pa": "Punjabi",
	"ur": "Urdu",
	"it": "Italian",
	"nl": "Dutch",
	"ko": "Korean",
	"tr": "Turkish",
}

_CODE_RE = re.compile(r"^[a-z]{2,3}$")

_DETECTION_PROMPT = (
	"You are a language detection expert. Detect the language of the following text and respond "
	"with only the ISO language code (e.g., 'en' for English, 'hi' for Hindi, 'es' for Spanish, etc.)."
)


def normalize_language_code(value: Optional[str]) -> Optional[str]:
	"""Reduce a model reply or header tag such as ' "pt-BR". ' to 'pt'; None if it is not a code."""
	if not value:
		return None
	token = value.strip().strip("'\"`.,;:()[] \t\n").lower()
	token = re.split(r"[-_]", token)[0]
	if not _CODE_RE.match(token):
		return None
	return token


def language_name(code: str) -> str:
	return LANGUAGE_NAMES.get(code, code)


async def detect_language(client: Optional[GeminiClient], text: str) -> str:
	"""Classify the dominant language of text. Never raises; falls back to 'en'."""
	if client is None or not (text or "").strip():
		return DEFAULT_LANGUAGE
	try:
		raw = await client.complete(
			[
				{"role": "system", "content": _DETECTION_PROMPT},
				{"role": "user", "content": text},
			],
			temperature=0.1,
		)
	except Exception as e:
		logger.warning("Language detection failed, defaulting to %s: %s", DEFAULT_LANGUAGE, e)
		return DEFAULT_LANGUAGE
	code = normalize_language_code(raw)
	if code is None:
		logger.warning("Language detector returned an unusable reply; defaulting to %s", DEFAULT_LANGUAGE)
		return DEFAULT_LANGUAGE
	logger.info("Detected language: %s", code)
	return code

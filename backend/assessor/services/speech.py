"""
Speech normalization: turns a recorded answer into text before assessment.

Audio arrives base64 encoded, optionally as a data URL carrying its MIME type.
Degenerate recordings are rejected before Google Cloud Speech-to-Text is called,
and every failure comes back as an AudioRejection the caller renders, never as
an exception. There is no fallback transcript.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
from typing import Dict, Optional, Tuple

from google.cloud import speech_v1p1beta1 as speech
from google.api_core.exceptions import GoogleAPIError

from ..schemas import AudioRejection, Transcript, TranscriptionOutcome
from ..settings import settings

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "audio/webm"

TOO_SHORT_MESSAGE = (
	"Your recording is too short or empty. Please try speaking for longer, or use the text input instead."
)
UNSUPPORTED_FORMAT_MESSAGE = (
	"This audio format is not supported. Please record again or use the text input instead."
)
NO_SPEECH_MESSAGE = (
	"We couldn't detect any speech in your recording. Please try speaking louder or use the text input instead."
)
PROCESSING_FAILED_MESSAGE = (
	"We could not process your audio. Please try again or use the text input instead."
)

_Encoding = speech.RecognitionConfig.AudioEncoding

# MIME type -> (encoding, sample rate). A None rate lets the service read it from the file header.
_ENCODINGS: Dict[str, Tuple[int, Optional[int]]] = {
	"audio/webm": (_Encoding.WEBM_OPUS, 48000),
	"audio/ogg": (_Encoding.OGG_OPUS, 48000),
	"audio/wav": (_Encoding.LINEAR16, None),
	"audio/x-wav": (_Encoding.LINEAR16, None),
	"audio/wave": (_Encoding.LINEAR16, None),
	"audio/flac": (_Encoding.FLAC, None),
	"audio/x-flac": (_Encoding.FLAC, None),
	"audio/mpeg": (_Encoding.MP3, None),
	"audio/mp3": (_Encoding.MP3, None),
}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?:;[^,]*?)?;base64,(?P<data>.*)$", re.DOTALL)


def split_data_url(payload: str) -> Tuple[str, str]:
	"""Return (mime_type, base64_data) for a data URL or a bare base64 string."""
	text = (payload or "").strip()
	match = _DATA_URL_RE.match(text)
	if match:
		mime = (match.group("mime") or DEFAULT_MIME_TYPE).lower()
		return mime, match.group("data")
	return DEFAULT_MIME_TYPE, text


def decode_audio(payload: str) -> Tuple[str, Optional[bytes]]:
	mime, data = split_data_url(payload)
	try:
		return mime, base64.b64decode(data, validate=True)
	except (binascii.Error, ValueError):
		return mime, None


def _build_config(mime: str) -> speech.RecognitionConfig:
	encoding, sample_rate = _ENCODINGS[mime]
	kwargs = dict(
		encoding=encoding,
		language_code=settings.speech_language_code,
		alternative_language_codes=list(settings.speech_alternative_languages),
		enable_automatic_punctuation=True,
		model="default",
	)
	if sample_rate is not None:
		kwargs["sample_rate_hertz"] = sample_rate
	return speech.RecognitionConfig(**kwargs)


def _recognize(config: speech.RecognitionConfig, audio: speech.RecognitionAudio):
	# Runs in a worker thread; building the client reads credentials from disk
	client = speech.SpeechClient()
	return client.recognize(config=config, audio=audio)


async def transcribe_audio(payload: str) -> TranscriptionOutcome:
	"""Transcribe a base64 (or data URL) audio payload.

	Args:
		payload: Base64 audio, optionally prefixed "data:<mime>;base64,".

	Returns:
		Transcript with the recognized text, or AudioRejection whose reason is one of
		too_short, unsupported_format, no_speech or processing_failed.
	"""
	mime, audio_content = decode_audio(payload)
	if audio_content is None or mime not in _ENCODINGS:
		logger.info("Rejecting audio payload: unsupported format (%s)", mime)
		return AudioRejection(reason="unsupported_format", message=UNSUPPORTED_FORMAT_MESSAGE)
	if len(audio_content) < settings.audio_min_bytes:
		logger.info("Rejecting audio payload: %d bytes is below the minimum", len(audio_content))
		return AudioRejection(reason="too_short", message=TOO_SHORT_MESSAGE)

	audio = speech.RecognitionAudio(content=audio_content)
	config = _build_config(mime)
	try:
		response = await asyncio.to_thread(_recognize, config, audio)
	except GoogleAPIError as e:
		logger.error("Speech-to-Text API error: %s", e)
		return AudioRejection(reason="processing_failed", message=PROCESSING_FAILED_MESSAGE)
	except Exception as e:
		logger.error("Speech-to-Text transcription failed: %s", e)
		return AudioRejection(reason="processing_failed", message=PROCESSING_FAILED_MESSAGE)

	pieces = [
		result.alternatives[0].transcript.strip()
		for result in response.results
		if result.alternatives and result.alternatives[0].transcript.strip()
	]
	text = " ".join(pieces).strip()
	if not text:
		return AudioRejection(reason="no_speech", message=NO_SPEECH_MESSAGE)
	logger.info("Transcribed %d bytes of %s into %d characters", len(audio_content), mime, len(text))
	return Transcript(text=text)

"""
Assessment orchestration.

A request moves strictly forward through the stages: the input is normalized
(audio is transcribed first), its language detected, the knowledge analyzed and
the score refined. Missing-topic enrichment and the narrative summary then run
concurrently and the pieces are assembled into one AssessmentReport. The
detected language is threaded explicitly into every stage after detection.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, List, Optional, Union

from ..errors import InputValidationError
from ..gemini_client import GeminiClient
from ..schemas import (
	AssessmentReport,
	AssessmentRequest,
	AssessmentResult,
	AudioRejection,
	ScoredAnalysis,
)
from ..settings import settings
from .analyzer import analyze_knowledge
from .feedback import generate_assistant_summary
from .language import detect_language
from .scoring import count_words, refine_score
from .speech import transcribe_audio
from .topics import enrich_missing_topics

logger = logging.getLogger(__name__)


async def _run_together(*coros: Awaitable[Any]) -> List[Any]:
	"""Await coros concurrently; the first failure cancels the rest before it propagates."""
	tasks = [asyncio.ensure_future(coro) for coro in coros]
	try:
		done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
		for task in done:
			if task.exception() is not None:
				raise task.exception()
	finally:
		for task in tasks:
			if not task.done():
				task.cancel()
		# wait for cancelled tasks to unwind so none outlives this call
		await asyncio.gather(*tasks, return_exceptions=True)
	return [task.result() for task in tasks]


async def _run(request: AssessmentRequest, client: Optional[GeminiClient]) -> Union[AssessmentReport, AudioRejection]:
	subject = request.subject.strip()
	if not subject:
		raise InputValidationError("Subject must not be empty")
	if not request.raw_input.strip():
		raise InputValidationError("Input must not be empty")

	transcribed: Optional[str] = None
	if request.input_kind == "audio":
		outcome = await transcribe_audio(request.raw_input)
		if isinstance(outcome, AudioRejection):
			logger.info("Audio rejected: %s", outcome.reason)
			return outcome
		text = transcribed = outcome.text
	else:
		text = request.raw_input.strip()

	language = await detect_language(client, text)
	analysis = await analyze_knowledge(client, subject, text, language)

	word_count = count_words(text)
	scored = ScoredAnalysis(
		score=refine_score(analysis.raw_score, word_count, len(analysis.covered_topics)),
		covered_topics=analysis.covered_topics,
		missing_topics=analysis.missing_topics,
		topic_coverage=analysis.topic_coverage,
		feedback=analysis.feedback,
	)
	logger.info("Refined score %d from raw %.0f over %d words", scored.score, analysis.raw_score, word_count)

	enriched, summary = await _run_together(
		enrich_missing_topics(client, subject, scored.missing_topics, language),
		generate_assistant_summary(client, subject, text, scored, language),
	)

	result = AssessmentResult(
		score=scored.score,
		covered_topics=scored.covered_topics,
		missing_topics=enriched,
		topic_coverage=scored.topic_coverage,
		feedback=scored.feedback,
	)
	return AssessmentReport(
		result=result,
		assistant_summary=summary,
		detected_language=language,
		transcribed_text=transcribed,
	)


async def assess(
	request: AssessmentRequest,
	client: Optional[GeminiClient],
	*,
	timeout: Optional[float] = None,
) -> Union[AssessmentReport, AudioRejection]:
	"""Run one assessment end to end.

	Args:
		request: Subject, raw input and its kind ("text" or base64 "audio")
		client: Completion client, or None when the service is not configured
		timeout: Overall deadline in seconds; defaults to settings.pipeline_timeout_seconds

	Returns:
		AssessmentReport, or AudioRejection when the recording cannot be used

	Raises:
		InputValidationError: Subject or input is blank
		ServiceUnavailableError: The completion service is not configured
		AnalysisError: Knowledge analysis failed
		FeedbackError: The narrative summary could not be generated
		asyncio.TimeoutError: The pipeline exceeded its deadline
	"""
	deadline = settings.pipeline_timeout_seconds if timeout is None else timeout
	return await asyncio.wait_for(_run(request, client), timeout=deadline)

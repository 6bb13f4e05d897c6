from __future__ import annotations
import logging
import math

logger = logging.getLogger(__name__)

SHORT_ANSWER_WORDS = 10
SHORT_ANSWER_CAP = 20
BRIEF_ANSWER_WORDS = 30
IDEAL_WORD_COUNT = 75
BONUS_MIN_WORDS = 20
BONUS_MAX_WORDS = 50
BONUS_MULTIPLIER = 1.10


def count_words(text: str) -> int:
	return len((text or "").split())


def _round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
	return max(low, min(high, value))


def refine_score(raw_score: float, word_count: int, covered_topics: int = 0) -> int:
	"""Recompute the final 0-100 score from the model's raw score and the answer length.

	Answers under 10 words are capped at 20. Longer answers blend topic coverage
	(25 points per covered topic), an accuracy and an insight estimate derived from
	the raw score, scale the blend by length up to 75 words, and reward concise
	(20-50 words) but complete answers with a 10% bonus.
	"""
	if word_count < SHORT_ANSWER_WORDS:
		capped = _clamp(min(raw_score, SHORT_ANSWER_CAP))
		logger.debug("Short answer (%d words): capping score at %d", word_count, SHORT_ANSWER_CAP)
		return _round_half_up(capped)

	coverage = min(100.0, covered_topics * 25.0)
	# accuracy and insight approximate the raw score; neither is judged independently
	accuracy = min(100.0, raw_score * 0.8)
	insight = _clamp(raw_score - 20)

	if word_count < BRIEF_ANSWER_WORDS:
		weights = (0.40, 0.30, 0.30)
	else:
		weights = (0.60, 0.25, 0.15)

	base = coverage * weights[0] + accuracy * weights[1] + insight * weights[2]
	length_factor = min(1.0, word_count / IDEAL_WORD_COUNT)
	final = base * length_factor

	if BONUS_MIN_WORDS <= word_count <= BONUS_MAX_WORDS and coverage >= 75 and accuracy >= 80:
		final = min(100.0, final * BONUS_MULTIPLIER)
		logger.debug("Concise completeness bonus applied")

	score = _round_half_up(_clamp(final))
	logger.debug(
		"Score breakdown: coverage=%.1f accuracy=%.1f insight=%.1f weights=%s base=%.1f length=%.2f final=%d",
		coverage,
		accuracy,
		insight,
		weights,
		base,
		length_factor,
		score,
	)
	return score

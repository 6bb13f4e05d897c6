import pytest

from assessor.services.scoring import count_words, refine_score


def test_count_words_splits_on_any_whitespace():
	assert count_words("  gravity \t pulls\nthings   down ") == 4
	assert count_words("") == 0
	assert count_words("   ") == 0


@pytest.mark.parametrize("raw", [0, 15, 20, 85, 100])
def test_short_answers_are_capped_at_twenty(raw):
	assert refine_score(raw, word_count=9, covered_topics=4) == min(raw, 20)


def test_ten_words_leaves_the_short_answer_rule():
	# coverage 25, accuracy 72, insight 70 -> 52.6 scaled by 10/75
	assert refine_score(90, word_count=10, covered_topics=1) == 7


def test_bonus_window_lower_edge():
	# 78 base; 19 words gets no bonus, 20 words does
	assert refine_score(100, word_count=19, covered_topics=3) == 20
	assert refine_score(100, word_count=20, covered_topics=3) == 23


def test_bonus_window_upper_edge():
	assert refine_score(100, word_count=50, covered_topics=4) == 67
	assert refine_score(100, word_count=51, covered_topics=4) == 63


def test_bonus_requires_high_coverage_and_accuracy():
	# two covered topics keeps coverage at 50
	assert refine_score(100, word_count=40, covered_topics=2) == 33
	# raw 90 keeps accuracy at 72
	assert refine_score(90, word_count=40, covered_topics=4) == 47


def test_long_complete_answer():
	assert refine_score(100, word_count=80, covered_topics=4) == 92


def test_concise_complete_answer_gets_bonus():
	# 92 * 40/75 = 49.07, then +10%
	assert refine_score(100, word_count=40, covered_topics=4) == 54


def test_rounds_half_up():
	# 0.25 * 40 + 0.15 * 30 = 14.5
	assert refine_score(50, word_count=100, covered_topics=0) == 15


def test_result_is_clamped():
	assert refine_score(0, word_count=200, covered_topics=0) == 0
	assert 0 <= refine_score(100, word_count=500, covered_topics=10) <= 100


def test_refine_is_deterministic():
	results = {refine_score(73.4, word_count=42, covered_topics=3) for _ in range(20)}
	assert len(results) == 1

import json

import pytest

from assessor.schemas import TopicRef
from assessor.services.topics import (
	PLACEHOLDER_KEY_POINTS,
	PLACEHOLDER_OVERVIEW,
	enrich_missing_topics,
	explain_topic,
)

from conftest import topic_reply


def _fail_for(name):
	def reply(messages):
		if f'"{name}"' in messages[1]["content"]:
			raise RuntimeError("upstream timeout")
		return topic_reply(messages)

	return reply


@pytest.mark.asyncio
async def test_enrichment_failure_is_isolated_per_topic(make_client):
	client = make_client(topic=_fail_for("Treaty of Versailles"))
	topics = [
		TopicRef(name="Industrial Revolution", description="Shift to machine manufacturing"),
		TopicRef(name="Treaty of Versailles", description="End of the First World War"),
		TopicRef(name="Cold War", description="US and Soviet rivalry"),
	]
	enriched = await enrich_missing_topics(client, "History", topics, "en")
	assert [t.name for t in enriched] == [t.name for t in topics]
	assert enriched[1].overview == PLACEHOLDER_OVERVIEW
	assert enriched[1].key_points == PLACEHOLDER_KEY_POINTS
	assert enriched[0].overview == "A short overview."
	assert enriched[2].key_points == ["First point", "Second point", "Third point"]
	assert len(client.calls) == 3


@pytest.mark.asyncio
async def test_enrichment_rejects_malformed_explanations(make_client):
	client = make_client(topic=json.dumps({"overview": "", "keyPoints": "none"}))
	enriched = await enrich_missing_topics(client, "History", [TopicRef(name="Renaissance", description="Rebirth")], "fr")
	assert enriched[0].overview == PLACEHOLDER_OVERVIEW
	assert "French" in client.calls[0]["messages"][0]["content"]


@pytest.mark.asyncio
async def test_enrichment_of_nothing_makes_no_calls(make_client):
	client = make_client()
	assert await enrich_missing_topics(client, "History", [], "en") == []
	assert client.calls == []


@pytest.mark.asyncio
async def test_explain_topic_trims_key_points(make_client):
	client = make_client(topic=json.dumps({"overview": "Qubits hold superpositions.", "keyPoints": [f"p{i}" for i in range(8)]}))
	explanation = await explain_topic(client, "Physics", "Quantum computing", "Computing with qubits")
	assert explanation.overview == "Qubits hold superpositions."
	assert explanation.key_points == ["p0", "p1", "p2", "p3", "p4"]
	assert client.calls[0]["max_tokens"] == 500


@pytest.mark.asyncio
async def test_explain_topic_falls_back_to_static_text(make_client):
	client = make_client(topic=RuntimeError("boom"))
	explanation = await explain_topic(client, "Physics", "Entropy", "Disorder in a system")
	assert explanation.overview == "Entropy is an important concept in Physics."
	assert explanation.key_points[0] == "Disorder in a system"


@pytest.mark.asyncio
async def test_explain_topic_without_client():
	explanation = await explain_topic(None, "Physics", "Entropy", "Disorder in a system")
	assert explanation.overview == "Entropy is an important concept in Physics."

from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


InputKind = Literal["text", "audio"]


class _Frozen(BaseModel):
	model_config = ConfigDict(frozen=True)


class AssessmentRequest(_Frozen):
	subject: str = Field(min_length=1)
	raw_input: str = Field(min_length=1)
	input_kind: InputKind = "text"


class TopicRef(_Frozen):
	name: str
	description: str


class EnrichedTopic(TopicRef):
	overview: str
	key_points: List[str]


class TopicExplanation(_Frozen):
	overview: str
	key_points: List[str]


class TopicCoverage(_Frozen):
	name: str
	percentage: float = Field(ge=0, le=100)


class KnowledgeAnalysis(_Frozen):
	"""The Analyzer's output after coercion; raw_score is the model's own judgement."""
	raw_score: float = Field(ge=0, le=100)
	covered_topics: List[TopicRef] = Field(default_factory=list)
	missing_topics: List[TopicRef] = Field(default_factory=list)
	topic_coverage: List[TopicCoverage] = Field(default_factory=list)
	feedback: str = ""


class ScoredAnalysis(_Frozen):
	"""An analysis after score refinement, before its missing topics are enriched."""
	score: int = Field(ge=0, le=100)
	covered_topics: List[TopicRef]
	missing_topics: List[TopicRef]
	topic_coverage: List[TopicCoverage]
	feedback: str


class AssessmentResult(_Frozen):
	score: int = Field(ge=0, le=100)
	covered_topics: List[TopicRef]
	missing_topics: List[EnrichedTopic]
	topic_coverage: List[TopicCoverage]
	feedback: str
	created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TimelineEvent(_Frozen):
	year: str
	title: str
	description: str


class AssistantSummary(_Frozen):
	enhanced_feedback: str


class AssessmentReport(_Frozen):
	result: AssessmentResult
	assistant_summary: AssistantSummary
	detected_language: str
	transcribed_text: Optional[str] = None


AudioRejectionReason = Literal["too_short", "unsupported_format", "no_speech", "processing_failed"]


class AudioRejection(_Frozen):
	reason: AudioRejectionReason
	message: str


class Transcript(_Frozen):
	text: str


TranscriptionOutcome = Union[Transcript, AudioRejection]

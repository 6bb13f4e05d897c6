from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .models import AssessmentRecord, SessionLanguage
from .schemas import (
	AssessmentReport,
	AssessmentResult,
	AssistantSummary,
	EnrichedTopic,
	InputKind,
	TopicCoverage,
	TopicRef,
)

logger = logging.getLogger(__name__)


def _dump(items) -> str:
	return json.dumps([item.model_dump() for item in items], ensure_ascii=False)


def save_assessment(db: Session, subject: str, text: str, input_kind: InputKind, report: AssessmentReport) -> int:
	"""Insert a completed assessment and return its id. Rows are never updated."""
	result = report.result
	row = AssessmentRecord(
		subject=subject,
		input=text,
		input_type=input_kind,
		score=result.score,
		detected_language=report.detected_language,
		covered_topics=_dump(result.covered_topics),
		missing_topics=_dump(result.missing_topics),
		topic_coverage=_dump(result.topic_coverage),
		feedback=result.feedback,
		enhanced_feedback=report.assistant_summary.enhanced_feedback,
		created_at=result.created_at.replace(tzinfo=None),
	)
	db.add(row)
	db.commit()
	db.refresh(row)
	logger.info("Stored assessment %d (%s, score %d)", row.id, subject, row.score)
	return row.id


def get_assessment(db: Session, assessment_id: int) -> Optional[AssessmentRecord]:
	return db.query(AssessmentRecord).filter(AssessmentRecord.id == assessment_id).first()


def report_from_record(row: AssessmentRecord) -> AssessmentReport:
	result = AssessmentResult(
		score=row.score,
		covered_topics=[TopicRef(**t) for t in json.loads(row.covered_topics or "[]")],
		missing_topics=[EnrichedTopic(**t) for t in json.loads(row.missing_topics or "[]")],
		topic_coverage=[TopicCoverage(**t) for t in json.loads(row.topic_coverage or "[]")],
		feedback=row.feedback or "",
		created_at=row.created_at,
	)
	return AssessmentReport(
		result=result,
		assistant_summary=AssistantSummary(enhanced_feedback=row.enhanced_feedback or ""),
		detected_language=row.detected_language,
		transcribed_text=row.input if row.input_type == "audio" else None,
	)


def get_session_language(db: Session, session_id: Optional[str]) -> Optional[str]:
	if not session_id:
		return None
	row = db.query(SessionLanguage).filter(SessionLanguage.session_id == session_id).first()
	return row.language if row else None


def remember_session_language(db: Session, session_id: str, language: str) -> None:
	# Last writer wins
	row = db.query(SessionLanguage).filter(SessionLanguage.session_id == session_id).first()
	if row is None:
		row = SessionLanguage(session_id=session_id, language=language)
	else:
		row.language = language
		row.updated_at = datetime.utcnow()
	db.add(row)
	db.commit()

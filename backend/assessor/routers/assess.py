from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import AnalysisError, FeedbackError, InputValidationError, ServiceUnavailableError
from ..gemini_client import GeminiClient
from ..schemas import AssessmentRequest, AudioRejection
from ..services import assess
from ..services.feedback import generate_assistant_summary
from ..services.language import DEFAULT_LANGUAGE
from ..store import get_assessment, get_session_language, remember_session_language, report_from_record, save_assessment
from .deps import completion_client, session_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assessment"])


class AssessBody(BaseModel):
	subject: str = Field(min_length=1)
	input: str = Field(min_length=1)
	input_type: Literal["text", "audio"] = "text"


@router.post("/assess")
async def assess_knowledge(
	req: AssessBody,
	sid: str = Depends(session_id),
	client: Optional[GeminiClient] = Depends(completion_client),
	db: Session = Depends(get_db),
) -> Dict[str, Any]:
	"""Assess a typed or spoken answer and store the report.

	Raises:
		HTTPException: 422 for blank input or an unusable recording, 503 when the
			completion service is not configured, 502 when analysis or feedback
			fails, 504 when the pipeline runs out of time
	"""
	request = AssessmentRequest(subject=req.subject, raw_input=req.input, input_kind=req.input_type)
	try:
		outcome = await assess(request, client)
	except InputValidationError as e:
		raise HTTPException(status_code=422, detail=str(e))
	except ServiceUnavailableError as e:
		raise HTTPException(status_code=503, detail=str(e))
	except (AnalysisError, FeedbackError) as e:
		raise HTTPException(status_code=502, detail=str(e))
	except asyncio.TimeoutError:
		logger.error("Assessment of %r timed out", request.subject)
		raise HTTPException(status_code=504, detail="Assessment timed out")

	if isinstance(outcome, AudioRejection):
		raise HTTPException(status_code=422, detail=outcome.model_dump())

	text = outcome.transcribed_text or request.raw_input.strip()
	assessment_id = save_assessment(db, request.subject.strip(), text, request.input_kind, outcome)
	remember_session_language(db, sid, outcome.detected_language)
	return {"assessment_id": assessment_id, **outcome.model_dump(mode="json")}


@router.get("/assessments/{assessment_id}")
def read_assessment(assessment_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
	row = get_assessment(db, assessment_id)
	if row is None:
		raise HTTPException(status_code=404, detail="Assessment not found")
	report = report_from_record(row)
	return {"assessment_id": row.id, "subject": row.subject, **report.model_dump(mode="json")}


@router.post("/assessments/{assessment_id}/assistant-summary")
async def regenerate_assistant_summary(
	assessment_id: int,
	sid: str = Depends(session_id),
	client: Optional[GeminiClient] = Depends(completion_client),
	db: Session = Depends(get_db),
) -> Dict[str, Any]:
	"""Write a fresh narrative summary for a stored assessment; the stored row is left as is."""
	row = get_assessment(db, assessment_id)
	if row is None:
		raise HTTPException(status_code=404, detail="Assessment not found")
	report = report_from_record(row)
	# The stored language wins; the session only fills in for rows saved without one
	language = row.detected_language or get_session_language(db, sid) or DEFAULT_LANGUAGE
	try:
		summary = await generate_assistant_summary(client, row.subject, row.input, report.result, language)
	except ServiceUnavailableError as e:
		raise HTTPException(status_code=503, detail=str(e))
	except FeedbackError as e:
		raise HTTPException(status_code=502, detail=str(e))
	return {"assessment_id": row.id, "language": language, **summary.model_dump()}

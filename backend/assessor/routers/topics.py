from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..gemini_client import GeminiClient
from ..services import explain_topic
from ..services.language import DEFAULT_LANGUAGE, normalize_language_code
from ..store import get_session_language
from .deps import completion_client, session_id

router = APIRouter(tags=["topics"])


class ExplainTopicRequest(BaseModel):
	subject: str = Field(min_length=1)
	topic_name: str = Field(min_length=1)
	topic_description: str = ""
	language: Optional[str] = None


@router.post("/explain-topic")
async def explain(
	req: ExplainTopicRequest,
	sid: str = Depends(session_id),
	client: Optional[GeminiClient] = Depends(completion_client),
	db: Session = Depends(get_db),
) -> Dict[str, Any]:
	# Upstream failures fall back to a static explanation, so this never errors on them
	language = (
		normalize_language_code(req.language)
		or get_session_language(db, sid)
		or DEFAULT_LANGUAGE
	)
	explanation = await explain_topic(client, req.subject, req.topic_name, req.topic_description, language)
	return {
		"subject": req.subject,
		"topic_name": req.topic_name,
		"overview": explanation.overview,
		"key_points": explanation.key_points,
	}

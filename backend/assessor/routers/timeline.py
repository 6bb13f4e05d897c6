from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from ..db import get_db
from ..gemini_client import GeminiClient
from ..services import generate_timeline
from ..services.timeline import resolve_timeline_language
from ..store import get_session_language, remember_session_language
from .deps import completion_client, session_id

router = APIRouter(prefix="/timeline", tags=["timeline"])


@router.get("/{subject}")
async def get_timeline(
	subject: str,
	language: Optional[str] = None,
	accept_language: Optional[str] = Header(default=None),
	sid: str = Depends(session_id),
	client: Optional[GeminiClient] = Depends(completion_client),
	db: Session = Depends(get_db),
) -> Dict[str, Any]:
	resolved = resolve_timeline_language(language, get_session_language(db, sid), accept_language)
	remember_session_language(db, sid, resolved)
	events = await generate_timeline(client, subject, resolved)
	return {"subject": subject, "language": resolved, "timeline": [e.model_dump() for e in events]}

from __future__ import annotations
import secrets
from typing import AsyncIterator, Optional

from fastapi import Request, Response

from ..gemini_client import GeminiClient, build_client
from ..settings import settings


async def completion_client() -> AsyncIterator[Optional[GeminiClient]]:
	"""One completion client per request; None when the service is not configured."""
	client = build_client()
	try:
		yield client
	finally:
		if client is not None:
			await client.aclose()


def session_id(request: Request, response: Response) -> str:
	"""Return the caller's session id, issuing a cookie when there is none yet."""
	sid = request.cookies.get(settings.session_cookie_name)
	if not sid:
		sid = secrets.token_urlsafe(24)
		response.set_cookie(
			settings.session_cookie_name,
			sid,
			max_age=settings.session_retention_days * 24 * 60 * 60,
			httponly=True,
			samesite="lax",
		)
	return sid

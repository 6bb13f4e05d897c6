import asyncio
import logging

from fastapi import FastAPI

from .db import SessionLocal, ensure_schema
from .cleanup import purge_stale_sessions
from .settings import settings
from .routers import assess, subjects, timeline, topics

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Knowledge Assessment API")
app.include_router(assess.router)
app.include_router(topics.router)
app.include_router(timeline.router)
app.include_router(subjects.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


def _purge_once() -> None:
	db = SessionLocal()
	try:
		purge_stale_sessions(db)
	except Exception as e:
		logger.warning("Session cleanup failed: %s", e)
	finally:
		db.close()


async def _cleanup_watcher():
	# Startup already purged once; then daily
	while True:
		await asyncio.sleep(24 * 60 * 60)
		_purge_once()


@app.on_event("startup")
async def startup_event():
	ensure_schema()
	_purge_once()
	asyncio.create_task(_cleanup_watcher())

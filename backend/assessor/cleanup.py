from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import SessionLanguage
from .settings import settings

logger = logging.getLogger(__name__)


def purge_stale_sessions(db: Session, retention_days: Optional[int] = None) -> int:
	"""Delete session language rows not updated within the retention window."""
	days = settings.session_retention_days if retention_days is None else retention_days
	threshold = datetime.utcnow() - timedelta(days=days)
	res = db.execute(delete(SessionLanguage).where(SessionLanguage.updated_at < threshold))
	db.commit()
	removed = res.rowcount or 0
	if removed:
		logger.info("Purged %d stale session language rows", removed)
	return removed

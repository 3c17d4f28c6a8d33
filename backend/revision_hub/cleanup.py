from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import AuthSession
from .settings import settings


logger = logging.getLogger(__name__)


def purge_expired_sessions(db: Session, now: Optional[datetime] = None) -> int:
	# A session older than the token lifetime can no longer back a valid token
	now = now or datetime.now(timezone.utc)
	threshold = now - timedelta(minutes=max(settings.access_token_expire_minutes, 1))
	res = db.execute(delete(AuthSession).where(AuthSession.created_at < threshold))
	db.commit()
	removed = res.rowcount or 0
	if removed:
		logger.info("Purged %s expired auth session(s)", removed)
	return removed

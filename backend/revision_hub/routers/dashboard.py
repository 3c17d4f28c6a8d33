from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..schemas import StatsOut, TopicOut, render_topic
from ..scheduling import resolve_timezone
from ..settings import settings
from ..stats import CollectionKind, dashboard_stats, filter_collection, next_review_in_days
from ..store import TopicStore
from .auth import User, get_current_user
from .topics import get_store

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class CollectionOut(BaseModel):
	kind: CollectionKind
	count: int
	topics: List[TopicOut]
	next_review_in_days: Optional[int] = None


@router.get("/stats", response_model=StatsOut)
def stats(user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	tz = resolve_timezone(settings.schedule_timezone)
	return dashboard_stats(store.list_all(user.id), store.clock(), tz).to_dict()


@router.get("/collections/{kind}", response_model=CollectionOut)
def collection(kind: CollectionKind, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	tz = resolve_timezone(settings.schedule_timezone)
	now = store.clock()
	topics = store.list_all(user.id)
	selected = filter_collection(topics, kind, now, tz)
	return CollectionOut(
		kind=kind,
		count=len(selected),
		topics=[render_topic(t, now, tz) for t in selected],
		next_review_in_days=next_review_in_days(topics, now),
	)

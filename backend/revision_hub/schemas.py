from __future__ import annotations
from datetime import datetime, timezone, tzinfo
from typing import List, Optional

from pydantic import BaseModel, Field

from .scheduling import CheckpointStatus, as_utc, classify, is_due_today
from .stats import per_topic_progress


class CheckpointOut(BaseModel):
	offset_days: int
	due_date: datetime
	completed_at: Optional[datetime] = None
	status: CheckpointStatus
	due_today: bool = False


class TopicOut(BaseModel):
	id: str
	parent_id: Optional[str] = None
	owner_id: str
	name: str
	notes: str = ""
	created_at: datetime
	checkpoints: List[CheckpointOut]
	progress: int = Field(ge=0, le=100)


class TopicTreeOut(TopicOut):
	children: List["TopicTreeOut"] = Field(default_factory=list)


class StatsOut(BaseModel):
	total: int
	mastered: int
	due_today: int
	overall_progress: int
	next_review_in_days: Optional[int] = None


def _utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
	return as_utc(value) if value is not None else None


def render_topic(topic, now: datetime, tz: tzinfo = timezone.utc) -> dict:
	return {
		"id": topic.id,
		"parent_id": topic.parent_id,
		"owner_id": topic.owner_id,
		"name": topic.name,
		"notes": topic.notes or "",
		"created_at": as_utc(topic.created_at),
		"checkpoints": [
			{
				"offset_days": c.offset_days,
				"due_date": as_utc(c.due_date),
				"completed_at": _utc_or_none(c.completed_at),
				"status": classify(c, now),
				"due_today": is_due_today(c, now, tz),
			}
			for c in topic.checkpoints
		],
		"progress": per_topic_progress(topic),
	}


TopicTreeOut.model_rebuild()

"""
Fixed review schedule for topics.

Every topic gets one checkpoint per offset in ``REVIEW_OFFSETS`` (days after
creation). ``classify`` and ``is_due_today`` are the only places that decide
whether a checkpoint is completed, overdue or due; tree rendering, the
dashboard counts and the client cache all go through them.

Checkpoints are duck-typed: anything with ``due_date`` and ``completed_at``
attributes works (ORM rows, API schemas, ``ScheduledCheckpoint``).
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, Optional
from zoneinfo import ZoneInfo


REVIEW_OFFSETS = (1, 3, 7, 21)


class CheckpointStatus(str, enum.Enum):
	COMPLETED = "completed"
	OVERDUE = "overdue"
	PENDING = "pending"


@dataclass(frozen=True)
class ScheduledCheckpoint:
	offset_days: int
	due_date: datetime
	completed_at: Optional[datetime] = None


def as_utc(value: datetime) -> datetime:
	"""Treat naive datetimes as UTC (SQLite drops tzinfo on the way back)."""
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


def resolve_timezone(name: Optional[str]) -> tzinfo:
	if not name or name.upper() == "UTC":
		return timezone.utc
	return ZoneInfo(name)


def schedule_checkpoints(created_at: datetime) -> List[ScheduledCheckpoint]:
	created = as_utc(created_at)
	return [
		ScheduledCheckpoint(offset_days=offset, due_date=created + timedelta(days=offset))
		for offset in REVIEW_OFFSETS
	]


def classify(checkpoint, now: datetime) -> CheckpointStatus:
	if checkpoint.completed_at is not None:
		return CheckpointStatus.COMPLETED
	if as_utc(checkpoint.due_date) < as_utc(now):
		return CheckpointStatus.OVERDUE
	return CheckpointStatus.PENDING


def is_due_today(checkpoint, now: datetime, tz: tzinfo = timezone.utc) -> bool:
	# Overdue-but-same-day still counts: the comparison is on calendar days only.
	if checkpoint.completed_at is not None:
		return False
	due_day = as_utc(checkpoint.due_date).astimezone(tz).date()
	return due_day == as_utc(now).astimezone(tz).date()


def days_until(checkpoint, now: datetime) -> int:
	"""Whole days until the checkpoint is due, rounded up; negative when past."""
	delta = as_utc(checkpoint.due_date) - as_utc(now)
	day = timedelta(days=1)
	return -((-delta) // day)

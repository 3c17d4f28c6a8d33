"""
Dashboard statistics over a collection of topics.

All predicates come from ``scheduling`` so the counts here always agree with
the per-checkpoint status shown next to each topic.
"""
from __future__ import annotations

import enum
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from .scheduling import CheckpointStatus, classify, days_until, is_due_today


class CollectionKind(str, enum.Enum):
	ALL = "all"
	DUE = "due"
	MASTERED = "mastered"


@dataclass(frozen=True)
class DashboardStats:
	total: int
	mastered: int
	due_today: int
	overall_progress: int
	next_review_in_days: Optional[int]

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


def _percent(done: int, total: int) -> int:
	if total == 0:
		return 0
	# Half up, so 1 of 8 reads as 13%
	return int(math.floor(100 * done / total + 0.5))


def _completed(topic) -> int:
	return sum(1 for c in topic.checkpoints if c.completed_at is not None)


def per_topic_progress(topic) -> int:
	return _percent(_completed(topic), len(topic.checkpoints))


def overall_progress(topics: Iterable[Any]) -> int:
	done = total = 0
	for t in topics:
		done += _completed(t)
		total += len(t.checkpoints)
	return _percent(done, total)


def is_mastered(topic) -> bool:
	return len(topic.checkpoints) > 0 and _completed(topic) == len(topic.checkpoints)


def has_due_today(topic, now: datetime, tz: tzinfo = timezone.utc) -> bool:
	return any(is_due_today(c, now, tz) for c in topic.checkpoints)


def mastered_count(topics: Iterable[Any]) -> int:
	return sum(1 for t in topics if is_mastered(t))


def due_today_count(topics: Iterable[Any], now: datetime, tz: tzinfo = timezone.utc) -> int:
	return sum(1 for t in topics if has_due_today(t, now, tz))


def next_review_in_days(topics: Iterable[Any], now: datetime) -> Optional[int]:
	upcoming = [
		days_until(c, now)
		for t in topics
		for c in t.checkpoints
		if classify(c, now) is CheckpointStatus.PENDING and days_until(c, now) > 0
	]
	return min(upcoming) if upcoming else None


def filter_collection(topics: Iterable[Any], kind, now: datetime, tz: tzinfo = timezone.utc) -> List[Any]:
	kind = CollectionKind(kind)
	topics = list(topics)
	if kind is CollectionKind.DUE:
		return [t for t in topics if has_due_today(t, now, tz)]
	if kind is CollectionKind.MASTERED:
		return [t for t in topics if is_mastered(t)]
	return topics


def dashboard_stats(topics: Iterable[Any], now: datetime, tz: tzinfo = timezone.utc) -> DashboardStats:
	topics = list(topics)
	return DashboardStats(
		total=len(topics),
		mastered=mastered_count(topics),
		due_today=due_today_count(topics, now, tz),
		overall_progress=overall_progress(topics),
		next_review_in_days=next_review_in_days(topics, now),
	)

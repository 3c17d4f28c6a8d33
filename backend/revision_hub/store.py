"""
Topic store: the only code that mutates topics and their checkpoints.

Every operation takes the caller's ``owner_id`` and checks it against the
stored owner. Mutations of one topic run under a per-topic lock (plus
``SELECT ... FOR UPDATE`` on databases that support it) so a
read-modify-write such as a checkpoint toggle is never interleaved.
Operations that change the shape of an owner's tree (create, move, delete)
also hold that owner's tree lock, so parent checks and cycle checks see a
tree no other request is rearranging.
"""
from __future__ import annotations

import logging
import threading
import uuid
from contextlib import ExitStack, contextmanager
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .errors import AuthorizationError, NotFoundError, ValidationError
from .hierarchy import descendant_ids
from .models import Checkpoint, Topic
from .scheduling import schedule_checkpoints


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
	return datetime.now(timezone.utc)


class _KeyedLocks:
	def __init__(self) -> None:
		self._guard = threading.Lock()
		self._locks: Dict[str, threading.Lock] = {}

	@contextmanager
	def hold(self, key: str) -> Iterator[None]:
		with self._guard:
			lock = self._locks.setdefault(key, threading.Lock())
		with lock:
			yield

	def forget(self, key: str) -> None:
		with self._guard:
			self._locks.pop(key, None)


_topic_locks = _KeyedLocks()


def _tree_key(owner_id: str) -> str:
	return f"owner:{owner_id}"


def _clean_name(name: Optional[str]) -> str:
	cleaned = (name or "").strip()
	if not cleaned:
		raise ValidationError("Topic name must not be empty", field="name")
	return cleaned


class TopicStore:
	def __init__(self, db: Session, clock: Optional[Clock] = None) -> None:
		self.db = db
		self.clock = clock or utc_now

	# ---- reads ----

	def _load(self, topic_id: str, *, for_update: bool = False) -> Optional[Topic]:
		stmt = select(Topic).where(Topic.id == topic_id).execution_options(populate_existing=True)
		if for_update:
			stmt = stmt.with_for_update()
		return self.db.execute(stmt).scalar_one_or_none()

	def _owned(self, owner_id: str, topic_id: str, *, for_update: bool = False) -> Topic:
		topic = self._load(topic_id, for_update=for_update)
		if topic is None:
			raise NotFoundError("Topic", topic_id)
		if topic.owner_id != owner_id:
			logger.warning("User %s attempted to access topic %s owned by another user", owner_id, topic_id)
			raise AuthorizationError()
		return topic

	def _parent_for(self, owner_id: str, parent_id: str) -> Topic:
		# A parent belonging to someone else is reported as missing, not forbidden.
		parent = self._load(parent_id, for_update=True)
		if parent is None or parent.owner_id != owner_id:
			raise NotFoundError("Parent topic", parent_id)
		return parent

	def get(self, owner_id: str, topic_id: str) -> Topic:
		return self._owned(owner_id, topic_id)

	def list_all(self, owner_id: str) -> List[Topic]:
		stmt = select(Topic).where(Topic.owner_id == owner_id).order_by(Topic.created_at, Topic.id)
		return list(self.db.execute(stmt).scalars().all())

	# ---- writes ----

	@contextmanager
	def _mutating(self, topic_id: str, *, reshapes: Optional[str] = None) -> Iterator[None]:
		# Lock order is always owner tree first, then topic
		with ExitStack() as locks:
			if reshapes is not None:
				locks.enter_context(_topic_locks.hold(_tree_key(reshapes)))
			locks.enter_context(_topic_locks.hold(topic_id))
			try:
				yield
				self.db.commit()
			except Exception:
				self.db.rollback()
				raise

	def create(self, owner_id: str, name: str, parent_id: Optional[str] = None) -> Topic:
		cleaned = _clean_name(name)
		topic_id = uuid.uuid4().hex
		with self._mutating(topic_id, reshapes=owner_id):
			if parent_id is not None:
				self._parent_for(owner_id, parent_id)
			now = self.clock()
			topic = Topic(
				id=topic_id,
				owner_id=owner_id,
				parent_id=parent_id,
				name=cleaned,
				notes="",
				created_at=now,
				updated_at=now,
			)
			topic.checkpoints = [
				Checkpoint(offset_days=s.offset_days, due_date=s.due_date, completed_at=None)
				for s in schedule_checkpoints(now)
			]
			self.db.add(topic)
		self.db.refresh(topic)
		logger.info("Created topic %s for user %s (parent=%s)", topic.id, owner_id, parent_id)
		return topic

	def update(self, owner_id: str, topic_id: str, *, name: Optional[str] = None, notes: Optional[str] = None) -> Topic:
		"""Rename and/or replace notes in a single transaction."""
		cleaned = _clean_name(name) if name is not None else None
		with self._mutating(topic_id):
			topic = self._owned(owner_id, topic_id, for_update=True)
			if cleaned is not None:
				topic.name = cleaned
			if notes is not None:
				topic.notes = notes
			topic.updated_at = self.clock()
		return topic

	def rename(self, owner_id: str, topic_id: str, new_name: str) -> Topic:
		return self.update(owner_id, topic_id, name=_clean_name(new_name))

	def update_notes(self, owner_id: str, topic_id: str, notes: Optional[str]) -> Topic:
		return self.update(owner_id, topic_id, notes=notes or "")

	def toggle_checkpoint(self, owner_id: str, topic_id: str, offset_days: int) -> Topic:
		with self._mutating(topic_id):
			topic = self._owned(owner_id, topic_id, for_update=True)
			checkpoint = next((c for c in topic.checkpoints if c.offset_days == offset_days), None)
			if checkpoint is None:
				raise NotFoundError("Checkpoint", f"{topic_id}/{offset_days}")
			now = self.clock()
			checkpoint.completed_at = None if checkpoint.completed_at is not None else now
			topic.updated_at = now
			logger.debug(
				"Toggled checkpoint %s of topic %s -> %s",
				offset_days, topic_id, "completed" if checkpoint.completed_at else "open",
			)
		return topic

	def move(self, owner_id: str, topic_id: str, new_parent_id: Optional[str]) -> Topic:
		with self._mutating(topic_id, reshapes=owner_id):
			topic = self._owned(owner_id, topic_id, for_update=True)
			if new_parent_id is not None:
				if new_parent_id == topic_id:
					raise ValidationError("A topic cannot be its own parent", field="parent_id")
				self._parent_for(owner_id, new_parent_id)
				if new_parent_id in descendant_ids(self.list_all(owner_id), topic_id):
					raise ValidationError("A topic cannot be moved under one of its descendants", field="parent_id")
			topic.parent_id = new_parent_id
			topic.updated_at = self.clock()
		logger.info("Moved topic %s under %s", topic_id, new_parent_id)
		return topic

	def delete(self, owner_id: str, topic_id: str) -> None:
		"""Delete a topic; its direct children become roots."""
		with self._mutating(topic_id, reshapes=owner_id):
			topic = self._owned(owner_id, topic_id, for_update=True)
			promoted = self.db.execute(
				update(Topic)
				.where(Topic.parent_id == topic_id, Topic.owner_id == owner_id)
				.values(parent_id=None, updated_at=self.clock())
				.execution_options(synchronize_session="fetch")
			).rowcount
			self.db.delete(topic)
		_topic_locks.forget(topic_id)
		logger.info("Deleted topic %s; promoted %s child topic(s) to root", topic_id, promoted or 0)

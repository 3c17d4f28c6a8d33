from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from .db import Base


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class AuthUser(Base):
	__tablename__ = "auth_users"
	id = Column(String(32), primary_key=True)
	email = Column(String(256), unique=True, index=True, nullable=False)
	name = Column(String(128), nullable=False, default="")
	# Empty for the shared guest account, which never logs in with a password
	password_hash = Column(String(256), nullable=False, default="")
	created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
	updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# JWT "jti"; deleting the row revokes the token
	session_id = Column(String(64), primary_key=True)
	user_id = Column(String(32), ForeignKey("auth_users.id", ondelete="CASCADE"), index=True, nullable=False)
	created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
	last_activity_at = Column(DateTime(timezone=True), nullable=True)


class Topic(Base):
	__tablename__ = "topics"
	id = Column(String(32), primary_key=True)
	owner_id = Column(String(32), index=True, nullable=False)
	parent_id = Column(String(32), ForeignKey("topics.id"), nullable=True, index=True)
	name = Column(String(256), nullable=False)
	notes = Column(Text, nullable=False, default="")
	created_at = Column(DateTime(timezone=True), nullable=False)
	updated_at = Column(DateTime(timezone=True), nullable=False)

	checkpoints = relationship(
		"Checkpoint",
		back_populates="topic",
		order_by="Checkpoint.offset_days",
		cascade="all, delete-orphan",
		lazy="selectin",
	)

	def __repr__(self) -> str:
		return f"<Topic {self.id} {self.name!r} parent={self.parent_id}>"


class Checkpoint(Base):
	__tablename__ = "checkpoints"
	topic_id = Column(String(32), ForeignKey("topics.id", ondelete="CASCADE"), primary_key=True)
	# One row per fixed review offset; the composite key forbids duplicates
	offset_days = Column(Integer, primary_key=True)
	due_date = Column(DateTime(timezone=True), nullable=False)
	completed_at = Column(DateTime(timezone=True), nullable=True)

	topic = relationship("Topic", back_populates="checkpoints")

	__table_args__ = (
		CheckConstraint("offset_days IN (1, 3, 7, 21)", name="ck_checkpoint_offset"),
	)

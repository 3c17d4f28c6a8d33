from __future__ import annotations
import logging

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./revision_hub.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)

if DATABASE_URL.startswith("sqlite"):
	@event.listens_for(engine, "connect")
	def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
		cursor = dbapi_connection.cursor()
		cursor.execute("PRAGMA foreign_keys=ON")
		cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for development (SQLite-friendly)
def ensure_schema() -> None:
	try:
		inspector = inspect(engine)
		tables = set(inspector.get_table_names())
	except Exception:
		logger.warning("Schema inspection failed; skipping lightweight migrations", exc_info=True)
		return
	if "topics" in tables:
		cols = {c["name"] for c in inspector.get_columns("topics")}
		with engine.begin() as conn:
			if "notes" not in cols:
				conn.exec_driver_sql("ALTER TABLE topics ADD COLUMN notes TEXT DEFAULT '' NOT NULL")
				logger.info("Added topics.notes column")
			if "parent_id" not in cols:
				conn.exec_driver_sql("ALTER TABLE topics ADD COLUMN parent_id VARCHAR(32)")
				logger.info("Added topics.parent_id column")
	if "auth_sessions" in tables:
		cols = {c["name"] for c in inspector.get_columns("auth_sessions")}
		with engine.begin() as conn:
			if "last_activity_at" not in cols:
				conn.exec_driver_sql("ALTER TABLE auth_sessions ADD COLUMN last_activity_at DATETIME")
				logger.info("Added auth_sessions.last_activity_at column")

from __future__ import annotations
import csv
import io
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import ValidationError
from ..hierarchy import build_forest, filter_topics, walk
from ..schemas import TopicOut, TopicTreeOut, render_topic
from ..scheduling import as_utc, resolve_timezone
from ..settings import settings
from ..stats import per_topic_progress
from ..store import TopicStore
from .auth import User, get_current_user


router = APIRouter(prefix="/topics", tags=["topics"])


class CreateTopicRequest(BaseModel):
	name: str
	parent_id: Optional[str] = None


class UpdateTopicRequest(BaseModel):
	name: Optional[str] = None
	notes: Optional[str] = None


class MoveTopicRequest(BaseModel):
	parent_id: Optional[str] = None


def get_store(db: Session = Depends(get_db)) -> TopicStore:
	return TopicStore(db)


def _render(store: TopicStore, topic) -> dict:
	return render_topic(topic, store.clock(), resolve_timezone(settings.schedule_timezone))


@router.post("", response_model=TopicOut, status_code=201)
def create_topic(req: CreateTopicRequest, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	topic = store.create(user.id, req.name, req.parent_id)
	return _render(store, topic)


@router.get("", response_model=List[TopicOut])
def list_topics(q: Optional[str] = None, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	topics = filter_topics(store.list_all(user.id), q)
	return [_render(store, t) for t in topics]


@router.get("/tree", response_model=List[TopicTreeOut])
def topic_tree(q: Optional[str] = None, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	# Search narrows the set first, so a match whose parent did not match shows as a root
	forest = build_forest(filter_topics(store.list_all(user.id), q))
	return [node.to_dict(lambda t: _render(store, t)) for node in forest]


@router.get("/export.csv")
def export_csv(user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	buf = io.StringIO()
	writer = csv.writer(buf)
	writer.writerow(["ID", "Name", "Parent", "Progress", "Created At"])
	for _, node in walk(build_forest(store.list_all(user.id))):
		t = node.topic
		writer.writerow([t.id, t.name, t.parent_id or "None", f"{per_topic_progress(t)}%", as_utc(t.created_at).isoformat()])
	filename = f"revision-progress-{store.clock().date().isoformat()}.csv"
	return Response(
		content=buf.getvalue(),
		media_type="text/csv",
		headers={"Content-Disposition": f'attachment; filename="{filename}"'},
	)


@router.get("/{topic_id}", response_model=TopicOut)
def get_topic(topic_id: str, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	return _render(store, store.get(user.id, topic_id))


@router.patch("/{topic_id}", response_model=TopicOut)
def update_topic(topic_id: str, req: UpdateTopicRequest, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	if req.name is None and req.notes is None:
		raise ValidationError("provide name and/or notes")
	return _render(store, store.update(user.id, topic_id, name=req.name, notes=req.notes))


@router.put("/{topic_id}/parent", response_model=TopicOut)
def move_topic(topic_id: str, req: MoveTopicRequest, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	return _render(store, store.move(user.id, topic_id, req.parent_id))


@router.post("/{topic_id}/checkpoints/{offset_days}/toggle", response_model=TopicOut)
def toggle_checkpoint(topic_id: str, offset_days: int, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	return _render(store, store.toggle_checkpoint(user.id, topic_id, offset_days))


@router.delete("/{topic_id}", status_code=204)
def delete_topic(topic_id: str, user: User = Depends(get_current_user), store: TopicStore = Depends(get_store)):
	store.delete(user.id, topic_id)
	return Response(status_code=204)

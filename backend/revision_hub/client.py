from __future__ import annotations
import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional

import httpx

from .errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, RevisionHubError, ValidationError
from .hierarchy import TreeNode, build_forest, filter_topics
from .schemas import StatsOut, TopicOut
from .stats import DashboardStats, dashboard_stats, filter_collection


logger = logging.getLogger(__name__)

_ERRORS_BY_STATUS = {
	401: AuthenticationError,
	403: AuthorizationError,
	409: ConflictError,
}


def _raise_for_api_error(r: httpx.Response) -> None:
	if r.is_success:
		return
	try:
		detail = r.json().get("detail", r.text)
	except ValueError:
		detail = r.text
	if not isinstance(detail, str):
		detail = str(detail)
	if r.status_code == 404:
		err: RevisionHubError = NotFoundError("Resource", r.request.url.path)
		err.detail = detail
		raise err
	if r.status_code == 422:
		raise ValidationError(detail)
	error_cls = _ERRORS_BY_STATUS.get(r.status_code)
	if error_cls is not None:
		raise error_cls(detail)
	r.raise_for_status()


class RevisionHubClient:
	def __init__(self, base_url: str = "http://localhost:8000", *, token: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
		self.token = token
		self._client = httpx.AsyncClient(base_url=base_url, timeout=30, transport=transport)

	def _headers(self) -> Dict[str, str]:
		return {"Authorization": f"Bearer {self.token}"} if self.token else {}

	async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
		r = await self._client.request(method, path, headers=self._headers(), **kwargs)
		_raise_for_api_error(r)
		return r

	# ---- identity ----

	async def login(self, email: str, password: str) -> Dict[str, Any]:
		data = (await self._request("POST", "/auth/login", json={"email": email, "password": password})).json()
		self.token = data["access_token"]
		return data["user"]

	async def register(self, email: str, password: str, name: str = "") -> Dict[str, Any]:
		data = (await self._request("POST", "/auth/register", json={"email": email, "password": password, "name": name})).json()
		self.token = data["access_token"]
		return data["user"]

	async def guest_login(self) -> Dict[str, Any]:
		data = (await self._request("POST", "/auth/guest")).json()
		self.token = data["access_token"]
		return data["user"]

	# ---- topics ----

	async def list_topics(self) -> List[TopicOut]:
		r = await self._request("GET", "/topics")
		return [TopicOut.model_validate(item) for item in r.json()]

	async def get_topic(self, topic_id: str) -> TopicOut:
		return TopicOut.model_validate((await self._request("GET", f"/topics/{topic_id}")).json())

	async def create_topic(self, name: str, parent_id: Optional[str] = None) -> TopicOut:
		r = await self._request("POST", "/topics", json={"name": name, "parent_id": parent_id})
		return TopicOut.model_validate(r.json())

	async def update_topic(self, topic_id: str, *, name: Optional[str] = None, notes: Optional[str] = None) -> TopicOut:
		payload = {k: v for k, v in {"name": name, "notes": notes}.items() if v is not None}
		return TopicOut.model_validate((await self._request("PATCH", f"/topics/{topic_id}", json=payload)).json())

	async def move_topic(self, topic_id: str, parent_id: Optional[str]) -> TopicOut:
		r = await self._request("PUT", f"/topics/{topic_id}/parent", json={"parent_id": parent_id})
		return TopicOut.model_validate(r.json())

	async def toggle_checkpoint(self, topic_id: str, offset_days: int) -> TopicOut:
		r = await self._request("POST", f"/topics/{topic_id}/checkpoints/{offset_days}/toggle")
		return TopicOut.model_validate(r.json())

	async def delete_topic(self, topic_id: str) -> None:
		await self._request("DELETE", f"/topics/{topic_id}")

	async def stats(self) -> StatsOut:
		return StatsOut.model_validate((await self._request("GET", "/dashboard/stats")).json())

	async def aclose(self) -> None:
		await self._client.aclose()


class TopicCache:
	"""Client-side copy of the signed-in user's topics.

	The server stays the source of truth: ``refresh()`` is the only way data
	enters the cache, mutations go to the API and are followed by a refresh,
	and ``clear()`` can be called at any time without side effects. Derived
	views use the same scheduling rules as the server.
	"""

	def __init__(self, client: RevisionHubClient, *, clock: Optional[Callable[[], datetime]] = None, tz: tzinfo = timezone.utc) -> None:
		self.client = client
		self.clock = clock or (lambda: datetime.now(timezone.utc))
		self.tz = tz
		self._topics: List[TopicOut] = []
		self.loaded_at: Optional[datetime] = None

	@property
	def topics(self) -> List[TopicOut]:
		return list(self._topics)

	async def refresh(self) -> List[TopicOut]:
		self._topics = await self.client.list_topics()
		self.loaded_at = self.clock()
		logger.debug("Topic cache refreshed with %s topic(s)", len(self._topics))
		return self.topics

	def clear(self) -> None:
		self._topics = []
		self.loaded_at = None

	def find(self, topic_id: str) -> Optional[TopicOut]:
		return next((t for t in self._topics if t.id == topic_id), None)

	def forest(self, search: Optional[str] = None) -> List[TreeNode]:
		return build_forest(filter_topics(self._topics, search))

	def stats(self) -> DashboardStats:
		return dashboard_stats(self._topics, self.clock(), self.tz)

	def collection(self, kind) -> List[TopicOut]:
		return filter_collection(self._topics, kind, self.clock(), self.tz)

	async def create_topic(self, name: str, parent_id: Optional[str] = None) -> TopicOut:
		topic = await self.client.create_topic(name, parent_id)
		await self.refresh()
		return topic

	async def toggle_checkpoint(self, topic_id: str, offset_days: int) -> TopicOut:
		topic = await self.client.toggle_checkpoint(topic_id, offset_days)
		await self.refresh()
		return topic

	async def rename_topic(self, topic_id: str, name: str) -> TopicOut:
		topic = await self.client.update_topic(topic_id, name=name)
		await self.refresh()
		return topic

	async def update_notes(self, topic_id: str, notes: str) -> TopicOut:
		topic = await self.client.update_topic(topic_id, notes=notes)
		await self.refresh()
		return topic

	async def move_topic(self, topic_id: str, parent_id: Optional[str]) -> TopicOut:
		topic = await self.client.move_topic(topic_id, parent_id)
		await self.refresh()
		return topic

	async def delete_topic(self, topic_id: str) -> None:
		await self.client.delete_topic(topic_id)
		await self.refresh()

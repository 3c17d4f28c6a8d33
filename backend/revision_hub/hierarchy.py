"""
Parent/child nesting of topics, derived on demand from ``parent_id``.

Nothing here is persisted. Topics are duck-typed (``id``, ``parent_id``,
``name``) so the same code nests ORM rows on the server and API payloads in
the client cache.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set


@dataclass
class TreeNode:
	topic: Any
	children: List["TreeNode"] = field(default_factory=list)

	@property
	def id(self) -> str:
		return self.topic.id

	def to_dict(self, render: Callable[[Any], Dict[str, Any]]) -> Dict[str, Any]:
		data = dict(render(self.topic))
		data["children"] = [child.to_dict(render) for child in self.children]
		return data


def filter_topics(topics: Iterable[Any], search: Optional[str]) -> List[Any]:
	topics = list(topics)
	term = (search or "").strip().lower()
	if not term:
		return topics
	return [t for t in topics if term in (t.name or "").lower()]


def _leads_back_to(start_id: str, target_id: str, parent_of: Dict[str, Optional[str]]) -> bool:
	"""Follow parent links from ``start_id``; True if ``target_id`` is reached."""
	seen: Set[str] = set()
	current: Optional[str] = start_id
	while current is not None and current in parent_of:
		if current == target_id:
			return True
		if current in seen:
			return False
		seen.add(current)
		current = parent_of[current]
	return False


def build_forest(topics: Sequence[Any]) -> List[TreeNode]:
	"""Nest ``topics`` into root nodes, preserving discovery order.

	A topic whose parent is missing from ``topics`` is shown as a root. If the
	stored links contain a cycle, the first topic found closing it becomes a
	root; the stored ``parent_id`` is never touched.
	"""
	nodes: Dict[str, TreeNode] = {}
	order: List[str] = []
	for topic in topics:
		if topic.id in nodes:
			continue
		nodes[topic.id] = TreeNode(topic)
		order.append(topic.id)

	# Links already placed use their effective parent; unplaced ones their stored one.
	parent_of: Dict[str, Optional[str]] = {
		tid: (nodes[tid].topic.parent_id if nodes[tid].topic.parent_id in nodes else None)
		for tid in order
	}

	roots: List[TreeNode] = []
	for tid in order:
		parent_id = parent_of[tid]
		if parent_id is None or _leads_back_to(parent_id, tid, parent_of):
			parent_of[tid] = None
			roots.append(nodes[tid])
		else:
			nodes[parent_id].children.append(nodes[tid])
	return roots


def descendant_ids(topics: Iterable[Any], topic_id: str) -> Set[str]:
	children: Dict[str, List[str]] = {}
	for t in topics:
		if t.parent_id is not None:
			children.setdefault(t.parent_id, []).append(t.id)
	found: Set[str] = set()
	stack = list(children.get(topic_id, []))
	while stack:
		current = stack.pop()
		if current in found or current == topic_id:
			continue
		found.add(current)
		stack.extend(children.get(current, []))
	return found


def walk(forest: Iterable[TreeNode], depth: int = 0):
	"""Yield ``(depth, node)`` pairs in display order."""
	for node in forest:
		yield depth, node
		yield from walk(node.children, depth + 1)

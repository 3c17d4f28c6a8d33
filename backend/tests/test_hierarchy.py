"""
Tests for deriving the topic forest from parent references.
"""
from types import SimpleNamespace

from revision_hub.hierarchy import build_forest, descendant_ids, filter_topics, walk


def topic(id, parent=None, name=None):
    return SimpleNamespace(id=id, parent_id=parent, name=name or id)


def shape(forest):
    return [(node.id, shape(node.children)) for node in forest]


class TestBuildForest:

    def test_missing_parent_becomes_root(self):
        forest = build_forest([topic("A"), topic("B", "A"), topic("C", "Z")])
        assert shape(forest) == [("A", [("B", [])]), ("C", [])]

    def test_empty_collection(self):
        assert build_forest([]) == []

    def test_child_listed_before_parent(self):
        forest = build_forest([topic("B", "A"), topic("A")])
        assert shape(forest) == [("A", [("B", [])])]

    def test_children_keep_discovery_order(self):
        forest = build_forest([topic("A"), topic("C", "A"), topic("B", "A"), topic("D", "C")])
        assert shape(forest) == [("A", [("C", [("D", [])]), ("B", [])])]

    def test_three_levels(self):
        forest = build_forest([topic("root"), topic("mid", "root"), topic("leaf", "mid")])
        assert shape(forest) == [("root", [("mid", [("leaf", [])])])]

    def test_self_parent_is_root(self):
        assert shape(build_forest([topic("A", "A")])) == [("A", [])]

    def test_two_node_cycle_is_broken_once(self):
        forest = build_forest([topic("A", "B"), topic("B", "A")])
        assert shape(forest) == [("A", [("B", [])])]

    def test_longer_cycle_with_hanging_child(self):
        topics = [topic("X", "A"), topic("A", "C"), topic("B", "A"), topic("C", "B")]
        forest = build_forest(topics)

        seen = [node.id for _, node in walk(forest)]
        assert sorted(seen) == ["A", "B", "C", "X"]
        assert len(forest) == 1

    def test_stored_parent_is_not_modified(self):
        orphan = topic("C", "Z")
        build_forest([orphan])
        assert orphan.parent_id == "Z"

    def test_duplicate_ids_are_placed_once(self):
        a = topic("A")
        forest = build_forest([a, a, topic("B", "A")])
        assert shape(forest) == [("A", [("B", [])])]


class TestFilterTopics:

    def test_case_insensitive_substring(self):
        topics = [topic("1", name="Cell Biology"), topic("2", name="Organic Chemistry")]
        assert [t.id for t in filter_topics(topics, "bio")] == ["1"]

    def test_blank_search_keeps_everything(self):
        topics = [topic("1"), topic("2")]
        assert filter_topics(topics, "  ") == topics
        assert filter_topics(topics, None) == topics

    def test_filtered_out_parent_promotes_child_for_display(self):
        topics = [topic("1", name="Science"), topic("2", "1", name="Biology")]
        forest = build_forest(filter_topics(topics, "bio"))
        assert shape(forest) == [("2", [])]


class TestDescendants:

    def test_collects_all_levels(self):
        topics = [topic("A"), topic("B", "A"), topic("C", "B"), topic("D")]
        assert descendant_ids(topics, "A") == {"B", "C"}
        assert descendant_ids(topics, "C") == set()

    def test_terminates_on_cycle(self):
        topics = [topic("A", "B"), topic("B", "A")]
        assert descendant_ids(topics, "A") == {"B"}


def test_walk_reports_depth():
    forest = build_forest([topic("A"), topic("B", "A"), topic("C", "B")])
    assert [(depth, node.id) for depth, node in walk(forest)] == [(0, "A"), (1, "B"), (2, "C")]


def test_to_dict_nests_children():
    forest = build_forest([topic("A"), topic("B", "A")])
    data = forest[0].to_dict(lambda t: {"id": t.id})
    assert data == {"id": "A", "children": [{"id": "B", "children": []}]}

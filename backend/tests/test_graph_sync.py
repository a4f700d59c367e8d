"""Tests for saving client held graphs through the synchronizer."""

from __future__ import annotations

import uuid

import pytest

from backend.flowgraph.extensions import db
from backend.flowgraph.graph.sync import NodeIdIndex, is_durable_id, sync_workflow_graph
from backend.flowgraph.models.workflow import Workflow, WorkflowEdge, WorkflowNode


def _node(label: str, node_type: str = "tool", **extra: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "node_type": node_type,
        "label": label,
        "position_x": 10,
        "position_y": 20,
        "config": {"label": label},
    }
    payload.update(extra)
    return payload


@pytest.fixture()
def workflow(app):
    workflow = Workflow(user_id="alice", name="Graph")
    db.session.add(workflow)
    db.session.commit()
    return workflow


def _stored_edges(workflow_id: str) -> list[WorkflowEdge]:
    return WorkflowEdge.query.filter_by(workflow_id=workflow_id).all()


def _stored_nodes(workflow_id: str) -> list[WorkflowNode]:
    return WorkflowNode.query.filter_by(workflow_id=workflow_id).all()


def test_is_durable_id():
    assert is_durable_id(str(uuid.uuid4()))
    assert is_durable_id(str(uuid.uuid4()).upper())
    assert not is_durable_id("temp_1")
    assert not is_durable_id(None)
    assert not is_durable_id(42)


def test_node_id_index_prefers_durable_then_temp_then_label():
    index = NodeIdIndex()
    index.add("id-1", "temp_a", "Alpha")
    index.add("id-2", "Alpha", "Beta")

    assert index.resolve("id-1") == "id-1"
    # "Alpha" is both a temp id of id-2 and the label of id-1: temp ids win.
    assert index.resolve("Alpha") == "id-2"
    assert index.resolve("Beta") == "id-2"
    assert index.resolve(None, "temp_a") == "id-1"
    assert index.resolve("unknown", None) is None
    assert index.as_mapping() == {"Alpha": "id-2", "Beta": "id-2", "temp_a": "id-1"}


def test_temp_ids_connect_nodes(workflow):
    result = sync_workflow_graph(
        workflow.id,
        [_node("Start", "start", temp_id="a"), _node("End", "end", temp_id="b")],
        [{"source_temp_id": "a", "target_temp_id": "b"}],
    )
    db.session.commit()

    id_map = result.id_map
    edges = _stored_edges(workflow.id)
    assert len(edges) == 1
    assert edges[0].source_node_id == id_map["a"]
    assert edges[0].target_node_id == id_map["b"]
    assert id_map["a"] != id_map["b"]
    assert result.dropped_edges == 0


def test_id_map_covers_temp_ids_and_labels(workflow):
    nodes = [_node(f"Node {index}", temp_id=f"temp_{index}") for index in range(4)]
    result = sync_workflow_graph(workflow.id, nodes, [])
    db.session.commit()

    assert len(result.id_map) >= len(nodes)
    for index in range(4):
        assert result.id_map[f"temp_{index}"] == result.id_map[f"Node {index}"]
    assert {node.id for node in _stored_nodes(workflow.id)} == set(result.id_map.values())


def test_edges_keep_condition_and_data_mapping(workflow):
    sync_workflow_graph(
        workflow.id,
        [_node("Check", "condition", temp_id="c"), _node("Yes", temp_id="y")],
        [
            {
                "source_temp_id": "c",
                "target_temp_id": "y",
                "condition": "output.score > 0.5",
                "data_mapping": {"score": "output.score", "nested": {"keep": [1, 2]}},
            }
        ],
    )
    db.session.commit()

    (edge,) = _stored_edges(workflow.id)
    assert edge.condition == "output.score > 0.5"
    assert edge.data_mapping == {"score": "output.score", "nested": {"keep": [1, 2]}}


def test_unresolved_edges_are_dropped_without_error(workflow):
    result = sync_workflow_graph(
        workflow.id,
        [_node("A", temp_id="a"), _node("B", temp_id="b")],
        [
            {"source_temp_id": "a", "target_temp_id": "b"},
            {"source_temp_id": "a", "target_temp_id": "missing"},
            {"source_node_id": str(uuid.uuid4()), "target_temp_id": "b"},
            {"target_temp_id": "b"},
            "not an edge",
            {"source_temp_id": "a", "target_temp_id": "b", "condition": 5},
        ],
    )
    db.session.commit()

    assert result.dropped_edges == 5
    assert len(_stored_edges(workflow.id)) == 1


def test_edges_fall_back_to_labels(workflow):
    result = sync_workflow_graph(
        workflow.id,
        [_node("Fetch"), _node("Summarize", "agent")],
        [{"source_temp_id": "Fetch", "target_temp_id": "Summarize"}],
    )
    db.session.commit()

    (edge,) = _stored_edges(workflow.id)
    assert edge.source_node_id == result.id_map["Fetch"]
    assert edge.target_node_id == result.id_map["Summarize"]


def test_duplicate_labels_resolve_to_the_later_node(workflow):
    result = sync_workflow_graph(
        workflow.id,
        [_node("Step", temp_id="first"), _node("Step", temp_id="second"), _node("End", "end")],
        [{"source_temp_id": "Step", "target_temp_id": "End"}],
    )
    db.session.commit()

    assert result.id_map["Step"] == result.id_map["second"]
    (edge,) = _stored_edges(workflow.id)
    assert edge.source_node_id == result.id_map["second"]


def test_durable_ids_are_preserved_and_referenced(workflow):
    start_id = str(uuid.uuid4())
    end_id = str(uuid.uuid4())
    result = sync_workflow_graph(
        workflow.id,
        [_node("Start", "start", id=start_id), _node("End", "end", id=end_id)],
        [{"source_node_id": start_id, "target_node_id": end_id}],
    )
    db.session.commit()

    assert [node.id for node in result.nodes] == [start_id, end_id]
    (edge,) = _stored_edges(workflow.id)
    assert (edge.source_node_id, edge.target_node_id) == (start_id, end_id)


def test_resaving_with_same_ids_is_idempotent(workflow):
    node_id = str(uuid.uuid4())
    nodes = [_node("Only", id=node_id)]

    sync_workflow_graph(workflow.id, nodes, [])
    db.session.commit()
    sync_workflow_graph(workflow.id, nodes, [])
    db.session.commit()

    stored = _stored_nodes(workflow.id)
    assert [node.id for node in stored] == [node_id]


def test_non_uuid_ids_get_fresh_durable_ids(workflow):
    result = sync_workflow_graph(workflow.id, [_node("Temp", id="temp_123")], [])
    db.session.commit()

    (node,) = result.nodes
    assert node.id != "temp_123"
    assert is_durable_id(node.id)


def test_ids_owned_by_another_workflow_are_not_reused(workflow):
    other = Workflow(user_id="bob", name="Other")
    db.session.add(other)
    db.session.commit()
    shared_id = str(uuid.uuid4())
    sync_workflow_graph(other.id, [_node("Theirs", id=shared_id)], [])
    db.session.commit()

    result = sync_workflow_graph(
        workflow.id, [_node("Mine", id=shared_id), _node("Twin", id=shared_id)], []
    )
    db.session.commit()

    mine_ids = [node.id for node in result.nodes]
    assert shared_id not in mine_ids
    assert len(set(mine_ids)) == 2
    assert [node.id for node in _stored_nodes(other.id)] == [shared_id]


def test_repeated_ids_in_one_submission_are_deduplicated(workflow):
    node_id = str(uuid.uuid4())
    result = sync_workflow_graph(workflow.id, [_node("A", id=node_id), _node("B", id=node_id)], [])
    db.session.commit()

    assert result.nodes[0].id == node_id
    assert result.nodes[1].id != node_id


def test_sync_replaces_previous_graph(workflow):
    sync_workflow_graph(
        workflow.id,
        [_node("Old A", temp_id="a"), _node("Old B", temp_id="b")],
        [{"source_temp_id": "a", "target_temp_id": "b"}],
    )
    db.session.commit()

    sync_workflow_graph(workflow.id, [_node("New")], [])
    db.session.commit()

    assert [node.label for node in _stored_nodes(workflow.id)] == ["New"]
    assert _stored_edges(workflow.id) == []


def test_repeated_label_only_saves_yield_same_shape(workflow):
    nodes = [_node("Start", "start"), _node("Work"), _node("End", "end")]
    edges = [
        {"source_temp_id": "Start", "target_temp_id": "Work", "condition": "ok"},
        {"source_temp_id": "Work", "target_temp_id": "End"},
    ]

    def _snapshot() -> tuple[set[str], list[tuple[str, str, str | None]]]:
        stored_nodes = _stored_nodes(workflow.id)
        labels = {node.id: node.label for node in stored_nodes}
        stored_edges = sorted(
            (labels[edge.source_node_id], labels[edge.target_node_id], edge.condition)
            for edge in _stored_edges(workflow.id)
        )
        return set(labels), stored_edges

    sync_workflow_graph(workflow.id, nodes, edges)
    db.session.commit()
    first_ids, first_edges = _snapshot()

    sync_workflow_graph(workflow.id, nodes, edges)
    db.session.commit()
    second_ids, second_edges = _snapshot()

    assert first_ids.isdisjoint(second_ids)
    assert first_edges == second_edges == [("Start", "Work", "ok"), ("Work", "End", None)]


def test_copying_a_graph_from_another_workflow_keeps_its_edges(workflow):
    template = Workflow(user_id="root", name="Template", is_template=True)
    db.session.add(template)
    db.session.commit()
    start_id = str(uuid.uuid4())
    end_id = str(uuid.uuid4())
    nodes = [_node("Start", "start", id=start_id), _node("End", "end", id=end_id)]
    edges = [{"source_node_id": start_id, "target_node_id": end_id, "condition": "done"}]
    sync_workflow_graph(template.id, nodes, edges)
    db.session.commit()

    result = sync_workflow_graph(workflow.id, nodes, edges)
    db.session.commit()

    assert result.dropped_edges == 0
    copied_start, copied_end = (node.id for node in result.nodes)
    assert {copied_start, copied_end}.isdisjoint({start_id, end_id})
    (edge,) = _stored_edges(workflow.id)
    assert (edge.source_node_id, edge.target_node_id) == (copied_start, copied_end)
    assert edge.condition == "done"
    assert len(_stored_edges(template.id)) == 1


def test_edges_to_a_repeated_id_follow_the_first_node(workflow):
    node_id = str(uuid.uuid4())
    result = sync_workflow_graph(
        workflow.id,
        [_node("A", id=node_id), _node("B", id=node_id), _node("End", "end", temp_id="end")],
        [{"source_node_id": node_id, "target_temp_id": "end"}],
    )
    db.session.commit()

    (edge,) = _stored_edges(workflow.id)
    assert edge.source_node_id == result.nodes[0].id == node_id

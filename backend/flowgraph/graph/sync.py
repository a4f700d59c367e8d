"""Full-replace synchronisation of a client held graph into the database.

Clients edit graphs with ephemeral ``temp_id`` values and submit the complete
graph on every save. Existing edges and nodes of the workflow are deleted,
the submitted nodes are inserted, and edges are resolved against the ids
assigned in the same pass. Edges whose endpoints cannot be resolved are
dropped rather than failing the save.

Nothing is committed here: the caller owns the transaction, so both phases
commit or roll back together. Concurrent saves of one workflow are not
serialised and the last writer wins.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from flask import current_app

from ..extensions import db
from ..models.workflow import WorkflowEdge, WorkflowNode

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

NODE_FIELDS = (
    "node_type",
    "label",
    "position_x",
    "position_y",
    "config",
    "mcp_server_id",
    "mcp_command_name",
    "execution_order",
)


def is_durable_id(value: Any) -> bool:
    """Return whether ``value`` has the canonical UUID shape."""

    return isinstance(value, str) and _UUID_PATTERN.match(value) is not None


@dataclass
class NodeIdIndex:
    """Lookup of persisted node ids by durable id, replaced UUID, temp id, then label."""

    durable: set[str] = field(default_factory=set)
    replaced: dict[str, str] = field(default_factory=dict)
    by_temp_id: dict[str, str] = field(default_factory=dict)
    by_label: dict[str, str] = field(default_factory=dict)

    def add(self, node_id: str, temp_id: str | None, label: str | None) -> None:
        self.durable.add(node_id)
        if temp_id:
            self.by_temp_id[temp_id] = node_id
        if label:
            # Duplicate labels: the later node wins.
            self.by_label[label] = node_id

    def add_replaced(self, requested_id: str, node_id: str) -> None:
        """Point a submitted UUID that could not be kept at its new row."""

        self.replaced.setdefault(requested_id, node_id)

    def resolve(self, *references: Any) -> str | None:
        candidates = [ref for ref in references if isinstance(ref, str) and ref]
        tiers = (self._durable_tier, self.replaced.get, self.by_temp_id.get, self.by_label.get)
        for tier in tiers:
            for candidate in candidates:
                resolved = tier(candidate)
                if resolved is not None:
                    return resolved
        return None

    def _durable_tier(self, reference: str) -> str | None:
        return reference if reference in self.durable else None

    def as_mapping(self) -> dict[str, str]:
        """Merge both client-side tiers; temp ids shadow equal labels."""

        merged = dict(self.by_label)
        merged.update(self.by_temp_id)
        return merged


@dataclass
class GraphSyncResult:
    nodes: list[WorkflowNode]
    edges: list[WorkflowEdge]
    index: NodeIdIndex
    dropped_edges: int = 0

    @property
    def id_map(self) -> dict[str, str]:
        return self.index.as_mapping()


def delete_workflow_graph(workflow_id: str) -> None:
    """Delete every edge and node of a workflow without committing."""

    # Edges reference nodes, so they go first.
    WorkflowEdge.query.filter_by(workflow_id=workflow_id).delete(synchronize_session="fetch")
    WorkflowNode.query.filter_by(workflow_id=workflow_id).delete(synchronize_session="fetch")


def _reusable_ids(nodes: list[Mapping[str, Any]]) -> set[str]:
    """Return submitted UUIDs that are safe to keep as primary keys."""

    requested = {node["id"] for node in nodes if is_durable_id(node.get("id"))}
    if not requested:
        return set()

    # The workflow's own nodes are already deleted, so any hit belongs elsewhere.
    taken = {
        row[0]
        for row in db.session.query(WorkflowNode.id).filter(WorkflowNode.id.in_(requested)).all()
    }
    return requested - taken


def _build_node(workflow_id: str, payload: Mapping[str, Any], node_id: str | None) -> WorkflowNode:
    values = {key: payload[key] for key in NODE_FIELDS if key in payload}
    values.setdefault("config", {})
    node = WorkflowNode(workflow_id=workflow_id, **values)
    if node_id is not None:
        node.id = node_id
    return node


def _insert_nodes(workflow_id: str, nodes: list[Mapping[str, Any]]) -> tuple[list[WorkflowNode], NodeIdIndex]:
    reusable = _reusable_ids(nodes)
    inserted: list[WorkflowNode] = []
    for payload in nodes:
        requested_id = payload.get("id")
        node_id = None
        if requested_id in reusable:
            node_id = requested_id
            reusable.discard(requested_id)
        inserted.append(_build_node(workflow_id, payload, node_id))

    db.session.add_all(inserted)
    db.session.flush()

    index = NodeIdIndex()
    for payload, node in zip(nodes, inserted):
        index.add(node.id, payload.get("temp_id"), payload.get("label"))
        requested_id = payload.get("id")
        if is_durable_id(requested_id) and requested_id != node.id:
            index.add_replaced(requested_id, node.id)
    return inserted, index


def _is_well_formed_edge(edge: Any) -> bool:
    if not isinstance(edge, Mapping):
        return False
    condition = edge.get("condition")
    data_mapping = edge.get("data_mapping")
    return (condition is None or isinstance(condition, str)) and (
        data_mapping is None or isinstance(data_mapping, Mapping)
    )


def _resolve_edges(
    workflow_id: str, edges: Iterable[Any], index: NodeIdIndex
) -> tuple[list[WorkflowEdge], int]:
    resolved: list[WorkflowEdge] = []
    dropped = 0
    for edge in edges:
        if not _is_well_formed_edge(edge):
            dropped += 1
            continue
        source_id = index.resolve(edge.get("source_node_id"), edge.get("source_temp_id"))
        target_id = index.resolve(edge.get("target_node_id"), edge.get("target_temp_id"))
        if source_id is None or target_id is None:
            dropped += 1
            continue
        resolved.append(
            WorkflowEdge(
                workflow_id=workflow_id,
                source_node_id=source_id,
                target_node_id=target_id,
                condition=edge.get("condition"),
                data_mapping=edge.get("data_mapping"),
            )
        )
    return resolved, dropped


def sync_workflow_graph(
    workflow_id: str,
    nodes: list[Mapping[str, Any]],
    edges: list[Any],
) -> GraphSyncResult:
    """Replace the stored graph of ``workflow_id`` with the submitted one."""

    delete_workflow_graph(workflow_id)
    inserted_nodes, index = _insert_nodes(workflow_id, nodes)

    inserted_edges, dropped = _resolve_edges(workflow_id, edges, index)
    if inserted_edges:
        db.session.add_all(inserted_edges)
        db.session.flush()

    if dropped:
        current_app.logger.info(
            "Dropped %s unresolved edge(s) while saving workflow %s", dropped, workflow_id
        )

    return GraphSyncResult(
        nodes=inserted_nodes, edges=inserted_edges, index=index, dropped_edges=dropped
    )

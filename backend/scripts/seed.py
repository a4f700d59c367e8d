"""Seed the database with an admin token and an example template workflow."""
from __future__ import annotations

import os
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.flowgraph import create_app
from backend.flowgraph.extensions import db
from backend.flowgraph.graph.sync import sync_workflow_graph
from backend.flowgraph.models.auth import ApiToken
from backend.flowgraph.models.workflow import Workflow
from backend.flowgraph.utils.auth import generate_token, hash_token

ADMIN_USER_ID = os.getenv("FLOWGRAPH_ADMIN_USER", "admin")
ADMIN_TOKEN_NAME = "Seed Admin Token"
EXAMPLE_WORKFLOW_NAME = "Research Assistant"

EXAMPLE_NODES = [
    {"temp_id": "temp_start", "node_type": "start", "label": "Start", "position_x": 0, "position_y": 0},
    {
        "temp_id": "temp_search",
        "node_type": "tool",
        "label": "Web Search",
        "position_x": 240,
        "position_y": 0,
        "config": {"parameters": {"query": "{{input.topic}}"}},
        "mcp_server_id": "search",
        "mcp_command_name": "web_search",
    },
    {
        "temp_id": "temp_summary",
        "node_type": "agent",
        "label": "Summarize",
        "position_x": 480,
        "position_y": 0,
        "config": {"parameters": {"style": "bullet points"}},
    },
    {"temp_id": "temp_end", "node_type": "end", "label": "End", "position_x": 720, "position_y": 0},
]

EXAMPLE_EDGES = [
    {"source_temp_id": "temp_start", "target_temp_id": "temp_search"},
    {
        "source_temp_id": "temp_search",
        "target_temp_id": "temp_summary",
        "data_mapping": {"documents": "results"},
    },
    {"source_temp_id": "temp_summary", "target_temp_id": "temp_end"},
]


def _ensure_admin_token() -> str | None:
    """Create the seed admin token once and return its plaintext value."""

    token = ApiToken.query.filter_by(name=ADMIN_TOKEN_NAME, user_id=ADMIN_USER_ID).first()
    if token is not None and token.is_active():
        return None

    plaintext = generate_token()
    db.session.add(
        ApiToken(
            name=ADMIN_TOKEN_NAME,
            user_id=ADMIN_USER_ID,
            role="admin",
            token_hash=hash_token(plaintext),
        )
    )
    return plaintext


def _ensure_example_workflow() -> bool:
    workflow = Workflow.query.filter_by(name=EXAMPLE_WORKFLOW_NAME, user_id=ADMIN_USER_ID).first()
    created = workflow is None
    if workflow is None:
        workflow = Workflow(
            name=EXAMPLE_WORKFLOW_NAME,
            user_id=ADMIN_USER_ID,
            description="Searches the web for a topic and summarizes the findings.",
            is_template=True,
            template_category="research",
        )
        db.session.add(workflow)
        db.session.flush()

    sync_workflow_graph(workflow.id, EXAMPLE_NODES, EXAMPLE_EDGES)
    return created


def main() -> None:
    app = create_app()
    with app.app_context():
        plaintext = _ensure_admin_token()
        created_workflow = _ensure_example_workflow()
        db.session.commit()

        print(
            "Seed completed",
            f"admin token={'created' if plaintext else 'unchanged'}",
            f"workflows created={int(created_workflow)}",
        )
        if plaintext:
            print(f"Admin token for {ADMIN_USER_ID}: {plaintext}")


if __name__ == "__main__":
    main()

from __future__ import annotations

import pathlib
import secrets
import sys
from collections.abc import Callable

import pytest
from sqlalchemy.pool import StaticPool

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_dependencies():
    from flowgraph import Config, create_app
    from backend.flowgraph.extensions import db

    return Config, create_app, db


ConfigBase, create_app, db = _load_dependencies()


class TestConfig(ConfigBase):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    CORS_ALLOWED_ORIGINS = "http://localhost"
    RATELIMIT_STORAGE_URI = "memory://"
    EXECUTION_ENGINE_URL = "http://engine.test/functions/v1"
    EXECUTION_ENGINE_TIMEOUT = None
    EXECUTE_RATE_LIMIT = "5 per minute"


@pytest.fixture(scope="module")
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def auth_header_factory(app):
    from backend.flowgraph.models.auth import ApiToken
    from backend.flowgraph.utils.auth import hash_token

    def factory(
        role: str = "member", user_id: str | None = None, name: str | None = None
    ) -> dict[str, str]:
        token_value = secrets.token_urlsafe(16)
        token = ApiToken(
            name=name or f"Test {role.title()} Token",
            user_id=user_id or f"user-{secrets.token_hex(4)}",
            role=role,
            token_hash=hash_token(token_value),
        )
        db.session.add(token)
        db.session.commit()
        return {"Authorization": f"Bearer {token_value}"}

    return factory


@pytest.fixture(autouse=True)
def cleanup_database(app):
    from backend.flowgraph.models import (
        ApiToken,
        NodeExecution,
        ProcessingJob,
        RunLog,
        Workflow,
        WorkflowEdge,
        WorkflowExecution,
        WorkflowNode,
    )

    yield

    db.session.rollback()
    for model in (
        NodeExecution,
        WorkflowExecution,
        WorkflowEdge,
        WorkflowNode,
        Workflow,
        ProcessingJob,
        RunLog,
        ApiToken,
    ):
        db.session.query(model).delete()
    db.session.commit()


@pytest.fixture()
def member_headers(auth_header_factory: Callable[..., dict[str, str]]):
    return auth_header_factory(role="member", user_id="alice")


@pytest.fixture()
def other_headers(auth_header_factory: Callable[..., dict[str, str]]):
    return auth_header_factory(role="member", user_id="bob")


@pytest.fixture()
def admin_headers(auth_header_factory: Callable[..., dict[str, str]]):
    return auth_header_factory(role="admin", user_id="root")


@pytest.fixture()
def readonly_headers(auth_header_factory: Callable[..., dict[str, str]]):
    return auth_header_factory(role="readonly", user_id="alice")

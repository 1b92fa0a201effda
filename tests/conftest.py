# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PYTEST_RUNNING", "true")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chirp_access.core.security import create_access_token
from chirp_access.db.session import Base, build_engine
from chirp_access.db.session import get_db as app_get_session
from chirp_access.main import app as fastapi_app
from chirp_access.models import AdminKey, Comment, Post, UserProfile
from chirp_access.models.content import POST_STATUS_APPROVED, POST_STATUS_PENDING

TEST_DB_URL = "sqlite://"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database per test."""
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture()
def make_auth_headers() -> Callable[[str], dict[str, str]]:
    """Factory for authorization headers of an arbitrary user id."""
    return auth_headers


@pytest.fixture()
def alice_headers() -> dict[str, str]:
    """Authorization headers for the regular user ``alice``."""
    return auth_headers("alice")


@pytest.fixture()
def admin_headers(admin_profile: UserProfile) -> dict[str, str]:
    """Authorization headers for the administrator ``root``."""
    return auth_headers(admin_profile.user_id)


@pytest.fixture()
def alice_profile(db_session: Session) -> UserProfile:
    profile = UserProfile(user_id="alice", username="Alice", is_admin=False)
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture()
def admin_profile(db_session: Session) -> UserProfile:
    profile = UserProfile(user_id="root", username="Root", is_admin=True)
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture()
def admin_key(db_session: Session) -> AdminKey:
    """The unused key from the redemption walkthrough."""
    key = AdminKey(key_code="X145-GTHY-LKHA", is_used=False)
    db_session.add(key)
    db_session.commit()
    return key


@pytest.fixture()
def pending_post(db_session: Session) -> Post:
    post = Post(user_id="alice", content="draft", status=POST_STATUS_PENDING)
    db_session.add(post)
    db_session.commit()
    return post


@pytest.fixture()
def approved_post(db_session: Session) -> Post:
    post = Post(user_id="alice", content="hello", status=POST_STATUS_APPROVED)
    db_session.add(post)
    db_session.commit()
    return post


@pytest.fixture()
def comment_on_pending(db_session: Session, pending_post: Post) -> Comment:
    comment = Comment(post_id=pending_post.id, user_id="bob", content="first")
    db_session.add(comment)
    db_session.commit()
    return comment

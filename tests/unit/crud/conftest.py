"""Shared fixtures for crud unit tests"""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from sitepub.core.extract.extract import extract_post
from sitepub.core.models import StagedPost
from sitepub.core.parse import parse_source
from sitepub.core.utils.hashing import sha256
from sitepub.crud.models import Post


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="post")
def post_fixture(session):
    """A minimal Post persisted to the session."""
    source = "---\ntitle: Hello\n---\nWorld\n"
    p = Post(path="post/hello.md", slug="hello", title="Hello", url="/post/hello/",
             source=source, body="World\n", hash=sha256(source))
    session.add(p)
    session.flush()
    return p


@pytest.fixture(name="stage")
def stage_fixture():
    """Build a StagedPost from markdown text at a content-relative path."""
    def _stage(text: str, path: str = "post/kvm.md") -> StagedPost:
        return extract_post(parse_source(text, Path(path)))
    return _stage

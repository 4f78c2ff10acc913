"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from postdocs.core.parse import parse_file
from postdocs.crud.documents import commit_doc


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


@pytest.fixture(name="write_doc")
def write_doc_fixture(tmp_path):
    """Write text to a site-relative path and return the parsed document."""
    def _write(rel: str, text: str):
        f = tmp_path / rel
        f.parent.mkdir(parents=True, exist_ok=True)
        f.write_bytes(text.encode("utf-8"))
        return parse_file(f, tmp_path)
    return _write


@pytest.fixture(name="doc")
def doc_fixture(session, write_doc):
    """A minimal Document committed to the session."""
    parsed = write_doc("_posts/2015-01-12-hello.md", "---\nlayout: default\n---\nHello\n")
    d, _ = commit_doc(session, parsed)
    return d

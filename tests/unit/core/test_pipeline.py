"""Unit tests for core/pipeline.py"""

import json

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from postdocs.config import Settings
from postdocs.core.models import IssueKind
from postdocs.core.pipeline import run_check, run_export, run_ingest
from postdocs.crud.documents import get_all_documents


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="settings")
def settings_fixture(site):
    return Settings(site_root=str(site))


# --- run_check ---

def test_run_check_clean(site, settings):
    """run_check parses every document and reports no issues for a valid site."""
    docs, issues = run_check(str(site / "_posts"), settings)
    assert len(docs) == 2
    assert issues == []


def test_run_check_reports(site, settings):
    """run_check surfaces issues from broken documents."""
    (site / "_posts" / "2015-05-01-bad.md").write_text("---\nlayout: default\n---\n![x](/img/none.png)\n")
    _, issues = run_check(str(site), settings)
    assert [i.kind for i in issues] == [IssueKind.broken_image]


# --- run_ingest ---

def test_run_ingest_creates_docs(site, engine, settings):
    """run_ingest stores every document and reports created status."""
    counts, changes = run_ingest(str(site), engine, settings)
    assert counts == {"created": 3, "updated": 0, "unchanged": 0}
    assert ("created", "_posts/2015-01-12-breakpoints.md") in changes


def test_run_ingest_unchanged_on_rerun(site, engine, settings):
    """A second ingest of the same files changes nothing."""
    run_ingest(str(site), engine, settings)
    counts, changes = run_ingest(str(site), engine, settings)
    assert counts["unchanged"] == 3
    assert changes == []


def test_run_ingest_updates_edited(site, engine, settings):
    """Editing one document updates exactly that document."""
    run_ingest(str(site), engine, settings)
    (site / "about.md").write_text("---\nlayout: default\n---\nAbout, edited.\n")
    counts, changes = run_ingest(str(site), engine, settings)
    assert counts == {"created": 0, "updated": 1, "unchanged": 2}
    assert changes == [("updated", "about.md")]


def test_run_ingest_returns_empty_when_nothing_found(tmp_path, engine):
    """run_ingest returns ({}, []) when no documents exist under path."""
    assert run_ingest(str(tmp_path), engine, Settings(site_root=str(tmp_path))) == ({}, [])


def test_run_ingest_raises_with_file_context(site, engine, settings):
    """Parse failures abort the batch with the failing file named, and nothing is stored."""
    (site / "_posts" / "2015-06-01-open.md").write_text("---\nlayout: default\n")
    with pytest.raises(RuntimeError, match="2015-06-01-open.md"):
        run_ingest(str(site), engine, settings)
    with Session(engine) as session:
        assert get_all_documents(session) == []


# --- run_export ---

def test_run_export_is_byte_identical(site, engine, settings, tmp_path_factory):
    """Exported files match the source bytes, including CRLF documents."""
    (site / "win.md").write_bytes(b"---\r\nlayout: default\r\n---\r\nBody\r\n")
    run_ingest(str(site), engine, settings)
    out = tmp_path_factory.mktemp("dist")
    with Session(engine) as session:
        results = run_export(get_all_documents(session), out)
    assert len(results) == 4
    for doc_path, written in results:
        assert written == out / doc_path
        assert written.read_bytes() == (site / doc_path).read_bytes()


def test_run_export_writes_manifest(site, engine, settings, tmp_path_factory):
    """index.json lists each exported document with its metadata."""
    run_ingest(str(site), engine, settings)
    out = tmp_path_factory.mktemp("dist")
    with Session(engine) as session:
        run_export(get_all_documents(session), out)
    manifest = json.loads((out / "index.json").read_text())
    by_path = {entry["path"]: entry for entry in manifest}
    post = by_path["_posts/2015-01-12-breakpoints.md"]
    assert post["slug"] == "breakpoints"
    assert post["date"] == "2015-01-12"
    assert post["header"]["layout"] == "default"
    assert by_path["about.md"]["date"] is None


def test_run_ingest_rejects_documents_outside_site_root(site, engine, settings, tmp_path_factory):
    """Ingesting a file outside the site root fails with the file named."""
    loose = tmp_path_factory.mktemp("loose")
    (loose / "stray.md").write_text("---\nlayout: default\n---\nBody\n")
    with pytest.raises(RuntimeError, match="stray.md"):
        run_ingest(str(loose), engine, settings)
    with Session(engine) as session:
        assert get_all_documents(session) == []

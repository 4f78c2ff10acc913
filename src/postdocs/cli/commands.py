"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from postdocs.config import Settings, load_config
from postdocs.core.models import Issue
from postdocs.core.parse import site_path
from postdocs.core.pipeline import run_check, run_export, run_ingest
from postdocs.crud.database import init_db, make_engine, reset_db
from postdocs.crud.documents import (
    get_all_documents,
    get_by_collection,
    get_by_path,
    get_last_committed,
    list_collections,
)
from postdocs.crud.versioning import diff_current, diff_versions, list_versions


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def _echo_issues(docs: list, issues: list[Issue]) -> None:
    for issue in issues:
        typer.echo(str(issue), err=True)
    typer.echo(f"Checked {len(docs)} document(s): {len(issues)} issue(s)")


def _echo_ingest(counts: dict, changes: list) -> None:
    """Print per-doc ingest status and a summary line."""
    for status, path in changes:
        typer.echo(f"  {status}: {path}")
    typer.echo(
        f"Ingest complete - "
        f"{counts['created']} created, "
        f"{counts['updated']} updated, "
        f"{counts['unchanged']} unchanged"
    )


def _echo_export(results: list, output_dir: Path) -> None:
    for doc_path, out_path in results:
        typer.echo(f"  {doc_path} -> {out_path}")
    typer.echo(f"Exported {len(results)} document(s) to {output_dir}/")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize the document store. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def check_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to check")],
    site_root: Annotated[Optional[str], typer.Option("--site-root", help="Directory links resolve against")] = None,
    require: Annotated[Optional[list[str]], typer.Option("--require", help="Required header key (repeatable)")] = None,
    ):
    """Validate headers, links, images, and byte-for-byte round trips."""
    settings = _settings(overrides={"site_root": site_root, "required_keys": require})
    docs, issues = run_check(path, settings)
    _echo_issues(docs, issues)
    if issues:
        raise typer.Exit(1)


def ingest_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to ingest")],
    site_root: Annotated[Optional[str], typer.Option("--site-root", help="Directory links resolve against")] = None,
    versions: Annotated[Optional[int], typer.Option("--max-versions", help="Max stored versions per doc")] = None,
    ):
    """Store documents, keeping prior versions of edited ones."""
    settings = _settings(overrides={"site_root": site_root, "max_versions": versions})
    engine = _engine(settings)
    try:
        counts, changes = run_ingest(path, engine, settings)
    except RuntimeError as e:
        _fail(str(e))
    if not counts:
        typer.echo(f"No documents found under {path}.")
        raise typer.Exit(1)
    _echo_ingest(counts, changes)


def export_cmd(
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    collection: Annotated[Optional[str], typer.Option("--collection", help="Export docs under this top-level directory")] = None,
    all_docs: Annotated[bool, typer.Option("--all", help="Export all documents in the store")] = False,
    ):
    """Copy stored documents byte-for-byte to the output dir, with an index.json manifest."""
    settings = _settings(overrides={"output_dir": out})
    engine = _engine(settings)
    output_dir = Path(settings.output_dir)

    try:
        with Session(engine) as session:
            if all_docs:
                docs = get_all_documents(session)
                scope = "all"
            elif collection:
                docs = get_by_collection(session, collection)
                scope = f"collection '{collection}'"
            else:
                docs = get_last_committed(session)
                scope = "last ingest"

            if not docs:
                typer.echo(f"No documents found for scope: {scope}.")
                raise typer.Exit(1)

            results = run_export(docs, output_dir)
    except typer.Exit:
        raise
    except Exception as e:
        _fail("Export failed", e)

    _echo_export(results, output_dir)


def build_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to process")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    site_root: Annotated[Optional[str], typer.Option("--site-root", help="Directory links resolve against")] = None,
    force: Annotated[bool, typer.Option("--force", help="Continue past check issues")] = False,
    ):
    """Run the full pipeline: check -> ingest -> export."""
    settings = _settings(overrides={"output_dir": out, "site_root": site_root})
    engine = _engine(settings)

    # --- check ---
    docs, issues = run_check(path, settings)
    _echo_issues(docs, issues)
    if issues and not force:
        _fail("Check failed; fix the issues above or pass --force")

    # --- ingest ---
    try:
        counts, changes = run_ingest(path, engine, settings)
    except RuntimeError as e:
        _fail(str(e))
    if not counts:
        typer.echo(f"No documents found under {path}.")
        raise typer.Exit(1)
    _echo_ingest(counts, changes)

    # --- export ---
    output_dir = Path(settings.output_dir)
    try:
        with Session(engine) as session:
            results = run_export(get_all_documents(session), output_dir)
    except Exception as e:
        _fail("Export failed", e)
    _echo_export(results, output_dir)


def list_cmd(
    collection: Annotated[Optional[str], typer.Option("--collection", help="List documents in this collection")] = None,
    ):
    """List collections in the store, or the documents of one collection."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        if collection:
            lines = [
                f"{d.published.isoformat() if d.published else '----------'}  {d.path}"
                for d in get_by_collection(session, collection)
            ]
        else:
            lines = list_collections(session)
    if not lines:
        typer.echo("No documents found in database.")
        raise typer.Exit(1)
    for line in lines:
        typer.echo(line)


def _stored(session: Session, settings: Settings, path: str):
    doc = get_by_path(session, path)
    if doc is None:
        try:
            doc = get_by_path(session, site_path(Path(path), Path(settings.site_root)))
        except ValueError:
            doc = None
    if doc is None:
        _fail(f"No stored document at {path}")
    return doc


def history_cmd(
    path: Annotated[str, typer.Argument(help="Stored document path")],
    ):
    """List stored versions of a document."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        doc = _stored(session, settings, path)
        versions = list_versions(session, doc.id)
        for v in versions:
            typer.echo(f"  v{v.version_num}  {v.created_at:%Y-%m-%d %H:%M:%S}  {v.hash[:12]}")
        typer.echo(f"  current  {doc.updated_at:%Y-%m-%d %H:%M:%S}  {doc.hash[:12]}")


def diff_cmd(
    path: Annotated[str, typer.Argument(help="Stored document path")],
    from_num: Annotated[int, typer.Argument(help="Version to diff from")],
    to_num: Annotated[Optional[int], typer.Argument(help="Version to diff to; default is current")] = None,
    ):
    """Show a unified diff between stored versions of a document."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        doc = _stored(session, settings, path)
        try:
            lines = (diff_current(session, doc, from_num) if to_num is None
                     else diff_versions(session, doc.id, from_num, to_num))
        except ValueError as e:
            _fail(str(e))
    typer.echo("".join(lines), nl=False)

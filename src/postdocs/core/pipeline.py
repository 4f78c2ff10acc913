"""Pipeline step functions: check, ingest, and export orchestration"""

from datetime import datetime
from pathlib import Path

from sqlmodel import Session

from postdocs.config import Settings
from postdocs.core.export import write_doc, write_manifest
from postdocs.core.models import Issue, ParsedDoc
from postdocs.core.parse import discover_files, parse_file
from postdocs.core.validate import validate_paths
from postdocs.crud.documents import commit_doc


def run_check(path: str, settings: Settings) -> tuple[list[ParsedDoc], list[Issue]]:
    """Validate every document under path. Returns (parsed docs, issues)."""
    return validate_paths(Path(path), settings)


def run_ingest(
    path: str,
    engine,
    settings: Settings,
    ) -> tuple[dict[str, int], list[tuple[str, str]]]:
    """Parse documents under path and commit them to the store.

    Returns (counts, changes) where changes is a list of (status, path) for
    created/updated docs. Returns ({}, []) when no documents are found.
    Any per-file failure aborts the batch with a RuntimeError naming the file.
    """
    files = discover_files(Path(path), settings.extensions)
    if not files:
        return {}, []

    site_root = Path(settings.site_root)
    committed_at = datetime.now()
    counts = {"created": 0, "updated": 0, "unchanged": 0}
    changes = []
    with Session(engine) as session:
        for p in files:
            try:
                doc, status = commit_doc(session, parse_file(p, site_root), settings.max_versions, committed_at)
            except Exception as e:
                raise RuntimeError(f"Failed to ingest {p}: {e}") from e
            counts[status] += 1
            if status != 'unchanged':
                changes.append((status, doc.path))
        session.commit()
    return counts, changes


def run_export(docs: list, output_dir: Path) -> list[tuple[str, Path]]:
    """Copy docs to output_dir and write the manifest. Returns (doc path, written path) pairs."""
    results = [(doc.path, write_doc(doc, output_dir)) for doc in docs]
    write_manifest(docs, output_dir)
    return results

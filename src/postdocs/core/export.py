"""Export pipeline: copy stored documents out byte-for-byte and write the index manifest"""

import json
from pathlib import Path

from postdocs.crud.models import Document


MANIFEST_FILE = "index.json"


def write_doc(doc: Document, output_dir: Path) -> Path:
    """Write a stored document verbatim to output_dir / doc.path. Returns the written path.

    Bytes are written directly so line endings survive unchanged. A path that would land
    outside output_dir raises ValueError.
    """
    dest = output_dir / doc.path
    if not dest.resolve().is_relative_to(output_dir.resolve()):
        raise ValueError(f"{doc.path} would be written outside {output_dir}")
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(doc.text.encode('utf-8'))
    return dest


def build_manifest(docs: list[Document]) -> list[dict]:
    """Build the manifest entries: path, slug, date, header, hash, committed_at per document."""
    return [
        {
            "path": doc.path,
            "slug": doc.slug,
            "date": doc.published.isoformat() if doc.published else None,
            "header": doc.header or {},
            "hash": doc.hash,
            "committed_at": doc.committed_at.isoformat() if doc.committed_at else None,
        }
        for doc in sorted(docs, key=lambda d: d.path)
    ]


def write_manifest(docs: list[Document], output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / MANIFEST_FILE
    path.write_text(json.dumps(build_manifest(docs), indent=2, ensure_ascii=False), encoding='utf-8')
    return path

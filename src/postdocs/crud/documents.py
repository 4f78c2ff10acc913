"""Document persistence: upsert from parsed documents, path/slug/collection lookup"""

from datetime import datetime
from pathlib import PurePosixPath

from sqlalchemy import func
from sqlmodel import Session, select

from postdocs.core.models import ParsedDoc
from postdocs.crud.models import Document
from postdocs.crud.versioning import save_version


def get_by_path(session: Session, path: str) -> Document | None:
    """Return the Document with the given site-relative path, or None if not found."""
    return session.exec(select(Document).where(Document.path == path)).one_or_none()


def get_by_slug(session: Session, slug: str) -> Document | None:
    """Return the first Document with the given slug, or None if not found."""
    return session.exec(select(Document).where(Document.slug == slug)).first()


def get_last_committed(session: Session) -> list[Document]:
    """Return documents from the most recent commit batch (MAX committed_at)."""
    max_ts = session.exec(select(func.max(Document.committed_at))).one()
    if max_ts is None:
        return []
    return list(session.exec(select(Document).where(Document.committed_at == max_ts)).all())


def get_all_documents(session: Session) -> list[Document]:
    """Return all documents ordered by path."""
    return list(session.exec(select(Document).order_by(Document.path)).all())


def _collection_key(path: str) -> str:
    """Return the top-level directory of a path (e.g. '_posts'), or '.' for root-level files."""
    parts = PurePosixPath(path).parts
    return parts[0] if len(parts) > 1 else '.'


def get_by_collection(session: Session, collection: str) -> list[Document]:
    """Return documents whose first path component equals collection; '.' matches root-level documents."""
    return [doc for doc in get_all_documents(session) if _collection_key(doc.path) == collection]


def list_collections(session: Session) -> list[str]:
    """Return sorted distinct top-level path components across all stored documents."""
    paths = session.exec(select(Document.path)).all()
    return sorted({_collection_key(p) for p in paths})


def commit_doc(
    session: Session,
    parsed: ParsedDoc,
    max_versions: int = 10,
    committed_at: datetime | None = None,
    ) -> tuple[Document, str]:
    """Upsert a parsed document by path.

    Returns (doc, status) where status is 'created', 'updated', or 'unchanged'.
    Flushes but does not commit; caller controls the transaction.
    committed_at is set on created/updated docs only.
    """
    doc = get_by_path(session, parsed.path)

    if doc:
        if doc.hash == parsed.hash:
            return doc, 'unchanged'
        save_version(session, doc, max_versions)
        doc.slug = parsed.slug
        doc.published = parsed.date
        doc.header = parsed.header or None
        doc.header_block = parsed.header_block
        doc.body = parsed.body
        doc.hash = parsed.hash
        doc.updated_at = datetime.now()
        doc.committed_at = committed_at
        session.add(doc)
        session.flush()
        return doc, 'updated'

    doc = Document(
        path=parsed.path,
        slug=parsed.slug,
        published=parsed.date,
        header=parsed.header or None,
        header_block=parsed.header_block,
        body=parsed.body,
        hash=parsed.hash,
        committed_at=committed_at,
    )
    session.add(doc)
    session.flush()
    return doc, 'created'

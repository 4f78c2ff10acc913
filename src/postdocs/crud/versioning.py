"""Document version persistence: save, prune, list, and diff operations"""

from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from postdocs.core.utils.diff import unified_diff
from postdocs.crud.models import Document, DocumentVersion


def get_version(session: Session, document_id: UUID, version_num: int) -> DocumentVersion:
    """Return one stored version. Raises ValueError if it does not exist."""
    v = session.exec(
        select(DocumentVersion)
        .where(DocumentVersion.document_id == document_id)
        .where(DocumentVersion.version_num == version_num)
    ).one_or_none()
    if v is None:
        raise ValueError(f"Version {version_num} not found for document {document_id}")
    return v


def diff_versions(session: Session, document_id: UUID, from_num: int, to_num: int, context: int = 3) -> list[str]:
    """Unified diff lines between two stored versions. Raises ValueError if either is missing."""
    v_from, v_to = get_version(session, document_id, from_num), get_version(session, document_id, to_num)
    return unified_diff(v_from.text, v_to.text, f"v{from_num}", f"v{to_num}", context)


def diff_current(session: Session, doc: Document, from_num: int, context: int = 3) -> list[str]:
    """Unified diff lines from a stored version to the document's current text."""
    v_from = get_version(session, doc.id, from_num)
    return unified_diff(v_from.text, doc.text, f"v{from_num}", "current", context)


def list_versions(session: Session, document_id: UUID) -> list[DocumentVersion]:
    """Return all versions for a document ordered by version_num ascending."""
    return list(
        session.exec(
            select(DocumentVersion)
            .where(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_num.asc())
        ).all()
    )


def prune_versions(session: Session, document_id: UUID, max_versions: int) -> int:
    """Delete oldest versions beyond max_versions. Returns count deleted. No-op if max_versions=0."""
    if max_versions == 0:
        return 0

    versions = list_versions(session, document_id)
    excess = len(versions) - max_versions
    if excess <= 0:
        return 0

    for v in versions[:excess]:
        session.delete(v)
    session.flush()

    return excess


def save_version(session: Session, doc: Document, max_versions: int = 10) -> DocumentVersion:
    """Snapshot current Document state as a new immutable version.

    Computes next version_num as MAX(version_num)+1 for this document.
    Calls prune_versions after saving if max_versions > 0.
    """
    result = session.exec(
        select(func.max(DocumentVersion.version_num))
        .where(DocumentVersion.document_id == doc.id)
    ).one()

    version = DocumentVersion(
        document_id=doc.id,
        version_num=(result or 0) + 1,
        header_block=doc.header_block,
        body=doc.body,
        hash=doc.hash,
    )
    session.add(version)
    session.flush()

    if max_versions > 0:
        prune_versions(session, doc.id, max_versions)

    return version

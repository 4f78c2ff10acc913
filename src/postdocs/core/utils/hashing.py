"""SHA-256 content hashing for document change detection"""

import hashlib


def sha256(text: str) -> str:
    """Hex SHA-256 of a document's full decoded text (64 chars, fits the String(64) hash columns)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()

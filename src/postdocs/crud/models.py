"""Database table definitions for stored documents and their version history"""

from datetime import date, datetime
from typing import Optional, Dict
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, JSON, Text, String, UniqueConstraint
from sqlmodel import SQLModel, Field


class Document(SQLModel, table=True):
    """A blog document exactly as authored: header block and body kept verbatim"""
    __tablename__ = "documents"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    path: str = Field(..., sa_column=Column(Text, nullable=False, unique=True))
    slug: str = Field(..., index=True, nullable=False)
    published: Optional[date] = Field(default=None, index=True, description="Publication date from the file name")
    header: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    header_block: str = Field(default="", sa_column=Column(Text, nullable=False))
    body: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    committed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))

    @property
    def text(self) -> str:
        return self.header_block + self.body


class DocumentVersion(SQLModel, table=True):
    """Immutable snapshot of a Document at a prior state."""
    __tablename__ = "document_versions"
    __table_args__ = (UniqueConstraint("document_id", "version_num", name="uq_docver_doc_num"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    document_id: UUID = Field(..., foreign_key="documents.id", index=True, nullable=False)
    version_num: int = Field(..., nullable=False, description="Monotonically increasing per-document version number")
    header_block: str = Field(default="", sa_column=Column(Text, nullable=False))
    body: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))

    @property
    def text(self) -> str:
        return self.header_block + self.body

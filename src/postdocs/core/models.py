"""Intermediate data models for the parse and validate pipeline"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class IssueKind(str, Enum):
    """Categories of content-validation findings"""
    encoding = "encoding"
    outside_site = "outside_site"
    header_unterminated = "header_unterminated"
    header_syntax = "header_syntax"
    header_not_mapping = "header_not_mapping"
    header_non_scalar = "header_non_scalar"
    bad_filename_date = "bad_filename_date"
    missing_key = "missing_key"
    unknown_layout = "unknown_layout"
    broken_link = "broken_link"
    broken_image = "broken_image"
    broken_post_url = "broken_post_url"
    roundtrip_mismatch = "roundtrip_mismatch"


class HeaderError(ValueError):
    """A document that cannot be split into exactly one header/body pair."""

    def __init__(self, message: str, kind: IssueKind = IssueKind.header_syntax, line: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.line = line


class Issue(BaseModel):
    """A single content-validation finding for one document."""
    path: str
    kind: IssueKind
    message: str
    line: Optional[int] = None      # 1-based line in the source file

    def __str__(self) -> str:
        where = f"{self.path}:{self.line}" if self.line else self.path
        return f"{where}: [{self.kind.value}] {self.message}"


@dataclass
class ParsedDoc:
    """One document split into its header block and body; never mutated after parsing."""
    path:         str               # site-relative, POSIX separators
    source:       Path              # filesystem location
    slug:         str
    date:         Optional[date]
    header:       dict[str, str]
    header_block: str               # exact header text incl. both delimiter lines; '' when absent
    body:         str
    hash:         str               # sha256 of raw
    body_line:    int = 1           # 1-based line number of the first body line
    name:         str = field(default="")   # file stem, used for post_url lookups

    @property
    def raw(self) -> str:
        return self.header_block + self.body

    @property
    def is_html(self) -> bool:
        return self.source.suffix.lower() in (".html", ".htm")


@dataclass
class LinkTarget:
    """A link or image reference found in a document body."""
    target: str
    kind:   str                     # 'link', 'image', or 'post_url'
    line:   Optional[int] = None

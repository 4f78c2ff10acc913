"""File discovery, header/body splitting, and document parsing"""

import re
from datetime import date
from pathlib import Path

import yaml

from postdocs.core.models import HeaderError, IssueKind, ParsedDoc
from postdocs.core.utils.hashing import sha256
from postdocs.core.utils.slug import slugify, url_title


HEADER_MARKER = '---'
HEADER_END_MARKERS = ('---', '...')
DATED_NAME_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})-(.+)$')
DEFAULT_EXTENSIONS = ('.md', '.markdown', '.html')
DEFAULT_PERMALINK = "/:categories/:year/:month/:day/:title.html"

# Generator templates, assets, and build output; never documents.
SKIP_DIRS = {'_layouts', '_includes', '_sass', '_data', '_site', 'node_modules', 'vendor'}


def _skipped(rel: Path) -> bool:
    return any(part in SKIP_DIRS or part.startswith('.') for part in rel.parts[:-1])


def discover_files(path: Path, extensions=DEFAULT_EXTENSIONS) -> list[Path]:
    """Return sorted document files under path, or [path] if a single accepted file."""
    exts = {e.lower() for e in extensions}
    if path.is_file():
        return [path] if path.suffix.lower() in exts else []
    return sorted(
        p for p in path.rglob('*')
        if p.is_file() and p.suffix.lower() in exts and not _skipped(p.relative_to(path))
    )


def split_header(text: str) -> tuple[str, str, str]:
    """Return (header_block, header_text, body).

    header_block is the exact header including both marker lines, header_text the
    lines between them. Text that does not open with the marker has no header.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].lstrip('\ufeff').rstrip() != HEADER_MARKER:
        return '', '', text
    for i in range(1, len(lines)):
        if lines[i].rstrip() in HEADER_END_MARKERS:
            end = sum(len(line) for line in lines[:i + 1])
            return text[:end], ''.join(lines[1:i]), text[end:]
    raise HeaderError("header block opened on line 1 is never closed", IssueKind.header_unterminated, line=1)


def parse_header(header_text: str) -> dict[str, str]:
    """Parse header YAML into a flat str -> str mapping; scalars keep their written form."""
    if not header_text.strip():
        return {}
    try:
        data = yaml.load(header_text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        mark = getattr(e, 'problem_mark', None)
        line = mark.line + 2 if mark is not None else None   # header text starts on file line 2
        raise HeaderError(f"Invalid YAML header: {e}", IssueKind.header_syntax, line) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise HeaderError(
            f"expected a mapping of keys to values, got {type(data).__name__}",
            IssueKind.header_not_mapping, line=2,
        )
    for key, value in data.items():
        if not isinstance(value, str):
            raise HeaderError(
                f"value for '{key}' is a {type(value).__name__}, expected a scalar",
                IssueKind.header_non_scalar,
            )
    return data


def parse_name(stem: str) -> tuple[date | None, str]:
    """Split a 'YYYY-MM-DD-slug' file stem into (date, slug part); undated stems return (None, stem)."""
    m = DATED_NAME_RE.match(stem)
    if not m:
        return None, stem
    try:
        d = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError as e:
        raise HeaderError(f"invalid date in file name '{stem}': {e}", IssueKind.bad_filename_date) from e
    return d, m.group(4)


def site_path(path: Path, site_root: Path) -> str:
    """Return path relative to site_root with POSIX separators. Raises HeaderError outside site_root."""
    try:
        return path.resolve().relative_to(site_root.resolve()).as_posix()
    except ValueError as e:
        raise HeaderError(f"{path} is not under site root {site_root}", IssueKind.outside_site) from e


def parse_file(path: Path, site_root: Path = Path('.')) -> ParsedDoc:
    """Read a document and split it into exactly one header/body pair."""
    rel_path = site_path(path, site_root)
    try:
        text = path.read_bytes().decode('utf-8')
    except UnicodeDecodeError as e:
        raise HeaderError(f"not valid UTF-8: {e}", IssueKind.encoding) from e
    header_block, header_text, body = split_header(text)
    header = parse_header(header_text)
    doc_date, name_part = parse_name(path.stem)
    return ParsedDoc(
        path=rel_path,
        source=path,
        slug=header.get('slug') or slugify(name_part),
        date=doc_date,
        header=header,
        header_block=header_block,
        body=body,
        hash=sha256(text),
        body_line=len(header_block.splitlines()) + 1,
        name=path.stem,
    )


def parse_dir(path: Path, site_root: Path = Path('.'), extensions=DEFAULT_EXTENSIONS) -> list[ParsedDoc]:
    """Parse all documents under path (file or directory)."""
    return [parse_file(p, site_root) for p in discover_files(path, extensions)]


def serialize(doc: ParsedDoc) -> bytes:
    """Reassemble a document's bytes; no content transformation is performed."""
    return (doc.header_block + doc.body).encode('utf-8')


def permalink(doc: ParsedDoc, pattern: str) -> str | None:
    """Return the URL a dated document is published at, or None for undated documents.

    :title keeps the case and dots of the file name (or header slug); categories are lowercased.
    """
    if doc.date is None:
        return None
    categories = doc.header.get('categories') or doc.header.get('category') or ''
    values = {
        ':categories': '/'.join(dict.fromkeys(c.lower() for c in categories.split())),
        ':title': url_title(doc.header.get('slug') or parse_name(doc.name)[1]),
        ':year': f"{doc.date.year:04d}",
        ':month': f"{doc.date.month:02d}",
        ':day': f"{doc.date.day:02d}",
    }
    url = pattern
    for token, value in values.items():
        url = url.replace(token, value)
    return re.sub(r'/{2,}', '/', url)

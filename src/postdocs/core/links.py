"""Link and image reference extraction, and resolution against the site tree"""

import os
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlsplit

from markdown_it import MarkdownIt

from postdocs.core.models import HeaderError, LinkTarget, ParsedDoc
from postdocs.core.parse import DEFAULT_EXTENSIONS, DEFAULT_PERMALINK, discover_files, parse_file, permalink


LIQUID_SITE_URL_RE = re.compile(r'\{\{\s*site\.(?:baseurl|url)\s*\}\}')
LIQUID_POST_URL_RE = re.compile(r'\{%-?\s*post_url\s+(\S+?)\s*-?%\}')
HTML_ATTR_RE = re.compile(r'''\b(href|src)\s*=\s*(?:"([^"]*)"|'([^']*)')''', re.IGNORECASE)
POST_URL_PREFIX = '/__post_url__/'
INDEX_FILES = ('index.html', 'index.md', 'index.markdown')
SOURCE_SUFFIXES = ('.md', '.markdown', '.html')


@dataclass
class SiteIndex:
    """What exists in the site: its root directory, document names, and published permalinks."""
    root: Path
    names: set[str] = field(default_factory=set)
    permalinks: set[str] = field(default_factory=set)
    pattern: str = DEFAULT_PERMALINK

    @classmethod
    def scan(cls, root: Path, extensions=DEFAULT_EXTENSIONS, pattern: str = DEFAULT_PERMALINK) -> "SiteIndex":
        """Index every document under root; unparseable documents contribute their name only."""
        site = cls(root=root, pattern=pattern)
        for p in discover_files(root, extensions):
            site.names.add(p.stem)
            try:
                doc = parse_file(p, root)
            except HeaderError:
                continue
            if url := permalink(doc, pattern):
                site.permalinks.add(_normalize_url(url))
        return site

    def has_permalink(self, url: str) -> bool:
        return _normalize_url(url) in self.permalinks


def _normalize_url(url: str) -> str:
    url = posixpath.normpath(url) if url else url
    if url.endswith('/index.html'):
        url = url[:-len('index.html')]
    elif url.endswith('.html'):
        url = url[:-len('.html')]
    return url.rstrip('/') or '/'


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def _expand_liquid(text: str) -> str:
    """Drop site URL prefixes and turn post_url tags into post references; line breaks are kept."""
    text = LIQUID_SITE_URL_RE.sub('', text)
    return LIQUID_POST_URL_RE.sub(lambda m: POST_URL_PREFIX + m.group(1).lstrip('/'), text)


def _target(value: str, kind: str, line: int | None) -> LinkTarget:
    if value.startswith(POST_URL_PREFIX):
        return LinkTarget(unquote(value[len(POST_URL_PREFIX):]), 'post_url', line)
    return LinkTarget(value, kind, line)


def _html_targets(text: str, start_line: int | None) -> list[LinkTarget]:
    """Find href/src attributes in raw HTML."""
    targets = []
    for m in HTML_ATTR_RE.finditer(text):
        value = m.group(2) if m.group(2) is not None else m.group(3)
        line = start_line + text.count('\n', 0, m.start()) if start_line is not None else None
        targets.append(_target(value, 'image' if m.group(1).lower() == 'src' else 'link', line))
    return targets


def extract_targets(doc: ParsedDoc, parser_config: str = 'gfm-like') -> list[LinkTarget]:
    """Return every link, image, and post reference in the document body, with file line numbers."""
    body = _expand_liquid(doc.body)
    if doc.is_html:
        return _html_targets(body, doc.body_line)

    targets: list[LinkTarget] = []
    for tok in _make_parser(parser_config).parse(body):
        line = doc.body_line + tok.map[0] if tok.map else None
        if tok.type == 'html_block':
            targets.extend(_html_targets(tok.content, line))
        elif tok.type == 'inline' and tok.children:
            for child in tok.children:
                if child.type in ('softbreak', 'hardbreak') and line is not None:
                    line += 1
                elif child.type == 'link_open':
                    targets.append(_target(str(child.attrGet('href') or ''), 'link', line))
                elif child.type == 'image':
                    targets.append(_target(str(child.attrGet('src') or ''), 'image', line))
                elif child.type == 'html_inline':
                    targets.extend(_html_targets(child.content, line))
                    if line is not None:
                        line += child.content.count('\n')
    return targets


def _exists(candidate: Path, root: Path) -> bool:
    """True when candidate is a file, an indexed directory, or the output of a source document.

    Candidates outside root never exist. os.path checks report unreadable or overlong
    names as missing instead of raising.
    """
    root_dir = os.path.abspath(root)
    path = os.path.normpath(os.path.abspath(candidate))
    if os.path.commonpath([root_dir, path]) != root_dir:
        return False
    if os.path.isfile(path):
        return True
    if os.path.isdir(path):
        return any(os.path.isfile(os.path.join(path, name)) for name in INDEX_FILES)
    stem, suffix = os.path.splitext(path)
    if suffix in ('.html', ''):
        return any(os.path.isfile(stem + s) for s in SOURCE_SUFFIXES)
    return False


def resolve_target(target: LinkTarget, doc: ParsedDoc, site: SiteIndex) -> bool:
    """Return True when the reference is external, fragment-only, or resolves inside the site."""
    if target.kind == 'post_url':
        return PurePosixPath(target.target).name in site.names

    parts = urlsplit(target.target)
    if parts.scheme or parts.netloc:
        return True
    path = unquote(parts.path)
    if not path:
        return True
    if '{{' in path or '{%' in path:
        return True     # unexpanded template expression

    if path.startswith('/'):
        return site.has_permalink(path) or _exists(site.root / path.lstrip('/'), site.root)

    if (url := permalink(doc, site.pattern)) and site.has_permalink(posixpath.join(posixpath.dirname(url), path)):
        return True
    doc_dir = site.root / PurePosixPath(doc.path).parent
    return _exists(doc_dir / path, site.root) or _exists(site.root / path, site.root)

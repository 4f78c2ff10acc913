"""Content-validation checks over parsed documents"""

from pathlib import Path

from postdocs.config import Settings
from postdocs.core.links import SiteIndex, extract_targets, resolve_target
from postdocs.core.models import HeaderError, Issue, IssueKind, ParsedDoc
from postdocs.core.parse import discover_files, parse_file, serialize, site_path


NO_LAYOUT_VALUES = {'null', 'none', '~', ''}

LINK_ISSUES = {
    'link': IssueKind.broken_link,
    'image': IssueKind.broken_image,
    'post_url': IssueKind.broken_post_url,
}


def check_header(doc: ParsedDoc, required_keys: list[str]) -> list[Issue]:
    """Report required header keys the document does not declare."""
    return [
        Issue(path=doc.path, kind=IssueKind.missing_key, line=1,
              message=f"header is missing required key '{key}'" if doc.header_block
              else f"document has no header block (needs '{key}')")
        for key in required_keys
        if key not in doc.header
    ]


def check_layout(doc: ParsedDoc, site_root: Path, layouts_dir: str = '_layouts') -> list[Issue]:
    """Report a layout that names no template, when the site has a layouts directory."""
    layout = doc.header.get('layout')
    layouts = site_root / layouts_dir
    if layout is None or layout.strip().lower() in NO_LAYOUT_VALUES or not layouts.is_dir():
        return []
    if any(p.stem == layout for p in layouts.iterdir() if p.is_file()):
        return []
    return [Issue(path=doc.path, kind=IssueKind.unknown_layout,
                  message=f"layout '{layout}' not found in {layouts_dir}/")]


def check_links(doc: ParsedDoc, site: SiteIndex, parser_config: str = 'gfm-like') -> list[Issue]:
    """Report links, images, and post references that resolve to nothing in the site."""
    return [
        Issue(path=doc.path, kind=LINK_ISSUES[t.kind], line=t.line,
              message=f"{t.kind.replace('_', ' ')} target '{t.target}' does not resolve")
        for t in extract_targets(doc, parser_config)
        if not resolve_target(t, doc, site)
    ]


def check_roundtrip(doc: ParsedDoc) -> list[Issue]:
    """Report a document whose re-serialized bytes differ from the file on disk."""
    if serialize(doc) == doc.source.read_bytes():
        return []
    return [Issue(path=doc.path, kind=IssueKind.roundtrip_mismatch,
                  message="re-serialized document differs from source bytes")]


def check_doc(doc: ParsedDoc, site: SiteIndex, settings: Settings) -> list[Issue]:
    """Run every check against one parsed document."""
    return [
        *check_header(doc, settings.required_keys),
        *check_layout(doc, site.root, settings.layouts_dir),
        *check_links(doc, site, settings.parser_config),
        *check_roundtrip(doc),
    ]


def validate_paths(path: Path, settings: Settings) -> tuple[list[ParsedDoc], list[Issue]]:
    """Parse and check every document under path. Parse failures become issues, not exceptions."""
    site_root = Path(settings.site_root)
    site = SiteIndex.scan(site_root, settings.extensions, settings.permalink)
    docs: list[ParsedDoc] = []
    issues: list[Issue] = []
    for p in discover_files(path, settings.extensions):
        try:
            doc = parse_file(p, site_root)
        except HeaderError as e:
            where = p.as_posix() if e.kind is IssueKind.outside_site else site_path(p, site_root)
            issues.append(Issue(path=where, kind=e.kind, message=str(e), line=e.line))
            continue
        docs.append(doc)
        issues.extend(check_doc(doc, site, settings))
    return docs, issues

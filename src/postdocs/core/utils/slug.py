"""Slug generation for document identifiers and published URLs"""

import re


# Characters a published URL segment keeps as-is; everything else collapses to '-'.
URL_SEGMENT_UNSAFE_RE = re.compile(r"(?:[^\w.~!$&'()+,;=@]|_)+")


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated slug used as the stored document key."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def url_title(text: str) -> str:
    """Return the case-preserving URL segment a static-site generator publishes a post title as.

    Letters, digits, '.', and URL sub-delimiters survive; runs of anything else
    (spaces, underscores, '/', '?', '#') become a single '-'.
    """
    return URL_SEGMENT_UNSAFE_RE.sub('-', text).strip('-')

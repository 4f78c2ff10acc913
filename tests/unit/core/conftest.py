"""Shared fixtures for core unit tests: a small static site on disk"""

import pytest


POST_MD = """\
---
layout: default
title: Debugging with breakpoints
---

Some prose with a [link to the about page](/about.html) and an image:

![diagram](/img/diagram.png)

See also [the follow-up]({% post_url 2015-02-01-follow-up %}).
"""

FOLLOW_UP_MD = """\
---
layout: default
---

Back to [the first post](/2015/01/12/breakpoints.html).
"""


@pytest.fixture(name="site")
def site_fixture(tmp_path):
    """A site root with layouts, an about page, an image, and two posts."""
    (tmp_path / "_layouts").mkdir()
    (tmp_path / "_layouts" / "default.html").write_text("<html>{{ content }}</html>")
    (tmp_path / "img").mkdir()
    (tmp_path / "img" / "diagram.png").write_bytes(b"\x89PNG")
    (tmp_path / "about.md").write_text("---\nlayout: default\n---\nAbout.\n")
    posts = tmp_path / "_posts"
    posts.mkdir()
    (posts / "2015-01-12-breakpoints.md").write_text(POST_MD)
    (posts / "2015-02-01-follow-up.md").write_text(FOLLOW_UP_MD)
    return tmp_path

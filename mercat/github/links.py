"""Rewrite relative links in skill markdown to GitHub web URLs."""

from __future__ import annotations

import re

_SKILL_SOURCE_URL = re.compile(
    r"^https?://raw\.githubusercontent\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/"
    r"(?:refs/heads/)?(?P<ref>[^/]+)/(?P<dir>.+)/SKILL\.md$"
)
_RELATIVE_LINK = re.compile(r"\[([^\]]*)\]\((?!https?://|#|mailto:)([^)]+)\)")


def rewrite_relative_links(markdown: str, source_url: str | None) -> str:
    """Point relative markdown links at the skill's directory on GitHub.

    Links to absolute ``http(s)`` URLs, in-page anchors, and ``mailto:``
    addresses are left alone. When ``source_url`` is missing or is not a
    raw ``.../SKILL.md`` URL the markdown is returned unmodified.

    Parameters
    ----------
    markdown
        Markdown text, usually the body of a ``SKILL.md`` file.
    source_url
        Raw-content URL the markdown was fetched from.

    Returns
    -------
    str
        The markdown with relative links made absolute.

    Examples
    --------
    >>> rewrite_relative_links(
    ...     "See [phase 1](references/phase-1.md).",
    ...     "https://raw.githubusercontent.com/acme/kit/main/skills/seo/SKILL.md",
    ... )
    'See [phase 1](https://github.com/acme/kit/blob/main/skills/seo/references/phase-1.md).'

    """
    if not markdown or not source_url:
        return markdown
    match = _SKILL_SOURCE_URL.match(source_url)
    if match is None:
        return markdown

    base = (
        f"https://github.com/{match['owner']}/{match['repo']}/blob/"
        f"{match['ref']}/{match['dir']}"
    )
    return _RELATIVE_LINK.sub(
        lambda link: f"[{link.group(1)}]({base}/{link.group(2)})", markdown
    )

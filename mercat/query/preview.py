"""Shape fetched item content into a preview.

``SKILL.md`` files open with a YAML frontmatter block between ``---``
lines. Previews with a non-empty frontmatter mapping are split into
``{"frontmatter": ..., "body": ...}`` so the metadata can be shown as a
table; relative links in the markdown are rewritten to absolute GitHub
URLs.
"""

from __future__ import annotations

import re
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from mercat.github.links import rewrite_relative_links
from mercat.logging import get_logger, log_warning

logger = get_logger(__name__)

YAML_VERSION = (1, 2)

_FRONTMATTER = re.compile(
    r"\A---[ \t]*\r?\n(?P<header>.*?)\r?\n---[ \t]*(?:\r?\n|\Z)(?P<body>.*)\Z",
    re.DOTALL,
)


def split_frontmatter(text: str) -> tuple[dict[str, typ.Any], str] | None:
    """Split ``text`` into its frontmatter mapping and body.

    Returns
    -------
    tuple[dict[str, Any], str] | None
        The parsed mapping and the stripped body, or ``None`` when there is
        no frontmatter block, it is empty, it is not a mapping, or it is not
        valid YAML.

    Examples
    --------
    >>> split_frontmatter("---\\nname: demo\\n---\\n# Demo\\n")
    ({'name': 'demo'}, '# Demo')
    >>> split_frontmatter("# No header") is None
    True

    """
    match = _FRONTMATTER.match(text)
    if match is None:
        return None
    try:
        header = _yaml().load(match["header"])
    except YAMLError as exc:
        log_warning(logger, "Ignoring unparsable frontmatter: %s", exc)
        return None
    if not isinstance(header, dict) or not header:
        return None
    return header, match["body"].strip()


def build_preview(content: object, source_url: str | None) -> object:
    """Return the preview for fetched item content.

    Text with frontmatter becomes a ``{"frontmatter", "body"}`` mapping,
    other text stays a string; in both cases relative links are rewritten
    against ``source_url``. JSON content is returned unchanged.
    """
    if not isinstance(content, str):
        return content

    split = split_frontmatter(content)
    if split is None:
        return rewrite_relative_links(content, source_url)
    frontmatter, body = split
    return {"frontmatter": frontmatter, "body": rewrite_relative_links(body, source_url)}


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml

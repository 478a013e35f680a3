"""Text helpers for deriving display names from repository paths."""

from __future__ import annotations

import re

_WORD_START = re.compile(r"\b\w")


def humanize_segment(segment: str) -> str:
    """Turn a hyphenated directory name into a display label.

    Hyphens become spaces and the first letter of every word is capitalised;
    the rest of each word is left untouched.

    Examples
    --------
    >>> humanize_segment("ab-test-setup")
    'Ab Test Setup'
    >>> humanize_segment("canned-responses")
    'Canned Responses'

    """
    spaced = segment.replace("-", " ")
    return _WORD_START.sub(lambda match: match.group(0).upper(), spaced)


def strip_dot_slash(path: str) -> str:
    """Remove a leading ``./`` from a repository-relative path."""
    return path.removeprefix("./")

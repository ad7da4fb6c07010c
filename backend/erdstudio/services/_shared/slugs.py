"""URL-safe handles for users, organizations and projects."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Callable

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_SLUG = "user"
SLUG_MAX_LENGTH = 100


def slugify(value: str | None, *, default: str = DEFAULT_SLUG) -> str:
    """Return a lower-case ASCII slug for ``value``.

    Accents are stripped, every run of other characters becomes one ``-``
    and the result is trimmed of dashes. Values with nothing left fall back
    to ``default``.

    >>> slugify("Loïc Knuchel")
    'loic-knuchel'
    >>> slugify("  ***  ")
    'user'
    """
    ascii_value = (
        unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    )
    slug = _NON_ALNUM.sub("-", ascii_value.lower()).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or default


def unique_slug(
    value: str | None,
    exists: Callable[[str], bool],
    *,
    default: str = DEFAULT_SLUG,
) -> str:
    """Slugify ``value`` and append ``-2``, ``-3``... until ``exists`` says it is free."""
    base = slugify(value, default=default)
    candidate = base
    suffix = 2
    while exists(candidate):
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate

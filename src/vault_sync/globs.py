"""Path glob matching and exclusion filtering.

Patterns are matched against ``/``-separated relative paths one segment
at a time with ``fnmatch``:

* ``*`` and ``?`` never cross a ``/``.
* A ``**`` segment matches zero or more whole segments.
* Unless ``dot=True``, wildcards do not match a segment starting with
  ``.`` (the pattern segment must start with ``.`` itself).

A pattern without ``/`` therefore only matches top-level files:
``*.png`` matches ``a.png`` but not ``img/a.png`` (use ``**/*.png``).
"""

from __future__ import annotations

import logging
import re
from fnmatch import fnmatchcase
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)


def _segment_match(pattern: str, name: str, dot: bool) -> bool:
    if not dot and name.startswith(".") and not pattern.startswith("."):
        return False
    return fnmatchcase(name, pattern)


def _match_parts(
    pattern: Sequence[str], parts: Sequence[str], dot: bool
) -> bool:
    if not pattern:
        return not parts
    head = pattern[0]
    if head == "**":
        if _match_parts(pattern[1:], parts, dot):
            return True
        if parts and (dot or not parts[0].startswith(".")):
            return _match_parts(pattern, parts[1:], dot)
        return False
    if not parts:
        return False
    return _segment_match(head, parts[0], dot) and _match_parts(
        pattern[1:], parts[1:], dot
    )


def match_path(path: str, pattern: str, *, dot: bool = False) -> bool:
    """Return ``True`` if relative *path* matches glob *pattern*."""
    path = path.lstrip("/")
    pattern = pattern.strip()
    if not pattern:
        return False
    return _match_parts(pattern.split("/"), path.split("/"), dot)


def parse_patterns(text: str | Iterable[str] | None) -> list[str]:
    """Split a newline- and comma-separated pattern list.

    Blank entries are dropped; surrounding whitespace is stripped.
    """
    if not text:
        return []
    lines = text.splitlines() if isinstance(text, str) else list(text)
    patterns: list[str] = []
    for line in lines:
        for piece in line.split(","):
            piece = piece.strip()
            if piece:
                patterns.append(piece)
    return patterns


class ExcludeFilter:
    """Predicate deciding whether a path is excluded from sync.

    Hidden files are matched (``dot=True``) so patterns such as
    ``.trash/**`` work as written.
    """

    def __init__(self, patterns: str | Iterable[str] | None = None) -> None:
        self.patterns = parse_patterns(patterns)

    @property
    def active(self) -> bool:
        """True if any pattern is configured."""
        return bool(self.patterns)

    def is_excluded(self, path: str) -> bool:
        for pattern in self.patterns:
            try:
                if match_path(path, pattern, dot=True):
                    return True
            except re.error as exc:
                logger.warning(
                    "Invalid exclude pattern %r: %s", pattern, exc
                )
        return False

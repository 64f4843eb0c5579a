from __future__ import annotations

import fnmatch
from typing import Callable, Tuple

"""
Path utilities used across the project.

Provides consistent POSIX-style normalization, wrapper-directory stripping
for archive entries, and a component-wise '**' supporting glob matcher that
callers can turn into a tree-read predicate.
"""


def normalize_posix_relpath(p: str) -> str:
    """Normalize a user path to a clean POSIX relative path.

    Converts backslashes to '/', trims whitespace, removes leading and
    trailing '/' and repeated './' markers.
    """
    s = (p or "").strip()
    s = s.replace("\\", "/")        # Unify path separators across OSes.
    s = s.lstrip("/")               # Prevent accidental absolute paths.
    while s.startswith("./"):       # Drop repeated "./" prefixes.
        s = s[2:]
    return s.rstrip("/")


def split_posix(p: str) -> Tuple[str, ...]:
    """Split a POSIX path into non-empty segments."""
    s = (p or "").strip().replace("\\", "/").strip("/")
    if not s:
        return tuple()
    return tuple(seg for seg in s.split("/") if seg)


def strip_first_segment(p: str) -> str:
    """Drop the leading directory of an archive entry name.

    'mock-main/docs/index.md' -> 'docs/index.md'; a name with a single
    segment (the wrapper directory itself) becomes ''.
    """
    parts = split_posix(p)
    return "/".join(parts[1:])


def is_within(path: str, prefix: str) -> bool:
    """True if `path` equals `prefix` or lies below it (segment-aware)."""
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


def glob_match(rel_path: str, pattern: str) -> bool:
    """Match a relative path against a glob pattern with '**' support."""
    parts = split_posix(rel_path)

    pat = (pattern or "").strip().replace("\\", "/").strip("/")
    if not pat:
        pat = "**/*"  # Default: match everything.
    pats = split_posix(pat)

    def rec(i: int, j: int) -> bool:
        if j == len(pats):
            return i == len(parts)

        token = pats[j]
        if token == "**":
            return rec(i, j + 1) or (i < len(parts) and rec(i + 1, j))

        return (
            i < len(parts)
            and fnmatch.fnmatchcase(parts[i], token)
            and rec(i + 1, j + 1)
        )

    return rec(0, 0)


def glob_predicate(pattern: str) -> Callable[[str], bool]:
    """Build a tree-read predicate from a glob over repository paths."""
    return lambda path: glob_match(path, pattern)

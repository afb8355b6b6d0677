"""Glob matching for package-relative POSIX paths.

Supports ``*`` and ``?`` (never crossing ``/``), ``[...]`` classes with
``!`` negation, and ``**`` spanning any number of directories.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Pattern, Sequence, Tuple


@lru_cache(maxsize=None)
def compile_glob(pattern: str) -> Pattern[str]:
    pat = pattern.replace("\\", "/")
    if pat.startswith("./"):
        pat = pat[2:]

    out = []
    i, n = 0, len(pat)
    while i < n:
        c = pat[i]
        if c == "*":
            if pat.startswith("**", i):
                j = i + 2
                at_segment_start = i == 0 or pat[i - 1] == "/"
                if at_segment_start and j < n and pat[j] == "/":
                    # "**/" also matches zero directories
                    out.append("(?:.*/)?")
                    i = j + 1
                else:
                    out.append(".*")
                    i = j
                continue
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            j = pat.find("]", i + 2)
            if j == -1:
                out.append(re.escape(c))
                i += 1
                continue
            body = pat[i + 1:j]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append("[" + body.replace("\\", "\\\\") + "]")
            i = j + 1
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("".join(out) + r"\Z")


def matches_any(rel_path: str, patterns: Iterable[str]) -> bool:
    return any(compile_glob(p).match(rel_path) for p in patterns)


class PatternSet:
    """Include/exclude glob pair evaluated against package-relative paths."""

    def __init__(self, include: Sequence[str], exclude: Sequence[str] = ()) -> None:
        self.include: Tuple[str, ...] = tuple(include)
        self.exclude: Tuple[str, ...] = tuple(exclude)

    def matches(self, rel_path: str) -> bool:
        return matches_any(rel_path, self.include) and not matches_any(rel_path, self.exclude)

    def prunes(self, rel_dir: str) -> bool:
        """True when everything below ``rel_dir`` is excluded."""
        return matches_any(rel_dir.rstrip("/") + "/", self.exclude)

    def __repr__(self) -> str:
        return f"PatternSet(include={list(self.include)!r}, exclude={list(self.exclude)!r})"

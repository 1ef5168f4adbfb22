"""Compiled sets of glob patterns.

Patterns follow git wildmatch rules as implemented by `pathspec`:

- `*` matches any run of characters except `/`,
- `**` matches across directory boundaries,
- `?` matches a single character and `[...]` a character class,
- a pattern without a slash matches at any depth (`*.log` matches `a/b/x.log`),
- a trailing slash scopes a pattern to directories (`build/`).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pathspec

from dirconcat.exceptions import PatternError

if TYPE_CHECKING:
    from collections.abc import Iterable


def split_patterns(text: str | None) -> list[str]:
    """Split whitespace or newline separated pattern text into patterns.

    Args:
        text (str | None): the raw pattern text

    Returns:
        list[str]: the non-blank patterns, in order
    """
    return (text or "").split()


def normalize_globs(globs: Iterable[str]) -> list[str]:
    """Normalize a sequence of glob patterns.

    Strips whitespace and drops blank patterns and duplicates (first
    occurrence wins). Backslashes are kept: in a glob they are escapes.

    Args:
        globs (Iterable[str]): the glob patterns to normalize

    Returns:
        list[str]: the normalized glob patterns
    """
    out: list[str] = []
    for g in globs:
        g2 = (g or "").strip()
        if g2 and g2 not in out:
            out.append(g2)
    return out


def validate_glob(pattern: str) -> None:
    """Reject glob patterns with unbalanced character classes or dangling escapes.

    Args:
        pattern (str): the pattern to check

    Raises:
        PatternError: if the pattern is not a syntactically valid glob
    """
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "\\":
            if i + 1 >= n:
                raise PatternError(pattern=pattern, reason="escape character with nothing to escape")
            i += 2
            continue
        if c == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            # A leading `]` is a literal member of the class.
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 2 if pattern[j] == "\\" else 1
            if j >= n:
                raise PatternError(pattern=pattern, reason="unbalanced '[' in character class")
            i = j + 1
            continue
        if c == "]":
            raise PatternError(pattern=pattern, reason="unbalanced ']' in character class")
        i += 1


class GlobSet:
    """Immutable set of glob patterns compiled into a single matcher."""

    __slots__ = ("_patterns", "_spec")

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        normalized = normalize_globs(patterns)
        compiled: list[pathspec.Pattern] = []
        for pattern in normalized:
            validate_glob(pattern)
            try:
                compiled.append(pathspec.patterns.GitWildMatchPattern(pattern))
            except ValueError as e:
                raise PatternError(pattern=pattern, reason=str(e)) from e
        self._patterns: tuple[str, ...] = tuple(normalized)
        self._spec = pathspec.PathSpec(compiled)

    @classmethod
    def from_text(cls, text: str | None) -> GlobSet:
        """Build a GlobSet from whitespace or newline separated pattern text."""
        return cls(split_patterns(text))

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def is_match(self, path: str) -> bool:
        """Return True iff any pattern matches `path`.

        Directory paths must carry a trailing `/` for directory-only patterns
        such as `build/` to apply.
        """
        if not self._patterns:
            return False
        return self._spec.match_file(path.replace("\\", "/"))

    def __bool__(self) -> bool:
        return bool(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GlobSet):
            return NotImplemented
        return set(self._patterns) == set(other._patterns)

    def __hash__(self) -> int:
        return hash(frozenset(self._patterns))

    def __repr__(self) -> str:
        return f"GlobSet({list(self._patterns)!r})"

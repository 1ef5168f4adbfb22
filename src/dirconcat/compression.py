"""Staged, lossy text compression.

Each compression level is an ordered list of named stages folded left to right
over the text. Most stages see one line at a time; the last two stages of the
extreme level need the whole text because they look across lines.

These are textual heuristics, not parsers: `remove_comments` happily strips a
`//` that sits inside a string literal or a URL.
"""

from __future__ import annotations

import itertools
import re
from typing import TYPE_CHECKING

from dirconcat.config import (
    ABBREVIATIONS,
    ELLIPSIS,
    MAX_LINE_LENGTH,
    REPEAT_MARKER,
    STAGES,
    CompressionLevel,
    StageScope,
    register_stage,
)

if TYPE_CHECKING:
    from dirconcat.config import Stage

_LINE_COMMENT = re.compile(r"//.*$")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/")
_WHITESPACE = re.compile(r"\s+")
_PATH_SEPARATORS = re.compile(r"[/\\]")

_VERSION = re.compile(r"\d+\.\d+\.\d+(\.\d+)?")
_GUID = re.compile(r"[a-fA-F0-9]{8}-([a-fA-F0-9]{4}-){3}[a-fA-F0-9]{12}")
_TIMESTAMP = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}")
_ACCESSOR_PREFIX = re.compile(r"\b(get|set|on|handle)([A-Z])")
_LONG_STRING = re.compile(r'"[^"]{20,}"')
_LARGE_NUMBER = re.compile(r"\b\d{5,}\b")

_ABBREVIATIONS = [
    (re.compile(rf"\b{word}\b", re.IGNORECASE), abbr) for word, abbr in ABBREVIATIONS.items()
]

_DIRECTIVE = re.compile(r"^\s*(?:using\b|import\b|from\s+\S+\s+import\b|#\s*include\b|package\b)")
_COMMENT_LINE = re.compile(r"^\s*(?://|#|/\*)")
_CONSOLE_OUTPUT = re.compile(
    r"^\s*(?:Console\.Write|console\.(?:log|error|warn|info|debug)\b|print\(|System\.(?:out|err)\.print|fmt\.Print)",
)
_ERROR_HANDLING = re.compile(r"Exception|\b(?:try|catch)\b")

LEVEL_STAGES: dict[CompressionLevel, tuple[str, ...]] = {
    CompressionLevel.NONE: (),
    CompressionLevel.LOW: (
        "remove_comments",
        "compress_whitespace",
    ),
    CompressionLevel.MEDIUM: (
        "remove_comments",
        "compress_whitespace",
        "remove_repetitive_info",
        "abbreviate_common_words",
    ),
    CompressionLevel.HIGH: (
        "remove_comments",
        "compress_whitespace",
        "shorten_path",
        "remove_repetitive_info",
        "abbreviate_common_words",
    ),
    CompressionLevel.EXTREME: (
        "remove_comments",
        "compress_whitespace",
        "shorten_path",
        "remove_repetitive_info",
        "truncate_long_lines",
        "abbreviate_common_words",
        "remove_non_essential_information",
        "summarize_repeated_patterns",
    ),
}


@register_stage("remove_comments")
def remove_comments(line: str) -> str:
    """Strip a trailing `//` comment and any `/* ... */` comment within the line."""
    line = _LINE_COMMENT.sub("", line)
    return _BLOCK_COMMENT.sub("", line)


@register_stage("compress_whitespace")
def compress_whitespace(line: str) -> str:
    return _WHITESPACE.sub(" ", line).strip()


@register_stage("shorten_path")
def shorten_path(line: str) -> str:
    """Collapse `a/b/c/d` into `a/.../d`; paths with fewer than three segments pass through."""
    parts = [p for p in _PATH_SEPARATORS.split(line) if p]
    if len(parts) <= 2:  # noqa: PLR2004
        return line
    return f"{parts[0]}/.../{parts[-1]}"


@register_stage("remove_repetitive_info")
def remove_repetitive_info(line: str) -> str:
    """Replace volatile tokens (versions, GUIDs, timestamps, long literals) with placeholders.

    Also drops `get`/`set`/`on`/`handle` prefixes from camel-case identifiers.
    """
    line = _VERSION.sub("X.X.X", line)
    line = _GUID.sub("GUID", line)
    line = _TIMESTAMP.sub("TIMESTAMP", line)
    line = _ACCESSOR_PREFIX.sub(r"\2", line)
    line = _LONG_STRING.sub('"..."', line)
    return _LARGE_NUMBER.sub("LARGENUM", line)


@register_stage("abbreviate_common_words")
def abbreviate_common_words(line: str) -> str:
    for pattern, abbr in _ABBREVIATIONS:
        line = pattern.sub(abbr, line)
    return line


@register_stage("truncate_long_lines")
def truncate_long_lines(line: str) -> str:
    if len(line) > MAX_LINE_LENGTH:
        return line[:MAX_LINE_LENGTH] + ELLIPSIS
    return line


def is_non_essential(line: str) -> bool:
    """Tell whether a line is noise for the extreme level.

    Blank lines, import-style directives, comment lines, console output calls
    and anything mentioning exceptions or try/catch are non-essential.
    """
    return (
        not line.strip()
        or bool(_DIRECTIVE.match(line))
        or bool(_COMMENT_LINE.match(line))
        or bool(_CONSOLE_OUTPUT.match(line))
        or bool(_ERROR_HANDLING.search(line))
    )


@register_stage("remove_non_essential_information", scope=StageScope.TEXT)
def remove_non_essential_information(text: str) -> str:
    return "\n".join(line for line in text.split("\n") if not is_non_essential(line))


@register_stage("summarize_repeated_patterns", scope=StageScope.TEXT)
def summarize_repeated_patterns(text: str) -> str:
    """Collapse runs of identical consecutive lines.

    The first line of a run is kept and followed by a repeat marker carrying
    the run length; single lines are kept as they are.
    """
    out: list[str] = []
    for line, run in itertools.groupby(text.split("\n")):
        count = sum(1 for _ in run)
        out.append(line)
        if count > 1:
            out.append(REPEAT_MARKER.format(count=count))
    return "\n".join(out)


def get_pipeline(level: CompressionLevel | str) -> list[Stage]:
    """Return the ordered stages applied at `level`.

    Args:
        level (CompressionLevel | str): the compression level or its name

    Returns:
        list[Stage]: the stages, in application order
    """
    return [STAGES[name] for name in LEVEL_STAGES[CompressionLevel(level)]]


def apply_stage(stage: Stage, text: str) -> str:
    if stage.scope is StageScope.TEXT:
        return stage(text)
    return "\n".join(stage(line) for line in text.split("\n"))


def compress(text: str, level: CompressionLevel | str) -> str:
    """Run `text` through every stage of `level`, left to right.

    `CompressionLevel.NONE` returns the input unchanged.

    Args:
        text (str): the text to compress, possibly multi-line
        level (CompressionLevel | str): the compression level

    Returns:
        str: the compressed text
    """
    for stage in get_pipeline(level):
        text = apply_stage(stage, text)
    return text

from __future__ import annotations

import pytest

from dirconcat.compression import (
    abbreviate_common_words,
    compress,
    compress_whitespace,
    get_pipeline,
    remove_comments,
    remove_non_essential_information,
    remove_repetitive_info,
    shorten_path,
    summarize_repeated_patterns,
    truncate_long_lines,
)
from dirconcat.config import CompressionLevel, StageScope

SAMPLES = [
    "",
    "plain",
    "  leading and trailing  ",
    "int a = 1; // comment\n\tint b = 2; /* block */",
    "line one\r\nline two\n\n\nline   three",
    'url = "http://example.com/path"',
]


@pytest.mark.unit
@pytest.mark.parametrize("text", SAMPLES)
def test_none_level_is_identity(text: str) -> None:
    assert compress(text, CompressionLevel.NONE) == text


@pytest.mark.unit
@pytest.mark.parametrize("text", SAMPLES)
def test_compress_whitespace_is_idempotent(text: str) -> None:
    once = compress_whitespace(text)

    assert compress_whitespace(once) == once


@pytest.mark.unit
def test_compress_whitespace_collapses_and_trims() -> None:
    assert compress_whitespace("  a \t\t b   c  ") == "a b c"


@pytest.mark.unit
def test_remove_comments_strips_line_and_block_comments() -> None:
    assert remove_comments("int a = 1; // set a") == "int a = 1; "
    assert remove_comments("a /* b */ c /* d */ e") == "a  c  e"


@pytest.mark.unit
def test_remove_comments_ignores_string_literal_context() -> None:
    assert remove_comments('url = "http://example.com"') == 'url = "http:'


@pytest.mark.unit
def test_shorten_path_keeps_first_and_last_segments() -> None:
    assert shorten_path("src/app/models/user.py") == "src/.../user.py"
    assert shorten_path("C:\\Users\\me\\file.txt") == "C:/.../file.txt"
    assert shorten_path("/usr/local/bin") == "usr/.../bin"


@pytest.mark.unit
def test_shorten_path_leaves_short_paths_alone() -> None:
    assert shorten_path("src/app.py") == "src/app.py"
    assert shorten_path("app.py") == "app.py"


@pytest.mark.unit
def test_remove_repetitive_info_replaces_volatile_tokens() -> None:
    assert remove_repetitive_info("version 1.2.3 and 10.0.19041.1") == "version X.X.X and X.X.X"
    assert remove_repetitive_info("id=123e4567-e89b-12d3-a456-426614174000") == "id=GUID"
    assert remove_repetitive_info("at 2024-01-15 10:30:00 ok") == "at TIMESTAMP ok"
    assert remove_repetitive_info("x = 123456; y = 1234") == "x = LARGENUM; y = 1234"


@pytest.mark.unit
def test_remove_repetitive_info_strips_accessor_prefixes() -> None:
    line = "getName(); setValue(v); onClick(); handleSubmit(); settings(); ongoing"

    assert remove_repetitive_info(line) == "Name(); Value(v); Click(); Submit(); settings(); ongoing"


@pytest.mark.unit
def test_remove_repetitive_info_shortens_long_string_literals() -> None:
    assert remove_repetitive_info('msg = "this is a rather long literal"') == 'msg = "..."'
    assert remove_repetitive_info('msg = "short"') == 'msg = "short"'


@pytest.mark.unit
def test_abbreviate_common_words_is_case_insensitive_on_whole_words() -> None:
    line = "public static String function Functions returnValue return"

    assert abbreviate_common_words(line) == "pub stat str func Functions returnValue ret"


@pytest.mark.unit
def test_truncate_long_lines_cuts_at_one_hundred_characters() -> None:
    assert truncate_long_lines("a" * 101) == "a" * 100 + "..."
    assert truncate_long_lines("a" * 100) == "a" * 100


@pytest.mark.unit
def test_remove_non_essential_information_drops_noise_lines() -> None:
    text = "\n".join(
        [
            "import os",
            "using System;",
            "",
            "x = 1",
            "// note",
            "console.log(x)",
            "Console.WriteLine(x);",
            "try {",
            "throw new Exception();",
            "} catch (e) {",
            "entry = country",
            "y = 2",
        ],
    )

    assert remove_non_essential_information(text) == "x = 1\nentry = country\ny = 2"


@pytest.mark.unit
def test_summarize_repeated_patterns_marks_runs() -> None:
    assert summarize_repeated_patterns("x\nx\ny\nz\nz") == (
        "x\n[Previous line repeated 2 times]\ny\nz\n[Previous line repeated 2 times]"
    )
    assert summarize_repeated_patterns("a\nb") == "a\nb"


@pytest.mark.unit
def test_extreme_level_summarizes_repeated_lines() -> None:
    assert compress("aaa\naaa\naaa\nbbb", CompressionLevel.EXTREME) == (
        "aaa\n[Previous line repeated 3 times]\nbbb"
    )


@pytest.mark.unit
def test_line_stages_keep_line_structure() -> None:
    text = "  int a;   // first\n\n   int   b;  "

    assert compress(text, CompressionLevel.LOW) == "int a;\n\nint b;"


@pytest.mark.unit
def test_medium_level_folds_stages_in_order() -> None:
    text = "public function getValue() { // comment\n   return 12345; }"

    assert compress(text, "medium") == "pub func Value() {\nret LARGENUM; }"


@pytest.mark.unit
def test_high_level_shortens_paths_before_abbreviating() -> None:
    assert compress("  see src/core/string/utils.py  ", CompressionLevel.HIGH) == "see src/.../utils.py"


@pytest.mark.unit
def test_stage_tables_per_level() -> None:
    assert [s.name for s in get_pipeline(CompressionLevel.NONE)] == []
    assert [s.name for s in get_pipeline(CompressionLevel.LOW)] == ["remove_comments", "compress_whitespace"]
    assert [s.name for s in get_pipeline(CompressionLevel.MEDIUM)] == [
        "remove_comments",
        "compress_whitespace",
        "remove_repetitive_info",
        "abbreviate_common_words",
    ]
    assert [s.name for s in get_pipeline(CompressionLevel.HIGH)] == [
        "remove_comments",
        "compress_whitespace",
        "shorten_path",
        "remove_repetitive_info",
        "abbreviate_common_words",
    ]
    extreme = get_pipeline(CompressionLevel.EXTREME)
    assert [s.name for s in extreme] == [
        "remove_comments",
        "compress_whitespace",
        "shorten_path",
        "remove_repetitive_info",
        "truncate_long_lines",
        "abbreviate_common_words",
        "remove_non_essential_information",
        "summarize_repeated_patterns",
    ]
    assert [s.scope for s in extreme[-2:]] == [StageScope.TEXT, StageScope.TEXT]


@pytest.mark.unit
def test_compression_levels_are_ordered() -> None:
    levels = list(CompressionLevel)

    assert levels == sorted(levels)
    assert CompressionLevel.NONE < CompressionLevel.LOW < CompressionLevel.EXTREME
    assert CompressionLevel("high") is CompressionLevel.HIGH

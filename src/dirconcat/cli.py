# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "pathspec",
#     "pydantic",
#     "python-dotenv",
#     "pyyaml",
#     "structlog",
# ]
# ///
#  -*- coding: utf-8 -*-
"""
dirconcat: Concatenate a directory tree into one or more text files.

Overview
--------
Every directory under the input root is matched against the exclude globs
(`--skip` plus the ignore-file) and the explicit include globs (`--include`,
which always win over excludes). Files in the surviving directories go through
the same globs plus the hidden-file, binary-content and size rules. Each
included file is written as three lines: its path, its full content, and a
blank separator.

Output can be split into `--chunks` files of roughly equal size
(`out.txt`, `out1.txt`, `out2.txt`, ...) and the content can be shrunk with a
lossy, staged text compression (`--compress --level low|medium|high|extreme`).

Usage
-----
Run `python -m dirconcat.cli --help` for full options. Common examples:
    - Whole tree into output.txt, skipping logs and dot-files:
        uv run python -m dirconcat.cli -i src -s "*.log" --ignore-hidden

    - Three chunks, medium compression:
        uv run python -m dirconcat.cli -o corpus.txt -k 3 --compress --level medium

    - Would this path be included?
        uv run python -m dirconcat.cli -s "build/" -t build/
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from dirconcat import __version__
from dirconcat.compression import compress
from dirconcat.config import CompressionLevel
from dirconcat.exceptions import DirConcatError, InputDirectoryNotFoundError, OutputExistsError
from dirconcat.file_manipulation import collect_files, eligible_bytes, read_ignore_file
from dirconcat.globset import GlobSet
from dirconcat.inclusion import InclusionEngine, InclusionPolicy
from dirconcat.logging import logger, setup_logging
from dirconcat.output_construction import OutputSink, StdoutSink, chunk_path, emit_file, target_chunk_size
from dirconcat.settings import Settings, load_config_file

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dirconcat.output_construction import Sink


@dataclass
class RunSummary:
    files: int = 0
    errors: int = 0
    bytes_written: int = 0
    destinations: list[Path] = field(default_factory=list)


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command-line arguments into Settings.

    Values from `--config` are used as defaults; explicit flags win.
    """
    p = argparse.ArgumentParser(
        prog="dirconcat",
        description="Concatenate the files of a directory tree into size-bounded outputs.",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", type=Path, help="YAML file with default settings.")
    p.add_argument("-i", "--input", type=Path, help="Input directory (default: .).")
    p.add_argument("-o", "--output", type=Path, help="Output file (default: ./output.txt).")
    p.add_argument(
        "-f",
        "--overwrite",
        action=argparse.BooleanOptionalAction,
        help="Overwrite the output file if it exists (default: on).",
    )
    p.add_argument("-s", "--skip", type=str, help="Exclude globs, whitespace separated.")
    p.add_argument(
        "-n",
        "--include",
        type=str,
        help="Explicit include globs; they override every exclude match.",
    )
    p.add_argument(
        "-c",
        "--ignore-file",
        dest="ignore_file",
        type=Path,
        help="Ignore-file with more exclude globs (default: $DIRCONCAT_IGNORE_FILE or ~/.concatignore).",
    )
    p.add_argument(
        "-b",
        "--binary",
        dest="include_binary",
        action="store_true",
        help="Include binary files.",
    )
    p.add_argument(
        "--ignore-hidden",
        dest="ignore_hidden",
        action="store_true",
        help="Skip dot-files and dot-directories.",
    )
    p.add_argument(
        "-z",
        "--max-size",
        dest="max_file_size",
        type=int,
        help="Maximum file size in bytes; larger files get an error line instead of content.",
    )
    p.add_argument("-k", "--chunks", type=int, help="Number of evenly sized output chunks.")
    p.add_argument("-w", "--stdout", action="store_true", help="Write raw output to stdout.")
    p.add_argument("--compress", action="store_true", help="Compress file content.")
    p.add_argument(
        "-l",
        "--level",
        dest="compression_level",
        choices=[level.value for level in CompressionLevel],
        help="Compression level (default: low).",
    )
    p.add_argument(
        "-t",
        "--test",
        type=str,
        help="Only report whether this path would be included (end with / for a directory).",
    )
    p.add_argument("--log-file", dest="log_file", type=str, help="Log file path.")
    args = vars(p.parse_args(argv))

    values: dict[str, Any] = {}
    if args.get("config"):
        try:
            values.update(load_config_file(args["config"]))
        except (OSError, ValueError) as e:
            p.error(f"cannot load config file: {e}")
    values.update(args)
    try:
        return Settings(**values)
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors())
        p.error(f"invalid settings: {problems}")


def build_policy(settings: Settings) -> InclusionPolicy:
    """Resolve the inclusion policy: `--skip` and the ignore-file become one exclude set.

    Raises:
        PatternError: if any glob is malformed.
    """
    exclude_text = f"{settings.skip} {read_ignore_file(settings.ignore_file)}"
    return InclusionPolicy(
        exclude=GlobSet.from_text(exclude_text),
        include=GlobSet.from_text(settings.include),
        ignore_hidden=settings.ignore_hidden,
        include_binary=settings.include_binary,
        max_file_size=settings.max_file_size,
    )


def report_test_path(engine: InclusionEngine, path: str) -> None:
    """Print the dry-run verdict for a single path; touches no files."""
    is_directory = path.endswith(("/", "\\"))
    verdict = engine.should_include(path, is_directory=is_directory)
    print(f"Matches: {verdict}")
    print(f"Includes: {' '.join(engine.policy.include.patterns)}")
    print(f"Excludes: {' '.join(engine.policy.exclude.patterns)}")


def check_setup(settings: Settings) -> None:
    """Validate the input and output locations before any processing.

    Every chunk destination is checked, not only the first one.

    Raises:
        InputDirectoryNotFoundError: if the input directory does not exist.
        OutputExistsError: if an output chunk exists and overwriting is disabled.
    """
    if not settings.input.is_dir():
        raise InputDirectoryNotFoundError(folder=settings.input)
    if settings.stdout:
        return
    existing = [p for p in (chunk_path(settings.output, i) for i in range(settings.chunks)) if p.exists()]
    if not existing:
        return
    if not settings.overwrite:
        raise OutputExistsError(path=existing[0])
    for path in existing:
        logger.info("The specified output file already exists, overwriting it: %s", path)


def make_sink(settings: Settings, total_bytes: int) -> Sink:
    if settings.stdout:
        return StdoutSink()
    level = settings.effective_level
    compressor = None if level is CompressionLevel.NONE else partial(compress, level=level)
    return OutputSink(
        settings.output,
        chunks=settings.chunks,
        target_size=target_chunk_size(total_bytes, settings.chunks),
        compressor=compressor,
    )


def run(settings: Settings, engine: InclusionEngine) -> RunSummary:
    """Walk the input tree and write every included file to the output.

    Raises:
        SetupError: if the input or output location is unusable.
    """
    check_setup(settings)
    root = settings.input.resolve()
    skip = [] if settings.stdout else [chunk_path(settings.output, i) for i in range(settings.chunks)]
    records = list(collect_files(root, engine, skip=skip))
    logger.info("Collected %d files under %s", len(records), root)

    summary = RunSummary(files=len(records))
    sink = make_sink(settings, eligible_bytes(records))
    with sink:
        for rec in records:
            if not emit_file(sink, rec):
                summary.errors += 1
    summary.bytes_written = sink.bytes_written
    summary.destinations = list(getattr(sink, "destinations", []))
    return summary


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        engine = InclusionEngine(build_policy(settings))
        if settings.test:
            report_test_path(engine, settings.test)
            return 0
        summary = run(settings, engine)
    except DirConcatError as e:
        logger.error("%s", e)  # noqa: TRY400
        print(e, file=sys.stderr)
        return 1

    if settings.stdout:
        print(f"Processing complete. {summary.files} files written to stdout.", file=sys.stderr)
    else:
        outputs = ", ".join(str(p) for p in summary.destinations)
        print(f"Processing complete. Output saved to {outputs} files={summary.files} errors={summary.errors}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

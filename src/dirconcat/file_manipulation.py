from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from dirconcat.config import FileRecord
from dirconcat.inclusion import is_hidden
from dirconcat.logging import logger

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Sequence

    from dirconcat.inclusion import InclusionEngine


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            The root itself is "". If path is not under root, returns the
            original path as a string.
    """
    try:
        rel = path.relative_to(root)
    except ValueError:
        return str(path)
    return "" if rel == Path() else rel.as_posix()


def is_regular_file(path: Path) -> bool:
    """Check if a file is regular.

    Args:
        path (Path): path to test.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    try:
        st = path.stat()
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode)


def read_ignore_file(path: Path | None) -> str:
    """Read the ignore-file's patterns.

    A missing file is not an error and yields no patterns. Lines starting
    with `#` are comments.

    Args:
        path (Path | None): the ignore-file location

    Returns:
        str: the pattern text, newline separated
    """
    if path is None:
        return ""
    path = path.expanduser()
    if not path.is_file():
        logger.info("No ignore file at %s", path)
        return ""
    try:
        lines = path.read_text(encoding="utf-8", errors="ignore").splitlines()
    except OSError as e:
        logger.warning("Cannot read ignore file %s: %s", path, e)
        return ""
    return "\n".join(ln for ln in lines if not ln.strip().startswith("#"))


def iter_directories(root: Path, engine: InclusionEngine) -> list[Path]:
    """Collect every directory under `root` that passes the inclusion engine.

    The root itself is always part of the result. Each directory is judged on
    its own path, so an include pattern can re-admit a subdirectory of an
    excluded one. Only hidden directories are pruned with their whole subtree
    when hidden paths are ignored.

    Args:
        root (Path): the input directory
        engine (InclusionEngine): the inclusion decision function

    Returns:
        list[Path]: the included directories, sorted by relative path
    """
    results: list[Path] = [root]
    for current, dirs, _files in os.walk(root):
        base = Path(current)
        if engine.policy.ignore_hidden:
            dirs[:] = [d for d in dirs if not is_hidden(d)]
        for d in dirs:
            p = base / d
            rel = relpath(p, root)
            if engine.should_include(rel, is_directory=True):
                results.append(p)
            else:
                logger.debug("Skipping directory %s", rel)
    return sorted(results, key=lambda p: relpath(p, root))


def iter_files(directory: Path) -> list[Path]:
    """List the regular files directly inside `directory`, sorted by name."""
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        logger.warning("Cannot list directory %s: %s", directory, e)
        return []
    return sorted((p for p in entries if is_regular_file(p)), key=lambda p: p.name)


def collect_files(
    root: Path,
    engine: InclusionEngine,
    *,
    skip: Collection[Path] = (),
) -> Iterator[FileRecord]:
    """Yield a record for every file under `root` that passes the inclusion engine.

    Files are produced directory by directory, in lexicographic order.

    Args:
        root (Path): the input directory
        engine (InclusionEngine): the inclusion decision function
        skip (Collection[Path], optional): resolved paths never to include,
            typically the output destinations

    Yields:
        FileRecord: the included files
    """
    resolved_skip = {p.resolve() for p in skip}
    for directory in iter_directories(root, engine):
        for f in iter_files(directory):
            if f.resolve() in resolved_skip:
                continue
            rel = relpath(f, root)
            if not engine.decide_file(f, rel):
                logger.debug("Skipping file %s", rel)
                continue
            try:
                size = f.stat().st_size
            except OSError as e:
                logger.warning("Skipping %s: %s", rel, e)
                continue
            yield FileRecord(
                path=f,
                rel=rel,
                size=size,
                max_file_size=engine.policy.max_file_size,
            )


def eligible_bytes(records: Sequence[FileRecord]) -> int:
    """Sum the sizes of the files whose content will actually be emitted."""
    return sum(r.size for r in records if not r.is_too_big)

from __future__ import annotations

from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

from dirconcat.config import BINARY_SAMPLE_SIZE, BINARY_THRESHOLD, PRINTABLE_BYTES
from dirconcat.exceptions import ClassificationError
from dirconcat.globset import GlobSet
from dirconcat.logging import logger


def is_binary_sample(data: bytes) -> bool:
    """Classify a content sample as binary.

    A sample is binary when strictly more than 30% of its bytes fall outside
    printable ASCII plus LF and CR. An empty sample is text.

    Args:
        data (bytes): the sampled bytes

    Returns:
        bool: True if the sample looks binary
    """
    if not data:
        return False
    non_printable = sum(1 for b in data if b not in PRINTABLE_BYTES)
    return non_printable / len(data) > BINARY_THRESHOLD


def classify_binary(path: Path, sample_size: int = BINARY_SAMPLE_SIZE) -> bool:
    """Sample the head of a file and classify it as binary or text.

    Any I/O failure classifies the file as binary and is logged.

    Args:
        path (Path): the file to sample
        sample_size (int, optional): number of bytes to read. Defaults to 1024.

    Returns:
        bool: True if the file is binary or could not be sampled
    """
    try:
        with path.open("rb") as f:
            data = f.read(sample_size)
    except OSError as e:
        err = ClassificationError(path=path, reason=str(e))
        logger.warning("%s", err, path=str(path))
        return True
    return is_binary_sample(data)


def is_hidden(path: str) -> bool:
    """Check whether the last segment of `path` starts with a dot."""
    name = PurePosixPath(path.replace("\\", "/").rstrip("/")).name
    return name.startswith(".")


class InclusionPolicy(BaseModel):
    """Resolved inclusion rules for one run.

    Attributes:
        exclude: patterns that drop a path.
        include: patterns that keep a path even when `exclude` matches.
        ignore_hidden: drop any path whose last segment starts with a dot.
        include_binary: keep files whose content sample looks binary.
        max_file_size: largest accepted file size in bytes; None means no limit.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    exclude: GlobSet = Field(default_factory=GlobSet, description="Exclude patterns")
    include: GlobSet = Field(default_factory=GlobSet, description="Explicit include patterns")
    ignore_hidden: bool = Field(default=False, description="Drop dot-files and dot-directories")
    include_binary: bool = Field(default=False, description="Keep binary files")
    max_file_size: int | None = Field(default=None, ge=0, description="Maximum file size in bytes")


class InclusionEngine:
    """Single decision function over an InclusionPolicy."""

    def __init__(self, policy: InclusionPolicy) -> None:
        self.policy = policy

    def matches_path(self, path: str, *, is_directory: bool = False) -> bool:
        """Apply the hidden-file rule and the include/exclude globs to `path`.

        Directories are matched with a trailing separator so that
        directory-scoped patterns like `build/` apply to them.
        """
        if self.policy.ignore_hidden and is_hidden(path):
            return False
        candidate = path.replace("\\", "/")
        if is_directory and not candidate.endswith("/"):
            candidate += "/"
        if self.policy.include.is_match(candidate):
            return True
        return not self.policy.exclude.is_match(candidate)

    def should_include(
        self,
        path: str,
        *,
        is_directory: bool = False,
        is_binary: bool | None = None,
        size: int | None = None,
    ) -> bool:
        """Decide whether `path` is part of the output.

        Args:
            path (str): the candidate path, relative to the input root
            is_directory (bool, optional): whether the path names a directory
            is_binary (bool | None, optional): content classification for files;
                None skips the binary rule
            size (int | None, optional): file size in bytes; None skips the size rule

        Returns:
            bool: True if the path should be included
        """
        if not self.matches_path(path, is_directory=is_directory):
            return False
        if is_directory:
            return True
        if is_binary and not self.policy.include_binary:
            return False
        max_size = self.policy.max_file_size
        return not (size is not None and max_size is not None and size > max_size)

    def decide_file(self, path: Path, rel: str) -> bool:
        """Decide on a file on disk, sampling its content only when needed.

        The size rule is not applied here: oversized files stay in the run and
        get an error marker in place of their content.
        """
        if not self.matches_path(rel):
            return False
        is_binary = None if self.policy.include_binary else classify_binary(path)
        return self.should_include(rel, is_binary=is_binary)

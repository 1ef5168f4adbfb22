from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DirConcatError(Exception):
    """Base exception for errors in the dirconcat module."""

    @property
    def message(self) -> str:
        return self.__class__.__doc__ or self.__class__.__name__

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class SetupError(DirConcatError):
    """Raised when the run cannot start; nothing has been processed yet."""


@dataclass(frozen=True)
class InputDirectoryNotFoundError(SetupError):
    """Raised when the input directory does not exist."""

    folder: Path

    @property
    def message(self) -> str:
        return f"The specified input directory does not exist: {self.folder}"


@dataclass(frozen=True)
class OutputExistsError(SetupError):
    """Raised when the output file exists and overwriting is disabled."""

    path: Path

    @property
    def message(self) -> str:
        return f"The specified output file already exists, and the overwrite flag is not set: {self.path}"


@dataclass(frozen=True)
class PatternError(DirConcatError):
    """Raised when a glob pattern is malformed."""

    pattern: str
    reason: str

    @property
    def message(self) -> str:
        return f"Invalid glob pattern {self.pattern!r}: {self.reason}"


@dataclass(frozen=True)
class FileReadError(DirConcatError):
    """Raised when a file's content cannot be emitted."""

    path: Path
    reason: str

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True)
class ClassificationError(DirConcatError):
    """Raised when a file cannot be sampled for binary detection."""

    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"Error determining file type for {self.path}: {self.reason}"

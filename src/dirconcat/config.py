from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from functools import wraps
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

if TYPE_CHECKING:
    from collections.abc import Callable

    StageFn = Callable[[str], str]

DEFAULT_OUTPUT = "./output.txt"
DEFAULT_IGNORE_FILE = "~/.concatignore"
IGNORE_FILE_ENV_VAR = "DIRCONCAT_IGNORE_FILE"

BINARY_SAMPLE_SIZE = 1024
BINARY_THRESHOLD = 0.3
PRINTABLE_BYTES = frozenset(range(0x20, 0x7F)) | {0x0A, 0x0D}

MAX_LINE_LENGTH = 100
ELLIPSIS = "..."
REPEAT_MARKER = "[Previous line repeated {count} times]"
ERROR_LINE = "Error reading file: {reason}"

# Insertion order is the replacement order.
ABBREVIATIONS: dict[str, str] = {
    "function": "func",
    "string": "str",
    "number": "num",
    "array": "arr",
    "object": "obj",
    "parameter": "param",
    "return": "ret",
    "class": "cls",
    "interface": "iface",
    "implements": "impl",
    "constructor": "ctor",
    "private": "priv",
    "protected": "prot",
    "public": "pub",
    "static": "stat",
    "property": "prop",
    "method": "meth",
}


class CompressionLevel(StrEnum):
    """Severity tiers of the text-compression pipeline, in increasing order."""

    NONE = auto()
    LOW = auto()
    MEDIUM = auto()
    HIGH = auto()
    EXTREME = auto()

    @property
    def rank(self) -> int:
        return list(CompressionLevel).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CompressionLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, CompressionLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, CompressionLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, CompressionLevel):
            return NotImplemented
        return self.rank >= other.rank


class StageScope(StrEnum):
    """Whether a compression stage sees one line at a time or the whole text."""

    LINE = auto()
    TEXT = auto()


@dataclass(frozen=True)
class Stage:
    name: str
    scope: StageScope
    func: Callable[[str], str]

    def __call__(self, text: str) -> str:
        return self.func(text)


STAGES: dict[str, Stage] = {}


class FileRecord(BaseModel):
    """Metadata for a file that passed the inclusion engine.

    Attributes:
        path: Absolute path to the file on disk.
        rel: Path relative to the input root, with POSIX separators.
        size: File size in bytes.
        max_file_size: Maximum size for emitting contents; None means no limit.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    path: Path = Field(..., description="Absolute file path")
    rel: str = Field(..., description="File path relative to the input root")
    size: int = Field(..., ge=0, description="File size in bytes")
    max_file_size: int | None = Field(
        default=None,
        description="Maximum file size in bytes for emitting contents; None means no limit",
    )

    @computed_field
    @property
    def is_too_big(self) -> bool:
        """Determine if the file is too big to emit based on config."""
        if self.max_file_size is None:
            return False
        return self.size > self.max_file_size


def register_stage(
    name: str,
    scope: StageScope = StageScope.LINE,
) -> Callable[[StageFn], StageFn]:
    """Decorator to register a compression stage under a name.

    The compression level table refers to stages by these names, so a level is
    just an ordered list of registered names.

    Args:
        name (str): the name the level table uses for this stage.
        scope (StageScope): LINE stages are applied to each line independently,
            TEXT stages receive the whole multi-line text.

    Returns:
        Callable[[StageFn], StageFn]: A decorator that registers the given function
        in the STAGES mapping and returns it.
    """

    def decorator(func: StageFn) -> StageFn:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:  # noqa: ANN401
            return func(*args, **kwargs)

        STAGES[name] = Stage(name=name, scope=scope, func=wrapper)
        return wrapper

    return decorator

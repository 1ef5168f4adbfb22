from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from dirconcat.config import DEFAULT_IGNORE_FILE, DEFAULT_OUTPUT, IGNORE_FILE_ENV_VAR, CompressionLevel

ENV_FILE = find_dotenv(usecwd=True)
if ENV_FILE:
    load_dotenv(ENV_FILE, override=False)


def default_ignore_file() -> Path:
    """Ignore-file location: `$DIRCONCAT_IGNORE_FILE`, else `~/.concatignore`."""
    return Path(os.environ.get(IGNORE_FILE_ENV_VAR) or DEFAULT_IGNORE_FILE).expanduser()


class Settings(BaseModel):
    """Configuration settings for a dirconcat run."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    include_binary: bool = Field(default=False, description="Include binary files.")
    skip: str = Field(default="", description="Exclude glob patterns, whitespace separated.")
    output: Path = Field(default=Path(DEFAULT_OUTPUT), description="Output file.")
    input: Path = Field(default=Path(), description="Input directory.")
    overwrite: bool = Field(default=True, description="Overwrite the output file if it exists.")
    ignore_file: Path = Field(default_factory=default_ignore_file, description="Ignore-file path.")
    include: str = Field(
        default="",
        description="Explicit include glob patterns; they override exclude matches.",
    )
    test: str | None = Field(default=None, description="Only report whether this path would be included.")
    stdout: bool = Field(default=False, description="Write to stdout instead of the output file.")
    max_file_size: int | None = Field(
        default=None,
        ge=0,
        description="Maximum file size in bytes; None means no limit.",
    )
    chunks: int = Field(default=1, ge=1, description="Number of evenly sized output chunks.")
    ignore_hidden: bool = Field(default=False, description="Skip dot-files and dot-directories.")
    compress: bool = Field(default=False, description="Compress emitted file content.")
    compression_level: CompressionLevel = Field(
        default=CompressionLevel.LOW,
        description="Compression level used when compress is set.",
    )
    log_file: str = Field(default="", description="Log file path.")
    config: Path | None = Field(default=None, description="YAML configuration file.")

    @property
    def effective_level(self) -> CompressionLevel:
        """The compression level actually applied to output."""
        return self.compression_level if self.compress else CompressionLevel.NONE


def load_config_file(path: Path) -> dict[str, Any]:
    """Load setting defaults from a YAML file.

    Keys use the Settings field names; dashes are accepted in place of
    underscores.

    Args:
        path (Path): the YAML file

    Raises:
        ValueError: if the document is not a mapping

    Returns:
        dict[str, Any]: the settings found in the file
    """
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of settings, got {type(data).__name__}")
    return {str(k).replace("-", "_"): v for k, v in data.items()}

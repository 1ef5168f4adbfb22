from __future__ import annotations

import math
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, TextIO

from dirconcat.config import ERROR_LINE, FileRecord
from dirconcat.exceptions import FileReadError
from dirconcat.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    Opener = Callable[[Path], TextIO]

LINE_TERMINATOR = "\n"


def chunk_path(output: Path, index: int) -> Path:
    """Name the destination of chunk `index`.

    Chunk 0 is the output path itself; later chunks insert their index
    before the extension (`out.txt`, `out1.txt`, `out2.txt`, ...).

    Args:
        output (Path): the configured output path
        index (int): the 0-based chunk index

    Returns:
        Path: the destination path for that chunk
    """
    if index == 0:
        return output
    return output.with_name(f"{output.stem}{index}{output.suffix}")


def target_chunk_size(total_bytes: int, chunks: int) -> int | None:
    """Compute the byte budget of each chunk.

    Args:
        total_bytes (int): the summed size of every eligible file
        chunks (int): the requested number of chunks

    Returns:
        int | None: ceil(total_bytes / chunks), or None (unbounded) for a single chunk
    """
    if chunks <= 1:
        return None
    return math.ceil(total_bytes / chunks)


def line_size(line: str) -> int:
    """UTF-8 size of `line` once written, terminator included."""
    return len((line + LINE_TERMINATOR).encode("utf-8"))


def _open_for_write(path: Path) -> TextIO:
    return path.open("w", encoding="utf-8", newline="")


class Sink(Protocol):
    bytes_written: int

    def emit(self, line: str, *, compress: bool = False) -> None: ...

    def close(self) -> None: ...


class StdoutSink:
    """Write raw lines to a single stream: no chunking, no compression."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.bytes_written = 0

    def emit(self, line: str, *, compress: bool = False) -> None:  # noqa: ARG002
        self.stream.write(line + LINE_TERMINATOR)
        self.bytes_written += line_size(line)

    def close(self) -> None:
        self.stream.flush()

    def __enter__(self) -> StdoutSink:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class OutputSink:
    """Chunked output writer.

    Lines are appended to the current chunk until the next line would push it
    past `target_size`; the writer then closes that chunk and opens the next
    one, as long as fewer than `chunks` destinations have been used. The last
    chunk takes whatever remains.

    Destinations are opened on their first write and closed exactly once,
    either on rotation or on `close()`.
    """

    def __init__(
        self,
        output: Path,
        *,
        chunks: int = 1,
        target_size: int | None = None,
        compressor: Callable[[str], str] | None = None,
        opener: Opener = _open_for_write,
    ) -> None:
        self.output = output
        self.chunks = max(1, chunks)
        self.target_size = target_size
        self.compressor = compressor
        self._opener = opener
        self._handle: TextIO | None = None
        self._closed = False
        self.chunk_index = 0
        self.chunk_size = 0
        self.bytes_written = 0
        self.destinations: list[Path] = []

    @property
    def current_path(self) -> Path:
        return chunk_path(self.output, self.chunk_index)

    def _should_rotate(self, size: int) -> bool:
        """Tell whether `size` more bytes must go to the next chunk.

        Rotation happens when the line would push the current chunk past the
        target and another chunk is allowed, except that a chunk with nothing
        written yet always takes the line. That keeps a single oversized line
        from leaving an empty chunk file behind.
        """
        if self.target_size is None or self.chunk_index >= self.chunks - 1:
            return False
        return self.chunk_size > 0 and self.chunk_size + size > self.target_size

    def _rotate(self) -> None:
        self._close_handle()
        self.chunk_index += 1
        self.chunk_size = 0
        logger.info("Rotating output to chunk %d: %s", self.chunk_index, self.current_path)

    def _close_handle(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _ensure_open(self) -> TextIO:
        if self._handle is None:
            path = self.current_path
            self._handle = self._opener(path)
            self.destinations.append(path)
        return self._handle

    def emit(self, line: str, *, compress: bool = False) -> None:
        """Write one logical line, rotating to the next chunk first if needed.

        Args:
            line (str): the line to write; it may itself span several lines
            compress (bool, optional): run the line through the compressor
        """
        if self._closed:
            raise ValueError("emit() on a closed OutputSink")
        if compress and self.compressor is not None:
            line = self.compressor(line)
        size = line_size(line)
        if self._should_rotate(size):
            self._rotate()
        self._ensure_open().write(line + LINE_TERMINATOR)
        self.chunk_size += size
        self.bytes_written += size

    def close(self) -> None:
        """Close the current destination; a run that wrote nothing still leaves an empty output file."""
        if self._closed:
            return
        if not self.destinations:
            self._ensure_open()
        self._close_handle()
        self._closed = True

    def __enter__(self) -> OutputSink:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def read_content(rec: FileRecord) -> str:
    """Read a file's text for emission.

    Args:
        rec (FileRecord): the file to read

    Raises:
        FileReadError: if the file exceeds its size limit or cannot be read

    Returns:
        str: the file content
    """
    if rec.is_too_big:
        raise FileReadError(
            path=rec.path,
            reason=f"file size {rec.size} bytes exceeds the maximum file size of {rec.max_file_size} bytes",
        )
    try:
        return rec.path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileReadError(path=rec.path, reason=str(e)) from e


def emit_file(sink: Sink, rec: FileRecord) -> bool:
    """Emit one file: its path, its content as a single unit, then a blank line.

    A file that is too big or unreadable keeps its path line but gets an
    error line in place of its content; the run carries on.

    Args:
        sink (Sink): the destination
        rec (FileRecord): the file to emit

    Returns:
        bool: True if the content was emitted, False if an error line was written instead
    """
    try:
        content = read_content(rec)
    except FileReadError as e:
        logger.warning("Error reading from file %s: %s", rec.rel, e)
        sink.emit(rec.rel)
        sink.emit(ERROR_LINE.format(reason=e))
        sink.emit("")
        return False
    sink.emit(rec.rel)
    sink.emit(content, compress=True)
    sink.emit("")
    return True

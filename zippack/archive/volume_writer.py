"""
Multi-volume ZIP writer for zippack.

The VolumeWriter owns exactly one open ZIP volume at a time. Files are
streamed into the current volume; once the declared bytes written to that
volume exceed the size threshold, the volume is sealed and the next one is
opened.

Volume naming:
    <output_dir>/<name>_<volume_index>.zip   (volume_index starts at 1)

Lifecycle:
    OPEN(n) --add_file (current <= threshold)--> OPEN(n)
    OPEN(n) --add_file (current >  threshold)--> OPEN(n+1)
    OPEN(n) --close--> SEALED
    any failure --> FAILED

Invariants:
    - The threshold is checked after a file is fully written, never before
    - The comparison is strict (>), a volume may equal the threshold exactly
    - A file is never split across volumes
    - total_compressed_bytes is the sum of on-disk sizes of sealed volumes
    - total_uncompressed_bytes is folded in when a volume is sealed
    - Nothing may be added after close() or after a failure

How to change safely:
    - Do not move the threshold check ahead of the write, oversized files
      would then get volumes of their own
    - Keep the seal step ahead of opening the next volume so accounting for
      volume N survives a failure to create volume N+1
"""

from __future__ import annotations

import logging
import lzma
import os
import zipfile
import zlib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO

from ..errors import CodecError, FilesystemError, PackerError, WriterStateError
from .compression import Compression

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = "zip"
COPY_BUFFER_SIZE = 1024 * 64

# Exceptions the zlib and lzma compressors raise on corrupt state
_CODEC_ERRORS = (zlib.error, lzma.LZMAError)


class WriterState(Enum):
    """Lifecycle state of a VolumeWriter."""

    OPEN = "open"
    SEALED = "sealed"
    FAILED = "failed"


@dataclass(frozen=True)
class WriterStats:
    """Totals of one archive-writing session.

    Attributes:
        name: Archive set name
        volume_paths: Every volume file produced, in order
        total_uncompressed_bytes: Sum of declared sizes of sealed volumes
        total_compressed_bytes: Sum of on-disk sizes of sealed volumes
        total_file_count: Number of files added
    """

    name: str
    volume_paths: tuple[Path, ...]
    total_uncompressed_bytes: int
    total_compressed_bytes: int
    total_file_count: int

    @property
    def volume_count(self) -> int:
        return len(self.volume_paths)


def volume_path_for(output_dir: str | os.PathLike[str], name: str, volume_index: int) -> Path:
    """Build the path of volume number volume_index of archive set name."""
    return Path(output_dir) / f"{name}_{volume_index}.{ARCHIVE_EXTENSION}"


class VolumeWriter:
    """Writes files into a sequence of size-bounded ZIP volumes.

    Attributes:
        name: Archive set name shared by all volumes
        root: Traversal root this set was built from (reporting only)
        size_threshold: Declared bytes per volume before rollover
        compression: Codec used for every entry of this set
        output_dir: Directory the volumes are written to
        volume_index: 1-based number of the open volume
        volume_path: Path of the open (or last) volume
        current_volume_bytes: Declared bytes written to the open volume

    Example:
        >>> with VolumeWriter.open("textures", "/srv/game", 1 << 30,
        ...                        Compression.DEFLATE, "out") as writer:
        ...     writer.add_file("/srv/game/a.png", 2048)
        >>> writer.stats.total_file_count
        1
    """

    def __init__(
        self,
        name: str,
        root: str | os.PathLike[str],
        size_threshold: int,
        compression: Compression,
        output_dir: str | os.PathLike[str],
    ) -> None:
        """Initialize the writer without opening a volume.

        Use VolumeWriter.open() to get a writer with volume 1 ready.

        Raises:
            ValueError: If size_threshold is not positive
            CodecError: If the codec is unavailable on this interpreter
        """
        if size_threshold <= 0:
            raise ValueError(f"size_threshold must be positive, got {size_threshold}")

        self.name = name
        self.root = Path(root)
        self.size_threshold = size_threshold
        self.compression = compression
        self.output_dir = Path(output_dir)
        self._zip_method = compression.zip_method

        self.volume_index = 1
        self.volume_path = volume_path_for(self.output_dir, name, 1)
        self.current_volume_bytes = 0
        self.total_uncompressed_bytes = 0
        self.total_compressed_bytes = 0
        self.total_file_count = 0
        self.state = WriterState.OPEN

        self._volume_paths: list[Path] = []
        self._volume_file_count = 0
        self._fp: IO[bytes] | None = None
        self._zip: zipfile.ZipFile | None = None

    @classmethod
    def open(
        cls,
        name: str,
        root: str | os.PathLike[str],
        size_threshold: int,
        compression: Compression,
        output_dir: str | os.PathLike[str],
    ) -> VolumeWriter:
        """Create a writer and open volume 1.

        The output directory must already exist.

        Args:
            name: Archive set name
            root: Traversal root the files come from
            size_threshold: Rollover limit in declared bytes
            compression: Codec for every entry in this set
            output_dir: Directory for the volume files

        Returns:
            Writer in the OPEN state

        Raises:
            FilesystemError: If volume 1 cannot be created
            CodecError: If the codec is unavailable
        """
        writer = cls(name, root, size_threshold, compression, output_dir)
        writer._open_volume()
        logger.info(
            "Opened archive set",
            extra={
                "archive": name,
                "compression": compression.value,
                "size_threshold": size_threshold,
                "output_dir": str(writer.output_dir),
            },
        )
        return writer

    def __enter__(self) -> VolumeWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.close()
        else:
            self.abort()
        return False

    @property
    def volume_paths(self) -> list[Path]:
        """Paths of every volume created so far, in order."""
        return list(self._volume_paths)

    @property
    def stats(self) -> WriterStats:
        """Snapshot of the session totals."""
        return WriterStats(
            name=self.name,
            volume_paths=tuple(self._volume_paths),
            total_uncompressed_bytes=self.total_uncompressed_bytes,
            total_compressed_bytes=self.total_compressed_bytes,
            total_file_count=self.total_file_count,
        )

    def add_file(self, path: str | os.PathLike[str], declared_size: int) -> None:
        """Write one file into the open volume.

        The entry is named by the path string as given. zipfile turns OS
        separators into '/' and drops a leading '/' or drive letter.

        Args:
            path: Source file, also used as the entry name
            declared_size: Size reported by the caller, used for accounting

        Raises:
            WriterStateError: If the writer is sealed or failed
            FilesystemError: If the source or the volume cannot be read/written
            CodecError: If the compressor fails
        """
        self._ensure_open("add_file")
        if declared_size < 0:
            raise ValueError(f"declared_size must not be negative, got {declared_size}")

        source = os.fspath(path)
        try:
            zinfo = zipfile.ZipInfo.from_file(source, arcname=source, strict_timestamps=False)
            src = open(source, "rb")
        except OSError as e:
            self._fail()
            raise FilesystemError(f"Failed to archive {source}: {e}", path=source) from e
        zinfo.compress_type = self._zip_method

        try:
            with src, self._zip.open(zinfo, "w") as dest:
                _copy_source(src, dest, source)
        except PackerError:
            self._fail()
            raise
        except _CODEC_ERRORS as e:
            self._fail()
            raise self._codec_error(source, e) from e
        except OSError as e:
            self._fail()
            # bz2 reports compressor failures as OSError without an errno
            if e.errno is None:
                raise self._codec_error(source, e) from e
            raise FilesystemError(
                f"Failed to write {source} into {self.volume_path}: {e}",
                path=str(self.volume_path),
            ) from e

        self.current_volume_bytes += declared_size
        self.total_file_count += 1
        self._volume_file_count += 1
        logger.debug(
            "Added file",
            extra={"archive": self.name, "volume": self.volume_index, "path": source},
        )

        if self.current_volume_bytes > self.size_threshold:
            self._rollover()

    def close(self) -> WriterStats:
        """Seal the last volume and finish the session.

        Returns:
            Final session totals

        Raises:
            WriterStateError: If the writer is already sealed or failed
            FilesystemError: If the volume cannot be finalized
        """
        self._ensure_open("close")
        self._seal_volume()
        self.state = WriterState.SEALED
        logger.info(
            "Closed archive set",
            extra={
                "archive": self.name,
                "volumes": len(self._volume_paths),
                "files": self.total_file_count,
                "uncompressed_bytes": self.total_uncompressed_bytes,
                "compressed_bytes": self.total_compressed_bytes,
            },
        )
        return self.stats

    def abort(self) -> None:
        """Release the open volume without finalizing it.

        The partial volume stays on disk. Safe to call in any state.
        """
        if self.state is WriterState.OPEN:
            logger.warning(
                "Aborting archive set",
                extra={"archive": self.name, "volume": self.volume_index},
            )
            self.state = WriterState.FAILED
        self._release()

    def _ensure_open(self, operation: str) -> None:
        if self.state is not WriterState.OPEN:
            raise WriterStateError(
                f"Cannot {operation} on archive set '{self.name}': writer is {self.state.value}",
                state=self.state.value,
            )

    def _open_volume(self) -> None:
        """Create the file for the current volume_index."""
        path = volume_path_for(self.output_dir, self.name, self.volume_index)
        try:
            fp = open(path, "wb")
        except OSError as e:
            self.state = WriterState.FAILED
            raise FilesystemError(f"Failed to create volume {path}: {e}", path=str(path)) from e

        try:
            self._zip = zipfile.ZipFile(
                fp, mode="w", compression=self._zip_method, allowZip64=True
            )
        except RuntimeError as e:
            # zipfile raises RuntimeError when the codec module is missing
            fp.close()
            self.state = WriterState.FAILED
            raise CodecError(str(e), compression=self.compression.value) from e

        self._fp = fp
        self.volume_path = path
        self._volume_paths.append(path)
        self._volume_file_count = 0

    def _seal_volume(self) -> None:
        """Finalize the open volume and fold its sizes into the totals."""
        try:
            self._zip.close()
            self._zip = None
            self._fp.close()
            self._fp = None
            compressed_size = os.stat(self.volume_path).st_size
        except OSError as e:
            self._fail()
            raise FilesystemError(
                f"Failed to finalize volume {self.volume_path}: {e}",
                path=str(self.volume_path),
            ) from e

        self.total_compressed_bytes += compressed_size
        self.total_uncompressed_bytes += self.current_volume_bytes
        logger.info(
            "Sealed volume",
            extra={
                "archive": self.name,
                "volume": self.volume_index,
                "path": str(self.volume_path),
                "files": self._volume_file_count,
                "uncompressed_bytes": self.current_volume_bytes,
                "compressed_bytes": compressed_size,
            },
        )

    def _rollover(self) -> None:
        """Seal the open volume and continue in the next one."""
        self._seal_volume()
        self.current_volume_bytes = 0
        self.volume_index += 1
        try:
            self._open_volume()
        except PackerError:
            logger.error(
                "Failed to open next volume",
                extra={"archive": self.name, "volume": self.volume_index},
            )
            raise

    def _fail(self) -> None:
        self.state = WriterState.FAILED
        self._release()

    def _release(self) -> None:
        """Close the volume file handle if one is open."""
        self._zip = None
        if self._fp is not None:
            fp, self._fp = self._fp, None
            try:
                fp.close()
            except OSError as e:
                logger.warning(
                    f"Error closing volume {self.volume_path}: {e}",
                    extra={"archive": self.name, "path": str(self.volume_path)},
                )

    def _codec_error(self, source: str, error: Exception) -> CodecError:
        return CodecError(
            f"Compression failed for {source}: {error}",
            compression=self.compression.value,
        )


def _copy_source(src: IO[bytes], dest: IO[bytes], source: str) -> None:
    """Stream src into an open entry; read errors are the source's fault."""
    while True:
        try:
            chunk = src.read(COPY_BUFFER_SIZE)
        except OSError as e:
            raise FilesystemError(f"Failed to read {source}: {e}", path=source) from e
        if not chunk:
            return
        dest.write(chunk)

"""
Run orchestration for zippack.

The Packer drives one VolumeWriter per enabled archive group, then a final
writer over the whole traversal root for everything no group claimed.

Run sequence:
    1. Create the output directory
    2. Delete stale volumes of enabled groups and of the root archive
    3. For each enabled group: walk <root>/<group.path> into <group>_N.zip
    4. Walk <root>, pruning every group's sub-path, into <root_name>_N.zip

Invariants:
    - Exactly one VolumeWriter is open at any time
    - The exclusion set is built from every configured group, skipped ones
      included, before any run starts
    - The first error aborts the whole pack; no file is skipped
    - Of the output directory only <set>_N.zip volumes are kept out of the
      walk, so an output directory inside (or equal to) the root still works

How to change safely:
    - Keep the residual run last, it relies on the complete exclusion set
    - Keep cleanup limited to enabled groups so skipped groups keep their
      previous output
"""

from __future__ import annotations

import logging
import os
import re
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .archive import Compression, VolumeWriter
from .archive.volume_writer import ARCHIVE_EXTENSION
from .config import PackerConfig
from .errors import FilesystemError
from .report import RunReport
from .walk import exclusion_roots, is_excluded, walk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchiveGroup:
    """A named archive group built from configuration.

    Attributes:
        name: Archive set name, prefix of its volume files
        path: Sub-path under the traversal root
        compression: Codec for every entry of this set
        skip: Whether the group is left out of the run
    """

    name: str
    path: str
    compression: Compression
    skip: bool = False

    @property
    def enabled(self) -> bool:
        return not self.skip


def groups_from_config(config: PackerConfig) -> list[ArchiveGroup]:
    """Build archive groups in configuration order."""
    return [
        ArchiveGroup(
            name=name,
            path=group.path,
            compression=Compression.from_name(group.compression),
            skip=group.skip,
        )
        for name, group in config.zip.items()
    ]


def cleanup_outputs(output_dir: str | os.PathLike[str], prefixes: Iterable[str]) -> list[Path]:
    """Delete files in output_dir whose name starts with any of prefixes.

    Args:
        output_dir: Directory holding previous volumes
        prefixes: Archive set names whose old volumes should go

    Returns:
        Paths that were deleted

    Raises:
        FilesystemError: If the directory cannot be listed or a file removed
    """
    prefixes = tuple(prefixes)
    directory = Path(output_dir)
    deleted: list[Path] = []
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise FilesystemError(f"Cannot list output directory {directory}: {e}", path=str(directory)) from e

    for entry in entries:
        if not entry.is_file() or not entry.name.startswith(prefixes):
            continue
        try:
            os.remove(entry.path)
        except OSError as e:
            raise FilesystemError(f"Failed to delete {entry.path}: {e}", path=entry.path) from e
        logger.info("Deleted stale output", extra={"path": entry.path})
        deleted.append(Path(entry.path))
    return deleted


def volume_name_pattern(set_names: Iterable[str]) -> re.Pattern[str]:
    """Match volume file names (<name>_N.zip) of the given archive sets."""
    alternatives = "|".join(re.escape(name) for name in sorted(set_names))
    return re.compile(rf"(?:{alternatives})_\d+\.{ARCHIVE_EXTENSION}")


class OutputVolumeFilter:
    """Recognizes archive volumes in the output directory.

    When the output directory lies inside the traversal root, the walk sees
    the volumes of the configured sets. Only those files are kept out of the
    archives; anything else stored there is archived like any other file.
    """

    def __init__(self, output_dir: str | os.PathLike[str], set_names: Iterable[str]) -> None:
        self.output_dir = os.path.realpath(output_dir)
        self.pattern = volume_name_pattern(set_names)

    def __call__(self, path: Path) -> bool:
        if not self.pattern.fullmatch(path.name):
            return False
        return os.path.realpath(path.parent) == self.output_dir


@dataclass
class PackResult:
    """Outcome of a complete pack.

    Attributes:
        groups: Reports for the enabled named groups, in run order
        residual: Report for the root archive set
        skipped: Names of groups left out
        deleted: Stale files removed before the run
    """

    groups: list[RunReport] = field(default_factory=list)
    residual: RunReport | None = None
    skipped: list[str] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)

    @property
    def reports(self) -> list[RunReport]:
        """All reports, residual last."""
        return [*self.groups, *([self.residual] if self.residual else [])]


class Packer:
    """Packs a directory tree into named, size-bounded ZIP archive sets.

    Attributes:
        config: Validated packer configuration
        groups: Archive groups in run order

    Example:
        >>> packer = Packer(PackerConfig.from_file("config.toml"))
        >>> result = packer.run()
        >>> result.residual.stats.total_file_count
        42
    """

    def __init__(self, config: PackerConfig, echo: bool = True) -> None:
        """Initialize the packer.

        Args:
            config: Validated configuration
            echo: Print progress lines to stdout
        """
        self.config = config
        self.echo = echo
        self.groups = groups_from_config(config)
        self.root = Path(config.root)
        self.output_dir = Path(config.output)
        self.root_compression = Compression.from_name(config.root_compression)
        self.output_volumes = OutputVolumeFilter(
            self.output_dir, [g.name for g in self.groups] + [config.root_name]
        )

    def run(self) -> PackResult:
        """Run every enabled group, then the residual root run.

        Returns:
            PackResult with one report per archive set

        Raises:
            FilesystemError: On the first filesystem failure
            CodecError: On the first compressor failure
        """
        self._print("-- Fancy Zip Packer --")
        self._print(f"Root: {self.config.root}")
        self._print(f"Output: {self.config.output}")
        self._print("-----")

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(
                f"Failed to create output directory {self.output_dir}: {e}",
                path=str(self.output_dir),
            ) from e

        # Skipped groups still claim their sub-paths
        excluded = exclusion_roots(self.root, self.groups)

        result = PackResult()
        prefixes = [g.name for g in self.groups if g.enabled] + [self.config.root_name]
        result.deleted = cleanup_outputs(self.output_dir, prefixes)

        for group in self.groups:
            if group.skip:
                logger.info("Skipping archive group", extra={"archive": group.name})
                self._print(f"Skipping '{group.name}'")
                self._print("")
                result.skipped.append(group.name)
                continue

            path = self.root / group.path
            self._print(
                f"Building '{group.name}' Zip - Compression: {group.compression.value} - Path: {path}"
            )
            report = self.pack(group.name, group.compression, path)
            result.groups.append(report)
            self._print("")

        self._print(
            f"Building '{self.config.root_name}' Root Zip - "
            f"Compression: {self.root_compression.value}"
        )
        result.residual = self.pack(
            self.config.root_name,
            self.root_compression,
            self.root,
            excluded=excluded,
        )
        return result

    def pack(
        self,
        name: str,
        compression: Compression,
        start_path: Path,
        excluded: frozenset[Path] | None = None,
    ) -> RunReport:
        """Write one archive set from the files under start_path.

        Args:
            name: Archive set name
            compression: Codec for the set
            start_path: Where to start walking
            excluded: Sub-roots to prune from the walk

        Returns:
            RunReport for the finished set
        """
        roots = excluded or frozenset()

        def predicate(path: Path) -> bool:
            return self.output_volumes(path) or is_excluded(path, roots)

        start = time.perf_counter()

        with VolumeWriter.open(
            name,
            self.root,
            self.config.zip_limit,
            compression,
            self.output_dir,
        ) as writer:
            for entry in walk(start_path, predicate):
                writer.add_file(entry.path, entry.size)

        report = RunReport(stats=writer.stats, elapsed_seconds=time.perf_counter() - start)
        report.log()
        self._print(report.summary_line())
        return report

    def _print(self, line: str) -> None:
        if self.echo:
            print(line)

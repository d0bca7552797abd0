"""
Lazy depth-first directory enumeration.

walk() yields every regular file under a start path together with its size.
An optional predicate prunes entries: an excluded directory is never opened,
an excluded file is never yielded.

Invariants:
    - Directories are traversed but never yielded
    - Entries are visited in sorted name order within each directory
    - A symlinked start path is followed, symbolic links below it are not
    - Any OSError aborts the walk as FilesystemError, nothing is skipped quietly

How to change safely:
    - Keep the predicate check ahead of descending into a directory
    - Do not swallow scandir/stat errors, a claimed file must not go missing
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import NamedTuple

from ..errors import FilesystemError

logger = logging.getLogger(__name__)

ExclusionPredicate = Callable[[Path], bool]


class WalkEntry(NamedTuple):
    """A regular file found by walk()."""

    path: Path
    size: int


def walk(
    start_path: str | os.PathLike[str],
    is_excluded: ExclusionPredicate | None = None,
) -> Iterator[WalkEntry]:
    """Yield regular files under start_path, depth-first.

    Args:
        start_path: Directory (or single file) to enumerate
        is_excluded: Optional predicate; matching entries are pruned

    Yields:
        WalkEntry for each regular file

    Raises:
        FilesystemError: If a directory cannot be listed or an entry stat'ed
    """
    start = Path(start_path)
    if is_excluded is not None and is_excluded(start):
        return

    # The start path may be a symlink to a directory; entries below it may not
    try:
        st = start.stat()
    except OSError as e:
        raise FilesystemError(f"Cannot read {start}: {e}", path=str(start)) from e

    if stat.S_ISDIR(st.st_mode):
        yield from _walk_dir(start, is_excluded)
    elif stat.S_ISREG(st.st_mode):
        yield WalkEntry(start, st.st_size)
    else:
        _warn_non_regular(start)


def _walk_dir(directory: Path, is_excluded: ExclusionPredicate | None) -> Iterator[WalkEntry]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise FilesystemError(f"Cannot list directory {directory}: {e}", path=str(directory)) from e

    for entry in entries:
        path = Path(entry.path)
        if is_excluded is not None and is_excluded(path):
            logger.debug("Pruned excluded path", extra={"path": entry.path})
            continue

        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as e:
            raise FilesystemError(f"Cannot stat {entry.path}: {e}", path=entry.path) from e

        if stat.S_ISDIR(st.st_mode):
            yield from _walk_dir(path, is_excluded)
        elif stat.S_ISREG(st.st_mode):
            yield WalkEntry(path, st.st_size)
        else:
            _warn_non_regular(path)


def _warn_non_regular(path: Path) -> None:
    logger.warning("Not archiving non-regular file", extra={"path": str(path)})

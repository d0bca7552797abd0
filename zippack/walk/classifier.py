"""
Path classification for archive groups.

Decides which traversal entries are claimed by a named archive group so the
residual run can skip them.

Invariants:
    - The exclusion set is built from every configured group, skipped or not
    - Prefix checks compare whole path components, never raw strings
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..packer import ArchiveGroup


def exclusion_roots(
    traversal_root: str | os.PathLike[str],
    groups: Iterable[ArchiveGroup],
) -> frozenset[Path]:
    """Join the traversal root with each group's sub-path.

    Args:
        traversal_root: Root of the full traversal
        groups: Configured archive groups

    Returns:
        Absolute (or root-relative, if the root is relative) sub-roots
    """
    root = Path(traversal_root)
    return frozenset(root / group.path for group in groups)


def is_excluded(path: str | os.PathLike[str], roots: Iterable[Path]) -> bool:
    """Check whether path is one of roots or lies beneath one of them."""
    candidate = Path(path)
    return any(candidate.is_relative_to(root) for root in roots)

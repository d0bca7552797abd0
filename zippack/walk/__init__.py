"""
Filesystem traversal for zippack.

This module provides:
- walk: Lazy depth-first enumeration of regular files with pruning
- exclusion_roots / is_excluded: Which paths belong to named archive groups
"""

from .classifier import exclusion_roots, is_excluded
from .enumerator import WalkEntry, walk

__all__ = ["WalkEntry", "exclusion_roots", "is_excluded", "walk"]

"""
zippack - Packs a directory tree into named, size-bounded ZIP archive sets.

Files under configured sub-paths go into their own archive sets; everything
else under the traversal root goes into one final "root" archive set. Every
set is written as a sequence of volumes that roll over once a size threshold
is exceeded.

Architecture:
    ┌─────────────┐     ┌─────────────┐     ┌─────────────────┐
    │   config    │────▶│   Packer    │────▶│  walk (per set) │
    │ (TOML/YAML) │     │             │     │  + exclusions   │
    └─────────────┘     └──────┬──────┘     └────────┬────────┘
                               │                     │
                               ▼                     ▼
                        ┌─────────────┐     ┌─────────────────┐
                        │ RunReport   │◀────│  VolumeWriter   │
                        │ (stdout/log)│     │ <name>_N.zip    │
                        └─────────────┘     └─────────────────┘

Invariants:
    - One archive set and one volume are open at any time
    - Rollover happens after a file is written, never before
    - No file is split across volumes or stored in two archive sets
    - Any failure aborts the run, nothing is skipped silently

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]

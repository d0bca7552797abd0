"""
Archive module for zippack.

This module writes archive sets as sequences of size-bounded ZIP volumes:
- Compression: Closed set of supported codecs
- VolumeWriter: One open volume at a time, rollover past the threshold

Invariants:
    - Volumes are never reopened once sealed
    - Files are never split across volumes
"""

from .compression import Compression
from .volume_writer import VolumeWriter, WriterState, WriterStats, volume_path_for

__all__ = ["Compression", "VolumeWriter", "WriterState", "WriterStats", "volume_path_for"]

"""
Run summaries for zippack.

Formats per-archive-set statistics for humans (stdout) and for log
aggregation (structured log record).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .archive import WriterStats

logger = logging.getLogger(__name__)

BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB", "PB", "EB")
MEGABYTE = 1024 * 1024


def human_readable_bytes(num_bytes: int) -> str:
    """Format a byte count with the largest unit keeping the mantissa >= 1.

    Bytes are shown as a whole number, larger units with two decimals.
    Values past the EB range stay in EB.

    >>> human_readable_bytes(512)
    '512 Bytes'
    >>> human_readable_bytes(1536)
    '1.50 KB'
    """
    if num_bytes < 1024:
        return f"{num_bytes} {BYTE_UNITS[0]}"

    unit_index = 0
    value = float(num_bytes)
    while value >= 1024 and unit_index < len(BYTE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    # 1048575 bytes would otherwise print as "1024.00 KB"
    if round(value, 2) >= 1024 and unit_index < len(BYTE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    return f"{value:.2f} {BYTE_UNITS[unit_index]}"


@dataclass(frozen=True)
class RunReport:
    """Statistics of one finished archive-set run.

    Attributes:
        stats: Writer totals
        elapsed_seconds: Wall time from open to close
    """

    stats: WriterStats
    elapsed_seconds: float

    @property
    def compression_ratio(self) -> float:
        """Space saved, in percent. NaN for an empty set."""
        if self.stats.total_uncompressed_bytes == 0:
            return math.nan
        return (1.0 - self.stats.total_compressed_bytes / self.stats.total_uncompressed_bytes) * 100.0

    @property
    def throughput_mb_s(self) -> float:
        """Uncompressed MB per second. NaN when nothing was read or no time passed."""
        if self.stats.total_uncompressed_bytes == 0 or self.elapsed_seconds <= 0:
            return math.nan
        return (self.stats.total_uncompressed_bytes / MEGABYTE) / self.elapsed_seconds

    def summary_line(self) -> str:
        return (
            f"Size: {human_readable_bytes(self.stats.total_compressed_bytes)} "
            f"({human_readable_bytes(self.stats.total_uncompressed_bytes)} - "
            f"{self.compression_ratio:.1f}%) - Files - {self.stats.total_file_count} - "
            f"Time Taken: {self.elapsed_seconds:.2f}s - "
            f"Compression Rate: {self.throughput_mb_s:.2f} MB/s"
        )

    def log(self) -> None:
        logger.info(
            "Archive set finished",
            extra={
                "archive": self.stats.name,
                "volumes": self.stats.volume_count,
                "files": self.stats.total_file_count,
                "uncompressed_bytes": self.stats.total_uncompressed_bytes,
                "compressed_bytes": self.stats.total_compressed_bytes,
                "compression_ratio": self.compression_ratio,
                "throughput_mb_s": self.throughput_mb_s,
                "elapsed_seconds": self.elapsed_seconds,
            },
        )

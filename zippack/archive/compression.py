"""
Compression selection for archive volumes.

Maps a configured codec name to a closed set of supported ZIP compression
methods. The mapping is total: unrecognized names fall back to STORE.

Invariants:
    - A codec is resolved once per archive set, never per file
    - Name matching is case-insensitive
    - Unknown names never raise, they resolve to STORE

How to change safely:
    - Add new members together with their zipfile method constant
    - Never change the name of an existing member, configs depend on it
"""

from __future__ import annotations

import logging
import zipfile
from enum import Enum

from ..errors import CodecError

logger = logging.getLogger(__name__)


class Compression(Enum):
    """Supported ZIP compression methods."""

    STORE = "store"
    DEFLATE = "deflate"
    BZIP2 = "bzip2"
    LZMA = "lzma"
    ZSTD = "zstd"

    @classmethod
    def from_name(cls, name: str) -> Compression:
        """Resolve a configured codec name.

        Args:
            name: Codec name from configuration (any case)

        Returns:
            Matching member, or STORE if the name is not recognized
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            logger.warning(
                f"Unknown compression '{name}', falling back to store",
                extra={"compression": name},
            )
            return cls.STORE

    @property
    def zip_method(self) -> int:
        """zipfile compression constant for this codec.

        Raises:
            CodecError: If the running interpreter's zipfile lacks the method
        """
        if self is Compression.ZSTD:
            # zipfile gained Zstandard support in Python 3.14
            method = getattr(zipfile, "ZIP_ZSTANDARD", None)
            if method is None:
                raise CodecError(
                    "zstd compression requires Python 3.14 or newer",
                    compression=self.value,
                )
            return method
        return _ZIP_METHODS[self]

    @property
    def is_supported(self) -> bool:
        """Whether this codec can be used on the running interpreter."""
        try:
            self.zip_method
        except CodecError:
            return False
        return True


_ZIP_METHODS = {
    Compression.STORE: zipfile.ZIP_STORED,
    Compression.DEFLATE: zipfile.ZIP_DEFLATED,
    Compression.BZIP2: zipfile.ZIP_BZIP2,
    Compression.LZMA: zipfile.ZIP_LZMA,
}

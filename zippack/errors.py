"""
Error types for zippack.

This module defines every exception raised by the packer:
- PackerError: Base exception
- ConfigError: Missing or malformed configuration
- FilesystemError: Directory, file or output path failures
- CodecError: Compression backend failures
- WriterStateError: Use of a sealed or failed VolumeWriter

Invariants:
    - All errors inherit from PackerError
    - There is no recoverable tier: every error aborts the run
    - Errors carry enough context (path, codec, state) to act on

How to change safely:
    - Add new error types as PackerError subclasses
    - Keep error codes stable, scripts match on them
"""

from __future__ import annotations

from typing import Any


class PackerError(Exception):
    """Base exception for all zippack errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "PACKER_ERROR"
        self.details = details or {}


class ConfigError(PackerError):
    """Configuration could not be loaded.

    Raised when:
    - The configuration file is missing or unreadable
    - The document does not parse
    - A required field is missing or has the wrong type
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message, code="CONFIG_ERROR", details={"source": source})
        self.source = source


class FilesystemError(PackerError):
    """A filesystem operation failed.

    Raised when:
    - A directory cannot be listed
    - A file cannot be opened, read or stat'ed
    - A volume file cannot be created or written (disk full, permissions)
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, code="FILESYSTEM_ERROR", details={"path": path})
        self.path = path


class CodecError(PackerError):
    """The compression backend failed or is unavailable."""

    def __init__(self, message: str, compression: str | None = None) -> None:
        super().__init__(message, code="CODEC_ERROR", details={"compression": compression})
        self.compression = compression


class WriterStateError(PackerError):
    """A VolumeWriter was used after it was sealed or failed."""

    def __init__(self, message: str, state: str | None = None) -> None:
        super().__init__(message, code="WRITER_STATE_ERROR", details={"state": state})
        self.state = state

"""Loader exceptions."""

from __future__ import annotations


class LoadError(RuntimeError):
    """Base class for failures raised while loading DICOM objects."""


class MissingIdentifierError(LoadError):
    """Raised when an object lacks an identifier it cannot exist without."""

    def __init__(self, keyword: str, source: str | None = None) -> None:
        self.keyword = keyword
        self.source = source
        message = f"Missing {keyword}"
        if source:
            message = f"{message} in {source}"
        super().__init__(message)


class FileTooLargeError(LoadError):
    """Raised when a single file exceeds the configured size limit."""

    def __init__(self, path: str, size: int, limit: int) -> None:
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(f"{path} is {size} bytes, limit is {limit} bytes")


class ArchiveTooLargeError(LoadError):
    """Raised when a ZIP archive exceeds the configured size limit."""

    def __init__(self, path: str, size: int, limit: int) -> None:
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(f"Archive {path} is {size} bytes, limit is {limit} bytes")


class EmptyStudyError(LoadError):
    """Raised when a load produced no usable series."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "No DICOM images found in the selected files")

"""Size limits applied before a file or archive is read."""

from __future__ import annotations

from pathlib import Path

from dicom_objects.errors import ArchiveTooLargeError, FileTooLargeError


def ensure_file_within_limit(path: Path, max_bytes: int) -> int:
    """Return the file size, raising when it exceeds ``max_bytes``."""

    size = path.stat().st_size
    if size > max_bytes:
        raise FileTooLargeError(str(path), size, max_bytes)
    return size


def ensure_archive_within_limit(path: Path, max_bytes: int) -> int:
    size = path.stat().st_size
    if size > max_bytes:
        raise ArchiveTooLargeError(str(path), size, max_bytes)
    return size


def bytes_to_human(num_bytes: int) -> str:
    for suffix, threshold in (
        ("GiB", 1024 ** 3),
        ("MiB", 1024 ** 2),
        ("KiB", 1024),
    ):
        if num_bytes >= threshold:
            return f"{num_bytes / threshold:.2f} {suffix}"
    return f"{num_bytes} B"

"""Filesystem discovery utilities."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, Optional

from .config import LoadConfig
from .progress import LoadPhase, ProgressReporter


logger = logging.getLogger(__name__)


def matches_extension(name: str, config: LoadConfig) -> bool:
    if name.startswith("."):
        return False
    suffix = Path(name).suffix.lower()
    if not suffix:
        return config.include_extensionless
    return suffix in config.extensions


def _iter_dicom_files(root: Path, config: LoadConfig) -> Iterator[Path]:
    """Yield DICOM-ish files under *root* in sorted, depth-first order."""

    stack = [root]
    while stack:
        directory = stack.pop()
        files: list[Path] = []
        dirs: list[Path] = []
        try:
            with os.scandir(directory) as it:
                for entry in it:
                    try:
                        if entry.is_file():
                            if matches_extension(entry.name, config):
                                files.append(Path(entry.path))
                        elif entry.is_dir():
                            dirs.append(Path(entry.path))
                    except FileNotFoundError:
                        # Race: file/dir vanished after scandir listed it.
                        continue
        except OSError as exc:
            logger.warning("Skipping unreadable directory %s: %s", directory, exc)
            continue
        yield from sorted(files)
        stack.extend(sorted(dirs, reverse=True))


def discover_files(
    root: Path,
    config: Optional[LoadConfig] = None,
    reporter: Optional[ProgressReporter] = None,
) -> list[Path]:
    """Collect candidate files under *root*, capped at ``config.max_files``."""

    config = config or LoadConfig()
    root = root.resolve()
    if root.is_file():
        return [root]

    reporter = reporter or ProgressReporter()
    reporter.emit(LoadPhase.SCANNING, 0, 0, message=f"Scanning {root}")
    files: list[Path] = []
    for path in _iter_dicom_files(root, config):
        files.append(path)
        if len(files) >= config.max_files:
            logger.warning("File limit %d reached while scanning %s", config.max_files, root)
            break
    reporter.emit(LoadPhase.SCANNING, len(files), len(files), message=f"Found {len(files)} file(s)")
    logger.info("Discovered %d candidate file(s) under %s", len(files), root)
    return files

"""ZIP archive extraction ahead of discovery."""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path
from typing import Optional

from .config import LoadConfig
from .limits import bytes_to_human, ensure_archive_within_limit
from .progress import LoadPhase, ProgressReporter
from .scanner import matches_extension


logger = logging.getLogger(__name__)


def is_zip_archive(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() == ".zip" and zipfile.is_zipfile(path)


def _select_members(zf: zipfile.ZipFile, config: LoadConfig) -> list[zipfile.ZipInfo]:
    """Regular members discovery would accept, capped at ``max_files``."""

    selected: list[zipfile.ZipInfo] = []
    for info in zf.infolist():
        if info.is_dir():
            continue
        if not matches_extension(Path(info.filename).name, config):
            logger.debug("Skipping non-DICOM archive member: %s", info.filename)
            continue
        if info.file_size > config.max_file_size:
            logger.warning(
                "Skipping archive member %s: %s exceeds limit of %s",
                info.filename,
                bytes_to_human(info.file_size),
                bytes_to_human(config.max_file_size),
            )
            continue
        if len(selected) >= config.max_files:
            logger.warning("File limit %d reached while extracting; remaining members ignored", config.max_files)
            break
        selected.append(info)
    return selected


def _member_target(dest: Path, name: str) -> Optional[Path]:
    target = (dest / name).resolve()
    if target != dest and dest not in target.parents:
        return None
    return target


def extract_archive(
    archive: Path,
    dest: Path,
    config: Optional[LoadConfig] = None,
    reporter: Optional[ProgressReporter] = None,
) -> Path:
    """Extract regular files of *archive* into *dest* and return *dest*.

    Members are filtered by extension and by ``max_file_size`` before
    anything is written, and extraction stops after ``max_files`` members.
    Members whose path would land outside *dest* are skipped.
    """

    config = config or LoadConfig()
    reporter = reporter or ProgressReporter()
    size = ensure_archive_within_limit(archive, config.max_archive_size)
    dest = dest.resolve()
    dest.mkdir(parents=True, exist_ok=True)
    logger.info("Extracting %s (%s) into %s", archive, bytes_to_human(size), dest)

    with zipfile.ZipFile(archive) as zf:
        members = _select_members(zf, config)
        total = len(members)
        reporter.emit(LoadPhase.EXTRACTING, 0, total, message=f"Extracting {archive.name}")
        for index, info in enumerate(members, start=1):
            target = _member_target(dest, info.filename)
            if target is None:
                logger.warning("Skipping archive member outside destination: %s", info.filename)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as out:
                    shutil.copyfileobj(src, out)
            reporter.emit(LoadPhase.EXTRACTING, index, total, current_file=Path(info.filename).name)
    return dest

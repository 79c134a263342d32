"""Worker logic for decoding individual DICOM files."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Sequence, Union

import pydicom
from pydicom.dataset import Dataset

from dicom_objects.accessor import DatasetAccessor
from dicom_objects.annotations import decode_presentation_state
from dicom_objects.content_tree import decode_report
from dicom_objects.errors import FileTooLargeError, MissingIdentifierError
from dicom_objects.fields import STUDY_HEADER_KEYWORDS, decode_image, decode_series, decode_study_header
from dicom_objects.key_objects import decode_key_object_selection
from dicom_objects.models import (
    Image,
    KeyObjectSelection,
    ObjectKind,
    PresentationState,
    Report,
    Series,
    StudyHeader,
)
from dicom_objects.sop_classes import classify

from .config import LoadConfig
from .limits import ensure_file_within_limit


logger = logging.getLogger(__name__)


Payload = Union[Image, Report, KeyObjectSelection, PresentationState]


class SkipReason(str, Enum):
    TOO_LARGE = "too_large"
    MISSING_IDENTIFIER = "missing_identifier"
    DECODE_ERROR = "decode_error"
    UNCLASSIFIED = "unclassified"
    DISCARDED = "discarded"
    DUPLICATE = "duplicate"


@dataclass
class DecodedObject:
    kind: ObjectKind
    payload: Optional[Payload]
    series: Optional[Series] = None


@dataclass
class FileOutcome:
    """Result of decoding one file; exactly one of payload / skip_reason is set."""

    index: int
    path: Path
    kind: ObjectKind = ObjectKind.UNKNOWN
    payload: Optional[Payload] = None
    series: Optional[Series] = None
    skip_reason: Optional[SkipReason] = None
    detail: Optional[str] = None
    parse_time: float = 0.0


def decode_dataset(
    dataset: Dataset,
    file_path: str,
    max_content_depth: int,
    max_overlay_pixels: Optional[int] = None,
) -> DecodedObject:
    """Classify a dataset and run the matching decoder.

    ``payload`` is None for unknown objects and for key objects or presentation
    states that reference nothing.
    """

    accessor = DatasetAccessor(dataset)
    kind = classify(accessor)
    if kind is ObjectKind.STRUCTURED_REPORT:
        return DecodedObject(kind, decode_report(accessor, file_path, max_content_depth))
    if kind is ObjectKind.KEY_OBJECT_SELECTION:
        return DecodedObject(kind, decode_key_object_selection(accessor, file_path, max_content_depth))
    if kind is ObjectKind.PRESENTATION_STATE:
        return DecodedObject(kind, decode_presentation_state(accessor, file_path))
    if kind is ObjectKind.IMAGE:
        image = decode_image(accessor, file_path, max_overlay_pixels)
        return DecodedObject(kind, image, decode_series(accessor, file_path))
    return DecodedObject(kind, None)


def decode_file(index: int, path: Path, config: LoadConfig) -> FileOutcome:
    """Decode one file; every failure is converted into a skip."""

    outcome = FileOutcome(index=index, path=path)
    start = time.perf_counter()
    try:
        ensure_file_within_limit(path, config.max_file_size)
        dataset = pydicom.dcmread(path, force=True)
        decoded = decode_dataset(dataset, str(path), config.max_content_depth, config.max_overlay_pixels)
    except FileTooLargeError as exc:
        logger.warning("File too large, skipping: %s", exc)
        outcome.skip_reason = SkipReason.TOO_LARGE
        outcome.detail = str(exc)
        return outcome
    except MissingIdentifierError as exc:
        logger.warning("Missing identifier, skipping %s: %s", path, exc)
        outcome.skip_reason = SkipReason.MISSING_IDENTIFIER
        outcome.detail = str(exc)
        return outcome
    except Exception as exc:
        logger.warning("Failed to parse DICOM file %s: %s", path, exc)
        outcome.skip_reason = SkipReason.DECODE_ERROR
        outcome.detail = f"{type(exc).__name__}: {exc}"
        return outcome
    finally:
        outcome.parse_time = time.perf_counter() - start

    outcome.kind = decoded.kind
    if decoded.kind is ObjectKind.UNKNOWN:
        logger.debug("Skipping unclassified file %s", path)
        outcome.skip_reason = SkipReason.UNCLASSIFIED
    elif decoded.payload is None:
        outcome.skip_reason = SkipReason.DISCARDED
        outcome.detail = f"{decoded.kind.value} references no images"
    else:
        outcome.payload = decoded.payload
        outcome.series = decoded.series
    return outcome


def decode_files(paths: Sequence[Path], config: LoadConfig) -> Iterator[FileOutcome]:
    """Decode *paths* and yield outcomes in file-list order.

    With more than one worker, files decode concurrently but results are still
    yielded by index.
    """

    if config.max_workers <= 1 or len(paths) <= 1:
        for index, path in enumerate(paths):
            yield decode_file(index, path, config)
        return

    executor = ThreadPoolExecutor(max_workers=config.max_workers, thread_name_prefix="dicom-decode")
    try:
        futures = [executor.submit(decode_file, index, path, config) for index, path in enumerate(paths)]
        for future in futures:
            yield future.result()
    finally:
        executor.shutdown(wait=True, cancel_futures=True)


def read_study_header(path: Path, config: LoadConfig) -> Optional[StudyHeader]:
    """Read only the study-level tags of *path*; None when unusable."""

    try:
        ensure_file_within_limit(path, config.max_file_size)
        dataset = pydicom.dcmread(
            path,
            force=True,
            stop_before_pixels=True,
            specific_tags=list(STUDY_HEADER_KEYWORDS),
        )
    except Exception as exc:
        logger.debug("No study header in %s: %s", path, exc)
        return None
    return decode_study_header(DatasetAccessor(dataset))

"""Direct field extraction for images and study/series headers."""

from __future__ import annotations

from typing import Any, Optional

from .accessor import DatasetAccessor
from .errors import MissingIdentifierError
from .models import Image, SeriesId, Series, SopId, StudyHeader, StudyId
from .overlays import decode_overlays


UNKNOWN_DATE = "Unknown Date"


def format_dicom_date(value: Any) -> str:
    """Convert DICOM date (YYYYMMDD) to ISO format (YYYY-MM-DD)."""
    if value is None:
        return UNKNOWN_DATE
    raw = str(value).strip()
    if len(raw) != 8 or not raw.isdigit():
        return UNKNOWN_DATE
    return f"{raw[:4]}-{raw[4:6]}-{raw[6:8]}"


def format_person_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return " ".join(part for part in value.replace("^", " ").split()) or None


# Everything header probing needs, for dcmread(specific_tags=...)
STUDY_HEADER_KEYWORDS: tuple[str, ...] = (
    "StudyInstanceUID",
    "PatientName",
    "PatientID",
    "StudyDate",
    "StudyDescription",
    "Modality",
    "InstitutionName",
    "ReferringPhysicianName",
)


def decode_study_header(accessor: DatasetAccessor) -> Optional[StudyHeader]:
    """Study-level fields, or None when the dataset has no study id."""

    study_uid = accessor.string("StudyInstanceUID")
    if not study_uid:
        return None
    return StudyHeader(
        study_id=StudyId(study_uid),
        patient_name=format_person_name(accessor.string("PatientName")) or "Unknown",
        patient_id=accessor.string("PatientID") or "",
        study_date=format_dicom_date(accessor.string("StudyDate")),
        description=accessor.string("StudyDescription") or "",
        modality=accessor.string("Modality") or "",
        institution_name=accessor.string("InstitutionName"),
        referring_physician=format_person_name(accessor.string("ReferringPhysicianName")),
    )


def decode_series(accessor: DatasetAccessor, source: str | None = None) -> Series:
    """Series descriptive fields, read from the first image of the series."""

    series_uid = accessor.string("SeriesInstanceUID")
    if not series_uid:
        raise MissingIdentifierError("SeriesInstanceUID", source)
    study_uid = accessor.string("StudyInstanceUID")
    return Series(
        series_id=SeriesId(series_uid),
        study_id=StudyId(study_uid) if study_uid else None,
        series_number=accessor.int_string("SeriesNumber") or 0,
        description=accessor.string("SeriesDescription") or "",
        modality=accessor.string("Modality") or "",
        body_part=accessor.string("BodyPartExamined"),
    )


def decode_image(accessor: DatasetAccessor, file_path: str, max_overlay_pixels: Optional[int] = None) -> Image:
    sop_uid = accessor.string("SOPInstanceUID")
    if not sop_uid:
        raise MissingIdentifierError("SOPInstanceUID", file_path)
    series_uid = accessor.string("SeriesInstanceUID")
    if not series_uid:
        raise MissingIdentifierError("SeriesInstanceUID", file_path)

    overlays = decode_overlays(accessor, max_overlay_pixels)
    return Image(
        sop_id=SopId(sop_uid),
        series_id=SeriesId(series_uid),
        instance_number=accessor.int_string("InstanceNumber") or 0,
        file_path=file_path,
        rows=accessor.uint16("Rows") or 0,
        columns=accessor.uint16("Columns") or 0,
        window_center=accessor.float_string("WindowCenter"),
        window_width=accessor.float_string("WindowWidth"),
        slice_location=accessor.float_string("SliceLocation"),
        slice_thickness=accessor.float_string("SliceThickness"),
        overlays=overlays or None,
    )

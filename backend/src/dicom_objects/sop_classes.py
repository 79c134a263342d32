"""SOP class membership sets and object classification."""

from __future__ import annotations

from typing import Optional

from .accessor import DatasetAccessor
from .models import ObjectKind


STRUCTURED_REPORT_SOP_CLASS_UIDS = frozenset(
    {
        "1.2.840.10008.5.1.4.1.1.88.11",  # Basic Text SR
        "1.2.840.10008.5.1.4.1.1.88.22",  # Enhanced SR
        "1.2.840.10008.5.1.4.1.1.88.33",  # Comprehensive SR
        "1.2.840.10008.5.1.4.1.1.88.34",  # Comprehensive 3D SR
        "1.2.840.10008.5.1.4.1.1.88.35",  # Extensible SR
        "1.2.840.10008.5.1.4.1.1.88.40",  # Procedure Log
        "1.2.840.10008.5.1.4.1.1.88.50",  # Mammography CAD SR
        "1.2.840.10008.5.1.4.1.1.88.65",  # Chest CAD SR
        "1.2.840.10008.5.1.4.1.1.88.67",  # X-Ray Radiation Dose SR
        "1.2.840.10008.5.1.4.1.1.88.68",  # Radiopharmaceutical Radiation Dose SR
        "1.2.840.10008.5.1.4.1.1.88.69",  # Colon CAD SR
        "1.2.840.10008.5.1.4.1.1.88.70",  # Implantation Plan SR
        "1.2.840.10008.5.1.4.1.1.88.71",  # Acquisition Context SR
        "1.2.840.10008.5.1.4.1.1.88.72",  # Simplified Adult Echo SR
        "1.2.840.10008.5.1.4.1.1.88.73",  # Patient Radiation Dose SR
        "1.2.840.10008.5.1.4.1.1.88.74",  # Planned Imaging Agent Administration SR
        "1.2.840.10008.5.1.4.1.1.88.75",  # Performed Imaging Agent Administration SR
        "1.2.840.10008.5.1.4.1.1.88.76",  # Enhanced X-Ray Radiation Dose SR
    }
)

KEY_OBJECT_SELECTION_SOP_CLASS_UIDS = frozenset(
    {
        "1.2.840.10008.5.1.4.1.1.88.59",  # Key Object Selection Document
    }
)

PRESENTATION_STATE_SOP_CLASS_UIDS = frozenset(
    {
        "1.2.840.10008.5.1.4.1.1.11.1",   # Grayscale Softcopy Presentation State
        "1.2.840.10008.5.1.4.1.1.11.2",   # Color Softcopy Presentation State
        "1.2.840.10008.5.1.4.1.1.11.3",   # Pseudo-Color Softcopy Presentation State
        "1.2.840.10008.5.1.4.1.1.11.4",   # Blending Softcopy Presentation State
        "1.2.840.10008.5.1.4.1.1.11.5",   # XA/XRF Grayscale Softcopy Presentation State
        "1.2.840.10008.5.1.4.1.1.11.6",   # Grayscale Planar MPR Volumetric Presentation State
        "1.2.840.10008.5.1.4.1.1.11.7",   # Compositing Planar MPR Volumetric Presentation State
        "1.2.840.10008.5.1.4.1.1.11.8",   # Advanced Blending Presentation State
        "1.2.840.10008.5.1.4.1.1.11.9",   # Volume Rendering Volumetric Presentation State
        "1.2.840.10008.5.1.4.1.1.11.10",  # Segmented Volume Rendering Volumetric Presentation State
        "1.2.840.10008.5.1.4.1.1.11.11",  # Multiple Volume Rendering Volumetric Presentation State
        "1.2.840.10008.5.1.4.1.1.11.12",  # Variable Modality LUT Softcopy Presentation State
    }
)


def sop_class_uid(accessor: DatasetAccessor) -> Optional[str]:
    value = accessor.string("SOPClassUID")
    if value is None:
        file_meta = getattr(accessor.dataset, "file_meta", None)
        if file_meta is not None:
            value = DatasetAccessor(file_meta).string("MediaStorageSOPClassUID")
    return value


def classify_sop_class(uid: Optional[str], has_pixel_data: bool) -> ObjectKind:
    if uid in STRUCTURED_REPORT_SOP_CLASS_UIDS:
        return ObjectKind.STRUCTURED_REPORT
    if uid in KEY_OBJECT_SELECTION_SOP_CLASS_UIDS:
        return ObjectKind.KEY_OBJECT_SELECTION
    if uid in PRESENTATION_STATE_SOP_CLASS_UIDS:
        return ObjectKind.PRESENTATION_STATE
    if has_pixel_data:
        return ObjectKind.IMAGE
    return ObjectKind.UNKNOWN


def classify(accessor: DatasetAccessor) -> ObjectKind:
    """Classify a dataset by SOP class; anything else with pixel data is an image."""

    return classify_sop_class(sop_class_uid(accessor), accessor.has("PixelData"))

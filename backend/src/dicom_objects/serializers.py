"""JSON-ready dictionaries for assembled studies."""
from __future__ import annotations

import base64
from typing import Any, Optional

from .models import (
    Finding,
    GraphicAnnotation,
    Image,
    KeyObjectSelection,
    Overlay,
    PresentationState,
    Report,
    Series,
    Study,
)


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def overlay_to_dict(overlay: Overlay, include_data: bool = False) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "group": overlay.group,
        "rows": overlay.rows,
        "columns": overlay.columns,
        "type": overlay.kind.value,
        "origin": list(overlay.origin),
        "bitsAllocated": overlay.bits_allocated,
        "description": overlay.description,
        "label": overlay.label,
    }
    if include_data:
        payload["data"] = base64.b64encode(overlay.data).decode("ascii")
    else:
        payload["setPixels"] = overlay.set_pixel_count
    return _drop_none(payload)


def image_to_dict(image: Image, include_overlay_data: bool = False) -> dict[str, Any]:
    overlays: Optional[list[dict[str, Any]]] = None
    if image.overlays:
        overlays = [overlay_to_dict(overlay, include_overlay_data) for overlay in image.overlays]
    return _drop_none(
        {
            "sopInstanceUID": image.sop_id,
            "seriesInstanceUID": image.series_id,
            "instanceNumber": image.instance_number,
            "filePath": image.file_path,
            "rows": image.rows,
            "columns": image.columns,
            "windowCenter": image.window_center,
            "windowWidth": image.window_width,
            "sliceLocation": image.slice_location,
            "sliceThickness": image.slice_thickness,
            "overlays": overlays,
        }
    )


def series_to_dict(series: Series, include_overlay_data: bool = False) -> dict[str, Any]:
    return _drop_none(
        {
            "seriesInstanceUID": series.series_id,
            "studyInstanceUID": series.study_id,
            "seriesNumber": series.series_number,
            "seriesDescription": series.description,
            "bodyPart": series.body_part,
            "modality": series.modality,
            "images": [image_to_dict(image, include_overlay_data) for image in series.images],
        }
    )


def finding_to_dict(finding: Finding) -> dict[str, Any]:
    children = None
    if finding.children is not None:
        children = [finding_to_dict(child) for child in finding.children]
    return _drop_none(
        {
            "conceptName": finding.concept_name,
            "value": finding.value,
            "valueType": finding.value_type,
            "unit": finding.unit,
            "children": children,
            "referencedImageUID": finding.referenced_sop_id,
        }
    )


def report_to_dict(report: Report) -> dict[str, Any]:
    return _drop_none(
        {
            "sopInstanceUID": report.sop_id,
            "seriesInstanceUID": report.series_id,
            "title": report.title,
            "contentDate": report.content_date,
            "completionFlag": report.completion_flag.value,
            "verificationFlag": report.verification_flag.value,
            "findings": [finding_to_dict(finding) for finding in report.findings],
            "evidenceUIDs": list(report.evidence_sop_ids) or None,
        }
    )


def key_object_to_dict(selection: KeyObjectSelection) -> dict[str, Any]:
    return _drop_none(
        {
            "sopInstanceUID": selection.sop_id,
            "title": selection.title,
            "description": selection.description,
            "keyImages": list(selection.key_images),
        }
    )


def annotation_to_dict(annotation: GraphicAnnotation) -> dict[str, Any]:
    return _drop_none(
        {
            "graphicType": annotation.graphic_type.value,
            "graphicData": list(annotation.graphic_data),
            "textValue": annotation.text_value,
            "layer": annotation.layer,
            "referencedImageUIDs": annotation.referenced_sop_ids,
        }
    )


def presentation_state_to_dict(state: PresentationState) -> dict[str, Any]:
    annotations = None
    if state.annotations:
        annotations = [annotation_to_dict(annotation) for annotation in state.annotations]
    return _drop_none(
        {
            "sopInstanceUID": state.sop_id,
            "referencedImageUIDs": list(state.referenced_sop_ids),
            "windowCenter": state.window_center,
            "windowWidth": state.window_width,
            "presentationLabel": state.label,
            "graphicAnnotations": annotations,
        }
    )


def study_to_dict(study: Study, include_overlay_data: bool = False) -> dict[str, Any]:
    """Serialize the whole study graph with camelCase keys."""
    return _drop_none(
        {
            "studyInstanceUID": study.study_id,
            "patientName": study.patient_name,
            "patientId": study.patient_id,
            "studyDate": study.study_date,
            "studyDescription": study.description,
            "modality": study.modality,
            "institutionName": study.institution_name,
            "referringPhysician": study.referring_physician,
            "series": [series_to_dict(series, include_overlay_data) for series in study.series],
            "reports": [report_to_dict(report) for report in study.reports],
            "keyObjectSelections": [key_object_to_dict(ko) for ko in study.key_object_selections],
            "presentationStates": [presentation_state_to_dict(pr) for pr in study.presentation_states],
        }
    )

"""Presentation state decoding: referenced images, VOI LUT and annotations."""

from __future__ import annotations

import logging
from typing import Optional

from .accessor import DatasetAccessor
from .errors import MissingIdentifierError
from .models import GraphicAnnotation, GraphicType, PresentationState, SopId
from .references import collect_instance_references, collect_series_references


logger = logging.getLogger(__name__)


GRAPHIC_TYPE_MAP: dict[str, GraphicType] = {
    "POINT": GraphicType.POINT,
    "POLYLINE": GraphicType.POLYLINE,
    "INTERPOLATED": GraphicType.POLYLINE,
    "CIRCLE": GraphicType.CIRCLE,
    "ELLIPSE": GraphicType.ELLIPSE,
}

DEFAULT_TEXT_POSITION = [0.0, 0.0]


def decode_voi_lut(accessor: DatasetAccessor) -> tuple[Optional[float], Optional[float]]:
    """Window center/width of the first softcopy VOI LUT item."""

    voi = accessor.first_item("SoftcopyVOILUTSequence")
    if voi is None:
        return None, None
    return voi.float_string("WindowCenter"), voi.float_string("WindowWidth")


def read_graphic_data(item: DatasetAccessor) -> list[float]:
    """Read ``NumberOfGraphicPoints * 2`` floats by index.

    The declared point count may disagree with the element length. Reading
    stops at the first index that does not decode and a trailing unpaired
    value is dropped, so the result is always whole x,y pairs.
    """

    if not item.has("GraphicData"):
        return []
    point_count = item.uint16("NumberOfGraphicPoints") or 0
    coords: list[float] = []
    for index in range(point_count * 2):
        value = item.float_at("GraphicData", index)
        if value is None:
            break
        coords.append(value)
    if len(coords) % 2:
        coords.pop()
    return coords


def decode_graphic_object(item: DatasetAccessor) -> Optional[GraphicAnnotation]:
    raw_type = item.string("GraphicType")
    if not raw_type:
        return None
    graphic_data = read_graphic_data(item)
    if not graphic_data:
        return None
    return GraphicAnnotation(
        graphic_type=GRAPHIC_TYPE_MAP.get(raw_type.upper(), GraphicType.POLYLINE),
        graphic_data=graphic_data,
    )


def _position(item: DatasetAccessor) -> list[float]:
    for keyword in ("AnchorPoint", "BoundingBoxTopLeftHandCorner"):
        parts = item.numbers(keyword)
        if len(parts) >= 2:
            return parts[:2]
    return list(DEFAULT_TEXT_POSITION)


def decode_text_object(item: DatasetAccessor) -> Optional[GraphicAnnotation]:
    text = item.string("UnformattedTextValue")
    if not text:
        return None
    return GraphicAnnotation(
        graphic_type=GraphicType.TEXT,
        graphic_data=_position(item),
        text_value=text,
    )


def decode_annotations(accessor: DatasetAccessor) -> list[GraphicAnnotation]:
    annotations: list[GraphicAnnotation] = []
    for group in accessor.items("GraphicAnnotationSequence"):
        layer = group.string("GraphicLayer")
        group_refs = collect_instance_references(group) or None

        decoded = [decode_graphic_object(obj) for obj in group.items("GraphicObjectSequence")]
        decoded += [decode_text_object(obj) for obj in group.items("TextObjectSequence")]
        for annotation in decoded:
            if annotation is None:
                continue
            annotation.layer = layer
            annotation.referenced_sop_ids = list(group_refs) if group_refs else None
            annotations.append(annotation)
    return annotations


def decode_presentation_state(accessor: DatasetAccessor, source: str | None = None) -> Optional[PresentationState]:
    """Decode a presentation state; None when it references no images."""

    sop_uid = accessor.string("SOPInstanceUID")
    if not sop_uid:
        raise MissingIdentifierError("SOPInstanceUID", source)

    referenced = collect_series_references(accessor)
    if not referenced:
        logger.warning("No referenced images in presentation state %s", source or sop_uid)
        return None

    window_center, window_width = decode_voi_lut(accessor)
    annotations = decode_annotations(accessor)
    return PresentationState(
        sop_id=SopId(sop_uid),
        referenced_sop_ids=referenced,
        window_center=window_center,
        window_width=window_width,
        label=accessor.string("ContentLabel"),
        annotations=annotations or None,
    )

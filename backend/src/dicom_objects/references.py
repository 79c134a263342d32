"""Cross-object SOP instance references.

Collectors preserve encounter order and keep duplicates; callers decide
whether to deduplicate. Referenced ids may point at files that are not part
of the load.
"""

from __future__ import annotations

from typing import Optional

from .accessor import DatasetAccessor
from .models import SopId, ValueType


CONTENT_SEQUENCE = "ContentSequence"


def referenced_sop_id(item: DatasetAccessor) -> Optional[SopId]:
    """SOP instance id of the first ``ReferencedSOPSequence`` item."""

    ref = item.first_item("ReferencedSOPSequence")
    if ref is None:
        return None
    uid = ref.string("ReferencedSOPInstanceUID")
    return SopId(uid) if uid else None


def collect_series_references(
    accessor: DatasetAccessor,
    series_sequence: str = "ReferencedSeriesSequence",
    instance_sequence: str = "ReferencedImageSequence",
) -> list[SopId]:
    """Walk a series -> instance reference hierarchy."""

    sop_ids: list[SopId] = []
    for series_item in accessor.items(series_sequence):
        for instance_item in series_item.items(instance_sequence):
            uid = instance_item.string("ReferencedSOPInstanceUID")
            if uid:
                sop_ids.append(SopId(uid))
    return sop_ids


def collect_instance_references(
    accessor: DatasetAccessor,
    instance_sequence: str = "ReferencedImageSequence",
) -> list[SopId]:
    """Single level variant used inside annotation groups."""

    sop_ids: list[SopId] = []
    for instance_item in accessor.items(instance_sequence):
        uid = instance_item.string("ReferencedSOPInstanceUID")
        if uid:
            sop_ids.append(SopId(uid))
    return sop_ids


def collect_evidence_references(accessor: DatasetAccessor) -> list[SopId]:
    """Instances listed as evidence of a structured report."""

    sop_ids: list[SopId] = []
    for evidence in accessor.items("CurrentRequestedProcedureEvidenceSequence"):
        sop_ids.extend(
            collect_series_references(
                evidence,
                series_sequence="ReferencedSeriesSequence",
                instance_sequence="ReferencedSOPSequence",
            )
        )
    return sop_ids


def collect_image_items(accessor: DatasetAccessor, max_depth: int) -> list[SopId]:
    """Every IMAGE content item reference at any depth, in document order.

    Nesting deeper than ``max_depth`` levels below the root is not visited.
    """

    sop_ids: list[SopId] = []
    stack: list[tuple[DatasetAccessor, int]] = [
        (item, 1) for item in reversed(accessor.items(CONTENT_SEQUENCE))
    ]
    while stack:
        item, depth = stack.pop()
        if item.string("ValueType") == ValueType.IMAGE.value:
            uid = referenced_sop_id(item)
            if uid:
                sop_ids.append(uid)
        if depth < max_depth:
            stack.extend((child, depth + 1) for child in reversed(item.items(CONTENT_SEQUENCE)))
    return sop_ids

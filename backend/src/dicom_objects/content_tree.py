"""Structured report decoding.

The content sequence is turned into a tree of :class:`Finding` nodes in source
order. Items without a value type are skipped; value types this module does not
know are kept and display their concept name.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from .accessor import DatasetAccessor
from .errors import MissingIdentifierError
from .fields import format_dicom_date
from .models import (
    CompletionFlag,
    Finding,
    Report,
    SeriesId,
    SopId,
    ValueType,
    VerificationFlag,
)
from .references import CONTENT_SEQUENCE, collect_evidence_references, referenced_sop_id


logger = logging.getLogger(__name__)


MAX_CONTENT_DEPTH = 256
DEFAULT_CONCEPT_NAME = "Finding"


def concept_name(item: DatasetAccessor) -> str:
    """Code meaning of the first concept name code, empty when absent."""

    code = item.first_item("ConceptNameCodeSequence")
    if code is None:
        return ""
    return code.string("CodeMeaning") or ""


def _format_number(value: float) -> str:
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def _num_value(item: DatasetAccessor) -> tuple[str, Optional[str]]:
    measured = item.first_item("MeasuredValueSequence")
    if measured is None:
        return "", None
    number = measured.float_string("NumericValue")
    value = _format_number(number) if number is not None else ""
    unit = None
    units = measured.first_item("MeasurementUnitsCodeSequence")
    if units is not None:
        unit = units.string("CodeMeaning")
    return value, unit


def _code_value(item: DatasetAccessor) -> str:
    code = item.first_item("ConceptCodeSequence")
    if code is None:
        return ""
    return code.string("CodeMeaning") or ""


class ContentTreeDecoder:
    def __init__(self, max_depth: int = MAX_CONTENT_DEPTH) -> None:
        self.max_depth = max_depth
        self.truncated = False

    def decode(self, accessor: DatasetAccessor) -> list[Finding]:
        findings: list[Finding] = []
        for item in accessor.items(CONTENT_SEQUENCE):
            finding = self._decode_item(item, depth=1)
            if finding is not None:
                findings.append(finding)
        return findings

    def _decode_item(self, item: DatasetAccessor, depth: int) -> Optional[Finding]:
        value_type = item.string("ValueType")
        if not value_type:
            return None

        name = concept_name(item)
        value = ""
        unit: Optional[str] = None
        referenced: Optional[SopId] = None

        if value_type == ValueType.TEXT.value:
            value = item.string("TextValue") or ""
        elif value_type == ValueType.NUM.value:
            value, unit = _num_value(item)
        elif value_type == ValueType.CODE.value:
            value = _code_value(item)
        elif value_type == ValueType.IMAGE.value:
            if item.first_item("ReferencedSOPSequence") is not None:
                referenced = referenced_sop_id(item)
                value = name or "Image Reference"
        elif value_type == ValueType.CONTAINER.value:
            value = name or "Container"
        else:
            value = name or value_type

        children: Optional[list[Finding]] = None
        nested = item.items(CONTENT_SEQUENCE)
        if nested:
            if depth >= self.max_depth:
                if not self.truncated:
                    logger.warning("Content tree deeper than %d levels; truncating", self.max_depth)
                self.truncated = True
            else:
                decoded = [self._decode_item(child, depth + 1) for child in nested]
                children = [child for child in decoded if child is not None] or None

        return Finding(
            concept_name=name or DEFAULT_CONCEPT_NAME,
            value=value,
            value_type=value_type,
            unit=unit,
            children=children,
            referenced_sop_id=referenced,
        )


def decode_content_tree(accessor: DatasetAccessor, max_depth: int = MAX_CONTENT_DEPTH) -> list[Finding]:
    return ContentTreeDecoder(max_depth).decode(accessor)


def _enum_or_default(enum_cls, raw: Optional[str], default):
    try:
        return enum_cls(raw) if raw else default
    except ValueError:
        return default


def decode_report(
    accessor: DatasetAccessor,
    source: str | None = None,
    max_depth: int = MAX_CONTENT_DEPTH,
) -> Report:
    sop_uid = accessor.string("SOPInstanceUID")
    if not sop_uid:
        raise MissingIdentifierError("SOPInstanceUID", source)
    series_uid = accessor.string("SeriesInstanceUID")
    if not series_uid:
        raise MissingIdentifierError("SeriesInstanceUID", source)

    content_date = accessor.string("ContentDate")
    return Report(
        sop_id=SopId(sop_uid),
        series_id=SeriesId(series_uid),
        completion_flag=_enum_or_default(
            CompletionFlag, accessor.string("CompletionFlag"), CompletionFlag.COMPLETE
        ),
        verification_flag=_enum_or_default(
            VerificationFlag, accessor.string("VerificationFlag"), VerificationFlag.UNVERIFIED
        ),
        findings=decode_content_tree(accessor, max_depth),
        content_date=format_dicom_date(content_date) if content_date else None,
        title=concept_name(accessor) or None,
        evidence_sop_ids=collect_evidence_references(accessor),
    )

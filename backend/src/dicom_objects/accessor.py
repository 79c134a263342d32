"""Uniform, non-raising access to pydicom datasets.

Decoders only talk to :class:`DatasetAccessor`. Absent, empty and undecodable
values all come back as ``None`` so callers can apply their own defaults.
"""

from __future__ import annotations

import logging
import math
import struct
from typing import Any, Iterable, Optional, Union

from pydicom.dataelem import DataElement
from pydicom.dataset import Dataset
from pydicom.multival import MultiValue
from pydicom.sequence import Sequence as DicomSequence
from pydicom.tag import BaseTag, Tag


logger = logging.getLogger(__name__)


TagLike = Union[str, int, tuple, BaseTag]

_PADDING = " \x00"


def _resolve(tag: TagLike) -> BaseTag:
    if isinstance(tag, BaseTag):
        return tag
    if isinstance(tag, tuple):
        return Tag(*tag)
    return Tag(tag)


def _is_multi(value: Any) -> bool:
    return isinstance(value, (list, tuple, MultiValue, DicomSequence))


def _first(value: Any) -> Any:
    if _is_multi(value):
        return value[0] if len(value) else None
    return value


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        try:
            value = bytes(value).decode("ascii")
        except UnicodeDecodeError:
            return None
    if _is_multi(value):
        text = "\\".join(str(item) for item in value)
    else:
        text = str(value)
    text = text.strip(_PADDING)
    return text or None


def _to_int(value: Any) -> int | None:
    value = _first(value)
    if value is None:
        return None
    try:
        if isinstance(value, str):
            value = value.strip(_PADDING)
            if not value:
                return None
        return int(value)
    except Exception:
        return None


def _to_number(value: Any) -> float | None:
    value = _first(value)
    if value is None:
        return None
    try:
        if isinstance(value, str):
            value = value.strip(_PADDING)
            if not value:
                return None
        return float(value)
    except Exception:
        return None


def _to_float(value: Any) -> float | None:
    result = _to_number(value)
    if result is None or not math.isfinite(result):
        return None
    return result


def _unpack_float(raw: bytes, index: int) -> float | None:
    # Big endian transfer syntaxes are retired; binary floats are little endian.
    offset = index * 4
    if index < 0 or offset + 4 > len(raw):
        return None
    return struct.unpack_from("<f", raw, offset)[0]


class DatasetAccessor:
    """Query surface over one dataset or sequence item."""

    def __init__(self, dataset: Dataset) -> None:
        self._dataset = dataset

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    def element(self, tag: TagLike) -> Optional[DataElement]:
        resolved = _resolve(tag)
        try:
            return self._dataset.get(resolved)
        except Exception as exc:
            logger.debug("Undecodable element %s: %s", resolved, exc)
            return None

    def has(self, tag: TagLike) -> bool:
        try:
            return _resolve(tag) in self._dataset
        except Exception:
            return False

    def _value(self, tag: TagLike) -> Any:
        elem = self.element(tag)
        if elem is None:
            return None
        return elem.value

    def string(self, tag: TagLike) -> Optional[str]:
        return _to_str(self._value(tag))

    def int_string(self, tag: TagLike) -> Optional[int]:
        return _to_int(self._value(tag))

    def uint16(self, tag: TagLike) -> Optional[int]:
        value = self._value(tag)
        if isinstance(value, (bytes, bytearray)):
            if len(value) < 2:
                return None
            return struct.unpack_from("<H", value, 0)[0]
        result = _to_int(value)
        if result is None or not 0 <= result <= 0xFFFF:
            return None
        return result

    def float_string(self, tag: TagLike) -> Optional[float]:
        return _to_float(self._value(tag))

    def float_at(self, tag: TagLike, index: int) -> Optional[float]:
        """Read one value of a binary float array by float index.

        Non-finite values come back as decoded. None means the index is
        past the end of the element or the value does not parse.
        """

        if index < 0:
            return None
        elem = self.element(tag)
        if elem is None:
            raw = self._raw_bytes(tag)
            return _unpack_float(raw, index) if raw is not None else None
        value = elem.value
        if isinstance(value, (bytes, bytearray)):
            return _unpack_float(bytes(value), index)
        if _is_multi(value):
            return _to_number(value[index]) if index < len(value) else None
        if value is not None and index == 0:
            return _to_number(value)
        return None

    def numbers(self, tag: TagLike) -> list[float]:
        """Multi-valued numbers from a binary numeric element or a backslash string.

        Returns an empty list when any component fails to parse.
        """

        value = self._value(tag)
        if value is None:
            return []
        if isinstance(value, (bytes, bytearray)):
            value = _to_str(value)
            if value is None:
                return []
        if isinstance(value, str):
            parts: Iterable[Any] = value.split("\\")
        elif _is_multi(value):
            parts = value
        else:
            parts = [value]
        result: list[float] = []
        for part in parts:
            number = _to_float(part)
            if number is None:
                return []
            result.append(number)
        return result

    def items(self, tag: TagLike) -> list["DatasetAccessor"]:
        value = self._value(tag)
        if not _is_multi(value):
            return []
        return [DatasetAccessor(item) for item in value if isinstance(item, Dataset)]

    def first_item(self, tag: TagLike) -> Optional["DatasetAccessor"]:
        items = self.items(tag)
        return items[0] if items else None

    def bulk_bytes(self, tag: TagLike) -> Optional[bytes]:
        """Raw bytes of an OB/OW element such as an overlay bit plane."""

        value = self._value(tag)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        return self._raw_bytes(tag)

    def _raw_bytes(self, tag: TagLike) -> Optional[bytes]:
        try:
            raw = self._dataset.get_item(_resolve(tag))
        except Exception:
            return None
        value = getattr(raw, "value", None)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        return None

"""Overlay plane decoding (DICOM repeating groups 6000-601E)."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from pydicom.tag import Tag

from .accessor import DatasetAccessor
from .models import Overlay, OverlayKind


logger = logging.getLogger(__name__)


OVERLAY_GROUPS: tuple[int, ...] = tuple(range(0x6000, 0x601E + 1, 2))

# Element numbers shared by every overlay group
OVERLAY_ROWS = 0x0010
OVERLAY_COLUMNS = 0x0011
OVERLAY_DESCRIPTION = 0x0022
OVERLAY_TYPE = 0x0040
OVERLAY_ORIGIN = 0x0050
OVERLAY_BITS_ALLOCATED = 0x0100
OVERLAY_LABEL = 0x1500
OVERLAY_DATA = 0x3000

DEFAULT_ORIGIN = (1, 1)


def unpack_overlay_bits(packed: bytes, pixel_count: int) -> bytes:
    """Expand packed bits into one byte (0 or 1) per pixel.

    Output byte ``i`` is bit ``i % 8`` of input byte ``i // 8``. Pixels past the
    end of ``packed`` are 0.
    """

    if pixel_count <= 0:
        return b""
    needed = (pixel_count + 7) // 8
    source = np.frombuffer(packed[:needed], dtype=np.uint8)
    bits = np.unpackbits(source, bitorder="little")
    unpacked = np.zeros(pixel_count, dtype=np.uint8)
    available = min(pixel_count, bits.size)
    unpacked[:available] = bits[:available]
    return unpacked.tobytes()


def pack_overlay_bits(unpacked: bytes) -> bytes:
    """Inverse of :func:`unpack_overlay_bits`; the last byte is zero padded."""

    values = np.frombuffer(unpacked, dtype=np.uint8) & 1
    return np.packbits(values, bitorder="little").tobytes()


def _origin(accessor: DatasetAccessor, group: int) -> tuple[int, int]:
    parts = accessor.numbers(Tag(group, OVERLAY_ORIGIN))
    if len(parts) < 2:
        return DEFAULT_ORIGIN
    return (int(parts[0]), int(parts[1]))


def decode_overlay(accessor: DatasetAccessor, group: int, max_pixels: Optional[int] = None) -> Optional[Overlay]:
    rows = accessor.uint16(Tag(group, OVERLAY_ROWS))
    if not rows:
        return None
    columns = accessor.uint16(Tag(group, OVERLAY_COLUMNS))
    if not columns:
        return None
    if max_pixels is not None and rows * columns > max_pixels:
        logger.warning(
            "Overlay group %04X is %dx%d, above the %d pixel limit; skipping",
            group,
            rows,
            columns,
            max_pixels,
        )
        return None

    packed = accessor.bulk_bytes(Tag(group, OVERLAY_DATA))
    if packed is None:
        logger.debug("Overlay group %04X has no data element; skipping", group)
        return None

    kind = OverlayKind.ROI if accessor.string(Tag(group, OVERLAY_TYPE)) == "R" else OverlayKind.GRAPHIC
    return Overlay(
        group=group,
        rows=rows,
        columns=columns,
        kind=kind,
        origin=_origin(accessor, group),
        data=unpack_overlay_bits(packed, rows * columns),
        bits_allocated=accessor.uint16(Tag(group, OVERLAY_BITS_ALLOCATED)) or 1,
        description=accessor.string(Tag(group, OVERLAY_DESCRIPTION)),
        label=accessor.string(Tag(group, OVERLAY_LABEL)),
    )


def decode_overlays(accessor: DatasetAccessor, max_pixels: Optional[int] = None) -> list[Overlay]:
    overlays: list[Overlay] = []
    for group in OVERLAY_GROUPS:
        overlay = decode_overlay(accessor, group, max_pixels)
        if overlay is not None:
            overlays.append(overlay)
    return overlays

from pydicom.dataset import Dataset
from pydicom.tag import Tag

from dicom_objects.accessor import DatasetAccessor
from dicom_objects.models import OverlayKind
from dicom_objects.overlays import (
    DEFAULT_ORIGIN,
    OVERLAY_GROUPS,
    decode_overlay,
    decode_overlays,
    pack_overlay_bits,
    unpack_overlay_bits,
)


def _add_overlay(ds: Dataset, group: int, rows: int, columns: int, data: bytes | None, **extra) -> None:
    ds.add_new(Tag(group, 0x0010), "US", rows)
    ds.add_new(Tag(group, 0x0011), "US", columns)
    ds.add_new(Tag(group, 0x0040), "CS", extra.get("kind", "G"))
    ds.add_new(Tag(group, 0x0050), "SS", extra.get("origin", [1, 1]))
    ds.add_new(Tag(group, 0x0100), "US", 1)
    if "label" in extra:
        ds.add_new(Tag(group, 0x1500), "LO", extra["label"])
    if "description" in extra:
        ds.add_new(Tag(group, 0x0022), "LO", extra["description"])
    if data is not None:
        ds.add_new(Tag(group, 0x3000), "OW", data)


def test_sixteen_overlay_groups():
    assert len(OVERLAY_GROUPS) == 16
    assert OVERLAY_GROUPS[0] == 0x6000
    assert OVERLAY_GROUPS[-1] == 0x601E


def test_unpack_example_plane():
    ds = Dataset()
    _add_overlay(ds, 0x6000, rows=2, columns=4, data=bytes([0b00001011]))

    (overlay,) = decode_overlays(DatasetAccessor(ds))

    assert overlay.group == 0x6000
    assert (overlay.rows, overlay.columns) == (2, 4)
    assert list(overlay.data) == [1, 1, 0, 1, 0, 0, 0, 0]
    assert overlay.kind is OverlayKind.GRAPHIC
    assert overlay.origin == (1, 1)
    assert overlay.set_pixel_count == 3


def test_unpack_never_reads_past_buffer():
    assert unpack_overlay_bits(b"\xff", 12) == bytes([1] * 8 + [0] * 4)
    assert unpack_overlay_bits(b"", 3) == b"\x00\x00\x00"
    assert unpack_overlay_bits(b"\xff", 0) == b""


def test_pack_round_trip_restores_prefix():
    packed = bytes([0b10110010, 0b01010101, 0b00000111])
    for pixel_count in (8, 16, 24):
        unpacked = unpack_overlay_bits(packed, pixel_count)
        assert pack_overlay_bits(unpacked) == packed[: pixel_count // 8]


def test_plane_without_data_is_skipped():
    ds = Dataset()
    _add_overlay(ds, 0x6000, rows=2, columns=4, data=None)

    assert decode_overlay(DatasetAccessor(ds), 0x6000) is None
    assert decode_overlays(DatasetAccessor(ds)) == []


def test_plane_with_zero_rows_is_skipped():
    ds = Dataset()
    _add_overlay(ds, 0x6002, rows=0, columns=4, data=b"\x01")

    assert decode_overlays(DatasetAccessor(ds)) == []


def test_malformed_origin_falls_back_to_default():
    ds = Dataset()
    _add_overlay(ds, 0x6000, rows=1, columns=8, data=b"\x01", origin=[5])

    overlay = decode_overlay(DatasetAccessor(ds), 0x6000)

    assert overlay.origin == DEFAULT_ORIGIN


def test_multiple_planes_kind_and_labels():
    ds = Dataset()
    _add_overlay(ds, 0x6000, rows=1, columns=8, data=b"\x0f", origin=[3, 7], label="Ruler")
    _add_overlay(ds, 0x6004, rows=1, columns=8, data=b"\xf0", kind="R", description="Tumour ROI")

    first, second = decode_overlays(DatasetAccessor(ds))

    assert (first.group, first.origin, first.label) == (0x6000, (3, 7), "Ruler")
    assert first.kind is OverlayKind.GRAPHIC
    assert (second.group, second.kind, second.description) == (0x6004, OverlayKind.ROI, "Tumour ROI")
    assert list(second.data) == [0, 0, 0, 0, 1, 1, 1, 1]


def test_plane_above_pixel_limit_is_skipped(caplog):
    ds = Dataset()
    _add_overlay(ds, 0x6000, rows=65535, columns=65535, data=b"\x01")
    _add_overlay(ds, 0x6002, rows=2, columns=4, data=bytes([0b00001011]))

    overlays = decode_overlays(DatasetAccessor(ds), max_pixels=1024)

    assert [overlay.group for overlay in overlays] == [0x6002]
    assert "pixel limit" in caplog.text

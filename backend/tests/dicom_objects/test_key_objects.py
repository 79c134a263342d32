from __future__ import annotations

import pytest
from pydicom.dataset import Dataset

from dicom_objects.accessor import DatasetAccessor
from dicom_objects.errors import MissingIdentifierError
from dicom_objects.key_objects import DEFAULT_TITLE, decode_key_object_selection
from dicom_objects.references import collect_image_items, collect_series_references


def _image(sop_uid: str) -> Dataset:
    ref = Dataset()
    ref.ReferencedSOPClassUID = "1.2.840.10008.5.1.4.1.1.2"
    ref.ReferencedSOPInstanceUID = sop_uid
    item = Dataset()
    item.RelationshipType = "CONTAINS"
    item.ValueType = "IMAGE"
    item.ReferencedSOPSequence = [ref]
    return item


def _text(value: str) -> Dataset:
    item = Dataset()
    item.RelationshipType = "CONTAINS"
    item.ValueType = "TEXT"
    item.TextValue = value
    return item


def _container(*children: Dataset) -> Dataset:
    item = Dataset()
    item.ValueType = "CONTAINER"
    item.ContentSequence = list(children)
    return item


def _key_object(*content: Dataset, title: str | None = None) -> Dataset:
    ds = Dataset()
    ds.SOPInstanceUID = "1.2.3.200"
    ds.SeriesInstanceUID = "1.2.3.20"
    if title:
        code = Dataset()
        code.CodeMeaning = title
        ds.ConceptNameCodeSequence = [code]
    ds.ContentSequence = list(content)
    return ds


def test_collects_nested_image_references_in_document_order():
    ds = _key_object(
        _image("1.1"),
        _container(_image("1.2"), _container(_image("1.3"))),
        _image("1.4"),
    )

    assert collect_image_items(DatasetAccessor(ds), max_depth=256) == ["1.1", "1.2", "1.3", "1.4"]
    assert collect_image_items(DatasetAccessor(ds), max_depth=2) == ["1.1", "1.2", "1.4"]


def test_decode_key_object_selection():
    ds = _key_object(
        _text("Lesion progression"),
        _container(_image("1.2.3.4.1"), _image("1.2.3.4.1")),
        title="Of Interest",
    )

    selection = decode_key_object_selection(DatasetAccessor(ds), "ko.dcm")

    assert selection.sop_id == "1.2.3.200"
    assert selection.title == "Of Interest"
    assert selection.description == "Lesion progression"
    # Duplicates are preserved; deduplication is up to callers.
    assert selection.key_images == ["1.2.3.4.1", "1.2.3.4.1"]


def test_dangling_references_are_kept():
    ds = _key_object(_image("9.9.9.not.loaded"))

    selection = decode_key_object_selection(DatasetAccessor(ds))

    assert selection.key_images == ["9.9.9.not.loaded"]
    assert selection.title == DEFAULT_TITLE
    assert selection.description is None


def test_zero_image_references_discards_the_object(caplog):
    ds = _key_object(_text("Nothing marked"))

    assert decode_key_object_selection(DatasetAccessor(ds), "ko.dcm") is None
    assert "No key images" in caplog.text


def test_missing_sop_instance_uid_raises():
    ds = _key_object(_image("1.1"))
    del ds.SOPInstanceUID

    with pytest.raises(MissingIdentifierError):
        decode_key_object_selection(DatasetAccessor(ds))


def test_series_references_walk_two_levels():
    first = Dataset()
    first.ReferencedSOPInstanceUID = "2.1"
    second = Dataset()
    second.ReferencedSOPInstanceUID = "2.2"
    empty = Dataset()
    series = Dataset()
    series.SeriesInstanceUID = "2"
    series.ReferencedImageSequence = [first, empty, second]
    ds = Dataset()
    ds.ReferencedSeriesSequence = [series]

    assert collect_series_references(DatasetAccessor(ds)) == ["2.1", "2.2"]
    assert collect_series_references(DatasetAccessor(Dataset())) == []

import pytest
from pydicom.dataset import Dataset
from pydicom.tag import Tag

from dicom_objects.accessor import DatasetAccessor
from dicom_objects.errors import MissingIdentifierError
from dicom_objects.fields import (
    UNKNOWN_DATE,
    decode_image,
    decode_series,
    decode_study_header,
    format_dicom_date,
    format_person_name,
)


def _image_dataset() -> Dataset:
    ds = Dataset()
    ds.StudyInstanceUID = "1.2.3"
    ds.SeriesInstanceUID = "1.2.3.1"
    ds.SOPInstanceUID = "1.2.3.1.7"
    ds.InstanceNumber = 7
    ds.SeriesNumber = 3
    ds.SeriesDescription = "AX T2"
    ds.Modality = "MR"
    ds.BodyPartExamined = "BRAIN"
    ds.Rows = 256
    ds.Columns = 192
    ds.WindowCenter = ["300", "40"]
    ds.WindowWidth = "1500"
    ds.SliceLocation = "-12.5"
    ds.SliceThickness = "3"
    return ds


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("20240101", "2024-01-01"),
        ("2024", UNKNOWN_DATE),
        ("2024-01-01", UNKNOWN_DATE),
        (None, UNKNOWN_DATE),
    ],
)
def test_format_dicom_date(raw, expected):
    assert format_dicom_date(raw) == expected


def test_format_person_name():
    assert format_person_name("Doe^Jane^^Dr") == "Doe Jane Dr"
    assert format_person_name("^") is None
    assert format_person_name(None) is None


def test_decode_study_header():
    ds = Dataset()
    ds.StudyInstanceUID = "1.2.3"
    ds.PatientName = "Doe^Jane"
    ds.PatientID = "P001"
    ds.StudyDate = "20231231"
    ds.StudyDescription = "CT HEAD"
    ds.Modality = "CT"
    ds.InstitutionName = "General Hospital"
    ds.ReferringPhysicianName = "Smith^John"

    header = decode_study_header(DatasetAccessor(ds))

    assert header.study_id == "1.2.3"
    assert header.patient_name == "Doe Jane"
    assert header.patient_id == "P001"
    assert header.study_date == "2023-12-31"
    assert header.description == "CT HEAD"
    assert header.modality == "CT"
    assert header.institution_name == "General Hospital"
    assert header.referring_physician == "Smith John"


def test_study_header_defaults_and_absence():
    ds = Dataset()
    ds.StudyInstanceUID = "1.2.3"

    header = decode_study_header(DatasetAccessor(ds))

    assert header.patient_name == "Unknown"
    assert header.patient_id == ""
    assert header.study_date == UNKNOWN_DATE
    assert header.institution_name is None
    assert decode_study_header(DatasetAccessor(Dataset())) is None


def test_decode_image_and_series():
    ds = _image_dataset()
    accessor = DatasetAccessor(ds)

    image = decode_image(accessor, "/data/img.dcm")
    series = decode_series(accessor, "/data/img.dcm")

    assert (image.sop_id, image.series_id, image.instance_number) == ("1.2.3.1.7", "1.2.3.1", 7)
    assert (image.rows, image.columns) == (256, 192)
    assert (image.window_center, image.window_width) == (300.0, 1500.0)
    assert (image.slice_location, image.slice_thickness) == (-12.5, 3.0)
    assert image.file_path == "/data/img.dcm"
    assert image.overlays is None
    assert (series.series_id, series.study_id, series.series_number) == ("1.2.3.1", "1.2.3", 3)
    assert (series.description, series.modality, series.body_part) == ("AX T2", "MR", "BRAIN")
    assert series.images == []


def test_decode_image_defaults():
    ds = Dataset()
    ds.SeriesInstanceUID = "1.2.3.1"
    ds.SOPInstanceUID = "1.2.3.1.1"

    image = decode_image(DatasetAccessor(ds), "x.dcm")

    assert (image.instance_number, image.rows, image.columns) == (0, 0, 0)
    assert image.window_center is None


def test_decode_image_with_overlay():
    ds = _image_dataset()
    ds.add_new(Tag(0x6000, 0x0010), "US", 1)
    ds.add_new(Tag(0x6000, 0x0011), "US", 8)
    ds.add_new(Tag(0x6000, 0x3000), "OW", b"\x81\x00")

    image = decode_image(DatasetAccessor(ds), "x.dcm")

    assert len(image.overlays) == 1
    assert list(image.overlays[0].data) == [1, 0, 0, 0, 0, 0, 0, 1]


@pytest.mark.parametrize("keyword", ["SOPInstanceUID", "SeriesInstanceUID"])
def test_decode_image_requires_identifiers(keyword):
    ds = _image_dataset()
    delattr(ds, keyword)

    with pytest.raises(MissingIdentifierError) as excinfo:
        decode_image(DatasetAccessor(ds), "x.dcm")
    assert excinfo.value.keyword == keyword

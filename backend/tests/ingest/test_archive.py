import zipfile

import pytest

from dicom_objects.errors import ArchiveTooLargeError
from ingest.archive import extract_archive, is_zip_archive
from ingest.config import LoadConfig
from ingest.progress import LoadPhase, ProgressReporter


def _make_zip(path, members: dict[str, bytes]):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return path


def test_extracts_regular_files(tmp_path):
    archive = _make_zip(tmp_path / "study.zip", {"study/a.dcm": b"A", "study/sub/b.dcm": b"B"})
    events = []

    dest = extract_archive(archive, tmp_path / "out", reporter=ProgressReporter(events.append))

    assert (dest / "study" / "a.dcm").read_bytes() == b"A"
    assert (dest / "study" / "sub" / "b.dcm").read_bytes() == b"B"
    assert [(event.phase, event.current, event.total) for event in events] == [
        (LoadPhase.EXTRACTING, 0, 2),
        (LoadPhase.EXTRACTING, 1, 2),
        (LoadPhase.EXTRACTING, 2, 2),
    ]
    assert events[-1].current_file == "b.dcm"


def test_members_escaping_destination_are_skipped(tmp_path):
    archive = _make_zip(tmp_path / "evil.zip", {"../escape.dcm": b"X", "ok.dcm": b"Y"})

    dest = extract_archive(archive, tmp_path / "out")

    assert not (tmp_path / "escape.dcm").exists()
    assert (dest / "ok.dcm").read_bytes() == b"Y"


def test_oversized_archive_is_refused(tmp_path):
    archive = _make_zip(tmp_path / "big.zip", {"a.dcm": b"0" * 1024})

    with pytest.raises(ArchiveTooLargeError):
        extract_archive(archive, tmp_path / "out", LoadConfig(max_archive_size=100))


def test_is_zip_archive(tmp_path):
    archive = _make_zip(tmp_path / "study.zip", {"a.dcm": b"A"})
    fake = tmp_path / "fake.zip"
    fake.write_bytes(b"not a zip")

    assert is_zip_archive(archive)
    assert not is_zip_archive(fake)
    assert not is_zip_archive(tmp_path)


def test_non_dicom_members_are_not_extracted(tmp_path):
    archive = _make_zip(
        tmp_path / "mixed.zip",
        {"a.dcm": b"A", "notes.txt": b"N", "IM0001": b"B", "__MACOSX/._a.dcm": b"M"},
    )

    dest = extract_archive(archive, tmp_path / "out")

    assert sorted(p.relative_to(dest).as_posix() for p in dest.rglob("*") if p.is_file()) == ["IM0001", "a.dcm"]


def test_oversized_members_are_skipped(tmp_path, caplog):
    archive = _make_zip(tmp_path / "bomb.zip", {"big.dcm": b"\x00" * 4096, "small.dcm": b"S"})

    dest = extract_archive(archive, tmp_path / "out", LoadConfig(max_file_size=1024))

    assert not (dest / "big.dcm").exists()
    assert (dest / "small.dcm").read_bytes() == b"S"
    assert "big.dcm" in caplog.text


def test_extraction_stops_at_file_limit(tmp_path):
    archive = _make_zip(tmp_path / "many.zip", {f"img{i:02d}.dcm": b"X" for i in range(10)})
    events = []

    dest = extract_archive(
        archive, tmp_path / "out", LoadConfig(max_files=3), reporter=ProgressReporter(events.append)
    )

    assert sorted(p.name for p in dest.iterdir()) == ["img00.dcm", "img01.dcm", "img02.dcm"]
    assert events[-1].current == events[-1].total == 3

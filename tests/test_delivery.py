"""Tests for locating result files behind a validated grant."""

import pytest

from results_portal.exceptions import FileMissing, InvalidGrant
from results_portal.services.delivery import resolve_result_file


def test_resolves_existing_file(result_record, upload_dir):
    path = resolve_result_file(result_record, upload_dir)

    assert path == (upload_dir / result_record.file_path).resolve()
    assert path.read_bytes() == b"%PDF-1.4 result"


def test_missing_file_raises_file_missing(record_factory, upload_dir, caplog):
    record = record_factory(with_file=False, file_path="gone.pdf")

    with pytest.raises(FileMissing) as exc_info:
        resolve_result_file(record, upload_dir)

    assert not isinstance(exc_info.value, InvalidGrant)
    assert exc_info.value.status_code == 404
    assert exc_info.value.result_id == record.id
    assert any(r.levelname == "WARNING" and "gone.pdf" in r.getMessage() for r in caplog.records)


def test_path_outside_upload_dir_is_treated_as_missing(record_factory, upload_dir, tmp_path):
    (tmp_path / "secret.txt").write_text("not a result")
    record = record_factory(with_file=False, file_path="../secret.txt")

    with pytest.raises(FileMissing):
        resolve_result_file(record, upload_dir)


def test_directory_is_not_a_result_file(record_factory, upload_dir):
    (upload_dir / "folder").mkdir()
    record = record_factory(with_file=False, file_path="folder")

    with pytest.raises(FileMissing):
        resolve_result_file(record, upload_dir)

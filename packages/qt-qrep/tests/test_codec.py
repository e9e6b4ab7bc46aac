"""Tests for the report codec: encode/decode and report files."""

import gzip
import json
import os
from unittest import mock

import pytest

from qt_qrep.errors import CodecError, ReportIOError
from qt_qrep.report import QueryRecord, decode, encode, read_report, write_report


@pytest.fixture
def records():
    return [
        QueryRecord(count=600, fraction=0.6, fingerprint="a1", schema="shop", text="SELECT * FROM `orders` WHERE `id` = ?"),
        QueryRecord(count=300, fraction=0.3, fingerprint="b2", schema="shop", text="UPDATE `stock` SET `qty` = ?"),
        QueryRecord(count=100, fraction=0.1, fingerprint="a1", schema="auth", text="SELECT 'ünïcode' FROM `t`"),
    ]


# ---------------------------------------------------------------------------
# encode / decode
# ---------------------------------------------------------------------------

class TestRoundTrip:
    def test_preserves_records_and_order(self, records):
        assert decode(encode(records)) == records

    def test_empty_list(self):
        assert decode(encode([])) == []

    def test_fraction_is_exact(self):
        rec = QueryRecord(count=1, fraction=1 / 3, fingerprint="f", schema="s", text="t")
        (back,) = decode(encode([rec]))
        assert back.fraction == 1 / 3

    def test_no_field_truncation(self):
        long_text = "SELECT " + ", ".join(f"`col_{i}`" for i in range(2000)) + " FROM `wide`"
        rec = QueryRecord(count=7, fraction=1.0, fingerprint="x" * 64, schema="s", text=long_text)
        assert decode(encode([rec])) == [rec]

    def test_payload_is_gzip_compressed(self, records):
        data = encode(records * 50)
        assert data[:2] == b"\x1f\x8b"
        raw = gzip.decompress(data)
        assert len(data) < len(raw)

    def test_encoding_is_deterministic(self, records):
        assert encode(records) == encode(records)


class TestDecodeFailures:
    def test_truncated_input(self, records):
        data = encode(records)
        with pytest.raises(CodecError):
            decode(data[: len(data) // 2])

    def test_empty_input(self):
        with pytest.raises(CodecError):
            decode(b"")

    def test_not_gzip(self):
        with pytest.raises(CodecError):
            decode(b"definitely not a report")

    def test_corrupt_body(self, records):
        data = bytearray(encode(records))
        data[len(data) // 2] ^= 0xFF
        with pytest.raises(CodecError):
            decode(bytes(data))

    def test_not_json(self):
        with pytest.raises(CodecError):
            decode(gzip.compress(b"\x00\x01 garbage"))

    def test_wrong_top_level_shape(self):
        with pytest.raises(CodecError):
            decode(gzip.compress(json.dumps({"count": 1}).encode()))

    def test_missing_field(self):
        payload = [{"count": 1, "fraction": 1.0, "fingerprint": "f", "schema": "s"}]
        with pytest.raises(CodecError):
            decode(gzip.compress(json.dumps(payload).encode()))

    def test_type_mismatch(self):
        payload = [{"count": "ten", "fraction": 1.0, "fingerprint": "f", "schema": "s", "text": "t"}]
        with pytest.raises(CodecError):
            decode(gzip.compress(json.dumps(payload).encode()))

    def test_fractional_count_rejected(self):
        payload = [{"count": 1.5, "fraction": 1.0, "fingerprint": "f", "schema": "s", "text": "t"}]
        with pytest.raises(CodecError):
            decode(gzip.compress(json.dumps(payload).encode()))


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class TestReportFiles:
    def test_write_then_read(self, tmp_path, records):
        path = write_report(tmp_path / "db1.20240101.qrep", records)
        report = read_report(path)
        assert list(report.records) == records
        assert report.source == str(path)

    def test_overwrites_existing_file(self, tmp_path, records):
        path = tmp_path / "db1.qrep"
        write_report(path, records)
        write_report(path, records[:1])
        assert list(read_report(path).records) == records[:1]

    def test_no_temp_files_left_behind(self, tmp_path, records):
        write_report(tmp_path / "db1.qrep", records)
        assert [p.name for p in tmp_path.iterdir()] == ["db1.qrep"]

    def test_file_mode_follows_umask(self, tmp_path, records):
        old_mask = os.umask(0o022)
        try:
            path = write_report(tmp_path / "db1.qrep", records)
        finally:
            os.umask(old_mask)
        assert path.stat().st_mode & 0o777 == 0o644

    def test_missing_directory(self, tmp_path, records):
        with pytest.raises(ReportIOError):
            write_report(tmp_path / "missing" / "db1.qrep", records)

    def test_failed_write_leaves_nothing(self, tmp_path, records):
        target = tmp_path / "db1.qrep"
        with mock.patch("qt_qrep.report.codec.os.fsync", side_effect=OSError("disk full")):
            with pytest.raises(ReportIOError, match="disk full"):
                write_report(target, records)
        assert list(tmp_path.iterdir()) == []

    def test_failed_write_keeps_previous_report(self, tmp_path, records):
        target = tmp_path / "db1.qrep"
        write_report(target, records)
        with mock.patch("qt_qrep.report.codec.os.replace", side_effect=OSError("rename failed")):
            with pytest.raises(ReportIOError):
                write_report(target, records[:1])
        assert list(read_report(target).records) == records
        assert [p.name for p in tmp_path.iterdir()] == ["db1.qrep"]

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(ReportIOError, match="nope.qrep"):
            read_report(tmp_path / "nope.qrep")

    def test_read_corrupt_file_names_path(self, tmp_path):
        path = tmp_path / "bad.qrep"
        path.write_bytes(b"garbage")
        with pytest.raises(CodecError, match="bad.qrep"):
            read_report(path)

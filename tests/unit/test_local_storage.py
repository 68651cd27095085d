import io
import re

import pytest

from app.core.exceptions import FileTooLargeError
from app.services.storage import local_storage
from app.services.storage.local_storage import build_storage_filename
from app.services.storage.local_storage import client_basename
from app.services.storage.local_storage import delete_report_file
from app.services.storage.local_storage import generate_unique_file_name
from app.services.storage.local_storage import write_upload_stream


@pytest.fixture
def frozen_clock(monkeypatch):
    monkeypatch.setattr(local_storage, "_now_millis", lambda: 1_700_000_000_123)


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def test_build_storage_filename_format(frozen_clock, monkeypatch):
    monkeypatch.setattr(local_storage.random, "randrange", lambda upper: 987654321)
    assert build_storage_filename("report.pdf") == "1700000000123-987654321-report.pdf"


def test_build_storage_filename_keeps_original_spacing():
    name = build_storage_filename("annual report.pdf")
    assert re.fullmatch(r"\d+-\d{1,9}-annual report\.pdf", name)


def test_build_storage_filename_random_part_is_below_one_billion(monkeypatch):
    seen = []

    def _fake_randrange(upper):
        seen.append(upper)
        return upper - 1

    monkeypatch.setattr(local_storage.random, "randrange", _fake_randrange)
    name = build_storage_filename("x.pdf")
    assert seen == [1_000_000_000]
    assert name.split("-")[1] == "999999999"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("report.pdf", "report.pdf"),
        ("../../etc/passwd.pdf", "passwd.pdf"),
        ("C:\\Users\\me\\report.pdf", "report.pdf"),
        ("nested/dir/report.pdf", "report.pdf"),
    ],
)
def test_client_basename_drops_directories(raw, expected):
    assert client_basename(raw) == expected


def test_generate_unique_file_name_replaces_whitespace(frozen_clock):
    assert generate_unique_file_name("my  annual\treport .pdf") == "1700000000123-my_annual_report_.pdf"


def test_generate_unique_file_name_without_whitespace(frozen_clock):
    assert generate_unique_file_name("report.pdf") == "1700000000123-report.pdf"


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def test_write_upload_stream_copies_in_chunks(tmp_path):
    target = tmp_path / "out" / "file.pdf"
    source = io.BytesIO(b"0123456789")
    source.read(3)  # Position is reset before copying

    written = write_upload_stream(source, target, max_size=10, chunk_size=4)

    assert written == 10
    assert target.read_bytes() == b"0123456789"


def test_write_upload_stream_removes_oversized_file(tmp_path):
    target = tmp_path / "big.pdf"

    with pytest.raises(FileTooLargeError) as exc:
        write_upload_stream(io.BytesIO(b"x" * 11), target, max_size=10, chunk_size=4)

    assert exc.value.message == "File too large"
    assert exc.value.status_code == 400
    assert not target.exists()


def test_write_upload_stream_never_overwrites(tmp_path):
    target = tmp_path / "taken.pdf"
    target.write_bytes(b"original")

    with pytest.raises(FileExistsError):
        write_upload_stream(io.BytesIO(b"new"), target, max_size=10, chunk_size=4)

    assert target.read_bytes() == b"original"


# ---------------------------------------------------------------------------
# Deleting
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_report_file_decrements_ledger(tmp_path, ledger):
    report = tmp_path / "report.pdf"
    report.write_bytes(b"a" * 300)
    await ledger.adjust(1000)

    assert await delete_report_file(report, ledger) is True

    assert not report.exists()
    assert await ledger.read() == 700


@pytest.mark.asyncio
async def test_delete_report_file_clamps_ledger_at_zero(tmp_path, ledger):
    report = tmp_path / "report.pdf"
    report.write_bytes(b"a" * 300)

    assert await delete_report_file(str(report), ledger) is True
    assert await ledger.read() == 0


@pytest.mark.asyncio
async def test_delete_missing_file_returns_false(tmp_path, ledger):
    await ledger.adjust(100)

    assert await delete_report_file(tmp_path / "missing.pdf", ledger) is False
    assert await ledger.read() == 100


@pytest.mark.asyncio
async def test_delete_directory_returns_false(tmp_path, ledger):
    directory = tmp_path / "not-a-file"
    directory.mkdir()

    assert await delete_report_file(directory, ledger) is False
    assert directory.exists()


@pytest.mark.asyncio
async def test_delete_reports_false_when_ledger_write_fails(tmp_path, ledger, monkeypatch):
    report = tmp_path / "report.pdf"
    report.write_bytes(b"abc")

    async def _broken_adjust(delta):
        raise OSError("disk full")

    monkeypatch.setattr(ledger, "adjust", _broken_adjust)

    assert await delete_report_file(report, ledger) is False
    assert not report.exists()


@pytest.mark.asyncio
async def test_delete_uses_configured_ledger_by_default(tmp_path, ledger, monkeypatch):
    report = tmp_path / "report.pdf"
    report.write_bytes(b"abcd")
    await ledger.adjust(10)
    monkeypatch.setattr(local_storage, "get_size_ledger", lambda: ledger)

    assert await delete_report_file(report) is True
    assert await ledger.read() == 6


def test_generate_unique_file_name_treats_bom_as_whitespace(frozen_clock):
    assert generate_unique_file_name("\ufeffannual\ufeff report.pdf") == "1700000000123-_annual_report.pdf"

"""
Unit tests for the bulk upload tool.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from orthanc_api.dicom.bulk_upload import collect_files, upload_files
from orthanc_api.dicom.errors import TransportError
from orthanc_api.dicom.orthanc_client import OrthancClient


def _upload_result(status: str) -> dict[str, str]:
    return {
        "ID": "abc123",
        "ParentPatient": "p",
        "ParentSeries": "e",
        "ParentStudy": "s",
        "Path": "/instances/abc123",
        "Status": status,
    }


def _client(handler) -> OrthancClient:
    return OrthancClient(base_url="http://test-orthanc:8042", transport=httpx.MockTransport(handler))


def test_collect_files(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "1.dcm").write_bytes(b"1")
    (tmp_path / "2.dcm").write_bytes(b"2")
    (tmp_path / "notes.txt").write_text("skip")

    assert collect_files(tmp_path, "*.dcm") == [tmp_path / "2.dcm", tmp_path / "a" / "1.dcm"]
    assert len(collect_files(tmp_path)) == 3


def test_upload_files_counts_outcomes(tmp_path: Path) -> None:
    files = []
    for name in ("new.dcm", "dup.dcm", "bad.dcm"):
        path = tmp_path / name
        path.write_bytes(name.encode())
        files.append(path)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.content == b"new.dcm":
            return httpx.Response(200, json=_upload_result("Success"))
        if request.content == b"dup.dcm":
            return httpx.Response(200, json=_upload_result("AlreadyStored"))
        return httpx.Response(400)

    stats = upload_files(_client(handler), files)
    assert stats == {"uploaded": 1, "already_stored": 1, "failed": 1}


def test_upload_files_counts_unstructured_error_and_continues(tmp_path: Path) -> None:
    large = tmp_path / "large.dcm"
    large.write_bytes(b"large")
    small = tmp_path / "small.dcm"
    small.write_bytes(b"small")
    sent: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request.content)
        if request.content == b"large":
            return httpx.Response(413, text="<html>413 Request Entity Too Large</html>")
        return httpx.Response(200, json=_upload_result("Success"))

    stats = upload_files(_client(handler), [large, small])
    assert stats == {"uploaded": 1, "already_stored": 0, "failed": 1}
    assert sent == [b"large", b"small"]


def test_upload_files_counts_unreadable_file(tmp_path: Path) -> None:
    missing = tmp_path / "gone.dcm"
    present = tmp_path / "here.dcm"
    present.write_bytes(b"here")

    stats = upload_files(_client(lambda _: httpx.Response(200, json=_upload_result("Success"))), [missing, present])
    assert stats == {"uploaded": 1, "already_stored": 0, "failed": 1}


def test_upload_files_stops_on_connection_loss(tmp_path: Path) -> None:
    path = tmp_path / "x.dcm"
    path.write_bytes(b"x")

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        upload_files(_client(refuse), [path])

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import httpx
import pytest

import almanac.ephemeris as ephemeris
from almanac.ephemeris import (
    DEFAULT_EPHEMERIS_FILENAME,
    EphemerisAcquisitionError,
    kernel_directory,
    resolve_ephemeris_source,
)


@pytest.fixture
def fake_download(monkeypatch: pytest.MonkeyPatch) -> list:
    calls: list = []

    def _download(destination: Path, url: str = ephemeris.DEFAULT_EPHEMERIS_URL) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b"DAF/SPK")
        calls.append(destination)
        return destination

    monkeypatch.setattr(ephemeris, "_download_kernel", _download)
    return calls


def test_existing_kernel_file(tmp_path: Path, fake_download: list) -> None:
    kernel = tmp_path / "de440s.bsp"
    kernel.write_bytes(b"DAF/SPK")
    assert kernel_directory(kernel) == tmp_path
    assert fake_download == []


def test_directory_with_kernels(tmp_path: Path, fake_download: list) -> None:
    (tmp_path / "custom.bsp").write_bytes(b"DAF/SPK")
    assert kernel_directory(tmp_path) == tmp_path
    assert fake_download == []


def test_empty_directory_downloads_default(tmp_path: Path, fake_download: list) -> None:
    assert kernel_directory(tmp_path) == tmp_path
    assert fake_download == [tmp_path / DEFAULT_EPHEMERIS_FILENAME]


def test_wrong_extension_is_rejected(tmp_path: Path, fake_download: list) -> None:
    kernel = tmp_path / "kernel.txt"
    kernel.write_text("not a kernel")
    with pytest.raises(EphemerisAcquisitionError):
        kernel_directory(kernel)


def test_de_bsp_override(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fake_download: list
) -> None:
    (tmp_path / "custom.bsp").write_bytes(b"DAF/SPK")
    monkeypatch.setenv("DE_BSP", str(tmp_path))
    assert resolve_ephemeris_source() == tmp_path
    assert fake_download == []


def test_cache_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fake_download: list
) -> None:
    monkeypatch.delenv("DE_BSP", raising=False)
    monkeypatch.setenv("DE_BSP_CACHE_DIR", str(tmp_path / "cache"))
    assert resolve_ephemeris_source() == tmp_path / "cache"
    assert fake_download == [tmp_path / "cache" / DEFAULT_EPHEMERIS_FILENAME]


def test_failed_download_leaves_no_partial_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _refuse(*args, **kwargs):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(ephemeris.httpx, "stream", _refuse)
    destination = tmp_path / DEFAULT_EPHEMERIS_FILENAME
    with pytest.raises(EphemerisAcquisitionError):
        ephemeris._download_kernel(destination, "https://example.invalid/de440s.bsp")
    assert not destination.exists()
    assert list(tmp_path.iterdir()) == []

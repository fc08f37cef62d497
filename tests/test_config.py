from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path

import httpx
import pytest

from lunisolar import EphemerisAcquisitionError, LunarCalendar, Settings
from lunisolar import kernels
from lunisolar.config import DEFAULT_KERNEL_URL
from lunisolar.kernels import download_kernel, resolve_kernel_path


def test_settings_defaults():
    settings = Settings.from_env({})
    assert settings.ephemeris == "erfa"
    assert settings.utc_offset_hours == 8.0
    assert settings.kernel_path is None
    assert settings.kernel_url == DEFAULT_KERNEL_URL


def test_settings_from_environment(tmp_path: Path):
    settings = Settings.from_env(
        {
            "LUNISOLAR_EPHEMERIS": " SPICE ",
            "LUNISOLAR_UTC_OFFSET": "9",
            "DE_BSP": str(tmp_path),
            "DE_BSP_CACHE_DIR": str(tmp_path / "cache"),
            "DE_BSP_URL": "https://example.invalid/de441.bsp",
        }
    )
    assert settings.ephemeris == "spice"
    assert settings.utc_offset_hours == 9.0
    assert settings.kernel_path == tmp_path
    assert settings.kernel_cache_dir == tmp_path / "cache"
    assert settings.kernel_url.endswith("de441.bsp")


@pytest.mark.parametrize(
    "environ",
    [
        {"LUNISOLAR_EPHEMERIS": "vsop"},
        {"LUNISOLAR_UTC_OFFSET": "east"},
        {"LUNISOLAR_UTC_OFFSET": "15"},
    ],
)
def test_settings_reject_bad_values(environ):
    with pytest.raises(ValueError):
        Settings.from_env(environ)


def test_calendar_from_settings_uses_zone_offset():
    calendar = LunarCalendar.from_settings(Settings(utc_offset_hours=9.0))
    assert calendar.provider_name == "erfa"
    assert calendar.timescale.utc_offset_hours == 9.0


def test_resolve_explicit_kernel_directory(tmp_path: Path):
    (tmp_path / "de440.bsp").write_bytes(b"DAF/SPK")
    assert resolve_kernel_path(Settings(kernel_path=tmp_path)) == tmp_path


def test_resolve_explicit_kernel_file(tmp_path: Path):
    kernel = tmp_path / "de440.bsp"
    kernel.write_bytes(b"DAF/SPK")
    assert resolve_kernel_path(Settings(kernel_path=kernel)) == kernel

    other = tmp_path / "notes.txt"
    other.write_text("not a kernel")
    with pytest.raises(EphemerisAcquisitionError):
        resolve_kernel_path(Settings(kernel_path=other))


def test_resolve_rejects_missing_or_empty(tmp_path: Path):
    with pytest.raises(EphemerisAcquisitionError):
        resolve_kernel_path(Settings(kernel_path=tmp_path / "missing"))
    with pytest.raises(EphemerisAcquisitionError):
        resolve_kernel_path(Settings(kernel_path=tmp_path))


def test_resolve_uses_populated_cache(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    (tmp_path / "de441.bsp").write_bytes(b"DAF/SPK")

    def fail(*args, **kwargs):
        raise AssertionError("no download expected")

    monkeypatch.setattr(kernels, "download_kernel", fail)
    assert resolve_kernel_path(Settings(kernel_cache_dir=tmp_path)) == tmp_path


def _fake_stream(status_code: int, content: bytes = b""):
    @contextmanager
    def stream(method, url, **kwargs):
        yield httpx.Response(status_code, content=content, request=httpx.Request(method, url))

    return stream


def test_download_fills_empty_cache(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(kernels.httpx, "stream", _fake_stream(200, b"DAF/SPK" * 10))
    cache = tmp_path / "cache"
    settings = Settings(kernel_cache_dir=cache, kernel_url="https://example.invalid/de441.bsp")
    assert resolve_kernel_path(settings) == cache
    assert (cache / "de441.bsp").read_bytes() == b"DAF/SPK" * 10
    assert not (cache / "de441.bsp.part").exists()


def test_download_failure_leaves_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(kernels.httpx, "stream", _fake_stream(404))
    destination = tmp_path / "de440.bsp"
    with pytest.raises(EphemerisAcquisitionError):
        download_kernel("https://example.invalid/de440.bsp", destination)
    assert not destination.exists()
    assert not (tmp_path / "de440.bsp.part").exists()

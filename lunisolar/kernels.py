"""Locating and downloading JPL planetary kernels."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import httpx

from .config import Settings
from .errors import EphemerisAcquisitionError

LOGGER = logging.getLogger(__name__)

__all__ = ["download_kernel", "kernel_files", "resolve_kernel_path"]


def kernel_files(path: Path) -> List[Path]:
    """``.bsp`` files at *path* (a single file or a directory of them)."""

    if path.is_file():
        return [path]
    return sorted(
        item for item in path.iterdir() if item.is_file() and item.suffix.lower() == ".bsp"
    )


def download_kernel(url: str, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + ".part")
    LOGGER.info(
        json.dumps({"event": "kernel_downloading", "url": url, "destination": str(destination)})
    )
    try:
        with httpx.stream("GET", url, timeout=httpx.Timeout(120.0, connect=30.0),
                          follow_redirects=True) as response:
            response.raise_for_status()
            total = int(response.headers.get("Content-Length", "0")) or None
            received = 0
            with partial.open("wb") as handle:
                for chunk in response.iter_bytes(chunk_size=1 << 20):
                    handle.write(chunk)
                    received += len(chunk)
        partial.replace(destination)
    except (httpx.HTTPError, OSError) as exc:
        if partial.exists():
            partial.unlink()
        raise EphemerisAcquisitionError(f"Failed to download kernel from {url}: {exc}") from exc
    LOGGER.info(
        json.dumps(
            {
                "event": "kernel_downloaded",
                "url": url,
                "destination": str(destination),
                "bytes": received,
                "total": total,
            }
        )
    )
    return destination


def _default_filename(url: str) -> str:
    name = url.rstrip("/").rsplit("/", 1)[-1]
    return name if name.lower().endswith(".bsp") else "de440.bsp"


def resolve_kernel_path(settings: Optional[Settings] = None) -> Path:
    """Return an existing kernel file or directory, downloading if needed.

    ``DE_BSP`` wins when set and must point at a ``.bsp`` file or a directory
    holding at least one.  Otherwise the cache directory is used and filled
    from ``DE_BSP_URL`` on first use.
    """

    settings = settings or Settings.from_env()

    if settings.kernel_path is not None:
        path = settings.kernel_path
        if path.is_file():
            if path.suffix.lower() != ".bsp":
                raise EphemerisAcquisitionError(f"Kernel file must have .bsp extension: {path}")
            return path
        if path.is_dir():
            if not kernel_files(path):
                raise EphemerisAcquisitionError(f"No .bsp kernel files found in directory: {path}")
            return path
        raise EphemerisAcquisitionError(f"Kernel path does not exist: {path}")

    cache_dir = settings.kernel_cache_dir
    if cache_dir.is_dir() and kernel_files(cache_dir):
        return cache_dir
    download_kernel(settings.kernel_url, cache_dir / _default_filename(settings.kernel_url))
    return cache_dir

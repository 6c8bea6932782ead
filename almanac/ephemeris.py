"""Locate or fetch the JPL DE kernel used by :class:`almanac.astro.SpiceEphemeris`."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import httpx

LOGGER = logging.getLogger(__name__)

# de440s spans 1849-2150, which covers the modern range of both
# equinox-anchored calendars at a fraction of the size of de440/de441.
DEFAULT_EPHEMERIS_URL = (
    "https://naif.jpl.nasa.gov/pub/naif/generic_kernels/spk/planets/de440s.bsp"
)
DEFAULT_EPHEMERIS_FILENAME = "de440s.bsp"
DEFAULT_CACHE_DIR = Path.home() / ".almanac" / "kernels"


class EphemerisAcquisitionError(RuntimeError):
    """Raised when no usable kernel can be found or downloaded."""


def _log_event(event: str, **fields: object) -> None:
    LOGGER.info(json.dumps({"event": event, **fields}))


def _download_kernel(destination: Path, url: str = DEFAULT_EPHEMERIS_URL) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_suffix(destination.suffix + ".part")
    _log_event("ephemeris_downloading", url=url, destination=str(destination))
    try:
        with httpx.stream("GET", url, timeout=httpx.Timeout(120.0, connect=30.0)) as response:
            response.raise_for_status()
            received = 0
            with partial.open("wb") as handle:
                for chunk in response.iter_bytes(chunk_size=1 << 20):
                    handle.write(chunk)
                    received += len(chunk)
    except httpx.HTTPError as exc:
        partial.unlink(missing_ok=True)
        raise EphemerisAcquisitionError(f"Failed to download ephemeris from {url}: {exc}") from exc
    partial.replace(destination)
    _log_event("ephemeris_downloaded", destination=str(destination), bytes=received)
    return destination


def kernel_directory(path: Path) -> Path:
    """Return a directory holding at least one ``.bsp`` kernel for *path*.

    *path* may name a kernel file, a directory, or a kernel file that does
    not exist yet; missing kernels are downloaded into place.
    """

    if path.is_file():
        if path.suffix.lower() != ".bsp":
            raise EphemerisAcquisitionError(f"Ephemeris file must have .bsp extension: {path}")
        return path.parent
    if path.suffix.lower() == ".bsp":
        return _download_kernel(path).parent
    if path.exists() and not path.is_dir():
        raise EphemerisAcquisitionError(f"Ephemeris path is not a file or directory: {path}")
    if not any(path.glob("*.bsp")):
        _download_kernel(path / DEFAULT_EPHEMERIS_FILENAME)
    return path


def resolve_ephemeris_source() -> Path:
    """Return the kernel directory selected by ``DE_BSP`` or the cache.

    ``DE_BSP`` may point at a kernel or a directory of kernels. Without it
    the kernel lives in ``DE_BSP_CACHE_DIR`` (default ``~/.almanac/kernels``).
    """

    override = os.environ.get("DE_BSP")
    if override:
        return kernel_directory(Path(override).expanduser())

    cache_root = Path(os.environ.get("DE_BSP_CACHE_DIR", str(DEFAULT_CACHE_DIR))).expanduser()
    return kernel_directory(cache_root / DEFAULT_EPHEMERIS_FILENAME)

"""JPL DE440/DE441 ephemeris through :mod:`spiceypy`."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import RLock
from typing import List, Optional, Tuple, Union

import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

from .ephemeris import ApparentLongitudeEphemeris, Longitude, longitude_and_rate
from .errors import EphemerisAcquisitionError, EphemerisUnavailable
from .kernels import kernel_files, resolve_kernel_path

__all__ = ["SpiceEphemeris", "load_kernels", "loaded_kernels", "unload_kernels"]

LOGGER = logging.getLogger(__name__)

AU_KM = 149_597_870.7
SEC_PER_DAY = 86400.0

_LOADED_FILES: List[str] = []
# CSPICE keeps global state and is not reentrant.
_SPICE_LOCK = RLock()


def loaded_kernels() -> List[str]:
    return list(_LOADED_FILES)


def load_kernels(source: Union[str, Path]) -> List[str]:
    """Furnish every ``.bsp`` kernel at *source* not furnished yet.

    Parameters
    ----------
    source:
        A kernel file or a directory holding ``.bsp`` files.

    Returns
    -------
    list[str]
        Names of all kernels loaded so far.

    Raises
    ------
    EphemerisAcquisitionError
        If *source* is missing, holds no kernels or CSPICE rejects one.
    """

    path = Path(source).expanduser()
    if not path.exists():
        raise EphemerisAcquisitionError(f"Kernel path not found: {path}")

    with _SPICE_LOCK:
        files = kernel_files(path)
        if not files:
            raise EphemerisAcquisitionError(f"No .bsp kernel files found in directory: {path}")

        added: List[str] = []
        for kernel in files:
            resolved = str(kernel.resolve())
            if resolved in _LOADED_FILES:
                continue
            try:
                spice.furnsh(resolved)
            except SpiceyError as exc:
                raise EphemerisAcquisitionError(f"Failed to load kernel '{kernel}': {exc}") from exc
            _LOADED_FILES.append(resolved)
            added.append(kernel.name)

        if added:
            LOGGER.info(json.dumps({"event": "kernel_loaded", "files": added}))
        return [Path(name).name for name in _LOADED_FILES]


def unload_kernels() -> None:
    with _SPICE_LOCK:
        spice.kclear()
        _LOADED_FILES.clear()


class SpiceEphemeris(ApparentLongitudeEphemeris):
    """Geocentric apparent longitudes read from SPK kernels.

    The sun is corrected for light time and stellar aberration (``LT+S``),
    the moon for light time only.
    """

    name = "spice"

    def __init__(self, kernel_path: Optional[Union[str, Path]] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.kernel_path = Path(kernel_path) if kernel_path is not None else resolve_kernel_path()
        self.files = load_kernels(self.kernel_path)

    @staticmethod
    def _state(target: str, jd_tt: float, correction: str) -> Tuple[np.ndarray, np.ndarray]:
        et = (jd_tt - 2451545.0) * SEC_PER_DAY
        try:
            with _SPICE_LOCK:
                state, _ = spice.spkezr(target, et, "J2000", correction, "EARTH")
        except SpiceyError as exc:
            raise EphemerisUnavailable(
                f"No {target.lower()} state at JD {jd_tt:.5f}: {exc}"
            ) from exc
        state = np.asarray(state, dtype=float)
        return state[:3] / AU_KM, state[3:] * (SEC_PER_DAY / AU_KM)

    def sun(self, jd_tt: float) -> Longitude:
        position, velocity = self._state("SUN", jd_tt, "LT+S")
        return longitude_and_rate(position, velocity, jd_tt)

    def moon(self, jd_tt: float) -> Longitude:
        position, velocity = self._state("MOON", jd_tt, "LT")
        return longitude_and_rate(position, velocity, jd_tt)

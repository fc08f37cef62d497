"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_KERNEL_URL = (
    "https://naif.jpl.nasa.gov/pub/naif/generic_kernels/spk/planets/de440.bsp"
)
DEFAULT_KERNEL_CACHE_DIR = Path.home() / ".lunisolar" / "kernels"
DEFAULT_UTC_OFFSET_HOURS = 8.0

PROVIDERS = ("erfa", "spice")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once from the process environment."""

    ephemeris: str = "erfa"
    utc_offset_hours: float = DEFAULT_UTC_OFFSET_HOURS
    kernel_path: Optional[Path] = None
    kernel_cache_dir: Path = DEFAULT_KERNEL_CACHE_DIR
    kernel_url: str = DEFAULT_KERNEL_URL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        ephemeris = env.get("LUNISOLAR_EPHEMERIS", "erfa").strip().lower()
        if ephemeris not in PROVIDERS:
            raise ValueError(
                f"LUNISOLAR_EPHEMERIS must be one of {', '.join(PROVIDERS)}: {ephemeris}"
            )

        raw_offset = env.get("LUNISOLAR_UTC_OFFSET", str(DEFAULT_UTC_OFFSET_HOURS))
        try:
            offset = float(raw_offset)
        except ValueError as exc:
            raise ValueError(f"LUNISOLAR_UTC_OFFSET is not a number: {raw_offset}") from exc
        if not -14.0 <= offset <= 14.0:
            raise ValueError("LUNISOLAR_UTC_OFFSET must be within ±14 hours")

        kernel = env.get("DE_BSP")
        return cls(
            ephemeris=ephemeris,
            utc_offset_hours=offset,
            kernel_path=Path(kernel).expanduser() if kernel else None,
            kernel_cache_dir=Path(
                env.get("DE_BSP_CACHE_DIR", str(DEFAULT_KERNEL_CACHE_DIR))
            ).expanduser(),
            kernel_url=env.get("DE_BSP_URL", DEFAULT_KERNEL_URL),
        )

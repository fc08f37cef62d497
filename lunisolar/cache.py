"""Insert-if-absent memo of built lunar years."""

from __future__ import annotations

import json
import logging
from threading import Lock
from typing import Callable, Dict, Iterable, List

from joblib import Parallel, delayed

from .lunar_year import LunarYear

__all__ = ["LunarYearCache"]

LOGGER = logging.getLogger(__name__)

Factory = Callable[[int], LunarYear]


class LunarYearCache:
    """Thread-safe map of lunar-year number to :class:`LunarYear`.

    A year is built at most once even when many threads ask for it at the
    same time; callers of the same year wait on a per-year lock.  A failed
    build leaves no entry behind.  Entries are never evicted: a process
    touches at most a few thousand years.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, LunarYear] = {}
        self._locks: Dict[int, Lock] = {}
        self._guard = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, year: object) -> bool:
        return year in self._entries

    def years(self) -> List[int]:
        with self._guard:
            return sorted(self._entries)

    def get(self, year: int):
        return self._entries.get(year)

    def get_or_build(self, year: int, factory: Factory) -> LunarYear:
        entry = self._entries.get(year)
        if entry is not None:
            return entry

        with self._guard:
            lock = self._locks.setdefault(year, Lock())

        with lock:
            entry = self._entries.get(year)
            if entry is None:
                entry = factory(year)
                with self._guard:
                    self._entries[year] = entry
                    self._locks.pop(year, None)
        return entry

    def prefetch(self, years: Iterable[int], factory: Factory, n_jobs: int = -1) -> List[LunarYear]:
        """Build every missing year of *years* on a thread pool."""

        wanted = list(dict.fromkeys(years))
        missing = [year for year in wanted if year not in self._entries]
        if missing:
            Parallel(n_jobs=n_jobs, prefer="threads")(
                delayed(self.get_or_build)(year, factory) for year in missing
            )
            LOGGER.info(
                json.dumps({"event": "lunar_years_prefetched", "years": missing, "n_jobs": n_jobs})
            )
        return [self._entries[year] for year in wanted]

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()
            self._locks.clear()

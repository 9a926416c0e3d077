"""Disk cache for normalized sports data.

One JSON file per (sport, season). The file's modification time is the
write timestamp, so there is no separate metadata. The cache is an
optimization only: read problems are treated as misses and write problems
are logged and dropped.
"""
import json
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


@dataclass
class CacheEntry:
    sport: str
    season: str
    payload: list[dict[str, Any]]
    written_at: float  # epoch seconds


class ResponseCache:
    """File-per-key cache with a fixed freshness window.

    Args:
        directory: Where cache files live (created on first write).
        ttl_seconds: Maximum age before an entry is stale.
        max_entries: Files kept after a sweep; oldest go first.
        clock: Wall-clock time source, comparable to file mtimes.
    """

    SUFFIX = ".json"

    def __init__(
        self,
        directory: Path | str,
        ttl_seconds: float = 6 * 3600,
        max_entries: int = 256,
        clock: Callable[[], float] = time.time,
    ):
        self.directory = Path(directory)
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock

    def path_for(self, sport: str, season: str) -> Path:
        """Deterministic file path for a key."""
        name = f"{_UNSAFE.sub('_', sport)}_{_UNSAFE.sub('_', str(season))}"
        return self.directory / f"{name}{self.SUFFIX}"

    def get(self, sport: str, season: str) -> Optional[CacheEntry]:
        """Return the fresh entry for (sport, season), or None."""
        path = self.path_for(sport, season)
        try:
            written_at = path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cache stat failed for %s: %s", path, e)
            return None

        if self._clock() - written_at > self.ttl_seconds:
            logger.debug("Cache stale for %s/%s", sport, season)
            return None

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Cache read failed for %s: %s", path, e)
            return None

        if not isinstance(payload, list):
            logger.warning("Cache file %s does not hold a list, ignoring", path)
            return None

        return CacheEntry(sport=sport, season=season, payload=payload, written_at=written_at)

    def put(self, sport: str, season: str, payload: list[dict[str, Any]]) -> None:
        """Store payload for (sport, season). Never raises."""
        path = self.path_for(sport, season)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            body = json.dumps(payload)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(body)
            os.replace(tmp_name, path)
            tmp_name = None
            logger.debug("Cached %d records for %s/%s", len(payload), sport, season)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Cache write failed for %s: %s", path, e)
            return
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

        self.sweep()

    def _entries(self) -> list[tuple[float, Path]]:
        entries = []
        for path in self.directory.glob(f"*{self.SUFFIX}"):
            try:
                entries.append((path.stat().st_mtime, path))
            except OSError:
                continue
        return entries

    def sweep(self) -> int:
        """Delete stale files, then the oldest beyond ``max_entries``.

        Returns the number of files removed.
        """
        try:
            entries = self._entries()
        except OSError as e:
            logger.warning("Cache sweep failed: %s", e)
            return 0

        now = self._clock()
        doomed = [p for mtime, p in entries if now - mtime > self.ttl_seconds]
        fresh = sorted(
            ((mtime, p) for mtime, p in entries if now - mtime <= self.ttl_seconds),
            reverse=True,
        )
        doomed.extend(p for _, p in fresh[self.max_entries:])

        removed = 0
        for path in doomed:
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.warning("Could not evict %s: %s", path, e)
        if removed:
            logger.info("Evicted %d cache files", removed)
        return removed

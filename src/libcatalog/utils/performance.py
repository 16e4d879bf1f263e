"""
Statement statistics and N+1 detection for store reads.

Resolving references one record at a time (each book's author, each copy's
book) shows up here as the same lookup statement running back to back with a
different id each time. The tracker warns once per statement when that
happens. Writes are not tracked; their timing is logged by ``time_call``.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

SLOW_QUERY_ENV_VAR = "LIBCATALOG_SLOW_QUERY_MS"

_TABLE_RE = re.compile(r'\b(?:FROM|INTO|UPDATE|TABLE(?: IF NOT EXISTS)?)\s+"?([A-Za-z_][\w]*)"?', re.I)
_READ_RE = re.compile(r"^\s*(?:SELECT|WITH)\b", re.I)


def resolve_slow_query_ms(*, default: int, override: int | None = None) -> int:
    """
    Pick the slow-statement threshold: explicit override, then the
    ``LIBCATALOG_SLOW_QUERY_MS`` environment variable, then ``default``.
    """
    if override is not None:
        return override
    raw = os.getenv(SLOW_QUERY_ENV_VAR)
    if not raw:
        return default
    try:
        return max(int(raw), 0)
    except ValueError:
        logging.getLogger("libcatalog.utils.performance").warning(
            "Ignoring invalid %s value %r", SLOW_QUERY_ENV_VAR, raw
        )
        return default


def table_of(sql: str) -> Optional[str]:
    match = _TABLE_RE.search(sql)
    return match.group(1) if match else None


def is_read(sql: str) -> bool:
    return bool(_READ_RE.match(sql))


@dataclass
class QueryStat:
    sql: str
    table: Optional[str]
    count: int = 0
    total_ms: float = 0.0
    # First few distinct parameter sets; bounded by the tracker's sample_size.
    samples: List[str] = field(default_factory=list)

    @property
    def average_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0

    def as_dict(self) -> dict[str, object]:
        return {
            "sql": self.sql,
            "table": self.table,
            "count": self.count,
            "total_ms": self.total_ms,
            "average_ms": self.average_ms,
            "samples": list(self.samples),
        }


@dataclass
class _Run:
    """Consecutive executions of one statement."""

    key: str
    length: int = 0
    varied: bool = False
    first_fingerprint: str = ""


class PerformanceTracker:
    def __init__(
        self,
        logger: logging.Logger,
        *,
        n_plus_one_threshold: int = 5,
        sample_size: int = 5,
    ) -> None:
        self.logger = logger
        self.n_plus_one_threshold = n_plus_one_threshold
        self.sample_size = sample_size
        self.stats: dict[str, QueryStat] = {}
        self._run: Optional[_Run] = None
        self._reported: set[str] = set()

    def record(self, sql: str, params: Sequence[object], elapsed_ms: float) -> None:
        if not is_read(sql):
            return
        key = " ".join(sql.split())
        stat = self.stats.get(key)
        if stat is None:
            stat = self.stats[key] = QueryStat(sql=key, table=table_of(key))
        stat.count += 1
        stat.total_ms += elapsed_ms

        fingerprint = self._fingerprint(params)
        if fingerprint and len(stat.samples) < self.sample_size and fingerprint not in stat.samples:
            stat.samples.append(fingerprint)

        run = self._advance_run(key, fingerprint)
        if self._looks_like_n_plus_one(run):
            self._reported.add(key)
            self.logger.warning(
                "Potential N+1 detected on %s: '%s' ran %s times in a row with varying params",
                stat.table or "unknown table",
                key if len(key) <= 80 else key[:77] + "...",
                run.length,
                extra={"sql": key, "count": run.length, "samples": list(stat.samples)},
            )

    def summary(self) -> List[dict[str, object]]:
        return [stat.as_dict() for stat in self.stats.values()]

    def reset(self) -> None:
        self.stats.clear()
        self._run = None
        self._reported.clear()

    def _advance_run(self, key: str, fingerprint: str) -> _Run:
        run = self._run
        if run is None or run.key != key:
            run = self._run = _Run(key=key, first_fingerprint=fingerprint)
        elif fingerprint != run.first_fingerprint:
            run.varied = True
        run.length += 1
        return run

    def _looks_like_n_plus_one(self, run: _Run) -> bool:
        return run.length >= self.n_plus_one_threshold and run.varied and run.key not in self._reported

    @staticmethod
    def _fingerprint(params: Sequence[object]) -> str:
        if not params:
            return ""
        return repr(tuple(tuple(value) if isinstance(value, list) else value for value in params))

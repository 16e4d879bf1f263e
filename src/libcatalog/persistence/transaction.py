"""
Write units for the entity store.

The outermost unit is a real transaction opened with the dialect's write
statement (``BEGIN IMMEDIATE`` / ``SERIALIZABLE``). Units opened inside it are
savepoints, so a failed inner unit discards only its own writes.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from ..adapters.base import DatabaseAdapter
from ..dialects.base import Dialect
from ..utils import get_logger


class TransactionError(RuntimeError):
    pass


@dataclass
class _Unit:
    savepoint: Optional[str]
    kinds: Set[str] = field(default_factory=set)


class TransactionManager:
    def __init__(
        self,
        adapter: DatabaseAdapter,
        dialect: Dialect,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.adapter = adapter
        self.dialect = dialect
        self.logger = logger or get_logger("persistence.transaction")
        self._units: List[_Unit] = []
        self._savepoint_ids = itertools.count(1)

    @property
    def depth(self) -> int:
        return len(self._units)

    @property
    def active(self) -> bool:
        return bool(self._units)

    def begin(self) -> None:
        if not self._units:
            self.adapter.begin()
            self._units.append(_Unit(savepoint=None))
            return
        if not self.dialect.capabilities.supports_savepoints:
            raise TransactionError(f"The {self.dialect.name} dialect cannot nest write units.")
        name = self.dialect.quote_identifier(f"unit_{next(self._savepoint_ids)}")
        self.adapter.execute(f"SAVEPOINT {name}")
        self._units.append(_Unit(savepoint=name))

    def record_write(self, kind: str) -> None:
        """Note that the innermost open unit wrote to ``kind``."""
        if self._units:
            self._units[-1].kinds.add(kind)

    def commit(self) -> None:
        unit = self._pop("commit")
        if unit.savepoint is not None:
            self.adapter.execute(f"RELEASE SAVEPOINT {unit.savepoint}")
            self._units[-1].kinds.update(unit.kinds)
            return
        self.adapter.commit()
        if unit.kinds:
            self.logger.debug("Committed writes to %s", ", ".join(sorted(unit.kinds)))

    def rollback(self) -> None:
        unit = self._pop("roll back")
        if unit.savepoint is None:
            self.adapter.rollback()
        else:
            self.adapter.execute(f"ROLLBACK TO SAVEPOINT {unit.savepoint}")
            self.adapter.execute(f"RELEASE SAVEPOINT {unit.savepoint}")
        if unit.kinds:
            self.logger.debug("Rolled back writes to %s", ", ".join(sorted(unit.kinds)))

    def discard(self) -> List[str]:
        """
        Forget every open unit without touching the connection (which is
        about to close). Returns the kinds that had uncommitted writes.
        """
        pending = sorted(set().union(*(unit.kinds for unit in self._units)))
        self._units.clear()
        return pending

    def _pop(self, action: str) -> _Unit:
        if not self._units:
            raise TransactionError(f"No open write unit to {action}.")
        return self._units.pop()

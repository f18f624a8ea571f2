"""
services.py

Collaborators the frame service talks to: the per-user win/loss/tie store and
the profile lookup used for display names. Both are created once per app and
handed to the request handlers.
"""

from __future__ import annotations
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, Dict

from game_logic import OUTCOME_LOSS, OUTCOME_TIE, OUTCOME_WIN

logger = logging.getLogger(__name__)

STAT_FIELDS = ("wins", "losses", "ties")
OUTCOME_FIELDS = {OUTCOME_WIN: "wins", OUTCOME_LOSS: "losses", OUTCOME_TIE: "ties"}


@dataclass(frozen=True)
class UserRecord:
    wins: int = 0
    losses: int = 0
    ties: int = 0

    @property
    def total_games(self) -> int:
        return self.wins + self.losses + self.ties


# -------------------------
# Stats store
# -------------------------
class StatsStore(ABC):
    @abstractmethod
    def get_record(self, fid: str) -> UserRecord:
        ...

    @abstractmethod
    def increment(self, fid: str, field: str, amount: int = 1) -> UserRecord:
        """Atomically add amount to one counter and return the new record."""

    @abstractmethod
    def transaction(self, fid: str, fn: Callable[[UserRecord], UserRecord]) -> UserRecord:
        """Atomically replace the record with fn(current record)."""

    def record_result(self, fid: str, outcome: str) -> UserRecord:
        if outcome not in OUTCOME_FIELDS:
            raise ValueError(f"unknown outcome {outcome!r}")
        record = self.increment(fid, OUTCOME_FIELDS[outcome])
        logger.info("Recorded %s for fid %s: %dW-%dL-%dT",
                    outcome, fid, record.wins, record.losses, record.ties)
        return record


class InMemoryStatsStore(StatsStore):
    """Process-local store; a single lock serialises every update."""

    def __init__(self):
        self._records: Dict[str, UserRecord] = {}
        self._lock = threading.Lock()

    def get_record(self, fid: str) -> UserRecord:
        with self._lock:
            return self._records.get(str(fid), UserRecord())

    def increment(self, fid: str, field: str, amount: int = 1) -> UserRecord:
        if field not in STAT_FIELDS:
            raise ValueError(f"field must be one of {STAT_FIELDS}")
        return self.transaction(
            fid, lambda rec: replace(rec, **{field: getattr(rec, field) + amount}))

    def transaction(self, fid: str, fn: Callable[[UserRecord], UserRecord]) -> UserRecord:
        key = str(fid)
        with self._lock:
            updated = fn(self._records.get(key, UserRecord()))
            if not isinstance(updated, UserRecord):
                raise TypeError("transaction function must return a UserRecord")
            self._records[key] = updated
            return updated


# -------------------------
# Profiles
# -------------------------
class ProfileLookup(ABC):
    def __init__(self, default_name: str = "Player"):
        self.default_name = default_name

    @abstractmethod
    def fetch_username(self, fid: str) -> str:
        ...

    def get_username(self, fid) -> str:
        """Display name for fid; falls back to the default name on any lookup failure."""
        if not fid:
            return self.default_name
        try:
            name = self.fetch_username(str(fid))
        except Exception as exc:  # any backend failure
            logger.warning("Username lookup failed for fid %s: %s", fid, exc)
            return self.default_name
        return name or self.default_name


class StaticProfileLookup(ProfileLookup):
    def __init__(self, default_name: str = "Player", names: Dict[str, str] = None):
        super().__init__(default_name)
        self.names = dict(names or {})

    def fetch_username(self, fid: str) -> str:
        return self.names.get(fid, self.default_name)

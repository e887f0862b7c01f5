"""In-memory league store used by the roster and scoring components.

A production deployment swaps this for a database-backed store exposing the
same methods. Rosters, rounds and matches are handed out as copies; changes
only take effect through the ``save_*`` methods.
"""

import dataclasses
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional

from src.roster_manager.errors import ConcurrentModificationError, StorageError
from src.roster_manager.models import (
    Athlete,
    LeagueRuleset,
    Match,
    MatchStatistic,
    Roster,
    Round,
    RoundSettlementRecord,
    Transfer,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def _copy_roster(roster: Roster) -> Roster:
    # Slots are copied, athletes stay shared with the catalog.
    return dataclasses.replace(
        roster, slots=[dataclasses.replace(slot) for slot in roster.slots]
    )


class InMemoryRepository:
    """Dict-backed tables with undo-log transactions and per-league locks."""

    def __init__(self):
        self._tables: Dict[str, dict] = {
            "rulesets": {},
            "athletes": {},
            "rosters": {},
            "rounds": {},
            "matches": {},
            "statistics": {},
            "transfers": {},
            "settlements": {},
        }
        # Guards every table read and write; held only for the duration of one call.
        self._lock = threading.RLock()
        self._local = threading.local()
        self._league_locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Transactions and locks
    # ------------------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator["InMemoryRepository"]:
        """Run a block atomically: if it raises, its writes are undone.

        Only writes made by the calling thread inside the block are
        recorded, so commits from other threads survive a rollback.
        Nested transactions join the outermost one.
        """
        if getattr(self._local, "undo", None) is not None:
            yield self
            return

        self._local.undo = []
        try:
            yield self
        except BaseException:
            self._rollback(self._local.undo)
            raise
        finally:
            self._local.undo = None

    def _rollback(self, undo: list):
        with self._lock:
            for table, key, previous in reversed(undo):
                if previous is _MISSING:
                    self._tables[table].pop(key, None)
                else:
                    self._tables[table][key] = previous
        logger.warning("Transaction rolled back (%d writes undone)", len(undo))

    def _put(self, table: str, key, value):
        with self._lock:
            rows = self._tables[table]
            undo = getattr(self._local, "undo", None)
            if undo is not None:
                undo.append((table, key, rows.get(key, _MISSING)))
            rows[key] = value
        return value

    def _get(self, table: str, key):
        with self._lock:
            return self._tables[table].get(key)

    def _rows(self, table: str) -> list:
        with self._lock:
            return list(self._tables[table].values())

    @contextmanager
    def league_lock(self, league_id: str) -> Iterator[None]:
        """Serialize roster mutations, round transitions and settlement per league."""
        with self._registry_lock:
            lock = self._league_locks.setdefault(league_id, threading.RLock())
        with lock:
            yield

    # ------------------------------------------------------------------
    # Rulesets
    # ------------------------------------------------------------------
    def add_ruleset(self, ruleset: LeagueRuleset) -> LeagueRuleset:
        return self._put("rulesets", ruleset.league_id, ruleset)

    def get_ruleset(self, league_id: str) -> Optional[LeagueRuleset]:
        return self._get("rulesets", league_id)

    # ------------------------------------------------------------------
    # Athletes
    # ------------------------------------------------------------------
    def add_athlete(self, athlete: Athlete) -> Athlete:
        return self._put("athletes", athlete.athlete_id, athlete)

    def get_athlete(self, athlete_id: str) -> Optional[Athlete]:
        return self._get("athletes", athlete_id)

    def list_athletes(self, league_id: str, active_only: bool = True) -> List[Athlete]:
        return [
            a
            for a in self._rows("athletes")
            if a.league_id == league_id and (a.is_active or not active_only)
        ]

    def find_league_athlete(self, athlete_id: str, league_id: str) -> Optional[Athlete]:
        """Active athlete *athlete_id* if it belongs to *league_id*."""
        athlete = self.get_athlete(athlete_id)
        if athlete is None or athlete.league_id != league_id or not athlete.is_active:
            return None
        return athlete

    # ------------------------------------------------------------------
    # Rosters
    # ------------------------------------------------------------------
    def add_roster(self, roster: Roster) -> Roster:
        with self._lock:
            if self.find_roster(roster.user_id, roster.league_id) is not None:
                raise StorageError(
                    f"User {roster.user_id} already has a roster in league {roster.league_id}"
                )
            self._put("rosters", roster.roster_id, _copy_roster(roster))
        return _copy_roster(roster)

    def get_roster(self, roster_id: str) -> Optional[Roster]:
        roster = self._get("rosters", roster_id)
        return _copy_roster(roster) if roster else None

    def find_roster(self, user_id: str, league_id: str) -> Optional[Roster]:
        for roster in self._rows("rosters"):
            if roster.user_id == user_id and roster.league_id == league_id:
                return _copy_roster(roster)
        return None

    def list_rosters(self, league_id: str) -> List[Roster]:
        return [_copy_roster(r) for r in self._rows("rosters") if r.league_id == league_id]

    def save_roster(self, roster: Roster) -> Roster:
        """Compare-and-swap write keyed on ``roster.version``.

        Raises:
            ConcurrentModificationError: if the stored version moved on
                since *roster* was read.
        """
        with self._lock:
            stored = self._get("rosters", roster.roster_id)
            if stored is None:
                raise StorageError(f"Roster {roster.roster_id} does not exist")
            if stored.version != roster.version:
                raise ConcurrentModificationError(
                    f"Roster {roster.roster_id} changed concurrently "
                    f"(stored version {stored.version}, write based on {roster.version})"
                )
            updated = _copy_roster(roster)
            updated.version = roster.version + 1
            self._put("rosters", roster.roster_id, updated)
        return _copy_roster(updated)

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------
    def add_round(self, round_: Round) -> Round:
        self._put("rounds", round_.round_id, dataclasses.replace(round_))
        return dataclasses.replace(round_)

    def get_round(self, round_id: str) -> Optional[Round]:
        round_ = self._get("rounds", round_id)
        return dataclasses.replace(round_) if round_ else None

    def list_rounds(self, league_id: str) -> List[Round]:
        rounds = [r for r in self._rows("rounds") if r.league_id == league_id]
        return [dataclasses.replace(r) for r in sorted(rounds, key=lambda r: r.sequence)]

    def find_open_rounds(self, league_id: str) -> List[Round]:
        """Rounds of *league_id* accepting transfers, lowest sequence first."""
        return [
            r for r in self.list_rounds(league_id)
            if r.transfers_open and not r.is_completed
        ]

    def next_round(self, round_: Round) -> Optional[Round]:
        later = [r for r in self.list_rounds(round_.league_id) if r.sequence > round_.sequence]
        return later[0] if later else None

    def save_round(self, round_: Round) -> Round:
        with self._lock:
            if self._get("rounds", round_.round_id) is None:
                raise StorageError(f"Round {round_.round_id} does not exist")
            self._put("rounds", round_.round_id, dataclasses.replace(round_))
        return dataclasses.replace(round_)

    # ------------------------------------------------------------------
    # Matches and statistics
    # ------------------------------------------------------------------
    def add_match(self, match: Match) -> Match:
        self._put("matches", match.match_id, dataclasses.replace(match))
        return dataclasses.replace(match)

    def get_match(self, match_id: str) -> Optional[Match]:
        match = self._get("matches", match_id)
        return dataclasses.replace(match) if match else None

    def list_matches(self, round_id: str) -> List[Match]:
        return [dataclasses.replace(m) for m in self._rows("matches") if m.round_id == round_id]

    def save_match(self, match: Match) -> Match:
        with self._lock:
            if self._get("matches", match.match_id) is None:
                raise StorageError(f"Match {match.match_id} does not exist")
            self._put("matches", match.match_id, dataclasses.replace(match))
        return dataclasses.replace(match)

    def upsert_statistic(self, stat: MatchStatistic) -> MatchStatistic:
        """Insert or replace the statistic keyed by (athlete, match)."""
        return self._put("statistics", (stat.athlete_id, stat.match_id), stat)

    def get_statistic(self, athlete_id: str, match_id: str) -> Optional[MatchStatistic]:
        return self._get("statistics", (athlete_id, match_id))

    def list_statistics(self, match_ids: Iterable[str]) -> List[MatchStatistic]:
        wanted = set(match_ids)
        return [s for s in self._rows("statistics") if s.match_id in wanted]

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------
    def add_transfer(self, transfer: Transfer) -> Transfer:
        return self._put("transfers", transfer.transfer_id, transfer)

    def count_transfers(self, roster_id: str, round_id: str) -> int:
        return sum(
            1 for t in self._rows("transfers")
            if t.roster_id == roster_id and t.round_id == round_id
        )

    def list_transfers(
        self, roster_id: Optional[str] = None, round_id: Optional[str] = None
    ) -> List[Transfer]:
        return [
            t for t in self._rows("transfers")
            if (roster_id is None or t.roster_id == roster_id)
            and (round_id is None or t.round_id == round_id)
        ]

    # ------------------------------------------------------------------
    # Settlement records
    # ------------------------------------------------------------------
    def upsert_settlement(self, record: RoundSettlementRecord) -> RoundSettlementRecord:
        return self._put("settlements", (record.roster_id, record.round_id), record)

    def get_settlement(self, roster_id: str, round_id: str) -> Optional[RoundSettlementRecord]:
        return self._get("settlements", (roster_id, round_id))

    def list_settlements(
        self, roster_id: Optional[str] = None, round_id: Optional[str] = None
    ) -> List[RoundSettlementRecord]:
        return [
            r for r in self._rows("settlements")
            if (roster_id is None or r.roster_id == roster_id)
            and (round_id is None or r.round_id == round_id)
        ]

    def cumulative_points(self, roster_id: str) -> float:
        """Total points of a roster, derived from its settlement records."""
        return sum(r.points for r in self.list_settlements(roster_id=roster_id))

    # ------------------------------------------------------------------
    # Bulk access (persistence)
    # ------------------------------------------------------------------
    def league_tables(self, league_id: str) -> Dict[str, list]:
        """Every record belonging to *league_id*, grouped by table."""
        with self._lock:
            rounds = self.list_rounds(league_id)
            round_ids = {r.round_id for r in rounds}
            matches = [m for m in self._rows("matches") if m.round_id in round_ids]
            rosters = self.list_rosters(league_id)
            roster_ids = {r.roster_id for r in rosters}
            return {
                "athletes": self.list_athletes(league_id, active_only=False),
                "rosters": rosters,
                "rounds": rounds,
                "matches": matches,
                "statistics": self.list_statistics(m.match_id for m in matches),
                "transfers": [t for t in self._rows("transfers") if t.roster_id in roster_ids],
                "settlements": [
                    s for s in self._rows("settlements") if s.roster_id in roster_ids
                ],
            }

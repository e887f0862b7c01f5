"""Round settlement - aggregate starter points, rank rosters, close the round.

Cumulative totals are never stored; they are the sum of a roster's
settlement records, so settling the same round again is safe.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from src.roster_manager.errors import (
    FailureKind,
    OperationResult,
    SettlementConsistencyError,
)
from src.roster_manager.models import Roster, RoundSettlementRecord
from src.roster_manager.repository import InMemoryRepository
from src.roster_manager.transfer_window import TransferWindow
from src.scoring_engine.config import CAPTAIN_MULTIPLIERS

logger = logging.getLogger(__name__)


@dataclass
class SettlementEntry:
    roster_id: str
    round_points: float
    rank: int
    total_points: float = 0


def rank_rosters(points_by_roster: Dict[str, float]) -> List[SettlementEntry]:
    """Order by points descending, then roster id; ranks run 1..N with no shared ranks."""
    ordered = sorted(points_by_roster.items(), key=lambda kv: (-kv[1], kv[0]))
    return [
        SettlementEntry(roster_id=roster_id, round_points=points, rank=i + 1)
        for i, (roster_id, points) in enumerate(ordered)
    ]


class RoundSettlement:
    """Completes rounds and answers standings queries."""

    def __init__(self, repository: InMemoryRepository):
        self.repository = repository
        self.window = TransferWindow(repository)

    def _athlete_points(self, round_id: str) -> Dict[str, float]:
        """Points per athlete across every match of the round."""
        match_ids = [m.match_id for m in self.repository.list_matches(round_id)]
        totals: Dict[str, float] = defaultdict(float)
        for stat in self.repository.list_statistics(match_ids):
            totals[stat.athlete_id] += stat.points
        return totals

    @staticmethod
    def _starter_points(roster: Roster, athlete_points: Dict[str, float]) -> float:
        return sum(athlete_points.get(slot.athlete_id, 0) for slot in roster.starters())

    def settle_round(self, round_id: str) -> OperationResult:
        """Score every roster in the round's league and mark the round settled.

        Returns:
            OperationResult carrying the ranked SettlementEntry list.

        Raises:
            SettlementConsistencyError: if writing the settlement failed;
                nothing from the attempt is kept.
        """
        round_ = self.repository.get_round(round_id)
        if round_ is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"Round {round_id} not found")

        with self.repository.league_lock(round_.league_id):
            round_ = self.repository.get_round(round_id)
            was_completed = round_.is_completed
            if was_completed:
                logger.info("Round %d already settled; recomputing", round_.sequence)

            rosters = self.repository.list_rosters(round_.league_id)
            athlete_points = self._athlete_points(round_id)
            points_by_roster = {
                r.roster_id: self._starter_points(r, athlete_points) for r in rosters
            }
            entries = rank_rosters(points_by_roster)

            try:
                with self.repository.transaction():
                    for entry in entries:
                        self.repository.upsert_settlement(
                            RoundSettlementRecord(
                                roster_id=entry.roster_id,
                                round_id=round_id,
                                points=entry.round_points,
                                rank=entry.rank,
                            )
                        )
                    round_.is_completed = True
                    round_.transfers_open = False
                    self.repository.save_round(round_)
                    # Re-settling leaves the next round's window as the admin set it.
                    if not was_completed:
                        self.window.open_next_round(round_)
            except Exception as e:
                logger.exception("Settlement of round %s failed; rolled back", round_id)
                raise SettlementConsistencyError(
                    f"Settlement of round {round_id} failed and was rolled back: {e}"
                ) from e

            for entry in entries:
                entry.total_points = self.repository.cumulative_points(entry.roster_id)

        logger.info(
            "Settled round %d (league %s): %d rosters, top score %s",
            round_.sequence, round_.league_id, len(entries),
            entries[0].round_points if entries else "n/a",
        )
        return OperationResult.success(entries)

    # ------------------------------------------------------------------
    # Standings
    # ------------------------------------------------------------------
    def league_standings(self, league_id: str) -> List[SettlementEntry]:
        """Rank rosters by cumulative points over all settled rounds.

        ``round_points`` holds the latest settled round's points.
        """
        rosters = self.repository.list_rosters(league_id)
        settled = [r for r in self.repository.list_rounds(league_id) if r.is_completed]
        latest = settled[-1].round_id if settled else None

        totals = {r.roster_id: self.repository.cumulative_points(r.roster_id) for r in rosters}
        ordered = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))

        standings = []
        for i, (roster_id, total) in enumerate(ordered):
            record = self.repository.get_settlement(roster_id, latest) if latest else None
            standings.append(
                SettlementEntry(
                    roster_id=roster_id,
                    round_points=record.points if record else 0,
                    rank=i + 1,
                    total_points=total,
                )
            )
        return standings

    def round_history(self, roster_id: str) -> Optional[List[Dict]]:
        """Per-round points and rank for a roster.

        Settled rounds report stored values; open rounds report live
        points and rank computed from the current statistics.
        """
        roster = self.repository.get_roster(roster_id)
        if roster is None:
            return None

        history = []
        league_rosters: Optional[List[Roster]] = None
        for round_ in self.repository.list_rounds(roster.league_id):
            record = self.repository.get_settlement(roster_id, round_.round_id)
            if record is not None:
                points, rank = record.points, record.rank
            else:
                if league_rosters is None:
                    league_rosters = self.repository.list_rosters(roster.league_id)
                athlete_points = self._athlete_points(round_.round_id)
                live = rank_rosters(
                    {r.roster_id: self._starter_points(r, athlete_points) for r in league_rosters}
                )
                mine = next(e for e in live if e.roster_id == roster_id)
                points, rank = mine.round_points, mine.rank

            history.append(
                {
                    "round_id": round_.round_id,
                    "sequence": round_.sequence,
                    "name": round_.name,
                    "is_completed": round_.is_completed,
                    "round_points": points,
                    "rank": rank,
                }
            )
        return history

    def round_standings(self, round_id: str) -> Optional[List[SettlementEntry]]:
        """Stored results of one settled round, best rank first.

        Returns None for an unknown round and an empty list for a round
        that has not been settled.
        """
        if self.repository.get_round(round_id) is None:
            return None
        records = sorted(
            self.repository.list_settlements(round_id=round_id),
            key=lambda r: (r.rank is None, r.rank or 0, r.roster_id),
        )
        return [
            SettlementEntry(
                roster_id=r.roster_id,
                round_points=r.points,
                rank=r.rank,
                total_points=self.repository.cumulative_points(r.roster_id),
            )
            for r in records
        ]

    def round_points(self, roster_id: str, round_id: str) -> Optional[Dict]:
        """Per-starter breakdown of a roster's round with captain multipliers.

        The multiplied total is a view for the roster owner; settlement
        records keep the plain starter sum.
        """
        roster = self.repository.get_roster(roster_id)
        round_ = self.repository.get_round(round_id)
        if roster is None or round_ is None:
            return None

        athlete_points = self._athlete_points(round_id)
        players = []
        for slot in roster.starters():
            base = athlete_points.get(slot.athlete_id, 0)
            multiplier = CAPTAIN_MULTIPLIERS.get(slot.captain_type, 1)
            players.append(
                {
                    "athlete_id": slot.athlete_id,
                    "name": slot.athlete.name,
                    "position": slot.athlete.position,
                    "real_team_id": slot.athlete.real_team_id,
                    "captain_type": slot.captain_type,
                    "base_points": base,
                    "multiplier": multiplier,
                    "points": base * multiplier,
                }
            )

        record = self.repository.get_settlement(roster_id, round_id)
        return {
            "roster_id": roster_id,
            "round_id": round_id,
            "round_points": sum(p["points"] for p in players),
            "rank": record.rank if record else None,
            "players": players,
        }

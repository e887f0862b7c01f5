"""Recording match results and per-athlete statistics."""

import logging
from typing import Dict, Iterable, Mapping, Optional

from src.roster_manager.errors import FailureKind, OperationResult
from src.roster_manager.models import MatchStatistic
from src.roster_manager.repository import InMemoryRepository
from src.scoring_engine.config import COMPLETED_STATUS
from src.scoring_engine.points import DEFAULT_POINTS, PointsConfig, compute_points

logger = logging.getLogger(__name__)

_COUNTER_FIELDS = (
    "minutes_played",
    "goals",
    "assists",
    "yellow_cards",
    "red_cards",
    "penalty_saves",
    "bonus_points",
)


class MatchStatsRecorder:
    """Scores raw statistics and upserts them by (athlete, match)."""

    def __init__(
        self,
        repository: InMemoryRepository,
        points_config: Optional[PointsConfig] = None,
    ):
        self.repository = repository
        self.points_config = points_config or DEFAULT_POINTS

    def record_match_result(
        self,
        match_id: str,
        home_score: int,
        away_score: int,
        status: str = COMPLETED_STATUS,
    ) -> OperationResult:
        match = self.repository.get_match(match_id)
        if match is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"Match {match_id} not found")

        match.home_score = int(home_score)
        match.away_score = int(away_score)
        match.status = status
        self.repository.save_match(match)

        logger.info(
            "Match %s result: %s %d - %d %s (%s)",
            match_id, match.home_team_id, match.home_score,
            match.away_score, match.away_team_id, status,
        )
        return OperationResult.success(match)

    def record_statistics(
        self, match_id: str, raw_stats: Iterable[Mapping]
    ) -> OperationResult:
        """Score and store statistics for one match.

        Each entry needs ``athlete_id``; missing counters default to 0.
        A clean sheet is inferred when the athlete played and the
        opposing team scored nothing. Unknown athletes are skipped.

        Returns:
            OperationResult carrying the stored MatchStatistic list.
        """
        match = self.repository.get_match(match_id)
        if match is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"Match {match_id} not found")

        scored = []
        skipped = []
        for raw in raw_stats:
            athlete = self.repository.get_athlete(str(raw["athlete_id"]))
            if athlete is None:
                skipped.append(raw["athlete_id"])
                continue

            counters: Dict[str, float] = {
                name: raw.get(name) or 0 for name in _COUNTER_FIELDS
            }
            conceded = match.opponent_score(athlete.real_team_id)
            clean_sheet = bool(raw.get("clean_sheet")) or (
                counters["minutes_played"] > 0 and conceded == 0
            )

            stat = MatchStatistic(
                athlete_id=athlete.athlete_id,
                match_id=match_id,
                clean_sheet=clean_sheet,
                **counters,
            )
            stat.points = (
                compute_points(stat, athlete.position, self.points_config)
                + stat.bonus_points
            )
            scored.append(stat)

        if skipped:
            logger.warning(
                "Skipped %d statistics for unknown athletes in match %s: %s",
                len(skipped), match_id, skipped,
            )

        with self.repository.transaction():
            stored = [self.repository.upsert_statistic(stat) for stat in scored]

        logger.info("Recorded %d statistics for match %s", len(stored), match_id)
        return OperationResult.success(stored)

from src.scoring_engine.match_stats import MatchStatsRecorder
from src.scoring_engine.points import DEFAULT_POINTS, PointsConfig, compute_points
from src.scoring_engine.settlement import RoundSettlement, SettlementEntry, rank_rosters

__all__ = [
    "DEFAULT_POINTS",
    "MatchStatsRecorder",
    "PointsConfig",
    "RoundSettlement",
    "SettlementEntry",
    "compute_points",
    "rank_rosters",
]

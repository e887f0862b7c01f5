"""Import an athlete catalog and match statistics into a saved league.

Usage:
    python -m src.data_pipeline.run_update <league_id> <athletes_csv> [stats_csv] [data_dir]

Examples:
    python -m src.data_pipeline.run_update ramadan-2026 athletes.csv
    python -m src.data_pipeline.run_update ramadan-2026 athletes.csv round3_stats.csv /path/to/csvs
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from src.data_pipeline.cleaning import DataCleaner
from src.data_pipeline.config import RAW_DATA_DIR
from src.data_pipeline.ingestion import LeagueDataIngester
from src.logging_config import setup_logging
from src.roster_manager.models import LeagueRuleset
from src.roster_manager.repository import InMemoryRepository
from src.roster_manager.state_persistence import StatePersistence
from src.scoring_engine.match_stats import MatchStatsRecorder
from src.scoring_engine.points import PointsConfig

logger = logging.getLogger(__name__)


def run_import(
    league_id: str,
    athletes_file: str,
    stats_file: Optional[str] = None,
    data_dir: Optional[Path] = None,
    storage_dir: Optional[Path] = None,
    points_config: Optional[PointsConfig] = None,
) -> Path:
    """Load a league, merge in athletes (and statistics), and save it.

    A league with no saved state starts from the default ruleset.

    Returns:
        Path to the saved league file.

    Raises:
        FileNotFoundError: If the data directory doesn't exist.
    """
    data_dir = data_dir or RAW_DATA_DIR
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    persistence = StatePersistence(storage_dir)
    repository = persistence.load_league(league_id)
    if repository is None:
        logger.info("No saved state for league %s; starting with default ruleset", league_id)
        repository = InMemoryRepository()
        repository.add_ruleset(LeagueRuleset(league_id=league_id))

    ingester = LeagueDataIngester(data_dir)
    cleaner = DataCleaner()

    # 1. Athletes
    logger.info("Step 1/2: Importing athletes...")
    athletes = cleaner.clean_athletes(ingester.read_athletes(athletes_file), league_id)
    for athlete in athletes:
        repository.add_athlete(athlete)

    # 2. Statistics
    if stats_file:
        logger.info("Step 2/2: Recording match statistics...")
        recorder = MatchStatsRecorder(repository, points_config)
        grouped = cleaner.clean_match_stats(ingester.read_match_stats(stats_file))
        for match_id, raw_stats in grouped.items():
            result = recorder.record_statistics(match_id, raw_stats)
            if not result.ok:
                logger.warning("Skipping statistics for match %s: %s", match_id, result.failure.reason)
    else:
        logger.info("Step 2/2: No statistics file given, skipping")

    output = persistence.save_league(repository, league_id)
    logger.info(
        "Import complete! %d athletes in league %s",
        len(repository.list_athletes(league_id, active_only=False)), league_id,
    )
    return output


if __name__ == "__main__":
    setup_logging()

    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(2)

    league_id = sys.argv[1]
    athletes_file = sys.argv[2]
    stats_file = sys.argv[3] if len(sys.argv) > 3 else None
    data_dir = Path(sys.argv[4]) if len(sys.argv) > 4 else None

    try:
        output = run_import(league_id, athletes_file, stats_file, data_dir)
        print(f"Import complete: {output}")
    except Exception:
        logger.exception("Import failed")
        sys.exit(1)

"""Settle a round of a saved league and print the standings.

Usage:
    python -m src.scoring_engine.run_settlement <league_id> <round_sequence> [storage_dir]
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from src.logging_config import setup_logging
from src.roster_manager.state_persistence import StatePersistence
from src.scoring_engine.settlement import RoundSettlement, SettlementEntry

logger = logging.getLogger(__name__)


def run_settlement(
    league_id: str,
    round_sequence: int,
    storage_dir: Optional[Path] = None,
) -> List[SettlementEntry]:
    """Settle round *round_sequence* of *league_id* and save the league.

    Raises:
        LookupError: If the league or round doesn't exist.
        SettlementConsistencyError: If the settlement was rolled back.
    """
    persistence = StatePersistence(storage_dir)
    repository = persistence.load_league(league_id)
    if repository is None:
        raise LookupError(f"No saved league {league_id}")

    round_ = next(
        (r for r in repository.list_rounds(league_id) if r.sequence == round_sequence),
        None,
    )
    if round_ is None:
        raise LookupError(f"League {league_id} has no round {round_sequence}")

    result = RoundSettlement(repository).settle_round(round_.round_id)
    if not result.ok:
        raise LookupError(result.failure.reason)

    persistence.save_league(repository, league_id)
    return result.value


if __name__ == "__main__":
    setup_logging()

    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(2)

    league_id = sys.argv[1]
    round_sequence = int(sys.argv[2])
    storage_dir = Path(sys.argv[3]) if len(sys.argv) > 3 else None

    try:
        entries = run_settlement(league_id, round_sequence, storage_dir)
    except Exception:
        logger.exception("Settlement failed")
        sys.exit(1)

    for entry in entries:
        print(
            f"{entry.rank:>3}. {entry.roster_id}  "
            f"round {entry.round_points:g}  total {entry.total_points:g}"
        )

"""Tests for src.scoring_engine.run_settlement (settle a saved league)."""

import pytest

from src.roster_manager.models import RoundState
from src.roster_manager.state_persistence import StatePersistence
from src.scoring_engine.match_stats import MatchStatsRecorder
from src.scoring_engine.run_settlement import run_settlement

LEAGUE_ID = "test-league"


@pytest.fixture
def saved_league(tmp_path, repository, roster):
    recorder = MatchStatsRecorder(repository)
    recorder.record_match_result("m1", 0, 3)
    recorder.record_statistics(
        "m1",
        [
            {"athlete_id": "fwd1", "minutes_played": 90, "goals": 2},
            {"athlete_id": "mid3", "minutes_played": 90, "assists": 1},
        ],
    )
    StatePersistence(tmp_path).save_league(repository, LEAGUE_ID)
    return tmp_path


class TestRunSettlement:
    def test_settles_and_saves(self, saved_league, roster):
        entries = run_settlement(LEAGUE_ID, 1, saved_league)
        assert len(entries) == 1
        # fwd1 1 + 10, mid3 1 + 3 + 1 for the clean sheet
        assert entries[0].round_points == 16
        assert entries[0].total_points == 16

        repo = StatePersistence(saved_league).load_league(LEAGUE_ID)
        assert repo.get_round("r1").state == RoundState.SETTLED
        assert repo.get_round("r2").state == RoundState.OPEN
        assert repo.get_settlement(roster.roster_id, "r1").rank == 1

    def test_unknown_round(self, saved_league):
        with pytest.raises(LookupError, match="no round 7"):
            run_settlement(LEAGUE_ID, 7, saved_league)

    def test_unknown_league(self, tmp_path):
        with pytest.raises(LookupError, match="No saved league"):
            run_settlement("nowhere", 1, tmp_path)

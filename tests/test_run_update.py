"""Tests for src.data_pipeline.run_update (CSV import integration)."""

import json
import textwrap

import pytest

from src.data_pipeline.run_update import run_import
from src.roster_manager.state_persistence import StatePersistence

LEAGUE_ID = "test-league"

ATHLETES_CSV = textwrap.dedent("""\
    athlete_id,name,position,price,real_team_id
    gk1,Keeper One,GK,5.5,T1
    fwd1,Striker One,FWD,9,T5
    new1,Fresh Face,MID,6,T8
""")

STATS_CSV = textwrap.dedent("""\
    athlete_id,match_id,minutes_played,goals,assists
    gk1,m1,90,0,0
    fwd1,m1,90,1,1
    ghost,m1,90,3,0
    gk1,m99,90,0,0
""")


@pytest.fixture
def csv_dir(tmp_path):
    data_dir = tmp_path / "raw"
    data_dir.mkdir()
    (data_dir / "athletes.csv").write_text(ATHLETES_CSV)
    (data_dir / "stats.csv").write_text(STATS_CSV)
    return data_dir


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "leagues"


class TestRunImport:
    def test_new_league_uses_default_ruleset(self, csv_dir, storage_dir):
        output = run_import("fresh", "athletes.csv", data_dir=csv_dir, storage_dir=storage_dir)
        data = json.loads(output.read_text())
        assert data["ruleset"]["roster_size"] == 12
        assert data["ruleset"]["budget"] == 100.0
        assert {a["athlete_id"] for a in data["athletes"]} == {"gk1", "fwd1", "new1"}

    def test_positions_normalized(self, csv_dir, storage_dir):
        run_import("fresh", "athletes.csv", data_dir=csv_dir, storage_dir=storage_dir)
        repo = StatePersistence(storage_dir).load_league("fresh")
        assert repo.get_athlete("new1").position == "MIDFIELDER"

    def test_merges_into_saved_league(self, repository, csv_dir, storage_dir):
        StatePersistence(storage_dir).save_league(repository, LEAGUE_ID)
        run_import(LEAGUE_ID, "athletes.csv", "stats.csv", data_dir=csv_dir, storage_dir=storage_dir)

        repo = StatePersistence(storage_dir).load_league(LEAGUE_ID)
        assert repo.get_athlete("gk1").price == 5.5
        assert repo.get_athlete("def1") is not None
        assert repo.get_athlete("new1").league_id == LEAGUE_ID
        assert len(repo.list_rounds(LEAGUE_ID)) == 2

    def test_records_statistics(self, repository, csv_dir, storage_dir):
        StatePersistence(storage_dir).save_league(repository, LEAGUE_ID)
        run_import(LEAGUE_ID, "athletes.csv", "stats.csv", data_dir=csv_dir, storage_dir=storage_dir)

        repo = StatePersistence(storage_dir).load_league(LEAGUE_ID)
        assert repo.get_statistic("fwd1", "m1").points == 9
        assert repo.get_statistic("gk1", "m1").points == 1
        assert repo.get_statistic("ghost", "m1") is None
        assert repo.get_statistic("gk1", "m99") is None

    def test_missing_data_dir(self, tmp_path, storage_dir):
        with pytest.raises(FileNotFoundError):
            run_import("fresh", "athletes.csv", data_dir=tmp_path / "nope", storage_dir=storage_dir)

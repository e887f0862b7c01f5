"""Shared fixtures for the league engine test suite."""

import pytest

from src.data_pipeline.cleaning import DataCleaner
from src.roster_manager.models import Athlete, LeagueRuleset, Match, Round
from src.roster_manager.repository import InMemoryRepository
from src.roster_manager.roster_controller import RosterController

LEAGUE_ID = "test-league"

# athlete_id, position, price, real_team_id
CATALOG = [
    ("gk1", "GOALKEEPER", 5.0, "T1"),
    ("gk2", "GOALKEEPER", 4.5, "T2"),
    ("gk3", "GOALKEEPER", 4.0, "T3"),
    ("def1", "DEFENDER", 5.5, "T1"),
    ("def2", "DEFENDER", 5.0, "T2"),
    ("def3", "DEFENDER", 4.5, "T3"),
    ("def4", "DEFENDER", 4.5, "T4"),
    ("def5", "DEFENDER", 4.0, "T7"),
    ("mid1", "MIDFIELDER", 8.0, "T3"),
    ("mid2", "MIDFIELDER", 7.5, "T4"),
    ("mid3", "MIDFIELDER", 7.0, "T5"),
    ("mid4", "MIDFIELDER", 6.5, "T6"),
    ("mid5", "MIDFIELDER", 12.0, "T6"),
    ("mid6", "MIDFIELDER", 40.0, "T7"),
    ("fwd1", "FORWARD", 9.0, "T5"),
    ("fwd2", "FORWARD", 8.5, "T6"),
    ("fwd3", "FORWARD", 10.0, "T1"),
]

# A legal 12-player pick list: (athlete_id, is_starter). Costs 75.5.
DEFAULT_PICKS = [
    ("gk1", True), ("def1", True), ("def2", True), ("def3", True),
    ("mid1", True), ("mid2", True), ("mid3", True), ("fwd1", True),
    ("gk2", False), ("def4", False), ("mid4", False), ("fwd2", False),
]


def make_catalog(league_id=LEAGUE_ID):
    return [
        Athlete(
            athlete_id=athlete_id,
            name=f"Player {athlete_id}",
            position=position,
            price=price,
            real_team_id=team,
            league_id=league_id,
        )
        for athlete_id, position, price, team in CATALOG
    ]


# ------------------------------------------------------------------
# Lightweight factories – cheap to construct, no I/O
# ------------------------------------------------------------------

@pytest.fixture
def ruleset():
    return LeagueRuleset(league_id=LEAGUE_ID)


@pytest.fixture
def athletes():
    return {a.athlete_id: a for a in make_catalog()}


@pytest.fixture
def repository(ruleset):
    """League with the catalog, round 1 open, round 2 scheduled and one match each."""
    repo = InMemoryRepository()
    repo.add_ruleset(ruleset)
    for athlete in make_catalog():
        repo.add_athlete(athlete)

    repo.add_round(
        Round(
            round_id="r1", league_id=LEAGUE_ID, sequence=1, name="Round 1",
            transfers_open=True, opened_at="2026-03-01T12:00:00",
        )
    )
    repo.add_round(Round(round_id="r2", league_id=LEAGUE_ID, sequence=2, name="Round 2"))
    repo.add_match(Match(match_id="m1", round_id="r1", home_team_id="T1", away_team_id="T5"))
    repo.add_match(Match(match_id="m2", round_id="r2", home_team_id="T3", away_team_id="T6"))
    return repo


@pytest.fixture
def controller(repository):
    return RosterController(repository)


@pytest.fixture
def roster(controller):
    """A stored roster built from DEFAULT_PICKS for user 'alice'."""
    result = controller.create_roster("alice", LEAGUE_ID, "Alice XI", DEFAULT_PICKS)
    assert result.ok, result.failure
    return result.value


@pytest.fixture
def default_picks():
    return list(DEFAULT_PICKS)


@pytest.fixture(scope="module")
def cleaner():
    return DataCleaner()

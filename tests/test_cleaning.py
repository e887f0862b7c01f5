"""Tests for the athlete and statistic cleaning module.

The ``cleaner`` fixture is provided by conftest.py.
"""

import pandas as pd


def _athletes_df(**overrides):
    data = {
        "athlete_id": ["a1", "a2", "a3"],
        "name": ["Mo  Salah", "“Keeper” One", None],
        "position": ["FWD", "gk", "XY"],
        "price": [12.5, 5.0, 4.0],
        "real_team_id": ["T1", "T2", "T3"],
    }
    data.update(overrides)
    return pd.DataFrame(data)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

class TestNormalizePosition:
    def test_short_codes(self, cleaner):
        assert cleaner.normalize_position("GK") == "GOALKEEPER"
        assert cleaner.normalize_position("def") == "DEFENDER"
        assert cleaner.normalize_position("ST") == "FORWARD"

    def test_full_name(self, cleaner):
        assert cleaner.normalize_position("Midfielder") == "MIDFIELDER"

    def test_invalid(self, cleaner):
        assert cleaner.normalize_position("XY") is None

    def test_nan(self, cleaner):
        assert cleaner.normalize_position(float("nan")) is None


class TestNormalizeName:
    def test_collapses_whitespace(self, cleaner):
        assert cleaner.normalize_name("  Mo   Salah ") == "Mo Salah"

    def test_curly_apostrophe(self, cleaner):
        assert cleaner.normalize_name("N’Golo Kanté") == "N'Golo Kanté"

    def test_blank(self, cleaner):
        assert cleaner.normalize_name('""') is None


class TestParseFlag:
    def test_truthy_strings(self, cleaner):
        assert cleaner.parse_flag("Yes")
        assert cleaner.parse_flag("1")

    def test_falsy_strings(self, cleaner):
        assert not cleaner.parse_flag("no")

    def test_numbers(self, cleaner):
        assert cleaner.parse_flag(1.0)
        assert not cleaner.parse_flag(0)

    def test_missing_uses_default(self, cleaner):
        assert cleaner.parse_flag(None, default=True)
        assert not cleaner.parse_flag(float("nan"))


# ---------------------------------------------------------------------------
# DataFrame cleaning
# ---------------------------------------------------------------------------

class TestCleanAthletes:
    def test_builds_athletes(self, cleaner):
        athletes = cleaner.clean_athletes(_athletes_df(), "L1")
        assert [a.athlete_id for a in athletes] == ["a1", "a2"]
        assert athletes[0].position == "FORWARD"
        assert athletes[0].name == "Mo Salah"
        assert athletes[0].league_id == "L1"
        assert athletes[0].is_active

    def test_drops_missing_price(self, cleaner):
        df = _athletes_df(price=[12.5, float("nan"), 4.0])
        athletes = cleaner.clean_athletes(df, "L1")
        assert [a.athlete_id for a in athletes] == ["a1"]

    def test_inactive_flag(self, cleaner):
        df = _athletes_df(is_active=["no", "yes", "yes"])
        athletes = cleaner.clean_athletes(df, "L1")
        assert not athletes[0].is_active
        assert athletes[1].is_active


class TestCleanMatchStats:
    def test_groups_by_match(self, cleaner):
        df = pd.DataFrame(
            {
                "athlete_id": ["a1", "a2", "a1"],
                "match_id": ["m1", "m1", "m2"],
                "minutes_played": [90.0, 45.0, 90.0],
                "goals": [1.0, 0.0, 0.0],
                "assists": [0.0, 0.0, 0.0],
                "yellow_cards": [0.0, 1.0, 0.0],
                "red_cards": [0.0, 0.0, 0.0],
                "penalty_saves": [0.0, 0.0, 0.0],
                "bonus_points": [0.0, 0.0, 2.0],
                "clean_sheet": ["", "yes", None],
            }
        )
        grouped = cleaner.clean_match_stats(df)
        assert set(grouped) == {"m1", "m2"}
        assert [s["athlete_id"] for s in grouped["m1"]] == ["a1", "a2"]
        assert grouped["m1"][1]["clean_sheet"] is True
        assert grouped["m1"][0]["clean_sheet"] is False
        assert grouped["m2"][0]["bonus_points"] == 2.0

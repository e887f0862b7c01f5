"""Match statistics -> fantasy points."""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Mapping

from src.roster_manager.models import MatchStatistic, Position
from src.scoring_engine.config import POINTS_CONFIG, POINTS_KEY_ALIASES


@dataclass(frozen=True)
class PointsConfig:
    """Tunable point values. Card values are negative."""

    played: float = POINTS_CONFIG["played"]
    goal: float = POINTS_CONFIG["goal"]
    assist: float = POINTS_CONFIG["assist"]
    yellow_card: float = POINTS_CONFIG["yellow_card"]
    red_card: float = POINTS_CONFIG["red_card"]
    penalty_save: float = POINTS_CONFIG["penalty_save"]
    clean_sheet_goalkeeper: float = POINTS_CONFIG["clean_sheet_goalkeeper"]
    clean_sheet_defender: float = POINTS_CONFIG["clean_sheet_defender"]
    clean_sheet_midfielder: float = POINTS_CONFIG["clean_sheet_midfielder"]

    @classmethod
    def from_dict(cls, overrides: Mapping[str, float]) -> "PointsConfig":
        """Build a config from the defaults plus *overrides*.

        Keys may be given in upper case (``GOAL``) or as field names;
        ``PLAYED_MATCH`` is read as ``played``.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in overrides.items():
            name = key.lower()
            name = POINTS_KEY_ALIASES.get(name, name)
            if name not in known:
                raise ValueError(f"Unknown points setting '{key}'. Must be one of: {sorted(known)}")
            values[name] = value
        return cls(**values)

    @classmethod
    def from_file(cls, path: Path) -> "PointsConfig":
        """Load overrides from a JSON object file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Points config {path} must contain a JSON object")
        return cls.from_dict(data)

    def clean_sheet_bonus(self) -> Dict[str, float]:
        return {
            Position.GOALKEEPER.value: self.clean_sheet_goalkeeper,
            Position.DEFENDER.value: self.clean_sheet_defender,
            Position.MIDFIELDER.value: self.clean_sheet_midfielder,
        }

    def penalty_save_bonus(self) -> Dict[str, float]:
        return {Position.GOALKEEPER.value: self.penalty_save}


DEFAULT_POINTS = PointsConfig()


def compute_points(stat: MatchStatistic, position, config: PointsConfig = DEFAULT_POINTS) -> float:
    """Score one athlete's match.

    No clamping and no rounding: negative or fractional inputs flow
    straight through. Unknown positions earn no position bonuses.
    """
    position = getattr(position, "value", position)
    points = 0

    if stat.minutes_played > 0:
        points += config.played

    points += stat.goals * config.goal
    points += stat.assists * config.assist
    points += stat.yellow_cards * config.yellow_card
    points += stat.red_cards * config.red_card

    if stat.clean_sheet:
        points += config.clean_sheet_bonus().get(position, 0)

    points += stat.penalty_saves * config.penalty_save_bonus().get(position, 0)

    return points

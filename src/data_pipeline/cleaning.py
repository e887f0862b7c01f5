"""Data cleaning for athlete and match statistic exports.

Handles standardization before records reach the league store:
- Map short position codes to canonical names (GK -> GOALKEEPER)
- Normalize athlete names
- Coerce flag columns to booleans
"""

import logging
from typing import Dict, List, Optional

import pandas as pd

from src.data_pipeline.config import POSITION_ALIASES, STAT_NUMERIC_COLUMNS, TRUE_VALUES
from src.roster_manager.models import Athlete, Position

logger = logging.getLogger(__name__)

_VALID_POSITIONS = {p.value for p in Position}


class DataCleaner:
    """Turns ingested DataFrames into engine records."""

    # ------------------------------------------------------------------
    # Field helpers
    # ------------------------------------------------------------------
    @staticmethod
    def normalize_position(pos_str) -> Optional[str]:
        """Map a position string to its canonical name.

        Examples:
            "GK"         -> "GOALKEEPER"
            "def"        -> "DEFENDER"
            "Midfielder" -> "MIDFIELDER"
            "XY"         -> None
        """
        if pos_str is None or pd.isna(pos_str):
            return None

        code = str(pos_str).strip().upper()
        canonical = POSITION_ALIASES.get(code, code)
        return canonical if canonical in _VALID_POSITIONS else None

    @staticmethod
    def normalize_name(name) -> Optional[str]:
        """Strip quotes, standardize apostrophes and collapse whitespace."""
        if name is None or pd.isna(name):
            return None

        name = str(name).strip().strip('"')
        if name == "":
            return None

        name = name.replace("’", "'").replace("‘", "'")
        return " ".join(name.split())

    @staticmethod
    def parse_flag(value, default: bool = False) -> bool:
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        return str(value).strip().lower() in TRUE_VALUES

    # ------------------------------------------------------------------
    # DataFrame-level cleaning
    # ------------------------------------------------------------------
    def clean_athletes(self, df: pd.DataFrame, league_id: str) -> List[Athlete]:
        """Build Athlete records, dropping rows with no usable position or price."""
        out = df.copy()
        out["position_norm"] = out["position"].apply(self.normalize_position)
        out["name_norm"] = out["name"].apply(self.normalize_name)

        bad = out["position_norm"].isna() | out["price"].isna()
        if bad.any():
            logger.warning(
                "Dropping %d athletes with unknown position or price: %s",
                bad.sum(),
                out.loc[bad, "athlete_id"].tolist(),
            )
            out = out[~bad]

        athletes = [
            Athlete(
                athlete_id=str(row["athlete_id"]),
                name=row["name_norm"] or str(row["athlete_id"]),
                position=row["position_norm"],
                price=float(row["price"]),
                real_team_id=str(row["real_team_id"]),
                league_id=league_id,
                is_active=self.parse_flag(row.get("is_active"), default=True),
            )
            for _, row in out.iterrows()
        ]
        logger.info("Cleaned athletes: %d records", len(athletes))
        return athletes

    def clean_match_stats(self, df: pd.DataFrame) -> Dict[str, List[Dict]]:
        """Group statistic rows by match_id as raw stat dicts."""
        grouped: Dict[str, List[Dict]] = {}
        for _, row in df.iterrows():
            raw = {"athlete_id": str(row["athlete_id"])}
            for col in STAT_NUMERIC_COLUMNS:
                raw[col] = float(row[col])
            raw["clean_sheet"] = self.parse_flag(row.get("clean_sheet"))
            grouped.setdefault(str(row["match_id"]), []).append(raw)

        logger.info(
            "Cleaned match statistics: %d rows across %d matches",
            len(df), len(grouped),
        )
        return grouped

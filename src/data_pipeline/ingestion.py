"""CSV ingestion for athlete catalogs and match statistics exports.

Handles the usual quirks of spreadsheet exports:
- Quoted values and stray whitespace
- Comma-formatted numbers (e.g., "1,250.5")
- Blank rows left at the end of the sheet
"""

import logging
from pathlib import Path

import pandas as pd

from src.data_pipeline.config import (
    ATHLETE_REQUIRED_COLUMNS,
    STAT_NUMERIC_COLUMNS,
    STAT_REQUIRED_COLUMNS,
)

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """Raised when CSV ingestion fails."""


def _parse_numeric(value):
    """Parse a numeric string that may contain commas (e.g., '1,250.5' -> 1250.5)."""
    if pd.isna(value):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).replace(",", "").strip().strip('"')
    if s == "" or s.isspace():
        return float("nan")
    try:
        return float(s)
    except ValueError:
        return float("nan")


class LeagueDataIngester:
    """Reads athlete and match statistic CSVs from a data directory.

    Each read method returns a pandas DataFrame with:
    - String columns stripped of quotes and whitespace
    - Numeric columns parsed as floats
    - Rows without an athlete_id removed
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _resolve_path(self, filename: str) -> Path:
        """Build the full file path, raising if missing."""
        filepath = Path(filename)
        if not filepath.is_absolute():
            filepath = self.data_dir / filepath
        if not filepath.exists():
            raise FileNotFoundError(f"Expected file not found: {filepath}")
        return filepath

    # ------------------------------------------------------------------
    # Athlete catalog
    # ------------------------------------------------------------------
    def read_athletes(self, filename: str) -> pd.DataFrame:
        """Read an athlete catalog.

        Returns DataFrame with at least columns:
            athlete_id, name, position, price, real_team_id
        and optionally is_active.
        """
        filepath = self._resolve_path(filename)
        logger.info("Reading athletes: %s", filepath.name)

        df = pd.read_csv(filepath, quotechar='"', dtype={"athlete_id": str, "real_team_id": str})
        self._require_columns(df, ATHLETE_REQUIRED_COLUMNS, filepath)
        df = self._clean_df(df, numeric_cols=["price"])

        logger.info("Loaded %d athletes", len(df))
        return df

    # ------------------------------------------------------------------
    # Match statistics
    # ------------------------------------------------------------------
    def read_match_stats(self, filename: str) -> pd.DataFrame:
        """Read per-athlete match statistics.

        Returns DataFrame with columns athlete_id, match_id, the numeric
        counters (missing counters filled with 0) and clean_sheet if present.
        """
        filepath = self._resolve_path(filename)
        logger.info("Reading match statistics: %s", filepath.name)

        df = pd.read_csv(filepath, quotechar='"', dtype={"athlete_id": str, "match_id": str})
        self._require_columns(df, STAT_REQUIRED_COLUMNS, filepath)
        df = self._clean_df(df, numeric_cols=STAT_NUMERIC_COLUMNS)

        for col in STAT_NUMERIC_COLUMNS:
            if col not in df.columns:
                df[col] = 0.0
            df[col] = df[col].fillna(0.0)

        logger.info("Loaded %d statistic rows", len(df))
        return df

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _require_columns(df: pd.DataFrame, required: list[str], filepath: Path):
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise IngestionError(f"{filepath.name} is missing columns: {missing}")

    def _clean_df(self, df: pd.DataFrame, numeric_cols: list[str]) -> pd.DataFrame:
        """Strip strings, drop blank athlete rows, parse numeric columns."""
        for col in df.columns:
            df[col] = df[col].map(
                lambda v: v.strip().strip('"').strip() if isinstance(v, str) else v
            )

        df = df[df["athlete_id"].notna() & (df["athlete_id"] != "")]
        df = df.reset_index(drop=True)

        for col in numeric_cols:
            if col in df.columns:
                df[col] = df[col].apply(_parse_numeric)

        return df

    def read_all(self, athletes_file: str, stats_file: str) -> dict[str, pd.DataFrame]:
        """Read a catalog and a statistics file.

        Returns:
            dict with keys: 'athletes', 'stats'

        Raises:
            IngestionError: if either file cannot be read.
        """
        try:
            return {
                "athletes": self.read_athletes(athletes_file),
                "stats": self.read_match_stats(stats_file),
            }
        except IngestionError:
            raise
        except Exception as e:
            raise IngestionError(f"Failed to read CSV files: {e}") from e

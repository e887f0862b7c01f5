from pathlib import Path

# Base project directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"

# Athlete catalog CSV
ATHLETE_REQUIRED_COLUMNS = ["athlete_id", "name", "position", "price", "real_team_id"]

# Match statistics CSV (one row per athlete per match)
STAT_REQUIRED_COLUMNS = ["athlete_id", "match_id"]
STAT_NUMERIC_COLUMNS = [
    "minutes_played",
    "goals",
    "assists",
    "yellow_cards",
    "red_cards",
    "penalty_saves",
    "bonus_points",
]

# Short position codes used by common exports
POSITION_ALIASES = {
    "GK": "GOALKEEPER",
    "GKP": "GOALKEEPER",
    "DEF": "DEFENDER",
    "D": "DEFENDER",
    "MID": "MIDFIELDER",
    "M": "MIDFIELDER",
    "FWD": "FORWARD",
    "FW": "FORWARD",
    "ST": "FORWARD",
}

# Values read as true in boolean columns
TRUE_VALUES = {"1", "true", "yes", "y", "t"}

from pathlib import Path

# Base project directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Data directories
LEAGUES_DIR = PROJECT_ROOT / "data" / "leagues"

# Default league ruleset
DEFAULT_ROSTER_SIZE = 12
DEFAULT_STARTERS = 8
DEFAULT_SUBSTITUTES = 4
DEFAULT_MAX_PLAYERS_PER_REAL_TEAM = 2
DEFAULT_BUDGET = 100.0
DEFAULT_MAX_TRANSFERS_PER_ROUND = 2

# Required composition per position for the default 12/8/4 ruleset
DEFAULT_POSITION_REQUIREMENTS = {
    "GOALKEEPER": {"total": 2, "starters": 1, "substitutes": 1},
    "DEFENDER": {"total": 4, "starters": 3, "substitutes": 1},
    "MIDFIELDER": {"total": 4, "starters": 3, "substitutes": 1},
    "FORWARD": {"total": 2, "starters": 1, "substitutes": 1},
}

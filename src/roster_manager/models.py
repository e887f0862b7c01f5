"""League data models - rulesets, athletes, rosters, rounds and results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union
import uuid

from src.roster_manager.config import (
    DEFAULT_BUDGET,
    DEFAULT_MAX_PLAYERS_PER_REAL_TEAM,
    DEFAULT_MAX_TRANSFERS_PER_ROUND,
    DEFAULT_POSITION_REQUIREMENTS,
    DEFAULT_ROSTER_SIZE,
    DEFAULT_STARTERS,
    DEFAULT_SUBSTITUTES,
)


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now().isoformat()


class Position(str, Enum):
    GOALKEEPER = "GOALKEEPER"
    DEFENDER = "DEFENDER"
    MIDFIELDER = "MIDFIELDER"
    FORWARD = "FORWARD"


class RoundState(str, Enum):
    SCHEDULED = "SCHEDULED"
    OPEN = "OPEN"
    LOCKED = "LOCKED"
    SETTLED = "SETTLED"


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"


class CaptainType(str, Enum):
    NONE = "NONE"
    CAPTAIN = "CAPTAIN"
    TRIPLE_CAPTAIN = "TRIPLE_CAPTAIN"


@dataclass
class LeagueRuleset:
    """Roster size, composition and budget rules for one league."""

    league_id: str
    roster_size: int = DEFAULT_ROSTER_SIZE
    starters: int = DEFAULT_STARTERS
    substitutes: int = DEFAULT_SUBSTITUTES
    max_players_per_real_team: int = DEFAULT_MAX_PLAYERS_PER_REAL_TEAM
    budget: float = DEFAULT_BUDGET
    max_transfers_per_round: int = DEFAULT_MAX_TRANSFERS_PER_ROUND
    position_requirements: Dict[str, Dict[str, int]] = field(
        default_factory=lambda: {
            pos: dict(req) for pos, req in DEFAULT_POSITION_REQUIREMENTS.items()
        }
    )

    def __post_init__(self):
        if self.starters + self.substitutes != self.roster_size:
            raise ValueError(
                f"starters ({self.starters}) + substitutes ({self.substitutes}) "
                f"must equal roster_size ({self.roster_size})"
            )
        if self.position_requirements:
            totals = {"total": 0, "starters": 0, "substitutes": 0}
            for req in self.position_requirements.values():
                for key in totals:
                    totals[key] += req.get(key, 0)
            expected = {
                "total": self.roster_size,
                "starters": self.starters,
                "substitutes": self.substitutes,
            }
            if totals != expected:
                raise ValueError(
                    f"position_requirements sum to {totals}, "
                    f"ruleset expects {expected}"
                )

    def get_requirement(self, position: str) -> Dict[str, int]:
        """Required total/starters/substitutes for a position (zeros if absent)."""
        req = self.position_requirements.get(position, {})
        return {
            "total": req.get("total", 0),
            "starters": req.get("starters", 0),
            "substitutes": req.get("substitutes", 0),
        }


@dataclass
class Athlete:
    """A real-world player available in a league's catalog."""

    athlete_id: str
    name: str
    position: str
    price: Union[float, str]
    real_team_id: str
    league_id: str
    is_active: bool = True


@dataclass
class RosterSlot:
    """One roster-to-athlete binding."""

    athlete: Athlete
    is_starter: bool
    display_index: int = 0
    captain_type: str = CaptainType.NONE.value

    @property
    def athlete_id(self) -> str:
        return self.athlete.athlete_id


@dataclass
class Roster:
    """A user's fantasy team within one league."""

    roster_id: str
    user_id: str
    league_id: str
    name: str
    budget_remaining: float
    slots: List[RosterSlot] = field(default_factory=list)
    version: int = 0
    created_at: str = field(default_factory=now_iso)
    triple_captain_used: bool = False

    def athlete_ids(self) -> List[str]:
        return [slot.athlete_id for slot in self.slots]

    def has_athlete(self, athlete_id: str) -> bool:
        return athlete_id in self.athlete_ids()

    def get_slot(self, athlete_id: str) -> Optional[RosterSlot]:
        for slot in self.slots:
            if slot.athlete_id == athlete_id:
                return slot
        return None

    def starters(self) -> List[RosterSlot]:
        return [slot for slot in self.slots if slot.is_starter]

    def substitutes(self) -> List[RosterSlot]:
        return [slot for slot in self.slots if not slot.is_starter]

    def captain(self) -> Optional[RosterSlot]:
        for slot in self.slots:
            if slot.captain_type != CaptainType.NONE.value:
                return slot
        return None


@dataclass
class Round:
    """A gameweek with its own transfer window."""

    round_id: str
    league_id: str
    sequence: int
    name: str = ""
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    lock_time: Optional[str] = None
    transfers_open: bool = False
    is_completed: bool = False
    opened_at: Optional[str] = None

    @property
    def state(self) -> RoundState:
        if self.is_completed:
            return RoundState.SETTLED
        if self.transfers_open:
            return RoundState.OPEN
        if self.opened_at is not None:
            return RoundState.LOCKED
        return RoundState.SCHEDULED


@dataclass
class Match:
    match_id: str
    round_id: str
    home_team_id: str
    away_team_id: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: str = MatchStatus.SCHEDULED.value

    def opponent_score(self, real_team_id: str) -> Optional[int]:
        """Goals conceded by *real_team_id* in this match (None if not playing)."""
        if real_team_id == self.home_team_id:
            return self.away_score
        if real_team_id == self.away_team_id:
            return self.home_score
        return None


@dataclass
class MatchStatistic:
    """One athlete's raw numbers for one match, plus the derived points."""

    athlete_id: str
    match_id: str
    minutes_played: float = 0
    goals: float = 0
    assists: float = 0
    yellow_cards: float = 0
    red_cards: float = 0
    clean_sheet: bool = False
    penalty_saves: float = 0
    bonus_points: float = 0
    points: float = 0


@dataclass(frozen=True)
class Transfer:
    """Audit record of one player swap. Never mutated."""

    transfer_id: str
    roster_id: str
    user_id: str
    round_id: str
    athlete_out_id: str
    athlete_in_id: str
    timestamp: str

    @classmethod
    def create(
        cls,
        roster_id: str,
        user_id: str,
        round_id: str,
        athlete_out_id: str,
        athlete_in_id: str,
    ):
        return cls(
            transfer_id=new_id(),
            roster_id=roster_id,
            user_id=user_id,
            round_id=round_id,
            athlete_out_id=athlete_out_id,
            athlete_in_id=athlete_in_id,
            timestamp=now_iso(),
        )


@dataclass
class RoundSettlementRecord:
    roster_id: str
    round_id: str
    points: float
    rank: Optional[int] = None

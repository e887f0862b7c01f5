from src.roster_manager.budget import apply_transfer, budget_used
from src.roster_manager.errors import (
    ConcurrentModificationError,
    EngineError,
    Failure,
    FailureKind,
    OperationResult,
    SettlementConsistencyError,
    StorageError,
)
from src.roster_manager.formation import FormationResult, FormationValidator, validate_formation
from src.roster_manager.models import (
    Athlete,
    CaptainType,
    LeagueRuleset,
    Match,
    MatchStatistic,
    Position,
    Roster,
    RosterSlot,
    Round,
    RoundSettlementRecord,
    RoundState,
    Transfer,
)
from src.roster_manager.repository import InMemoryRepository
from src.roster_manager.roster_controller import RosterController, TransferReceipt
from src.roster_manager.state_persistence import StatePersistence
from src.roster_manager.transfer_window import MutationWindow, TransferWindow

__all__ = [
    "Athlete",
    "CaptainType",
    "ConcurrentModificationError",
    "EngineError",
    "Failure",
    "FailureKind",
    "FormationResult",
    "FormationValidator",
    "InMemoryRepository",
    "LeagueRuleset",
    "Match",
    "MatchStatistic",
    "MutationWindow",
    "OperationResult",
    "Position",
    "Roster",
    "RosterController",
    "RosterSlot",
    "Round",
    "RoundSettlementRecord",
    "RoundState",
    "SettlementConsistencyError",
    "StatePersistence",
    "StorageError",
    "Transfer",
    "TransferReceipt",
    "TransferWindow",
    "apply_transfer",
    "budget_used",
    "validate_formation",
]

"""Per-round transfer window: gating and quota enforcement for roster changes."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from src.roster_manager.errors import FailureKind, OperationResult
from src.roster_manager.models import Roster, Round, RoundState, now_iso
from src.roster_manager.repository import InMemoryRepository

logger = logging.getLogger(__name__)


@dataclass
class MutationWindow:
    """An admitted mutation: the open round and the roster's quota use in it."""

    round: Round
    transfers_made: int
    max_transfers: int

    @property
    def remaining(self) -> int:
        return max(0, self.max_transfers - self.transfers_made)


class TransferWindow:
    """Administrator-driven round state machine.

    SCHEDULED -> OPEN <-> LOCKED -> SETTLED. Settlement itself lives in
    the scoring engine; it calls :meth:`open_next_round` once a round
    is complete.
    """

    def __init__(self, repository: InMemoryRepository):
        self.repository = repository

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------
    def find_open_round(self, league_id: str) -> Optional[Round]:
        open_rounds = self.repository.find_open_rounds(league_id)
        if len(open_rounds) > 1:
            logger.error(
                "League %s has %d open rounds; using round %d",
                league_id, len(open_rounds), open_rounds[0].sequence,
            )
        return open_rounds[0] if open_rounds else None

    def require_open_round(self, league_id: str) -> OperationResult:
        """Admit a lineup or roster-creation change if the league has an open round."""
        round_ = self.find_open_round(league_id)
        if round_ is None:
            return OperationResult.failed(
                FailureKind.TRANSFERS_CLOSED,
                "Transfers are closed - wait for the administrator to open the next round",
            )
        return OperationResult.success(round_)

    def request_mutation(self, roster: Roster, league_id: str) -> OperationResult:
        """Admit a transfer if a round is open and the roster has quota left.

        Returns:
            OperationResult carrying a MutationWindow on success.
        """
        gate = self.require_open_round(league_id)
        if not gate.ok:
            return gate
        round_ = gate.value

        ruleset = self.repository.get_ruleset(league_id)
        if ruleset is None:
            return OperationResult.failed(
                FailureKind.NOT_FOUND, f"League {league_id} not found"
            )

        made = self.repository.count_transfers(roster.roster_id, round_.round_id)
        if made >= ruleset.max_transfers_per_round:
            return OperationResult.failed(
                FailureKind.TRANSFER_QUOTA_EXCEEDED,
                f"Transfer limit reached for round {round_.sequence} "
                f"({made}/{ruleset.max_transfers_per_round})",
            )

        return OperationResult.success(
            MutationWindow(
                round=round_,
                transfers_made=made,
                max_transfers=ruleset.max_transfers_per_round,
            )
        )

    def remaining_transfers(self, roster: Roster) -> Dict:
        """Summarize the roster's transfer allowance in the current window."""
        ruleset = self.repository.get_ruleset(roster.league_id)
        max_transfers = ruleset.max_transfers_per_round if ruleset else 0
        round_ = self.find_open_round(roster.league_id)

        if round_ is None:
            return {"transfers_open": False, "remaining": 0, "max": max_transfers}

        made = self.repository.count_transfers(roster.roster_id, round_.round_id)
        return {
            "transfers_open": True,
            "remaining": max(0, max_transfers - made),
            "max": max_transfers,
            "transfers_made": made,
            "round_id": round_.round_id,
            "round_name": round_.name,
            "lock_time": round_.lock_time,
        }

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def open_transfers(self, round_id: str) -> OperationResult:
        round_ = self.repository.get_round(round_id)
        if round_ is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"Round {round_id} not found")

        with self.repository.league_lock(round_.league_id):
            round_ = self.repository.get_round(round_id)
            if round_.state == RoundState.SETTLED:
                return OperationResult.failed(
                    FailureKind.VALIDATION_FAILURE,
                    f"Round {round_.sequence} is already settled",
                )
            if round_.state == RoundState.OPEN:
                return OperationResult.success(round_)

            others = [
                r for r in self.repository.find_open_rounds(round_.league_id)
                if r.round_id != round_id
            ]
            if others:
                return OperationResult.failed(
                    FailureKind.VALIDATION_FAILURE,
                    f"Round {others[0].sequence} already has transfers open",
                )

            round_.transfers_open = True
            if round_.opened_at is None:
                round_.opened_at = now_iso()
            round_ = self.repository.save_round(round_)

        logger.info("Opened transfers for round %d (league %s)", round_.sequence, round_.league_id)
        return OperationResult.success(round_)

    def lock_transfers(self, round_id: str) -> OperationResult:
        round_ = self.repository.get_round(round_id)
        if round_ is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"Round {round_id} not found")

        with self.repository.league_lock(round_.league_id):
            round_ = self.repository.get_round(round_id)
            if round_.state == RoundState.SETTLED:
                return OperationResult.failed(
                    FailureKind.VALIDATION_FAILURE,
                    f"Round {round_.sequence} is already settled",
                )
            round_.transfers_open = False
            round_ = self.repository.save_round(round_)

        logger.info("Locked transfers for round %d (league %s)", round_.sequence, round_.league_id)
        return OperationResult.success(round_)

    def set_transfers_open(self, round_id: str, transfers_open: bool) -> OperationResult:
        """Toggle a round's window, as the admin panel does."""
        if transfers_open:
            return self.open_transfers(round_id)
        return self.lock_transfers(round_id)

    def open_next_round(self, settled: Round) -> Optional[Round]:
        """Open the window of the round after *settled*. Caller holds the league lock.

        Skipped while any other round of the league is still open.
        """
        next_round = self.repository.next_round(settled)
        if next_round is None or next_round.is_completed:
            return None

        others = [
            r for r in self.repository.find_open_rounds(settled.league_id)
            if r.round_id != next_round.round_id
        ]
        if others:
            logger.warning(
                "Not opening round %d after settling round %d: round %d is still open",
                next_round.sequence, settled.sequence, others[0].sequence,
            )
            return None

        next_round.transfers_open = True
        if next_round.opened_at is None:
            next_round.opened_at = now_iso()
        logger.info(
            "Opened transfers for round %d after settling round %d",
            next_round.sequence, settled.sequence,
        )
        return self.repository.save_round(next_round)

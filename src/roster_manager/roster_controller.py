"""Roster controller - orchestrates roster creation, transfers and lineup edits."""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from src.roster_manager.budget import apply_transfer, budget_used, parse_price
from src.roster_manager.errors import FailureKind, OperationResult
from src.roster_manager.formation import FormationValidator
from src.roster_manager.models import CaptainType, Roster, RosterSlot, Transfer, new_id
from src.roster_manager.repository import InMemoryRepository
from src.roster_manager.transfer_window import TransferWindow

logger = logging.getLogger(__name__)


@dataclass
class TransferReceipt:
    transfer: Transfer
    roster: Roster
    remaining_transfers: int


class RosterController:
    """Main controller for roster mutations.

    Coordinates TransferWindow (is a change allowed now), the budget
    ledger and FormationValidator (is the result legal) and the
    repository (commit). Every mutation runs under the league lock and
    writes the roster with a version check.
    """

    def __init__(self, repository: InMemoryRepository):
        self.repository = repository
        self.window = TransferWindow(repository)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create_roster(
        self,
        user_id: str,
        league_id: str,
        name: str,
        picks: Iterable[Tuple[str, bool]],
    ) -> OperationResult:
        """Create a user's roster from ``(athlete_id, is_starter)`` picks.

        Returns:
            OperationResult carrying the stored Roster on success.
        """
        picks = list(picks)
        ruleset = self.repository.get_ruleset(league_id)
        if ruleset is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"League {league_id} not found")

        with self.repository.league_lock(league_id):
            if self.repository.find_roster(user_id, league_id) is not None:
                return self._reject(
                    FailureKind.VALIDATION_FAILURE,
                    f"User {user_id} already has a roster in league {league_id}",
                )

            gate = self.window.require_open_round(league_id)
            if not gate.ok:
                return gate

            slots = []
            missing = []
            for index, (athlete_id, is_starter) in enumerate(picks):
                athlete = self.repository.find_league_athlete(athlete_id, league_id)
                if athlete is None:
                    missing.append(athlete_id)
                    continue
                slots.append(RosterSlot(athlete=athlete, is_starter=bool(is_starter), display_index=index))

            if missing:
                return self._reject(
                    FailureKind.NOT_FOUND,
                    "Some athletes are not available in this league",
                    [f"Athlete {aid} is not available" for aid in missing],
                )

            violations = self._duplicate_violations(a for a, _ in picks)
            violations.extend(FormationValidator(ruleset).validate(slots).violations)

            spent = budget_used(slots)
            ceiling = parse_price(ruleset.budget)
            if spent > ceiling:
                violations.append(f"Budget exceeded: spent {spent:.2f} of {ceiling:.2f}")

            if violations:
                return self._reject(
                    FailureKind.VALIDATION_FAILURE, "Roster is not valid", violations
                )

            roster = Roster(
                roster_id=new_id(),
                user_id=user_id,
                league_id=league_id,
                name=name,
                budget_remaining=ceiling - spent,
                slots=slots,
            )
            roster = self.repository.add_roster(roster)

        logger.info(
            "Created roster %s (%s) for user %s in league %s: spent %.2f, %.2f left",
            roster.roster_id, name, user_id, league_id, spent, roster.budget_remaining,
        )
        return OperationResult.success(roster)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------
    def request_mutation(self, roster: Roster, league_id: Optional[str] = None) -> OperationResult:
        """Check the window and quota for *roster* without committing anything."""
        return self.window.request_mutation(roster, league_id or roster.league_id)

    def commit_transfer(
        self,
        actor_id: str,
        roster_id: str,
        athlete_out_id: str,
        athlete_in_id: str,
    ) -> OperationResult:
        """Swap one athlete for another and record the transfer.

        Returns:
            OperationResult carrying a TransferReceipt on success.
        """
        roster = self.repository.get_roster(roster_id)
        if roster is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"Roster {roster_id} not found")

        with self.repository.league_lock(roster.league_id):
            # Re-read under the lock so validation sees the latest slots and budget.
            roster = self.repository.get_roster(roster_id)
            if roster.user_id != actor_id:
                return self._reject(
                    FailureKind.OWNERSHIP_VIOLATION,
                    f"User {actor_id} does not own roster {roster_id}",
                )

            admission = self.window.request_mutation(roster, roster.league_id)
            if not admission.ok:
                logger.warning("Transfer rejected for roster %s: %s", roster_id, admission.failure.reason)
                return admission
            window = admission.value

            out_slot = roster.get_slot(athlete_out_id)
            if out_slot is None:
                return self._reject(
                    FailureKind.NOT_FOUND,
                    f"Athlete {athlete_out_id} is not on roster {roster_id}",
                )
            athlete_in = self.repository.find_league_athlete(athlete_in_id, roster.league_id)
            if athlete_in is None:
                return self._reject(
                    FailureKind.NOT_FOUND,
                    f"Athlete {athlete_in_id} is not available in this league",
                )

            ruleset = self.repository.get_ruleset(roster.league_id)
            out_athlete = self.repository.get_athlete(athlete_out_id) or out_slot.athlete
            new_budget = apply_transfer(roster.budget_remaining, out_athlete.price, athlete_in.price)

            violations = []
            if roster.has_athlete(athlete_in_id):
                violations.append(f"{athlete_in.name} is already on the roster")
            if athlete_in.position != out_athlete.position:
                violations.append(
                    f"Replacement must play the same position "
                    f"({out_athlete.position}, got {athlete_in.position})"
                )
            if new_budget < 0:
                available = parse_price(roster.budget_remaining) + parse_price(out_athlete.price)
                violations.append(
                    f"Insufficient budget: available {available:.2f}, "
                    f"required {parse_price(athlete_in.price):.2f}"
                )

            new_slots = [
                RosterSlot(athlete=athlete_in, is_starter=s.is_starter, display_index=s.display_index)
                if s.athlete_id == athlete_out_id else s
                for s in roster.slots
            ]
            violations.extend(FormationValidator(ruleset).validate(new_slots).violations)

            if violations:
                return self._reject(
                    FailureKind.VALIDATION_FAILURE, "Transfer is not valid", violations
                )

            with self.repository.transaction():
                transfer = self.repository.add_transfer(
                    Transfer.create(
                        roster_id=roster_id,
                        user_id=actor_id,
                        round_id=window.round.round_id,
                        athlete_out_id=athlete_out_id,
                        athlete_in_id=athlete_in_id,
                    )
                )
                roster.slots = new_slots
                roster.budget_remaining = new_budget
                roster = self.repository.save_roster(roster)

        logger.info(
            "Transfer on roster %s (round %d): %s -> %s, budget now %.2f",
            roster_id, window.round.sequence, out_athlete.name, athlete_in.name, new_budget,
        )
        return OperationResult.success(
            TransferReceipt(
                transfer=transfer,
                roster=roster,
                remaining_transfers=window.remaining - 1,
            )
        )

    def transfer_history(self, roster_id: str) -> List[Transfer]:
        """Transfers made by a roster, newest first."""
        transfers = self.repository.list_transfers(roster_id=roster_id)
        return sorted(transfers, key=lambda t: t.timestamp, reverse=True)

    # ------------------------------------------------------------------
    # Lineup
    # ------------------------------------------------------------------
    def commit_lineup_update(
        self,
        actor_id: str,
        roster_id: str,
        lineup: Sequence[Tuple[str, bool, int]],
    ) -> OperationResult:
        """Rearrange starters/substitutes from ``(athlete_id, is_starter, display_index)``.

        The lineup must list every athlete on the roster exactly once.
        """
        roster = self.repository.get_roster(roster_id)
        if roster is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"Roster {roster_id} not found")

        with self.repository.league_lock(roster.league_id):
            roster = self.repository.get_roster(roster_id)
            if roster.user_id != actor_id:
                return self._reject(
                    FailureKind.OWNERSHIP_VIOLATION,
                    f"User {actor_id} does not own roster {roster_id}",
                )

            gate = self.window.require_open_round(roster.league_id)
            if not gate.ok:
                logger.warning("Lineup update rejected for roster %s: %s", roster_id, gate.failure.reason)
                return gate

            listed = [athlete_id for athlete_id, _, _ in lineup]
            unknown = [aid for aid in listed if not roster.has_athlete(aid)]
            if unknown:
                return self._reject(
                    FailureKind.NOT_FOUND,
                    "Lineup references athletes that are not on the roster",
                    [f"Athlete {aid} is not on the roster" for aid in unknown],
                )

            violations = self._duplicate_violations(listed)
            omitted = [aid for aid in roster.athlete_ids() if aid not in listed]
            violations.extend(f"Athlete {aid} is missing from the lineup" for aid in omitted)

            new_slots = [
                RosterSlot(
                    athlete=roster.get_slot(athlete_id).athlete,
                    is_starter=bool(is_starter),
                    display_index=display_index,
                    # A benched captain loses the armband.
                    captain_type=(
                        roster.get_slot(athlete_id).captain_type
                        if is_starter else CaptainType.NONE.value
                    ),
                )
                for athlete_id, is_starter, display_index in lineup
            ]
            if not omitted:
                ruleset = self.repository.get_ruleset(roster.league_id)
                violations.extend(FormationValidator(ruleset).validate(new_slots).violations)

            if violations:
                return self._reject(
                    FailureKind.VALIDATION_FAILURE, "Lineup is not valid", violations
                )

            roster.slots = sorted(new_slots, key=lambda s: (not s.is_starter, s.display_index))
            roster = self.repository.save_roster(roster)

        logger.info("Updated lineup for roster %s", roster_id)
        return OperationResult.success(roster)

    def set_captain(
        self,
        actor_id: str,
        roster_id: str,
        athlete_id: str,
        captain_type: str = CaptainType.CAPTAIN.value,
    ) -> OperationResult:
        """Hand the armband to one starter, replacing any previous captain.

        ``TRIPLE_CAPTAIN`` can be played once per roster; ``NONE`` just
        clears the current captain.
        """
        roster = self.repository.get_roster(roster_id)
        if roster is None:
            return OperationResult.failed(FailureKind.NOT_FOUND, f"Roster {roster_id} not found")

        with self.repository.league_lock(roster.league_id):
            roster = self.repository.get_roster(roster_id)
            if roster.user_id != actor_id:
                return self._reject(
                    FailureKind.OWNERSHIP_VIOLATION,
                    f"User {actor_id} does not own roster {roster_id}",
                )

            gate = self.window.require_open_round(roster.league_id)
            if not gate.ok:
                logger.warning("Captain change rejected for roster %s: %s", roster_id, gate.failure.reason)
                return gate

            try:
                captain_type = CaptainType(captain_type).value
            except ValueError:
                return self._reject(
                    FailureKind.VALIDATION_FAILURE,
                    f"Unknown captain type {captain_type!r}",
                )

            slot = roster.get_slot(athlete_id)
            if slot is None or not slot.is_starter:
                return self._reject(
                    FailureKind.VALIDATION_FAILURE,
                    f"Athlete {athlete_id} is not a starter on roster {roster_id}",
                )
            if captain_type == CaptainType.TRIPLE_CAPTAIN.value and roster.triple_captain_used:
                return self._reject(
                    FailureKind.VALIDATION_FAILURE,
                    "Triple captain has already been used",
                )

            for s in roster.slots:
                s.captain_type = CaptainType.NONE.value
            slot.captain_type = captain_type
            if captain_type == CaptainType.TRIPLE_CAPTAIN.value:
                roster.triple_captain_used = True
            roster = self.repository.save_roster(roster)

        logger.info("Set %s on roster %s to athlete %s", captain_type, roster_id, athlete_id)
        return OperationResult.success(roster)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _duplicate_violations(athlete_ids: Iterable[str]) -> List[str]:
        seen = set()
        duplicates = []
        for athlete_id in athlete_ids:
            if athlete_id in seen and athlete_id not in duplicates:
                duplicates.append(athlete_id)
            seen.add(athlete_id)
        return [f"Athlete {aid} is selected more than once" for aid in duplicates]

    @staticmethod
    def _reject(kind: FailureKind, reason: str, violations: Optional[List[str]] = None) -> OperationResult:
        if violations:
            logger.warning("%s: %s (%s)", kind.value, reason, "; ".join(violations))
        else:
            logger.warning("%s: %s", kind.value, reason)
        return OperationResult.failed(kind, reason, violations)

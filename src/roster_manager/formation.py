"""Roster formation validation.

Every check runs and reports on its own so a roster builder can show all
problems at once.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from src.roster_manager.models import LeagueRuleset, RosterSlot


@dataclass
class FormationResult:
    valid: bool
    violations: List[str] = field(default_factory=list)


class FormationValidator:
    """Validates roster size, starter split, composition and team provenance."""

    def __init__(self, ruleset: LeagueRuleset):
        self.ruleset = ruleset

    def validate(self, slots: Sequence[RosterSlot]) -> FormationResult:
        violations = []
        violations.extend(self._check_size(slots))
        violations.extend(self._check_starter_split(slots))
        violations.extend(self._check_composition(slots))
        violations.extend(self._check_real_team_limit(slots))
        return FormationResult(valid=not violations, violations=violations)

    def _check_size(self, slots: Sequence[RosterSlot]) -> List[str]:
        expected = self.ruleset.roster_size
        if len(slots) != expected:
            return [f"Roster must have exactly {expected} players (have {len(slots)})"]
        return []

    def _check_starter_split(self, slots: Sequence[RosterSlot]) -> List[str]:
        errors = []
        starters = sum(1 for s in slots if s.is_starter)
        substitutes = len(slots) - starters

        if starters != self.ruleset.starters:
            errors.append(
                f"Roster must have exactly {self.ruleset.starters} starters "
                f"(have {starters})"
            )
        if substitutes != self.ruleset.substitutes:
            errors.append(
                f"Roster must have exactly {self.ruleset.substitutes} substitutes "
                f"(have {substitutes})"
            )
        return errors

    def _check_composition(self, slots: Sequence[RosterSlot]) -> List[str]:
        """Compare per-position totals and starter/substitute split."""
        requirements = self.ruleset.position_requirements
        if not requirements:
            return []

        errors = []
        counts = self._position_counts(slots)

        for position in requirements:
            required = self.ruleset.get_requirement(position)
            actual = counts.get(position, {"total": 0, "starters": 0, "substitutes": 0})
            for key, label in (
                ("total", "players"),
                ("starters", "starters"),
                ("substitutes", "substitutes"),
            ):
                if actual[key] != required[key]:
                    errors.append(
                        f"{position} requires {required[key]} {label} "
                        f"(have {actual[key]})"
                    )

        for position in sorted(set(counts) - set(requirements)):
            errors.append(
                f"Position {position} is not allowed in this league "
                f"(have {counts[position]['total']})"
            )

        return errors

    def _check_real_team_limit(self, slots: Sequence[RosterSlot]) -> List[str]:
        limit = self.ruleset.max_players_per_real_team
        team_counts = Counter(s.athlete.real_team_id for s in slots)
        return [
            f"Too many players from team {team_id} (have {count}, max {limit})"
            for team_id, count in sorted(team_counts.items(), key=lambda kv: str(kv[0]))
            if count > limit
        ]

    @staticmethod
    def _position_counts(slots: Sequence[RosterSlot]) -> Dict[str, Dict[str, int]]:
        counts: Dict[str, Dict[str, int]] = {}
        for slot in slots:
            position = getattr(slot.athlete.position, "value", slot.athlete.position)
            entry = counts.setdefault(
                position, {"total": 0, "starters": 0, "substitutes": 0}
            )
            entry["total"] += 1
            if slot.is_starter:
                entry["starters"] += 1
            else:
                entry["substitutes"] += 1
        return counts

    def get_roster_summary(self, slots: Sequence[RosterSlot]) -> Dict[str, Dict]:
        """Generate per-position filled/required/remaining counts."""
        counts = self._position_counts(slots)
        summary = {}

        for position in self.ruleset.position_requirements:
            required = self.ruleset.get_requirement(position)["total"]
            filled = counts.get(position, {}).get("total", 0)
            summary[position] = {
                "filled": filled,
                "required": required,
                "remaining": max(0, required - filled),
            }

        return summary


def validate_formation(slots: Sequence[RosterSlot], ruleset: LeagueRuleset) -> FormationResult:
    """Check *slots* against *ruleset*, returning every violation found."""
    return FormationValidator(ruleset).validate(slots)

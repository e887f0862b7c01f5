"""Budget arithmetic for roster creation and transfers."""

from typing import Iterable, Union

from src.roster_manager.models import Athlete, LeagueRuleset, RosterSlot


def parse_price(value) -> float:
    """Parse a price that may arrive as a number or a numeric string ('1,000.5')."""
    if isinstance(value, (int, float)):
        return float(value)
    return float(str(value).replace(",", "").strip())


def budget_used(items: Iterable[Union[RosterSlot, Athlete, dict]]) -> float:
    """Sum the prices of *items* (slots, athletes or ``{"price": ...}`` dicts)."""
    total = 0.0
    for item in items:
        if isinstance(item, dict):
            total += parse_price(item["price"])
            continue
        athlete = item.athlete if isinstance(item, RosterSlot) else item
        total += parse_price(athlete.price)
    return total


def apply_transfer(balance, out_price, in_price) -> float:
    """Balance after selling *out_price* and buying *in_price*.

    The result is returned even when negative; callers decide whether
    to reject it.
    """
    return parse_price(balance) + parse_price(out_price) - parse_price(in_price)


def initial_balance(ruleset: LeagueRuleset, items: Iterable[Union[RosterSlot, Athlete]]) -> float:
    """Budget left after buying *items* under *ruleset*."""
    return parse_price(ruleset.budget) - budget_used(items)

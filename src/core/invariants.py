"""Invariant checkers for a robot pair.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass).

The custody check compares the pair's token balances with the sum of its robots'
reserves. Tokens sent to the pair outside the engine only make custody exceed
the reserves, so the check is `>=` rather than equality.
"""

from __future__ import annotations

from typing import Callable

from ..state.robots import AMOUNT_MAX, decode_robot_id
from .robot_engine import RobotPair


def inv_live_index_matches_map(p: RobotPair) -> bool:
    ledger = p.ledger
    live = ledger.live_ids()
    return len(live) == len(set(live)) and all(robot_id in ledger for robot_id in live)


def inv_sequences_below_created_count(p: RobotPair) -> bool:
    created = p.ledger.created_count
    return all(decode_robot_id(robot_id)[1] < created for robot_id in p.ledger.live_ids())


def inv_bands_ordered(p: RobotPair) -> bool:
    return all(info.band_is_ordered() for _rid, info in p.ledger.iter_robots())


def inv_amounts_fit_96_bits(p: RobotPair) -> bool:
    return all(
        0 <= info.stock_amount <= AMOUNT_MAX and 0 <= info.money_amount <= AMOUNT_MAX
        for _rid, info in p.ledger.iter_robots()
    )


def inv_stock_custody_covers_reserves(p: RobotPair) -> bool:
    total = sum(info.stock_amount for _rid, info in p.ledger.iter_robots())
    return p.stock_token.balance_of(p.address) >= total


def inv_money_custody_covers_reserves(p: RobotPair) -> bool:
    total = sum(info.money_amount for _rid, info in p.ledger.iter_robots())
    return p.money_token.balance_of(p.address) >= total


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[RobotPair], bool]] = {
    "inv_live_index_matches_map": inv_live_index_matches_map,
    "inv_sequences_below_created_count": inv_sequences_below_created_count,
    "inv_bands_ordered": inv_bands_ordered,
    "inv_amounts_fit_96_bits": inv_amounts_fit_96_bits,
    "inv_stock_custody_covers_reserves": inv_stock_custody_covers_reserves,
    "inv_money_custody_covers_reserves": inv_money_custody_covers_reserves,
}


def check_all(p: RobotPair) -> list[str]:
    """Return list of violated invariant IDs. Empty list = all pass."""
    return [name for name, fn in INVARIANT_REGISTRY.items() if not fn(p)]

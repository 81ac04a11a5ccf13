from __future__ import annotations

from src.core.invariants import INVARIANT_REGISTRY, check_all
from src.state.robots import RobotInfo, encode_robot_id


OWNER = "0x" + "a0" * 20
TAKER = "0x" + "b0" * 20
E18 = 10**18


def _funded(world):
    world.stock.approve(OWNER, world.pair.address, 10**30)
    world.money.approve(OWNER, world.pair.address, 10**30)
    return world.pair.create_robot(100 * E18, 500 * 10**8, 150 * E18, 100 * E18, sender=OWNER)


def test_invariants_hold_through_lifecycle(world) -> None:
    pair = world.pair
    assert check_all(pair) == []
    rid = _funded(world)
    assert check_all(pair) == []

    world.stock.transfer(OWNER, TAKER, 10 * E18)
    world.money.transfer(OWNER, TAKER, 1000 * 10**8)
    world.stock.approve(TAKER, pair.address, 10 * E18)
    world.money.approve(TAKER, pair.address, 1000 * 10**8)
    pair.sell_to_robot(rid, E18, sender=TAKER)
    pair.buy_from_robot(rid, 300 * 10**8, sender=TAKER)
    assert check_all(pair) == []

    pair.delete_robot(0, rid, sender=OWNER)
    assert check_all(pair) == []


def test_donations_do_not_break_custody(world) -> None:
    _funded(world)
    world.money.transfer(OWNER, world.pair.address, 12345)
    assert check_all(world.pair) == []


def test_detects_custody_shortfall(world) -> None:
    rid = _funded(world)
    info = world.pair.get_robot(rid)
    world.pair.ledger.update(
        rid,
        RobotInfo(
            stock_amount=info.stock_amount + 1,
            money_amount=info.money_amount,
            high_price=info.high_price,
            low_price=info.low_price,
        ),
    )
    assert check_all(world.pair) == ["inv_stock_custody_covers_reserves"]


def test_detects_sequence_beyond_counter(world) -> None:
    _funded(world)
    ledger = world.pair.ledger
    info = RobotInfo(stock_amount=0, money_amount=0, high_price=2, low_price=1)
    stray = encode_robot_id(OWNER, 7)
    ledger._robots[stray] = info
    ledger._live.append(stray)
    assert check_all(world.pair) == ["inv_sequences_below_created_count"]


def test_registry_names() -> None:
    assert all(name.startswith("inv_") for name in INVARIANT_REGISTRY)

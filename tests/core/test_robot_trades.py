# [TESTER] v1

from __future__ import annotations

import pytest

from src.kernels.python.price_codec import format_units, parse_units
from src.state.errors import InsufficientAllowance, NotEnoughMoney, NotEnoughStock, RobotNotFound
from src.state.robots import encode_robot_id


OWNER = "0x" + "a0" * 20
TAKER = "0x" + "b0" * 20
E18 = 10**18


def _setup(make_world, money_decimals: int):
    w = make_world(money_decimals)
    m = 10**money_decimals
    w.stock.approve(OWNER, w.pair.address, 99999 * E18)
    w.money.approve(OWNER, w.pair.address, 99999 * m)
    rid = w.pair.create_robot(100 * E18, 500 * m, parse_units("150.0"), parse_units("100.0"), sender=OWNER)
    assert rid == encode_robot_id(OWNER, 0)

    w.stock.transfer(OWNER, TAKER, 200 * E18)
    w.money.transfer(OWNER, TAKER, 20000 * m)
    assert w.stock.balance_of(w.pair.address) == 100 * E18
    assert w.money.balance_of(w.pair.address) == 500 * m
    return w, rid


def _robot_view(w, rid):
    info = w.pair.get_robot(rid)
    return {
        "stock_amount": format_units(info.stock_amount, w.stock.decimals),
        "money_amount": format_units(info.money_amount, w.money.decimals),
        "high_price": format_units(info.high_price_value),
        "low_price": format_units(info.low_price_value),
    }


def test_no_approve(make_world) -> None:
    w, rid = _setup(make_world, 8)
    with pytest.raises(InsufficientAllowance):
        w.pair.sell_to_robot(rid, 123, sender=TAKER)
    with pytest.raises(InsufficientAllowance):
        w.pair.buy_from_robot(rid, 123, sender=TAKER)


def test_robot_not_found(make_world) -> None:
    w, _rid = _setup(make_world, 8)
    w.stock.approve(TAKER, w.pair.address, 99999 * E18)
    w.money.approve(TAKER, w.pair.address, 99999 * 10**8)
    missing = encode_robot_id(OWNER, 1)
    with pytest.raises(RobotNotFound):
        w.pair.sell_to_robot(missing, 123, sender=TAKER)
    with pytest.raises(RobotNotFound):
        w.pair.buy_from_robot(missing, 123, sender=TAKER)


def test_not_enough_money(make_world) -> None:
    w, rid = _setup(make_world, 8)
    w.stock.approve(TAKER, w.pair.address, 99999 * E18)
    with pytest.raises(NotEnoughMoney):
        w.pair.sell_to_robot(rid, 100 * E18, sender=TAKER)
    assert w.stock.balance_of(TAKER) == 200 * E18
    assert w.pair.get_robot(rid).money_amount == 500 * 10**8


def test_not_enough_stock(make_world) -> None:
    w, rid = _setup(make_world, 8)
    w.money.approve(TAKER, w.pair.address, 99999 * 10**8)
    with pytest.raises(NotEnoughStock):
        w.pair.buy_from_robot(rid, 20000 * 10**8, sender=TAKER)
    assert w.money.balance_of(TAKER) == 20000 * 10**8
    assert w.pair.get_robot(rid).stock_amount == 100 * E18


@pytest.mark.parametrize(
    "money_decimals,robot_money,taker_money",
    [
        (8, "400.0000024", "20099.9999976"),
        (20, "400.000002393958776832", "20099.999997606041223168"),
    ],
)
def test_sell_to_robot_ok(make_world, money_decimals: int, robot_money: str, taker_money: str) -> None:
    w, rid = _setup(make_world, money_decimals)
    w.stock.approve(TAKER, w.pair.address, 99999 * E18)
    before_codes = (w.pair.get_robot(rid).high_price, w.pair.get_robot(rid).low_price)
    w.pair.sell_to_robot(rid, E18, sender=TAKER)

    assert _robot_view(w, rid) == {
        "stock_amount": "101.0",
        "money_amount": robot_money,
        "high_price": "149.9999942100385792",
        "low_price": "99.999997606041223168",
    }
    assert (w.pair.get_robot(rid).high_price, w.pair.get_robot(rid).low_price) == before_codes
    assert format_units(w.stock.balance_of(w.pair.address), 18) == "101.0"
    assert format_units(w.money.balance_of(w.pair.address), money_decimals) == robot_money
    assert format_units(w.stock.balance_of(TAKER), 18) == "199.0"
    assert format_units(w.money.balance_of(TAKER), money_decimals) == taker_money


@pytest.mark.parametrize("money_decimals", [8, 20])
def test_buy_from_robot_ok(make_world, money_decimals: int) -> None:
    w, rid = _setup(make_world, money_decimals)
    m = 10**money_decimals
    w.money.approve(TAKER, w.pair.address, 99999 * m)
    stock_out = w.pair.buy_from_robot(rid, 300 * m, sender=TAKER)
    assert stock_out == 2000000077199488590

    assert _robot_view(w, rid) == {
        "stock_amount": "97.99999992280051141",
        "money_amount": "800.0",
        "high_price": "149.9999942100385792",
        "low_price": "99.999997606041223168",
    }
    assert format_units(w.stock.balance_of(w.pair.address), 18) == "97.99999992280051141"
    assert format_units(w.money.balance_of(w.pair.address), money_decimals) == "800.0"
    assert format_units(w.stock.balance_of(TAKER), 18) == "202.00000007719948859"
    assert format_units(w.money.balance_of(TAKER), money_decimals) == "19700.0"


def test_trade_amounts_must_be_positive(make_world) -> None:
    w, rid = _setup(make_world, 8)
    with pytest.raises(ValueError):
        w.pair.sell_to_robot(rid, 0, sender=TAKER)
    with pytest.raises(TypeError):
        w.pair.buy_from_robot(rid, "5", sender=TAKER)  # type: ignore[arg-type]

# [TESTER] v1

from __future__ import annotations

import pytest

from src.kernels.python.robot_trade_v1 import (
    ReserveOverdraw,
    buy_from_robot,
    money_out_for_stock_in,
    sell_to_robot,
    stock_out_for_money_in,
)


E18 = 10**18
HIGH = 149999994210038579200  # decoded 150.0
LOW = 99999997606041223168  # decoded 100.0


def test_money_out_reconciles_decimals() -> None:
    # money with 8 decimals: (price_div, price_mul) = (1e10, 1)
    assert money_out_for_stock_in(stock_in=E18, low_price=LOW, price_div=10**10, price_mul=1) == 9999999760
    # money with 18 decimals
    assert money_out_for_stock_in(stock_in=E18, low_price=LOW, price_div=1, price_mul=1) == LOW
    # money with 20 decimals
    assert money_out_for_stock_in(stock_in=E18, low_price=LOW, price_div=1, price_mul=100) == 9999999760604122316800


def test_stock_out_is_decimal_independent() -> None:
    assert stock_out_for_money_in(money_in=300 * 10**8, high_price=HIGH, price_div=10**10, price_mul=1) == 2000000077199488590
    assert stock_out_for_money_in(money_in=300 * 10**20, high_price=HIGH, price_div=1, price_mul=100) == 2000000077199488590


def test_sell_to_robot_moves_reserves() -> None:
    res = sell_to_robot(
        stock_amount=100 * E18,
        money_amount=500 * 10**8,
        low_price=LOW,
        stock_in=E18,
        price_div=10**10,
        price_mul=1,
    )
    assert res.money_out == 9999999760
    assert res.new_stock_amount == 101 * E18
    assert res.new_money_amount == 40000000240


def test_buy_from_robot_moves_reserves() -> None:
    res = buy_from_robot(
        stock_amount=100 * E18,
        money_amount=500 * 10**8,
        high_price=HIGH,
        money_in=300 * 10**8,
        price_div=10**10,
        price_mul=1,
    )
    assert res.stock_out == 2000000077199488590
    assert res.new_stock_amount == 97999999922800511410
    assert res.new_money_amount == 800 * 10**8


def test_overdraw_rejected() -> None:
    with pytest.raises(ReserveOverdraw):
        sell_to_robot(stock_amount=0, money_amount=10, low_price=LOW, stock_in=E18, price_div=1, price_mul=1)
    with pytest.raises(ReserveOverdraw):
        buy_from_robot(stock_amount=10, money_amount=0, high_price=HIGH, money_in=E18 * 1000, price_div=1, price_mul=1)


def test_amounts_must_be_positive_ints() -> None:
    with pytest.raises(ValueError):
        money_out_for_stock_in(stock_in=0, low_price=LOW, price_div=1, price_mul=1)
    with pytest.raises(ValueError):
        stock_out_for_money_in(money_in=1, high_price=0, price_div=1, price_mul=1)
    with pytest.raises(TypeError):
        money_out_for_stock_in(stock_in=1.5, low_price=LOW, price_div=1, price_mul=1)  # type: ignore[arg-type]


def test_non_positive_inputs_are_not_overdraws() -> None:
    with pytest.raises(ValueError) as excinfo:
        sell_to_robot(stock_amount=0, money_amount=10, low_price=0, stock_in=E18, price_div=1, price_mul=1)
    assert not isinstance(excinfo.value, ReserveOverdraw)

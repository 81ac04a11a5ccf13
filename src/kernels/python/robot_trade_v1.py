"""
Robot trade kernel (v1 semantics).

A robot quotes a band `[low, high]` (decoded 18-decimal prices):
- a taker SELLS stock to the robot at the robot's low price (its bid),
- a taker BUYS stock from the robot at the robot's high price (its ask).

Token decimals are reconciled through the pair's `(price_div, price_mul)` scale
factors (see `src/core/pair_config.py`):

    money_out = floor(stock_in * low * price_mul / (1e18 * price_div))
    stock_out = floor(money_in * price_div * 1e18 / (high * price_mul))

Both formulas round toward the robot. The band itself is not moved by a trade.
"""

from __future__ import annotations

from dataclasses import dataclass

from .price_codec import PRICE_SCALE


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_positive(name: str, value: int) -> None:
    _require_int(name, value)
    if value <= 0:
        raise ValueError(f"{name} must be positive: {value}")


class ReserveOverdraw(ValueError):
    """A payout larger than the reserve it is drawn from."""


@dataclass(frozen=True)
class SellToRobotResult:
    stock_in: int
    money_out: int
    new_stock_amount: int
    new_money_amount: int


@dataclass(frozen=True)
class BuyFromRobotResult:
    money_in: int
    stock_out: int
    new_stock_amount: int
    new_money_amount: int


def money_out_for_stock_in(*, stock_in: int, low_price: int, price_div: int, price_mul: int) -> int:
    """
    Money paid by the robot for `stock_in` units of stock, at the low price.
    """
    _require_positive("stock_in", stock_in)
    _require_positive("low_price", low_price)
    _require_positive("price_div", price_div)
    _require_positive("price_mul", price_mul)
    return (stock_in * low_price * price_mul) // (PRICE_SCALE * price_div)


def stock_out_for_money_in(*, money_in: int, high_price: int, price_div: int, price_mul: int) -> int:
    """
    Stock paid by the robot for `money_in` units of money, at the high price.
    """
    _require_positive("money_in", money_in)
    _require_positive("high_price", high_price)
    _require_positive("price_div", price_div)
    _require_positive("price_mul", price_mul)
    return (money_in * price_div * PRICE_SCALE) // (high_price * price_mul)


def sell_to_robot(
    *,
    stock_amount: int,
    money_amount: int,
    low_price: int,
    stock_in: int,
    price_div: int,
    price_mul: int,
) -> SellToRobotResult:
    """
    Compute the post-trade reserves of a robot that buys `stock_in` stock.

    Raises:
        ReserveOverdraw: If the payout exceeds the robot's money reserve
    """
    _require_int("stock_amount", stock_amount)
    _require_int("money_amount", money_amount)
    if stock_amount < 0 or money_amount < 0:
        raise ValueError(f"Reserves must be non-negative: ({stock_amount}, {money_amount})")
    money_out = money_out_for_stock_in(
        stock_in=stock_in, low_price=low_price, price_div=price_div, price_mul=price_mul
    )
    if money_out > money_amount:
        raise ReserveOverdraw(f"money_out ({money_out}) exceeds money reserve ({money_amount})")
    return SellToRobotResult(
        stock_in=stock_in,
        money_out=money_out,
        new_stock_amount=stock_amount + stock_in,
        new_money_amount=money_amount - money_out,
    )


def buy_from_robot(
    *,
    stock_amount: int,
    money_amount: int,
    high_price: int,
    money_in: int,
    price_div: int,
    price_mul: int,
) -> BuyFromRobotResult:
    """
    Compute the post-trade reserves of a robot that sells stock for `money_in` money.

    Raises:
        ReserveOverdraw: If the payout exceeds the robot's stock reserve
    """
    _require_int("stock_amount", stock_amount)
    _require_int("money_amount", money_amount)
    if stock_amount < 0 or money_amount < 0:
        raise ValueError(f"Reserves must be non-negative: ({stock_amount}, {money_amount})")
    stock_out = stock_out_for_money_in(
        money_in=money_in, high_price=high_price, price_div=price_div, price_mul=price_mul
    )
    if stock_out > stock_amount:
        raise ReserveOverdraw(f"stock_out ({stock_out}) exceeds stock reserve ({stock_amount})")
    return BuyFromRobotResult(
        money_in=money_in,
        stock_out=stock_out,
        new_stock_amount=stock_amount - stock_out,
        new_money_amount=money_amount + money_in,
    )

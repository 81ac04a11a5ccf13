"""
Immutable per-pair configuration.

A pair-instance reconciles token units with the universal 18-decimal price scale
through two factors fixed at deployment:

    diff = money_decimals - stock_decimals
    diff >= 0  ->  price_div = 1,           price_mul = 10**diff
    diff <  0  ->  price_div = 10**(-diff), price_mul = 1

so that `money_units = stock_units * price * price_mul / (1e18 * price_div)`.

The binary layout embedded in a pair stub is the ABI encoding of
`(address stock, address money, uint256 price_div, uint256 price_mul)`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode

from ..state.canonical import canonical_address


PAIR_CONFIG_ABI_TYPES = ("address", "address", "uint256", "uint256")
PAIR_CONFIG_BYTES = 32 * len(PAIR_CONFIG_ABI_TYPES)


@dataclass(frozen=True)
class PairConfig:
    stock_token: str
    money_token: str
    price_div: int
    price_mul: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "stock_token", canonical_address(self.stock_token, name="stock_token"))
        object.__setattr__(self, "money_token", canonical_address(self.money_token, name="money_token"))
        if self.stock_token == self.money_token:
            raise ValueError("stock and money tokens must differ")
        for name in ("price_div", "price_mul"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive int: {value!r}")
        if self.price_div != 1 and self.price_mul != 1:
            raise ValueError("at most one of price_div/price_mul may differ from 1")

    @classmethod
    def from_decimals(
        cls, *, stock_token: str, money_token: str, stock_decimals: int, money_decimals: int
    ) -> "PairConfig":
        price_div, price_mul = scale_factors(stock_decimals=stock_decimals, money_decimals=money_decimals)
        return cls(stock_token=stock_token, money_token=money_token, price_div=price_div, price_mul=price_mul)

    def as_tuple(self) -> Tuple[str, str, int, int]:
        return (self.stock_token, self.money_token, self.price_div, self.price_mul)

    def encode(self) -> bytes:
        return abi_encode(list(PAIR_CONFIG_ABI_TYPES), list(self.as_tuple()))

    @classmethod
    def decode(cls, data: bytes) -> "PairConfig":
        """
        Raises:
            ValueError: If `data` is not exactly one encoded config
        """
        if len(data) != PAIR_CONFIG_BYTES:
            raise ValueError(f"pair config must be {PAIR_CONFIG_BYTES} bytes, got {len(data)}")
        stock, money, price_div, price_mul = abi_decode(list(PAIR_CONFIG_ABI_TYPES), bytes(data))
        return cls(stock_token=stock, money_token=money, price_div=int(price_div), price_mul=int(price_mul))


def scale_factors(*, stock_decimals: int, money_decimals: int) -> Tuple[int, int]:
    """Return (price_div, price_mul) for the given token decimals."""
    for name, value in (("stock_decimals", stock_decimals), ("money_decimals", money_decimals)):
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"{name} must be a non-negative int: {value!r}")
    diff = money_decimals - stock_decimals
    if diff >= 0:
        return 1, 10**diff
    return 10**(-diff), 1

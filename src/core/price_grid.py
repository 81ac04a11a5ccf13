"""
Geometric price ladders for quoting robot bands on a fixed grid.

A grid index `g` splits into `head = g // steps` (a power-of-two octave) and a
`tail` that selects one entry from a fine table X and one from a coarse table Y:

    price(g) = (2^xbits + X[tail % len(X)]) * (2^16 + Y[tail // len(X)]) << head

The tables are chosen so consecutive grid prices differ by a near-constant ratio:
about 1.0027 for the 256-step ladder and about 1.0109 for the 64-step one.

These helpers are not used by the trade engine; they are for tools that want to
snap band bounds to a ladder before encoding them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PriceLadder:
    x_bits: int
    x_table: Tuple[int, ...]
    y_table: Tuple[int, ...]
    max_octaves: int = 50

    @property
    def steps(self) -> int:
        return len(self.x_table) * len(self.y_table)

    def grid_to_price(self, grid: int) -> int:
        if not isinstance(grid, int) or isinstance(grid, bool):
            raise TypeError("grid must be an int")
        if grid < 0:
            raise ValueError(f"grid must be non-negative: {grid}")
        head, tail = divmod(grid, self.steps)
        fine = len(self.x_table)
        x = self.x_table[tail % fine]
        y = self.y_table[tail // fine]
        return ((1 << self.x_bits) + x) * ((1 << 16) + y) << head

    def price_to_grid(self, price: int) -> int:
        """
        Largest grid index whose price is <= `price`.

        Raises:
            ValueError: If `price` is below the grid-0 price
        """
        if not isinstance(price, int) or isinstance(price, bool):
            raise TypeError("price must be an int")
        fine = len(self.x_table)
        octave = _last_not_above(self.max_octaves, lambda a: self.grid_to_price(a * self.steps), price)
        if octave < 0:
            raise ValueError(f"price {price} is below the lowest grid price {self.grid_to_price(0)}")
        base = octave * self.steps
        coarse = _last_not_above(len(self.y_table), lambda b: self.grid_to_price(base + b * fine), price)
        base += coarse * fine
        return base + _last_not_above(fine, lambda c: self.grid_to_price(base + c), price)


def _last_not_above(n: int, price_at, price: int) -> int:
    # Index just before the first k with price_at(k) > price; n - 1 if none.
    for k in range(n):
        if price_at(k) > price:
            return k - 1
    return n - 1


def _offsets(base: int, raw: Tuple[int, ...]) -> Tuple[int, ...]:
    return tuple(v - base for v in raw)


LADDER_256 = PriceLadder(
    x_bits=20,
    x_table=_offsets(1 << 20, (
        1048576, 1051419, 1054270, 1057128, 1059994, 1062868, 1065750, 1068639,
        1071537, 1074442, 1077355, 1080276, 1083205, 1086142, 1089087, 1092040,
    )),
    y_table=_offsets(1 << 16, (
        65536, 68438, 71468, 74632, 77936, 81386, 84990, 88752,
        92682, 96785, 101070, 105545, 110218, 115098, 120194, 125515,
    )),
)

LADDER_64 = PriceLadder(
    x_bits=19,
    x_table=_offsets(1 << 19, (524288, 529997, 535768, 541603, 547500, 553462, 559489, 565581)),
    y_table=_offsets(1 << 16, (65536, 71468, 77936, 84990, 92682, 101070, 110218, 120194)),
)


def grid_to_price_256(grid: int) -> int:
    return LADDER_256.grid_to_price(grid)


def price_to_grid_256(price: int) -> int:
    return LADDER_256.price_to_grid(price)


def grid_to_price_64(grid: int) -> int:
    return LADDER_64.grid_to_price(grid)


def price_to_grid_64(price: int) -> int:
    return LADDER_64.price_to_grid(price)

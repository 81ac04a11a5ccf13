"""
Robot position records and the per-pair robot ledger.

Persisted layout (256-bit words, most- to least-significant):

    RobotId:   owner address (160 bits) | creation sequence (96 bits)
    RobotInfo: stock_amount (96) | money_amount (96) | high_price (32) | low_price (32)

`high_price` / `low_price` are price codewords (see `src/kernels/python/price_codec.py`).
Codewords are monotonic in the price they encode, so the band order check compares
codewords directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

from ..kernels.python.price_codec import CODEWORD_MAX, unpack_price
from .canonical import address_to_int, canonical_address, int_to_address
from .errors import AmountOverflow, InvalidIndex, InvalidPrice, NotOwner, RobotNotFound


AMOUNT_BITS = 96
AMOUNT_MAX = (1 << AMOUNT_BITS) - 1
SEQUENCE_BITS = 96
SEQUENCE_MAX = (1 << SEQUENCE_BITS) - 1
PRICE_WORD_BITS = 32
WORD_MAX = (1 << 256) - 1

_STOCK_SHIFT = AMOUNT_BITS + 2 * PRICE_WORD_BITS  # 160
_MONEY_SHIFT = 2 * PRICE_WORD_BITS  # 64
_HIGH_SHIFT = PRICE_WORD_BITS  # 32

# Type aliases
RobotId = int
Address = str


def encode_robot_id(owner: Address, sequence: int) -> RobotId:
    """Pack (owner, creation sequence) into a 256-bit robot id."""
    if not isinstance(sequence, int) or isinstance(sequence, bool):
        raise TypeError("sequence must be an int")
    if not (0 <= sequence <= SEQUENCE_MAX):
        raise ValueError(f"sequence must fit in {SEQUENCE_BITS} bits: {sequence}")
    return (address_to_int(owner) << SEQUENCE_BITS) | sequence


def decode_robot_id(robot_id: RobotId) -> Tuple[Address, int]:
    """Split a robot id into (checksummed owner address, creation sequence)."""
    if not isinstance(robot_id, int) or isinstance(robot_id, bool):
        raise TypeError("robot_id must be an int")
    if not (0 <= robot_id <= WORD_MAX):
        raise ValueError("robot_id must fit in 256 bits")
    return int_to_address(robot_id >> SEQUENCE_BITS), robot_id & SEQUENCE_MAX


def robot_owner(robot_id: RobotId) -> Address:
    return decode_robot_id(robot_id)[0]


@dataclass(frozen=True)
class RobotInfo:
    """
    A robot's reserves and quoted band.

    Attributes:
        stock_amount: Stock reserve in the stock token's native units
        money_amount: Money reserve in the money token's native units
        high_price: Codeword of the upper band bound
        low_price: Codeword of the lower band bound
    """

    stock_amount: int
    money_amount: int
    high_price: int
    low_price: int

    def __post_init__(self) -> None:
        for name in ("stock_amount", "money_amount", "high_price", "low_price"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
            if value < 0:
                raise ValueError(f"{name} must be non-negative: {value}")
        if self.stock_amount > AMOUNT_MAX:
            raise AmountOverflow(f"stock_amount {self.stock_amount} exceeds {AMOUNT_BITS} bits")
        if self.money_amount > AMOUNT_MAX:
            raise AmountOverflow(f"money_amount {self.money_amount} exceeds {AMOUNT_BITS} bits")
        if self.high_price > CODEWORD_MAX or self.low_price > CODEWORD_MAX:
            raise InvalidPrice("price codeword exceeds 32 bits")

    @property
    def high_price_value(self) -> int:
        """Decoded upper bound (18-decimal scale)."""
        return unpack_price(self.high_price)

    @property
    def low_price_value(self) -> int:
        """Decoded lower bound (18-decimal scale)."""
        return unpack_price(self.low_price)

    def band_is_ordered(self) -> bool:
        return self.low_price <= self.high_price

    def pack(self) -> int:
        return (
            (self.stock_amount << _STOCK_SHIFT)
            | (self.money_amount << _MONEY_SHIFT)
            | (self.high_price << _HIGH_SHIFT)
            | self.low_price
        )

    @classmethod
    def unpack(cls, word: int) -> "RobotInfo":
        if not isinstance(word, int) or isinstance(word, bool):
            raise TypeError("robot info word must be an int")
        if not (0 <= word <= WORD_MAX):
            raise ValueError("robot info word must fit in 256 bits")
        price_mask = (1 << PRICE_WORD_BITS) - 1
        return cls(
            stock_amount=word >> _STOCK_SHIFT,
            money_amount=(word >> _MONEY_SHIFT) & AMOUNT_MAX,
            high_price=(word >> _HIGH_SHIFT) & price_mask,
            low_price=word & price_mask,
        )


class RobotLedger:
    """
    Per-pair robot storage: id -> info map plus a dense live index.

    - `create` appends to the live index (O(1)).
    - `delete` swaps the last live id into the freed slot and pops (O(1)), so live
      index positions are only stable until the next deletion.
    - Robot ids embed a monotonic creation counter and are never reused.
    """

    def __init__(self) -> None:
        self._created_count = 0
        self._robots: Dict[RobotId, RobotInfo] = {}
        self._live: List[RobotId] = []

    @property
    def created_count(self) -> int:
        return self._created_count

    def __len__(self) -> int:
        return len(self._live)

    def __contains__(self, robot_id: object) -> bool:
        return robot_id in self._robots

    def live_ids(self) -> List[RobotId]:
        """Copy of the live index, in current order."""
        return list(self._live)

    def create(self, owner: Address, info: RobotInfo) -> RobotId:
        """
        Insert a new robot for `owner`.

        Raises:
            InvalidPrice: If the band is inverted (low > high)
        """
        if not info.band_is_ordered():
            raise InvalidPrice(f"low {info.low_price:#x} > high {info.high_price:#x}")
        robot_id = encode_robot_id(canonical_address(owner, name="owner"), self._created_count)
        self._created_count += 1
        self._robots[robot_id] = info
        self._live.append(robot_id)
        return robot_id

    def get(self, robot_id: RobotId) -> RobotInfo:
        """
        Raises:
            RobotNotFound: If the robot does not exist (or was deleted)
        """
        info = self._robots.get(robot_id)
        if info is None:
            raise RobotNotFound(f"{robot_id:#x}" if isinstance(robot_id, int) else repr(robot_id))
        return info

    def update(self, robot_id: RobotId, info: RobotInfo) -> None:
        """Replace a live robot's record in place. The live index is untouched."""
        if robot_id not in self._robots:
            raise RobotNotFound(f"{robot_id:#x}")
        self._robots[robot_id] = info

    def check_delete(self, index: int, robot_id: RobotId, caller: Address) -> RobotInfo:
        """
        Validate a deletion without mutating anything.

        The owner check runs before the index check.

        Raises:
            NotOwner: If `robot_id` does not embed `caller`
            InvalidIndex: If `index` is out of range or the slot holds another id
        """
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError("index must be an int")
        if robot_owner(robot_id) != canonical_address(caller, name="caller"):
            raise NotOwner(f"{robot_id:#x}")
        if not (0 <= index < len(self._live)) or self._live[index] != robot_id:
            raise InvalidIndex(f"index {index} does not hold {robot_id:#x}")
        return self._robots[robot_id]

    def delete(self, index: int, robot_id: RobotId, caller: Address) -> RobotInfo:
        """
        Delete a robot by (live index, id). Returns the removed record.
        """
        info = self.check_delete(index, robot_id, caller)
        del self._robots[robot_id]
        last = self._live.pop()
        if index < len(self._live):
            self._live[index] = last
        return info

    def iter_robots(self) -> Iterator[Tuple[RobotId, RobotInfo]]:
        """
        Lazily yield (id, info) in live-index order as of the call.

        Ids deleted while the iterator is being consumed are skipped.
        """
        return self._iter_ids(tuple(self._live))

    def _iter_ids(self, ids: Tuple[RobotId, ...]) -> Iterator[Tuple[RobotId, RobotInfo]]:
        for robot_id in ids:
            info = self._robots.get(robot_id)
            if info is not None:
                yield robot_id, info

    def checkpoint(self) -> Tuple[int, Dict[RobotId, RobotInfo], List[RobotId]]:
        return self._created_count, dict(self._robots), list(self._live)

    def rollback(self, checkpoint: Tuple[int, Dict[RobotId, RobotInfo], List[RobotId]]) -> None:
        """Restore the ledger in place to a state captured by `checkpoint()`."""
        created_count, robots, live = checkpoint
        self._created_count = created_count
        self._robots = dict(robots)
        self._live = list(live)

    def __iter__(self) -> Iterator[Tuple[RobotId, RobotInfo]]:
        return self.iter_robots()

    def __repr__(self) -> str:
        return f"RobotLedger({len(self._live)} live, {self._created_count} created)"

    @classmethod
    def restore(cls, *, created_count: int, robots: List[Tuple[RobotId, RobotInfo]]) -> "RobotLedger":
        """
        Rebuild a ledger from persisted (id, info) pairs in live-index order.

        Raises:
            ValueError: If the entries are inconsistent with `created_count`
        """
        if not isinstance(created_count, int) or isinstance(created_count, bool) or created_count < 0:
            raise ValueError("created_count must be a non-negative int")
        ledger = cls()
        ledger._created_count = created_count
        for robot_id, info in robots:
            _owner, seq = decode_robot_id(robot_id)
            if seq >= created_count:
                raise ValueError(f"robot {robot_id:#x} sequence {seq} >= created_count {created_count}")
            if robot_id in ledger._robots:
                raise ValueError(f"duplicate robot id {robot_id:#x}")
            if not info.band_is_ordered():
                raise InvalidPrice(f"robot {robot_id:#x} has an inverted band")
            ledger._robots[robot_id] = info
            ledger._live.append(robot_id)
        return ledger

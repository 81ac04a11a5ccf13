"""
Robot trade engine: the logic template served through pair stubs.

`attach(chain, pair_address)` resolves a pair stub to its logic template and
returns a `RobotPair` bound to the stub's address and storage (delegate-call
semantics: the code is the template's, the state and custody are the stub's).

Every operation is all-or-nothing. All checks run first (ledger, pricing, every
token leg via `check_*`), then the token transfers and ledger writes are
committed, none of which can fail once the checks passed.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Tuple

from ..kernels.python import robot_trade_v1 as trade_kernel
from ..kernels.python.price_codec import pack_price, unpack_price
from ..state.canonical import canonical_address, domain_sep_bytes
from ..state.chain import Chain
from ..state.errors import (
    AmountOverflow,
    DontSendNativeCoin,
    InvalidConfiguration,
    InvalidPrice,
    NotEnoughMoney,
    NotEnoughStock,
)
from ..state.robots import AMOUNT_MAX, RobotId, RobotInfo, RobotLedger, robot_owner
from .clone_factory import load_params_from_code, parse_stub_code
from .pair_config import PairConfig


logger = logging.getLogger(__name__)

LOGIC_CODE = domain_sep_bytes("robot-logic")


class RobotLogic:
    """Marker object served at the logic template address."""

    def __init__(self, address: str) -> None:
        self.address = canonical_address(address, name="logic address")

    def __repr__(self) -> str:
        return f"RobotLogic({self.address})"


def deploy_robot_logic(chain: Chain, deployer: str) -> str:
    address = chain.next_address(deployer)
    chain.deploy(deployer, LOGIC_CODE, RobotLogic(address))
    return address


def attach(chain: Chain, pair_address: str) -> "RobotPair":
    """
    Bind to a deployed pair stub.

    Raises:
        InvalidConfiguration: If the address is not a stub delegating to a robot logic template
    """
    code = chain.get_code(pair_address)
    logic, _params = parse_stub_code(code)
    if not isinstance(chain.contract(logic), RobotLogic):
        raise InvalidConfiguration(f"stub logic {logic} is not a robot logic template")
    return RobotPair(chain, pair_address)


def encode_band(high_price: int, low_price: int) -> Tuple[int, int]:
    """
    Encode (high, low) 18-decimal prices into codewords.

    Raises:
        InvalidPrice: If either price fails the codec or low > high
    """
    try:
        high = pack_price(high_price)
        low = pack_price(low_price)
    except (TypeError, ValueError) as exc:
        raise InvalidPrice(str(exc)) from exc
    if low > high:
        raise InvalidPrice(f"low {low_price} > high {high_price}")
    return high, low


def _require_positive_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value <= 0:
        raise ValueError(f"{name} must be positive: {value}")


class RobotPair:
    """
    One pair-instance: robot ledger + trade engine for a (stock, money) pair.

    The pair configuration is read once from the stub's own code and cached.
    """

    def __init__(self, chain: Chain, address: str) -> None:
        self.chain = chain
        self.address = canonical_address(address, name="pair address")
        self._params = self.load_params()
        self.ledger: RobotLedger = chain.storage(self.address, RobotLedger)

    # -- configuration ----------------------------------------------------------

    def load_params(self) -> PairConfig:
        """Decode the PairConfig embedded in this pair's own stub code."""
        return load_params_from_code(self.chain.get_code(self.address))

    def pair_params(self) -> PairConfig:
        return self._params

    @property
    def stock_token(self):
        return self.chain.token(self._params.stock_token)

    @property
    def money_token(self):
        return self.chain.token(self._params.money_token)

    # -- views ----------------------------------------------------------------

    def get_robot(self, robot_id: RobotId) -> RobotInfo:
        return self.ledger.get(robot_id)

    def robot_info_map(self, robot_id: RobotId) -> int:
        """Packed RobotInfo word, 0 for unknown ids."""
        if robot_id not in self.ledger:
            return 0
        return self.ledger.get(robot_id).pack()

    def list_robots(self) -> Iterator[Tuple[RobotId, RobotInfo]]:
        return self.ledger.iter_robots()

    def get_all_robots(self) -> List[int]:
        """Flat [id, info, id, info, ...] list of packed words in live-index order."""
        out: List[int] = []
        for robot_id, info in self.ledger.iter_robots():
            out.append(robot_id)
            out.append(info.pack())
        return out

    def created_robot_count(self) -> int:
        return self.ledger.created_count

    # -- robot lifecycle ----------------------------------------------------------

    def create_robot(
        self,
        stock_amount: int,
        money_amount: int,
        high_price: int,
        low_price: int,
        *,
        sender: str,
        value: int = 0,
    ) -> RobotId:
        """
        Create a robot from raw 18-decimal band prices and pull its reserves.

        Raises:
            InvalidPrice: Band fails the codec or is inverted
            DontSendNativeCoin: `value` is non-zero
            AmountOverflow: A reserve does not fit 96 bits
            InsufficientAllowance / InsufficientBalance: From the token collaborator
        """
        high, low = encode_band(high_price, low_price)
        return self._create(stock_amount, money_amount, high, low, sender=sender, value=value)

    def create_robot_packed(self, robot_info: int, *, sender: str, value: int = 0) -> RobotId:
        """Create a robot from a packed RobotInfo word (codewords already encoded)."""
        info = RobotInfo.unpack(robot_info)
        if info.high_price == 0 or info.low_price == 0:
            raise InvalidPrice("price must be positive: 0")
        if not info.band_is_ordered():
            raise InvalidPrice(f"low {info.low_price:#x} > high {info.high_price:#x}")
        return self._create(info.stock_amount, info.money_amount, info.high_price, info.low_price, sender=sender, value=value)

    def _create(self, stock_amount: int, money_amount: int, high: int, low: int, *, sender: str, value: int) -> RobotId:
        if value != 0:
            raise DontSendNativeCoin(f"value={value}")
        for name, amount in (("stock_amount", stock_amount), ("money_amount", money_amount)):
            if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
                raise ValueError(f"{name} must be a non-negative int: {amount!r}")
            if amount > AMOUNT_MAX:
                raise AmountOverflow(f"{name}={amount}")
        owner = canonical_address(sender, name="sender")
        info = RobotInfo(stock_amount=stock_amount, money_amount=money_amount, high_price=high, low_price=low)

        stock, money = self.stock_token, self.money_token
        stock.check_transfer_from(self.address, owner, self.address, stock_amount)
        money.check_transfer_from(self.address, owner, self.address, money_amount)

        stock.transfer_from(self.address, owner, self.address, stock_amount)
        money.transfer_from(self.address, owner, self.address, money_amount)
        robot_id = self.ledger.create(owner, info)
        logger.debug(
            "pair %s: robot %#x created by %s (stock=%d money=%d band=[%d, %d])",
            self.address, robot_id, owner, stock_amount, money_amount,
            unpack_price(low), unpack_price(high),
        )
        return robot_id

    def delete_robot(self, index: int, robot_id: RobotId, *, sender: str) -> RobotInfo:
        """
        Delete a robot and return both reserves to its owner.

        Raises:
            NotOwner: `sender` is not the owner embedded in `robot_id`
            InvalidIndex: Live index `index` does not hold `robot_id`
        """
        caller = canonical_address(sender, name="sender")
        info = self.ledger.check_delete(index, robot_id, caller)

        stock, money = self.stock_token, self.money_token
        stock.check_transfer(self.address, caller, info.stock_amount)
        money.check_transfer(self.address, caller, info.money_amount)

        stock.transfer(self.address, caller, info.stock_amount)
        money.transfer(self.address, caller, info.money_amount)
        self.ledger.delete(index, robot_id, caller)
        logger.debug(
            "pair %s: robot %#x deleted at index %d (returned stock=%d money=%d)",
            self.address, robot_id, index, info.stock_amount, info.money_amount,
        )
        return info

    # -- trading ----------------------------------------------------------------

    def sell_to_robot(self, robot_id: RobotId, stock_in: int, *, sender: str) -> int:
        """
        Sell `stock_in` stock to a robot at its low price. Returns the money paid out.

        Raises:
            RobotNotFound: Unknown robot id
            NotEnoughMoney: The payout exceeds the robot's money reserve
            AmountOverflow: The stock reserve would exceed 96 bits
            InsufficientAllowance / InsufficientBalance: From the token collaborator
        """
        _require_positive_amount("stock_in", stock_in)
        taker = canonical_address(sender, name="sender")
        info = self.ledger.get(robot_id)
        params = self._params

        try:
            res = trade_kernel.sell_to_robot(
                stock_amount=info.stock_amount,
                money_amount=info.money_amount,
                low_price=info.low_price_value,
                stock_in=stock_in,
                price_div=params.price_div,
                price_mul=params.price_mul,
            )
        except trade_kernel.ReserveOverdraw as exc:
            raise NotEnoughMoney(f"robot {robot_id:#x}: {exc}") from exc
        money_out = res.money_out
        if res.new_stock_amount > AMOUNT_MAX:
            raise AmountOverflow(f"stock reserve {res.new_stock_amount}")
        new_info = self._rebanded(info, res.new_stock_amount, res.new_money_amount)

        stock, money = self.stock_token, self.money_token
        stock.check_transfer_from(self.address, taker, self.address, stock_in)
        money.check_transfer(self.address, taker, money_out)

        stock.transfer_from(self.address, taker, self.address, stock_in)
        money.transfer(self.address, taker, money_out)
        self.ledger.update(robot_id, new_info)
        logger.debug("pair %s: %s sold %d stock to robot %#x for %d money", self.address, taker, stock_in, robot_id, money_out)
        return money_out

    def buy_from_robot(self, robot_id: RobotId, money_in: int, *, sender: str) -> int:
        """
        Buy stock from a robot with `money_in` money at its high price. Returns the stock paid out.

        Raises:
            RobotNotFound: Unknown robot id
            NotEnoughStock: The payout exceeds the robot's stock reserve
            AmountOverflow: The money reserve would exceed 96 bits
            InsufficientAllowance / InsufficientBalance: From the token collaborator
        """
        _require_positive_amount("money_in", money_in)
        taker = canonical_address(sender, name="sender")
        info = self.ledger.get(robot_id)
        params = self._params

        try:
            res = trade_kernel.buy_from_robot(
                stock_amount=info.stock_amount,
                money_amount=info.money_amount,
                high_price=info.high_price_value,
                money_in=money_in,
                price_div=params.price_div,
                price_mul=params.price_mul,
            )
        except trade_kernel.ReserveOverdraw as exc:
            raise NotEnoughStock(f"robot {robot_id:#x}: {exc}") from exc
        stock_out = res.stock_out
        if res.new_money_amount > AMOUNT_MAX:
            raise AmountOverflow(f"money reserve {res.new_money_amount}")
        new_info = self._rebanded(info, res.new_stock_amount, res.new_money_amount)

        stock, money = self.stock_token, self.money_token
        money.check_transfer_from(self.address, taker, self.address, money_in)
        stock.check_transfer(self.address, taker, stock_out)

        money.transfer_from(self.address, taker, self.address, money_in)
        stock.transfer(self.address, taker, stock_out)
        self.ledger.update(robot_id, new_info)
        logger.debug("pair %s: %s bought %d stock from robot %#x for %d money", self.address, taker, stock_out, robot_id, money_in)
        return stock_out

    @staticmethod
    def _rebanded(info: RobotInfo, stock_amount: int, money_amount: int) -> RobotInfo:
        # Trades never move the band.
        return RobotInfo(
            stock_amount=stock_amount,
            money_amount=money_amount,
            high_price=info.high_price,
            low_price=info.low_price,
        )

    def owner_of(self, robot_id: RobotId) -> str:
        return robot_owner(robot_id)

    def __repr__(self) -> str:
        return f"RobotPair({self.address}, {self.ledger!r})"

"""
ERC20-style fungible token collaborator.

The pair engine only needs balances, allowances and the three transfer entry
points. Each mutating call has a `check_*` twin that raises the same error without
touching state, so multi-transfer operations can validate every leg before
committing any of them.
"""

from __future__ import annotations

from typing import Dict, Tuple

from .canonical import canonical_address
from .errors import InsufficientAllowance, InsufficientBalance


UINT256_MAX = (1 << 256) - 1

# An allowance of UINT256_MAX is treated as infinite and never decremented.
INFINITE_ALLOWANCE = UINT256_MAX

Address = str
Amount = int


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= UINT256_MAX):
        raise ValueError(f"{name} must be in [0, 2^256): {value}")


class Erc20Token:
    """
    In-memory ERC20 token.

    Zero balances are dropped to keep the table sparse.
    """

    def __init__(self, *, address: Address, symbol: str, decimals: int) -> None:
        if not isinstance(symbol, str) or not symbol:
            raise ValueError("symbol must be a non-empty string")
        if not isinstance(decimals, int) or isinstance(decimals, bool) or not (0 <= decimals <= 77):
            raise ValueError(f"decimals must be an int in [0, 77]: {decimals!r}")
        self.address = canonical_address(address, name="token address")
        self.symbol = symbol
        self.decimals = decimals
        self._balances: Dict[Address, Amount] = {}
        self._allowances: Dict[Tuple[Address, Address], Amount] = {}
        self._total_supply = 0

    @property
    def total_supply(self) -> Amount:
        return self._total_supply

    def balance_of(self, holder: Address) -> Amount:
        return self._balances.get(canonical_address(holder, name="holder"), 0)

    def allowance(self, owner: Address, spender: Address) -> Amount:
        key = (canonical_address(owner, name="owner"), canonical_address(spender, name="spender"))
        return self._allowances.get(key, 0)

    def mint(self, to: Address, amount: Amount) -> None:
        _require_amount("amount", amount)
        if self._total_supply + amount > UINT256_MAX:
            raise ValueError("total supply overflow")
        to = canonical_address(to, name="to")
        self._set_balance(to, self.balance_of(to) + amount)
        self._total_supply += amount

    def approve(self, owner: Address, spender: Address, amount: Amount) -> bool:
        _require_amount("amount", amount)
        key = (canonical_address(owner, name="owner"), canonical_address(spender, name="spender"))
        if amount == 0:
            self._allowances.pop(key, None)
        else:
            self._allowances[key] = amount
        return True

    def check_transfer(self, sender: Address, to: Address, amount: Amount) -> None:
        """
        Raises:
            InsufficientBalance: If `sender` holds less than `amount`
        """
        _require_amount("amount", amount)
        canonical_address(to, name="to")
        if self.balance_of(sender) < amount:
            raise InsufficientBalance(f"{self.symbol}: {sender} has {self.balance_of(sender)} < {amount}")

    def check_transfer_from(self, spender: Address, owner: Address, to: Address, amount: Amount) -> None:
        """
        Raises:
            InsufficientAllowance: If `spender` may not move `amount` for `owner`
            InsufficientBalance: If `owner` holds less than `amount`
        """
        _require_amount("amount", amount)
        if self.allowance(owner, spender) < amount:
            raise InsufficientAllowance(f"{self.symbol}: {spender} may move {self.allowance(owner, spender)} < {amount}")
        self.check_transfer(owner, to, amount)

    def transfer(self, sender: Address, to: Address, amount: Amount) -> bool:
        self.check_transfer(sender, to, amount)
        self._move(canonical_address(sender), canonical_address(to), amount)
        return True

    def transfer_from(self, spender: Address, owner: Address, to: Address, amount: Amount) -> bool:
        self.check_transfer_from(spender, owner, to, amount)
        current = self.allowance(owner, spender)
        if current != INFINITE_ALLOWANCE:
            self.approve(owner, spender, current - amount)
        self._move(canonical_address(owner), canonical_address(to), amount)
        return True

    def _move(self, src: Address, dst: Address, amount: Amount) -> None:
        if src == dst or amount == 0:
            return
        self._set_balance(src, self._balances.get(src, 0) - amount)
        self._set_balance(dst, self._balances.get(dst, 0) + amount)

    def _set_balance(self, holder: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop(holder, None)
        else:
            self._balances[holder] = amount

    def get_all_balances(self) -> Dict[Address, Amount]:
        return dict(self._balances)

    def checkpoint(self) -> Tuple[Dict[Address, Amount], Dict[Tuple[Address, Address], Amount], Amount]:
        return dict(self._balances), dict(self._allowances), self._total_supply

    def rollback(self, checkpoint: Tuple[Dict[Address, Amount], Dict[Tuple[Address, Address], Amount], Amount]) -> None:
        """Restore balances, allowances and supply captured by `checkpoint()`."""
        balances, allowances, total_supply = checkpoint
        self._balances = dict(balances)
        self._allowances = dict(allowances)
        self._total_supply = total_supply

    def __repr__(self) -> str:
        return f"Erc20Token({self.symbol}, decimals={self.decimals}, {len(self._balances)} holders)"

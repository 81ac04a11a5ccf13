"""Exception types for the robot ledger, trade engine and token collaborator.

Every error carries a short machine-readable `reason` (the revert string a caller
would see). All of them abort the whole operation; no partial state is left behind.
"""

from __future__ import annotations


class RobotSwapError(Exception):
    """Base class for all rejected operations."""

    reason: str = "rejected"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(self.reason if detail is None else f"{self.reason}: {detail}")


class InvalidPrice(RobotSwapError):
    """A band bound fails codec encoding, or low > high."""

    reason = "invalid-price"


class InvalidConfiguration(RobotSwapError):
    reason = "invalid-configuration"


class DontSendNativeCoin(InvalidConfiguration):
    """The call carried native-asset value; only the two pair tokens move."""

    reason = "dont-send-native-coin"


class PairAlreadyExists(InvalidConfiguration):
    reason = "pair-exists"


class RobotNotFound(RobotSwapError):
    reason = "robot-not-found"


class NotOwner(RobotSwapError):
    reason = "not-owner"


class InvalidIndex(RobotSwapError):
    """The live-index slot does not hold the given robot id (stale index)."""

    reason = "invalid-index"


class NotEnoughMoney(RobotSwapError):
    reason = "not-enough-money"


class NotEnoughStock(RobotSwapError):
    reason = "not-enough-stock"


class AmountOverflow(RobotSwapError):
    """A reserve would no longer fit its 96-bit field."""

    reason = "amount-overflow"


class TokenError(RobotSwapError):
    reason = "token-error"


class InsufficientAllowance(TokenError):
    reason = "ERC20: insufficient allowance"


class InsufficientBalance(TokenError):
    reason = "ERC20: transfer amount exceeds balance"


class PairInvariantError(RobotSwapError):
    """Raised when a post-state violates one or more invariants."""

    reason = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(", ".join(violations))

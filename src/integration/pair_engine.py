"""
Robot-pair execution adapter.

This is an imperative-shell wrapper around the core:
- Applies DoS limits to the raw operation object before parsing it.
- Parses one operation (see `operations.py`) and dispatches it to the factory or
  to the `RobotPair` attached at the operation's pair address.
- Optionally re-checks the pair invariants on the post-state and rolls the
  chain back when they fail.

`apply_tx` never raises for rejected operations; it returns a `PairTxResult`.
`apply_tx_or_raise` is the same path for callers that prefer exceptions.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.clone_factory import CloneFactory
from ..core.invariants import check_all
from ..core.robot_engine import RobotPair, attach
from ..state.canonical import bounded_json_utf8_size, uint_to_hex
from ..state.chain import Chain
from ..state.errors import DontSendNativeCoin, InvalidConfiguration, PairInvariantError, RobotSwapError
from .operations import (
    BuyFromRobotOp,
    CreatePairOp,
    CreateRobotOp,
    DeleteRobotOp,
    Operation,
    SellToRobotOp,
    parse_operation,
)


logger = logging.getLogger(__name__)


def _bool_env(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return bool(default)
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    return max(lo, min(hi, v))


@dataclass(frozen=True)
class PairEngineConfig:
    # Re-run the pair invariants after every accepted operation (fail-closed:
    # a violating post-state is rolled back before the rejection is reported).
    check_invariants: bool = True

    # DoS limit on the raw operation object (canonical JSON bytes, upper bound).
    max_operation_bytes: int = 4096

    @classmethod
    def from_env(cls) -> "PairEngineConfig":
        """
        Read overrides from ROBOTSWAP_CHECK_INVARIANTS / ROBOTSWAP_MAX_OPERATION_BYTES.
        """
        return cls(
            check_invariants=_bool_env("ROBOTSWAP_CHECK_INVARIANTS", default=cls.check_invariants),
            max_operation_bytes=_env_int(
                "ROBOTSWAP_MAX_OPERATION_BYTES", cls.max_operation_bytes, lo=256, hi=1_000_000
            ),
        )


@dataclass(frozen=True)
class PairTxResult:
    ok: bool
    result: Any = None
    error: Optional[str] = None


def _result_json(op: Operation, result: Any) -> Any:
    if isinstance(op, CreateRobotOp):
        return uint_to_hex(result)
    if isinstance(op, DeleteRobotOp):
        return {"stock_amount": result.stock_amount, "money_amount": result.money_amount}
    return result


def execute(
    chain: Chain,
    op: Operation,
    *,
    sender: str,
    value: int = 0,
    factory: Optional[CloneFactory] = None,
) -> Any:
    """
    Dispatch a parsed operation. Returns the raw core result.

    Raises:
        RobotSwapError: Any rejection from the factory, engine or tokens
    """
    if value != 0 and not isinstance(op, CreateRobotOp):
        raise DontSendNativeCoin(f"value={value}")
    if isinstance(op, CreatePairOp):
        if factory is None:
            raise InvalidConfiguration("no factory configured")
        return factory.create(op.stock, op.money, op.logic)

    pair = attach(chain, op.pair)
    if isinstance(op, CreateRobotOp):
        if op.is_packed:
            return pair.create_robot_packed(op.robot_info, sender=sender, value=value)
        return pair.create_robot(
            op.stock_amount, op.money_amount, op.high_price, op.low_price, sender=sender, value=value
        )
    if isinstance(op, DeleteRobotOp):
        return pair.delete_robot(op.index, op.robot_id, sender=sender)
    if isinstance(op, SellToRobotOp):
        return pair.sell_to_robot(op.robot_id, op.stock_in, sender=sender)
    if isinstance(op, BuyFromRobotOp):
        return pair.buy_from_robot(op.robot_id, op.money_in, sender=sender)
    raise ValueError(f"unsupported operation: {op!r}")


def _touched_pair(chain: Chain, op: Operation, result: Any) -> RobotPair:
    if isinstance(op, CreatePairOp):
        return attach(chain, result)
    return attach(chain, op.pair)


def apply_tx_or_raise(
    config: PairEngineConfig,
    chain: Chain,
    operation: Dict[str, Any],
    *,
    sender: str,
    value: int = 0,
    factory: Optional[CloneFactory] = None,
) -> Any:
    """
    Apply one raw operation object. Returns the JSON-friendly result.

    Raises:
        ValueError / TypeError: Oversized or malformed operation
        RobotSwapError: Rejected by the core
        PairInvariantError: The post-state violates one or more invariants (state is rolled back)
    """
    bounded_json_utf8_size(operation, max_bytes=config.max_operation_bytes)
    op = parse_operation(operation)
    checkpoint = chain.checkpoint() if config.check_invariants else None
    result = execute(chain, op, sender=sender, value=value, factory=factory)
    if checkpoint is not None:
        violations = check_all(_touched_pair(chain, op, result))
        if violations:
            chain.rollback(checkpoint)
            raise PairInvariantError(violations)
    return _result_json(op, result)


def apply_tx(
    config: PairEngineConfig,
    chain: Chain,
    operation: Dict[str, Any],
    *,
    sender: str,
    value: int = 0,
    factory: Optional[CloneFactory] = None,
) -> PairTxResult:
    """
    Apply one raw operation object and report the outcome.

    Core rejections carry their verbatim reason (e.g. "not-enough-money"); a
    post-state invariant failure is reported as "invariant:<id>,<id>".
    """
    kind = operation.get("kind") if isinstance(operation, dict) else None

    def _clean_error(s: Any, *, max_len: int = 200) -> str:
        out = " ".join(str(s).strip().split())
        return out if len(out) <= max_len else out[:max_len]

    try:
        result = apply_tx_or_raise(config, chain, operation, sender=sender, value=value, factory=factory)
    except PairInvariantError as exc:
        logger.error("%s from %s broke invariants: %s", kind, sender, ", ".join(exc.violations))
        return PairTxResult(ok=False, error=f"invariant:{','.join(exc.violations)}")
    except RobotSwapError as exc:
        logger.warning("%s from %s rejected: %s", kind, sender, exc)
        return PairTxResult(ok=False, error=exc.reason)
    except (ValueError, TypeError) as exc:
        logger.warning("%s from %s is invalid: %s", kind, sender, exc)
        return PairTxResult(ok=False, error=f"invalid operation: {_clean_error(exc)}")
    logger.debug("%s from %s applied: %r", kind, sender, result)
    return PairTxResult(ok=True, result=result)

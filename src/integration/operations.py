"""
Robot-pair operation parsing.

One JSON object per transaction, discriminated by "kind":

    CREATE_PAIR     {stock, money, logic}
    CREATE_ROBOT    {pair, stock_amount, money_amount, high_price, low_price}
                    or {pair, robot_info}  (packed 256-bit word)
    DELETE_ROBOT    {pair, index, robot_id}
    SELL_TO_ROBOT   {pair, robot_id, stock_in}
    BUY_FROM_ROBOT  {pair, robot_id, money_in}

Integer fields accept JSON ints, decimal strings or 0x-hex strings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..state.canonical import canonical_address, parse_uint, uint_to_hex


class OperationKind(Enum):
    CREATE_PAIR = "CREATE_PAIR"
    CREATE_ROBOT = "CREATE_ROBOT"
    DELETE_ROBOT = "DELETE_ROBOT"
    SELL_TO_ROBOT = "SELL_TO_ROBOT"
    BUY_FROM_ROBOT = "BUY_FROM_ROBOT"


@dataclass(frozen=True)
class CreatePairOp:
    stock: str
    money: str
    logic: str
    kind: OperationKind = OperationKind.CREATE_PAIR


@dataclass(frozen=True)
class CreateRobotOp:
    """
    Either the four explicit fields or `robot_info` is set, never both.

    Prices in the explicit form are raw 18-decimal integers; `robot_info` carries
    codewords already encoded.
    """

    pair: str
    stock_amount: Optional[int] = None
    money_amount: Optional[int] = None
    high_price: Optional[int] = None
    low_price: Optional[int] = None
    robot_info: Optional[int] = None
    kind: OperationKind = OperationKind.CREATE_ROBOT

    @property
    def is_packed(self) -> bool:
        return self.robot_info is not None


@dataclass(frozen=True)
class DeleteRobotOp:
    pair: str
    index: int
    robot_id: int
    kind: OperationKind = OperationKind.DELETE_ROBOT


@dataclass(frozen=True)
class SellToRobotOp:
    pair: str
    robot_id: int
    stock_in: int
    kind: OperationKind = OperationKind.SELL_TO_ROBOT


@dataclass(frozen=True)
class BuyFromRobotOp:
    pair: str
    robot_id: int
    money_in: int
    kind: OperationKind = OperationKind.BUY_FROM_ROBOT


Operation = Union[CreatePairOp, CreateRobotOp, DeleteRobotOp, SellToRobotOp, BuyFromRobotOp]

_EXPLICIT_ROBOT_FIELDS = ("stock_amount", "money_amount", "high_price", "low_price")

_FIELDS: Dict[OperationKind, tuple] = {
    OperationKind.CREATE_PAIR: ("stock", "money", "logic"),
    OperationKind.CREATE_ROBOT: ("pair",) + _EXPLICIT_ROBOT_FIELDS + ("robot_info",),
    OperationKind.DELETE_ROBOT: ("pair", "index", "robot_id"),
    OperationKind.SELL_TO_ROBOT: ("pair", "robot_id", "stock_in"),
    OperationKind.BUY_FROM_ROBOT: ("pair", "robot_id", "money_in"),
}


def _require_field(data: Mapping, key: str, *, kind: OperationKind) -> Any:
    if key not in data:
        raise ValueError(f"{kind.value}: missing required field: {key}")
    return data[key]


def _address(data: Mapping, key: str, *, kind: OperationKind) -> str:
    value = _require_field(data, key, kind=kind)
    try:
        return canonical_address(value, name=key)
    except TypeError as exc:
        raise ValueError(str(exc)) from exc


def _uint(data: Mapping, key: str, *, kind: OperationKind) -> int:
    value = _require_field(data, key, kind=kind)
    try:
        return parse_uint(value, name=key)
    except TypeError as exc:
        raise ValueError(str(exc)) from exc


def parse_operation(data: Any) -> Operation:
    """
    Parse one operation object.

    Raises:
        ValueError: On a malformed object, unknown kind, missing/extra fields or bad values
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"operation must be an object, got {type(data)}")
    for k in data.keys():
        if not isinstance(k, str):
            raise ValueError("operation keys must be strings")
    kind_raw = data.get("kind")
    if not isinstance(kind_raw, str):
        raise ValueError("operation.kind must be a string")
    try:
        kind = OperationKind(kind_raw)
    except ValueError as e:
        raise ValueError(f"Invalid operation kind: {kind_raw}") from e

    unknown = set(data.keys()) - set(_FIELDS[kind]) - {"kind"}
    if unknown:
        raise ValueError(f"{kind.value}: unknown fields: {sorted(unknown)}")

    if kind is OperationKind.CREATE_PAIR:
        return CreatePairOp(
            stock=_address(data, "stock", kind=kind),
            money=_address(data, "money", kind=kind),
            logic=_address(data, "logic", kind=kind),
        )
    pair = _address(data, "pair", kind=kind)
    if kind is OperationKind.CREATE_ROBOT:
        if "robot_info" in data:
            if any(f in data for f in _EXPLICIT_ROBOT_FIELDS):
                raise ValueError("CREATE_ROBOT: robot_info excludes the explicit amount/price fields")
            return CreateRobotOp(pair=pair, robot_info=_uint(data, "robot_info", kind=kind))
        return CreateRobotOp(pair=pair, **{f: _uint(data, f, kind=kind) for f in _EXPLICIT_ROBOT_FIELDS})
    if kind is OperationKind.DELETE_ROBOT:
        return DeleteRobotOp(
            pair=pair,
            index=_uint(data, "index", kind=kind),
            robot_id=_uint(data, "robot_id", kind=kind),
        )
    if kind is OperationKind.SELL_TO_ROBOT:
        return SellToRobotOp(
            pair=pair,
            robot_id=_uint(data, "robot_id", kind=kind),
            stock_in=_uint(data, "stock_in", kind=kind),
        )
    return BuyFromRobotOp(
        pair=pair,
        robot_id=_uint(data, "robot_id", kind=kind),
        money_in=_uint(data, "money_in", kind=kind),
    )


def create_operation(op: Operation) -> Dict[str, Any]:
    """
    Render an operation as its JSON object.

    256-bit words (robot ids, packed infos) are rendered as 0x-hex strings.
    """
    out: Dict[str, Any] = {"kind": op.kind.value}
    if isinstance(op, CreatePairOp):
        out.update(stock=op.stock, money=op.money, logic=op.logic)
        return out
    out["pair"] = op.pair
    if isinstance(op, CreateRobotOp):
        if op.is_packed:
            out["robot_info"] = uint_to_hex(op.robot_info)
        else:
            out.update({f: getattr(op, f) for f in _EXPLICIT_ROBOT_FIELDS})
    elif isinstance(op, DeleteRobotOp):
        out.update(index=op.index, robot_id=uint_to_hex(op.robot_id))
    elif isinstance(op, SellToRobotOp):
        out.update(robot_id=uint_to_hex(op.robot_id), stock_in=op.stock_in)
    else:
        out.update(robot_id=uint_to_hex(op.robot_id), money_in=op.money_in)
    return out

# [TESTER] v1

from __future__ import annotations

import pytest

from src.integration.operations import (
    BuyFromRobotOp,
    CreatePairOp,
    CreateRobotOp,
    DeleteRobotOp,
    OperationKind,
    SellToRobotOp,
    create_operation,
    parse_operation,
)


PAIR = "0x" + "cc" * 20


def test_parse_create_pair_canonicalizes_addresses() -> None:
    op = parse_operation({"kind": "CREATE_PAIR", "stock": "0x" + "11" * 20, "money": "0x" + "22" * 20, "logic": "0x" + "33" * 20})
    assert isinstance(op, CreatePairOp)
    assert op.kind is OperationKind.CREATE_PAIR
    assert op.stock.lower() == "0x" + "11" * 20


def test_parse_create_robot_forms() -> None:
    explicit = parse_operation(
        {
            "kind": "CREATE_ROBOT",
            "pair": PAIR,
            "stock_amount": "100000000000000000000",
            "money_amount": 50000000000,
            "high_price": "0x821ab0d4414980000",
            "low_price": 100 * 10**18,
        }
    )
    assert isinstance(explicit, CreateRobotOp)
    assert not explicit.is_packed
    assert explicit.stock_amount == 100 * 10**18
    assert explicit.high_price == 150 * 10**18

    packed = parse_operation({"kind": "CREATE_ROBOT", "pair": PAIR, "robot_info": "0x" + "00" * 31 + "01"})
    assert packed.is_packed
    assert packed.robot_info == 1

    with pytest.raises(ValueError):
        parse_operation({"kind": "CREATE_ROBOT", "pair": PAIR, "robot_info": 1, "stock_amount": 1})
    with pytest.raises(ValueError):
        parse_operation({"kind": "CREATE_ROBOT", "pair": PAIR, "stock_amount": 1})


def test_parse_trade_and_delete() -> None:
    rid = "0x" + "ab" * 32
    sell = parse_operation({"kind": "SELL_TO_ROBOT", "pair": PAIR, "robot_id": rid, "stock_in": 5})
    assert isinstance(sell, SellToRobotOp)
    assert (sell.robot_id, sell.stock_in) == (int(rid, 16), 5)
    buy = parse_operation({"kind": "BUY_FROM_ROBOT", "pair": PAIR, "robot_id": rid, "money_in": "7"})
    assert isinstance(buy, BuyFromRobotOp) and buy.money_in == 7
    delete = parse_operation({"kind": "DELETE_ROBOT", "pair": PAIR, "index": 0, "robot_id": rid})
    assert isinstance(delete, DeleteRobotOp) and delete.index == 0


@pytest.mark.parametrize(
    "obj",
    [
        [],
        {"kind": 1},
        {"kind": "SWAP"},
        {"kind": "SELL_TO_ROBOT", "pair": PAIR, "robot_id": 1},
        {"kind": "SELL_TO_ROBOT", "pair": PAIR, "robot_id": 1, "stock_in": 1, "extra": 0},
        {"kind": "SELL_TO_ROBOT", "pair": "0x1234", "robot_id": 1, "stock_in": 1},
        {"kind": "SELL_TO_ROBOT", "pair": 5, "robot_id": 1, "stock_in": 1},
        {"kind": "SELL_TO_ROBOT", "pair": PAIR, "robot_id": -1, "stock_in": 1},
        {"kind": "SELL_TO_ROBOT", "pair": PAIR, "robot_id": 1.0, "stock_in": 1},
    ],
)
def test_parse_rejects_malformed(obj) -> None:
    with pytest.raises(ValueError):
        parse_operation(obj)


def test_create_operation_round_trips() -> None:
    rid = (0xA0 << 96) | 3
    for op in (
        CreatePairOp(stock="0x" + "11" * 20, money="0x" + "22" * 20, logic="0x" + "33" * 20),
        CreateRobotOp(pair=PAIR, stock_amount=1, money_amount=2, high_price=4, low_price=3),
        CreateRobotOp(pair=PAIR, robot_info=12345),
        DeleteRobotOp(pair=PAIR, index=2, robot_id=rid),
        SellToRobotOp(pair=PAIR, robot_id=rid, stock_in=9),
        BuyFromRobotOp(pair=PAIR, robot_id=rid, money_in=9),
    ):
        parsed = parse_operation(create_operation(op))
        assert parsed.kind is op.kind
        assert parse_operation(create_operation(parsed)) == parsed

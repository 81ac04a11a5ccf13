from __future__ import annotations

import pytest

from src.core.pair_config import PAIR_CONFIG_BYTES, PairConfig, scale_factors


STOCK = "0x" + "11" * 20
MONEY = "0x" + "22" * 20


@pytest.mark.parametrize(
    "stock_decimals,money_decimals,expected",
    [
        (18, 8, (10**10, 1)),
        (18, 18, (1, 1)),
        (18, 20, (1, 100)),
        (6, 18, (1, 10**12)),
        (0, 0, (1, 1)),
    ],
)
def test_scale_factors(stock_decimals: int, money_decimals: int, expected: tuple) -> None:
    assert scale_factors(stock_decimals=stock_decimals, money_decimals=money_decimals) == expected


def test_binary_layout_is_abi_encoding() -> None:
    cfg = PairConfig.from_decimals(stock_token=STOCK, money_token=MONEY, stock_decimals=18, money_decimals=8)
    data = cfg.encode()
    assert len(data) == PAIR_CONFIG_BYTES == 128
    assert data[:12] == b"\x00" * 12
    assert data[12:32] == bytes.fromhex("11" * 20)
    assert data[44:64] == bytes.fromhex("22" * 20)
    assert int.from_bytes(data[64:96], "big") == 10**10
    assert int.from_bytes(data[96:128], "big") == 1
    assert PairConfig.decode(data) == cfg


def test_validation() -> None:
    with pytest.raises(ValueError):
        PairConfig(stock_token=STOCK, money_token=STOCK, price_div=1, price_mul=1)
    with pytest.raises(ValueError):
        PairConfig(stock_token=STOCK, money_token=MONEY, price_div=0, price_mul=1)
    with pytest.raises(ValueError):
        PairConfig(stock_token=STOCK, money_token=MONEY, price_div=10, price_mul=10)
    with pytest.raises(ValueError):
        PairConfig.decode(b"\x00" * 127)
    with pytest.raises(ValueError):
        scale_factors(stock_decimals=-1, money_decimals=8)

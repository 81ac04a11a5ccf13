#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.integration.manifest import deploy_manifest, load_manifest, pair_symbols
from src.integration.pair_engine import PairEngineConfig, apply_tx
from src.integration.snapshot import compute_pair_state_root
from src.kernels.python.price_codec import format_units, parse_units


MAKER = "0x" + "aa" * 20
TAKER = "0x" + "bb" * 20

DEFAULT_MANIFEST = """\
chain_id: robotswap-local
deployer: "{maker}"
tokens:
  - {{symbol: WBCH, decimals: 18, supply: "{stock_supply}"}}
  - {{symbol: USD, decimals: {money_decimals}, supply: "{money_supply}"}}
pairs:
  - {{stock: WBCH, money: USD}}
"""


def main() -> int:
    parser = argparse.ArgumentParser(description="Offline robot pair demo (create, sell, buy, delete)")
    parser.add_argument("--manifest", default=None, help="YAML manifest (default: built-in WBCH/USD)")
    parser.add_argument("--money-decimals", type=int, default=8, help="Money token decimals for the built-in manifest")
    parser.add_argument("--stock", default="WBCH", help="Stock token symbol")
    parser.add_argument("--money", default="USD", help="Money token symbol")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.manifest:
        manifest = load_manifest(Path(args.manifest))
    else:
        manifest = load_manifest(
            DEFAULT_MANIFEST.format(
                maker=MAKER,
                money_decimals=args.money_decimals,
                stock_supply=parse_units("1000", 18),
                money_supply=parse_units("100000", args.money_decimals),
            )
        )
    deployment = deploy_manifest(manifest)
    print(f"[robot-demo] pairs: {', '.join(pair_symbols(deployment))}")

    maker = deployment.deployer
    stock = deployment.tokens[args.stock]
    money = deployment.tokens[args.money]
    pair = deployment.pair(args.stock, args.money)
    config = PairEngineConfig.from_env()

    def _tx(sender: str, op: dict):
        res = apply_tx(config, deployment.chain, op, sender=sender)
        if not res.ok:
            print(f"[robot-demo] FAIL ({op['kind']}): {res.error}")
            raise SystemExit(1)
        return res.result

    stock.approve(maker, pair.address, parse_units("100", stock.decimals))
    money.approve(maker, pair.address, parse_units("500", money.decimals))
    robot_id = _tx(
        maker,
        {
            "kind": "CREATE_ROBOT",
            "pair": pair.address,
            "stock_amount": parse_units("100", stock.decimals),
            "money_amount": parse_units("500", money.decimals),
            "high_price": parse_units("150.0"),
            "low_price": parse_units("100.0"),
        },
    )
    print(f"[robot-demo] robot_id={robot_id}")

    stock.transfer(maker, TAKER, parse_units("200", stock.decimals))
    money.transfer(maker, TAKER, parse_units("20000", money.decimals))
    stock.approve(TAKER, pair.address, parse_units("1", stock.decimals))
    money.approve(TAKER, pair.address, parse_units("300", money.decimals))

    money_out = _tx(
        TAKER,
        {"kind": "SELL_TO_ROBOT", "pair": pair.address, "robot_id": robot_id, "stock_in": parse_units("1", stock.decimals)},
    )
    print(f"[robot-demo] sold 1.0 {stock.symbol} for {format_units(money_out, money.decimals)} {money.symbol}")

    stock_out = _tx(
        TAKER,
        {"kind": "BUY_FROM_ROBOT", "pair": pair.address, "robot_id": robot_id, "money_in": parse_units("300", money.decimals)},
    )
    print(f"[robot-demo] bought {format_units(stock_out, stock.decimals)} {stock.symbol} for 300.0 {money.symbol}")

    for rid, info in pair.list_robots():
        print(
            f"[robot-demo] robot {rid:#x}: stock={format_units(info.stock_amount, stock.decimals)} "
            f"money={format_units(info.money_amount, money.decimals)} "
            f"band=[{format_units(info.low_price_value)}, {format_units(info.high_price_value)}]"
        )
    print(f"[robot-demo] pair state root: {compute_pair_state_root(pair)}")

    returned = _tx(maker, {"kind": "DELETE_ROBOT", "pair": pair.address, "index": 0, "robot_id": robot_id})
    print(
        f"[robot-demo] deleted robot, returned stock={format_units(returned['stock_amount'], stock.decimals)} "
        f"money={format_units(returned['money_amount'], money.decimals)}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

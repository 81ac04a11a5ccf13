"""
YAML deployment manifests.

A manifest describes a local deployment: who deploys, which tokens exist and which
(stock, money) pairs to create.

    chain_id: robotswap-local
    deployer: "0x00000000000000000000000000000000000000aa"
    tokens:
      - {symbol: WBCH, decimals: 18, supply: "1000000000000000000000"}
      - {symbol: fUSD, decimals: 8, supply: 100000000000}
    pairs:
      - {stock: WBCH, money: fUSD}

`deploy_manifest` deploys the robot logic template, the clone factory, every
token (minting `supply` to the deployer) and every pair, in that order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from ..core.clone_factory import CloneFactory
from ..core.robot_engine import RobotPair, attach, deploy_robot_logic
from ..state.canonical import canonical_address, parse_uint
from ..state.chain import Chain
from ..state.tokens import Erc20Token


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenSpec:
    symbol: str
    decimals: int
    supply: int = 0


@dataclass(frozen=True)
class PairSpec:
    stock: str
    money: str


@dataclass(frozen=True)
class Manifest:
    deployer: str
    tokens: Tuple[TokenSpec, ...]
    pairs: Tuple[PairSpec, ...] = ()
    chain_id: str = "robotswap-local"


@dataclass
class Deployment:
    chain: Chain
    deployer: str
    logic: str
    factory: CloneFactory
    tokens: Dict[str, Erc20Token] = field(default_factory=dict)
    pairs: Dict[Tuple[str, str], str] = field(default_factory=dict)

    def pair(self, stock: str, money: str) -> RobotPair:
        """Attach to the pair deployed for (stock symbol, money symbol)."""
        try:
            address = self.pairs[(stock, money)]
        except KeyError as exc:
            raise KeyError(f"no pair deployed for {stock}/{money}") from exc
        return attach(self.chain, address)


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{name} must be a mapping")
    return value


def _parse_token(entry: Any, i: int) -> TokenSpec:
    entry = _require_mapping(entry, name=f"tokens[{i}]")
    symbol = entry.get("symbol")
    if not isinstance(symbol, str) or not symbol:
        raise ValueError(f"tokens[{i}].symbol must be a non-empty string")
    decimals = entry.get("decimals")
    if not isinstance(decimals, int) or isinstance(decimals, bool):
        raise ValueError(f"tokens[{i}].decimals must be an int")
    supply = parse_uint(entry.get("supply", 0), name=f"tokens[{i}].supply")
    return TokenSpec(symbol=symbol, decimals=decimals, supply=supply)


def _parse_pair(entry: Any, i: int, symbols: set) -> PairSpec:
    entry = _require_mapping(entry, name=f"pairs[{i}]")
    stock, money = entry.get("stock"), entry.get("money")
    for role, sym in (("stock", stock), ("money", money)):
        if sym not in symbols:
            raise ValueError(f"pairs[{i}].{role} references unknown token {sym!r}")
    return PairSpec(stock=stock, money=money)


def parse_manifest(obj: Any) -> Manifest:
    """
    Validate a manifest object (as produced by `yaml.safe_load`).

    Raises:
        ValueError: On missing fields, duplicate token symbols or unknown pair tokens
    """
    obj = _require_mapping(obj, name="manifest")
    if not isinstance(obj.get("deployer"), str):
        raise ValueError("deployer must be an address string")
    deployer = canonical_address(obj["deployer"], name="deployer")
    chain_id = obj.get("chain_id", "robotswap-local")
    if not isinstance(chain_id, str) or not chain_id:
        raise ValueError("chain_id must be a non-empty string")

    raw_tokens = obj.get("tokens") or []
    if not isinstance(raw_tokens, list):
        raise ValueError("tokens must be a list")
    tokens = [_parse_token(entry, i) for i, entry in enumerate(raw_tokens)]
    symbols = {t.symbol for t in tokens}
    if len(symbols) != len(tokens):
        raise ValueError("duplicate token symbol")

    raw_pairs = obj.get("pairs") or []
    if not isinstance(raw_pairs, list):
        raise ValueError("pairs must be a list")
    pairs = [_parse_pair(entry, i, symbols) for i, entry in enumerate(raw_pairs)]
    return Manifest(deployer=deployer, tokens=tuple(tokens), pairs=tuple(pairs), chain_id=chain_id)


def load_manifest(source: Union[str, Path]) -> Manifest:
    """
    Load a manifest from a file path or from YAML text.

    A `str` containing a newline is treated as YAML text; anything else as a path.
    """
    if isinstance(source, Path) or (isinstance(source, str) and "\n" not in source):
        text = Path(source).read_text(encoding="utf-8")
    else:
        text = source
    return parse_manifest(yaml.safe_load(text))


def deploy_manifest(manifest: Manifest, chain: Optional[Chain] = None) -> Deployment:
    """Deploy everything the manifest names onto `chain` (a fresh chain by default)."""
    if chain is None:
        chain = Chain(manifest.chain_id)
    deployer = manifest.deployer
    logic = deploy_robot_logic(chain, deployer)
    factory = CloneFactory.deploy(chain, deployer)
    deployment = Deployment(chain=chain, deployer=deployer, logic=logic, factory=factory)

    for spec in manifest.tokens:
        deployment.tokens[spec.symbol] = chain.deploy_token(
            deployer, symbol=spec.symbol, decimals=spec.decimals, supply=spec.supply
        )
    for spec in manifest.pairs:
        stock, money = deployment.tokens[spec.stock], deployment.tokens[spec.money]
        deployment.pairs[(spec.stock, spec.money)] = factory.create(stock.address, money.address, logic)

    logger.info(
        "deployed manifest on %s: %d tokens, %d pairs",
        chain.chain_id, len(deployment.tokens), len(deployment.pairs),
    )
    return deployment


def pair_symbols(deployment: Deployment) -> List[str]:
    return [f"{stock}/{money}" for stock, money in deployment.pairs]

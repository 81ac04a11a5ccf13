"""
Deterministic clone factory for pair-instances.

Each (stock, money) pair is deployed as a minimal delegate-forwarding stub:

    runtime = EIP-1167 proxy template (45 bytes, embeds the logic address)
              || PairConfig ABI encoding (128 bytes)
    init    = 10-byte constructor prefix that returns `runtime`
              || runtime

The deployment address is the CREATE2 address

    keccak256(0xff || factory || salt || keccak256(init))[12:]
    salt = keccak256(stock || money)

so anyone can compute it before deployment (`get_address`). The logic served
through the stub recovers its configuration by reading its own code past the
template (`load_params_from_code`) rather than from storage.
"""

from __future__ import annotations

import logging
from typing import Tuple

from ..state.canonical import address_to_bytes, canonical_address, domain_sep_bytes, keccak256
from ..state.chain import Chain
from ..state.errors import InvalidConfiguration, PairAlreadyExists
from .pair_config import PAIR_CONFIG_BYTES, PairConfig


logger = logging.getLogger(__name__)

# EIP-1167 runtime: CALLDATACOPY, DELEGATECALL <logic>, bubble up result.
PROXY_PREFIX = bytes.fromhex("363d3d373d3d3d363d73")
PROXY_SUFFIX = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")
PROXY_TEMPLATE_LEN = len(PROXY_PREFIX) + 20 + len(PROXY_SUFFIX)  # 45
STUB_CODE_LEN = PROXY_TEMPLATE_LEN + PAIR_CONFIG_BYTES

# PUSH2 <len> DUP1 PUSH1 0x0a RETURNDATASIZE CODECOPY RETURNDATASIZE RETURN
CONSTRUCTOR_PREFIX_LEN = 10

FACTORY_CODE = domain_sep_bytes("clone-factory")
CREATED_EVENT = "Created"


def build_runtime_code(logic: str, config: PairConfig) -> bytes:
    return PROXY_PREFIX + address_to_bytes(logic) + PROXY_SUFFIX + config.encode()


def build_init_code(runtime: bytes) -> bytes:
    if len(runtime) > 0xFFFF:
        raise ValueError("runtime code too large for PUSH2 length")
    prefix = b"\x61" + len(runtime).to_bytes(2, "big") + bytes.fromhex("80600a3d393df3")
    return prefix + runtime


def pair_salt(stock_token: str, money_token: str) -> bytes:
    return keccak256(address_to_bytes(stock_token) + address_to_bytes(money_token))


def create2_address(deployer: str, salt: bytes, init_code: bytes) -> str:
    if len(salt) != 32:
        raise ValueError("salt must be 32 bytes")
    digest = keccak256(b"\xff" + address_to_bytes(deployer) + salt + keccak256(init_code))
    return canonical_address(digest[12:])


def parse_stub_code(code: bytes) -> Tuple[str, bytes]:
    """
    Split stub runtime code into (logic address, embedded config bytes).

    Raises:
        InvalidConfiguration: If `code` is not a pair stub
    """
    if len(code) != STUB_CODE_LEN:
        raise InvalidConfiguration(f"not a pair stub ({len(code)} code bytes)")
    logic_end = len(PROXY_PREFIX) + 20
    if code[: len(PROXY_PREFIX)] != PROXY_PREFIX or code[logic_end:PROXY_TEMPLATE_LEN] != PROXY_SUFFIX:
        raise InvalidConfiguration("not a pair stub (template mismatch)")
    logic = canonical_address(code[len(PROXY_PREFIX):logic_end])
    return logic, code[PROXY_TEMPLATE_LEN:]


def load_params_from_code(code: bytes) -> PairConfig:
    """Decode the PairConfig embedded past the proxy template."""
    _logic, params = parse_stub_code(code)
    try:
        return PairConfig.decode(params)
    except Exception as exc:
        raise InvalidConfiguration(f"corrupt pair config: {exc}") from exc


class CloneFactory:
    """
    Factory contract deploying one stub per (stock, money) pair.

    `create` and `get_address` compute the same init code and therefore the same
    address. Re-creating an existing pair collides and is rejected.
    """

    def __init__(self, chain: Chain, address: str) -> None:
        self.chain = chain
        self.address = canonical_address(address, name="factory address")

    @classmethod
    def deploy(cls, chain: Chain, deployer: str) -> "CloneFactory":
        address = chain.next_address(deployer)
        factory = cls(chain, address)
        chain.deploy(deployer, FACTORY_CODE, factory)
        return factory

    def _pair_config(self, stock_token: str, money_token: str) -> PairConfig:
        try:
            stock = self.chain.token(stock_token)
            money = self.chain.token(money_token)
            return PairConfig.from_decimals(
                stock_token=stock.address,
                money_token=money.address,
                stock_decimals=stock.decimals,
                money_decimals=money.decimals,
            )
        except ValueError as exc:
            raise InvalidConfiguration(str(exc)) from exc

    def _init_code(self, stock_token: str, money_token: str, logic: str) -> Tuple[PairConfig, bytes]:
        config = self._pair_config(stock_token, money_token)
        return config, build_init_code(build_runtime_code(logic, config))

    def get_address(self, stock_token: str, money_token: str, logic: str) -> str:
        """Precompute the pair stub address (read-only)."""
        _config, init_code = self._init_code(stock_token, money_token, logic)
        return create2_address(self.address, pair_salt(stock_token, money_token), init_code)

    def create(self, stock_token: str, money_token: str, logic: str) -> str:
        """
        Deploy the pair stub and emit `Created(stock, money, pair)`.

        Raises:
            InvalidConfiguration: Unknown tokens, identical tokens or a logic address without code
            PairAlreadyExists: If the pair was already deployed with this logic
        """
        if not self.chain.has_code(logic):
            raise InvalidConfiguration(f"logic has no code: {logic}")
        config, init_code = self._init_code(stock_token, money_token, logic)
        pair = create2_address(self.address, pair_salt(stock_token, money_token), init_code)
        if self.chain.has_code(pair):
            raise PairAlreadyExists(pair)
        runtime = init_code[CONSTRUCTOR_PREFIX_LEN:]
        self.chain.deploy_code_at(pair, runtime)
        self.chain.emit(
            self.address,
            CREATED_EVENT,
            stock=config.stock_token,
            money=config.money_token,
            pair=pair,
        )
        logger.info(
            "created pair %s for stock=%s money=%s (price_div=%d price_mul=%d)",
            pair, config.stock_token, config.money_token, config.price_div, config.price_mul,
        )
        return pair

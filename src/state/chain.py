"""
In-process world state for pair deployments.

`Chain` holds what the pair contracts observe of their environment:
- deployed code per address (stubs embed their configuration in it),
- the Python objects serving each address (tokens, logic template, factory),
- per-address storage objects (a pair's robot ledger lives at the stub address),
- an append-only event log.

Execution is single-threaded and sequential: one call runs to completion before
the next starts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from .canonical import address_to_bytes, canonical_address, domain_sep_bytes, keccak256
from .robots import RobotLedger
from .tokens import Erc20Token


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class LogEntry:
    address: str
    event: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChainCheckpoint:
    code: Dict[str, bytes]
    contracts: Dict[str, Any]
    storage: Dict[str, Any]
    nonces: Dict[str, int]
    event_count: int
    objects: Tuple[Tuple[Any, Any], ...]


class Chain:
    """
    Deterministic account/code registry.

    Plain deployments get `keccak(domain || deployer || nonce)[12:]` addresses;
    CREATE2-style deployments choose their own address via `deploy_code_at`.
    """

    def __init__(self, chain_id: str = "robotswap-local") -> None:
        if not isinstance(chain_id, str) or not chain_id:
            raise ValueError("chain_id must be a non-empty string")
        self.chain_id = chain_id
        self._code: Dict[str, bytes] = {}
        self._contracts: Dict[str, Any] = {}
        self._storage: Dict[str, Any] = {}
        self._nonces: Dict[str, int] = {}
        self.events: List[LogEntry] = []

    # -- code -----------------------------------------------------------------

    def next_address(self, deployer: str) -> str:
        """Address the next plain deployment by `deployer` will receive."""
        deployer = canonical_address(deployer, name="deployer")
        nonce = self._nonces.get(deployer, 0)
        digest = keccak256(
            domain_sep_bytes(f"deploy:{self.chain_id}")
            + address_to_bytes(deployer)
            + nonce.to_bytes(32, "big")
        )
        return canonical_address(digest[12:])

    def deploy(self, deployer: str, code: bytes, contract: Any = None) -> str:
        """Deploy `code` at the deployer's next nonce address."""
        address = self.next_address(deployer)
        self._nonces[canonical_address(deployer)] = self._nonces.get(canonical_address(deployer), 0) + 1
        self.deploy_code_at(address, code, contract)
        return address

    def deploy_code_at(self, address: str, code: bytes, contract: Any = None) -> str:
        """
        Install code at a precomputed address.

        Raises:
            ValueError: If the address already has code (collision)
        """
        address = canonical_address(address)
        if not isinstance(code, (bytes, bytearray)) or not code:
            raise ValueError("code must be non-empty bytes")
        if self.has_code(address):
            raise ValueError(f"address already has code: {address}")
        self._code[address] = bytes(code)
        if contract is not None:
            self._contracts[address] = contract
        logger.debug("deployed %d code bytes at %s", len(code), address)
        return address

    def has_code(self, address: str) -> bool:
        return canonical_address(address) in self._code

    def get_code(self, address: str) -> bytes:
        """Deployed code at `address` (empty for plain accounts)."""
        return self._code.get(canonical_address(address), b"")

    # -- contracts / storage ----------------------------------------------------

    def contract(self, address: str) -> Optional[Any]:
        return self._contracts.get(canonical_address(address))

    def token(self, address: str) -> Erc20Token:
        """
        Raises:
            ValueError: If no token is deployed at `address`
        """
        obj = self.contract(address)
        if not isinstance(obj, Erc20Token):
            raise ValueError(f"no token deployed at {address}")
        return obj

    def storage(self, address: str, factory: Callable[[], T]) -> T:
        """Storage object of `address`, created with `factory` on first access."""
        address = canonical_address(address)
        obj = self._storage.get(address)
        if obj is None:
            obj = factory()
            self._storage[address] = obj
        return obj

    def deploy_token(self, deployer: str, *, symbol: str, decimals: int, supply: int = 0) -> Erc20Token:
        """Deploy a token and mint `supply` to the deployer."""
        address = self.next_address(deployer)
        token = Erc20Token(address=address, symbol=symbol, decimals=decimals)
        self.deploy(deployer, domain_sep_bytes(f"erc20:{symbol}"), token)
        if supply:
            token.mint(deployer, supply)
        logger.debug("deployed token %s (%d decimals) at %s", symbol, decimals, address)
        return token

    # -- checkpoints ------------------------------------------------------------

    def checkpoint(self) -> ChainCheckpoint:
        """Capture the world state, including token tables and robot ledgers."""
        objects = tuple(
            (obj, obj.checkpoint())
            for obj in [*self._contracts.values(), *self._storage.values()]
            if isinstance(obj, (Erc20Token, RobotLedger))
        )
        return ChainCheckpoint(
            code=dict(self._code),
            contracts=dict(self._contracts),
            storage=dict(self._storage),
            nonces=dict(self._nonces),
            event_count=len(self.events),
            objects=objects,
        )

    def rollback(self, checkpoint: ChainCheckpoint) -> None:
        """Return to `checkpoint`. Objects are restored in place, so held references stay valid."""
        self._code = dict(checkpoint.code)
        self._contracts = dict(checkpoint.contracts)
        self._storage = dict(checkpoint.storage)
        self._nonces = dict(checkpoint.nonces)
        del self.events[checkpoint.event_count:]
        for obj, state in checkpoint.objects:
            obj.rollback(state)
        logger.debug("rolled back to %d contracts, %d events", len(self._code), len(self.events))

    # -- events -----------------------------------------------------------------

    def emit(self, address: str, event: str, **args: Any) -> LogEntry:
        entry = LogEntry(address=canonical_address(address), event=event, args=dict(args))
        self.events.append(entry)
        return entry

    def events_named(self, event: str) -> List[LogEntry]:
        return [e for e in self.events if e.event == event]

    def __repr__(self) -> str:
        return f"Chain({self.chain_id}, {len(self._code)} contracts, {len(self.events)} events)"

"""
Robot ledger snapshot encoding.

Goals:
- Deterministic JSON serialization of a pair's persisted layout (packed RobotId /
  RobotInfo words in live-index order) for hashing and distribution.
- Round-trippable into a `RobotLedger`.
- Explicit schema versioning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from ..core.robot_engine import RobotPair
from ..state.canonical import (
    bounded_json_utf8_size,
    canonical_address,
    canonical_json_bytes,
    domain_sep_bytes,
    keccak256,
    keccak256_hex,
    parse_uint,
    uint_to_hex,
)
from ..state.robots import RobotId, RobotInfo, RobotLedger


PAIR_SNAPSHOT_SCHEMA = "robotswap_pair_snapshot"
PAIR_SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class PairSnapshot:
    """
    Deterministic, versioned snapshot of one pair's robot ledger.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        return keccak256(domain_sep_bytes("pair_snapshot", version=self.version) + self.canonical_bytes())

    def commitment_hex(self) -> str:
        return keccak256_hex(domain_sep_bytes("pair_snapshot", version=self.version) + self.canonical_bytes())


def snapshot_from_pair(pair: RobotPair) -> PairSnapshot:
    robots = [[uint_to_hex(robot_id), uint_to_hex(info.pack())] for robot_id, info in pair.list_robots()]
    data: Dict[str, Any] = {
        "schema": PAIR_SNAPSHOT_SCHEMA,
        "schema_version": PAIR_SNAPSHOT_VERSION,
        "pair": pair.address,
        "created_count": pair.created_robot_count(),
        "robots": robots,
    }
    return PairSnapshot(version=PAIR_SNAPSHOT_VERSION, data=data)


def compute_pair_state_root(pair: RobotPair) -> str:
    """keccak-256 commitment (0x-hex) over the pair's canonical snapshot."""
    return snapshot_from_pair(pair).commitment_hex()


def ledger_from_snapshot(
    snapshot: Mapping[str, Any],
    *,
    max_snapshot_bytes: int = 4_000_000,
    max_robots: int = 50_000,
) -> RobotLedger:
    """
    Rebuild a `RobotLedger` from snapshot data.

    Raises:
        TypeError / ValueError: On a malformed, oversized or inconsistent snapshot
        InvalidPrice: If a restored robot has an inverted band
    """
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")
    snapshot = dict(snapshot)
    try:
        bounded_json_utf8_size(snapshot, max_bytes=max_snapshot_bytes)
    except ValueError as exc:
        raise ValueError("snapshot too large") from exc

    if snapshot.get("schema") != PAIR_SNAPSHOT_SCHEMA:
        raise ValueError(f"unexpected snapshot schema: {snapshot.get('schema')!r}")
    version = snapshot.get("schema_version")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.schema_version must be a positive int")
    if version != PAIR_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")
    canonical_address(snapshot.get("pair"), name="snapshot.pair")

    created_count = snapshot.get("created_count")
    if not isinstance(created_count, int) or isinstance(created_count, bool) or created_count < 0:
        raise ValueError("snapshot.created_count must be a non-negative int")

    entries = snapshot.get("robots")
    if not isinstance(entries, list):
        raise TypeError("snapshot.robots must be a list")
    if len(entries) > max_robots:
        raise ValueError(f"too many robots: {len(entries)} > {max_robots}")
    robots: List[Tuple[RobotId, RobotInfo]] = []
    for entry in entries:
        if not isinstance(entry, list) or len(entry) != 2:
            raise ValueError("snapshot.robots entries must be [id, info] pairs")
        robot_id = parse_uint(entry[0], name="robot.id")
        info = RobotInfo.unpack(parse_uint(entry[1], name="robot.info"))
        robots.append((robot_id, info))
    return RobotLedger.restore(created_count=created_count, robots=robots)

from __future__ import annotations

import json

import pytest

from src.integration.snapshot import (
    PAIR_SNAPSHOT_SCHEMA,
    compute_pair_state_root,
    ledger_from_snapshot,
    snapshot_from_pair,
)
from src.state.canonical import uint_to_hex
from src.state.robots import encode_robot_id


OWNER = "0x" + "a0" * 20
E18 = 10**18


def _populate(world, n: int = 3):
    world.stock.approve(OWNER, world.pair.address, 10**30)
    world.money.approve(OWNER, world.pair.address, 10**30)
    return [world.pair.create_robot(100 + i, 200 + i, (2 + i) * E18, E18, sender=OWNER) for i in range(n)]


def test_snapshot_layout(world) -> None:
    ids = _populate(world)
    world.pair.delete_robot(0, ids[0], sender=OWNER)
    snap = snapshot_from_pair(world.pair)
    assert snap.data["schema"] == PAIR_SNAPSHOT_SCHEMA
    assert snap.data["schema_version"] == 1
    assert snap.data["pair"] == world.pair.address
    assert snap.data["created_count"] == 3
    assert snap.data["robots"] == [
        [uint_to_hex(ids[2]), uint_to_hex(world.pair.robot_info_map(ids[2]))],
        [uint_to_hex(ids[1]), uint_to_hex(world.pair.robot_info_map(ids[1]))],
    ]


def test_snapshot_round_trips_through_json(world) -> None:
    _populate(world)
    snap = snapshot_from_pair(world.pair)
    restored = ledger_from_snapshot(json.loads(snap.canonical_bytes()))
    assert restored.created_count == world.pair.created_robot_count()
    assert list(restored.iter_robots()) == list(world.pair.list_robots())


def test_state_root_tracks_changes(make_world) -> None:
    a, b = make_world(8), make_world(8)
    _populate(a)
    _populate(b)
    assert compute_pair_state_root(a.pair) == compute_pair_state_root(b.pair)
    root = compute_pair_state_root(a.pair)
    assert root.startswith("0x") and len(root) == 66

    a.pair.delete_robot(1, encode_robot_id(OWNER, 1), sender=OWNER)
    assert compute_pair_state_root(a.pair) != compute_pair_state_root(b.pair)


def test_ledger_from_snapshot_rejects_bad_input(world) -> None:
    _populate(world, 1)
    good = snapshot_from_pair(world.pair).data

    with pytest.raises(ValueError):
        ledger_from_snapshot({**good, "schema": "other"})
    with pytest.raises(ValueError):
        ledger_from_snapshot({**good, "schema_version": 2})
    with pytest.raises(ValueError):
        ledger_from_snapshot({**good, "created_count": 0})
    with pytest.raises(ValueError):
        ledger_from_snapshot({**good, "robots": [good["robots"][0], good["robots"][0]], "created_count": 1})
    with pytest.raises(ValueError):
        ledger_from_snapshot({**good, "robots": [["0x01"]]})
    with pytest.raises(TypeError):
        ledger_from_snapshot({**good, "robots": "nope"})
    with pytest.raises(ValueError):
        ledger_from_snapshot(good, max_snapshot_bytes=64)

"""Tests for the RECEIVED → PROMOTED storage state machine."""

from dataroom.core.domain_types import StorageState, parse_uuid
from dataroom.core.storage_state import can_promote, storage_state_of


def test_state_derivation():
    assert storage_state_of(None, "/tmp/x") is StorageState.RECEIVED
    assert storage_state_of("bafy1", None) is StorageState.PROMOTED
    assert storage_state_of("bafy1", "/tmp/x") is StorageState.PROMOTED
    assert storage_state_of(None, None) is StorageState.EMPTY


def test_only_received_nodes_can_promote():
    assert can_promote(None, "/tmp/x")
    assert not can_promote("bafy1", None)
    assert not can_promote(None, None)


def test_parse_uuid_treats_garbage_as_absent():
    assert parse_uuid("not-a-uuid") is None
    assert parse_uuid(None) is None
    assert str(parse_uuid(" 3f2b6c1e-8d4a-4c55-9a0e-1b2c3d4e5f60 ")) == (
        "3f2b6c1e-8d4a-4c55-9a0e-1b2c3d4e5f60"
    )

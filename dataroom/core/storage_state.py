"""Storage State — the one-way Received -> Promoted machine for node bytes.

Invariants:
    - A node with a content address is PROMOTED, whatever else it carries
    - A node with only a temp path is RECEIVED (pending durable storage)
    - PROMOTED never transitions back; promoting twice is rejected
"""

from dataroom.core.domain_types import StorageState


def storage_state_of(
    content_address: str | None, temp_storage_path: str | None,
) -> StorageState:
    """Derive the state from the two columns that encode it."""
    if content_address:
        return StorageState.PROMOTED
    if temp_storage_path:
        return StorageState.RECEIVED
    return StorageState.EMPTY


def can_promote(
    content_address: str | None, temp_storage_path: str | None,
) -> bool:
    """Only RECEIVED nodes have bytes waiting to be promoted."""
    return storage_state_of(
        content_address, temp_storage_path,
    ) is StorageState.RECEIVED

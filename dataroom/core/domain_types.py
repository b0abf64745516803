"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, OrganizationId wrap the gateway-supplied identity strings in CallerIdentity
    - Tier, access and status are closed enumerations (upper-case wire values)
    - MAX_UPLOAD_BYTES is fixed policy (750 MiB), never read from the environment
    - UploadPolicy and CallerIdentity are immutable once constructed

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
OrganizationId = NewType("OrganizationId", str)


def parse_uuid(value: str | UUID | None) -> UUID | None:
    """Parse a client-supplied id; malformed input is treated as absent."""
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        return None


# ─── Upload Policy ───────────────────────────────────────────────

MAX_UPLOAD_BYTES = 750 * 1024 * 1024  # 786,432,000
UPLOAD_CHUNK_BYTES = 1024 * 1024


@dataclass(frozen=True)
class UploadPolicy:
    """Scratch directory and size ceiling, injected into the upload receiver."""
    scratch_dir: Path
    max_bytes: int = MAX_UPLOAD_BYTES
    chunk_bytes: int = UPLOAD_CHUNK_BYTES


@dataclass(frozen=True)
class CallerIdentity:
    """Already-validated caller, supplied by the upstream gateway."""
    user_id: UserId
    organization_id: OrganizationId | None = None


# ─── Enums ───────────────────────────────────────────────────────

class DataRoomTier(str, Enum):
    SIMPLE = "SIMPLE"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"


class DataRoomAccess(str, Enum):
    PUBLIC = "PUBLIC"
    RESTRICTED = "RESTRICTED"


class DataRoomStatus(str, Enum):
    """Room lifecycle status — new rooms always start INCOMPLETE."""
    INCOMPLETE = "INCOMPLETE"
    COMPLETE = "COMPLETE"
    PENDING_REVIEW = "PENDING_REVIEW"


class StorageState(str, Enum):
    """Where a node's bytes currently live.

    RECEIVED -> PROMOTED is the only transition. EMPTY marks nodes that never
    carried bytes (folders created without an upload).
    """
    RECEIVED = "RECEIVED"
    PROMOTED = "PROMOTED"
    EMPTY = "EMPTY"

"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The content-addressed store is reached only through ContentStore

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no base class
    - Async in Protocol: implementations do network IO; core logic that reasons about
      promotion (storage_state.py) stays synchronous
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class ContentAddress:
    """Identifier and retrieval URL returned by the permanent store."""
    cid: str
    url: str
    asset_hash: str | None = None


class ContentStore(Protocol):
    """Contract for permanent content-addressed storage — implemented by shell."""
    async def add(self, file_path: Path, filename: str) -> ContentAddress: ...
    async def is_healthy(self) -> bool: ...

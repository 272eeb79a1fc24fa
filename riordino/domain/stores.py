# riordino/domain/stores.py
"""
Storage contracts, one per entity type.

Use cases depend on these interfaces only; ``riordino.infra.repositories``
provides the SQLite implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from riordino.domain.models import (
    ArchivedProposal,
    ImportRow,
    Item,
    ItemKey,
    PolicyParams,
    ProposalLine,
    SalesSnapshot,
)


class PolicyStore(ABC):
    """Named policy sets; exactly one is active at any time."""

    @abstractmethod
    def get_active(self) -> PolicyParams:
        """Raise ConfigurationFault when no policy is active."""

    @abstractmethod
    def get(self, policy_id: int) -> PolicyParams:
        ...

    @abstractmethod
    def list(self) -> List[PolicyParams]:
        """All policies in insertion order."""

    @abstractmethod
    def save(self, draft: PolicyParams) -> PolicyParams:
        """Store ``draft`` under a new id, inactive."""

    @abstractmethod
    def update(self, policy: PolicyParams) -> PolicyParams:
        ...

    @abstractmethod
    def set_active(self, policy_id: int) -> None:
        ...


class CatalogStore(ABC):
    """Items joined with their sales snapshot."""

    @abstractmethod
    def fetch_joined(self, item_ids: Optional[Iterable[int]] = None) -> List[Tuple[Item, SalesSnapshot]]:
        """Items having a snapshot, optionally restricted to ``item_ids``."""

    @abstractmethod
    def ids_by_codes(self, codes: Iterable[str]) -> List[int]:
        """Ids of items whose code matches one of ``codes``, ignoring case."""

    @abstractmethod
    def ids_by_keys(self, keys: Iterable[ItemKey]) -> List[int]:
        ...

    @abstractmethod
    def upsert_with_snapshot(self, row: ImportRow, sale: SalesSnapshot) -> Item:
        """Create or update the item of ``row`` and replace its snapshot atomically."""


class ArchiveStore(ABC):
    """Append-only archive of approved proposals."""

    @abstractmethod
    def append(self, proposal: ArchivedProposal) -> ArchivedProposal:
        ...

    @abstractmethod
    def list(self) -> List[ArchivedProposal]:
        """Most recent first."""


class DraftStore(ABC):
    """Keeps the draft proposal lines between sessions."""

    @abstractmethod
    def load(self) -> List[ProposalLine]:
        ...

    @abstractmethod
    def save(self, lines: List[ProposalLine]) -> None:
        ...

    def commit_approval(self, archive: ArchiveStore, proposal: ArchivedProposal) -> ArchivedProposal:
        """Archive ``proposal`` and empty the draft.

        Implementations sharing a database with the archive do both in one
        transaction; this default writes the archive first.
        """
        stored = archive.append(proposal)
        self.save([])
        return stored

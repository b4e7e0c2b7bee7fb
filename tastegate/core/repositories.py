"""
Repositories - Storage-agnostic Persistence

One narrow repository per document type:
- GenomeRepository: find-by-subject, save, delete
- ContentRepository: find-by-id, save, query-by-predicate
- ScheduledUnitRepository: find-by-id, save, due-before-now query
- ApprovalRecordRepository: latest record per content item

The in-memory implementations behave like a document store: every
read returns a detached copy and nothing changes until `save`.
Writes are last-writer-wins.
"""

from abc import ABC, abstractmethod
from copy import deepcopy
from datetime import datetime
from typing import Callable, Optional

from .entities import (
    ApprovalRecord,
    ContentItem,
    Genome,
    ScheduledUnit
)


class GenomeRepository(ABC):

    @abstractmethod
    async def get(self, subject_id: str) -> Optional[Genome]:
        pass

    @abstractmethod
    async def save(self, genome: Genome) -> Genome:
        pass

    @abstractmethod
    async def delete(self, subject_id: str) -> bool:
        pass


class ContentRepository(ABC):

    @abstractmethod
    async def get(self, content_id: str) -> Optional[ContentItem]:
        pass

    @abstractmethod
    async def save(self, content: ContentItem) -> ContentItem:
        pass

    @abstractmethod
    async def find(self, predicate: Callable[[ContentItem], bool]) -> list[ContentItem]:
        pass


class ScheduledUnitRepository(ABC):

    @abstractmethod
    async def get(self, unit_id: str) -> Optional[ScheduledUnit]:
        pass

    @abstractmethod
    async def save(self, unit: ScheduledUnit) -> ScheduledUnit:
        pass

    @abstractmethod
    async def find_due(self, now: datetime) -> list[ScheduledUnit]:
        """Units that are enabled, auto-posting, scheduled and due at `now`."""
        pass


class ApprovalRecordRepository(ABC):

    @abstractmethod
    async def save(self, record: ApprovalRecord) -> ApprovalRecord:
        pass

    @abstractmethod
    async def latest_for_content(self, content_id: str) -> Optional[ApprovalRecord]:
        pass


class _InMemoryDocuments:
    """Keyed document storage that hands out copies."""

    def __init__(self):
        self._documents: dict[str, object] = {}

    def _get(self, key: str):
        document = self._documents.get(key)
        return deepcopy(document) if document is not None else None

    def _put(self, key: str, document):
        self._documents[key] = deepcopy(document)
        return document

    def _remove(self, key: str) -> bool:
        return self._documents.pop(key, None) is not None

    def _values(self) -> list:
        return [deepcopy(d) for d in self._documents.values()]

    def __len__(self) -> int:
        return len(self._documents)


class InMemoryGenomeRepository(_InMemoryDocuments, GenomeRepository):

    async def get(self, subject_id: str) -> Optional[Genome]:
        return self._get(subject_id)

    async def save(self, genome: Genome) -> Genome:
        return self._put(genome.subject_id, genome)

    async def delete(self, subject_id: str) -> bool:
        return self._remove(subject_id)


class InMemoryContentRepository(_InMemoryDocuments, ContentRepository):

    async def get(self, content_id: str) -> Optional[ContentItem]:
        return self._get(content_id)

    async def save(self, content: ContentItem) -> ContentItem:
        return self._put(content.id, content)

    async def find(self, predicate: Callable[[ContentItem], bool]) -> list[ContentItem]:
        return [c for c in self._values() if predicate(c)]


class InMemoryScheduledUnitRepository(_InMemoryDocuments, ScheduledUnitRepository):

    async def get(self, unit_id: str) -> Optional[ScheduledUnit]:
        return self._get(unit_id)

    async def save(self, unit: ScheduledUnit) -> ScheduledUnit:
        return self._put(unit.id, unit)

    async def find_due(self, now: datetime) -> list[ScheduledUnit]:
        due = [u for u in self._values() if u.is_due(now)]
        due.sort(key=lambda u: u.next_post_at)
        return due


class InMemoryApprovalRecordRepository(_InMemoryDocuments, ApprovalRecordRepository):

    async def save(self, record: ApprovalRecord) -> ApprovalRecord:
        return self._put(record.id, record)

    async def latest_for_content(self, content_id: str) -> Optional[ApprovalRecord]:
        records = [r for r in self._values() if r.content_id == content_id]
        if not records:
            return None
        return max(records, key=lambda r: (r.updated_at, r.submitted_at))

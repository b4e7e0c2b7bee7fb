"""
Taste Genome Service - Repository-backed Signal Ingestion

Read-modify-write wrapper around the classifier:
- Genomes are created lazily on the first signal
- Every signal is appended, recomputed and saved in one step
- Reset is the only delete path (test/admin)

Writes are last-writer-wins. Two concurrent ingestions for the same
subject can drop one signal; recomputation is idempotent so the
remaining state stays consistent.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from ...core.entities import Genome, Signal
from ...core.repositories import GenomeRepository
from .classifier import create_genome, get_genome_summary, record_signal
from .feedback import reset_learning_state


logger = logging.getLogger(__name__)


class TasteGenomeService:
    """
    Ingests behavioural signals for subjects.

    Provides:
    - Lazy genome creation
    - Signal recording with persistence
    - Summary projection
    - Learning reset
    """

    def __init__(
        self,
        genomes: GenomeRepository,
        clock: Callable[[], datetime] = datetime.now
    ):
        self._genomes = genomes
        self._clock = clock

    async def get(self, subject_id: str) -> Optional[Genome]:
        return await self._genomes.get(subject_id)

    async def get_or_create(self, subject_id: str) -> Genome:
        """Load a genome, creating and saving an empty one if missing."""
        genome = await self._genomes.get(subject_id)
        if genome is None:
            genome = create_genome(subject_id, self._clock())
            await self._genomes.save(genome)
            logger.info("Created genome for subject %s", subject_id)
        return genome

    async def record_signal(self, subject_id: str, signal: Signal) -> Genome:
        """Record one signal against a subject and persist the result."""
        genome = await self._genomes.get(subject_id)
        if genome is None:
            genome = create_genome(subject_id, self._clock())
            logger.info("Created genome for subject %s", subject_id)

        record_signal(genome, signal, self._clock())
        await self._genomes.save(genome)

        logger.debug(
            "Recorded %s signal for %s (primary=%s, confidence=%.3f)",
            signal.type,
            subject_id,
            genome.archetype.primary.designation if genome.archetype.primary else None,
            genome.confidence
        )
        return genome

    async def record_signals(self, subject_id: str, signals: list[Signal]) -> Genome:
        """Record several signals with a single save."""
        genome = await self._genomes.get(subject_id)
        if genome is None:
            genome = create_genome(subject_id, self._clock())

        for signal in signals:
            record_signal(genome, signal, self._clock())
        await self._genomes.save(genome)
        return genome

    async def get_summary(self, subject_id: str) -> Optional[dict]:
        genome = await self._genomes.get(subject_id)
        if genome is None:
            return None
        return get_genome_summary(genome)

    async def reset(self, subject_id: str) -> Optional[Genome]:
        """
        Zero the learning state and restore default weights.

        Signals, keywords and gamification are kept; the archetype is
        recomputed without learned priors.
        """
        genome = await self._genomes.get(subject_id)
        if genome is None:
            logger.warning("Reset requested for unknown subject %s", subject_id)
            return None

        reset_learning_state(genome, self._clock())
        await self._genomes.save(genome)

        logger.info("Reset learning state for subject %s", subject_id)
        return genome

    async def delete(self, subject_id: str) -> bool:
        """Remove a genome entirely."""
        deleted = await self._genomes.delete(subject_id)
        if deleted:
            logger.info("Deleted genome for subject %s", subject_id)
        return deleted

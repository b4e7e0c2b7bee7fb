"""
Approval Gate - Conviction Policy Before Publishing

Decides whether a content item may be scheduled or published:
- Bypass when enforcement is disabled (logged)
- Ensure a conviction exists, computing and caching it if absent
- Apply override / strict-mode / threshold policy
- Optionally require a completed manual approval record

A block is a structured GateDecision carrying a code, a reason and
actionable suggestions. The gate never raises for policy outcomes.

The ensure-conviction step reads and writes the content record, so
the gate is not reentrant for the same content id within a request.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ...config.settings import ApprovalGateConfig
from ...core.collaborators import ContentAnalyzer
from ...core.entities import AiScores, ApprovalStatus, ContentItem, Genome
from ...core.repositories import (
    ApprovalRecordRepository,
    ContentRepository,
    GenomeRepository
)
from ..intelligence.conviction import (
    ConvictionOptions,
    GatingStatus,
    calculate_conviction,
    check_gating
)


logger = logging.getLogger(__name__)


APPROVAL_GATE_BLOCKED = "APPROVAL_GATE_BLOCKED"

QUEUE_COMPLETE_STATUSES = (ApprovalStatus.APPROVED, ApprovalStatus.PUBLISHED)


@dataclass
class GateConvictionSnapshot:
    """The conviction view attached to a gate decision."""
    score: int = 0
    status: GatingStatus = GatingStatus.APPROVED
    requires_review: bool = False
    suggestions: list[str] = field(default_factory=list)


@dataclass
class QueueCheck:
    ok: bool = False
    reason: str = ""
    queue_status: str = "missing"


@dataclass
class GateDecision:
    """Outcome of one gate evaluation."""
    allowed: bool = True
    action: str = "publish"
    reason: str = ""
    code: Optional[str] = None
    bypassed: bool = False
    conviction: Optional[GateConvictionSnapshot] = None
    queue_status: Optional[str] = None

    @property
    def requires_review(self) -> bool:
        return bool(self.conviction and self.conviction.requires_review)

    @property
    def suggestions(self) -> list[str]:
        return list(self.conviction.suggestions) if self.conviction else []


class ApprovalGate:
    """
    Conviction-based publishing policy.

    Configuration is read once at construction and never changes for
    the lifetime of the gate.
    """

    def __init__(
        self,
        config: ApprovalGateConfig,
        contents: ContentRepository,
        approvals: ApprovalRecordRepository = None,
        genomes: GenomeRepository = None,
        analyzer: ContentAnalyzer = None,
        conviction_options: ConvictionOptions = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self._config = config
        self._contents = contents
        self._approvals = approvals
        self._genomes = genomes
        self._analyzer = analyzer
        self._conviction_options = conviction_options or ConvictionOptions(
            strict_brand_consistency=config.strict_mode
        )
        self._clock = clock

    @property
    def config(self) -> ApprovalGateConfig:
        return self._config

    async def _load_genome(self, content: ContentItem) -> Optional[Genome]:
        if self._genomes is None or not content.subject_id:
            return None
        return await self._genomes.get(content.subject_id)

    async def ensure_conviction(self, content: ContentItem) -> int:
        """
        Return the cached conviction score, computing it if missing.

        Missing sub-scores are requested from the analyzer first. The
        computed conviction is written to the content record.
        """
        if content.conviction is not None:
            return content.conviction.score

        if content.ai_scores is None and self._analyzer is not None:
            analysis = await self._analyzer.analyze(content)
            content.ai_scores = AiScores(
                virality=analysis.virality,
                engagement=analysis.engagement,
                aesthetic=analysis.aesthetic,
                trend=analysis.trend
            )

        genome = await self._load_genome(content)
        result = calculate_conviction(
            content, genome, self._conviction_options, now=self._clock()
        )
        content.ai_scores = result.ai_scores
        content.conviction = result.conviction
        await self._contents.save(content)

        logger.info(
            "Computed conviction %d (%s) for content %s",
            result.conviction.score,
            result.conviction.tier.value,
            content.id
        )
        return result.conviction.score

    async def check_queue_approval(self, content_id: str) -> QueueCheck:
        """The latest manual approval record must be approved or published."""
        if self._approvals is None:
            return QueueCheck(ok=False, reason="No approval record found for this content.")

        latest = await self._approvals.latest_for_content(content_id)
        if latest is None:
            return QueueCheck(ok=False, reason="No approval record found for this content.")

        if latest.status not in QUEUE_COMPLETE_STATUSES:
            return QueueCheck(
                ok=False,
                reason=f"Approval workflow incomplete ({latest.status.value}).",
                queue_status=latest.status.value
            )

        return QueueCheck(
            ok=True,
            reason="Approval workflow complete.",
            queue_status=latest.status.value
        )

    async def evaluate_gate(
        self,
        content: ContentItem,
        user_id: str = None,
        action: str = "publish"
    ) -> GateDecision:
        """Decide whether `action` may proceed for `content`."""
        if not self._config.enforced:
            logger.info(
                "Approval gate bypassed for content %s (%s): enforcement disabled",
                content.id,
                action
            )
            return GateDecision(
                allowed=True,
                action=action,
                bypassed=True,
                reason="Approval gate enforcement disabled."
            )

        score = await self.ensure_conviction(content)
        override = (
            content.conviction is not None
            and content.conviction.override_active
            and self._config.allow_user_override
        )

        gating = check_gating(
            score,
            threshold=self._config.threshold,
            strict_mode=self._config.strict_mode,
            user_override=override
        )
        snapshot = GateConvictionSnapshot(
            score=score,
            status=gating.status,
            requires_review=gating.requires_review,
            suggestions=list(gating.suggestions)
        )

        if not gating.can_schedule:
            logger.warning(
                "Approval gate blocked %s of content %s (score %d < %d)",
                action,
                content.id,
                score,
                self._config.threshold
            )
            return GateDecision(
                allowed=False,
                action=action,
                reason=gating.reason,
                code=APPROVAL_GATE_BLOCKED,
                conviction=snapshot
            )

        if self._config.require_queue_approval:
            queue = await self.check_queue_approval(content.id)
            if not queue.ok:
                logger.warning(
                    "Approval gate blocked %s of content %s: %s",
                    action,
                    content.id,
                    queue.reason
                )
                return GateDecision(
                    allowed=False,
                    action=action,
                    reason=queue.reason,
                    code=APPROVAL_GATE_BLOCKED,
                    conviction=snapshot,
                    queue_status=queue.queue_status
                )

        if gating.requires_review:
            logger.warning(
                "Content %s allowed to %s but requires review (score %d)",
                content.id,
                action,
                score
            )

        return GateDecision(
            allowed=True,
            action=action,
            reason=gating.reason,
            conviction=snapshot
        )

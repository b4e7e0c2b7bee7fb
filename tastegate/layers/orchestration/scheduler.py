"""
Posting Scheduler - Autonomous Cadenced Publishing

A single cooperative polling loop. Each tick finds due units and
processes them one after another:

1. Validate platform credentials (pause or reschedule on failure)
2. Pick the lowest-order unposted item (none left: completed)
3. Lease the unit by saving status `posting`
4. Re-run the approval gate; a block pauses the unit for review
5. Publish; success marks the item posted and the content published,
   failure records POST_FAILED and leaves the item for the next slot
6. Schedule the next slot, or complete the unit

Unit state machine:
scheduled -> posting -> scheduled | completed | paused | failed

The `posting` status is an optimistic lease: due-unit queries only
return `scheduled` units, so one process never handles a unit twice.
Concurrent schedulers against one store are not supported. A pass
cancelled mid-post hands the unit back as `scheduled`.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ...config.settings import SchedulerConfig
from ...core.collaborators import CredentialValidator, PublishResult, SocialPublisher
from ...core.entities import (
    ContentItem,
    ContentStatus,
    ScheduledUnit,
    UnitItem,
    UnitStatus
)
from ...core.repositories import ContentRepository, ScheduledUnitRepository
from .approval import ApprovalGate, GateDecision


logger = logging.getLogger(__name__)


AUTH_ERROR = "AUTH_ERROR"
CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"
POST_FAILED = "POST_FAILED"
PROCESSING_ERROR = "PROCESSING_ERROR"


@dataclass
class SchedulerActionResult:
    """Result of a manual scheduler operation."""
    success: bool = False
    message: str = ""
    error: Optional[str] = None
    code: Optional[str] = None
    gate: Optional[GateDecision] = None
    publish: Optional[PublishResult] = None


@dataclass
class TickReport:
    """What one polling tick did."""
    started_at: datetime = field(default_factory=datetime.now)
    due: int = 0
    processed: list[str] = field(default_factory=list)
    statuses: dict[str, UnitStatus] = field(default_factory=dict)


class PostingScheduler:
    """
    Background poster for scheduled units.

    Owned by the process bootstrap: construct it, `start()` it on a
    running event loop and `stop()` it on shutdown. `tick()` runs one
    polling pass and is what tests drive directly.
    """

    def __init__(
        self,
        units: ScheduledUnitRepository,
        contents: ContentRepository,
        gate: ApprovalGate,
        publisher: SocialPublisher,
        credentials: CredentialValidator,
        config: SchedulerConfig = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self._units = units
        self._contents = contents
        self._gate = gate
        self._publisher = publisher
        self._credentials = credentials
        self._config = config or SchedulerConfig()
        self._clock = clock

        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._ticks = 0
        self._last_tick_at: Optional[datetime] = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start polling; runs one tick immediately."""
        if self._running:
            logger.warning("Posting scheduler already running")
            return

        self._running = True
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            "Posting scheduler started (poll interval %.0fs)",
            self._config.poll_interval_seconds
        )

    async def stop(self) -> None:
        """Cancel the polling task and wait for it to finish."""
        self._running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Posting scheduler stopped")

    async def _run(self) -> None:
        while self._running:
            try:
                await self.tick()
            except Exception:
                logger.exception("Scheduler tick failed")
            await asyncio.sleep(self._config.poll_interval_seconds)

    def get_status(self) -> dict:
        return {
            "running": self._running,
            "poll_interval_seconds": self._config.poll_interval_seconds,
            "ticks": self._ticks,
            "last_tick_at": self._last_tick_at,
        }

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    async def tick(self) -> TickReport:
        """Process every due unit sequentially."""
        now = self._clock()
        self._ticks += 1
        self._last_tick_at = now

        due = await self._units.find_due(now)
        report = TickReport(started_at=now, due=len(due))
        if not due:
            return report

        logger.info("Found %d unit(s) ready to post", len(due))
        for unit in due:
            await self.process_unit(unit)
            report.processed.append(unit.id)
            report.statuses[unit.id] = unit.status

        return report

    async def process_unit(self, unit: ScheduledUnit) -> ScheduledUnit:
        """
        Post the next item of one unit.

        Collaborator failures become structured errors on the unit;
        anything unexpected marks the unit failed. Never raises.
        """
        try:
            logger.info("Processing unit %s (%s)", unit.name or unit.id, unit.id)

            check = await self._credentials.validate(unit.user_id, unit.platform)
            if not check.valid:
                logger.warning(
                    "Invalid %s credentials for unit %s: %s",
                    unit.platform,
                    unit.id,
                    check.error
                )
                unit.record_error(AUTH_ERROR, check.error or "Invalid credentials",
                                  timestamp=self._clock())
                if check.needs_refresh:
                    unit.status = UnitStatus.PAUSED
                else:
                    unit.next_post_at = unit.calculate_next_post_time(self._clock())
                await self._units.save(unit)
                return unit

            item = unit.get_next_item_to_post()
            if item is None:
                logger.info("Unit %s completed, nothing left to post", unit.id)
                unit.status = UnitStatus.COMPLETED
                await self._units.save(unit)
                return unit

            unit.status = UnitStatus.POSTING
            await self._units.save(unit)

            content = await self._contents.get(item.content_id)
            if content is None:
                logger.warning("Content %s not found for unit %s", item.content_id, unit.id)
                unit.record_error(CONTENT_NOT_FOUND, "Content not found",
                                  item_index=item.order, timestamp=self._clock())
                unit.status = UnitStatus.PAUSED
                await self._units.save(unit)
                return unit

            gate, result = await self._gate_and_publish(unit, item, content, "scheduled_post")

            if not gate.allowed:
                unit.record_error(
                    gate.code,
                    f"Approval gate: {gate.reason}",
                    item_index=item.order,
                    metadata={
                        "conviction_score": gate.conviction.score if gate.conviction else None,
                        "suggestions": gate.suggestions,
                    },
                    timestamp=self._clock()
                )
                unit.status = UnitStatus.PAUSED
                unit.scheduling.enabled = False
                await self._units.save(unit)
                logger.warning("Unit %s paused for conviction review", unit.id)
                return unit

            if not result.success:
                unit.record_error(POST_FAILED, result.error or "Publish failed",
                                  item_index=item.order, timestamp=self._clock())

            next_post_at = unit.calculate_next_post_time(self._clock())
            if next_post_at is not None:
                unit.next_post_at = next_post_at
                unit.status = UnitStatus.SCHEDULED
                logger.info("Next post for unit %s at %s", unit.id, next_post_at.isoformat())
            else:
                unit.status = UnitStatus.COMPLETED
                logger.info("Unit %s completed", unit.id)

            await self._units.save(unit)
            return unit

        except asyncio.CancelledError:
            # Release the lease so the next tick picks the unit up again
            if unit.status == UnitStatus.POSTING:
                logger.warning("Processing of unit %s cancelled, releasing lease", unit.id)
                unit.status = UnitStatus.SCHEDULED
                await self._units.save(unit)
            raise

        except Exception as e:
            logger.exception("Error processing unit %s", unit.id)
            unit.record_error(PROCESSING_ERROR, str(e), timestamp=self._clock())
            unit.status = UnitStatus.FAILED
            await self._units.save(unit)
            return unit

    # -------------------------------------------------------------------------
    # Gate then publish
    # -------------------------------------------------------------------------

    async def _evaluate_gate(
        self,
        unit: ScheduledUnit,
        content: ContentItem,
        action: str
    ) -> GateDecision:
        try:
            return await self._gate.evaluate_gate(content, user_id=unit.user_id, action=action)
        except Exception as e:
            # Scoring failures must not stall the queue
            logger.exception("Conviction check failed for content %s, allowing post", content.id)
            return GateDecision(
                allowed=True,
                action=action,
                reason=f"Conviction check failed, allowing post: {e}"
            )

    async def _publish(self, unit: ScheduledUnit, content: ContentItem) -> PublishResult:
        try:
            return await self._publisher.publish(
                unit.user_id,
                content,
                unit.platform,
                {"caption": content.caption, "title": content.title}
            )
        except Exception as e:
            return PublishResult(success=False, error=str(e))

    async def _gate_and_publish(
        self,
        unit: ScheduledUnit,
        item: UnitItem,
        content: ContentItem,
        action: str
    ) -> tuple[GateDecision, Optional[PublishResult]]:
        """
        Shared by the polling loop and manual posting.

        Returns the gate decision and, when allowed, the publish
        result. A successful publish marks the item posted and the
        content published; the unit itself is saved by the caller.
        """
        gate = await self._evaluate_gate(unit, content, action)
        if not gate.allowed:
            logger.warning(
                "Content %s blocked by approval gate (score %s)",
                content.id,
                gate.conviction.score if gate.conviction else "n/a"
            )
            return gate, None

        if gate.requires_review:
            logger.warning("Content %s requires review, posting anyway", content.id)

        result = await self._publish(unit, content)
        if not result.success:
            logger.warning("Failed to post content %s: %s", content.id, result.error)
            return gate, result

        now = self._clock()
        unit.mark_as_posted(item.id, post_id=result.post_id, post_url=result.post_url,
                            posted_at=now)

        content.status = ContentStatus.PUBLISHED
        content.published_at = now
        content.platform_post_id = result.post_id
        if result.post_url:
            content.platform_post_url = result.post_url
        await self._contents.save(content)

        logger.info("Posted content %s to %s", content.id, unit.platform)
        return gate, result

    # -------------------------------------------------------------------------
    # Manual operations
    # -------------------------------------------------------------------------

    async def trigger_unit_post(self, unit_id: str) -> SchedulerActionResult:
        """Process a unit now, regardless of its schedule."""
        unit = await self._units.get(unit_id)
        if unit is None:
            return SchedulerActionResult(success=False, error="Unit not found")

        # Paused units need resume_unit; posting units are leased by a tick
        if unit.status in (UnitStatus.PAUSED, UnitStatus.POSTING, UnitStatus.COMPLETED):
            return SchedulerActionResult(
                success=False,
                error=f"Unit is {unit.status.value} and cannot be triggered"
            )

        await self.process_unit(unit)
        return SchedulerActionResult(success=True, message="Unit processed successfully")

    async def post_unit_item(self, unit_id: str, item_id: str) -> SchedulerActionResult:
        """Gate and publish one specific item of a unit."""
        unit = await self._units.get(unit_id)
        if unit is None:
            return SchedulerActionResult(success=False, error="Unit not found")

        item = unit.get_item(item_id)
        if item is None:
            return SchedulerActionResult(success=False, error="Item not found in unit")
        if item.posted:
            return SchedulerActionResult(success=False, error="Item already posted")

        content = await self._contents.get(item.content_id)
        if content is None:
            return SchedulerActionResult(
                success=False,
                error="Content not found",
                code=CONTENT_NOT_FOUND
            )

        gate, result = await self._gate_and_publish(unit, item, content, "unit_item_post")
        if not gate.allowed:
            return SchedulerActionResult(
                success=False,
                error=gate.reason or "Approval gate blocked posting",
                code=gate.code,
                gate=gate
            )

        if not result.success:
            return SchedulerActionResult(
                success=False,
                error=result.error,
                code=POST_FAILED,
                gate=gate,
                publish=result
            )

        await self._units.save(unit)
        return SchedulerActionResult(
            success=True,
            message="Item posted",
            gate=gate,
            publish=result
        )

    async def pause_unit(self, unit_id: str) -> SchedulerActionResult:
        unit = await self._units.get(unit_id)
        if unit is None:
            return SchedulerActionResult(success=False, error="Unit not found")

        unit.status = UnitStatus.PAUSED
        unit.scheduling.enabled = False
        await self._units.save(unit)
        logger.info("Paused unit %s", unit_id)
        return SchedulerActionResult(success=True, message="Unit paused")

    async def resume_unit(self, unit_id: str) -> SchedulerActionResult:
        """Re-enable a paused unit and schedule its next slot."""
        unit = await self._units.get(unit_id)
        if unit is None:
            return SchedulerActionResult(success=False, error="Unit not found")

        unit.status = UnitStatus.SCHEDULED
        unit.scheduling.enabled = True
        next_post_at = unit.calculate_next_post_time(self._clock())
        if next_post_at is not None:
            unit.next_post_at = next_post_at
        await self._units.save(unit)
        logger.info("Resumed unit %s", unit_id)
        return SchedulerActionResult(success=True, message="Unit resumed")

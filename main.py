#!/usr/bin/env python3
"""
Taste Gate - Main Demo

This script walks one subject through the whole pipeline:

1. Taste genome: record behavioural signals, classify the archetype
2. Conviction: score two drafts against the genome
3. Approval gate: strict mode blocks the weak draft
4. Scheduler: post the approved draft on its cadence
5. Validation and feedback: compare the prediction with observed
   engagement and write the lesson back into the genome
"""

import asyncio
import logging
from datetime import datetime, timedelta

from tastegate.config import get_settings
from tastegate.core.collaborators import (
    AnalysisScores,
    ContentAnalyzer,
    CredentialCheck,
    CredentialValidator,
    MetricsFetcher,
    MetricsReport,
    PublishResult,
    SocialPublisher
)
from tastegate.core.entities import (
    AiScores,
    ContentItem,
    ScheduledUnit,
    SchedulingPolicy,
    Signal,
    SignalMetadata,
    UnitItem
)
from tastegate.core.repositories import (
    InMemoryApprovalRecordRepository,
    InMemoryContentRepository,
    InMemoryGenomeRepository,
    InMemoryScheduledUnitRepository
)
from tastegate.layers.intelligence import ConvictionOptions, generate_conviction_report
from tastegate.layers.learning import (
    ConvictionValidator,
    GenomeFeedbackService,
    TasteGenomeService,
    suggest_directives
)
from tastegate.layers.orchestration import ApprovalGate, PostingScheduler


SUBJECT_ID = "demo_subject"
USER_ID = "demo_user"


class DemoAnalyzer(ContentAnalyzer):
    """Scores drafts from a fixed table."""

    SCORES = {
        "draft-strong": AnalysisScores(virality=88, engagement=84, aesthetic=92, trend=65),
        "draft-weak": AnalysisScores(virality=35, engagement=30, aesthetic=40, trend=90),
    }

    async def analyze(self, content):
        return self.SCORES.get(content.id, AnalysisScores())


class DemoPublisher(SocialPublisher):
    async def publish(self, user_id, content, platform, options=None):
        return PublishResult(
            success=True,
            post_id=f"{platform}-{content.id}",
            post_url=f"https://{platform}.example/p/{content.id}"
        )


class DemoCredentials(CredentialValidator):
    async def validate(self, user_id, platform):
        return CredentialCheck(valid=True)


class DemoMetrics(MetricsFetcher):
    async def fetch_metrics(self, content_id):
        return MetricsReport(
            status="posted",
            metrics={"instagram": {"likes": 240, "comments": 31, "saved": 12, "reach": 5200}}
        )


class DemoClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def demo_signals(now: datetime) -> list[Signal]:
    """A subject who keeps rewarding early, obscure finds."""
    signals = []
    for day in range(12):
        signals.append(Signal(
            type="likert",
            metadata=SignalMetadata(
                score=5,
                archetype_hint="V-2",
                prompt="moody cinematic portrait, golden hour",
                is_obscure=True
            ),
            timestamp=now - timedelta(days=day)
        ))
    signals.append(Signal(type="save", metadata=SignalMetadata(prompt="vintage film grain"),
                          timestamp=now))
    signals.append(Signal(type="skip", metadata=SignalMetadata(prompt="neon cyberpunk"),
                          timestamp=now))
    signals.append(Signal(type="skip", metadata=SignalMetadata(prompt="neon glitch edit"),
                          timestamp=now))
    return signals


async def run_demo():
    settings = get_settings()
    clock = DemoClock(datetime.now().replace(microsecond=0))

    genomes = InMemoryGenomeRepository()
    contents = InMemoryContentRepository()
    units = InMemoryScheduledUnitRepository()
    approvals = InMemoryApprovalRecordRepository()

    # 1. Taste genome
    print("=" * 60)
    print("1. TASTE GENOME")
    print("=" * 60)
    genome_service = TasteGenomeService(genomes, clock)
    genome = await genome_service.record_signals(SUBJECT_ID, demo_signals(clock.now))
    summary = await genome_service.get_summary(SUBJECT_ID)

    archetype = summary["archetype"]
    print(f"Signals recorded: {summary['item_count']}")
    print(f"Archetype: {archetype['designation']} {archetype['glyph']} - {archetype['title']}")
    print(f"  Probability: {archetype['confidence']:.0%}  Clarity: {archetype['clarity']:.2f}")
    print(f"Genome confidence: {summary['confidence']:.2f}")
    print(f"Tier: {summary['tier']['name']} ({summary['tier']['current_xp']} XP)")
    print("Top keywords:", ", ".join(k.keyword for k in summary["top_keywords"]))
    print("Avoid:", ", ".join(k.keyword for k in summary["avoid_keywords"]) or "-")
    directives = suggest_directives(genome)
    print(f"Suggested directives: keywords={directives.keywords} avoid={directives.avoid}")
    print()

    # 2. Conviction
    print("=" * 60)
    print("2. CONVICTION")
    print("=" * 60)
    analyzer = DemoAnalyzer()
    options = ConvictionOptions.from_config(
        settings.conviction, strict_mode=settings.approval_gate.strict_mode
    )
    drafts = [
        ContentItem(id="draft-strong", subject_id=SUBJECT_ID, user_id=USER_ID,
                    caption="Found this director at 400 views. Watch before everyone else does.",
                    media_url="https://cdn.example/strong.jpg"),
        ContentItem(id="draft-weak", subject_id=SUBJECT_ID, user_id=USER_ID,
                    caption="trend of the week"),
    ]
    for draft in drafts:
        scores = await analyzer.analyze(draft)
        draft.ai_scores = AiScores(**scores.model_dump())

        # Report only; the gate computes and caches the conviction itself
        report = generate_conviction_report(
            draft,
            genome,
            options,
            threshold=settings.approval_gate.threshold,
            strict_mode=settings.approval_gate.strict_mode,
            now=clock.now
        )
        conviction = report["conviction"]
        print(f"{draft.id:<14} score={conviction.score:<3} tier={conviction.tier.value:<11} "
              f"gating={report['gating'].status.value}")
        for recommendation in report["recommendations"]:
            print(f"    [{recommendation['priority']}] {recommendation['message']}")
        await contents.save(draft)
    print()

    # 3. Approval gate
    print("=" * 60)
    print("3. APPROVAL GATE")
    print("=" * 60)
    gate = ApprovalGate(
        settings.approval_gate,
        contents,
        approvals=approvals,
        genomes=genomes,
        analyzer=analyzer,
        conviction_options=options,
        clock=clock
    )
    for draft in drafts:
        decision = await gate.evaluate_gate(await contents.get(draft.id), user_id=USER_ID,
                                            action="schedule")
        verdict = "ALLOWED" if decision.allowed else f"BLOCKED ({decision.code})"
        print(f"{draft.id:<14} {verdict}")
        if not decision.allowed:
            for suggestion in decision.suggestions:
                print(f"    - {suggestion}")
    print()

    # 4. Scheduler
    print("=" * 60)
    print("4. POSTING SCHEDULER")
    print("=" * 60)
    unit = ScheduledUnit(
        name="Early finds",
        user_id=USER_ID,
        items=[
            UnitItem(content_id="draft-strong", order=0),
            UnitItem(content_id="draft-weak", order=1),
        ],
        scheduling=SchedulingPolicy(interval_minutes=settings.scheduler.default_cadence_minutes),
        next_post_at=clock.now
    )
    await units.save(unit)

    scheduler = PostingScheduler(
        units, contents, gate, DemoPublisher(), DemoCredentials(),
        config=settings.scheduler, clock=clock
    )
    report = await scheduler.tick()
    print(f"Tick 1: {report.due} due unit(s), status {report.statuses[unit.id].value}")

    clock.now = clock.now + timedelta(minutes=settings.scheduler.default_cadence_minutes)
    report = await scheduler.tick()
    stored = await units.get(unit.id)
    print(f"Tick 2: {report.due} due unit(s), status {stored.status.value}")
    for error in stored.errors:
        print(f"    {error.code}: {error.message}")
    print()

    # 5. Validation and feedback
    print("=" * 60)
    print("5. OUTCOME VALIDATION AND FEEDBACK")
    print("=" * 60)
    validator = ConvictionValidator(contents, DemoMetrics(), clock)
    record = await validator.validate_conviction("draft-strong")
    print(f"Predicted {record.predicted.conviction_score}, "
          f"actual {record.actual.engagement_score:.0f}, "
          f"accuracy {record.accuracy} ({record.prediction_quality.value})")

    feedback_service = GenomeFeedbackService(genomes, clock)
    result = await feedback_service.apply_feedback_to_genome(record, SUBJECT_ID)
    print(f"Genome updated: {result.updated} ({result.message})")

    progress = await feedback_service.get_learning_progress(SUBJECT_ID)
    if progress.has_learning:
        weights = ", ".join(f"{k}={v:.2f}" for k, v in progress.current_weights.items())
        print(f"Learned weights: {weights}")
        for insight in progress.archetype_insights:
            print(f"  {insight.archetype}: confidence {insight.confidence:.2f} ({insight.trend})")
    print()


def main():
    """Main entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    print()
    print("+" + "=" * 58 + "+")
    print("|                 TASTE GATE DEMONSTRATION                 |")
    print("|                                                          |")
    print("|  Signals -> Genome -> Conviction -> Gate -> Scheduler    |")
    print("|  and back again through outcome feedback                 |")
    print("+" + "=" * 58 + "+")
    print()

    asyncio.run(run_demo())

    print("=" * 60)
    print("DEMONSTRATION COMPLETE")
    print("=" * 60)
    print()


if __name__ == "__main__":
    main()

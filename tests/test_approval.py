"""Tests for the approval gate.

Covers enforcement bypass, conviction caching, strict blocking,
user overrides, the manual approval workflow and determinism.
"""

from datetime import timedelta

import pytest

from tastegate.config.settings import ApprovalGateConfig
from tastegate.core.collaborators import AnalysisScores
from tastegate.core.entities import (
    AiScores,
    ApprovalRecord,
    ApprovalStatus,
    ArchetypeAssignment,
    ContentItem,
    Genome,
    Signal,
    UserOverride,
)
from tastegate.layers.intelligence.conviction import GatingStatus
from tastegate.layers.orchestration.approval import APPROVAL_GATE_BLOCKED, ApprovalGate

from conftest import NOW, FakeAnalyzer


# ── Factories ──────────────────────────────────────────────────────


def _strong_content(**overrides) -> ContentItem:
    # performance 85, brand 70 -> 79
    defaults = {
        "id": "content-strong",
        "caption": "Behind the scenes of our autumn shoot",
        "ai_scores": AiScores(virality=90, engagement=90, aesthetic=90, trend=70),
    }
    defaults.update(overrides)
    return ContentItem(**defaults)


def _weak_content(**overrides) -> ContentItem:
    # performance 30, brand 60 -> 42
    defaults = {
        "id": "content-weak",
        "caption": "Behind the scenes of our autumn shoot",
        "ai_scores": AiScores(virality=30, engagement=30, aesthetic=30, trend=30),
    }
    defaults.update(overrides)
    return ContentItem(**defaults)


def _config(**overrides) -> ApprovalGateConfig:
    defaults = {
        "enforced": True,
        "strict_mode": True,
        "threshold": 70,
        "require_queue_approval": False,
        "allow_user_override": True,
    }
    defaults.update(overrides)
    return ApprovalGateConfig(**defaults)


# ── Enforcement ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_bypass_when_not_enforced(contents):
    gate = ApprovalGate(_config(enforced=False), contents)
    content = _weak_content()

    decision = await gate.evaluate_gate(content, action="schedule")

    assert decision.allowed
    assert decision.bypassed
    assert decision.action == "schedule"
    assert decision.conviction is None
    assert content.conviction is None
    assert len(contents) == 0


@pytest.mark.asyncio
async def test_strong_content_is_allowed(contents, gate_config):
    gate = ApprovalGate(gate_config, contents)
    decision = await gate.evaluate_gate(_strong_content())

    assert decision.allowed
    assert not decision.bypassed
    assert decision.code is None
    assert decision.conviction.score == 79
    assert decision.conviction.status == GatingStatus.APPROVED


@pytest.mark.asyncio
async def test_weak_content_is_blocked_in_strict_mode(contents, gate_config):
    gate = ApprovalGate(gate_config, contents)
    decision = await gate.evaluate_gate(_weak_content())

    assert not decision.allowed
    assert decision.code == APPROVAL_GATE_BLOCKED
    assert decision.conviction.score == 42
    assert decision.conviction.status == GatingStatus.BLOCKED
    assert decision.suggestions
    assert "42/100" in decision.reason


@pytest.mark.asyncio
async def test_weak_content_warns_in_lenient_mode(contents):
    gate = ApprovalGate(_config(strict_mode=False), contents)
    decision = await gate.evaluate_gate(_weak_content())

    assert decision.allowed
    assert decision.requires_review
    assert decision.conviction.status == GatingStatus.WARNING


@pytest.mark.asyncio
async def test_threshold_is_configurable(contents):
    gate = ApprovalGate(_config(threshold=80), contents)
    decision = await gate.evaluate_gate(_strong_content())
    assert not decision.allowed


# ── Overrides ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_block_then_override(contents, gate_config):
    gate = ApprovalGate(gate_config, contents)
    content = _weak_content()

    blocked = await gate.evaluate_gate(content)
    assert not blocked.allowed

    content.conviction.user_override = UserOverride(active=True, reason="Campaign launch")
    allowed = await gate.evaluate_gate(content)

    assert allowed.allowed
    assert allowed.conviction.status == GatingStatus.OVERRIDE


@pytest.mark.asyncio
async def test_override_ignored_when_disallowed(contents):
    gate = ApprovalGate(_config(allow_user_override=False), contents)
    content = _weak_content()
    await gate.ensure_conviction(content)
    content.conviction.user_override = UserOverride(active=True)

    decision = await gate.evaluate_gate(content)
    assert not decision.allowed
    assert decision.code == APPROVAL_GATE_BLOCKED


# ── Conviction caching ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_conviction_is_computed_and_persisted(contents, gate_config):
    analyzer = FakeAnalyzer(AnalysisScores(virality=90, engagement=90, aesthetic=90, trend=70))
    gate = ApprovalGate(gate_config, contents, analyzer=analyzer)
    content = _strong_content(ai_scores=None)

    score = await gate.ensure_conviction(content)

    assert score == 79
    assert analyzer.calls == 1
    stored = await contents.get(content.id)
    assert stored.conviction.score == 79
    assert stored.ai_scores.conviction_score == 79
    assert stored.ai_scores.brand_consistency == 70


@pytest.mark.asyncio
async def test_cached_conviction_is_reused(contents, gate_config):
    analyzer = FakeAnalyzer()
    gate = ApprovalGate(gate_config, contents, analyzer=analyzer)
    content = _strong_content(ai_scores=None)

    first = await gate.evaluate_gate(content)
    second = await gate.evaluate_gate(content)

    assert analyzer.calls == 1
    assert first.allowed == second.allowed
    assert first.conviction.score == second.conviction.score


@pytest.mark.asyncio
async def test_repeated_evaluation_is_deterministic(contents, gate_config):
    gate = ApprovalGate(gate_config, contents)
    decisions = [await gate.evaluate_gate(_weak_content()) for _ in range(3)]

    assert {d.allowed for d in decisions} == {False}
    assert {d.conviction.score for d in decisions} == {42}


@pytest.mark.asyncio
async def test_genome_informs_conviction(contents, genomes, gate_config):
    genome = Genome(subject_id="subject-1")
    genome.archetype.primary = ArchetypeAssignment(designation="F-9", glyph="ANVIL")
    await genomes.save(genome)

    gate = ApprovalGate(gate_config, contents, genomes=genomes)
    content = _strong_content(subject_id="subject-1")
    await gate.ensure_conviction(content)

    assert content.conviction.archetype_match == "F-9"
    # genome with no signals but genuine content
    assert content.conviction.breakdown.brand == 60


@pytest.mark.asyncio
async def test_strict_gate_discounts_negative_genome(contents, genomes):
    genome = Genome(subject_id="subject-1")
    genome.signals = [Signal(type="rating", weight=1.0, polarity=-1.0) for _ in range(25)]
    await genomes.save(genome)

    strict = ApprovalGate(_config(strict_mode=True), contents, genomes=genomes)
    lenient = ApprovalGate(_config(strict_mode=False), contents, genomes=genomes)
    strict_content = _strong_content(id="c-strict", subject_id="subject-1")
    lenient_content = _strong_content(id="c-lenient", subject_id="subject-1")
    await strict.ensure_conviction(strict_content)
    await lenient.ensure_conviction(lenient_content)

    assert lenient_content.conviction.breakdown.brand == 75
    assert strict_content.conviction.breakdown.brand == 68


@pytest.mark.asyncio
async def test_conviction_stamped_by_gate_clock(contents, clock):
    clock.advance(days=3)
    gate = ApprovalGate(_config(), contents, clock=clock)
    content = _strong_content()

    await gate.ensure_conviction(content)

    assert content.conviction.calculated_at == clock.now
    assert (await contents.get(content.id)).conviction.calculated_at == clock.now



# ── Manual approval workflow ──────────────────────────────────────


@pytest.mark.asyncio
async def test_queue_approval_missing_record(contents, approvals):
    gate = ApprovalGate(_config(require_queue_approval=True), contents, approvals=approvals)
    decision = await gate.evaluate_gate(_strong_content())

    assert not decision.allowed
    assert decision.code == APPROVAL_GATE_BLOCKED
    assert decision.queue_status == "missing"


@pytest.mark.asyncio
async def test_queue_approval_pending(contents, approvals):
    await approvals.save(ApprovalRecord(content_id="content-strong", status=ApprovalStatus.PENDING))
    gate = ApprovalGate(_config(require_queue_approval=True), contents, approvals=approvals)

    decision = await gate.evaluate_gate(_strong_content())

    assert not decision.allowed
    assert decision.queue_status == "pending"
    assert "incomplete" in decision.reason


@pytest.mark.asyncio
async def test_queue_approval_uses_latest_record(contents, approvals):
    await approvals.save(ApprovalRecord(
        content_id="content-strong",
        status=ApprovalStatus.REJECTED,
        submitted_at=NOW,
        updated_at=NOW,
    ))
    await approvals.save(ApprovalRecord(
        content_id="content-strong",
        status=ApprovalStatus.APPROVED,
        submitted_at=NOW,
        updated_at=NOW + timedelta(hours=1),
        reviewed_by="editor-1",
    ))
    gate = ApprovalGate(_config(require_queue_approval=True), contents, approvals=approvals)

    decision = await gate.evaluate_gate(_strong_content())

    assert decision.allowed
    assert decision.queue_status is None


@pytest.mark.asyncio
async def test_conviction_block_precedes_queue_check(contents, approvals):
    await approvals.save(ApprovalRecord(content_id="content-weak", status=ApprovalStatus.APPROVED))
    gate = ApprovalGate(_config(require_queue_approval=True), contents, approvals=approvals)

    decision = await gate.evaluate_gate(_weak_content())

    assert not decision.allowed
    assert decision.conviction.status == GatingStatus.BLOCKED
    assert decision.queue_status is None

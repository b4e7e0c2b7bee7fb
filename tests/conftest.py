"""Shared fixtures: in-memory repositories, fake collaborators and a fixed clock."""

from datetime import datetime, timedelta

import pytest

from tastegate.config.settings import ApprovalGateConfig, SchedulerConfig
from tastegate.core.collaborators import (
    AnalysisScores,
    ContentAnalyzer,
    CredentialCheck,
    CredentialValidator,
    MetricsFetcher,
    MetricsReport,
    PublishResult,
    SocialPublisher,
)
from tastegate.core.repositories import (
    InMemoryApprovalRecordRepository,
    InMemoryContentRepository,
    InMemoryGenomeRepository,
    InMemoryScheduledUnitRepository,
)

NOW = datetime(2026, 3, 2, 9, 0, 0)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeAnalyzer(ContentAnalyzer):

    def __init__(self, scores: AnalysisScores | None = None):
        self.scores = scores or AnalysisScores(virality=80, engagement=80, aesthetic=80, trend=60)
        self.calls = 0

    async def analyze(self, content):
        self.calls += 1
        return self.scores


class FakePublisher(SocialPublisher):
    """Pops scripted results; succeeds once the script runs out."""

    def __init__(self, results: list | None = None):
        self.results = list(results or [])
        self.calls: list[tuple[str, str, str]] = []

    async def publish(self, user_id, content, platform, options=None):
        self.calls.append((user_id, content.id, platform))
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        n = len(self.calls)
        return PublishResult(
            success=True,
            post_id=f"post-{n}",
            post_url=f"https://example.test/p/{n}",
        )


class FakeMetrics(MetricsFetcher):

    def __init__(self, reports: dict[str, MetricsReport] | None = None):
        self.reports = reports or {}

    async def fetch_metrics(self, content_id):
        if content_id not in self.reports:
            return MetricsReport(status="not_posted")
        report = self.reports[content_id]
        if isinstance(report, Exception):
            raise report
        return report


class FakeCredentials(CredentialValidator):

    def __init__(self, check: CredentialCheck | None = None):
        self.check = check or CredentialCheck(valid=True)

    async def validate(self, user_id, platform):
        return self.check


# ── Fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def genomes():
    return InMemoryGenomeRepository()


@pytest.fixture
def contents():
    return InMemoryContentRepository()


@pytest.fixture
def units():
    return InMemoryScheduledUnitRepository()


@pytest.fixture
def approvals():
    return InMemoryApprovalRecordRepository()


@pytest.fixture
def gate_config():
    return ApprovalGateConfig(
        enforced=True,
        strict_mode=True,
        threshold=70,
        require_queue_approval=False,
        allow_user_override=True,
    )


@pytest.fixture
def scheduler_config():
    return SchedulerConfig(poll_interval_seconds=0.01, default_cadence_minutes=60)

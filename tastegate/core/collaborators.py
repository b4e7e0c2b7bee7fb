"""
External Collaborators

Interfaces the pipeline consumes but does not own:
- Content quality analysis
- Social publishing
- Post metrics
- Platform credential checks

Results crossing this boundary are pydantic models so payloads from
any vendor client are validated before they reach the core.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .entities import ContentItem


class AnalysisScores(BaseModel):
    """Quality sub-scores for one content item."""
    virality: float = Field(default=0, ge=0, le=100, description="Predicted shareability")
    engagement: float = Field(default=0, ge=0, le=100, description="Predicted interaction rate")
    aesthetic: float = Field(default=0, ge=0, le=100, description="Visual quality")
    trend: float = Field(default=0, ge=0, le=100, description="Alignment with current trends")


class PublishResult(BaseModel):
    """Outcome of a publish call."""
    success: bool = False
    post_id: Optional[str] = None
    post_url: Optional[str] = None
    error: Optional[str] = None


class MetricsReport(BaseModel):
    """Observed performance of a published item."""
    status: Literal["posted", "not_posted"] = "not_posted"
    engagement_score: Optional[float] = Field(
        default=None,
        ge=0,
        le=100,
        description="Composite 0-100 engagement; computed from metrics when absent"
    )
    metrics: dict = Field(default_factory=dict)
    posted_at: Optional[datetime] = None


class CredentialCheck(BaseModel):
    """Result of validating platform credentials."""
    valid: bool = False
    error: Optional[str] = None
    needs_refresh: bool = False


class ContentAnalyzer(ABC):
    """Produces quality sub-scores for content."""

    @abstractmethod
    async def analyze(self, content: ContentItem) -> AnalysisScores:
        pass


class SocialPublisher(ABC):
    """Publishes content to an external platform."""

    @abstractmethod
    async def publish(
        self,
        user_id: str,
        content: ContentItem,
        platform: str,
        options: dict = None
    ) -> PublishResult:
        pass


class MetricsFetcher(ABC):
    """Fetches observed metrics for published content."""

    @abstractmethod
    async def fetch_metrics(self, content_id: str) -> MetricsReport:
        pass


class CredentialValidator(ABC):
    """Checks that a user can still post to a platform."""

    @abstractmethod
    async def validate(self, user_id: str, platform: str) -> CredentialCheck:
        pass

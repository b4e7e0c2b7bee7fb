"""
Core Entities - Documents of the Taste Pipeline

This module defines the documents the pipeline reads and writes
through its repositories. Each one maps to a stored record:

Entities:
- Genome: Per-subject taste record (signals, archetype, keywords, learning)
- Signal: One weighted, timestamped behavioural observation
- ContentItem: A piece of content with AI scores and a cached conviction
- ScheduledUnit: A queue of content items posted on a cadence
- ValidationRecord: Predicted vs observed outcome for one publish
- ApprovalRecord: Manual approval workflow state for one content item
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional
from uuid import uuid4


SIGNAL_CAP = 1000
ACCURACY_HISTORY_CAP = 100


class TasteGateError(Exception):
    """Base error for the taste pipeline."""


class NotFoundError(TasteGateError):
    """A requested document does not exist."""


def _new_id() -> str:
    return str(uuid4())


# =============================================================================
# Genome
# =============================================================================

@dataclass
class SignalMetadata:
    """Optional hints attached to a signal."""
    score: Optional[float] = None          # Likert score, 1-5
    prompt: Optional[str] = None           # Free text used for keyword learning
    archetype_hint: Optional[str] = None   # Designation this signal speaks to
    polarity: Any = None                   # "best" / "worst" / number
    topic: Optional[str] = None
    platform: Optional[str] = None

    # Behavioural flags
    is_obscure: bool = False
    is_complex: bool = False
    is_trending: bool = False

    extra: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Signal:
    """
    A behavioural observation.

    Built by callers with only type/value/metadata (and optionally a
    requested weight). Recording produces a normalized copy with the
    clamped weight, resolved polarity and archetype pulls filled in;
    that copy is never mutated afterwards.
    """
    type: str = "rating"
    value: Any = None
    weight: Optional[float] = None
    metadata: SignalMetadata = field(default_factory=SignalMetadata)
    timestamp: datetime = field(default_factory=datetime.now)

    # Derived at record time
    polarity: float = 0.0
    archetype_weights: dict = field(default_factory=dict)


@dataclass
class ArchetypeAssignment:
    """An archetype together with its probability mass."""
    designation: str = ""
    glyph: str = ""
    confidence: float = 0.0


@dataclass
class ArchetypeProfile:
    """Classifier output for one genome."""
    primary: Optional[ArchetypeAssignment] = None
    secondary: Optional[ArchetypeAssignment] = None
    distribution: dict[str, float] = field(default_factory=dict)
    clarity: float = 0.0  # 1 - normalized entropy
    classified_at: Optional[datetime] = None


@dataclass
class KeywordScore:
    score: float = 0.0
    count: int = 0


@dataclass
class Directives:
    """Content-generation directives for a subject."""
    tone: list = field(default_factory=list)
    keywords: list = field(default_factory=list)
    avoid: list = field(default_factory=list)


@dataclass
class UnlockedAchievement:
    id: str = ""
    name: str = ""
    unlocked_at: datetime = field(default_factory=datetime.now)


@dataclass
class GamificationState:
    xp: int = 0
    tier: int = 0
    streak: int = 0
    longest_streak: int = 0
    last_active_date: Optional[str] = None  # ISO date
    achievements: list[UnlockedAchievement] = field(default_factory=list)

    # Action counters used by achievements
    total_scores: int = 0
    total_published: int = 0
    total_hooks_generated: int = 0
    unique_styles: list = field(default_factory=list)
    unique_hooks: list = field(default_factory=list)


def default_learning_weights() -> dict[str, float]:
    return {"performance": 0.3, "taste": 0.5, "brand": 0.2}


@dataclass
class ArchetypeAdjustment:
    """Learned confidence in one archetype's predictions."""
    confidence: float = 1.0  # Neutral; bounded to [0.5, 1.5]
    total_adjustments: int = 0
    performance_delta: float = 0.0
    last_adjusted: Optional[datetime] = None


@dataclass
class AccuracyEntry:
    accuracy: int = 0
    conviction_score: int = 0
    actual_score: float = 0.0
    content_id: str = ""
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class LearningState:
    """Feedback-loop state written by outcome validation."""
    total_feedback_events: int = 0
    accuracy_history: list[AccuracyEntry] = field(default_factory=list)
    archetype_adjustments: dict[str, ArchetypeAdjustment] = field(default_factory=dict)
    weights: dict[str, float] = field(default_factory=default_learning_weights)
    overall_accuracy: int = 0
    version: int = 1
    last_updated: Optional[datetime] = None


@dataclass
class Genome:
    """
    Per-subject taste genome.

    Created lazily on the first signal. `signals` is capped at
    SIGNAL_CAP (oldest evicted first) while `item_count` keeps the
    true number of signals ever recorded.
    """
    subject_id: str = ""
    signals: list[Signal] = field(default_factory=list)
    item_count: int = 0
    archetype: ArchetypeProfile = field(default_factory=ArchetypeProfile)
    confidence: float = 0.0

    keyword_scores: dict[str, KeywordScore] = field(default_factory=dict)
    platform_scores: dict[str, dict[str, KeywordScore]] = field(default_factory=dict)
    directives: Optional[Directives] = None

    gamification: GamificationState = field(default_factory=GamificationState)
    learning: LearningState = field(default_factory=LearningState)

    created_at: datetime = field(default_factory=datetime.now)
    last_updated: Optional[datetime] = None


# =============================================================================
# Content and conviction
# =============================================================================

class ConvictionTier(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXCEPTIONAL = "exceptional"


class ContentStatus(Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


@dataclass
class AiScores:
    """Quality sub-scores (0-100) from the content analyzer."""
    virality: float = 0.0
    engagement: float = 0.0
    aesthetic: float = 0.0
    trend: float = 0.0

    # Written back by the conviction scorer
    conviction_score: Optional[int] = None
    brand_consistency: Optional[int] = None

    def has_any_score(self) -> bool:
        return any(s > 0 for s in (self.virality, self.engagement, self.aesthetic, self.trend))


@dataclass
class UserOverride:
    active: bool = False
    reason: str = ""


@dataclass
class ConvictionBreakdown:
    performance: int = 0
    brand: int = 0


@dataclass
class Conviction:
    """Cached conviction for one content item."""
    score: int = 0
    tier: ConvictionTier = ConvictionTier.LOW
    breakdown: ConvictionBreakdown = field(default_factory=ConvictionBreakdown)
    weights: dict[str, float] = field(default_factory=dict)
    calculated_at: datetime = field(default_factory=datetime.now)
    user_override: Optional[UserOverride] = None
    archetype_match: Optional[str] = None

    @property
    def override_active(self) -> bool:
        return bool(self.user_override and self.user_override.active)


# =============================================================================
# Validation
# =============================================================================

class PredictionQuality(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    VERY_POOR = "very_poor"


class ValidationStatus(Enum):
    VALIDATED = "validated"
    NOT_FOUND = "not_found"
    NO_CONVICTION = "no_conviction"
    NOT_POSTED = "not_posted"
    ERROR = "error"


@dataclass
class PredictedOutcome:
    conviction_score: int = 0
    tier: ConvictionTier = ConvictionTier.LOW
    breakdown: ConvictionBreakdown = field(default_factory=ConvictionBreakdown)
    archetype_match: Optional[str] = None


@dataclass
class ActualOutcome:
    engagement_score: float = 0.0
    metrics: dict = field(default_factory=dict)
    posted_at: Optional[datetime] = None


@dataclass
class FeedbackSignal:
    """One directional adjustment derived from a validation."""
    type: str = ""  # underestimated, overestimated, performance_component, successful_override
    action: str = ""
    message: str = ""
    archetype: Optional[str] = None
    magnitude: float = 0.0
    assessment: Optional[str] = None
    delta: float = 0.0


@dataclass
class ValidationFeedback:
    should_update_genome: bool = False
    weight: float = 0.0
    signals: list[FeedbackSignal] = field(default_factory=list)


@dataclass
class ValidationRecord:
    """Predicted conviction compared to observed engagement."""
    content_id: str = ""
    status: ValidationStatus = ValidationStatus.VALIDATED
    message: str = ""

    predicted: Optional[PredictedOutcome] = None
    actual: Optional[ActualOutcome] = None
    accuracy: int = 0
    prediction_quality: Optional[PredictionQuality] = None
    component_analysis: dict = field(default_factory=dict)
    was_user_override: bool = False

    feedback: ValidationFeedback = field(default_factory=ValidationFeedback)
    calculated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_validated(self) -> bool:
        return self.status == ValidationStatus.VALIDATED


@dataclass
class ContentItem:
    """A content record as seen by the pipeline."""
    id: str = field(default_factory=_new_id)
    subject_id: Optional[str] = None
    user_id: Optional[str] = None
    title: str = ""
    caption: str = ""
    media_url: str = ""
    platform: str = "instagram"
    status: ContentStatus = ContentStatus.DRAFT

    ai_scores: Optional[AiScores] = None
    analysis: dict = field(default_factory=dict)  # aesthetic / performance DNA
    conviction: Optional[Conviction] = None
    conviction_validation: Optional[ValidationRecord] = None

    # Publish results
    published_at: Optional[datetime] = None
    platform_post_id: Optional[str] = None
    platform_post_url: Optional[str] = None

    created_at: datetime = field(default_factory=datetime.now)


# =============================================================================
# Scheduling
# =============================================================================

class UnitStatus(Enum):
    SCHEDULED = "scheduled"
    POSTING = "posting"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class UnitItem:
    content_id: str = ""
    order: int = 0
    id: str = field(default_factory=_new_id)
    posted: bool = False
    posted_at: Optional[datetime] = None
    post_id: Optional[str] = None
    post_url: Optional[str] = None


@dataclass
class SchedulingPolicy:
    enabled: bool = True
    auto_post: bool = True
    interval_minutes: int = 1440  # Gap between consecutive posts


@dataclass
class UnitError:
    code: str = ""
    message: str = ""
    item_index: Optional[int] = None
    metadata: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ScheduledUnit:
    """
    A queue of content items posted on a cadence.

    Status transitions:
    scheduled -> posting -> scheduled | completed | paused | failed
    """
    id: str = field(default_factory=_new_id)
    name: str = ""
    user_id: str = ""
    platform: str = "instagram"
    items: list[UnitItem] = field(default_factory=list)
    scheduling: SchedulingPolicy = field(default_factory=SchedulingPolicy)
    status: UnitStatus = UnitStatus.SCHEDULED
    next_post_at: Optional[datetime] = None
    errors: list[UnitError] = field(default_factory=list)

    def get_item(self, item_id: str) -> Optional[UnitItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def get_next_item_to_post(self) -> Optional[UnitItem]:
        """Lowest-order item not yet posted."""
        pending = [i for i in self.items if not i.posted]
        if not pending:
            return None
        return min(pending, key=lambda i: i.order)

    def mark_as_posted(
        self,
        item_id: str,
        post_id: str = None,
        post_url: str = None,
        posted_at: datetime = None
    ) -> None:
        item = self.get_item(item_id)
        if item is None:
            raise NotFoundError(f"Item {item_id} not found in unit {self.id}")
        item.posted = True
        item.posted_at = posted_at or datetime.now()
        item.post_id = post_id
        item.post_url = post_url

    def calculate_next_post_time(self, now: datetime = None) -> Optional[datetime]:
        """Next slot on the cadence, or None when nothing is left to post."""
        if self.get_next_item_to_post() is None:
            return None
        now = now or datetime.now()
        return now + timedelta(minutes=self.scheduling.interval_minutes)

    def record_error(
        self,
        code: str,
        message: str,
        item_index: int = None,
        metadata: dict = None,
        timestamp: datetime = None
    ) -> UnitError:
        error = UnitError(
            code=code,
            message=message,
            item_index=item_index,
            metadata=metadata or {},
            timestamp=timestamp or datetime.now()
        )
        self.errors.append(error)
        return error

    def is_due(self, now: datetime) -> bool:
        return (
            self.scheduling.enabled
            and self.scheduling.auto_post
            and self.status == UnitStatus.SCHEDULED
            and self.next_post_at is not None
            and self.next_post_at <= now
        )


# =============================================================================
# Manual approval workflow
# =============================================================================

class ApprovalStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


@dataclass
class ApprovalRecord:
    content_id: str = ""
    status: ApprovalStatus = ApprovalStatus.PENDING
    id: str = field(default_factory=_new_id)
    submitted_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    reviewed_by: Optional[str] = None

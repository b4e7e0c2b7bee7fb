"""
Orchestration Layer - Gate and Publish

Approval Gate:
- Conviction policy with strict mode and user overrides
- Optional manual approval workflow

Posting Scheduler:
- Cooperative polling loop over due units
- Gate, publish and record outcome per unit
- Pause on block or expired credentials, retry on the next slot
"""

from .approval import (
    APPROVAL_GATE_BLOCKED,
    ApprovalGate,
    GateConvictionSnapshot,
    GateDecision
)
from .scheduler import (
    PostingScheduler,
    SchedulerActionResult,
    TickReport
)

__all__ = [
    "APPROVAL_GATE_BLOCKED",
    "ApprovalGate",
    "GateConvictionSnapshot",
    "GateDecision",
    "PostingScheduler",
    "SchedulerActionResult",
    "TickReport"
]

"""
Activity recording seam for live provider calls.

An activity brackets one live call (start -> complete or fail) so an
outside store can report cost and latency. The default recorder keeps
records in memory and logs each transition.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Protocol

from completion_core.models.llm import ModelTier, UsageStats
from completion_core.utils.logger import get_logger

logger = get_logger(__name__)


class ActivityStatus(str, Enum):
    """Lifecycle states of an activity."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ActivityRecord:
    """One live provider call as seen by the activity store."""

    id: str
    session_id: str
    turn_id: str
    operation: str
    model: str
    tier: ModelTier
    status: ActivityStatus = ActivityStatus.PENDING
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    usage: UsageStats = field(default_factory=UsageStats.zero)
    cost: float = 0.0
    duration_ms: float = 0.0
    error: Optional[str] = None


class ActivityRecorder(Protocol):
    """
    Activity recorder protocol.

    Implemented by whatever store owns activity telemetry.
    """

    async def start(
        self,
        session_id: str,
        turn_id: str,
        operation: str,
        model: str,
        tier: ModelTier,
    ) -> str:
        """Open an activity and return its identifier."""
        ...

    async def complete(
        self, activity_id: str, usage: UsageStats, cost: float, duration_ms: float
    ) -> None:
        """Close an activity as successful."""
        ...

    async def fail(self, activity_id: str, error: str, duration_ms: float) -> None:
        """Close an activity as failed."""
        ...


class InMemoryActivityRecorder:
    """Activity recorder that logs transitions and keeps records in memory."""

    def __init__(self) -> None:
        self._records: Dict[str, ActivityRecord] = {}
        self._lock = threading.Lock()

    async def start(
        self,
        session_id: str,
        turn_id: str,
        operation: str,
        model: str,
        tier: ModelTier,
    ) -> str:
        record = ActivityRecord(
            id=str(uuid.uuid4()),
            session_id=session_id,
            turn_id=turn_id,
            operation=operation,
            model=model,
            tier=tier,
        )
        with self._lock:
            self._records[record.id] = record

        logger.info(
            "Activity started",
            activity_id=record.id,
            operation=operation,
            model=model,
            tier=ModelTier(tier).value,
        )
        return record.id

    async def complete(
        self, activity_id: str, usage: UsageStats, cost: float, duration_ms: float
    ) -> None:
        record = self._close(activity_id, ActivityStatus.COMPLETED, duration_ms)
        if record is None:
            return

        record.usage = usage
        record.cost = cost
        logger.info(
            "Activity completed",
            activity_id=activity_id,
            tokens=usage.total_tokens,
            cost=cost,
            duration_ms=round(duration_ms),
        )

    async def fail(self, activity_id: str, error: str, duration_ms: float) -> None:
        record = self._close(activity_id, ActivityStatus.FAILED, duration_ms)
        if record is None:
            return

        record.error = error
        logger.warning(
            "Activity failed",
            activity_id=activity_id,
            error=error,
            duration_ms=round(duration_ms),
        )

    def _close(
        self, activity_id: str, status: ActivityStatus, duration_ms: float
    ) -> Optional[ActivityRecord]:
        with self._lock:
            record = self._records.get(activity_id)
        if record is None:
            logger.warning("Unknown activity", activity_id=activity_id)
            return None

        record.status = status
        record.completed_at = datetime.now(timezone.utc)
        record.duration_ms = duration_ms
        return record

    def get(self, activity_id: str) -> Optional[ActivityRecord]:
        """Get an activity record by identifier."""
        with self._lock:
            return self._records.get(activity_id)

    def get_all(self) -> List[ActivityRecord]:
        """Get all activity records in start order."""
        with self._lock:
            return list(self._records.values())

    def reset(self) -> None:
        """Drop all records."""
        with self._lock:
            self._records.clear()

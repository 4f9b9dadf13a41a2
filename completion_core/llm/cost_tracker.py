"""
LLM cost tracking and per-turn telemetry.

Sandi Metz Principles:
- Single Responsibility: Track and report LLM costs
- Small methods: Each method < 10 lines
- Clear naming: Self-documenting code
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from completion_core.llm.cost_calculator import CostCalculator
from completion_core.models.llm import UsageStats
from completion_core.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CostEntry:
    """Single cost entry for tracking."""

    timestamp: datetime
    session_id: str
    turn_id: str
    operation: str
    model: str
    usage: UsageStats
    cost: float
    duration_ms: float = 0.0


@dataclass
class CostSummary:
    """Summary of costs."""

    total_cost: float
    total_requests: int
    total_tokens: int
    session_costs: Dict[str, float] = field(default_factory=dict)
    model_costs: Dict[str, float] = field(default_factory=dict)
    operation_costs: Dict[str, float] = field(default_factory=dict)


@dataclass
class TurnAggregate:
    """Aggregated telemetry for every call made during one turn."""

    call_count: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_write_input_tokens: int = 0
    duration_ms: float = 0.0
    cost: float = 0.0
    models: Dict[str, int] = field(default_factory=dict)

    @property
    def cache_hit_rate(self) -> float:
        """Share of input tokens served from cache (0.0-1.0)."""
        if self.input_tokens == 0:
            return 0.0
        return self.cache_read_input_tokens / self.input_tokens

    def add(self, entry: CostEntry) -> None:
        """Fold one cost entry into the aggregate."""
        self.call_count += 1
        self.input_tokens += entry.usage.input_tokens
        self.output_tokens += entry.usage.output_tokens
        self.cache_read_input_tokens += entry.usage.cache_read_input_tokens
        self.cache_write_input_tokens += entry.usage.cache_write_input_tokens
        self.duration_ms += entry.duration_ms
        self.cost += entry.cost
        self.models[entry.model] = self.models.get(entry.model, 0) + 1


class LLMCostTracker:
    """
    Track LLM API costs in real-time.

    Records cost data per session, turn and operation for analysis and
    reporting.
    """

    def __init__(self, cost_calculator: CostCalculator | None = None):
        """
        Initialize cost tracker.

        Args:
            cost_calculator: Cost calculator instance (creates default if None)
        """
        self._calculator = cost_calculator or CostCalculator()
        self._entries: List[CostEntry] = []
        self._turns: Dict[str, TurnAggregate] = {}
        self._lock = threading.Lock()

    def track_request(
        self,
        session_id: str,
        turn_id: str,
        operation: str,
        model: str,
        usage: UsageStats,
        duration_ms: float = 0.0,
    ) -> float:
        """
        Track cost for a request.

        Args:
            session_id: Session identifier
            turn_id: Turn identifier
            operation: Operation name
            model: Model name
            usage: Token usage
            duration_ms: Call latency in milliseconds

        Returns:
            Cost for this request
        """
        cost = self._calculator.calculate(model, usage)

        entry = CostEntry(
            timestamp=datetime.now(timezone.utc),
            session_id=session_id,
            turn_id=turn_id,
            operation=operation,
            model=model,
            usage=usage,
            cost=cost,
            duration_ms=duration_ms,
        )

        with self._lock:
            self._entries.append(entry)
            self._turns.setdefault(turn_id, TurnAggregate()).add(entry)

        logger.info(
            "Tracked request cost",
            session_id=session_id,
            turn_id=turn_id,
            operation=operation,
            model=model,
            tokens=usage.total_tokens,
            cache_read=usage.cache_read_input_tokens,
            cache_write=usage.cache_write_input_tokens,
            cost=cost,
        )

        return cost

    def get_summary(self) -> CostSummary:
        """
        Get cost summary.

        Returns:
            Summary of all tracked costs
        """
        entries = self.get_all_entries()
        if not entries:
            return CostSummary(total_cost=0.0, total_requests=0, total_tokens=0)

        return CostSummary(
            total_cost=sum(e.cost for e in entries),
            total_requests=len(entries),
            total_tokens=sum(e.usage.total_tokens for e in entries),
            session_costs=self._group_costs(entries, "session_id"),
            model_costs=self._group_costs(entries, "model"),
            operation_costs=self._group_costs(entries, "operation"),
        )

    @staticmethod
    def _group_costs(entries: List[CostEntry], attribute: str) -> Dict[str, float]:
        """Calculate costs grouped by an entry attribute."""
        costs: Dict[str, float] = {}

        for entry in entries:
            key = getattr(entry, attribute)
            costs[key] = costs.get(key, 0.0) + entry.cost

        return costs

    def get_entries_by_session(self, session_id: str) -> List[CostEntry]:
        """
        Get entries for specific session.

        Args:
            session_id: Session identifier

        Returns:
            List of cost entries for session
        """
        return [e for e in self.get_all_entries() if e.session_id == session_id]

    def get_entries_by_turn(self, turn_id: str) -> List[CostEntry]:
        """
        Get entries for specific turn.

        Args:
            turn_id: Turn identifier

        Returns:
            List of cost entries for turn
        """
        return [e for e in self.get_all_entries() if e.turn_id == turn_id]

    def get_turn_aggregate(self, turn_id: str) -> Optional[TurnAggregate]:
        """
        Get aggregated telemetry for a turn that has not been finalized.

        Args:
            turn_id: Turn identifier

        Returns:
            Turn aggregate or None if nothing was recorded
        """
        with self._lock:
            return self._turns.get(turn_id)

    def finalize_turn(self, turn_id: str) -> Optional[TurnAggregate]:
        """
        Log a one-line summary for a turn and stop aggregating it.

        Args:
            turn_id: Turn identifier

        Returns:
            The finalized aggregate, or None if the turn made no calls
        """
        with self._lock:
            aggregate = self._turns.pop(turn_id, None)

        if aggregate is None:
            return None

        models = ", ".join(f"{m}x{n}" for m, n in aggregate.models.items())
        logger.info(
            "Turn metrics",
            turn_id=turn_id,
            calls=aggregate.call_count,
            tokens_in=aggregate.input_tokens,
            tokens_out=aggregate.output_tokens,
            cache_read=aggregate.cache_read_input_tokens,
            cache_write=aggregate.cache_write_input_tokens,
            cache_hit_rate=round(aggregate.cache_hit_rate * 100),
            duration_ms=round(aggregate.duration_ms),
            cost=aggregate.cost,
            models=f"[{models}]",
        )
        return aggregate

    def get_total_cost(self) -> float:
        """
        Get total cost across all requests.

        Returns:
            Total cost in dollars
        """
        return sum(e.cost for e in self.get_all_entries())

    def get_request_count(self) -> int:
        """
        Get total number of tracked requests.

        Returns:
            Number of requests
        """
        with self._lock:
            return len(self._entries)

    def reset(self) -> None:
        """Clear all tracked entries."""
        with self._lock:
            self._entries.clear()
            self._turns.clear()
        logger.info("Cost tracker reset")

    def get_all_entries(self) -> List[CostEntry]:
        """
        Get all cost entries.

        Returns:
            List of all cost entries
        """
        with self._lock:
            return self._entries.copy()

"""Result records returned by the scheduler facade."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Hashable, List, Optional

import numpy as np

from ccpm_engine.domain.chain import Chain


@dataclass(frozen=True)
class FeedingBuffer:
    merge_task_id: Hashable
    buffer_minutes: int

    def to_dict(self) -> Dict[str, Any]:
        return {"merge_task_id": self.merge_task_id, "buffer_minutes": self.buffer_minutes}


@dataclass
class CriticalChainAnalysis:
    """
    Outcome of a critical chain analysis.

    ``leveling`` keeps the baseline schedule, augmented graph and leveled
    schedule the analysis was derived from, for callers that want to inspect
    the synthetic resource edges.
    """

    critical_chain: Chain
    feeding_chains: List[Chain]
    project_buffer_minutes: int
    feeding_buffers: List[FeedingBuffer]
    total_project_duration_minutes: float
    leveling: Any = None

    @property
    def critical_task_ids(self) -> List[Hashable]:
        return self.critical_chain.task_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "critical_chain": [task.to_dict() for task in self.critical_chain.tasks],
            "feeding_chains": [
                {
                    "merge_task_id": chain.merge_task_id,
                    "tasks": [task.to_dict() for task in chain.tasks],
                }
                for chain in self.feeding_chains
            ],
            "project_buffer_minutes": self.project_buffer_minutes,
            "feeding_buffers": [fb.to_dict() for fb in self.feeding_buffers],
            "total_project_duration_minutes": self.total_project_duration_minutes,
        }


@dataclass(frozen=True)
class PercentileForecast:
    duration_minutes: int
    finish_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration_minutes": self.duration_minutes,
            "finish_date": self.finish_date.isoformat() if self.finish_date else None,
        }


@dataclass(frozen=True)
class HistogramBin:
    min_minutes: int
    max_minutes: int
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_minutes": self.min_minutes,
            "max_minutes": self.max_minutes,
            "count": self.count,
        }


def percentile_key(p: float) -> str:
    """0.5 -> 'p50', 0.95 -> 'p95'."""
    return f"p{round(p * 100)}"


@dataclass
class ForecastResult:
    start_date: Optional[date]
    deterministic_duration_minutes: float
    deterministic_finish_date: Optional[date]
    simulations: int
    percentiles: Dict[str, PercentileForecast]
    histogram: List[HistogramBin]
    # Sorted completion times of every trial
    durations: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "deterministic_duration_minutes": self.deterministic_duration_minutes,
            "deterministic_finish_date": (
                self.deterministic_finish_date.isoformat()
                if self.deterministic_finish_date
                else None
            ),
            "simulations": self.simulations,
            "percentiles": {key: pf.to_dict() for key, pf in self.percentiles.items()},
            "histogram": [b.to_dict() for b in self.histogram],
        }

from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterator, Mapping


@dataclass(frozen=True)
class ScheduleEntry:
    """Computed early/late dates of one task, as minute offsets from t=0."""

    task_id: Hashable
    duration: float
    early_start: float
    early_finish: float
    late_start: float
    late_finish: float

    @property
    def total_float(self) -> float:
        return self.late_start - self.early_start

    @property
    def is_critical(self) -> bool:
        return self.total_float == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "duration": self.duration,
            "early_start": self.early_start,
            "early_finish": self.early_finish,
            "late_start": self.late_start,
            "late_finish": self.late_finish,
            "total_float": self.total_float,
        }


class Schedule(Mapping):
    """
    Read-only mapping of task id to :class:`ScheduleEntry`.

    Iteration follows the task input order, which is what ties in the
    critical chain are broken by.
    """

    def __init__(self, entries: Mapping[Hashable, ScheduleEntry]):
        self._entries = dict(entries)

    def __getitem__(self, task_id: Hashable) -> ScheduleEntry:
        return self._entries[task_id]

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def project_end(self) -> float:
        """Latest early finish over all tasks, 0 for an empty schedule."""
        return max((e.early_finish for e in self._entries.values()), default=0)

    def to_dict(self) -> Dict[Hashable, Dict[str, Any]]:
        return {task_id: entry.to_dict() for task_id, entry in self._entries.items()}

    def __eq__(self, other):
        if isinstance(other, Schedule):
            return self._entries == other._entries
        return NotImplemented

    def __repr__(self) -> str:
        return f"Schedule({len(self)} tasks, project_end={self.project_end})"

from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Tuple

from ccpm_engine.domain.schedule import ScheduleEntry
from ccpm_engine.domain.task import Task
from ccpm_engine.exceptions import ValidationError


class ChainError(ValidationError):
    """Exception raised for errors in the Chain class."""

    pass


@dataclass(frozen=True)
class ChainTask:
    """Snapshot of a task and its leveled early dates, as reported in a chain."""

    task_id: Hashable
    title: str
    optimistic_minutes: float
    pessimistic_minutes: float
    assignee_ids: Tuple[Hashable, ...]
    early_start: float
    early_finish: float

    @classmethod
    def from_task(cls, task: Task, entry: ScheduleEntry) -> "ChainTask":
        return cls(
            task_id=task.id,
            title=task.title,
            optimistic_minutes=task.optimistic_minutes,
            pessimistic_minutes=task.pessimistic_minutes,
            assignee_ids=task.assignee_ids,
            early_start=entry.early_start,
            early_finish=entry.early_finish,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "title": self.title,
            "optimistic_minutes": self.optimistic_minutes,
            "pessimistic_minutes": self.pessimistic_minutes,
            "assignee_ids": list(self.assignee_ids),
            "early_start": self.early_start,
            "early_finish": self.early_finish,
        }


class Chain:
    """
    Represents a chain of tasks in a Critical Chain Project Management (CCPM) system.

    A chain can be either the critical chain (the zero-float sequence that
    determines project duration) or a feeding chain (a non-critical branch
    that merges into the critical chain at ``merge_task_id``).
    """

    def __init__(self, id: str, name: str, type: str = "feeding"):
        """
        Initialize a new Chain.

        Args:
            id: Unique identifier for the chain
            name: Descriptive name for the chain
            type: Chain type ("critical" or "feeding")

        Raises:
            ChainError: If any input validation fails
        """
        if id is None or str(id).strip() == "":
            raise ChainError("Chain ID cannot be None or empty")
        self.id = id

        if not name or not isinstance(name, str):
            raise ChainError("Chain name must be a non-empty string")
        self.name = name

        if type not in ["critical", "feeding"]:
            raise ChainError("Chain type must be either 'critical' or 'feeding'")
        self.type = type

        self.tasks: List[ChainTask] = []  # In ascending early start order
        self.merge_task_id = None  # For feeding chains, the critical task fed

    def add_task(self, task: ChainTask) -> "Chain":
        """
        Append a task snapshot to this chain, ignoring duplicates.

        Returns:
            self: For method chaining
        """
        if task.task_id not in self.task_ids:
            self.tasks.append(task)
        return self

    def set_connection(self, task_id: Hashable) -> "Chain":
        """
        Set the critical chain task this feeding chain merges into.

        Raises:
            ChainError: If task_id is None or this is not a feeding chain
        """
        if task_id is None or str(task_id).strip() == "":
            raise ChainError("Task ID cannot be None or empty")

        if self.type != "feeding":
            raise ChainError("Only feeding chains can connect to other tasks")

        self.merge_task_id = task_id
        return self

    @property
    def task_ids(self) -> List[Hashable]:
        return [task.task_id for task in self.tasks]

    @property
    def early_finish(self) -> float:
        """Latest early finish over the chain's tasks, 0 when empty."""
        return max((task.early_finish for task in self.tasks), default=0)

    def is_critical(self) -> bool:
        return self.type == "critical"

    def is_feeding(self) -> bool:
        return self.type == "feeding"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "tasks": [task.to_dict() for task in self.tasks],
        }
        if self.is_feeding():
            data["merge_task_id"] = self.merge_task_id
        return data

    def __len__(self) -> int:
        return len(self.tasks)

    def __repr__(self) -> str:
        return f"Chain(id={self.id!r}, type={self.type!r}, tasks={self.task_ids})"

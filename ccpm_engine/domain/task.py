from typing import Any, Dict, Hashable, Iterable, Optional, Tuple

from ccpm_engine.exceptions import ValidationError
from ccpm_engine.utils.rounding import round_half_up


class TaskError(ValidationError):
    """Exception raised for errors in the Task class."""

    pass


class Task:
    """
    Represents a task node in a Critical Chain Project Management (CCPM) analysis.

    A task carries two duration estimates in minutes: the optimistic estimate,
    used as the planned duration when scheduling, and the pessimistic estimate,
    whose distance from the optimistic one drives buffer sizing and the Monte
    Carlo forecast. Tasks are read-only inputs; computed schedule values live
    in :class:`ccpm_engine.domain.schedule.Schedule`.
    """

    def __init__(
        self,
        id: Hashable,
        title: str = "",
        optimistic_minutes: float = 0,
        pessimistic_minutes: Optional[float] = None,
        assignee_ids: Optional[Iterable[Hashable]] = None,
        pessimistic_factor: float = 1.5,
    ):
        """
        Initialize a new Task.

        Args:
            id: Unique, stable identifier for the task
            title: Display name of the task
            optimistic_minutes: Optimistic duration estimate (in minutes)
            pessimistic_minutes: Pessimistic duration estimate (in minutes),
                defaults to optimistic_minutes * pessimistic_factor, rounded
            assignee_ids: Users assigned to the task, possibly empty
            pessimistic_factor: Multiplier used when no pessimistic estimate is given

        Raises:
            TaskError: If any input validation fails
        """
        if id is None or str(id).strip() == "":
            raise TaskError("Task ID cannot be None or empty")
        self.id = id

        if title is None:
            title = ""
        if not isinstance(title, str):
            raise TaskError("Task title must be a string")
        self.title = title

        if (
            isinstance(optimistic_minutes, bool)
            or not isinstance(optimistic_minutes, (int, float))
            or optimistic_minutes < 0
        ):
            raise TaskError("Optimistic duration must be a non-negative number")
        self.optimistic_minutes = optimistic_minutes

        # Fall back to a proportional pessimistic estimate
        if pessimistic_minutes is None:
            self.pessimistic_minutes = round_half_up(optimistic_minutes * pessimistic_factor)
        elif (
            isinstance(pessimistic_minutes, bool)
            or not isinstance(pessimistic_minutes, (int, float))
            or pessimistic_minutes < optimistic_minutes
        ):
            raise TaskError(
                "Pessimistic duration must be a number greater than or equal to optimistic duration"
            )
        else:
            self.pessimistic_minutes = pessimistic_minutes

        if isinstance(assignee_ids, str):
            self.assignee_ids: Tuple[Hashable, ...] = (assignee_ids,)
        elif assignee_ids:
            # Keep first-seen order, drop repeats
            self.assignee_ids = tuple(dict.fromkeys(assignee_ids))
        else:
            self.assignee_ids = ()

    @property
    def duration(self) -> float:
        """Planned duration used by the deterministic schedule."""
        return self.optimistic_minutes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "optimistic_minutes": self.optimistic_minutes,
            "pessimistic_minutes": self.pessimistic_minutes,
            "assignee_ids": list(self.assignee_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], pessimistic_factor: float = 1.5) -> "Task":
        """
        Create a Task from a dictionary.

        Accepts both snake_case and camelCase keys so snapshots exported by the
        web API can be fed in directly.
        """
        if "id" not in data:
            raise TaskError("Task dictionary must contain an 'id'")
        return cls(
            id=data["id"],
            title=data.get("title", data.get("name", "")),
            optimistic_minutes=data.get(
                "optimistic_minutes", data.get("optimisticMinutes", 0)
            ),
            pessimistic_minutes=data.get(
                "pessimistic_minutes", data.get("pessimisticMinutes")
            ),
            assignee_ids=data.get("assignee_ids", data.get("assigneeIds")),
            pessimistic_factor=pessimistic_factor,
        )

    def __repr__(self) -> str:
        return (
            f"Task(id={self.id!r}, title={self.title!r}, "
            f"optimistic={self.optimistic_minutes}, pessimistic={self.pessimistic_minutes}, "
            f"assignees={list(self.assignee_ids)})"
        )

from enum import Enum
from typing import Any, Dict, Hashable

from ccpm_engine.exceptions import ValidationError


class DependencyType(Enum):
    """
    Enum representing the precedence relation between two tasks.
    """

    FS = "FS"  # finish-to-start
    SS = "SS"  # start-to-start
    FF = "FF"  # finish-to-finish
    SF = "SF"  # start-to-finish


class DependencyError(ValidationError):
    """Exception raised for errors in the Dependency class."""

    pass


class Dependency:
    """
    A precedence constraint between a predecessor and a successor task.

    The lag is added to the constrained date and may be negative (a lead).
    Synthetic dependencies are inserted by resource leveling and are never
    part of the caller's data.
    """

    __slots__ = ("predecessor_id", "successor_id", "type", "lag_minutes", "synthetic")

    def __init__(
        self,
        predecessor_id: Hashable,
        successor_id: Hashable,
        type: DependencyType = DependencyType.FS,
        lag_minutes: float = 0,
        synthetic: bool = False,
    ):
        if predecessor_id is None or successor_id is None:
            raise DependencyError("Dependency endpoints cannot be None")
        if predecessor_id == successor_id:
            raise DependencyError(f"Task {predecessor_id!r} cannot depend on itself")

        if isinstance(type, str):
            try:
                type = DependencyType(type.upper())
            except ValueError:
                raise DependencyError(f"Unknown dependency type {type!r}") from None
        elif not isinstance(type, DependencyType):
            raise DependencyError("Dependency type must be a DependencyType or string")

        if isinstance(lag_minutes, bool) or not isinstance(lag_minutes, (int, float)):
            raise DependencyError("Lag must be a number of minutes")

        self.predecessor_id = predecessor_id
        self.successor_id = successor_id
        self.type = type
        self.lag_minutes = lag_minutes
        self.synthetic = synthetic

    @classmethod
    def resource(cls, predecessor_id: Hashable, successor_id: Hashable) -> "Dependency":
        """Create a synthetic finish-to-start edge used for resource leveling."""
        return cls(predecessor_id, successor_id, DependencyType.FS, 0, synthetic=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predecessor_id": self.predecessor_id,
            "successor_id": self.successor_id,
            "type": self.type.value,
            "lag_minutes": self.lag_minutes,
            "synthetic": self.synthetic,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dependency":
        try:
            predecessor_id = data.get("predecessor_id", data.get("predecessorId"))
            successor_id = data.get("successor_id", data.get("successorId"))
            dep_type = data.get("type", data.get("depType", "FS"))
            lag = data.get("lag_minutes", data.get("lagMinutes", 0))
        except AttributeError:
            raise DependencyError("Dependency data must be a dictionary") from None
        return cls(predecessor_id, successor_id, dep_type, lag)

    def __eq__(self, other):
        if not isinstance(other, Dependency):
            return NotImplemented
        return (
            self.predecessor_id == other.predecessor_id
            and self.successor_id == other.successor_id
            and self.type is other.type
            and self.lag_minutes == other.lag_minutes
            and self.synthetic == other.synthetic
        )

    def __hash__(self):
        return hash((self.predecessor_id, self.successor_id, self.type, self.lag_minutes))

    def __repr__(self) -> str:
        flag = ", synthetic" if self.synthetic else ""
        return (
            f"Dependency({self.predecessor_id!r} -> {self.successor_id!r}, "
            f"{self.type.value}, lag={self.lag_minutes}{flag})"
        )

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional

from ccpm_engine.exceptions import ValidationError
from ccpm_engine.utils.rounding import round_half_up


class BufferType(Enum):
    PROJECT = "PROJECT"
    FEEDING = "FEEDING"


class BufferStatus(Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class BufferZone(Enum):
    """Fever chart zone derived from buffer consumption."""

    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


class BufferError(ValidationError):
    """Exception raised for errors in the Buffer class."""

    pass


def zone_for_ratio(
    ratio: float, yellow_threshold: float = 0.33, red_threshold: float = 0.66
) -> BufferZone:
    """Map a consumed/size ratio onto a zone. Thresholds are inclusive upper bounds."""
    if ratio <= yellow_threshold:
        return BufferZone.GREEN
    if ratio <= red_threshold:
        return BufferZone.YELLOW
    return BufferZone.RED


class Buffer:
    """
    Represents a buffer in a Critical Chain Project Management (CCPM) system.

    Buffers protect against uncertainty by providing time reserves. They can be:
    - Project Buffer: Protects the project completion date, sized from the critical chain
    - Feeding Buffer: Protects the critical chain from delays in a feeding chain

    The size is computed by the engine; consumption is tracked by whoever owns
    the buffer afterwards. The zone is derived from consumption, never stored.
    """

    def __init__(
        self,
        id: str,
        name: str,
        size_minutes: int,
        buffer_type: BufferType,
        project_id: Optional[Hashable] = None,
        merge_task_id: Optional[Hashable] = None,
        chain_task_ids: Optional[List[Hashable]] = None,
        consumed_minutes: int = 0,
        status: BufferStatus = BufferStatus.ACTIVE,
        created_at: Optional[datetime] = None,
    ):
        """
        Initialize a new Buffer.

        Args:
            id: Unique identifier for the buffer
            name: Name/description of the buffer
            size_minutes: Size of the buffer in minutes
            buffer_type: PROJECT or FEEDING
            project_id: Project the buffer belongs to
            merge_task_id: Critical chain task a feeding buffer protects
            chain_task_ids: Tasks of the chain the buffer was sized from
            consumed_minutes: Minutes of the buffer already consumed
            status: ACTIVE or ARCHIVED
            created_at: Creation timestamp, defaults to now

        Raises:
            BufferError: If any input validation fails
        """
        if id is None or str(id).strip() == "":
            raise BufferError("Buffer ID cannot be None or empty")
        self.id = id

        if not name or not isinstance(name, str):
            raise BufferError("Buffer name must be a non-empty string")
        self.name = name

        if isinstance(size_minutes, bool) or not isinstance(size_minutes, (int, float)):
            raise BufferError("Buffer size must be a number")
        if size_minutes < 0:
            raise BufferError("Buffer size cannot be negative")
        self.size_minutes = round_half_up(size_minutes)

        if isinstance(buffer_type, str):
            try:
                buffer_type = BufferType(buffer_type.upper())
            except ValueError:
                raise BufferError("Buffer type must be either 'PROJECT' or 'FEEDING'") from None
        if not isinstance(buffer_type, BufferType):
            raise BufferError("Buffer type must be either 'PROJECT' or 'FEEDING'")
        self.buffer_type = buffer_type

        # Feeding buffers must say where they merge
        if buffer_type is BufferType.FEEDING and (
            merge_task_id is None or str(merge_task_id).strip() == ""
        ):
            raise BufferError("Feeding buffers must specify merge_task_id")
        self.merge_task_id = merge_task_id

        self.project_id = project_id
        self.chain_task_ids = list(chain_task_ids) if chain_task_ids else []

        self.consumed_minutes = 0
        self.set_consumed(consumed_minutes)

        if isinstance(status, str):
            try:
                status = BufferStatus(status.upper())
            except ValueError:
                raise BufferError("Buffer status must be either 'ACTIVE' or 'ARCHIVED'") from None
        self.status = status

        self.created_at = created_at or datetime.now()
        self.updated_at = self.created_at

    def set_consumed(self, consumed_minutes: int) -> "Buffer":
        """
        Set the consumed amount directly.

        Raises:
            BufferError: If the amount is negative or not a number
        """
        if isinstance(consumed_minutes, bool) or not isinstance(consumed_minutes, (int, float)):
            raise BufferError("Consumed minutes must be a number")
        if consumed_minutes < 0:
            raise BufferError("Consumed minutes cannot be negative")
        self.consumed_minutes = round_half_up(consumed_minutes)
        self.updated_at = datetime.now()
        return self

    def consume(self, minutes: int) -> int:
        """
        Consume a portion of the buffer. Consumption may exceed the size.

        Returns:
            int: Total consumed minutes after this call

        Raises:
            BufferError: If minutes is negative
        """
        if minutes < 0:
            raise BufferError("Cannot consume negative amount of buffer")
        self.set_consumed(self.consumed_minutes + minutes)
        return self.consumed_minutes

    def archive(self) -> "Buffer":
        self.status = BufferStatus.ARCHIVED
        self.updated_at = datetime.now()
        return self

    @property
    def is_active(self) -> bool:
        return self.status is BufferStatus.ACTIVE

    @property
    def consumption_ratio(self) -> float:
        if self.size_minutes <= 0:
            return 0.0
        return self.consumed_minutes / self.size_minutes

    @property
    def consumption_percent(self) -> int:
        return round_half_up(self.consumption_ratio * 100)

    def get_zone(self, yellow_threshold: float = 0.33, red_threshold: float = 0.66) -> BufferZone:
        return zone_for_ratio(self.consumption_ratio, yellow_threshold, red_threshold)

    @property
    def zone(self) -> BufferZone:
        return self.get_zone()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "buffer_type": self.buffer_type.value,
            "size_minutes": self.size_minutes,
            "consumed_minutes": self.consumed_minutes,
            "merge_task_id": self.merge_task_id,
            "chain_task_ids": list(self.chain_task_ids),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"Buffer(id={self.id!r}, type={self.buffer_type.value}, size={self.size_minutes}, "
            f"consumed={self.consumed_minutes}, status={self.status.value})"
        )

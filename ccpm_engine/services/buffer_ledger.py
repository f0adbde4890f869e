import logging
import uuid
from typing import Any, Dict, Hashable, List, Optional, Union

from ccpm_engine.config import DEFAULT_CONFIG, EngineConfig
from ccpm_engine.domain.buffer import Buffer, BufferStatus, BufferType
from ccpm_engine.domain.results import CriticalChainAnalysis
from ccpm_engine.exceptions import BufferNotFoundError

logger = logging.getLogger(__name__)


class BufferLedger:
    """
    In-memory store of project and feeding buffers.

    Buffer sizes come from a critical chain analysis; consumption is updated
    by the caller as the project runs. Regenerating archives the project's
    active buffers and starts fresh ones with nothing consumed.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.buffers: Dict[str, Buffer] = {}  # Insertion order is creation order

    def create(
        self,
        project_id: Hashable,
        buffer_type: Union[BufferType, str],
        name: str,
        size_minutes: int,
        merge_task_id: Optional[Hashable] = None,
        chain_task_ids: Optional[List[Hashable]] = None,
    ) -> Buffer:
        buffer = Buffer(
            id=uuid.uuid4().hex,
            name=name,
            size_minutes=size_minutes,
            buffer_type=buffer_type,
            project_id=project_id,
            merge_task_id=merge_task_id,
            chain_task_ids=chain_task_ids,
        )
        self.buffers[buffer.id] = buffer
        logger.debug("Created %r for project %r", buffer, project_id)
        return buffer

    def get(self, buffer_id: str) -> Buffer:
        try:
            return self.buffers[buffer_id]
        except KeyError:
            raise BufferNotFoundError(f"Buffer '{buffer_id}' not found") from None

    def list(
        self,
        project_id: Hashable,
        buffer_type: Optional[Union[BufferType, str]] = None,
        status: Optional[Union[BufferStatus, str]] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Dict[str, Any]:
        """
        List a project's buffers in creation order.

        Returns:
            dict: ``items`` for the requested page and ``total`` matches
        """
        if isinstance(buffer_type, str):
            buffer_type = BufferType(buffer_type.upper())
        if isinstance(status, str):
            status = BufferStatus(status.upper())

        matches = [
            b
            for b in self.buffers.values()
            if b.project_id == project_id
            and (buffer_type is None or b.buffer_type is buffer_type)
            and (status is None or b.status is status)
        ]
        return {
            "items": matches[offset : offset + limit],
            "total": len(matches),
            "limit": limit,
            "offset": offset,
        }

    def update(
        self,
        buffer_id: str,
        name: Optional[str] = None,
        consumed_minutes: Optional[int] = None,
        status: Optional[Union[BufferStatus, str]] = None,
    ) -> Buffer:
        buffer = self.get(buffer_id)
        if name is not None:
            buffer.name = name
        if consumed_minutes is not None:
            buffer.set_consumed(consumed_minutes)
        if status is not None:
            buffer.status = BufferStatus(status.upper()) if isinstance(status, str) else status
        return buffer

    def delete(self, buffer_id: str) -> Buffer:
        buffer = self.get(buffer_id)
        del self.buffers[buffer_id]
        return buffer

    def regenerate(self, project_id: Hashable, analysis: CriticalChainAnalysis) -> Dict[str, Any]:
        """
        Replace the project's active buffers with ones sized by ``analysis``.

        Returns:
            dict: ``project_buffer_id`` and ``feeding_buffer_ids``
        """
        archived = 0
        for buffer in self.buffers.values():
            if buffer.project_id == project_id and buffer.is_active:
                buffer.archive()
                archived += 1

        project_buffer = self.create(
            project_id,
            BufferType.PROJECT,
            "Project Buffer",
            analysis.project_buffer_minutes,
            chain_task_ids=analysis.critical_task_ids,
        )

        chains_by_merge = {chain.merge_task_id: chain for chain in analysis.feeding_chains}
        feeding_buffer_ids = []
        for fb in analysis.feeding_buffers:
            chain = chains_by_merge.get(fb.merge_task_id)
            feeding_buffer = self.create(
                project_id,
                BufferType.FEEDING,
                f"Feeding Buffer -> {fb.merge_task_id}",
                fb.buffer_minutes,
                merge_task_id=fb.merge_task_id,
                chain_task_ids=chain.task_ids if chain else [],
            )
            feeding_buffer_ids.append(feeding_buffer.id)

        logger.info(
            "Regenerated buffers for project %r: archived %d, created %d",
            project_id,
            archived,
            1 + len(feeding_buffer_ids),
        )
        return {
            "project_buffer_id": project_buffer.id,
            "feeding_buffer_ids": feeding_buffer_ids,
        }

    def status(self, project_id: Hashable) -> List[Dict[str, Any]]:
        """Active buffers of a project with their consumption percentage and zone"""
        report = []
        for buffer in self.buffers.values():
            if buffer.project_id != project_id or not buffer.is_active:
                continue
            entry = buffer.to_dict()
            entry["consumption_percent"] = buffer.consumption_percent
            entry["zone"] = buffer.get_zone(
                self.config.yellow_zone_threshold, self.config.red_zone_threshold
            ).value
            report.append(entry)
        return report

from typing import Hashable, Mapping

from ccpm_engine.domain.chain import Chain, ChainTask
from ccpm_engine.domain.schedule import Schedule
from ccpm_engine.domain.task import Task


def identify_critical_chain(tasks: Mapping[Hashable, Task], schedule: Schedule) -> Chain:
    """
    Identify the critical chain from a leveled schedule.

    Args:
        tasks: Dictionary of Task objects keyed by ID
        schedule: Leveled schedule of those tasks

    Returns:
        Chain: Every zero-float task, ordered by early start. Ties keep the
        schedule's task order.
    """
    critical_ids = [task_id for task_id, entry in schedule.items() if entry.is_critical]
    critical_ids.sort(key=lambda task_id: schedule[task_id].early_start)

    critical_chain = Chain("critical", "Critical Chain", type="critical")
    for task_id in critical_ids:
        critical_chain.add_task(ChainTask.from_task(tasks[task_id], schedule[task_id]))

    return critical_chain

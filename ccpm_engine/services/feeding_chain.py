from collections import deque
from typing import Hashable, List, Mapping

import networkx as nx

from ccpm_engine.domain.chain import Chain, ChainTask
from ccpm_engine.domain.schedule import Schedule
from ccpm_engine.domain.task import Task


def identify_feeding_chains(
    tasks: Mapping[Hashable, Task],
    critical_chain: Chain,
    task_graph: nx.DiGraph,
    schedule: Schedule,
) -> List[Chain]:
    """
    Identify feeding chains - non-critical branches that merge into the critical chain.

    For each critical task, in task order, every non-critical direct
    predecessor that has not been claimed yet starts a breadth-first walk
    backwards through non-critical predecessors. A task is claimed by the
    first walk that reaches it, so a branch feeding several merge points
    belongs to one feeding chain only.

    Args:
        tasks: Dictionary of Task objects keyed by ID
        critical_chain: The critical chain
        task_graph: Augmented dependency graph (including resource edges)
        schedule: Leveled schedule

    Returns:
        list: Feeding Chain objects, tasks sorted by early start
    """
    critical_set = set(critical_chain.task_ids)
    visited = set()
    feeding_chains = []

    # Merge points are visited in task order, not chain order
    merge_points = [task_id for task_id in schedule if task_id in critical_set]
    for merge_task_id in merge_points:
        for pred_id in task_graph.predecessors(merge_task_id):
            if pred_id in critical_set or pred_id in visited:
                continue

            # Trace back through non-critical predecessors
            branch = []
            queue = deque([pred_id])
            while queue:
                task_id = queue.popleft()
                if task_id in visited or task_id in critical_set:
                    continue
                visited.add(task_id)
                branch.append(task_id)

                for upstream_id in task_graph.predecessors(task_id):
                    if upstream_id not in visited and upstream_id not in critical_set:
                        queue.append(upstream_id)

            if not branch:
                continue

            branch.sort(key=lambda task_id: schedule[task_id].early_start)

            chain_number = len(feeding_chains) + 1
            chain = Chain(f"feeding_{chain_number}", f"Feeding Chain {chain_number}", type="feeding")
            chain.set_connection(merge_task_id)
            for task_id in branch:
                chain.add_task(ChainTask.from_task(tasks[task_id], schedule[task_id]))
            feeding_chains.append(chain)

    return feeding_chains

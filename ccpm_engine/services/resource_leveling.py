import logging
from dataclasses import dataclass
from typing import Dict, Hashable, List

import networkx as nx

from ccpm_engine.domain.dependency import Dependency
from ccpm_engine.domain.schedule import Schedule
from ccpm_engine.utils.graph import (
    add_dependency_edge,
    compute_schedule,
    copy_dependency_graph,
    graph_dependencies,
    tasks_of,
)

logger = logging.getLogger(__name__)


@dataclass
class LevelingResult:
    """
    Two-stage leveling pipeline output.

    ``baseline`` is scheduled on the caller's edges only, ``graph`` holds the
    caller's edges plus ``synthetic_edges``, and ``schedule`` is the leveled
    schedule computed on ``graph``. When no synthetic edge was needed the
    leveled schedule is the baseline.
    """

    baseline: Schedule
    graph: nx.DiGraph
    synthetic_edges: List[Dependency]
    schedule: Schedule

    @property
    def was_leveled(self) -> bool:
        return bool(self.synthetic_edges)


def group_by_assignee(graph: nx.DiGraph) -> Dict[Hashable, List[Hashable]]:
    """
    Map each assignee to the tasks they are assigned to.

    A task with several assignees appears in each of their groups. Groups
    and their members keep task order.
    """
    groups: Dict[Hashable, List[Hashable]] = {}
    for task_id, task in tasks_of(graph).items():
        for assignee_id in task.assignee_ids:
            groups.setdefault(assignee_id, []).append(task_id)
    return groups


def augment_with_resource_edges(graph: nx.DiGraph, schedule: Schedule) -> nx.DiGraph:
    """
    Serialize overlapping work of the same assignee.

    Within every assignee group, tasks are sorted by early start and each
    adjacent pair (a, b) with ``early_finish(a) > early_start(b)`` gets a
    synthetic finish-to-start edge a -> b, unless the two tasks are already
    linked in either direction. This is a single pass over the given
    schedule: overlaps between non-adjacent tasks, or overlaps created by the
    new edges, are not revisited.

    Args:
        graph: Dependency graph the schedule was computed on (left untouched)
        schedule: Schedule used to detect overlaps

    Returns:
        nx.DiGraph: A copy of the graph with the synthetic edges added. Each
        node keeps its incoming edges in insertion order, synthetic ones last.
    """
    augmented = copy_dependency_graph(graph)

    for assignee_id, task_ids in group_by_assignee(graph).items():
        if len(task_ids) < 2:
            continue

        ordered = sorted(task_ids, key=lambda task_id: schedule[task_id].early_start)
        for a, b in zip(ordered, ordered[1:]):
            if schedule[a].early_finish <= schedule[b].early_start:
                continue
            if augmented.has_edge(a, b) or augmented.has_edge(b, a):
                continue
            # b can already reach a through zero-gap SS/FF chains or leads
            if nx.has_path(augmented, b, a):
                logger.warning(
                    "Not serializing %r before %r for %r: it would close a cycle", a, b, assignee_id
                )
                continue

            add_dependency_edge(augmented, Dependency.resource(a, b))
            logger.debug(
                "Resource conflict for %r: %r overlaps %r, adding synthetic FS edge",
                assignee_id,
                a,
                b,
            )

    return augmented


def level_resources(graph: nx.DiGraph) -> LevelingResult:
    """
    Apply resource leveling: baseline schedule, augmented graph, leveled schedule.

    The leveled schedule is recomputed at most once, only when synthetic
    edges were added.
    """
    baseline = compute_schedule(graph)
    augmented = augment_with_resource_edges(graph, baseline)

    synthetic_edges = graph_dependencies(augmented, synthetic=True)

    if synthetic_edges:
        schedule = compute_schedule(augmented)
        logger.info(
            "Resource leveling added %d synthetic edge(s); project end %s -> %s",
            len(synthetic_edges),
            baseline.project_end,
            schedule.project_end,
        )
    else:
        schedule = baseline

    return LevelingResult(
        baseline=baseline,
        graph=augmented,
        synthetic_edges=synthetic_edges,
        schedule=schedule,
    )

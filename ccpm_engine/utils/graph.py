import logging
from collections import deque
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

import networkx as nx

from ccpm_engine.domain.dependency import Dependency, DependencyType
from ccpm_engine.domain.schedule import Schedule, ScheduleEntry
from ccpm_engine.domain.task import Task
from ccpm_engine.exceptions import CyclicGraphError

logger = logging.getLogger(__name__)


def build_dependency_graph(tasks, dependencies: Iterable[Dependency]) -> nx.DiGraph:
    """
    Build a directed graph representing task dependencies.

    Nodes are added in task order and carry the Task under the ``task``
    attribute. Edges carry ``type``, ``lag`` and ``synthetic`` attributes.
    Dependencies that reference unknown tasks are skipped.

    Args:
        tasks: Dictionary of Task objects keyed by ID, or an iterable of Tasks
        dependencies: Dependency edges between the tasks

    Returns:
        nx.DiGraph: The dependency graph

    Raises:
        CyclicGraphError: If the dependencies contain a cycle
    """
    if isinstance(tasks, Mapping):
        tasks = tasks.values()

    G = nx.DiGraph()

    # Add task nodes
    for task in tasks:
        G.add_node(task.id, task=task)

    # Add task dependencies (edges)
    for dep in dependencies:
        if dep.predecessor_id not in G or dep.successor_id not in G:
            logger.debug("Skipping %r: endpoint is not a project task", dep)
            continue
        add_dependency_edge(G, dep)

    if not nx.is_directed_acyclic_graph(G):
        raise CyclicGraphError("Task dependencies contain cycles!")

    return G


def add_dependency_edge(graph: nx.DiGraph, dep: Dependency) -> None:
    graph.add_edge(
        dep.predecessor_id,
        dep.successor_id,
        type=dep.type,
        lag=dep.lag_minutes,
        synthetic=dep.synthetic,
    )


def copy_dependency_graph(graph: nx.DiGraph) -> nx.DiGraph:
    """
    Copy a dependency graph, keeping every node's incoming edges in the order
    they were added.

    ``DiGraph.copy`` re-adds edges grouped by predecessor, so
    ``predecessors()`` on the copy would follow node order instead.
    """
    G = nx.DiGraph()
    G.add_nodes_from(graph.nodes(data=True))
    for task_id in graph.nodes:
        for pred_id, _, data in graph.in_edges(task_id, data=True):
            G.add_edge(pred_id, task_id, **data)
    return G


def graph_dependencies(graph: nx.DiGraph, synthetic: Optional[bool] = None) -> List[Dependency]:
    """Return the graph's edges as Dependency objects, optionally filtered by origin."""
    deps = []
    for u, v, data in graph.edges(data=True):
        if synthetic is not None and data["synthetic"] != synthetic:
            continue
        deps.append(Dependency(u, v, data["type"], data["lag"], synthetic=data["synthetic"]))
    return deps


def topological_sort(
    task_ids: Iterable[Hashable], edges: Iterable[Tuple[Hashable, Hashable]]
) -> List[Hashable]:
    """
    Order tasks so every edge points forward, using Kahn's algorithm.

    Only edges whose endpoints are both in ``task_ids`` count. Zero in-degree
    tasks are released in input order, first in first out.

    Raises:
        CyclicGraphError: If the edges contain a cycle among the tasks
    """
    in_degree: Dict[Hashable, int] = {task_id: 0 for task_id in task_ids}
    successors: Dict[Hashable, List[Hashable]] = {task_id: [] for task_id in in_degree}

    for pred_id, succ_id in edges:
        if pred_id in in_degree and succ_id in in_degree:
            successors[pred_id].append(succ_id)
            in_degree[succ_id] += 1

    queue = deque(task_id for task_id, degree in in_degree.items() if degree == 0)
    order = []
    while queue:
        current = queue.popleft()
        order.append(current)
        for succ_id in successors[current]:
            in_degree[succ_id] -= 1
            if in_degree[succ_id] == 0:
                queue.append(succ_id)

    if len(order) != len(in_degree):
        stuck = [task_id for task_id, degree in in_degree.items() if degree > 0]
        raise CyclicGraphError(f"Task dependencies contain cycles involving {stuck}")

    return order


def constrained_start(dep_type: DependencyType, pred_start, pred_finish, lag, duration):
    """
    Earliest start a single dependency allows for its successor.

    Plain arithmetic, so it works on scalars and on numpy arrays of trials.
    """
    if dep_type is DependencyType.FS:
        return pred_finish + lag
    if dep_type is DependencyType.SS:
        return pred_start + lag
    if dep_type is DependencyType.FF:
        # EF >= pred.EF + lag, so ES >= pred.EF + lag - duration
        return pred_finish + lag - duration
    # SF: EF >= pred.ES + lag, so ES >= pred.ES + lag - duration
    return pred_start + lag - duration


def task_durations(graph: nx.DiGraph) -> Dict[Hashable, float]:
    """Planned (optimistic) duration of every task node."""
    return {task_id: data["task"].duration for task_id, data in graph.nodes(data=True)}


def forward_pass(
    graph: nx.DiGraph,
    durations: Mapping[Hashable, float],
    order: Optional[List[Hashable]] = None,
) -> Tuple[Dict[Hashable, float], Dict[Hashable, float]]:
    """
    Calculate early start and early finish times.

    Args:
        graph: Dependency graph
        durations: Duration of each task
        order: Precomputed topological order, computed when omitted

    Returns:
        (early_start, early_finish) dictionaries keyed by task ID
    """
    if order is None:
        order = topological_sort(graph.nodes, graph.edges)

    early_start: Dict[Hashable, float] = {}
    early_finish: Dict[Hashable, float] = {}
    for task_id in order:
        duration = durations[task_id]
        es = 0
        for pred_id, _, data in graph.in_edges(task_id, data=True):
            es = max(
                es,
                constrained_start(
                    data["type"], early_start[pred_id], early_finish[pred_id], data["lag"], duration
                ),
            )
        early_start[task_id] = es
        early_finish[task_id] = es + duration

    return early_start, early_finish


def backward_pass(
    graph: nx.DiGraph,
    durations: Mapping[Hashable, float],
    early_finish: Mapping[Hashable, float],
    order: List[Hashable],
) -> Tuple[Dict[Hashable, float], Dict[Hashable, float]]:
    """
    Calculate late start and late finish times.

    Every task starts from the project end and is pulled earlier by each of
    its outgoing dependencies, visiting tasks in reverse topological order.

    Returns:
        (late_start, late_finish) dictionaries keyed by task ID
    """
    project_end = max(early_finish.values(), default=0)

    late_start = {task_id: project_end - durations[task_id] for task_id in order}
    late_finish = {task_id: project_end for task_id in order}

    for task_id in reversed(order):
        ls = late_start[task_id]
        lf = late_finish[task_id]
        for _, succ_id, data in graph.out_edges(task_id, data=True):
            dep_type, lag = data["type"], data["lag"]
            if dep_type is DependencyType.FS:
                lf = min(lf, late_start[succ_id] - lag)
            elif dep_type is DependencyType.SS:
                ls = min(ls, late_start[succ_id] - lag)
            elif dep_type is DependencyType.FF:
                lf = min(lf, late_finish[succ_id] - lag)
            else:
                ls = min(ls, late_finish[succ_id] - lag)

        late_start[task_id] = min(ls, lf - durations[task_id])
        late_finish[task_id] = lf

    return late_start, late_finish


def compute_schedule(
    graph: nx.DiGraph,
    durations: Optional[Mapping[Hashable, float]] = None,
    order: Optional[List[Hashable]] = None,
) -> Schedule:
    """
    Run the forward and backward passes and return a new Schedule.

    Nothing on the graph or its tasks is modified, so the same graph can be
    scheduled any number of times.
    """
    if durations is None:
        durations = task_durations(graph)
    if order is None:
        order = topological_sort(graph.nodes, graph.edges)

    early_start, early_finish = forward_pass(graph, durations, order)
    late_start, late_finish = backward_pass(graph, durations, early_finish, order)

    return Schedule(
        (
            task_id,
            ScheduleEntry(
                task_id=task_id,
                duration=durations[task_id],
                early_start=early_start[task_id],
                early_finish=early_finish[task_id],
                late_start=late_start[task_id],
                late_finish=late_finish[task_id],
            ),
        )
        for task_id in graph.nodes
    )


def tasks_of(graph: nx.DiGraph) -> Dict[Hashable, Task]:
    """Task objects of the graph in node order."""
    return {task_id: data["task"] for task_id, data in graph.nodes(data=True)}

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union

import networkx as nx

from ccpm_engine.config import DEFAULT_CONFIG, EngineConfig
from ccpm_engine.domain.dependency import Dependency, DependencyType
from ccpm_engine.domain.results import CriticalChainAnalysis, FeedingBuffer, ForecastResult
from ccpm_engine.domain.task import Task
from ccpm_engine.exceptions import InsufficientDataError, NoDependenciesError
from ccpm_engine.services.buffer_strategies import BufferCalculationStrategy, RootSumSquareMethod
from ccpm_engine.services.critical_chain import identify_critical_chain
from ccpm_engine.services.feeding_chain import identify_feeding_chains
from ccpm_engine.services.monte_carlo import MonteCarloForecaster, validate_simulation_count
from ccpm_engine.services.resource_leveling import LevelingResult, level_resources
from ccpm_engine.utils.graph import build_dependency_graph

logger = logging.getLogger(__name__)


class CCPMScheduler:
    """
    Entry point of the engine: collects a task/dependency snapshot and runs
    the critical chain analysis and the Monte Carlo forecast on it.

    Every call recomputes from the snapshot; results are returned, never
    stored on the tasks.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        project_buffer_strategy: Optional[BufferCalculationStrategy] = None,
        feeding_buffer_strategy: Optional[BufferCalculationStrategy] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.tasks: Dict[Any, Task] = {}  # Dictionary of Task objects
        self.dependencies: List[Dependency] = []

        self.project_buffer_strategy = project_buffer_strategy or RootSumSquareMethod()
        self.feeding_buffer_strategy = feeding_buffer_strategy or RootSumSquareMethod()

        # Optional project start for forecast dates
        self.start_date: Optional[Union[date, datetime]] = None

    def add_task(self, task: Task) -> "CCPMScheduler":
        """Add a task to the scheduler"""
        self.tasks[task.id] = task
        return self

    def add_tasks(self, tasks: Iterable[Task]) -> "CCPMScheduler":
        for task in tasks:
            self.add_task(task)
        return self

    def add_dependency(
        self,
        predecessor_id,
        successor_id=None,
        type: Union[DependencyType, str] = DependencyType.FS,
        lag_minutes: float = 0,
    ) -> "CCPMScheduler":
        """Add a dependency, given either as a Dependency or as its fields"""
        if isinstance(predecessor_id, Dependency):
            dep = predecessor_id
        else:
            dep = Dependency(predecessor_id, successor_id, type, lag_minutes)
        self.dependencies.append(dep)
        return self

    def add_dependencies(self, dependencies: Iterable[Dependency]) -> "CCPMScheduler":
        for dep in dependencies:
            self.add_dependency(dep)
        return self

    def set_start_date(self, start_date: Optional[Union[date, datetime]]) -> "CCPMScheduler":
        """Set the project start used to convert forecast durations into dates"""
        self.start_date = start_date
        return self

    @classmethod
    def from_snapshot(
        cls, snapshot: Dict[str, Any], config: Optional[EngineConfig] = None
    ) -> "CCPMScheduler":
        """
        Create a scheduler from ``{"tasks": [...], "dependencies": [...]}``.

        An optional ``start`` entry (ISO date or datetime string) sets the
        project start.
        """
        scheduler = cls(config=config)
        factor = scheduler.config.default_pessimistic_factor
        scheduler.add_tasks(
            Task.from_dict(data, pessimistic_factor=factor) for data in snapshot.get("tasks", [])
        )
        scheduler.add_dependencies(
            Dependency.from_dict(data) for data in snapshot.get("dependencies", [])
        )
        if snapshot.get("start"):
            scheduler.set_start_date(datetime.fromisoformat(snapshot["start"]))
        return scheduler

    def build_dependency_graph(self) -> nx.DiGraph:
        """
        Build the project graph and check there is something to schedule.

        Raises:
            InsufficientDataError: If there are no tasks
            NoDependenciesError: If no dependency links two project tasks
        """
        if not self.tasks:
            raise InsufficientDataError("No tasks found in this project")

        graph = build_dependency_graph(self.tasks, self.dependencies)
        if graph.number_of_edges() == 0:
            raise NoDependenciesError("No dependencies found; cannot compute critical chain")
        return graph

    def level(self) -> LevelingResult:
        """Run resource leveling on a freshly built dependency graph"""
        return level_resources(self.build_dependency_graph())

    def analyze(self, leveling: Optional[LevelingResult] = None) -> CriticalChainAnalysis:
        """
        Compute the critical chain, feeding chains and buffers.

        Args:
            leveling: Reuse an existing leveling result instead of recomputing it

        Returns:
            CriticalChainAnalysis
        """
        if leveling is None:
            leveling = self.level()
        schedule = leveling.schedule

        critical_chain = identify_critical_chain(self.tasks, schedule)
        feeding_chains = identify_feeding_chains(
            self.tasks, critical_chain, leveling.graph, schedule
        )

        project_buffer_minutes = self.project_buffer_strategy.calculate_buffer_size(
            critical_chain.tasks
        )
        feeding_buffers = [
            FeedingBuffer(
                merge_task_id=chain.merge_task_id,
                buffer_minutes=self.feeding_buffer_strategy.calculate_buffer_size(chain.tasks),
            )
            for chain in feeding_chains
        ]

        total = critical_chain.early_finish + project_buffer_minutes

        logger.info(
            "Critical chain of %d task(s), %d feeding chain(s), project buffer %d, total %s minutes",
            len(critical_chain),
            len(feeding_chains),
            project_buffer_minutes,
            total,
        )

        return CriticalChainAnalysis(
            critical_chain=critical_chain,
            feeding_chains=feeding_chains,
            project_buffer_minutes=project_buffer_minutes,
            feeding_buffers=feeding_buffers,
            total_project_duration_minutes=total,
            leveling=leveling,
        )

    def forecast(
        self,
        simulations: Optional[int] = None,
        start: Optional[Union[date, datetime]] = None,
        seed=None,
    ) -> ForecastResult:
        """
        Forecast completion with a Monte Carlo simulation.

        Args:
            simulations: Number of trials, defaults to config.default_simulations
            start: Project start, defaults to the scheduler's start date
            seed: Seed for reproducible forecasts

        Raises:
            InvalidSimulationCountError: If simulations is out of range
            InsufficientDataError: If there are no tasks
            NoDependenciesError: If no dependency links two project tasks
        """
        if simulations is None:
            simulations = self.config.default_simulations
        simulations = validate_simulation_count(simulations, self.config)

        # One leveling pass shared by the deterministic analysis and the trials
        leveling = self.level()
        analysis = self.analyze(leveling)

        forecaster = MonteCarloForecaster(leveling.graph, config=self.config, seed=seed)
        return forecaster.forecast(
            simulations,
            deterministic_duration=analysis.total_project_duration_minutes,
            start=start if start is not None else self.start_date,
        )

"""Monte Carlo completion forecast over the resource-leveled dependency graph."""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Hashable, List, Optional, Union

import networkx as nx
import numpy as np

from ccpm_engine.config import DEFAULT_CONFIG, EngineConfig
from ccpm_engine.domain.results import (
    ForecastResult,
    HistogramBin,
    PercentileForecast,
    percentile_key,
)
from ccpm_engine.exceptions import InvalidSimulationCountError
from ccpm_engine.utils.graph import constrained_start, tasks_of, topological_sort
from ccpm_engine.utils.rounding import round_half_up

logger = logging.getLogger(__name__)


def sample_triangular(optimistic, pessimistic, u):
    """
    Sample durations from a right-skewed triangular distribution.

    The mode equals the optimistic estimate, so the CDF breakpoint is 0 and
    the inverse CDF reduces to ``max - sqrt((1 - u) * (max - min) * (max - mode))``.
    Tasks with equal estimates always return the optimistic value.

    Args:
        optimistic: Lower bound (and mode), scalar or array
        pessimistic: Upper bound, scalar or array broadcastable with optimistic
        u: Uniform draw(s) in [0, 1)

    Returns:
        float for scalar inputs, otherwise an ndarray of the broadcast shape
    """
    low = np.asarray(optimistic, dtype=float)
    high = np.asarray(pessimistic, dtype=float)
    u = np.asarray(u, dtype=float)

    spread = high - low
    sampled = high - np.sqrt((1.0 - u) * spread * spread)
    result = np.where(spread > 0, sampled, low)
    return result.item() if result.ndim == 0 else result


def validate_simulation_count(simulations, config: EngineConfig = DEFAULT_CONFIG) -> int:
    """
    Check a requested trial count against the configured bounds.

    Raises:
        InvalidSimulationCountError: If the count is not an integer in range
    """
    if isinstance(simulations, bool) or not isinstance(simulations, (int, np.integer)):
        raise InvalidSimulationCountError("Simulation count must be an integer")
    if not config.min_simulations <= simulations <= config.max_simulations:
        raise InvalidSimulationCountError(
            f"Simulation count must be between {config.min_simulations} "
            f"and {config.max_simulations}, got {simulations}"
        )
    return int(simulations)


def build_histogram(sorted_durations: np.ndarray, bins: int = 10) -> List[HistogramBin]:
    """
    Bucket completion times into equal-width bins.

    The width is ``max(ceil((max - min) / bins), 1)`` minutes starting at the
    minimum. The last bin is reported as ending at ``max + 1``. For counting,
    the last computed edge is only moved to ``max + 1`` when it does not lie
    above the maximum, so the edges stay increasing and every trial is
    counted exactly once.
    """
    lo = float(sorted_durations[0])
    hi = float(sorted_durations[-1])
    width = max(math.ceil((hi - lo) / bins), 1)

    edges = lo + width * np.arange(bins + 1, dtype=float)
    if edges[-1] <= hi:
        edges[-1] = hi + 1

    counts, _ = np.histogram(sorted_durations, bins=edges)

    bounds = [round_half_up(edge) for edge in edges]
    bounds[-1] = round_half_up(hi + 1)
    return [
        HistogramBin(
            min_minutes=bounds[b],
            max_minutes=bounds[b + 1],
            count=int(counts[b]),
        )
        for b in range(bins)
    ]


def percentile_duration(sorted_durations: np.ndarray, p: float) -> int:
    """Nearest-rank style percentile: index ``min(floor(N * p), N - 1)``, halves rounded up."""
    n = len(sorted_durations)
    idx = min(math.floor(n * p), n - 1)
    return round_half_up(sorted_durations[idx])


def _as_datetime(start: Union[date, datetime]) -> datetime:
    if isinstance(start, datetime):
        return start
    return datetime(start.year, start.month, start.day)


def finish_date(start: Optional[Union[date, datetime]], duration_minutes) -> Optional[date]:
    """Calendar date reached ``duration_minutes`` after ``start``, or None without a start."""
    if start is None:
        return None
    return (_as_datetime(start) + timedelta(minutes=float(duration_minutes))).date()


class MonteCarloForecaster:
    """
    Run stochastic forward passes over a fixed dependency graph.

    The graph (normally the resource-augmented graph) and its topological
    order are computed once and shared by every trial; only the sampled task
    durations change. Uniform draws come from a single seedable numpy
    Generator laid out as a trials x tasks matrix, row i belonging to trial
    i, so a given seed reproduces the same completion times regardless of
    how the trials are batched.
    """

    def __init__(
        self,
        graph: nx.DiGraph,
        config: Optional[EngineConfig] = None,
        seed=None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.graph = graph
        self.config = config or DEFAULT_CONFIG
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        tasks = tasks_of(graph)
        self.task_ids: List[Hashable] = list(tasks)
        index = {task_id: i for i, task_id in enumerate(self.task_ids)}

        self.optimistic = np.array([t.optimistic_minutes for t in tasks.values()], dtype=float)
        self.pessimistic = np.array([t.pessimistic_minutes for t in tasks.values()], dtype=float)

        # Topological order and incoming edges, resolved to column indices once
        self.order = topological_sort(graph.nodes, graph.edges)
        self._plan = [
            (
                index[task_id],
                [
                    (index[pred_id], data["type"], data["lag"])
                    for pred_id, _, data in graph.in_edges(task_id, data=True)
                ],
            )
            for task_id in self.order
        ]

    def sample_durations(self, trials: int) -> np.ndarray:
        """Draw a (trials x tasks) matrix of task durations."""
        u = self.rng.random((trials, len(self.task_ids)))
        return sample_triangular(self.optimistic, self.pessimistic, u)

    def completion_times(self, durations: np.ndarray) -> np.ndarray:
        """
        Forward pass for each row of ``durations``.

        Returns:
            ndarray: Project completion time (max early finish) per trial
        """
        early_start = np.zeros_like(durations)
        early_finish = np.zeros_like(durations)

        for col, preds in self._plan:
            duration = durations[:, col]
            start = np.zeros(durations.shape[0])
            for pred_col, dep_type, lag in preds:
                start = np.maximum(
                    start,
                    constrained_start(
                        dep_type, early_start[:, pred_col], early_finish[:, pred_col], lag, duration
                    ),
                )
            early_start[:, col] = start
            early_finish[:, col] = start + duration

        return early_finish.max(axis=1)

    def simulate(self, simulations: int) -> np.ndarray:
        """Run the trials and return their completion times sorted ascending."""
        batch_size = self.config.trial_batch_size
        results = []
        remaining = simulations
        while remaining > 0:
            trials = min(batch_size, remaining)
            results.append(self.completion_times(self.sample_durations(trials)))
            remaining -= trials

        return np.sort(np.concatenate(results))

    def forecast(
        self,
        simulations: Optional[int] = None,
        deterministic_duration: float = 0,
        start: Optional[Union[date, datetime]] = None,
    ) -> ForecastResult:
        """
        Run the simulation and summarize it.

        Args:
            simulations: Number of trials, defaults to config.default_simulations
            deterministic_duration: Critical chain duration plus project buffer,
                reported alongside the simulated percentiles
            start: Optional project start used to turn durations into dates

        Raises:
            InvalidSimulationCountError: If simulations is out of range
        """
        if simulations is None:
            simulations = self.config.default_simulations
        simulations = validate_simulation_count(simulations, self.config)

        durations = self.simulate(simulations)

        percentiles = {}
        for p in self.config.percentiles:
            minutes = percentile_duration(durations, p)
            percentiles[percentile_key(p)] = PercentileForecast(minutes, finish_date(start, minutes))

        logger.info(
            "Forecast of %d trials: min %.1f, max %.1f, %s",
            simulations,
            durations[0],
            durations[-1],
            ", ".join(f"{key}={pf.duration_minutes}" for key, pf in percentiles.items()),
        )

        return ForecastResult(
            start_date=_as_datetime(start).date() if start is not None else None,
            deterministic_duration_minutes=deterministic_duration,
            deterministic_finish_date=finish_date(start, deterministic_duration),
            simulations=simulations,
            percentiles=percentiles,
            histogram=build_histogram(durations, self.config.histogram_bins),
            durations=durations,
        )

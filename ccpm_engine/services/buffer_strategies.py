from abc import ABC, abstractmethod
from math import sqrt

from ccpm_engine.utils.rounding import round_half_up


class BufferCalculationStrategy(ABC):
    @abstractmethod
    def calculate_buffer_size(self, tasks):
        """
        Calculate a buffer size in whole minutes for a chain.

        ``tasks`` is a sequence of objects with ``optimistic_minutes`` and
        ``pessimistic_minutes`` attributes (Task or ChainTask).
        """
        pass

    def get_name(self):
        """Get the name of this strategy"""
        return self.__class__.__name__


# Root-Sum-Square Method (RSS)
class RootSumSquareMethod(BufferCalculationStrategy):
    def calculate_buffer_size(self, tasks):
        """
        Half the square root of the sum of squared estimate spreads.
        Buffer = round_half_up(sqrt(sum((pessimistic - optimistic)²)) / 2)

        Task uncertainties are treated as independent, so they add up as a
        Euclidean norm rather than a plain sum. Halves round up.
        """
        squared_diffs = sum(
            (task.pessimistic_minutes - task.optimistic_minutes) ** 2 for task in tasks
        )
        return round_half_up(sqrt(squared_diffs) / 2)

    def get_name(self):
        return "Root Sum Square Method (RSS)"


def calculate_buffer_rss(tasks):
    """Root-Sum-Square buffer size of a chain, in whole minutes."""
    return RootSumSquareMethod().calculate_buffer_size(tasks)

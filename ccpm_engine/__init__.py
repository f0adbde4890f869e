"""
CCPM Engine
===========

Critical chain scheduling engine: typed-dependency critical path passes,
single-pass resource leveling, root-sum-square buffer sizing and Monte Carlo
completion forecasts, computed from an immutable task/dependency snapshot.

Main entry points:
- CCPMScheduler: analyze() and forecast() for a project snapshot
- BufferLedger: regenerate and track project/feeding buffers
"""

from ccpm_engine.config import EngineConfig
from ccpm_engine.domain.buffer import Buffer, BufferStatus, BufferType, BufferZone
from ccpm_engine.domain.chain import Chain, ChainTask
from ccpm_engine.domain.dependency import Dependency, DependencyType
from ccpm_engine.domain.results import CriticalChainAnalysis, ForecastResult
from ccpm_engine.domain.schedule import Schedule, ScheduleEntry
from ccpm_engine.domain.task import Task
from ccpm_engine.exceptions import (
    BufferNotFoundError,
    CCPMError,
    CyclicGraphError,
    InsufficientDataError,
    InvalidSimulationCountError,
    NoDependenciesError,
    ValidationError,
)
from ccpm_engine.services.buffer_ledger import BufferLedger
from ccpm_engine.services.scheduler import CCPMScheduler

__version__ = "0.2.0"

__all__ = [
    "Buffer",
    "BufferLedger",
    "BufferNotFoundError",
    "BufferStatus",
    "BufferType",
    "BufferZone",
    "CCPMError",
    "CCPMScheduler",
    "Chain",
    "ChainTask",
    "CriticalChainAnalysis",
    "CyclicGraphError",
    "Dependency",
    "DependencyType",
    "EngineConfig",
    "ForecastResult",
    "InsufficientDataError",
    "InvalidSimulationCountError",
    "NoDependenciesError",
    "Schedule",
    "ScheduleEntry",
    "Task",
    "ValidationError",
]

"""
Core components for evofunc - LLM-driven evolution of a single Python function.
"""

from .sampling import (
    SamplingError,
    softmax,
    reduce_score,
    get_score_reducer,
    get_random_weighted_index,
    ProgramSamplingStrategy,
    UniformProgramSampling,
    LatestProgramSampling,
    create_program_sampling
)

from .cluster import Cluster

from .island import (
    Island,
    IslandConfig,
    IslandConfigurationError,
    NoProgramsError,
    create_island
)

__all__ = [
    "SamplingError",
    "softmax",
    "reduce_score",
    "get_score_reducer",
    "get_random_weighted_index",
    "ProgramSamplingStrategy",
    "UniformProgramSampling",
    "LatestProgramSampling",
    "create_program_sampling",
    "Cluster",
    "Island",
    "IslandConfig",
    "IslandConfigurationError",
    "NoProgramsError",
    "create_island"
]

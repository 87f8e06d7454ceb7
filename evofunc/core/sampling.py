"""
Sampling primitives for cluster and program selection in the evolutionary process.

This module contains the numeric building blocks used by islands (tempered
softmax, score reduction, weighted index draws) together with the strategies
clusters use to pick one of their member programs.
"""

import math
import random
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from ..entities import Function, ScoresPerTest


class SamplingError(RuntimeError):
    """Exception raised when a weighted draw receives an invalid distribution."""
    pass


def softmax(scores: Sequence[float], temperature: float) -> List[float]:
    """
    Tempered softmax of `scores`.

    The maximum is subtracted before exponentiating for numerical stability.
    A non-positive temperature collapses the distribution onto the maxima,
    splitting the probability mass uniformly between them.

    Args:
        scores: Finite scores, one per candidate
        temperature: Sampling temperature

    Returns:
        Probabilities in the same order as `scores`, summing to 1
    """
    scores = [float(s) for s in scores]
    if not scores:
        return []

    non_finite = [s for s in scores if not math.isfinite(s)]
    if non_finite:
        raise ValueError(f"Scores contain non-finite value(s): {set(non_finite)}")

    max_score = max(scores)

    if temperature <= 0:
        num_maxima = scores.count(max_score)
        return [1.0 / num_maxima if s == max_score else 0.0 for s in scores]

    exps = [math.exp((s - max_score) / temperature) for s in scores]
    total = sum(exps)
    return [e / total for e in exps]


def _mean(values: List[float]) -> float:
    return sum(values) / len(values)


_REDUCERS: Dict[str, Callable[[List[float]], float]] = {
    "mean": _mean,
    "max": max,
    "min": min,
    "last": lambda values: values[-1],
}


def get_score_reducer(name: str = "mean") -> Callable[["ScoresPerTest"], float]:
    """
    Get a function reducing per-test scores to a single fitness value.

    Args:
        name: One of "mean", "max", "min", "last"

    Returns:
        Callable mapping a per-test score mapping to a float
    """
    if name not in _REDUCERS:
        raise ValueError(f"Unknown score reduction: {name}. Available: {list(_REDUCERS.keys())}")

    aggregate = _REDUCERS[name]

    def reduce(scores_per_test: "ScoresPerTest") -> float:
        values = [float(v) for v in scores_per_test.values()]
        if not values:
            return 0.0
        return float(aggregate(values))

    reduce.__name__ = f"reduce_score_{name}"
    return reduce


# Arithmetic mean over the per-test values.
reduce_score = get_score_reducer("mean")


def get_random_weighted_index(probabilities: Sequence[float],
                              rng: Optional[random.Random] = None) -> int:
    """
    Draw an index with probability proportional to `probabilities`.

    Args:
        probabilities: Probabilities, expected to sum to 1
        rng: Random source; the module-level generator is used if omitted

    Returns:
        The smallest index whose cumulative probability exceeds a uniform draw
    """
    if not probabilities:
        raise SamplingError("Cannot draw an index from an empty distribution")
    if sum(probabilities) <= 0:
        raise SamplingError(f"Probabilities must have a positive sum: {list(probabilities)}")

    u = rng.random() if rng is not None else random.random()

    cumsum = 0.0
    for i, p in enumerate(probabilities):
        cumsum += p
        if cumsum > u:
            return i

    # Rounding left the total just below `u`.
    return max(i for i, p in enumerate(probabilities) if p > 0)


class ProgramSamplingStrategy(ABC):
    """Abstract base class for picking a member program out of a cluster."""

    @abstractmethod
    def sample(self, programs: List["Function"], rng: random.Random) -> "Function":
        """Sample one program from the cluster members."""
        pass


class UniformProgramSampling(ProgramSamplingStrategy):
    """Pick any member with equal probability."""

    def sample(self, programs: List["Function"], rng: random.Random) -> "Function":
        if not programs:
            raise ValueError("Cannot sample from empty program list")
        return rng.choice(programs)


class LatestProgramSampling(ProgramSamplingStrategy):
    """Always pick the most recently registered member."""

    def sample(self, programs: List["Function"], rng: random.Random) -> "Function":
        if not programs:
            raise ValueError("Cannot sample from empty program list")
        return programs[-1]


def create_program_sampling(strategy_name: str = "uniform") -> ProgramSamplingStrategy:
    """
    Create a program sampling strategy by name.

    Args:
        strategy_name: One of "uniform", "latest"

    Returns:
        Configured ProgramSamplingStrategy
    """
    strategies = {
        "uniform": UniformProgramSampling,
        "latest": LatestProgramSampling
    }

    if strategy_name not in strategies:
        raise ValueError(f"Unknown strategy: {strategy_name}. Available: {list(strategies.keys())}")

    return strategies[strategy_name]()

"""
Clusters of behaviourally identical programs.
"""

import random
from typing import List, Optional

from ..entities import Function
from .sampling import ProgramSamplingStrategy, UniformProgramSampling


class Cluster:
    """
    A cluster of programs on the same island that share a signature.

    The score is fixed by the first program registered and is not updated
    as further members arrive.
    """

    def __init__(self, score: float, implementation: Function,
                 sampling_strategy: Optional[ProgramSamplingStrategy] = None,
                 rng: Optional[random.Random] = None):
        self._score = score
        self._programs: List[Function] = [implementation]
        self.sampling_strategy = sampling_strategy or UniformProgramSampling()
        self._rng = rng or random.Random()

    @property
    def score(self) -> float:
        return self._score

    @property
    def programs(self) -> List[Function]:
        return list(self._programs)

    def __len__(self) -> int:
        return len(self._programs)

    def register_program(self, program: Function) -> None:
        """Adds `program` to the cluster."""
        self._programs.append(program)

    def sample_program(self) -> Function:
        """Samples a program using the cluster's sampling strategy."""
        return self.sampling_strategy.sample(self._programs, self._rng)

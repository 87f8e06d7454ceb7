"""
Islands: sub-populations of the evolved function.

Based on FunSearch's programs database, an island groups registered programs
into clusters by their per-test scores, samples high-scoring clusters with a
temperature-annealed softmax, and assembles the sampled implementations into
a prompt asking for the next version of the function.
"""

import copy
import dataclasses
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..code import rename_function_calls, text_to_function, text_to_program
from ..entities import Function, Program, ScoresPerTest, Signature
from .cluster import Cluster
from .sampling import (
    ProgramSamplingStrategy,
    create_program_sampling,
    get_random_weighted_index,
    get_score_reducer,
    reduce_score,
    softmax
)


logger = logging.getLogger(__name__)


class IslandConfigurationError(ValueError):
    """Exception raised when an island is given invalid hyperparameters."""
    pass


class NoProgramsError(ValueError):
    """Exception raised when a prompt is requested but no programs are available."""
    pass


@dataclass
class IslandConfig:
    """Configuration for a single island."""
    functions_per_prompt: int = 2
    cluster_sampling_temperature_init: float = 0.1
    cluster_sampling_temperature_period: int = 30000
    score_reduction: str = "mean"
    program_sampling: str = "uniform"
    seed: Optional[int] = None  # Unseeded if None


class Island:
    """
    A sub-population of the programs database.

    Programs are keyed by their signature, the tuple of their per-test scores
    in the order the evaluator reports them. Programs with equal signatures
    share a cluster whose score is fixed when the cluster is created.

    An island is not synchronised: serialise calls on a single instance.
    """

    def __init__(self,
                 template: Program,
                 function_to_evolve: str,
                 functions_per_prompt: int,
                 cluster_sampling_temperature_init: float,
                 cluster_sampling_temperature_period: int,
                 rng: Optional[random.Random] = None,
                 score_reducer: Callable[[ScoresPerTest], float] = reduce_score,
                 program_sampling: Optional[ProgramSamplingStrategy] = None):
        if cluster_sampling_temperature_period <= 0:
            raise IslandConfigurationError(
                f"cluster_sampling_temperature_period must be positive, "
                f"got {cluster_sampling_temperature_period}")
        if functions_per_prompt < 0:
            raise IslandConfigurationError(
                f"functions_per_prompt must be non-negative, got {functions_per_prompt}")

        self._template = copy.deepcopy(template)
        self.function_to_evolve = function_to_evolve
        self.functions_per_prompt = functions_per_prompt
        self.cluster_sampling_temperature_init = cluster_sampling_temperature_init
        self.cluster_sampling_temperature_period = cluster_sampling_temperature_period
        self.score_reducer = score_reducer
        self.program_sampling = program_sampling or create_program_sampling("uniform")
        self._rng = rng or random.Random()

        self._clusters: Dict[Signature, Cluster] = {}
        self._num_programs = 0

    @staticmethod
    def get_versioned_name(name: str, version: int) -> str:
        return f"{name}_v{version}"

    @staticmethod
    def get_signature(scores_per_test: ScoresPerTest) -> Signature:
        """Represents test scores as a canonical signature."""
        return tuple(float(value) for value in scores_per_test.values())

    @property
    def template(self) -> Program:
        return copy.deepcopy(self._template)

    @property
    def num_programs(self) -> int:
        return self._num_programs

    @property
    def num_clusters(self) -> int:
        return len(self._clusters)

    @property
    def clusters(self) -> Dict[Signature, Cluster]:
        return dict(self._clusters)

    @property
    def temperature(self) -> float:
        period = self.cluster_sampling_temperature_period
        if period <= 0:
            raise IslandConfigurationError(
                f"cluster_sampling_temperature_period must be positive, got {period}")
        return self.cluster_sampling_temperature_init * (
            1 - (self._num_programs % period) / period)

    @property
    def signatures(self) -> List[Signature]:
        return list(self._clusters.keys())

    @property
    def scores(self) -> List[float]:
        return [
            self._clusters[signature].score if signature in self._clusters else 0.0
            for signature in self.signatures
        ]

    @property
    def probabilities(self) -> List[float]:
        """Cluster scores converted to probabilities under the temperature schedule."""
        return softmax(self.scores, self.temperature)

    def register_program(self, program: Function, scores_per_test: ScoresPerTest) -> None:
        """Stores a program on this island, in its appropriate cluster."""
        signature = self.get_signature(scores_per_test)
        if signature not in self._clusters:
            score = self.score_reducer(scores_per_test)
            self._clusters[signature] = Cluster(
                score, program,
                sampling_strategy=self.program_sampling,
                rng=self._rng
            )
            logger.debug(f"New cluster {signature} with score {score}")
        else:
            self._clusters[signature].register_program(program)
        self._num_programs += 1

    def get_prompt(self) -> Tuple[str, int]:
        """
        Constructs a prompt containing functions from this island.

        Returns:
            Tuple of (prompt_text, version_generated)
        """
        signatures = self.signatures
        probabilities = self.probabilities

        # At the beginning of an experiment when we have few clusters, place
        # fewer programs into the prompt.
        functions_per_prompt = min(len(signatures), self.functions_per_prompt)

        indices = [
            get_random_weighted_index(probabilities, self._rng)
            for _ in range(functions_per_prompt)
        ]
        chosen_signatures = [signatures[i] for i in indices]

        implementations = []
        scores = []
        for signature in chosen_signatures:
            cluster = self._clusters[signature]
            implementations.append(cluster.sample_program())
            scores.append(cluster.score)

        # sorted() is stable, so equal scores keep their draw order.
        indices_sorted_by_score = sorted(range(len(scores)), key=lambda i: scores[i])
        sorted_implementations = [implementations[i] for i in indices_sorted_by_score]
        version_generated = len(sorted_implementations) + 1

        logger.debug(f"Sampled scores {sorted(scores)} at temperature {self.temperature:.4f}")
        return self.generate_prompt(sorted_implementations), version_generated

    def generate_prompt(self, implementations: List[Function]) -> str:
        """
        Creates a prompt containing a sequence of function `implementations`.

        Args:
            implementations: Functions sorted by ascending score

        Returns:
            The template rendered with the versioned functions and an empty
            header for the next version
        """
        if not implementations:
            raise NoProgramsError("No programs available to build a prompt from")

        # We will mutate these. The same program may have been drawn twice.
        implementations = [copy.deepcopy(implementation) for implementation in implementations]
        base_name = self.function_to_evolve

        # Format the names and docstrings of functions to be included in the prompt.
        versioned_functions: List[Function] = []
        for i, implementation in enumerate(implementations):
            new_function_name = self.get_versioned_name(base_name, i)
            implementation.name = new_function_name
            # Update the docstring for all subsequent functions after `_v0`.
            if i >= 1:
                implementation.docstring = (
                    f"Improved version of {self.get_versioned_name(base_name, i - 1)}.")
            # If the function is recursive, replace calls to itself with its new name.
            implementation_str = rename_function_calls(
                str(implementation), base_name, new_function_name)
            versioned_functions.append(text_to_function(implementation_str))

        # Create the header of the function to be generated by the LLM.
        next_version = len(implementations)
        header = dataclasses.replace(
            versioned_functions[-1],
            name=self.get_versioned_name(base_name, next_version),
            body="",
            docstring=f"Improved version of {self.get_versioned_name(base_name, next_version - 1)}."
        )
        versioned_functions.append(header)

        # Replace functions in the template with the list constructed here.
        prompt = copy.deepcopy(self._template)
        prompt.functions = versioned_functions
        return str(prompt)

    def get_best_program(self) -> Function:
        """Sample a program from the highest-scoring cluster."""
        if not self._clusters:
            raise NoProgramsError("No programs available on this island")
        best_cluster = max(self._clusters.values(), key=lambda c: c.score)
        return best_cluster.sample_program()

    def get_statistics(self) -> Dict[str, Any]:
        """Get island statistics."""
        stats: Dict[str, Any] = {
            "num_programs": self._num_programs,
            "num_clusters": len(self._clusters),
            "temperature": self.temperature
        }
        if not self._clusters:
            return stats

        scores = self.scores
        stats.update({
            "best_score": max(scores),
            "avg_score": sum(scores) / len(scores),
            "worst_score": min(scores)
        })
        return stats


def create_island(template: Union[Program, str], function_to_evolve: str,
                  config: Optional[IslandConfig] = None) -> Island:
    """
    Create an Island from an IslandConfig.

    Args:
        template: The program around the evolved function, parsed or as source
        function_to_evolve: Name of the function under evolution
        config: Island hyperparameters; defaults are used if omitted

    Returns:
        Configured Island
    """
    config = config or IslandConfig()

    if isinstance(template, str):
        template = text_to_program(template)

    return Island(
        template=template,
        function_to_evolve=function_to_evolve,
        functions_per_prompt=config.functions_per_prompt,
        cluster_sampling_temperature_init=config.cluster_sampling_temperature_init,
        cluster_sampling_temperature_period=config.cluster_sampling_temperature_period,
        rng=random.Random(config.seed),
        score_reducer=get_score_reducer(config.score_reduction),
        program_sampling=create_program_sampling(config.program_sampling)
    )

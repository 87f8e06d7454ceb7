"""
Demo script showing the Island interface.

This demonstrates the loop an outer driver runs against one island:
prompt, version = island.get_prompt()
code = llm.generate(prompt)
function = text_to_function(code)
scores_per_test = evaluator.execute(function)
island.register_program(function, scores_per_test)
"""

from evofunc.code import text_to_function
from evofunc.core import IslandConfig, create_island


TEMPLATE = '''"""Packs items into as few bins as possible."""
import math


def heuristic(item: float, capacity: float) -> float:
    """Returns the priority of placing `item` into a bin with `capacity` left."""
    return -capacity
'''


def simulated_llm(version: int) -> str:
    """Stand-in for the code-generating model."""
    return (
        "def heuristic(item: float, capacity: float) -> float:\n"
        f"    return -(capacity - item) * {version + 1}\n"
    )


def simulated_evaluator(generation: int) -> dict:
    """Stand-in for the sandboxed evaluation of a new implementation."""
    return {"small": 0.5 + 0.05 * generation, "large": 0.4 + 0.1 * (generation % 2)}


def demo_basic_usage():
    """Demonstrate basic island usage."""
    print("=== Island Demo ===\n")

    island = create_island(
        TEMPLATE,
        "heuristic",
        IslandConfig(functions_per_prompt=2, cluster_sampling_temperature_init=1.0,
                     cluster_sampling_temperature_period=10, seed=42)
    )

    seed_function = text_to_function(TEMPLATE)
    island.register_program(seed_function, {"small": 0.5, "large": 0.4})
    print(f"Island stats: {island.get_statistics()}")

    print("\n=== Evolutionary Loop Simulation ===")

    for generation in range(1, 4):
        print(f"\n--- Generation {generation} ---")

        prompt, version = island.get_prompt()
        print(prompt)

        child = text_to_function(simulated_llm(version))
        scores_per_test = simulated_evaluator(generation)
        island.register_program(child, scores_per_test)

        print(f"Registered child with scores {scores_per_test} "
              f"(temperature now {island.temperature:.3f})")

    print("\n=== Final Results ===")
    print(f"Island stats: {island.get_statistics()}")
    print(f"Best program:\n{island.get_best_program()}")


if __name__ == "__main__":
    demo_basic_usage()

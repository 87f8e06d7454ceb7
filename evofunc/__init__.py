"""
evofunc - an island-based population of evolving implementations of one function.
"""

from .entities import Function, Program, Signature, ScoresPerTest

__all__ = [
    "Function",
    "Program",
    "Signature",
    "ScoresPerTest"
]

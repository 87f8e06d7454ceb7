"""
Code manipulation module for evofunc.

This module parses Python source into program entities and rewrites
function calls when an evolved function is renamed.
"""

from .parser import (
    ProgramParseError,
    text_to_program,
    text_to_function,
    rename_function_calls
)

__all__ = [
    "ProgramParseError",
    "text_to_program",
    "text_to_function",
    "rename_function_calls"
]

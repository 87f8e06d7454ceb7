"""
Entity definitions for the evofunc evolutionary system.

This module contains the core data structures representing the function
under evolution and the program template that surrounds it.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple


Signature = Tuple[float, ...]
ScoresPerTest = Mapping[Any, float]


def _escape_docstring(docstring: str) -> str:
    """Escapes `docstring` so it reads back unchanged from a triple-quoted literal."""
    escaped = docstring.replace("\\", "\\\\")
    stripped = escaped.rstrip('"')
    trailing_quotes = len(escaped) - len(stripped)
    return stripped.replace('"""', '\\"""') + '\\"' * trailing_quotes


@dataclass
class Function:
    """A parsed Python function."""
    name: str
    args: str
    body: str
    return_type: Optional[str] = None
    docstring: Optional[str] = None
    decorators: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return_type = f" -> {self.return_type}" if self.return_type else ""

        function = "".join(f"@{decorator}\n" for decorator in self.decorators)
        function += f"def {self.name}({self.args}){return_type}:\n"
        if self.docstring:
            # A header with no body still needs the docstring on its own line.
            new_line = "\n" if self.body else ""
            function += f'    """{_escape_docstring(self.docstring)}"""{new_line}'
        # `self.body` already carries its indentation.
        function += self.body + "\n\n"
        return function


@dataclass
class Program:
    """A parsed Python program: a preface followed by top-level functions."""
    preface: str
    functions: List[Function] = field(default_factory=list)

    def __str__(self) -> str:
        program = f"{self.preface}\n" if self.preface else ""
        program += "\n".join(str(f) for f in self.functions)
        return program

    def find_function_index(self, function_name: str) -> int:
        """Returns the index of the function called `function_name`."""
        function_names = [f.name for f in self.functions]
        count = function_names.count(function_name)
        if count == 0:
            raise ValueError(
                f"function {function_name} does not exist in program:\n{self}")
        if count > 1:
            raise ValueError(
                f"function {function_name} exists more than once in program:\n{self}")
        return function_names.index(function_name)

    def get_function(self, function_name: str) -> Function:
        index = self.find_function_index(function_name)
        return self.functions[index]

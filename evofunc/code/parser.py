"""
Parsing and rewriting of Python source for the evolved function.

This module turns source text into `Program` / `Function` entities and back,
and rewrites self-referential calls when a function is renamed.
"""

import ast
import io
import logging
import tokenize
from typing import Iterator, List, Tuple

from ..entities import Function, Program


logger = logging.getLogger(__name__)


class ProgramParseError(ValueError):
    """Exception raised when source text cannot be parsed into a program."""
    pass


class _ProgramVisitor(ast.NodeVisitor):
    """Collects the preface and the top-level functions of a module."""

    def __init__(self, source: str):
        self._codelines = source.splitlines()
        self._preface = ""
        self._functions: List[Function] = []

    def visit_Module(self, node: ast.Module) -> None:
        for child in node.body:
            if isinstance(child, ast.FunctionDef):
                self._visit_function(child)

    def _visit_function(self, node: ast.FunctionDef) -> None:
        if not self._functions:
            first_line = min([node.lineno] + [d.lineno for d in node.decorator_list])
            self._preface = "\n".join(self._codelines[:first_line - 1])

        docstring = ast.get_docstring(node, clean=False)
        statements = node.body[1:] if docstring is not None else node.body

        self._functions.append(Function(
            name=node.name,
            args=ast.unparse(node.args),
            return_type=ast.unparse(node.returns) if node.returns else None,
            docstring=docstring,
            body=self._body(node, statements, docstring is not None),
            decorators=[ast.unparse(d) for d in node.decorator_list],
        ))

    def _signature_end_line(self, node: ast.FunctionDef) -> int:
        """Returns the 1-based line holding the colon that closes the `def`."""
        text = "\n".join(self._codelines[node.lineno - 1:node.body[0].lineno]) + "\n"
        depth = 0
        try:
            for token in _tokenize(text):
                if token.type != tokenize.OP:
                    continue
                if token.string in "([{":
                    depth += 1
                elif token.string in ")]}":
                    depth -= 1
                elif token.string == ":" and depth == 0:
                    return node.lineno + token.start[0] - 1
        except (tokenize.TokenError, SyntaxError):
            # The slice can end inside the first statement.
            pass
        return node.body[0].lineno

    def _body(self, node: ast.FunctionDef, statements: List[ast.stmt],
              has_docstring: bool) -> str:
        if not statements:
            return ""

        function_end_line = node.end_lineno
        first = statements[0]
        previous_end_line = (node.body[0].end_lineno if has_docstring
                             else self._signature_end_line(node))

        if first.lineno == previous_end_line:
            # Statements share a line with the `def` or the docstring.
            head = "    " + self._codelines[first.lineno - 1][first.col_offset:]
            rest = self._codelines[first.lineno:function_end_line]
            return "\n".join([head] + rest)

        # Starts right after the signature or docstring so leading comments are kept.
        return "\n".join(self._codelines[previous_end_line:function_end_line])

    def to_program(self) -> Program:
        return Program(preface=self._preface, functions=self._functions)


def text_to_program(text: str) -> Program:
    """
    Parse Python source into a `Program`.

    Everything before the first top-level function (or its decorators)
    becomes the preface. Decorators are kept on each `Function`; top-level
    statements between or after functions are not retained.

    Raises:
        ProgramParseError: If the text is not valid Python.
    """
    try:
        tree = ast.parse(text)
    except SyntaxError as e:
        raise ProgramParseError(f"Could not parse program: {e}") from e

    visitor = _ProgramVisitor(text)
    visitor.visit(tree)
    return visitor.to_program()


def text_to_function(text: str) -> Function:
    """Parse source that contains exactly one top-level function."""
    program = text_to_program(text)
    if len(program.functions) != 1:
        raise ProgramParseError(
            f"Expected exactly one function, found {len(program.functions)}:\n{text}")
    return program.functions[0]


def _tokenize(code: str) -> Iterator[tokenize.TokenInfo]:
    return tokenize.generate_tokens(io.StringIO(code).readline)


def _call_name_positions(code: str, name: str) -> List[Tuple[int, int]]:
    """Returns (row, col) of every `name(` call that is not an attribute access."""
    positions = []
    prev_prev_token = None
    prev_token = None
    for token in _tokenize(code):
        if (prev_token is not None
                and prev_token.type == tokenize.NAME
                and prev_token.string == name
                and token.type == tokenize.OP and token.string == "("):
            is_attribute = (prev_prev_token is not None
                            and prev_prev_token.type == tokenize.OP
                            and prev_prev_token.string == ".")
            if not is_attribute:
                positions.append(prev_token.start)
        prev_prev_token = prev_token
        prev_token = token
    return positions


def rename_function_calls(code: str, source_name: str, target_name: str) -> str:
    """
    Rename calls to `source_name` into calls to `target_name` within `code`.

    Only whole identifiers used as direct calls are rewritten; attribute calls
    and names that merely contain `source_name` are left alone.
    """
    if source_name not in code:
        return code

    try:
        positions = _call_name_positions(code, source_name)
    except (tokenize.TokenError, SyntaxError) as e:
        raise ProgramParseError(f"Could not tokenize code: {e}") from e

    if not positions:
        return code

    lines = code.splitlines(keepends=True)
    # Right to left so earlier columns on the same row stay valid.
    for row, col in sorted(positions, reverse=True):
        line = lines[row - 1]
        lines[row - 1] = line[:col] + target_name + line[col + len(source_name):]

    logger.debug(f"Renamed {len(positions)} call(s) of {source_name} to {target_name}")
    return "".join(lines)

"""
Expression module for resolving symbolic parameter formulas.

Formulas are plain strings over parameter names, numeric literals,
the four arithmetic operators and sqrt(). They are parsed with the
``ast`` module and walked against a whitelist, never passed to eval().
"""

import ast
import math
import operator
from typing import Dict, Iterator, Mapping, Optional, Union


class ExpressionError(ValueError):
    """Base error for formulas that cannot be resolved."""

    def __init__(self, message: str, expression: str = "", index: Optional[int] = None):
        self.message = message
        self.expression = expression
        self.index = index
        super().__init__(self._format())

    def _format(self) -> str:
        text = self.message
        if self.expression:
            text += f" in '{self.expression}'"
        if self.index is not None:
            text = f"segment {self.index}: {text}"
        return text

    def with_index(self, index: int) -> 'ExpressionError':
        """Tag this error with the segment index it was raised for."""
        self.index = index
        self.args = (self._format(),)
        return self


class UnknownParameter(ExpressionError):
    """A formula references a name that is not in the ParameterSet."""

    def __init__(self, name: str, expression: str = "", index: Optional[int] = None):
        self.name = name
        super().__init__(f"unknown parameter '{name}'", expression, index)


class MalformedExpression(ExpressionError):
    """A formula has a syntax error or an unsupported construct."""


class ParameterSet(Mapping[str, float]):
    """Read-only mapping of parameter name to numeric value."""

    def __init__(self, values: Optional[Mapping[str, float]] = None, **kwargs: float):
        data: Dict[str, float] = {}
        for name, value in dict(values or {}, **kwargs).items():
            data[str(name)] = float(value)
        self._values = data

    def __getitem__(self, name: str) -> float:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterSet({self._values!r})"

    def to_dict(self) -> Dict[str, float]:
        return dict(self._values)


Expression = str

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY_OPS = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_FUNCTIONS = {
    'sqrt': math.sqrt,
}


def _parse(text: str) -> ast.Expression:
    if not text.strip():
        raise MalformedExpression("empty expression", text)
    try:
        return ast.parse(text.strip(), mode='eval')
    except SyntaxError as e:
        raise MalformedExpression(f"syntax error ({e.msg})", text) from e


def _eval_node(node: ast.AST, params: Mapping[str, float], text: str) -> float:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body, params, text)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise MalformedExpression(f"unsupported literal {node.value!r}", text)
        return float(node.value)

    if isinstance(node, ast.Name):
        if node.id not in params:
            raise UnknownParameter(node.id, text)
        return float(params[node.id])

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise MalformedExpression(f"unsupported operator {type(node.op).__name__}", text)
        left = _eval_node(node.left, params, text)
        right = _eval_node(node.right, params, text)
        try:
            return op(left, right)
        except ZeroDivisionError as e:
            raise MalformedExpression("division by zero", text) from e

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise MalformedExpression(f"unsupported operator {type(node.op).__name__}", text)
        return op(_eval_node(node.operand, params, text))

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise MalformedExpression("only sqrt() calls are allowed", text)
        if len(node.args) != 1 or node.keywords:
            raise MalformedExpression(f"{node.func.id}() takes exactly one argument", text)
        arg = _eval_node(node.args[0], params, text)
        try:
            return _FUNCTIONS[node.func.id](arg)
        except ValueError as e:
            raise MalformedExpression(f"{node.func.id}() of negative value {arg}", text) from e

    raise MalformedExpression(f"unsupported token {type(node).__name__}", text)


def evaluate(expr: Union[Expression, float, int], params: Mapping[str, float]) -> float:
    """
    Resolve a formula to a float against a ParameterSet.

    Numbers are accepted as-is so that callers can mix literal and
    symbolic coordinates.

    Raises:
        UnknownParameter: a referenced name is missing from ``params``.
        MalformedExpression: the text does not parse or uses anything
            beyond + - * /, unary sign, parentheses and sqrt().
    """
    if isinstance(expr, bool):
        raise MalformedExpression(f"unsupported literal {expr!r}", str(expr))
    if isinstance(expr, (int, float)):
        return float(expr)
    text = str(expr)
    return _eval_node(_parse(text), params, text)

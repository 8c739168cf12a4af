"""Sandboxed arithmetic formulas for dynamic pricing rules.

Formulas are parsed with :mod:`ast` and translated into a small tree of
tagged nodes; only arithmetic over a fixed set of variables and a handful of
helper functions is accepted. Nothing is ever passed to ``eval``.

Example::

    formula = compile_formula("max(price * 0.9, base_price - 5)")
    formula.evaluate({"price": Decimal("20"), "base_price": Decimal("20"), "quantity": 1})
"""

from __future__ import annotations

import ast
import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

FORMULA_VARIABLES = frozenset({"price", "base_price", "quantity"})
MAX_FORMULA_LENGTH = 500


class FormulaError(ValueError):
    """Raised when a formula cannot be parsed or evaluated."""


@dataclass(slots=True, frozen=True)
class Number:
    value: Decimal


@dataclass(slots=True, frozen=True)
class Variable:
    name: str


@dataclass(slots=True, frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(slots=True, frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(slots=True, frozen=True)
class Call:
    func: str
    args: tuple["Node", ...]


Node = Union[Number, Variable, UnaryOp, BinaryOp, Call]

_BINARY_OPS: dict[type[ast.operator], str] = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.Mod: "%",
}
_UNARY_OPS: dict[type[ast.unaryop], str] = {ast.USub: "-", ast.UAdd: "+"}

_BINARY_FUNCS: dict[str, Callable[[Decimal, Decimal], Decimal]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "%": operator.mod,
}


def _round(value: Decimal, places: Decimal = Decimal("0")) -> Decimal:
    exponent = Decimal(1).scaleb(-int(places))
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


_FUNCTIONS: dict[str, tuple[int, int, Callable[..., Decimal]]] = {
    # name: (min args, max args, implementation)
    "min": (1, 8, min),
    "max": (1, 8, max),
    "round": (1, 2, _round),
}


def _translate(node: ast.AST) -> Node:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError(f"Unsupported literal: {node.value!r}")
        return Number(Decimal(str(node.value)))
    if isinstance(node, ast.Name):
        if node.id not in FORMULA_VARIABLES:
            raise FormulaError(f"Unknown variable: {node.id}")
        return Variable(node.id)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return UnaryOp(_UNARY_OPS[type(node.op)], _translate(node.operand))
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return BinaryOp(
            _BINARY_OPS[type(node.op)], _translate(node.left), _translate(node.right)
        )
    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise FormulaError("Only min(), max() and round() may be called")
        if node.keywords:
            raise FormulaError("Keyword arguments are not supported")
        low, high, _ = _FUNCTIONS[node.func.id]
        if not low <= len(node.args) <= high:
            raise FormulaError(f"{node.func.id}() takes {low} to {high} arguments")
        return Call(node.func.id, tuple(_translate(arg) for arg in node.args))
    raise FormulaError(f"Unsupported expression: {type(node).__name__}")


def _evaluate(node: Node, variables: Mapping[str, Decimal]) -> Decimal:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Variable):
        try:
            return variables[node.name]
        except KeyError as exc:
            raise FormulaError(f"Missing value for {node.name}") from exc
    if isinstance(node, UnaryOp):
        operand = _evaluate(node.operand, variables)
        return -operand if node.op == "-" else +operand
    if isinstance(node, BinaryOp):
        left = _evaluate(node.left, variables)
        right = _evaluate(node.right, variables)
        if node.op in {"/", "%"} and right == 0:
            raise FormulaError("Division by zero")
        return _BINARY_FUNCS[node.op](left, right)
    _, _, func = _FUNCTIONS[node.func]
    return func(*(_evaluate(arg, variables) for arg in node.args))


@dataclass(slots=True, frozen=True)
class Formula:
    """A parsed, reusable pricing formula."""

    source: str
    root: Node

    def evaluate(self, variables: Mapping[str, Decimal | int]) -> Decimal:
        values = {name: Decimal(value) for name, value in variables.items()}
        try:
            return _evaluate(self.root, values)
        except (InvalidOperation, ArithmeticError) as exc:
            raise FormulaError(f"Formula evaluation failed: {exc}") from exc


def compile_formula(source: str) -> Formula:
    """Parse ``source`` into a :class:`Formula` or raise :class:`FormulaError`."""
    text = (source or "").strip()
    if not text:
        raise FormulaError("Formula is empty")
    if len(text) > MAX_FORMULA_LENGTH:
        raise FormulaError("Formula is too long")
    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError as exc:
        raise FormulaError(f"Invalid formula syntax: {exc.msg}") from exc
    return Formula(source=text, root=_translate(tree.body))


__all__ = ["FORMULA_VARIABLES", "Formula", "FormulaError", "compile_formula"]

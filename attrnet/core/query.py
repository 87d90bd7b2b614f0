"""
Predicate filtering and label-based neighbourhood queries over attribute tables.

Predicates are written in a small boolean grammar::

    degree >= 8 & !(group == "hub") | `odd name` != 1.5

- comparisons: ``==  !=  <  <=  >  >=``
- combinators: ``&`` (also ``&&``), ``|`` (also ``||``), ``!``, parentheses
- literals: numbers, single/double quoted strings, ``true``, ``false``, ``null``
- bare identifiers are column names; backticks quote any column name

Text predicates are compiled into Polars expressions by an
:class:`ExpressionEvaluator` (default :class:`PolarsExpressionEvaluator`).
A ready-made ``polars.Expr`` is accepted anywhere a predicate is.
"""
from __future__ import annotations

import operator
import re
from typing import TYPE_CHECKING, Any, Iterable, Mapping, NamedTuple, Protocol, Sequence

import polars as pl

from ..errors import AmbiguousLabel, ExpressionSyntaxError, NotFound, TypeMismatch, UnknownColumn
from .table import AttributeTable

if TYPE_CHECKING:
    from .graph import GraphHandle

ROW = "__row__"

# Tokenizer

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>\d+\.\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|\d+(?:[eE][+-]?\d+)?)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<quoted>`[^`]+`)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_.]*)
  | (?P<op>==|!=|<=|>=|&&|\|\||[<>!&|()\-])
    """,
    re.VERBOSE,
)

_KEYWORDS = {"true": True, "false": False, "null": None}


class Token(NamedTuple):
    kind: str
    value: Any
    pos: int


def tokenize(expression: str) -> list[Token]:
    tokens = []
    pos = 0
    while pos < len(expression):
        m = _TOKEN_RE.match(expression, pos)
        if m is None:
            raise ExpressionSyntaxError("Unexpected character", expression, pos)
        kind = m.lastgroup
        text = m.group()
        if kind == "number":
            value = float(text) if any(c in text for c in ".eE") else int(text)
            tokens.append(Token("literal", value, pos))
        elif kind == "string":
            body = text[1:-1]
            tokens.append(Token("literal", re.sub(r"\\(.)", r"\1", body), pos))
        elif kind == "quoted":
            tokens.append(Token("column", text[1:-1], pos))
        elif kind == "ident":
            if text.lower() in _KEYWORDS:
                tokens.append(Token("literal", _KEYWORDS[text.lower()], pos))
            else:
                tokens.append(Token("column", text, pos))
        elif kind == "op":
            tokens.append(Token("op", {"&&": "&", "||": "|"}.get(text, text), pos))
        pos = m.end()
    tokens.append(Token("end", None, pos))
    return tokens


# Typed AST -> pl.Expr

_NUM, _STR, _BOOL, _NULL = "number", "string", "boolean", "null"

_COMPARE = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _value_type(v) -> str:
    if v is None:
        return _NULL
    if isinstance(v, bool):
        return _BOOL
    if isinstance(v, (int, float)):
        return _NUM
    return _STR


def _dtype_type(dtype) -> str:
    if dtype == pl.Null:
        return _NULL
    if dtype == pl.Boolean:
        return _BOOL
    if dtype.is_numeric():
        return _NUM
    if dtype == pl.Utf8 or dtype == pl.Categorical:
        return _STR
    raise TypeMismatch(f"Columns of dtype {dtype} cannot be used in predicates")


class _Typed(NamedTuple):
    expr: pl.Expr
    type: str
    literal: bool = False
    value: Any = None


class _Parser:
    def __init__(self, expression: str, schema: Mapping[str, Any]):
        self.expression = expression
        self.schema = schema
        self.tokens = tokenize(expression)
        self.i = 0

    def peek(self) -> Token:
        return self.tokens[self.i]

    def take(self) -> Token:
        tok = self.tokens[self.i]
        self.i += 1
        return tok

    def at_op(self, op: str) -> bool:
        tok = self.tokens[self.i]
        return tok.kind == "op" and tok.value == op

    def expect_op(self, op: str) -> None:
        tok = self.take()
        if tok.kind != "op" or tok.value != op:
            raise ExpressionSyntaxError(f"Expected {op!r}", self.expression, tok.pos)

    def parse(self) -> pl.Expr:
        if self.peek().kind == "end":
            raise ExpressionSyntaxError("Empty predicate", self.expression, 0)
        node = self.parse_or()
        tok = self.peek()
        if tok.kind != "end":
            raise ExpressionSyntaxError(f"Unexpected token {tok.value!r}", self.expression, tok.pos)
        return self._boolean(node, "predicate").expr

    def _boolean(self, node: _Typed, where: str) -> _Typed:
        if node.type != _BOOL:
            raise TypeMismatch(f"Operand of {where} must be boolean, got {node.type}")
        return node

    def parse_or(self) -> _Typed:
        left = self.parse_and()
        while self.at_op("|"):
            self.take()
            right = self.parse_and()
            left = _Typed(self._boolean(left, "'|'").expr | self._boolean(right, "'|'").expr, _BOOL)
        return left

    def parse_and(self) -> _Typed:
        left = self.parse_not()
        while self.at_op("&"):
            self.take()
            right = self.parse_not()
            left = _Typed(self._boolean(left, "'&'").expr & self._boolean(right, "'&'").expr, _BOOL)
        return left

    def parse_not(self) -> _Typed:
        if self.at_op("!"):
            self.take()
            inner = self._boolean(self.parse_not(), "'!'")
            return _Typed(~inner.expr, _BOOL)
        return self.parse_comparison()

    def parse_comparison(self) -> _Typed:
        left = self.parse_operand()
        tok = self.peek()
        if tok.kind == "op" and tok.value in _COMPARE:
            self.take()
            right = self.parse_operand()
            return self._compare(tok.value, left, right)
        return left

    def parse_operand(self) -> _Typed:
        tok = self.take()
        if tok.kind == "op" and tok.value == "(":
            node = self.parse_or()
            self.expect_op(")")
            return node
        if tok.kind == "op" and tok.value == "-":
            num = self.take()
            if num.kind != "literal" or _value_type(num.value) != _NUM:
                raise ExpressionSyntaxError("Expected a number after '-'", self.expression, num.pos)
            return _Typed(pl.lit(-num.value), _NUM, True, -num.value)
        if tok.kind == "literal":
            return _Typed(pl.lit(tok.value), _value_type(tok.value), True, tok.value)
        if tok.kind == "column":
            if tok.value not in self.schema:
                raise UnknownColumn(tok.value, list(self.schema))
            return _Typed(pl.col(tok.value), _dtype_type(self.schema[tok.value]))
        if tok.kind == "end":
            raise ExpressionSyntaxError("Unexpected end of predicate", self.expression, tok.pos)
        raise ExpressionSyntaxError(f"Unexpected token {tok.value!r}", self.expression, tok.pos)

    def _compare(self, op: str, left: _Typed, right: _Typed) -> _Typed:
        # `x == null` / `x != null` test for missing values
        if (right.literal and right.type == _NULL) or (left.literal and left.type == _NULL):
            other = left if (right.literal and right.type == _NULL) else right
            if op == "==":
                return _Typed(other.expr.is_null(), _BOOL)
            if op == "!=":
                return _Typed(other.expr.is_not_null(), _BOOL)
            raise TypeMismatch(f"Cannot order-compare with null using {op!r}")
        types = {left.type, right.type} - {_NULL}
        if len(types) > 1:
            raise TypeMismatch(f"Cannot compare {left.type} with {right.type} using {op!r}")
        if types == {_BOOL} and op not in ("==", "!="):
            raise TypeMismatch(f"Booleans only support '==' and '!=', not {op!r}")
        return _Typed(_COMPARE[op](left.expr, right.expr), _BOOL)


class ExpressionEvaluator(Protocol):
    """Compiles predicate text into a Polars boolean expression."""

    def compile(self, expression: str, schema: Mapping[str, Any]) -> pl.Expr: ...


class PolarsExpressionEvaluator:
    """Default evaluator for the predicate grammar described in this module."""

    def compile(self, expression: str, schema: Mapping[str, Any]) -> pl.Expr:
        """
        Parse ``expression`` and type-check it against ``schema``.

        Raises
        ------
        ExpressionSyntaxError
        UnknownColumn
        TypeMismatch
        """
        if not isinstance(expression, str):
            raise TypeMismatch(f"Predicate must be a string or polars.Expr, got {type(expression).__name__}")
        return _Parser(expression, schema).parse()


DEFAULT_EVALUATOR = PolarsExpressionEvaluator()


# Table operations

def filter_rows(table: AttributeTable, predicate, evaluator: ExpressionEvaluator | None = None) -> list[int]:
    """
    Row indices of ``table`` for which ``predicate`` is true.

    Parameters
    ----------
    table : AttributeTable
    predicate : str | polars.Expr
        Predicate text (see module docstring) or a boolean Polars expression.
    evaluator : ExpressionEvaluator, optional
        Compiler for text predicates.

    Returns
    -------
    list[int]
        Ascending row indices; rows where the predicate is null are excluded.

    Raises
    ------
    UnknownColumn
    TypeMismatch
    ExpressionSyntaxError
    """
    if isinstance(predicate, pl.Expr):
        expr = predicate
    else:
        expr = (evaluator or DEFAULT_EVALUATOR).compile(predicate, table.schema)
    df = table.to_polars().with_row_index(ROW)
    try:
        hit = df.filter(expr)
    except pl.exceptions.ColumnNotFoundError as e:
        m = re.search(r'"([^"]+)"', str(e))
        column = m.group(1) if m else str(e).splitlines()[0].strip()
        raise UnknownColumn(column, table.columns) from e
    except pl.exceptions.PolarsError as e:
        raise TypeMismatch(f"Predicate could not be evaluated: {e}") from e
    return [int(i) for i in hit.get_column(ROW).to_list()]


def project(table: AttributeTable, indices: Sequence[int], column: str | None = None):
    """
    The matched rows as a table, or one column of them.

    Returns
    -------
    AttributeTable | list
        The filtered table when ``column`` is None, else the column values.
    """
    if column is None:
        return table.rows(indices)
    if column not in table:
        raise UnknownColumn(column, table.columns)
    return table.rows(indices).get(column)


def _as_values(values) -> list:
    if isinstance(values, (str, bytes, int, float, bool)) or values is None:
        return [values]
    if isinstance(values, pl.Series):
        return values.to_list()
    return list(values)


def resolve_labels(table: AttributeTable, values, lookup_column: str = "name") -> list[int]:
    """
    Translate human-readable labels into row indices.

    Parameters
    ----------
    table : AttributeTable
    values : Any | Iterable
        One label or several; order is kept and repeats are dropped.
    lookup_column : str, optional

    Returns
    -------
    list[int]

    Raises
    ------
    UnknownColumn
        If ``lookup_column`` does not exist.
    NotFound
        If a label matches no row.
    AmbiguousLabel
        If a label matches more than one row.
    """
    if lookup_column not in table:
        raise UnknownColumn(lookup_column, table.columns)
    column = table.get(lookup_column)
    positions: dict = {}
    for i, v in enumerate(column):
        positions.setdefault(v, []).append(i)
    out: list[int] = []
    for value in _as_values(values):
        try:
            matches = positions.get(value, [])
        except TypeError:
            matches = []
        if not matches:
            raise NotFound(f"No {table.kind} with {lookup_column} == {value!r}")
        if len(matches) > 1:
            raise AmbiguousLabel(value, lookup_column, matches)
        if matches[0] not in out:
            out.append(matches[0])
    return out


def neighbors_by_label(
    table: AttributeTable,
    graph: "GraphHandle",
    values,
    lookup_column: str = "name",
    degree: int = 1,
    include_center: bool = True,
    mode: str = "all",
) -> list[int]:
    """
    Node indices within ``degree`` hops of the nodes labelled ``values``.

    The neighbourhoods of all queried labels are united. With
    ``include_center=False`` each queried node is left out of its own
    neighbourhood, although it can still appear as another query's neighbour.

    Returns
    -------
    list[int]
        Sorted node indices.
    """
    found: set[int] = set()
    for center in resolve_labels(table, values, lookup_column):
        found |= graph.neighbors(center, degree, include_center=include_center, mode=mode)
    return sorted(found)


def labels(table: AttributeTable, indices: Iterable[int], column: str = "name") -> list:
    """Values of ``column`` at ``indices``."""
    values = table.get(column)
    return [values[i] for i in indices]

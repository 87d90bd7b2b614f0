from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
import polars as pl

from ..errors import (
    DuplicateColumn,
    DuplicateIdentifier,
    LengthMismatch,
    NotFound,
    TypeMismatch,
    UnknownColumn,
)

NAME = "name"


def _pl_dtype_for_value(v):
    """
    INTERNAL: Map a scalar to the Polars dtype it is stored as.

    Parameters
    ----------
    v : Any

    Returns
    -------
    polars.datatypes.DataType
        One of ``pl.Null``, ``pl.Boolean``, ``pl.Int64``, ``pl.Float64`` or ``pl.Utf8``.

    Raises
    ------
    TypeMismatch
        If ``v`` is not a string, number, boolean or None.
    """
    if v is None:
        return pl.Null
    if isinstance(v, (bool, np.bool_)):
        return pl.Boolean
    if isinstance(v, (int, np.integer)):
        return pl.Int64
    if isinstance(v, (float, np.floating)):
        return pl.Float64
    if isinstance(v, str):
        return pl.Utf8
    raise TypeMismatch(
        f"Unsupported attribute value {v!r} of type {type(v).__name__}; "
        "expected str, int, float, bool or None"
    )


def _as_list(values) -> list:
    if isinstance(values, pl.Series):
        return values.to_list()
    if isinstance(values, np.ndarray):
        return values.tolist()
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise TypeMismatch(f"Column values must be a sequence, got {type(values).__name__}")
    return [v.item() if isinstance(v, np.generic) else v for v in values]


def to_series(column: str, values) -> pl.Series:
    """
    Build a typed Polars Series from raw values.

    Mixed ``int``/``float`` columns are widened to ``Float64``; any other mix
    of types raises :class:`TypeMismatch` instead of being coerced.
    """
    if isinstance(values, pl.Series):
        dtype = values.dtype
        if dtype == pl.Utf8 or dtype == pl.Boolean or dtype == pl.Null or dtype.is_numeric():
            return values.alias(column)
    values = _as_list(values)
    kinds = {_pl_dtype_for_value(v) for v in values} - {pl.Null}
    if not kinds:
        dtype = pl.Null
    elif len(kinds) == 1:
        dtype = kinds.pop()
    elif kinds == {pl.Int64, pl.Float64}:
        dtype = pl.Float64
    else:
        names = sorted(str(k) for k in kinds)
        raise TypeMismatch(f"Column {column!r} mixes incompatible value types: {names}")
    return pl.Series(column, values, dtype=dtype)


class AttributeTable:
    """
    Column store for one entity kind (nodes or edges).

    Row ``i`` describes entity ``i`` of the owning graph. The table is a thin,
    immutable wrapper around a Polars DF (DataFrame): every modifying method
    returns a **new** table.

    Parameters
    ----------
    df : polars.DataFrame
        Backing frame. Must contain a ``name`` column with unique values.
    kind : str, optional
        ``'node'`` or ``'edge'``; only used in error messages.

    Raises
    ------
    UnknownColumn
        If ``df`` has no ``name`` column.
    DuplicateIdentifier
        If ``name`` values are not unique.
    """

    __slots__ = ("_df", "kind")

    def __init__(self, df: pl.DataFrame, kind: str = "node"):
        if NAME not in df.columns:
            raise UnknownColumn(NAME, df.columns)
        names = df.get_column(NAME)
        if names.null_count():
            raise DuplicateIdentifier([None], kind=kind)
        if names.n_unique() != df.height:
            dupes = [v for v, c in Counter(names.to_list()).items() if c > 1]
            raise DuplicateIdentifier(dupes, kind=kind)
        # name always leads
        if df.columns[0] != NAME:
            df = df.select([NAME] + [c for c in df.columns if c != NAME])
        self._df = df
        self.kind = kind

    # Construction

    @classmethod
    def build(
        cls,
        names: Sequence[Any],
        columns: Mapping[str, Any] | None = None,
        kind: str = "node",
    ) -> "AttributeTable":
        """
        Build a table from entity names and optional attribute columns.

        Parameters
        ----------
        names : Sequence
            Entity identifiers, one per row.
        columns : Mapping[str, Sequence], optional
            Additional columns in insertion order.
        kind : str, optional

        Returns
        -------
        AttributeTable

        Raises
        ------
        DuplicateIdentifier
            If ``names`` contains repeated values.
        LengthMismatch
            If any column length differs from ``len(names)``.
        """
        series = [to_series(NAME, names)]
        height = len(series[0])
        for col, values in (columns or {}).items():
            if col == NAME:
                continue
            s = to_series(col, values)
            if len(s) != height:
                raise LengthMismatch(col, height, len(s))
            series.append(s)
        return cls(pl.DataFrame(series), kind=kind)

    # Introspection

    @property
    def columns(self) -> list[str]:
        return list(self._df.columns)

    @property
    def schema(self) -> dict:
        return dict(self._df.schema)

    @property
    def height(self) -> int:
        return self._df.height

    def __len__(self) -> int:
        return self._df.height

    @property
    def names(self) -> list:
        return self._df.get_column(NAME).to_list()

    def __contains__(self, column) -> bool:
        return column in self._df.columns

    def __eq__(self, other) -> bool:
        if not isinstance(other, AttributeTable):
            return NotImplemented
        return self.kind == other.kind and self._df.equals(other._df)

    def __repr__(self) -> str:
        return f"AttributeTable(kind={self.kind!r}, rows={self.height}, columns={self.columns})"

    # Access

    def _require(self, column: str) -> None:
        if column not in self._df.columns:
            raise UnknownColumn(column, self._df.columns)

    def get(self, column: str) -> list:
        """
        Return a column's values as a list.

        Raises
        ------
        UnknownColumn
        """
        self._require(column)
        return self._df.get_column(column).to_list()

    def series(self, column: str) -> pl.Series:
        """Return a column as a Polars Series (copy)."""
        self._require(column)
        return self._df.get_column(column).clone()

    def to_polars(self) -> pl.DataFrame:
        """Return a copy of the backing Polars DF [DataFrame]."""
        return self._df.clone()

    def to_dicts(self) -> list[dict]:
        return self._df.to_dicts()

    # Derivation (copy-producing)

    def rows(self, indices: Sequence[int]) -> "AttributeTable":
        """
        Keep only ``indices`` (in the given order); column set and order are preserved.

        Raises
        ------
        NotFound
            If an index is out of range.
        """
        idx = [int(i) for i in indices]
        n = self._df.height
        bad = [i for i in idx if i < 0 or i >= n]
        if bad:
            raise NotFound(f"Row indices out of range for {self.kind} table of {n} rows: {bad}")
        if not idx:
            return AttributeTable(self._df.clear(), kind=self.kind)
        taken = self._df.select(pl.all().gather(pl.Series(idx, dtype=pl.UInt32)))
        return AttributeTable(taken, kind=self.kind)

    def take_by_name(self, names: Sequence[Any]) -> "AttributeTable":
        """
        Reorder/subset rows so that they follow ``names``.

        Raises
        ------
        NotFound
            If a name is not present in the table.
        """
        position = {v: i for i, v in enumerate(self.names)}
        missing = [v for v in names if v not in position]
        if missing:
            raise NotFound(f"Unknown {self.kind} names: {missing}")
        return self.rows([position[v] for v in names])

    def add_column(self, column: str, values, replace: bool = False) -> "AttributeTable":
        """
        Return a new table with one more column.

        Parameters
        ----------
        column : str
        values : Sequence
            One value per row.
        replace : bool, optional
            Overwrite an existing column of the same name.

        Raises
        ------
        DuplicateColumn
            If ``column`` exists and ``replace`` is False.
        LengthMismatch
            If ``len(values)`` differs from the row count.
        """
        if column == NAME:
            raise DuplicateColumn(column)
        if column in self._df.columns and not replace:
            raise DuplicateColumn(column)
        s = to_series(column, values)
        if len(s) != self._df.height:
            raise LengthMismatch(column, self._df.height, len(s))
        return AttributeTable(self._df.with_columns(s), kind=self.kind)

    def drop_columns(self, columns: Iterable[str]) -> "AttributeTable":
        cols = [c for c in columns if c != NAME]
        for c in cols:
            self._require(c)
        return AttributeTable(self._df.drop(cols), kind=self.kind)

    def select(self, columns: Iterable[str]) -> "AttributeTable":
        """Keep ``name`` plus ``columns`` in the given order."""
        cols = [c for c in columns if c != NAME]
        for c in cols:
            self._require(c)
        return AttributeTable(self._df.select([NAME] + cols), kind=self.kind)

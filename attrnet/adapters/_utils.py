from __future__ import annotations

import warnings
from enum import Enum
from typing import Any, Iterable

import numpy as np

from ..core.measures import EDGE_RESERVED
from ..errors import LossyConversionWarning

_SCALARS = (str, bool, int, float, type(None))


def _serialize_value(v: Any) -> Any:
    if isinstance(v, Enum):
        return v.name
    if isinstance(v, np.generic):
        return v.item()
    return v


def rows_to_columns(rows: Iterable[dict], *, skip: Iterable[str] = (), what: str = "node") -> dict:
    """
    Turn per-entity attribute dicts into ``{column: list}``.

    Keys absent from a row become ``None``. Columns holding values that an
    attribute table cannot store (lists, dicts, objects) are dropped with a
    :class:`LossyConversionWarning`.
    """
    skip = set(skip)
    rows = list(rows)
    keys: list = []
    for r in rows:
        for k in r:
            if k not in skip and k not in keys:
                keys.append(k)
    cols = {}
    dropped = []
    for k in keys:
        values = [_serialize_value(r.get(k)) for r in rows]
        if all(isinstance(v, _SCALARS) for v in values):
            cols[str(k)] = values
        else:
            dropped.append(k)
    if dropped:
        warnings.warn(
            f"{what} attributes {dropped} hold non-scalar values and were not imported",
            category=LossyConversionWarning,
            stacklevel=3,
        )
    return cols


def public_row(row: dict, public_only: bool) -> dict:
    if not public_only:
        return dict(row)
    return {k: v for k, v in row.items() if not str(k).startswith("__")}


def weight_skip(weight: str | None, weighted: bool, present: bool) -> set:
    """
    Edge attributes to leave out of the static columns on import.

    ``weight`` is skipped when it became the graph weights. When only some
    edges carry it, it stays a static column, unless its name is reserved,
    in which case it is dropped with a :class:`LossyConversionWarning`.
    """
    if weight is None or weighted:
        return {weight} - {None}
    if present and weight in EDGE_RESERVED:
        warnings.warn(
            f"edge attribute {weight!r} is missing on some edges; "
            "it was not used as weights and was not imported",
            category=LossyConversionWarning,
            stacklevel=3,
        )
    return set()

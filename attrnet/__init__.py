# attrnet/__init__.py
"""attrnet: graphs with synchronised, recomputable node and edge attribute tables."""
from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from typing import Any

from .errors import (
    AmbiguousLabel,
    AttrNetError,
    DerivedMeasureError,
    DuplicateColumn,
    DuplicateIdentifier,
    EngineNotAvailable,
    ExpressionSyntaxError,
    LengthMismatch,
    LossyConversionWarning,
    NotFound,
    ReservedColumn,
    StaticColumnWarning,
    TypeMismatch,
    UnknownColumn,
)

# Lazily exposed submodules (imported on first attribute access)
_lazy_submodules = {
    "core": "attrnet.core",
    "engines": "attrnet.engines",
    "algorithms": "attrnet.algorithms",
    "adapters": "attrnet.adapters",
    # adapter modules (direct convenience)
    "networkx": "attrnet.adapters.networkx",
    "igraph": "attrnet.adapters.igraph",
    "dataframe": "attrnet.adapters.dataframe",
}

# Curated top-level symbols (lazy). name -> (module, attribute)
_lazy_symbols: dict[str, tuple[str, str]] = {
    # Core
    "Network": ("attrnet.core.network", "Network"),
    "GraphHandle": ("attrnet.core.graph", "GraphHandle"),
    "EdgeSubsetMode": ("attrnet.core.graph", "EdgeSubsetMode"),
    "AttributeTable": ("attrnet.core.table", "AttributeTable"),
    "MeasureRegistry": ("attrnet.core.measures", "MeasureRegistry"),
    "MeasureKind": ("attrnet.core.measures", "MeasureKind"),

    # Polars tables
    "from_dataframes": ("attrnet.adapters.dataframe", "from_dataframes"),
    "to_dataframes": ("attrnet.adapters.dataframe", "to_dataframes"),

    # NetworkX adapter
    "to_nx": ("attrnet.adapters.networkx", "to_networkx"),
    "from_nx": ("attrnet.adapters.networkx", "from_networkx"),

    # igraph adapter (optional dependency)
    "to_igraph": ("attrnet.adapters.igraph", "to_igraph"),
    "from_igraph": ("attrnet.adapters.igraph", "from_igraph"),
}

__all__ = sorted(
    set(list(_lazy_submodules) + list(_lazy_symbols))
    | {
        "AmbiguousLabel", "AttrNetError", "DerivedMeasureError", "DuplicateColumn",
        "DuplicateIdentifier", "EngineNotAvailable", "ExpressionSyntaxError",
        "LengthMismatch", "LossyConversionWarning", "NotFound", "ReservedColumn",
        "StaticColumnWarning", "TypeMismatch", "UnknownColumn",
    }
)


def __getattr__(name: str) -> Any:  # PEP 562: lazy attribute resolution
    if name in _lazy_submodules:
        return import_module(_lazy_submodules[name])
    if name in _lazy_symbols:
        mod, attr = _lazy_symbols[name]
        return getattr(import_module(mod), attr)
    raise AttributeError(name)


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(__all__))


try:
    __version__ = _pkg_version("attrnet")
except PackageNotFoundError:
    __version__ = "0.0.0"

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator, Mapping

from ..errors import DerivedMeasureError, DuplicateColumn, LengthMismatch, ReservedColumn, UnknownColumn

if TYPE_CHECKING:
    from .graph import GraphHandle


class MeasureKind(str, Enum):
    """Entity kind a derived measure is aligned to.

    Attributes:
        NODE: One value per node, in node order
        EDGE: One value per edge, in edge order
    """

    NODE = "node"
    EDGE = "edge"


NODE_RESERVED = frozenset({"name"})
EDGE_RESERVED = frozenset({"name", "source", "target", "weight"})

MeasureFn = Callable[["GraphHandle"], object]


def reserved_columns(kind) -> frozenset:
    return NODE_RESERVED if MeasureKind(kind) is MeasureKind.NODE else EDGE_RESERVED


class MeasureRegistry:
    """
    Named derived-measure functions, partitioned by entity kind.

    A registry is an immutable value: :meth:`register` and :meth:`unregister`
    return new registries, so Network objects can share one safely.

    Each function receives the current :class:`~attrnet.core.graph.GraphHandle`
    and returns one value per node (``NODE``) or per edge (``EDGE``).
    Functions are expected to be deterministic for a given topology; this is
    not checked.

    Parameters
    ----------
    node : Mapping[str, Callable], optional
    edge : Mapping[str, Callable], optional
    """

    __slots__ = ("_fns",)

    def __init__(self, node: Mapping[str, MeasureFn] | None = None,
                 edge: Mapping[str, MeasureFn] | None = None):
        fns = {MeasureKind.NODE: {}, MeasureKind.EDGE: {}}
        for kind, mapping in ((MeasureKind.NODE, node), (MeasureKind.EDGE, edge)):
            for name, fn in (mapping or {}).items():
                self._validate(fns, name, kind, fn)
                fns[kind][name] = fn
        self._fns = fns

    @staticmethod
    def _validate(fns, name, kind, fn) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Measure name must be a non-empty string, got {name!r}")
        if name in reserved_columns(kind):
            raise ReservedColumn(name)
        if name in fns[kind]:
            raise DuplicateColumn(name)
        if not callable(fn):
            raise TypeError(f"Measure {name!r} is not callable")

    def register(self, name: str, kind, fn: MeasureFn) -> "MeasureRegistry":
        """
        Return a new registry with ``fn`` registered under ``name``.

        Raises
        ------
        DuplicateColumn
            If ``name`` is already registered for ``kind``.
        ReservedColumn
            If ``name`` is a structural column.
        """
        kind = MeasureKind(kind)
        self._validate(self._fns, name, kind, fn)
        node = dict(self._fns[MeasureKind.NODE])
        edge = dict(self._fns[MeasureKind.EDGE])
        (node if kind is MeasureKind.NODE else edge)[name] = fn
        return MeasureRegistry(node=node, edge=edge)

    def unregister(self, name: str, kind) -> "MeasureRegistry":
        kind = MeasureKind(kind)
        if name not in self._fns[kind]:
            raise UnknownColumn(name, list(self._fns[kind]))
        node = dict(self._fns[MeasureKind.NODE])
        edge = dict(self._fns[MeasureKind.EDGE])
        del (node if kind is MeasureKind.NODE else edge)[name]
        return MeasureRegistry(node=node, edge=edge)

    def names(self, kind) -> list[str]:
        return list(self._fns[MeasureKind(kind)])

    def get(self, name: str, kind) -> MeasureFn:
        kind = MeasureKind(kind)
        try:
            return self._fns[kind][name]
        except KeyError:
            raise UnknownColumn(name, list(self._fns[kind])) from None

    def items(self, kind) -> Iterator[tuple[str, MeasureFn]]:
        return iter(list(self._fns[MeasureKind(kind)].items()))

    def __contains__(self, name) -> bool:
        return any(name in fns for fns in self._fns.values())

    def __len__(self) -> int:
        return sum(len(fns) for fns in self._fns.values())

    def __repr__(self) -> str:
        return f"MeasureRegistry(node={self.names('node')}, edge={self.names('edge')})"

    def recompute(self, graph: "GraphHandle") -> dict:
        """
        Evaluate every registered function against ``graph``.

        Parameters
        ----------
        graph : GraphHandle

        Returns
        -------
        dict
            ``{MeasureKind.NODE: {name: list}, MeasureKind.EDGE: {name: list}}``.

        Raises
        ------
        DerivedMeasureError
            If a function raises; the original exception is chained.
        LengthMismatch
            If a function returns the wrong number of values.

        Notes
        -----
        Nothing is returned until every function has succeeded, so callers
        never observe a partial refresh.
        """
        expected = {MeasureKind.NODE: graph.n_nodes, MeasureKind.EDGE: graph.n_edges}
        out = {MeasureKind.NODE: {}, MeasureKind.EDGE: {}}
        for kind in MeasureKind:
            for name, fn in self._fns[kind].items():
                try:
                    values = fn(graph)
                    if isinstance(values, Mapping):
                        # keyed by node or edge index
                        values = [values[i] for i in range(expected[kind])]
                    values = values.tolist() if hasattr(values, "tolist") else list(values)
                except Exception as e:
                    raise DerivedMeasureError(name, kind.value, e) from e
                if len(values) != expected[kind]:
                    raise LengthMismatch(name, expected[kind], len(values))
                out[kind][name] = values
        return out

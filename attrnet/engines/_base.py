from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.graph import GraphHandle


class GraphEngine(ABC):
    """
    Bridge between a :class:`~attrnet.core.graph.GraphHandle` and a graph library.

    Engines never store state of their own: the backend graph built by
    :meth:`build` is cached on the (immutable) handle, so repeated measures on
    the same topology reuse one conversion.

    Every measure returns a plain ``list`` aligned with node order (or edge
    order for edge measures).
    """

    name: str = ""

    @abstractmethod
    def build(self, graph: "GraphHandle", *, simple: bool = False) -> Any:
        """Convert ``graph`` into the backend's graph type.

        Node ``i`` of the handle must be vertex ``i`` of the backend graph.
        With ``simple=True`` parallel edges are collapsed (min weight kept).
        """

    @abstractmethod
    def degree(self, graph: "GraphHandle", mode: str = "all", loops: bool = True) -> list: ...

    @abstractmethod
    def strength(self, graph: "GraphHandle", mode: str = "all") -> list: ...

    @abstractmethod
    def betweenness(self, graph: "GraphHandle", normalized: bool = True, weighted: bool = False) -> list: ...

    @abstractmethod
    def closeness(self, graph: "GraphHandle", weighted: bool = False) -> list: ...

    @abstractmethod
    def eigenvector(self, graph: "GraphHandle", weighted: bool = False) -> list: ...

    @abstractmethod
    def pagerank(self, graph: "GraphHandle", damping: float = 0.85, weighted: bool = False) -> list: ...

    @abstractmethod
    def local_clustering(self, graph: "GraphHandle") -> list: ...

    @abstractmethod
    def edge_betweenness(self, graph: "GraphHandle", normalized: bool = True, weighted: bool = False) -> list: ...

    @abstractmethod
    def shortest_path_lengths(self, graph: "GraphHandle", source: int, weighted: bool = False) -> list:
        """Distance from ``source`` to every node; ``inf`` when unreachable."""

    def cached_build(self, graph: "GraphHandle", *, simple: bool = False):
        key = ("backend", self.name, bool(simple))
        cache = graph._cache
        if key not in cache:
            cache[key] = self.build(graph, simple=simple)
        return cache[key]

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

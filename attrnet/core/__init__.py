from .graph import EdgeSubsetMode, GraphHandle, GraphTransform, NeighborMode
from .measures import MeasureKind, MeasureRegistry
from .network import Network
from .query import ExpressionEvaluator, PolarsExpressionEvaluator
from .table import AttributeTable

__all__ = [
    "AttributeTable",
    "EdgeSubsetMode",
    "ExpressionEvaluator",
    "GraphHandle",
    "GraphTransform",
    "MeasureKind",
    "MeasureRegistry",
    "NeighborMode",
    "Network",
    "PolarsExpressionEvaluator",
]

from importlib import import_module, util

from ..errors import EngineNotAvailable
from ._base import GraphEngine

__all__ = ["GraphEngine", "available_engines", "get_engine", "DEFAULT_ENGINE"]

DEFAULT_ENGINE = "networkx"

# name -> (import name, submodule, class_name)
_BACKENDS = {
    "networkx": ("networkx", ".networkx", "NetworkXEngine"),
    "igraph": ("igraph", ".igraph", "IGraphEngine"),  # pip pkg is python-igraph; import is igraph
}

_INSTANCES: dict = {}


def _is_installed(modname: str) -> bool:
    return util.find_spec(modname) is not None


def available_engines() -> dict:
    """Map each known engine name to whether its library can be imported."""
    return {name: _is_installed(mod) for name, (mod, _, _) in _BACKENDS.items()}


def get_engine(name: "str | GraphEngine | None" = None) -> GraphEngine:
    """
    Return the engine registered under ``name`` (default: NetworkX).

    Engines are stateless, so one shared instance per name is handed out.
    A :class:`GraphEngine` instance is returned unchanged.

    Raises
    ------
    ValueError
        If ``name`` is not a known engine.
    EngineNotAvailable
        If the engine's library is not installed.
    """
    if isinstance(name, GraphEngine):
        return name
    name = (name or DEFAULT_ENGINE).lower()
    if name in _INSTANCES:
        return _INSTANCES[name]
    if name not in _BACKENDS:
        raise ValueError(f"Unknown engine '{name}'; known engines: {sorted(_BACKENDS)}")
    modname, submod, cls = _BACKENDS[name]
    if not _is_installed(modname):
        raise EngineNotAvailable(
            f"Optional engine '{name}' is not installed. "
            f"Install with `pip install attrnet[{name}]`."
        )
    mod = import_module(__name__ + submod)
    engine = _INSTANCES[name] = getattr(mod, cls)()
    return engine

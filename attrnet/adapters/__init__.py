from importlib import import_module, util

from ..errors import EngineNotAvailable

# name -> (import name, submodule)
_ADAPTERS = {
    "networkx": ("networkx", ".networkx"),
    "igraph": ("igraph", ".igraph"),  # pip pkg is python-igraph; import is igraph
    "dataframe": ("polars", ".dataframe"),
}


def available_adapters() -> dict:
    """Map each adapter name to whether its library can be imported."""
    return {name: util.find_spec(mod) is not None for name, (mod, _) in _ADAPTERS.items()}


def load_adapter(name: str):
    """
    Import and return the adapter module registered under ``name``.

    Raises
    ------
    ValueError
        If ``name`` is not a known adapter.
    EngineNotAvailable
        If the adapter's library is not installed.
    """
    if name not in _ADAPTERS:
        raise ValueError(f"Unknown adapter '{name}'; known adapters: {sorted(_ADAPTERS)}")
    modname, submod = _ADAPTERS[name]
    if util.find_spec(modname) is None:
        raise EngineNotAvailable(
            f"Optional adapter '{name}' is not installed. "
            f"Install with `pip install attrnet[{name}]`."
        )
    return import_module(__name__ + submod)

"""Exception and warning types raised by attrnet.

Every error derives from :class:`AttrNetError` and from the builtin that best
matches it, so callers can catch either ``KeyError`` or ``UnknownColumn``.
"""
from __future__ import annotations


class AttrNetError(Exception):
    """Base class for all attrnet errors."""


class DuplicateIdentifier(AttrNetError, ValueError):
    """Entity identifiers in the ``name`` column are not unique."""

    def __init__(self, duplicates, kind: str = "node"):
        self.duplicates = list(duplicates)
        self.kind = kind
        shown = ", ".join(repr(d) for d in self.duplicates[:5])
        more = "" if len(self.duplicates) <= 5 else f" (+{len(self.duplicates) - 5} more)"
        super().__init__(f"Duplicate {kind} identifiers: {shown}{more}")


class UnknownColumn(AttrNetError, KeyError):
    """A column referenced by name does not exist."""

    def __init__(self, column, available=()):
        self.column = column
        self.available = list(available)
        super().__init__(column)

    def __str__(self):
        if self.available:
            return f"Unknown column {self.column!r}; available: {self.available}"
        return f"Unknown column {self.column!r}"


class LengthMismatch(AttrNetError, ValueError):
    """A column's length does not match the entity count."""

    def __init__(self, column, expected: int, got: int):
        self.column = column
        self.expected = expected
        self.got = got
        super().__init__(
            f"Column {column!r} has {got} values, expected {expected}"
        )


class DuplicateColumn(AttrNetError, ValueError):
    """A column with this name already exists."""

    def __init__(self, column):
        self.column = column
        super().__init__(
            f"Column {column!r} already exists; pass replace=True to overwrite it"
        )


class ReservedColumn(AttrNetError, ValueError):
    """A structural column (``name``, ``source``, ...) cannot be written."""

    def __init__(self, column):
        self.column = column
        super().__init__(f"Column {column!r} is reserved for graph structure")


class TypeMismatch(AttrNetError, TypeError):
    """Values of incompatible types were compared or stored."""


class ExpressionSyntaxError(AttrNetError, ValueError):
    """A filter predicate could not be parsed."""

    def __init__(self, message: str, expression: str = "", position: int | None = None):
        self.expression = expression
        self.position = position
        if position is not None and expression:
            message = f"{message} at position {position}: {expression!r}"
        super().__init__(message)


class AmbiguousLabel(AttrNetError, LookupError):
    """A label resolves to more than one row."""

    def __init__(self, value, column, matches):
        self.value = value
        self.column = column
        self.matches = list(matches)
        super().__init__(
            f"Value {value!r} in column {column!r} matches {len(self.matches)} rows: {self.matches}"
        )


class NotFound(AttrNetError, LookupError):
    """A label or index does not identify any entity."""


class DerivedMeasureError(AttrNetError, RuntimeError):
    """A registered measure function raised during recomputation."""

    def __init__(self, name: str, kind: str, cause: BaseException):
        self.name = name
        self.kind = kind
        self.cause = cause
        super().__init__(
            f"{kind} measure {name!r} failed: {type(cause).__name__}: {cause}"
        )


class EngineNotAvailable(AttrNetError, ModuleNotFoundError):
    """The requested graph engine library is not installed."""


class StaticColumnWarning(UserWarning):
    """Static columns survived (or were dropped by) a structural change without recomputation."""


class LossyConversionWarning(UserWarning):
    """Export to a graph engine could not represent every edge."""

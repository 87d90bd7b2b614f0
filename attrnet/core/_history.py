from __future__ import annotations

import json
import time
from datetime import datetime, timezone

import numpy as np
import polars as pl


_CORE_FIELDS = ("version", "ts_utc", "mono_ns", "op")


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def jsonify(x):
    # Make args JSON-safe & compact.
    if x is None or isinstance(x, (bool, int, float, str)):
        return x
    if isinstance(x, (set, frozenset)):
        return sorted((jsonify(v) for v in x), key=repr)
    if isinstance(x, (list, tuple)):
        return [jsonify(v) for v in x]
    if isinstance(x, dict):
        return {str(k): jsonify(v) for k, v in x.items()}
    if isinstance(x, np.generic):
        return x.item()
    if hasattr(x, "value") and isinstance(getattr(x, "value"), str):  # Enums
        return x.value
    # Polars, callables, or other heavy objects -> just a tag
    return f"<<{type(x).__name__}>>"


class History:
    """
    Append-only operation log shared by a Network object and its descendants.

    A history is never modified after creation: :meth:`record` returns a new
    history holding the parent's events plus one more, so deriving a Network
    leaves the parent's log untouched.
    """

    __slots__ = ("enabled", "_events", "_clock0")

    def __init__(self, enabled: bool = True, events=(), clock0: int | None = None):
        self.enabled = bool(enabled)
        self._events = tuple(events)
        self._clock0 = time.perf_counter_ns() if clock0 is None else clock0

    def record(self, op: str, **fields) -> "History":
        if not self.enabled:
            return self
        evt = {
            "version": len(self._events) + 1,
            "ts_utc": _utcnow_iso(),                    # ISO-8601 with Z
            "mono_ns": time.perf_counter_ns() - self._clock0,
            "op": op,
        }
        for k, v in fields.items():
            evt[k] = jsonify(v)
        return History(self.enabled, self._events + (evt,), self._clock0)

    def __len__(self) -> int:
        return len(self._events)

    def events(self) -> list[dict]:
        return [dict(e) for e in self._events]

    def to_polars(self) -> pl.DataFrame:
        # payloads are stored as JSON text so every event fits one schema
        rows = [
            {k: (v if k in _CORE_FIELDS else json.dumps(v)) for k, v in e.items()}
            for e in self._events
        ]
        return pl.DataFrame(rows, infer_schema_length=None) if rows else pl.DataFrame()

    def export(self, path: str) -> int:
        """
        Write the history to disk.

        Parameters
        ----------
        path : str
            Output path. Supported extensions: '.parquet', '.ndjson' (a.k.a. '.jsonl'),
            '.json', '.csv'. Unknown extensions default to Parquet by appending '.parquet'.

        Returns
        -------
        int
            Number of events written. Returns 0 if the history is empty.
        """
        if not self._events:
            return 0
        p = str(path).lower()
        if p.endswith(".ndjson") or p.endswith(".jsonl"):
            with open(path, "w", encoding="utf-8") as f:
                for e in self._events:
                    f.write(json.dumps(e, ensure_ascii=False) + "\n")
            return len(self._events)
        if p.endswith(".json"):
            with open(path, "w", encoding="utf-8") as f:
                json.dump(list(self._events), f, ensure_ascii=False)
            return len(self._events)
        df = self.to_polars()
        if p.endswith(".csv"):
            df.write_csv(path)
        elif p.endswith(".parquet"):
            df.write_parquet(path)
        else:
            df.write_parquet(str(path) + ".parquet")
        return len(self._events)

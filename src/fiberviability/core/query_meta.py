"""
Per-request query metadata capture.

This module provides a contextvar-backed recorder used by node stores to report, per query:
- intent: near/nearest/bounds/search/statistics/ping
- backend: bigquery/local
- row count, elapsed milliseconds, and the warehouse job id when there is one

The API layer attaches the captured list to response `meta` for transparency.
Each request gets its own recorder, so concurrent requests never share entries.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class QueryMeta:
    queries: list[dict[str, Any]] = field(default_factory=list)

    def record(self, intent: str, payload: dict[str, Any]) -> None:
        if not intent:
            return
        self.queries.append({"intent": intent, **payload})


_query_meta_var: contextvars.ContextVar[QueryMeta | None] = contextvars.ContextVar(
    "fiberviability_query_meta", default=None
)


def record_query(intent: str, payload: dict[str, Any]) -> None:
    meta = _query_meta_var.get()
    if meta is None:
        return
    meta.record(intent, payload)


@contextmanager
def capture_query_meta() -> Iterator[QueryMeta]:
    meta = QueryMeta()
    token = _query_meta_var.set(meta)
    try:
        yield meta
    finally:
        _query_meta_var.reset(token)

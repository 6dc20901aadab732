"""Correlation identifiers carried alongside a request."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import NamedTuple


@dataclass(frozen=True)
class CorrelationContext:
    """Immutable carrier of request, session, user and trace identifiers."""

    request_id: str = ""
    session_id: str = ""
    user_id: str = ""
    trace_id: str = ""

    def with_request_id(self, request_id: str) -> CorrelationContext:
        return dataclasses.replace(self, request_id=request_id)

    def with_session_id(self, session_id: str) -> CorrelationContext:
        return dataclasses.replace(self, session_id=session_id)

    def with_user_id(self, user_id: str) -> CorrelationContext:
        return dataclasses.replace(self, user_id=user_id)

    def with_trace_id(self, trace_id: str) -> CorrelationContext:
        return dataclasses.replace(self, trace_id=trace_id)


class CorrelationIDs(NamedTuple):
    request_id: str
    session_id: str
    user_id: str
    trace_id: str


def extract_correlation_ids(
    ctx: CorrelationContext | None, metadata: Mapping[str, str] | None = None
) -> CorrelationIDs:
    """Take IDs from the context, then let non-empty metadata values override them."""
    ids = {"request_id": "", "session_id": "", "user_id": "", "trace_id": ""}
    if ctx is not None:
        ids.update((key, getattr(ctx, key)) for key in ids)
    if metadata:
        for key in list(ids):
            value = metadata.get(key)
            if value:
                ids[key] = value
    return CorrelationIDs(**ids)
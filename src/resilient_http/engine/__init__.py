"""
Request execution engine.

Components:
- ExecutionEngine: Per-call attempt loop (middleware -> transport -> retry decision)
- AbortController: Cooperative cancellation signal
- build_draft: Fresh RequestDraft per attempt from an immutable CallConfig
"""

from resilient_http.engine.abort import AbortController
from resilient_http.engine.draft import build_draft, join_url, serialize_body
from resilient_http.engine.execution import ExecutionEngine

__all__ = [
    "AbortController",
    "ExecutionEngine",
    "build_draft",
    "join_url",
    "serialize_body",
]

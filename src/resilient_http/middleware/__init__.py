"""
Request middleware.

Components:
- MiddlewarePipeline: Ordered, named, mutable list of request-transforming steps
- MiddlewareResult: Value returned by a step (draft + stop_propagation)
- builtins: static_headers, bearer_auth, request_id_header
"""

from resilient_http.middleware.builtins import bearer_auth, request_id_header, static_headers
from resilient_http.middleware.pipeline import (
    MiddlewareEntry,
    MiddlewarePipeline,
    MiddlewareResult,
    MiddlewareStep,
    PipelineResult,
)

__all__ = [
    "MiddlewareEntry",
    "MiddlewarePipeline",
    "MiddlewareResult",
    "MiddlewareStep",
    "PipelineResult",
    "bearer_auth",
    "request_id_header",
    "static_headers",
]

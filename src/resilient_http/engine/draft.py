"""
Fresh RequestDraft construction from an immutable CallConfig.

Called once per attempt so middleware mutations never accumulate across
retries.
"""

import json
from typing import Any, Mapping, Optional

import httpx

from resilient_http.models.request_models import CallConfig, RequestDraft

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


def join_url(base_url: str, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Join base URL and endpoint, then merge query params.

    Absolute endpoints (with a scheme) are used as-is.
    """
    endpoint_url = httpx.URL(endpoint)
    if endpoint_url.is_absolute_url or not base_url:
        url = endpoint_url
    else:
        url = httpx.URL(f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}")

    if params:
        url = url.copy_merge_params(params)
    return str(url)


def serialize_body(body: Any, headers: httpx.Headers) -> Optional[bytes]:
    """
    Serialize a call body, setting a Content-Type when none was given.

    bytes pass through, str is UTF-8 text, anything else is JSON.
    """
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        headers.setdefault("content-type", TEXT_CONTENT_TYPE)
        return body.encode("utf-8")

    headers.setdefault("content-type", JSON_CONTENT_TYPE)
    return json.dumps(body).encode("utf-8")


def build_draft(config: CallConfig) -> RequestDraft:
    """Build the draft for one attempt of config."""
    headers = httpx.Headers(config.headers)
    body = serialize_body(config.body, headers)
    return RequestDraft(
        method=config.method,
        url=join_url(config.base_url, config.endpoint, config.params),
        headers=headers,
        body=body,
    )

"""
Response-side data models.

RawResponse is the transport-neutral result of one attempt. It is what
on_error callbacks, retry-after callbacks and HTTPError see, and what the
RESPONSE conversion hands back unchanged.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx


@dataclass(frozen=True)
class RawResponse:
    """
    Status, headers and fully-read body of one HTTP attempt.

    Attributes:
        status_code: HTTP status code
        headers: Case-insensitive response headers
        content: Raw body bytes
        url: Final request URL
        method: HTTP method of the request that produced this response
        elapsed: Seconds spent waiting for the transport
    """

    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes = b""
    url: str = ""
    method: str = "GET"
    elapsed: float = 0.0

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def charset(self) -> Optional[str]:
        for param in self.content_type.split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip('"')
        return None

    @property
    def text(self) -> str:
        return self.content.decode(self.charset or "utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.content)

    def __repr__(self) -> str:
        return f"RawResponse(status_code={self.status_code}, method={self.method}, url={self.url})"

"""
Client facade.

Merges per-call options with client-wide defaults and dispatches into the
ExecutionEngine. Holds the client's middleware pipeline, which lives from
construction until close().

Example:
    async with RequestClient(ClientConfig(base_url="https://api.example.com", num_retries=3)) as client:
        client.use("auth", bearer_auth(tokens.current))
        user = await client.get("/users/42")
"""

import random
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import structlog

from resilient_http.config import Settings
from resilient_http.conversion.converter import Converter, convert
from resilient_http.engine.abort import AbortController
from resilient_http.engine.execution import ExecutionEngine
from resilient_http.middleware.pipeline import MiddlewarePipeline, MiddlewareStep
from resilient_http.models.callbacks import Callbacks
from resilient_http.models.enums import ConvertType
from resilient_http.models.request_models import CallConfig, RetryAfterCallback, RetryOptions
from resilient_http.retry.metadata import CallOutcome
from resilient_http.transport.base_transport import BaseTransport
from resilient_http.transport.httpx_transport import HttpxTransport

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ClientConfig:
    """
    Client-wide defaults applied to every call.

    Attributes:
        base_url: Prefix joined with every relative endpoint
        headers: Base headers (per-call headers override by name)
        num_retries: Retries after the first attempt
        timeout: Per-attempt timeout in seconds (None disables it)
        retry_after_codes: Statuses whose Retry-After header sets the delay
        default_callbacks: Hooks used where a call supplies none
        default_retry_options: Backoff used where a call supplies none
        convert_type: Default body conversion
        follow_redirects: Whether the default HttpxTransport follows 3xx responses.
            True everywhere (plain construction, from_settings and HttpxTransport),
            so a redirect is only seen as an HTTPError when explicitly disabled.
            Ignored when a transport is passed to RequestClient.
    """

    base_url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    num_retries: int = 0
    timeout: Optional[float] = None
    retry_after_codes: frozenset[int] = frozenset({413, 429, 503})
    default_callbacks: Callbacks = field(default_factory=Callbacks)
    default_retry_options: RetryOptions = field(default_factory=RetryOptions)
    convert_type: ConvertType = ConvertType.JSON
    follow_redirects: bool = True

    def __post_init__(self) -> None:
        if self.num_retries < 0:
            raise ValueError("num_retries must be >= 0")
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "retry_after_codes", frozenset(self.retry_after_codes))

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "ClientConfig":
        """Build a config from environment-driven Settings."""
        values: dict[str, Any] = {
            "base_url": settings.BASE_URL,
            "headers": settings.DEFAULT_HEADERS,
            "num_retries": settings.NUM_RETRIES,
            "timeout": settings.TIMEOUT,
            "retry_after_codes": frozenset(settings.RETRY_AFTER_CODES),
            "default_retry_options": RetryOptions(
                strategy=settings.RETRY_STRATEGY,
                min_delay=settings.RETRY_MIN_DELAY,
                max_delay=settings.RETRY_MAX_DELAY,
                do_jitter=settings.RETRY_JITTER,
            ),
            "follow_redirects": settings.FOLLOW_REDIRECTS,
        }
        values.update(overrides)
        return cls(**values)


class RequestClient:
    """
    Resilient HTTP client.

    Attributes:
        config: Client-wide defaults
        transport: Transport shared by all calls
        middleware: Middleware pipeline shared by all calls
        engine: Execution engine running the attempt loop
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[BaseTransport] = None,
        converter: Converter = convert,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client-wide defaults (ClientConfig() when omitted)
            transport: Transport to send requests with (HttpxTransport honouring
                config.follow_redirects when omitted)
            converter: Body converter (built-in convert when omitted)
            rng: Random source for jitter, mainly for tests
        """
        self.config = config or ClientConfig()
        self.transport = transport or HttpxTransport(
            follow_redirects=self.config.follow_redirects
        )
        self.middleware = MiddlewarePipeline()
        self.engine = ExecutionEngine(
            self.transport, self.middleware, converter=converter, rng=rng
        )
        self._closed = False

        logger.info(
            "Request client initialized",
            base_url=self.config.base_url,
            num_retries=self.config.num_retries,
            timeout=self.config.timeout,
            transport=repr(self.transport),
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "RequestClient":
        return cls(ClientConfig.from_settings(settings), **kwargs)

    # === Middleware registration ===

    def use(self, name: str, step: MiddlewareStep) -> "RequestClient":
        self._ensure_open()
        self.middleware.use(name, step)
        return self

    def unuse(self, name: str) -> bool:
        return self.middleware.unuse(name)

    # === Calls ===

    def build_call(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        convert_type: Optional[ConvertType] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        callbacks: Optional[Callbacks] = None,
        retry_options: Optional[RetryOptions] = None,
        retry_after_callback: Optional[RetryAfterCallback] = None,
        abort_controller: Optional[AbortController] = None,
        num_retries: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> CallConfig:
        """Merge per-call options over client defaults into a CallConfig."""
        merged_headers = dict(self.config.headers)
        if headers:
            merged_headers.update(headers)

        call_callbacks = (callbacks or Callbacks()).merged_with(self.config.default_callbacks)

        return CallConfig(
            method=method,
            endpoint=endpoint,
            base_url=self.config.base_url,
            headers=merged_headers,
            params=params,
            body=body,
            convert_type=convert_type or self.config.convert_type,
            callbacks=call_callbacks,
            retry_options=retry_options or self.config.default_retry_options,
            retry_after_codes=self.config.retry_after_codes,
            retry_after_callback=retry_after_callback,
            num_retries=self.config.num_retries if num_retries is None else num_retries,
            timeout=self.config.timeout if timeout is None else timeout,
            abort_controller=abort_controller,
        )

    async def request(self, endpoint: str, **options: Any) -> Any:
        """
        Execute one logical call.

        Args:
            endpoint: Path joined with base_url, or an absolute URL
            **options: See build_call()

        Returns:
            Value returned by on_success (the converted body by default)

        Raises:
            HTTPError, NetworkError, AbortError, ConversionError, MiddlewareAbort
        """
        self._ensure_open()
        return await self.engine.execute(self.build_call(endpoint, **options))

    async def request_outcome(self, endpoint: str, **options: Any) -> CallOutcome:
        """Execute one logical call and return its CallOutcome without raising."""
        self._ensure_open()
        return await self.engine.execute_outcome(self.build_call(endpoint, **options))

    async def get(self, endpoint: str, **options: Any) -> Any:
        return await self.request(endpoint, method="GET", **options)

    async def post(self, endpoint: str, **options: Any) -> Any:
        return await self.request(endpoint, method="POST", **options)

    async def put(self, endpoint: str, **options: Any) -> Any:
        return await self.request(endpoint, method="PUT", **options)

    async def patch(self, endpoint: str, **options: Any) -> Any:
        return await self.request(endpoint, method="PATCH", **options)

    async def delete(self, endpoint: str, **options: Any) -> Any:
        return await self.request(endpoint, method="DELETE", **options)

    # === Lifecycle ===

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("RequestClient is closed")

    async def close(self) -> None:
        """Dispose of the client: drop middleware and close the transport."""
        if self._closed:
            return
        self._closed = True
        self.middleware.clear()
        await self.transport.close()
        logger.debug("Request client closed")

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.config.base_url!r}, "
            f"num_retries={self.config.num_retries})"
        )

"""
Hardened HTTP call path used by every direct-REST gateway.

``fetch_with_timeout`` bounds a single request, ``with_retry`` re-runs an
operation on transient failures with a linear backoff, and ``RestTransport``
composes both into JSON ``get``/``post``/``put``/``delete`` helpers against a
base URL.
"""
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import aiohttp

from core.logging import get_logger
from dal.errors import DataAccessError, HTTPStatusError, NetworkError, RequestTimeout, is_retryable

logger = get_logger(__name__)

DEFAULT_TIMEOUT_MS = 15_000
MAX_RETRIES = 2
RETRY_DELAY_MS = 1_000

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class TransportResponse:
    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        if not self.text:
            return None
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise DataAccessError(f"Invalid JSON response: {self.text[:200]}") from exc


async def fetch_with_timeout(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    **kwargs: Any,
) -> TransportResponse:
    """Issue one request and read its body within ``timeout_ms``.

    The timeout scope is left on every path, so no timer survives the call.

    Raises:
        RequestTimeout: no complete response within ``timeout_ms``
        NetworkError: the connection failed
    """
    try:
        async with asyncio.timeout(timeout_ms / 1000):
            async with session.request(method, url, **kwargs) as resp:
                return TransportResponse(status=resp.status, text=await resp.text())
    except TimeoutError as exc:
        raise RequestTimeout(f"{method} {url} timed out after {timeout_ms}ms") from exc
    except aiohttp.ClientError as exc:
        raise NetworkError(f"{method} {url} failed: {exc}") from exc


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = MAX_RETRIES,
    retry_delay_ms: int = RETRY_DELAY_MS,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``operation``, retrying transient failures up to ``max_retries`` times.

    The n-th retry waits ``retry_delay_ms * n``. Non-retryable errors are raised
    on first occurrence; once retries are exhausted the last error is raised.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if not is_retryable(exc):
                raise
            if attempt >= max_retries:
                logger.error("Giving up after %s attempts: %s", attempt + 1, exc)
                raise
            attempt += 1
            delay_ms = retry_delay_ms * attempt
            logger.warning(
                "Attempt %s/%s failed: %s. Retrying in %sms...", attempt, max_retries + 1, exc, delay_ms
            )
            await sleep(delay_ms / 1000)


class RestTransport:
    """JSON REST client bound to one base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_retries: int = MAX_RETRIES,
        retry_delay_ms: int = RETRY_DELAY_MS,
        admin_api_key: str = "",
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self.admin_api_key = admin_api_key
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self, extra: Optional[Dict[str, str]] = None, json_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.admin_api_key:
            headers["Authorization"] = f"Bearer {self.admin_api_key}"
        if extra:
            headers.update(extra)
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        form: Optional[aiohttp.FormData] = None,
    ) -> Any:
        """Single attempt; returns the decoded JSON body or None when empty."""
        kwargs: Dict[str, Any] = {}
        if form is not None:
            kwargs["data"] = form
        elif body is not None:
            kwargs["data"] = json.dumps(body, default=str)

        response = await fetch_with_timeout(
            self._get_session(),
            method,
            self.url(path),
            timeout_ms=self.timeout_ms,
            headers=self._headers(headers, json_body=form is None and body is not None),
            **kwargs,
        )
        if not response.ok:
            raise HTTPStatusError(response.status, response.text or f"HTTP {response.status}")
        return response.json()

    async def _retried(self, method: str, path: str, body: Any = None, headers: Optional[Dict[str, str]] = None) -> Any:
        # The same headers (idempotency key included) go out on every attempt
        return await with_retry(
            lambda: self.request(method, path, body=body, headers=headers),
            max_retries=self.max_retries,
            retry_delay_ms=self.retry_delay_ms,
            sleep=self._sleep,
        )

    async def get(self, path: str) -> Any:
        return await self._retried("GET", path)

    async def post(self, path: str, body: Any, headers: Optional[Dict[str, str]] = None) -> Any:
        return await self._retried("POST", path, body=body, headers=headers)

    async def put(self, path: str, body: Any) -> Any:
        return await self._retried("PUT", path, body=body)

    async def delete(self, path: str) -> Any:
        return await self._retried("DELETE", path)

    async def upload(self, path: str, form: aiohttp.FormData) -> Any:
        # A consumed multipart body cannot be replayed, so uploads are not retried
        return await self.request("POST", path, form=form)

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

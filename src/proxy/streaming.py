"""
Streaming proxy to the Rossby data server.

Two modes:

- passthrough: ``/metadata`` is fetched in full and handed back unchanged
- streaming: ``/data`` is relayed chunk by chunk as it arrives, so memory
  per request stays bounded whatever the payload size

Backend status and transport failures are raised as gateway errors before
any byte reaches the caller. Nothing is retried.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import httpx

from src.errors import BackendConnectionError, BackendStatusError, ParseError
from src.translation.metadata import MetadataDocument

logger = logging.getLogger(__name__)

METADATA_PATH = "/metadata"
DATA_PATH = "/data"
JSON_MEDIA_TYPE = "application/json"

DEFAULT_CHUNK_SIZE = 64 * 1024

QueryParams = List[Tuple[str, str]]


def _normalize_vars(value: str) -> str:
    return ",".join(name.strip() for name in value.split(",") if name.strip())


# Inbound parameters the gateway understands; everything else is forwarded as-is.
RECOGNIZED_PARAMS = {
    "vars": _normalize_vars,
    "time": str.strip,
    "time_range": str.strip,
}


def build_data_query(params: Iterable[Tuple[str, str]]) -> QueryParams:
    """
    Translate inbound query parameters into the backend ``/data`` query.

    ``vars``, ``time`` and ``time_range`` are normalized (blank values are
    dropped), any other parameter is passed through verbatim and in order,
    and ``format`` is always forced to ``json``.
    """
    query: QueryParams = []
    for key, value in params:
        if key == "format":
            continue
        normalize = RECOGNIZED_PARAMS.get(key)
        if normalize is not None:
            value = normalize(value)
            if not value:
                continue
        query.append((key, value))
    query.append(("format", "json"))
    return query


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _log_proxy_request(url: str, status: Optional[int], started: float, transferred: int) -> None:
    logger.info(
        f"Proxy request completed backend_url={url} backend_status_code={status} "
        f"duration_ms={_elapsed_ms(started)} bytes_transferred={transferred}"
    )


@dataclass(frozen=True)
class ProxiedBody:
    """Fully buffered backend body."""
    content: bytes
    media_type: str = JSON_MEDIA_TYPE


class BackendStream:
    """
    Open backend response whose body has not been read yet.

    ``relay`` (or ``iter_bytes`` to the end, or ``aclose``) releases the
    connection; ``relay`` also releases it when the consumer stops early.
    """

    def __init__(self, response: httpx.Response, url: str, chunk_size: int, started: float):
        self._response = response
        self._url = url
        self._chunk_size = chunk_size
        self._started = started
        self.bytes_transferred = 0

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def media_type(self) -> str:
        return JSON_MEDIA_TYPE

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes(chunk_size=self._chunk_size):
                self.bytes_transferred += len(chunk)
                yield chunk
        except httpx.TransportError as e:
            logger.error(
                f"Backend stream interrupted backend_url={self._url} "
                f"after {self.bytes_transferred} bytes: {e}"
            )
            raise BackendConnectionError(f"Backend stream interrupted: {e}", self._url) from e
        finally:
            await self.aclose()

    async def relay(
        self,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[bytes]:
        """
        ``iter_bytes`` that stops as soon as the downstream client is gone.

        ``is_disconnected`` is polled before each chunk is handed on. The
        backend response is closed however the relay ends: exhausted,
        disconnected, failed or closed by the consumer.
        """
        chunks = self.iter_bytes()
        try:
            async for chunk in chunks:
                if is_disconnected is not None and await is_disconnected():
                    logger.info(
                        f"Client disconnected, closing backend stream backend_url={self._url} "
                        f"after {self.bytes_transferred} bytes"
                    )
                    return
                yield chunk
        finally:
            await chunks.aclose()
            await self.aclose()

    async def aclose(self) -> None:
        if self._response.is_closed:
            return
        await self._response.aclose()
        _log_proxy_request(self._url, self.status_code, self._started, self.bytes_transferred)


class StreamingProxy:
    """
    HTTP client side of the gateway, bound to one backend.

    Holds no per-request state; one instance can serve concurrent requests.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.chunk_size = chunk_size

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _send(self, path: str, params: Optional[QueryParams], stream: bool) -> Tuple[httpx.Response, float]:
        url = self.url_for(path)
        started = time.perf_counter()
        try:
            request = self.client.build_request("GET", url, params=params)
            response = await self.client.send(request, stream=stream)
        except httpx.InvalidURL as e:
            logger.error(f"Invalid backend URL backend_url={url}: {e}")
            raise BackendConnectionError(f"Invalid backend URL: {e}", url) from e
        except httpx.RequestError as e:
            logger.error(
                f"Backend unreachable backend_url={url} duration_ms={_elapsed_ms(started)} "
                f"error_type={type(e).__name__}: {e}"
            )
            raise BackendConnectionError(f"Failed to reach backend: {e}", url) from e

        full_url = str(response.request.url)
        if not response.is_success:
            if stream:
                await response.aclose()
            logger.error(
                f"Backend error backend_url={full_url} backend_status_code={response.status_code} "
                f"duration_ms={_elapsed_ms(started)}"
            )
            raise BackendStatusError(response.status_code, full_url)
        return response, started

    async def fetch_metadata(self) -> ProxiedBody:
        """GET ``/metadata`` and return the body unchanged."""
        response, started = await self._send(METADATA_PATH, None, stream=False)
        _log_proxy_request(str(response.request.url), response.status_code, started, len(response.content))
        return ProxiedBody(content=response.content)

    async def fetch_metadata_document(self) -> MetadataDocument:
        body = await self.fetch_metadata()
        return MetadataDocument.from_bytes(body.content)

    async def open_data_stream(self, params: Iterable[Tuple[str, str]]) -> BackendStream:
        """
        Start a ``/data`` request and return once the backend headers are in.

        Raises:
            BackendStatusError: backend answered non-2xx
            BackendConnectionError: backend unreachable
        """
        query = build_data_query(params)
        response, started = await self._send(DATA_PATH, query, stream=True)
        return BackendStream(response, str(response.request.url), self.chunk_size, started)

    async def fetch_data(
        self,
        variables: Sequence[str],
        time_code: Optional[str] = None,
        extra: Iterable[Tuple[str, str]] = (),
    ) -> Dict[str, Any]:
        """
        Buffered ``/data`` call returning the backend ``data`` mapping.

        Raises:
            ParseError: body is not a JSON object with a ``data`` object
        """
        params: QueryParams = [("vars", ",".join(variables))]
        if time_code is not None:
            params.append(("time", time_code))
        params.extend(extra)

        response, started = await self._send(DATA_PATH, build_data_query(params), stream=False)
        _log_proxy_request(str(response.request.url), response.status_code, started, len(response.content))

        try:
            payload = json.loads(response.content)
        except (UnicodeDecodeError, ValueError) as e:
            raise ParseError(f"Backend data is not valid JSON: {e}", str(response.request.url)) from e
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ParseError("Backend data response has no 'data' object", str(response.request.url))
        return data

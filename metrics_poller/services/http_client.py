"""Swappable HTTP execution layer shared by all collectors."""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ..config.models import HTTPOptions, TLSConfig
from .tls import build_ssl_context


class HTTPClient(ABC):
    """
    Executes prepared requests on behalf of a collector.

    Collectors only build ``httpx.Request`` objects and hand them to
    ``execute``; tests swap in a fake implementation or an
    ``httpx.AsyncClient`` backed by ``httpx.MockTransport``.
    """

    @abstractmethod
    async def execute(self, request: httpx.Request) -> httpx.Response:
        """
        Send a request and return the fully read response.

        Args:
            request: Prepared HTTP request

        Returns:
            httpx.Response: Response with its body loaded

        Raises:
            httpx.HTTPError: Any transport level failure, never retried
        """
        pass

    @abstractmethod
    def get_http_client(self) -> Optional[httpx.AsyncClient]:
        """Return the underlying transport client, if one is configured."""
        pass

    @abstractmethod
    def set_http_client(self, client: Optional[httpx.AsyncClient]) -> None:
        """Replace the underlying transport client."""
        pass

    def prepare(self) -> None:
        """Set up the transport ahead of the first request. No-op by default."""
        pass

    async def aclose(self) -> None:
        """Release transport resources. No-op by default."""
        pass


class RealHTTPClient(HTTPClient):
    """
    Production adapter around a lazily built ``httpx.AsyncClient``.

    The client is built once, on first use, from the TLS options and
    timeouts, then reused by every request and every gather cycle.
    """

    def __init__(
        self,
        tls: Optional[TLSConfig] = None,
        http_options: Optional[HTTPOptions] = None,
        logger: logging.Logger = None
    ):
        """
        Initialize HTTP client.

        Args:
            tls: TLS options (CA, client cert/key, skip verify)
            http_options: Response header and overall request timeouts
            logger: Optional logger instance
        """
        self.tls = tls or TLSConfig()
        self.http_options = http_options or HTTPOptions()
        self.logger = logger or logging.getLogger(__name__)
        self._client: Optional[httpx.AsyncClient] = None
        self._lock = threading.Lock()

    def get_http_client(self) -> Optional[httpx.AsyncClient]:
        return self._client

    def set_http_client(self, client: Optional[httpx.AsyncClient]) -> None:
        with self._lock:
            self._client = client

    def prepare(self) -> None:
        """
        Build the transport if it does not exist yet.

        Raises:
            FileNotFoundError: If a configured TLS file is missing
            ssl.SSLError: If TLS material cannot be loaded
        """
        self._ensure_client()

    def _ensure_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None:
            return client

        with self._lock:
            if self._client is None:
                self._client = self._build_client()
            return self._client

    def _build_client(self) -> httpx.AsyncClient:
        ssl_context = build_ssl_context(self.tls)
        # httpx has no response-header timeout; the read timeout bounds the
        # wait for the first bytes of the response, which covers it
        timeout = httpx.Timeout(
            self.http_options.timeout_s,
            read=self.http_options.response_header_timeout_s
        )

        self.logger.debug(
            "Building HTTP transport",
            extra={
                "custom_ca": bool(self.tls.ca),
                "client_cert": bool(self.tls.cert),
                "insecure_skip_verify": self.tls.insecure_skip_verify,
            }
        )

        return httpx.AsyncClient(
            verify=ssl_context if ssl_context is not None else True,
            timeout=timeout
        )

    async def execute(self, request: httpx.Request) -> httpx.Response:
        client = self._ensure_client()
        deadline = self.http_options.timeout_s

        try:
            return await asyncio.wait_for(client.send(request), timeout=deadline)
        except asyncio.TimeoutError as e:
            raise httpx.TimeoutException(
                f'Request to "{request.url}" timed out after {deadline}s',
                request=request
            ) from e

    async def aclose(self) -> None:
        client = self._client
        self.set_http_client(None)
        if client is not None:
            await client.aclose()

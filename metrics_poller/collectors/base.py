"""Base collector with the concurrent per-server gather."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Sequence, Tuple
from urllib.parse import urlsplit

import httpx

from ..accumulator import Accumulator
from ..errors import GatherError, UnexpectedStatusError, describe_error
from ..services.http_client import HTTPClient


class BaseCollector(ABC):
    """
    Abstract base class for HTTP metric collectors.

    A gather cycle starts one task per configured server, waits for all
    of them, and raises a single ``GatherError`` listing every server
    that failed. A failing server never stops its siblings from emitting.
    """

    name = "base"

    def __init__(self, config: Any, http_client: HTTPClient, logger: logging.Logger):
        """
        Initialize base collector.

        Args:
            config: Collector-specific configuration
            http_client: Shared HTTP client, reused across cycles
            logger: Logger instance
        """
        self.config = config
        self.http_client = http_client
        self.logger = logger.getChild(self.__class__.__name__)

    @abstractmethod
    def servers(self) -> Sequence[Any]:
        """Return the configured servers, in configuration order."""
        pass

    @abstractmethod
    async def gather_server(self, acc: Accumulator, server: Any) -> None:
        """
        Gather one server and emit its records to the accumulator.

        Raises:
            Exception: Any failure; captured by ``gather`` for this server only
        """
        pass

    def server_url(self, server: Any) -> str:
        """URL used to identify a server in logs."""
        return str(server)

    async def gather(self, acc: Accumulator) -> None:
        """
        Gather every configured server concurrently.

        Args:
            acc: Accumulator receiving emitted records

        Raises:
            GatherError: If at least one server failed; carries all messages
            FileNotFoundError, ssl.SSLError: If the HTTP transport cannot be set up
        """
        servers = list(self.servers())
        if not servers:
            self.logger.info("No servers configured")
            return

        # Transport setup failures abort the whole cycle before any request
        self.http_client.prepare()

        self.logger.debug(f"Gathering {len(servers)} server(s)")

        tasks = [self.gather_server(acc, server) for server in servers]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        errors: List[str] = []
        for server, result in zip(servers, results):
            # A cancelled server task counts as that server's failure
            if isinstance(result, (Exception, asyncio.CancelledError)):
                message = describe_error(result)
                self.logger.error(
                    f"Gather failed for {self.server_url(server)}: {message}",
                    extra={
                        "server": self.server_url(server),
                        "error_type": type(result).__name__
                    }
                )
                errors.append(message)

        if errors:
            raise GatherError(errors)


def check_status(url: str, response: httpx.Response, expected: int = 200) -> None:
    """
    Raise if the response status is not the expected one.

    Raises:
        UnexpectedStatusError: Carrying URL, actual and expected status
    """
    if response.status_code != expected:
        raise UnexpectedStatusError(url, response.status_code, expected)


def split_host_port(url: str) -> Tuple[str, str]:
    """
    Return (host, port) from a URL's authority, leniently.

    The port is "" when the URL carries no explicit port. Unparseable
    authorities yield whatever could be read, never an error.
    """
    try:
        netloc = urlsplit(url).netloc
    except ValueError:
        return "", ""

    # Host keeps its original case; userinfo is never part of the tag
    netloc = netloc.rpartition("@")[2]
    if netloc.startswith("["):
        host, _, rest = netloc[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    else:
        host, _, port = netloc.partition(":")

    if not (port.isascii() and port.isdigit()) or int(port) > 65535:
        port = ""
    return host, port

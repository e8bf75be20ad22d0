"""Icecast listener statistics collector."""

import base64
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence

import httpx

from ..accumulator import Accumulator
from ..config.models import IcecastConfig, IcecastServerConfig
from ..errors import InvalidServerURLError
from ..services.http_client import HTTPClient, RealHTTPClient
from .base import BaseCollector, check_status, split_host_port

MEASUREMENT = "icecast"


def parse_sources(body: str) -> List[Dict[str, object]]:
    """
    Extract per-mount listener counts from an icestats XML document.

    Args:
        body: XML text; surrounding whitespace is ignored

    Returns:
        List of {"mount": str, "listeners": float}, in document order.
        Sources without a numeric listener count are left out.

    Raises:
        xml.etree.ElementTree.ParseError: If the body is not well-formed XML
    """
    root = ET.fromstring(body.strip())

    sources = []
    for source in root.iter("source"):
        listeners = source.findtext("listeners")
        try:
            count = float(listeners)
        except (TypeError, ValueError):
            continue
        sources.append({
            "mount": source.get("mount", "").lstrip("/"),
            "listeners": count,
        })
    return sources


class IcecastCollector(BaseCollector):
    """Collector for listener counts of every mount on Icecast servers."""

    name = "icecast"

    def __init__(
        self,
        config: IcecastConfig,
        logger: logging.Logger,
        http_client: Optional[HTTPClient] = None
    ):
        if http_client is None:
            http_client = RealHTTPClient(config.tls, config.http, logger)
        super().__init__(config, http_client, logger)

    def servers(self) -> Sequence[IcecastServerConfig]:
        return self.config.servers

    def server_url(self, server: IcecastServerConfig) -> str:
        return server.url

    async def gather_server(self, acc: Accumulator, server: IcecastServerConfig) -> None:
        try:
            url = httpx.URL(server.url)
        except httpx.InvalidURL as e:
            raise InvalidServerURLError(server.url) from e

        headers = {"Accept": "application/xml"}
        if self.config.username:
            credentials = f"{self.config.username}:{self.config.password or ''}".encode("utf-8")
            headers["Authorization"] = "Basic " + base64.b64encode(credentials).decode("ascii")

        response = await self.http_client.execute(httpx.Request("GET", url, headers=headers))
        check_status(server.url, response)

        sources = parse_sources(response.text)

        host = server.alias
        if not host:
            host, _ = split_host_port(server.url)

        for source in sources:
            acc.add_fields(
                MEASUREMENT,
                {"listeners": source["listeners"]},
                {"host": host, "mount": source["mount"]}
            )

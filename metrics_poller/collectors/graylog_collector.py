"""Graylog REST API metrics collector."""

import base64
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel, Field, field_validator

from ..accumulator import Accumulator
from ..config.models import GraylogConfig
from ..errors import InvalidMetricListError, InvalidServerURLError
from ..flatten import flatten
from ..services.http_client import HTTPClient, RealHTTPClient
from .base import BaseCollector, check_status, split_host_port

# Endpoints containing this substring take a POSTed list of metric names
MULTIPLE_MODE_MARKER = "multiple"


class GraylogMetric(BaseModel):
    """One metric record from a Graylog metrics response."""
    full_name: str = ""
    name: str = ""
    type: str = ""
    metric: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('full_name', 'name', 'type', mode='before')
    @classmethod
    def null_as_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator('metric', mode='before')
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class GraylogResponse(BaseModel):
    """Body of /system/metrics/multiple and /system/metrics/namespace/{ns}."""
    metrics: List[GraylogMetric] = Field(default_factory=list)

    @field_validator('metrics', mode='before')
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class GraylogCollector(BaseCollector):
    """Collector for flattened metrics from one or more Graylog endpoints."""

    name = "graylog"

    def __init__(
        self,
        config: GraylogConfig,
        logger: logging.Logger,
        http_client: Optional[HTTPClient] = None
    ):
        """
        Initialize Graylog collector.

        Args:
            config: Graylog servers, metric names, credentials and TLS options
            logger: Logger instance
            http_client: HTTP client to use; a RealHTTPClient built from
                the config when omitted
        """
        if http_client is None:
            http_client = RealHTTPClient(config.tls, config.http, logger)
        super().__init__(config, http_client, logger)

    def servers(self) -> Sequence[str]:
        return self.config.servers

    async def gather_server(self, acc: Accumulator, server: str) -> None:
        """
        Fetch one endpoint and emit one record per returned metric.

        Args:
            acc: Accumulator receiving the records
            server: Endpoint URL
        """
        request = self.build_request(server)
        response = await self.http_client.execute(request)
        check_status(server, response)

        body = response.json()
        if body is None:
            # A literal null body carries no metrics
            body = {}
        payload = GraylogResponse.model_validate(body)

        host, port = split_host_port(server)
        if not host:
            self.logger.debug(f"Could not derive host/port tags from {server}")

        for item in payload.metrics:
            tags = {
                "server": host,
                "port": port,
                "name": item.name,
                "type": item.type,
            }
            acc.add_fields(item.full_name, flatten(item.metric), tags)

        self.logger.debug(f"Emitted {len(payload.metrics)} metric(s) from {server}")

    def build_request(self, server: str) -> httpx.Request:
        """
        Build the authenticated request for one endpoint.

        Multiple-mode endpoints get a POST whose body lists the configured
        metric names; every other endpoint gets a plain GET.

        Args:
            server: Endpoint URL

        Returns:
            httpx.Request: Request ready for HTTPClient.execute

        Raises:
            InvalidServerURLError: If the URL is not an absolute http(s) URL
            InvalidMetricListError: If the metric names cannot be serialized
        """
        try:
            url = httpx.URL(server)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidServerURLError(server) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidServerURLError(server)

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": self._basic_auth(),
        }

        if MULTIPLE_MODE_MARKER not in str(url):
            return httpx.Request("GET", url, headers=headers)

        try:
            body = json.dumps({"metrics": list(self.config.metrics)}, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise InvalidMetricListError(self.config.metrics) from e

        return httpx.Request("POST", url, headers=headers, content=body.encode("utf-8"))

    def _basic_auth(self) -> str:
        credentials = f"{self.config.username}:{self.config.password}".encode("utf-8")
        return "Basic " + base64.b64encode(credentials).decode("ascii")

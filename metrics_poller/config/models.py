"""Pydantic configuration models for the metrics poller."""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, List, Optional


def _validate_http_url(v: str) -> str:
    if not v.startswith(('http://', 'https://')):
        raise ValueError('URL must start with http:// or https://')
    return v


class TLSConfig(BaseModel):
    """TLS options shared by every server of one collector."""
    ca: Optional[str] = None  # Path to CA bundle
    cert: Optional[str] = None  # Path to client certificate
    key: Optional[str] = None  # Path to client key
    insecure_skip_verify: bool = False

    @model_validator(mode='after')
    def cert_and_key_together(self) -> 'TLSConfig':
        """Client certificate and key must be configured as a pair."""
        if bool(self.cert) != bool(self.key):
            raise ValueError('TLS cert and key must be set together')
        return self


class HTTPOptions(BaseModel):
    """Transport timeouts."""
    response_header_timeout_s: float = Field(default=3.0, gt=0)
    timeout_s: float = Field(default=4.0, gt=0)


class GraylogConfig(BaseModel):
    """
    Configuration for Graylog REST metrics endpoints.

    Supported endpoints:
    - multiple  (http://graylog:12900/system/metrics/multiple), POSTs `metrics`
    - namespace (http://graylog:12900/system/metrics/namespace/{namespace}),
      the `metrics` list is ignored for these calls
    """
    servers: List[str] = Field(default_factory=list)
    metrics: List[str] = Field(default_factory=list)
    username: str = ""
    password: str = ""
    tls: TLSConfig = Field(default_factory=TLSConfig)
    http: HTTPOptions = Field(default_factory=HTTPOptions)

    @field_validator('servers')
    @classmethod
    def validate_servers(cls, v: List[str]) -> List[str]:
        """Validate URL format."""
        return [_validate_http_url(url) for url in v]


class IcecastServerConfig(BaseModel):
    """One Icecast status URL with an optional display alias."""
    url: str
    alias: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def from_shorthand(cls, data: Any) -> Any:
        """Accept "url" or ["url", "alias"] as well as a mapping."""
        if isinstance(data, str):
            return {"url": data}
        if isinstance(data, (list, tuple)):
            if not 1 <= len(data) <= 2:
                raise ValueError('Expected [url] or [url, alias]')
            return {"url": data[0], "alias": data[1] if len(data) == 2 else None}
        return data

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        return _validate_http_url(v)


class IcecastConfig(BaseModel):
    """Configuration for Icecast listener statistics."""
    servers: List[IcecastServerConfig] = Field(default_factory=list)
    username: Optional[str] = None
    password: Optional[str] = None
    tls: TLSConfig = Field(default_factory=TLSConfig)
    http: HTTPOptions = Field(default_factory=HTTPOptions)


class PollerConfig(BaseModel):
    """Polling schedule configuration."""
    interval_seconds: int = Field(default=10, ge=1)


class OutputConfig(BaseModel):
    """Where emitted metric records are written."""
    format: str = "jsonl"
    path: str = "-"  # "-" writes to stdout

    @field_validator('format')
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ('jsonl', 'none'):
            raise ValueError('Output format must be one of: jsonl, none')
        return v


class MetricsPollerConfig(BaseModel):
    """Root configuration model for the metrics poller."""
    poller: PollerConfig = Field(default_factory=PollerConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    graylog: Optional[GraylogConfig] = None
    icecast: Optional[IcecastConfig] = None

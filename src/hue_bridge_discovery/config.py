"""Configuration management for Hue bridge discovery."""

import json
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiscoveryConfig(BaseModel): # Nested under Config (BaseSettings)
    """Configuration for the discovery strategies."""

    enable_ssdp: bool = Field(default=True, description="Enable the SSDP multicast probe.")
    ssdp_timeout_seconds: float = Field(default=3.0, gt=0, le=30, description="How long the multicast probe listens for replies.")
    ssdp_multicast_ttl: int = Field(default=2, ge=1, le=255, description="IP multicast TTL for the M-SEARCH datagram.")

    enable_cloud_registry: bool = Field(default=True, description="Query the vendor cloud registry (N-UPnP).")
    cloud_registry_url: str = Field(default="https://discovery.meethue.com/", description="Cloud registry endpoint returning a JSON list of bridges.")

    enable_subnet_scan: bool = Field(default=True, description="Allow escalating to a TCP scan of the local subnets.")
    scan_port: int = Field(default=80, ge=1, le=65535, description="TCP port probed by the subnet scanner.")
    scan_concurrency: int = Field(default=20, ge=1, le=256, description="Maximum outstanding connection attempts during a subnet scan.")
    scan_timeout_seconds: float = Field(default=2.0, gt=0, le=30, description="Timeout for a single connection attempt.")
    scan_max_prefix: int = Field(default=24, ge=16, le=30, description="Networks wider than this prefix are narrowed to it around the local address.")

    confirm_concurrency: int = Field(default=10, ge=1, le=100, description="Maximum candidates confirmed in parallel.")


class HTTPClientConfig(BaseModel):
    """Configuration for the HTTP client used against bridges and the cloud registry."""
    timeout_seconds: float = Field(default=2.0, gt=0, le=60, description="Total timeout for a single request.")
    connect_timeout_seconds: float = Field(default=2.0, gt=0, le=60, description="Timeout for establishing a connection.")
    max_connections: int = Field(default=10, ge=1, description="Total connection pool limit for the aiohttp session.")
    max_connections_per_host: int = Field(default=10, ge=1, description="Per-host connection pool limit for the aiohttp session.")
    ssl_verify: bool = Field(default=False, description="Verify TLS certificates. Bridges ship self-signed certificates.")
    user_agent: str | None = Field(default=None, description="User-Agent header override.")


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format ('json' or 'console')")


class Config(BaseSettings):
    """Main configuration. Loads from environment variables prefixed with HUE_DISCOVERY_."""

    model_config = SettingsConfigDict(
        env_prefix='HUE_DISCOVERY_',
        env_nested_delimiter='__', # e.g., HUE_DISCOVERY_DISCOVERY__SCAN_PORT
        extra='ignore',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    http_client: HTTPClientConfig = Field(default_factory=HTTPClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, file_path: Path) -> "Config":
        """Create configuration strictly from a JSON file.
        Environment variables are not layered on top.
        """
        with open(file_path) as f:
            config_data = json.load(f)
        return cls.model_validate(config_data)

"""Configuration module — frozen dataclasses loaded from YAML, env vars and CLI args."""

import argparse
import os
from dataclasses import dataclass, fields
from typing import Optional

import httpx
import yaml

from splunk_hec.client import (
    DEFAULT_MAX_CONTENT_LENGTH,
    DEFAULT_MAX_RETRIES,
    HEC,
    HECClient,
)
from splunk_hec.cluster import HECCluster
from splunk_hec.compressor import validate_compression
from splunk_hec.models import EventMetadata
from splunk_hec.sender import RETRY_WAIT_SECONDS


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_urls(value: str) -> tuple:
    return tuple(url.strip() for url in value.split(",") if url.strip())


def load_yaml(path: str) -> dict:
    """Load the ``hec`` section of a YAML config file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return data.get("hec", data)


@dataclass(frozen=True)
class ClientConfig:
    server_urls: tuple = ("https://localhost:8088",)
    token: str = ""
    channel: Optional[str] = None
    max_retries: int = DEFAULT_MAX_RETRIES
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    keep_alive: bool = True
    compression: str = ""
    retry_wait: float = RETRY_WAIT_SECONDS
    timeout: float = 10.0
    verify_tls: bool = True
    mode: str = "raw"
    input_file: Optional[str] = None
    host: Optional[str] = None
    index: Optional[str] = None
    source: Optional[str] = None
    sourcetype: Optional[str] = None

    def __post_init__(self):
        if not self.server_urls:
            raise ValueError("at least one server URL is required")
        if self.mode not in ("raw", "batch"):
            raise ValueError(f"mode must be 'raw' or 'batch', got {self.mode!r}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.max_content_length < 1:
            raise ValueError(
                f"max_content_length must be >= 1, got {self.max_content_length}"
            )
        validate_compression(self.compression)

    @property
    def metadata(self) -> EventMetadata:
        return EventMetadata(
            host=self.host,
            index=self.index,
            source=self.source,
            sourcetype=self.sourcetype,
        )

    @classmethod
    def from_dict(cls, d: dict) -> "ClientConfig":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in d.items() if k in known}
        if isinstance(kwargs.get("server_urls"), str):
            kwargs["server_urls"] = _parse_urls(kwargs["server_urls"])
        elif "server_urls" in kwargs:
            kwargs["server_urls"] = tuple(kwargs["server_urls"])
        return cls(**kwargs)


def _env_overrides() -> dict:
    """Collect HEC_* environment variables that are set."""
    env = os.environ
    kwargs: dict = {}
    if "HEC_URLS" in env:
        kwargs["server_urls"] = _parse_urls(env["HEC_URLS"])
    if "HEC_TOKEN" in env:
        kwargs["token"] = env["HEC_TOKEN"]
    if "HEC_CHANNEL" in env:
        kwargs["channel"] = env["HEC_CHANNEL"]
    if "HEC_MAX_RETRIES" in env:
        kwargs["max_retries"] = int(env["HEC_MAX_RETRIES"])
    if "HEC_MAX_CONTENT_LENGTH" in env:
        kwargs["max_content_length"] = int(env["HEC_MAX_CONTENT_LENGTH"])
    if "HEC_KEEP_ALIVE" in env:
        kwargs["keep_alive"] = _parse_bool(env["HEC_KEEP_ALIVE"])
    if "HEC_COMPRESSION" in env:
        kwargs["compression"] = env["HEC_COMPRESSION"]
    if "HEC_RETRY_WAIT" in env:
        kwargs["retry_wait"] = float(env["HEC_RETRY_WAIT"])
    if "HEC_TIMEOUT" in env:
        kwargs["timeout"] = float(env["HEC_TIMEOUT"])
    if "HEC_VERIFY_TLS" in env:
        kwargs["verify_tls"] = _parse_bool(env["HEC_VERIFY_TLS"])
    return kwargs


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ship a log file to an HTTP Event Collector")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--url", dest="server_urls", action="append", default=None,
                        help="collector base URL (repeat for a cluster)")
    parser.add_argument("--token", type=str, default=None)
    parser.add_argument("--channel", type=str, default=None)
    parser.add_argument("--max-retries", type=int, default=None)
    parser.add_argument("--max-content-length", type=int, default=None)
    parser.add_argument("--retry-wait", type=float, default=None)
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--compression", choices=["none", "gzip"], default=None)
    parser.add_argument("--no-keep-alive", action="store_true", default=False)
    parser.add_argument("--insecure", action="store_true", default=False,
                        help="skip TLS certificate verification")
    parser.add_argument("--mode", choices=["raw", "batch"], default=None)
    parser.add_argument("--file", dest="input_file", type=str, default=None)
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--index", type=str, default=None)
    parser.add_argument("--source", type=str, default=None)
    parser.add_argument("--sourcetype", type=str, default=None)
    return parser


def load_client_config(argv=None) -> ClientConfig:
    """Build ClientConfig from defaults <- YAML file <- env vars <- CLI args.

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    args = _build_parser().parse_args(argv)

    kwargs: dict = {}
    config_path = args.config or os.environ.get("HEC_CONFIG_PATH")
    if config_path:
        kwargs.update(load_yaml(config_path))
    kwargs.update(_env_overrides())

    # CLI flags override everything else
    for name in (
        "server_urls", "token", "channel", "max_retries", "max_content_length",
        "retry_wait", "timeout", "compression", "mode", "input_file",
        "host", "index", "source", "sourcetype",
    ):
        value = getattr(args, name)
        if value is not None:
            kwargs[name] = value
    if args.no_keep_alive:
        kwargs["keep_alive"] = False
    if args.insecure:
        kwargs["verify_tls"] = False

    return ClientConfig.from_dict(kwargs)


def build_http_client(config: ClientConfig) -> httpx.Client:
    return httpx.Client(timeout=config.timeout, verify=config.verify_tls)


def build_hec(config: ClientConfig, http_client: Optional[httpx.Client] = None) -> HEC:
    """Return an HECClient for one URL, or an HECCluster for several."""
    http_client = http_client or build_http_client(config)
    options = dict(
        http_client=http_client,
        channel=config.channel,
        keep_alive=config.keep_alive,
        max_retries=config.max_retries,
        max_content_length=config.max_content_length,
        compression=config.compression,
        retry_wait=config.retry_wait,
    )
    if len(config.server_urls) == 1:
        return HECClient(config.server_urls[0], config.token, **options)
    return HECCluster(list(config.server_urls), config.token, **options)


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8088
    token: str = "00000000-0000-0000-0000-000000000000"
    # Collector codes answered, in order, before requests are validated
    replies: tuple = ()


def load_server_config() -> ServerConfig:
    """Build ServerConfig from environment variables with sensible defaults."""
    return ServerConfig(
        host=os.environ.get("SERVER_HOST", ServerConfig.host),
        port=int(os.environ.get("SERVER_PORT", ServerConfig.port)),
        token=os.environ.get("HEC_TOKEN", ServerConfig.token),
    )

"""Configuration loading for the proxy server and the viewer."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
from xml.etree import ElementTree as ET

from .proxy import FETCH_TIMEOUT, MAX_REDIRECTS, USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEFAULT_STORAGE_URL = "sqlite:///rss_fetch.db"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class ProxyConfig:
    user_agent: str = USER_AGENT
    timeout: float = FETCH_TIMEOUT
    max_redirects: int = MAX_REDIRECTS


@dataclass
class AppConfig:
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    static_folder: Optional[str] = None
    api_base: Optional[str] = None
    storage_url: str = DEFAULT_STORAGE_URL
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def resolved_api_base(self) -> str:
        """Base URL the viewer uses to reach the proxy."""
        return self.api_base or f"http://localhost:{self.port}"


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _parse_port(value: str, source: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise ValueError(f"Invalid port in {source}: {value!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range in {source}: {port}")
    return port


def parse_app_config(path: Optional[str] = None) -> AppConfig:
    """Parse the optional XML configuration file.

    Without a path the defaults are returned. Elements that are missing keep
    their defaults, so a config file only has to mention what it changes.
    """
    config = AppConfig()
    if not path:
        return config

    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    root = ET.parse(config_path).getroot()

    # Server
    server_node = root.find("server")
    if server_node is not None:
        config.host = server_node.findtext("host", config.host).strip()
        port_text = server_node.findtext("port")
        if port_text:
            config.port = _parse_port(port_text.strip(), str(config_path))
        static_folder = server_node.findtext("static-folder")
        if static_folder:
            config.static_folder = _resolve_path(config_path, static_folder.strip())

    # Proxy
    proxy_node = root.find("proxy")
    if proxy_node is not None:
        config.proxy.user_agent = proxy_node.findtext(
            "user-agent", config.proxy.user_agent
        ).strip()
        timeout_text = proxy_node.findtext("timeout")
        if timeout_text:
            config.proxy.timeout = float(timeout_text)
        redirects_text = proxy_node.findtext("max-redirects")
        if redirects_text:
            config.proxy.max_redirects = int(redirects_text)

    # Viewer
    api_base = root.findtext("api-base")
    if api_base:
        config.api_base = api_base.strip()
    storage_url = root.findtext("storage")
    if storage_url:
        config.storage_url = storage_url.strip()

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", "INFO").strip()
        log_file = log_node.findtext("file")
        if log_file:
            config.logging.file = _resolve_path(config_path, log_file.strip())

    return config


def apply_environment(
    config: AppConfig, environ: Optional[Mapping[str, str]] = None
) -> AppConfig:
    """Apply ``PORT`` from the environment on top of file configuration."""
    env = os.environ if environ is None else environ
    port = env.get("PORT")
    if port:
        config.port = _parse_port(port, "PORT")
        logger.debug("Port overridden from environment: %d", config.port)
    return config

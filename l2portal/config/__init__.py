"""YAML config: defaults from config/config.yaml.example, user overrides merged on top."""

from l2portal.config.settings import (
    get_captcha_config,
    get_database_config,
    get_monitor_config,
    get_server_config,
    read_config,
)

__all__ = [
    "get_captcha_config",
    "get_database_config",
    "get_monitor_config",
    "get_server_config",
    "read_config",
]

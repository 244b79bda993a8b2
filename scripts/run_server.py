#!/usr/bin/env python3
"""Start the l2portal API server: status, captcha and registration.

Usage: run_server.py [config.yaml]

Without an argument, L2PORTAL_CONFIG or config/config.yaml is used, falling
back to config/config.yaml.example."""

import logging
import os
import sys

# Project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)
os.chdir(_PROJECT_ROOT)

logging.basicConfig(
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    level=logging.INFO,
)


def main() -> None:
    from l2portal.config.settings import read_config
    from l2portal.server.app import run_server

    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    if config_path and not os.path.isabs(config_path):
        config_path = os.path.join(_PROJECT_ROOT, config_path)
    config, resolved = read_config(config_path)
    logging.getLogger(__name__).info("Config: %s", resolved)
    run_server(config)


if __name__ == "__main__":
    main()

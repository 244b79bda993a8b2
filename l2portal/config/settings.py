"""Unified config: server, monitor, captcha, database sections.

Defaults: loaded from config/config.yaml.example (single source of truth, no code-level defaults).
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_EXAMPLE_PATH = _PROJECT_ROOT / "config" / "config.yaml.example"

# Lazy-loaded example config (single source of truth for defaults)
_EXAMPLE_CONFIG: Optional[Dict[str, Any]] = None


def _load_example_config() -> Dict[str, Any]:
    """Load config.yaml.example as defaults. No code-level defaults."""
    global _EXAMPLE_CONFIG
    if _EXAMPLE_CONFIG is None:
        with open(_EXAMPLE_PATH, encoding="utf-8") as f:
            _EXAMPLE_CONFIG = yaml.safe_load(f) or {}
    return _EXAMPLE_CONFIG


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base. Override values take precedence."""
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _merged_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merge config with example so missing keys come from config file."""
    return _deep_merge(_load_example_config(), cfg)


def _positive(value: Any, key: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if n <= 0:
        raise ValueError(f"{key} must be positive, got {n}")
    return n


def read_config(config_path: Optional[str] = None) -> Tuple[dict, str]:
    """Load YAML config. Path: argument, else L2PORTAL_CONFIG, else config/config.yaml, else the example.

    Returns (config, resolved_path). The returned config is the raw file; accessors merge defaults.
    """
    config_path = config_path or os.environ.get("L2PORTAL_CONFIG", str(_PROJECT_ROOT / "config" / "config.yaml"))
    if not Path(config_path).exists():
        config_path = str(_EXAMPLE_PATH)
    config_path = str(Path(config_path).resolve())
    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    return config, config_path


def get_monitor_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return poll_interval_ms, probe_timeout_ms and endpoints {id: {host, port}}."""
    merged = _merged_config(config or {})
    m = merged.get("monitor") or {}
    endpoints: Dict[str, Dict[str, Any]] = {}
    for endpoint_id, ep in (m.get("endpoints") or {}).items():
        if not isinstance(ep, dict) or ep.get("enabled") is False:
            continue
        endpoints[str(endpoint_id)] = {
            "host": str(ep.get("host") or "localhost"),
            "port": _positive(ep.get("port"), f"monitor.endpoints.{endpoint_id}.port"),
        }
    return {
        "poll_interval_ms": _positive(m.get("poll_interval_ms"), "monitor.poll_interval_ms"),
        "probe_timeout_ms": _positive(m.get("probe_timeout_ms"), "monitor.probe_timeout_ms"),
        "endpoints": endpoints,
    }


def get_captcha_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return size, ttl_ms, sweep_interval_ms and render options for the PNG renderer."""
    merged = _merged_config(config or {})
    c = merged.get("captcha") or {}
    return {
        "size": _positive(c.get("size"), "captcha.size"),
        "ttl_ms": _positive(c.get("ttl_ms"), "captcha.ttl_ms"),
        "sweep_interval_ms": _positive(c.get("sweep_interval_ms"), "captcha.sweep_interval_ms"),
        "render": {
            "noise": int(c.get("noise") or 0),
            "color": bool(c.get("color")),
            "background": c.get("background"),
            "width": _positive(c.get("width"), "captcha.width"),
            "height": _positive(c.get("height"), "captcha.height"),
        },
    }


def get_server_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return host, port, static_dir (STATIC_FILES_PATH env wins) and cors_origins."""
    merged = _merged_config(config or {})
    s = merged.get("server") or {}
    return {
        "host": s.get("host"),
        "port": _positive(s.get("port"), "server.port"),
        "static_dir": os.environ.get("STATIC_FILES_PATH") or s.get("static_dir"),
        "cors_origins": list(s.get("cors_origins") or []),
    }


def get_database_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return sink ("postgres" or "memory") and postgres connection section."""
    merged = _merged_config(config or {})
    d = merged.get("database") or {}
    return {
        "sink": (d.get("sink") or "postgres").strip().lower(),
        "postgres": dict(d.get("postgres") or {}),
    }

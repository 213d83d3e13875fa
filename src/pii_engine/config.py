"""YAML/dict config loader for pii-engine.

Supports loading from a YAML file or a plain dict (for embedding in a
larger application config).

Example YAML:

    pii_engine:
      enabled: true
      fail_open: false
      skip_categories:
        - ADDRESS
      scanner:
        critical_count: 10
        warning_count: 5

The PERSON whitelist is fixed in code and deliberately not configurable.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any

from .exceptions import ConfigError
from .middleware import NoopMiddleware, RedactMiddleware
from .scanner import ScannerConfig
from .types import PiiCategory


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "pii_engine" key or flat
    if "pii_engine" in data:
        data = data["pii_engine"] or {}

    scanner = data.get("scanner") or {}
    try:
        scanner_config = ScannerConfig(
            critical_count=int(scanner.get("critical_count", 10)),
            warning_count=int(scanner.get("warning_count", 5)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid scanner thresholds: {exc}") from exc

    return {
        "enabled": bool(data.get("enabled", True)),
        "fail_open": bool(data.get("fail_open", False)),
        "skip_categories": _parse_categories(data.get("skip_categories", [])),
        "scanner": scanner_config,
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(Path(path).expanduser(), encoding="utf-8") as f:
        try:
            return load_config(yaml.safe_load(f))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc


def create_middleware(config: dict[str, Any]) -> RedactMiddleware | NoopMiddleware:
    """Create a configured middleware from a raw or normalized config dict."""
    cfg = config if isinstance(config.get("scanner"), ScannerConfig) else load_config(config)

    if not cfg["enabled"]:
        return NoopMiddleware()

    return RedactMiddleware(
        skip_categories=cfg["skip_categories"],
        fail_open=cfg["fail_open"],
    )


def _parse_categories(names: Any) -> frozenset[PiiCategory]:
    if not isinstance(names, (list, tuple, set, frozenset)):
        raise ConfigError(f"skip_categories must be a list, got {type(names).__name__}")
    out: set[PiiCategory] = set()
    for name in names:
        try:
            out.add(PiiCategory(str(name).upper()))
        except ValueError as exc:
            raise ConfigError(f"Unknown PII category: {name}") from exc
    return frozenset(out)

"""
Application configuration parsing
"""
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

from ...core.constants import DEFAULT_SSH_PORT
from ...core.exceptions import ConfigError
from ...domain.models import Target
from ...domain.sync.models import SyncSettings


@dataclass
class AppConfig:
    """Parsed configuration: default login name, targets, push tunables"""
    username: str
    targets: List[Target]
    settings: SyncSettings = field(default_factory=SyncSettings)


# ============================================================
# Targets
# ============================================================

def parse_target(item: Dict[str, Any], index: int) -> Target:
    """
    Parse one [[targets]] entry.

    Accepts address/path/port, and the legacy addr/config_path names.
    """
    if not isinstance(item, dict):
        raise ConfigError(f"targets[{index}] must be a table")

    address = item.get("address", item.get("addr"))
    path = item.get("path", item.get("config_path"))
    if not address:
        raise ConfigError(f"targets[{index}] is missing 'address'")
    if not path:
        raise ConfigError(f"targets[{index}] is missing 'path'")

    try:
        port = int(item.get("port", DEFAULT_SSH_PORT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"targets[{index}] has an invalid port: {item.get('port')!r}") from e
    if not 0 < port < 65536:
        raise ConfigError(f"targets[{index}] port out of range: {port}")

    return Target(address=str(address), path=str(path), port=port)


def parse_targets(cfg: Dict[str, Any]) -> List[Target]:
    items = cfg.get("targets", cfg.get("servers"))
    if not items:
        raise ConfigError("No targets configured")
    if isinstance(items, dict):
        items = [items]

    targets = [parse_target(item, index) for index, item in enumerate(items)]

    seen = set()
    for target in targets:
        if target.key in seen:
            raise ConfigError(f"Duplicate target: {target.key}")
        seen.add(target.key)

    return targets


# ============================================================
# Sync settings
# ============================================================

def parse_sync_settings(cfg: Dict[str, Any]) -> SyncSettings:
    """Parse the [sync] table; unknown keys are rejected"""
    section = cfg.get("sync", {})
    if not isinstance(section, dict):
        raise ConfigError("[sync] must be a table")

    known = {f.name: f for f in fields(SyncSettings)}
    unknown = sorted(set(section) - set(known))
    if unknown:
        raise ConfigError(f"Unknown [sync] settings: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for name, value in section.items():
        default = known[name].default
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"sync.{name} must be true or false")
        elif isinstance(default, float):
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ConfigError(f"sync.{name} must be a non-negative number")
            value = float(value)
        elif not isinstance(value, str):
            raise ConfigError(f"sync.{name} must be a string")
        values[name] = value

    return SyncSettings(**values)


def parse_app_config(cfg: Dict[str, Any]) -> AppConfig:
    """Build the application configuration from a merged config dictionary"""
    username = cfg.get("username") or os.getenv("USER", "")
    return AppConfig(
        username=str(username),
        targets=parse_targets(cfg),
        settings=parse_sync_settings(cfg),
    )

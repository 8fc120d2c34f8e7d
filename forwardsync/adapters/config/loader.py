"""
Raw configuration sources for forwardsync

A run reads the TOML file, then applies command line overrides, then
FORWARDSYNC_* environment variables. Later sources win.
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import ENV_PREFIX
from ...core.exceptions import ConfigError


class ConfigLoader:
    """Reads and merges TOML, CLI and environment configuration"""

    # Environment variable suffix -> dotted config key
    ENV_MAPPINGS = {
        "USERNAME": "username",
        "CONNECT_TIMEOUT": "sync.connect_timeout",
        "BACKUP_SETTLE": "sync.backup_settle",
        "ESCALATION_PROMPT_DELAY": "sync.escalation_prompt_delay",
        "INSTALL_SETTLE": "sync.install_settle",
        "STAGING_DIR": "sync.staging_dir",
        "PRIVILEGED_USER": "sync.privileged_user",
        "RELOAD_COMMAND": "sync.reload_command",
        "STRICT_BACKUP": "sync.strict_backup",
    }

    # String settings; values like "true" or "1000" are kept as text
    STRING_KEYS = frozenset({
        "username",
        "sync.staging_dir",
        "sync.privileged_user",
        "sync.reload_command",
    })

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Read the TOML file; a missing or malformed file is a ConfigError"""
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with path.open("rb") as fp:
                return tomllib.load(fp)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def load_env(self, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Collect FORWARDSYNC_* variables into a nested dictionary"""
        environ = os.environ if environ is None else environ
        config: Dict[str, Any] = {}

        for suffix, config_key in self.ENV_MAPPINGS.items():
            value = environ.get(self._env_prefix + suffix)
            if not value:
                continue
            section = config
            *parents, leaf = config_key.split(".")
            for part in parents:
                section = section.setdefault(part, {})
            if config_key in self.STRING_KEYS:
                section[leaf] = value
            else:
                section[leaf] = self._convert_value(value)

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to bool, int or float where it parses as one"""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        for cast in (int, float):
            try:
                return cast(value)
            except ValueError:
                pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configurations; later ones override earlier ones"""
        merged: Dict[str, Any] = {}
        for config in configs:
            merged = self._deep_merge(merged, config)
        return merged

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        # Tables ([sync]) merge key by key; arrays ([[targets]]) replace wholesale
        merged = dict(base)
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                value = self._deep_merge(current, value)
            merged[key] = value
        return merged

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Build the raw configuration for one run.

        Args:
            toml_path: forwardsync TOML file (targets, username, [sync])
            cli_overrides: Values given on the command line
            use_env: Apply FORWARDSYNC_* variables on top

        Returns:
            Merged dictionary, ready for parse_app_config()
        """
        sources = [
            self.load_toml(toml_path) if toml_path else {},
            cli_overrides or {},
            self.load_env() if use_env else {},
        ]
        return self.merge_configs(*sources)

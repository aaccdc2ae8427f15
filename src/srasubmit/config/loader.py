"""
Configuration file loading.

Loads config.yaml, overlays config.{env}.yaml and resolves placeholders.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from srasubmit.config.resolver import find_unresolved, resolve_config
from srasubmit.exceptions import ConfigurationError

# These suffixes match the FASTQ filename rule used for metadata validation
DEFAULT_ACCEPTED_SUFFIXES = ("fq", "fastq", "gz", "gzip", "bz2")
DEFAULT_DISPATCH_INTERVAL_S = 60 * 60
DEFAULT_TRANSFER_TIMEOUT_S = 60.0
DEFAULT_PORTS = {"ftp": 21, "sftp": 22}


class Config:
    """srasubmit configuration container with dict-like access."""

    def __init__(self, data: dict[str, Any]):
        self.data = data
        # Convenience properties for common config sections
        self.submission = data.get("submission") or {}
        self.transfer = data.get("transfer") or {}
        self.dispatch = data.get("dispatch") or {}
        self.state = data.get("state") or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        keys = key.split(".")
        value = self.data
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        """Dict-like access: config['key'] or config['nested.key']."""
        if isinstance(key, str) and "." in key:
            return self.get(key)
        if key in self.data:
            value = self.data[key]
            # Return nested dicts as Config objects for chaining
            if isinstance(value, dict):
                return Config(value)
            return value
        raise KeyError(f"Config key '{key}' not found")

    def __contains__(self, key: str) -> bool:
        """Check if key exists in config."""
        if isinstance(key, str) and "." in key:
            value = self.data
            for k in key.split("."):
                if not isinstance(value, dict) or k not in value:
                    return False
                value = value[k]
            return True
        return key in self.data

    def __iter__(self) -> Iterator[str]:
        """Iterate over top-level keys."""
        return iter(self.data)

    def keys(self):
        return self.data.keys()

    def items(self):
        return self.data.items()

    # --- typed accessors -------------------------------------------------

    @property
    def accepted_suffixes(self) -> frozenset[str]:
        suffixes = self.submission.get("accepted_suffixes") or DEFAULT_ACCEPTED_SUFFIXES
        return frozenset(str(s).lower().lstrip(".") for s in suffixes)

    @property
    def staging_dir(self) -> Path:
        return Path(self.submission.get("staging_dir", "data/submissions"))

    @property
    def state_path(self) -> str:
        return str(self.state.get("path", "data/state.duckdb"))

    @property
    def dispatch_interval_s(self) -> float:
        return float(self.dispatch.get("every_s", DEFAULT_DISPATCH_INTERVAL_S))

    @property
    def dispatch_initial_delay_s(self) -> float:
        return float(self.dispatch.get("initial_delay_s", 0))

    @property
    def transfer_protocol(self) -> str:
        return str(self.transfer.get("protocol", "ftp")).lower()

    def validate(self) -> None:
        """Validate configuration structure and content."""
        errors = []

        if not isinstance(self.data, dict):
            raise ConfigurationError(f"Configuration must be a dictionary/mapping, got {type(self.data).__name__}")

        for section in ("submission", "transfer", "dispatch", "state", "logging"):
            value = self.data.get(section)
            if value is not None and not isinstance(value, dict):
                errors.append(f"Configuration '{section}' must be a dictionary, got {type(value).__name__}")
        if errors:
            raise ConfigurationError("\n".join(errors))

        suffixes = self.submission.get("accepted_suffixes")
        if suffixes is not None and (not isinstance(suffixes, list) or not suffixes):
            errors.append("'submission.accepted_suffixes' must be a non-empty list")

        try:
            if self.dispatch_interval_s <= 0:
                errors.append("'dispatch.every_s' must be positive")
        except (TypeError, ValueError):
            errors.append(f"'dispatch.every_s' must be a number, got {self.dispatch.get('every_s')!r}")

        if self.transfer_protocol not in DEFAULT_PORTS:
            errors.append(
                f"'transfer.protocol' must be one of {sorted(DEFAULT_PORTS)}, got '{self.transfer_protocol}'"
            )

        if not str(self.transfer.get("host") or "").strip():
            errors.append("'transfer.host' is required")

        for entry in find_unresolved(self.data):
            errors.append(f"Unresolved environment variable in {entry}")

        if errors:
            raise ConfigurationError("\n".join(errors))


def load_config(project_path: Path | None = None, env: str | None = None) -> Config:
    """
    Load srasubmit configuration.

    Loads config.yaml and config.{env}.yaml, then substitutes environment
    variables.

    Args:
        project_path: Path to project root (default: current directory)
        env: Environment name (dev, staging, prod)

    Returns:
        Config instance with merged configuration
    """
    if project_path is None:
        project_path = Path.cwd()

    base_config_path = project_path / "config.yaml"
    if not base_config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {base_config_path}\n"
            f"  Suggestion: Create a config.yaml file in your project root"
        )

    if not base_config_path.is_file():
        raise FileNotFoundError(f"Configuration path is not a file: {base_config_path}")

    config_data = _read_yaml(base_config_path)

    if env:
        env_config_path = project_path / f"config.{env}.yaml"
        if env_config_path.exists():
            _merge_dict(config_data, _read_yaml(env_config_path))

    config_data = resolve_config(config_data, env or "dev")

    return Config(config_data)


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            if hasattr(e, "problem_mark"):
                mark = e.problem_mark
                raise ValueError(
                    f"Error parsing {path.name} at line {mark.line + 1}, column {mark.column + 1}:\n"
                    f"  {e}\n"
                    f"  File: {path}"
                ) from e
            raise ValueError(f"Error parsing {path.name}: {e}\n  File: {path}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping, got {type(data).__name__}")
    return data


def _merge_dict(base: dict, override: dict):
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value

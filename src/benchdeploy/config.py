#!/usr/bin/env python3
"""
Configuration for bench-deploy runs.

Values are layered, later layers winning:
1. Built-in defaults
2. A YAML config file
3. Environment variables (BENCHDEPLOY_*)
4. Command-line flags

The resulting BenchDeployConfig is passed explicitly to every component; there
is no process-wide configuration state.

Example YAML:

    image: gcr.io/my-project/app:latest
    iterations: 3
    workers: 2
    cluster:
      target: local
      project: my-project
      zone: europe-west1-b
    timing:
      warmup_seconds: 180
      deadline: 3600
    candidates:
      - {cores: 2, memory_mb: 8192, hourly_cost: 0.066}
      - {cores: 4, memory_mb: 8192, hourly_cost: 0.109}
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union, get_args, get_origin

import yaml

from .errors import ConfigError
from .models.instance import InstanceConfig, default_instance_configs


# Environment variable -> (field name, type)
ENV_OVERRIDES = {
    "BENCHDEPLOY_TARGET": ("target", str),
    "BENCHDEPLOY_PROJECT": ("project", str),
    "BENCHDEPLOY_ZONE": ("zone", str),
    "BENCHDEPLOY_WORKERS": ("workers", int),
}

# YAML sections that are flattened into the top level
_SECTIONS = ("cluster", "timing", "timeouts", "production")


@dataclass
class BenchDeployConfig:
    """All settings of one bench-deploy run."""

    image: str = ""
    iterations: int = 3            # Utilization samples per configuration
    workers: int = 2

    # Where and how clusters are created
    target: str = "local"          # "local" or an SSH alias of a jump host
    project: Optional[str] = None
    zone: Optional[str] = None
    num_nodes: int = 1
    namespace: str = "default"
    name_prefix: str = "bench"

    # Timing (seconds)
    warmup_seconds: float = 180.0
    sample_interval: float = 10.0
    resolve_retries: int = 3
    resolve_backoff: float = 5.0
    deadline: Optional[float] = None

    # Per-phase timeouts (seconds, None waits forever)
    provision_timeout: Optional[float] = 900.0
    deploy_timeout: Optional[float] = 300.0
    sample_timeout: Optional[float] = 60.0
    deprovision_timeout: Optional[float] = 900.0

    # Promotion
    production_cluster: str = "bench-deploy-production"
    production_deployment: str = "bench-deploy-app"

    session_log: Optional[str] = None
    verbose: bool = False
    candidates: List[InstanceConfig] = field(default_factory=default_instance_configs)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BenchDeployConfig":
        """
        Create a config from parsed YAML data.

        Raises:
            ConfigError: On unknown keys, wrongly typed values or malformed candidates
        """
        flat: Dict[str, Any] = {}
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, Mapping):
                flat.update(value)
            else:
                flat[key] = value

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(flat) - known)
        if unknown:
            raise ConfigError("Unknown configuration keys", details=", ".join(unknown))

        types = {f.name: f.type for f in fields(cls)}
        for key, value in flat.items():
            if key == "candidates":
                flat[key] = parse_candidates(value)
            else:
                flat[key] = _check_type(key, value, types[key])

        return cls(**flat)

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> "BenchDeployConfig":
        """Override fields from BENCHDEPLOY_* environment variables."""
        environ = os.environ if environ is None else environ
        for var, (name, cast) in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                try:
                    setattr(self, name, cast(value))
                except ValueError as e:
                    raise ConfigError(f"Invalid value for {var}", details=value) from e
        return self

    def apply_overrides(self, **overrides: Any) -> "BenchDeployConfig":
        """Set every override that is not None."""
        for name, value in overrides.items():
            if value is not None:
                setattr(self, name, value)
        return self

    def validate(self) -> "BenchDeployConfig":
        """
        Check the configuration is runnable.

        Raises:
            ConfigError: Describing the first problem found
        """
        if not self.image:
            raise ConfigError("An image to deploy is required")
        if self.iterations < 1:
            raise ConfigError("iterations must be at least 1", details=str(self.iterations))
        if self.workers < 1:
            raise ConfigError("workers must be at least 1", details=str(self.workers))
        if self.resolve_retries < 0:
            raise ConfigError("resolve_retries cannot be negative", details=str(self.resolve_retries))
        if self.warmup_seconds < 0 or self.sample_interval < 0 or self.resolve_backoff < 0:
            raise ConfigError("Timing values cannot be negative")
        if self.deadline is not None and self.deadline <= 0:
            raise ConfigError("deadline must be positive", details=str(self.deadline))
        if not self.candidates:
            raise ConfigError("At least one candidate configuration is required")
        return self


def _check_type(name: str, value: Any, annotation: Any) -> Any:
    """
    Check a YAML value against a config field annotation.

    Ints are accepted for float fields; nothing else is converted.

    Raises:
        ConfigError: If the value has the wrong type
    """
    if get_origin(annotation) is Union:
        if value is None:
            return None
        annotation = next(a for a in get_args(annotation) if a is not type(None))

    if annotation is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif annotation is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, annotation)

    if not ok:
        raise ConfigError(
            f"Invalid value for {name}",
            details=f"expected {annotation.__name__}, got {type(value).__name__} {value!r}",
        )
    return float(value) if annotation is float else value


def parse_candidates(raw: Any) -> List[InstanceConfig]:
    """
    Parse the candidates list of a config file.

    Raises:
        ConfigError: If the list or one of its entries is malformed
    """
    if not isinstance(raw, list):
        raise ConfigError("candidates must be a list")
    candidates = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, Mapping):
            raise ConfigError(f"Candidate {i} must be a mapping", details=repr(entry))
        try:
            candidates.append(InstanceConfig.from_dict(entry))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid candidate {i}", details=str(e)) from e
    return candidates


def load_config_file(path: Path) -> BenchDeployConfig:
    """
    Parse a YAML config file.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the file is not a valid config
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    if not path.is_file():
        raise ConfigError(f"Config path is not a file: {path}")

    with open(path, "r") as file:
        try:
            data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}", details=str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return BenchDeployConfig.from_dict(data)


def build_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    validate: bool = True,
    **overrides: Any,
) -> BenchDeployConfig:
    """Layer defaults, file, environment and overrides, optionally validating."""
    config = load_config_file(path) if path else BenchDeployConfig()
    config.apply_env(environ)
    config.apply_overrides(**overrides)
    return config.validate() if validate else config

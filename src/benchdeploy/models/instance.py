#!/usr/bin/env python3
"""
Instance models for bench-deploy.

An InstanceConfig is one candidate machine shape. It is immutable and compared
by value, so the same shape listed twice is two equal candidates rather than
one.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return value


def _whole_number(name: str, value: Any) -> int:
    value = _number(name, value)
    if not float(value).is_integer():
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class InstanceConfig:
    """A candidate compute shape to benchmark."""

    cores: int
    memory_mb: int
    hourly_cost: float

    def __post_init__(self):
        if isinstance(self.cores, bool) or not isinstance(self.cores, int) or self.cores <= 0:
            raise ValueError(f"cores must be a positive integer, got {self.cores!r}")
        if isinstance(self.memory_mb, bool) or not isinstance(self.memory_mb, int) or self.memory_mb <= 0:
            raise ValueError(f"memory_mb must be a positive integer, got {self.memory_mb!r}")
        if self.hourly_cost <= 0:
            raise ValueError(f"hourly_cost must be positive, got {self.hourly_cost!r}")

    @property
    def machine_type(self) -> str:
        """GCE custom machine type string, e.g. custom-4-8192."""
        return f"custom-{self.cores}-{self.memory_mb}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cores": self.cores,
            "memory_mb": self.memory_mb,
            "hourly_cost": self.hourly_cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InstanceConfig":
        """
        Create an InstanceConfig from a dictionary.

        Accepts the YAML spellings ``memory_mb``/``memory`` and
        ``hourly_cost``/``cost``.

        Args:
            data: Dictionary with cores, memory and cost

        Returns:
            InstanceConfig instance

        Raises:
            ValueError: If a field is missing, not a number, fractional
                where a whole number is needed, or not positive
        """
        try:
            cores = data["cores"]
            memory_mb = data["memory_mb"] if "memory_mb" in data else data["memory"]
            hourly_cost = data["hourly_cost"] if "hourly_cost" in data else data["cost"]
        except KeyError as e:
            raise ValueError(f"Instance config is missing field {e}") from e
        return cls(
            cores=_whole_number("cores", cores),
            memory_mb=_whole_number("memory_mb", memory_mb),
            hourly_cost=float(_number("hourly_cost", hourly_cost)),
        )

    def __str__(self) -> str:
        return f"{self.cores} cores / {self.memory_mb} MB @ {self.hourly_cost:.3f}/h"


@dataclass(frozen=True)
class BenchmarkResult:
    """Score of one successfully benchmarked configuration."""

    score: float
    config: InstanceConfig
    cpu: float = 0.0     # Averaged CPU utilization (millicores)
    memory: float = 0.0  # Averaged memory utilization (report units)
    deprovision_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "config": self.config.to_dict(),
            "cpu": self.cpu,
            "memory": self.memory,
            "deprovision_error": self.deprovision_error,
        }


# Hourly prices per core count for the default candidate set
DEFAULT_CORE_PRICES = {
    2: 0.066,
    4: 0.109,
    8: 0.196,
}

DEFAULT_MEMORY_SIZES_MB = [8192, 12288]


def default_instance_configs() -> List[InstanceConfig]:
    """Return the built-in candidate set, grouped by memory size."""
    return [
        InstanceConfig(cores=cores, memory_mb=memory_mb, hourly_cost=price)
        for memory_mb in DEFAULT_MEMORY_SIZES_MB
        for cores, price in DEFAULT_CORE_PRICES.items()
    ]

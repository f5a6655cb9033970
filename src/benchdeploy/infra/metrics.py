#!/usr/bin/env python3
"""
Utilization metrics for bench-deploy.

Reads pod CPU and memory usage from `kubectl top pod`, which prints:

    NAME                         CPU(cores)   MEMORY(bytes)
    bench-pod-0-5d9c7-x2x8q      120m         45Mi

The first data row is the aggregate for the pod. Units are stripped, so the
CPU figure is in millicores and memory is in whatever unit the report used.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..errors import CommandFailedError, MetricsParseError
from .kubectl import KubectlClient


_NUMBER = re.compile(r"[0-9]+(?:\.[0-9]+)?")


@dataclass(frozen=True)
class UtilizationSample:
    """One CPU/memory reading."""
    cpu: float
    memory: float


def _strip_unit(value: str, column: str) -> float:
    match = _NUMBER.search(value)
    if not match:
        raise MetricsParseError(f"Could not read {column} value", details=repr(value))
    return float(match.group(0))


def parse_top_metrics(output: str) -> UtilizationSample:
    """
    Parse the CPU and memory columns of a `kubectl top` report.

    Args:
        output: Raw command output including the header row

    Returns:
        UtilizationSample from the first data row

    Raises:
        MetricsParseError: If the report has no data row or bad columns
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if len(lines) < 2:
        raise MetricsParseError("Metrics report has no data row", details=output.strip() or None)

    fields = lines[1].split()
    if len(fields) < 3:
        raise MetricsParseError("Metrics row has too few columns", details=lines[1])

    return UtilizationSample(
        cpu=_strip_unit(fields[1], "CPU"),
        memory=_strip_unit(fields[2], "memory"),
    )


class MetricsProvider(ABC):
    """Samples resource utilization of a running workload."""

    @abstractmethod
    def sample(self, runtime_name: str, cluster: Optional[str] = None,
               timeout: Optional[float] = None) -> UtilizationSample:
        """
        Retrieve current CPU and memory utilization.

        Raises:
            CommandFailedError: If the metrics could not be retrieved
            MetricsParseError: If the report could not be parsed
        """
        pass


class KubectlMetricsProvider(MetricsProvider):
    """Samples pod utilization with `kubectl top pod`."""

    def __init__(self, kubectl: KubectlClient):
        self.kubectl = kubectl

    def sample(self, runtime_name: str, cluster: Optional[str] = None,
               timeout: Optional[float] = None) -> UtilizationSample:
        result = self.kubectl.run(["top", "pod", runtime_name], cluster=cluster, timeout=timeout)
        if not result.success:
            raise CommandFailedError(f"Failed to read metrics for {runtime_name}", result, cluster=cluster)
        return parse_top_metrics(result.stdout)

#!/usr/bin/env python3
"""
Aggregator module for turning utilization samples into scores.

Scores reward configurations that deliver more utilized capacity per unit of
cost:

    score = normalize(cpu) * normalize(mem) * cores * memory_mb / hourly_cost

where normalize(x) is x for x > 0 and 1 otherwise, so an idle but working
instance is not scored as worthless.
"""

from typing import Iterable, List, Optional

import numpy as np

from ..infra.metrics import UtilizationSample
from ..models.instance import BenchmarkResult, InstanceConfig
from ..models.outcome import WorkerOutcome


def normalize(value: float) -> float:
    """Clamp a non-positive utilization reading to 1."""
    return value if value > 0 else 1.0


def calculate_score(cpu: float, memory: float, config: InstanceConfig) -> float:
    """
    Score one configuration.

    Args:
        cpu: Averaged CPU utilization
        memory: Averaged memory utilization
        config: The configuration that produced the readings

    Returns:
        Non-negative score, higher is better
    """
    return normalize(cpu) * normalize(memory) * config.cores * config.memory_mb / config.hourly_cost


def average_samples(samples: List[UtilizationSample]) -> UtilizationSample:
    """
    Average a series of utilization readings.

    Raises:
        ValueError: If samples is empty
    """
    if not samples:
        raise ValueError("Cannot average an empty list of samples")

    values = np.array([[s.cpu, s.memory] for s in samples], dtype=float)
    cpu, memory = values.mean(axis=0)
    return UtilizationSample(cpu=float(cpu), memory=float(memory))


def build_result(samples: List[UtilizationSample], config: InstanceConfig) -> BenchmarkResult:
    """Average the samples and score them for config."""
    avg = average_samples(samples)
    return BenchmarkResult(
        score=calculate_score(avg.cpu, avg.memory, config),
        config=config,
        cpu=avg.cpu,
        memory=avg.memory,
    )


def better_of(current: Optional[BenchmarkResult], candidate: BenchmarkResult) -> BenchmarkResult:
    """Return the higher-scoring result; current wins ties."""
    if current is None or candidate.score > current.score:
        return candidate
    return current


def select_global_best(outcomes: Iterable[WorkerOutcome]) -> Optional[BenchmarkResult]:
    """
    Reduce worker outcomes to the single best result.

    Outcomes without a result are skipped. Ties go to the first outcome seen.

    Returns:
        The best BenchmarkResult, or None if no worker produced one
    """
    best = None
    for outcome in outcomes:
        if outcome.best is not None:
            best = better_of(best, outcome.best)
    return best

#!/usr/bin/env python3
"""
Outcome models for bench-deploy.

A worker records every configuration it processed as an Attempt and emits a
single WorkerOutcome when the candidate queue runs dry. The coordinator
reduces those outcomes to a GlobalBest.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .instance import BenchmarkResult, InstanceConfig


@dataclass(frozen=True)
class Attempt:
    """One configuration processed by a worker."""

    config: InstanceConfig
    score: Optional[float] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None
    deprovision_error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error_kind is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "score": self.score,
            "error_kind": self.error_kind,
            "error": self.error,
            "deprovision_error": self.deprovision_error,
        }


@dataclass(frozen=True)
class WorkerOutcome:
    """The best result a worker observed, or None if every attempt failed."""

    worker_id: int
    best: Optional[BenchmarkResult]
    attempts: Tuple[Attempt, ...] = ()

    @property
    def succeeded(self) -> int:
        return sum(1 for a in self.attempts if a.success)

    @property
    def failed(self) -> int:
        return len(self.attempts) - self.succeeded


@dataclass(frozen=True)
class GlobalBest:
    """
    The highest-scoring result across all workers.

    Also carries the outcomes it was reduced from, whether the run was cut
    short by the deadline, and any candidates that were never picked up.
    """

    result: BenchmarkResult
    outcomes: Tuple[WorkerOutcome, ...] = ()
    cancelled: bool = False
    unprocessed: Tuple[InstanceConfig, ...] = ()

    @property
    def config(self) -> InstanceConfig:
        return self.result.config

    @property
    def score(self) -> float:
        return self.result.score

"""
Data models for bench-deploy.

Contains:
- instance: InstanceConfig and BenchmarkResult
- outcome: Attempt, WorkerOutcome and GlobalBest
"""

from .instance import BenchmarkResult, InstanceConfig, default_instance_configs
from .outcome import Attempt, GlobalBest, WorkerOutcome

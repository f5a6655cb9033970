"""
Tests for the worker pool and global best selection.
"""

import os
import signal
import sys
import threading
from collections import Counter
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeDeployer, FakeExecutor, FakeMetrics, FakeProvisioner, quiet_log
from benchdeploy.config import BenchDeployConfig
from benchdeploy.core.coordinator import orchestrate
from benchdeploy.core.lifecycle import LifecycleExecutor
from benchdeploy.errors import ErrorKind, ExecutionError, NoViableResult
from benchdeploy.infra.metrics import UtilizationSample
from benchdeploy.models.instance import BenchmarkResult, InstanceConfig, default_instance_configs


def test_every_config_processed_exactly_once():
    configs = [InstanceConfig(1 + i % 8, 1024 * (1 + i), 0.05 * (1 + i)) for i in range(40)]
    executor = FakeExecutor({c: float(i) for i, c in enumerate(configs)}, delay=0.001)

    best = orchestrate(configs, 5, executor, quiet_log())

    assert Counter(c for _, c in executor.processed) == Counter(configs)
    assert len(best.outcomes) == 5
    assert sum(len(o.attempts) for o in best.outcomes) == len(configs)
    assert best.config == configs[-1]
    assert not best.cancelled
    assert best.unprocessed == ()


def test_more_workers_than_configs():
    configs = default_instance_configs()[:2]
    executor = FakeExecutor({configs[0]: 1.0, configs[1]: 2.0})

    best = orchestrate(configs, 6, executor, quiet_log())

    assert len(best.outcomes) == 6
    assert sorted(o.worker_id for o in best.outcomes) == list(range(6))
    assert best.config == configs[1]


def test_all_fail_raises_no_viable_result():
    configs = default_instance_configs()
    executor = FakeExecutor({c: ErrorKind.PROVISION_FAILED for c in configs})

    with pytest.raises(NoViableResult) as excinfo:
        orchestrate(configs, 3, executor, quiet_log())

    assert excinfo.value.kind == ErrorKind.NO_VIABLE_RESULT
    assert not excinfo.value.recoverable
    assert len(excinfo.value.outcomes) == 3
    assert all(o.best is None for o in excinfo.value.outcomes)


def test_empty_candidate_set_has_no_viable_result():
    with pytest.raises(NoViableResult):
        orchestrate([], 2, FakeExecutor({}), quiet_log())


def test_worker_count_must_be_positive():
    with pytest.raises(ValueError):
        orchestrate(default_instance_configs(), 0, FakeExecutor({}), quiet_log())


def test_scenario_two_workers_with_lifecycle():
    """Both configurations succeed; the larger score wins."""
    big = InstanceConfig(cores=4, memory_mb=8192, hourly_cost=0.109)
    wide = InstanceConfig(cores=2, memory_mb=12288, hourly_cost=0.066)
    provisioner = FakeProvisioner()
    metrics = FakeMetrics(provisioner, {
        big.machine_type: UtilizationSample(120, 45),
        wide.machine_type: UtilizationSample(80, 30),
    })
    config = BenchDeployConfig(image="app:1", iterations=1, warmup_seconds=0,
                               sample_interval=0, resolve_backoff=0)
    executor = LifecycleExecutor(provisioner, FakeDeployer(), metrics, config, quiet_log())

    best = orchestrate([big, wide], 2, executor, quiet_log())

    expected_big = 120 * 45 * 4 * 8192 / 0.109
    expected_wide = 80 * 30 * 2 * 12288 / 0.066
    assert best.config == (big if expected_big > expected_wide else wide)
    assert best.score == pytest.approx(max(expected_big, expected_wide))
    scores = sorted(a.score for o in best.outcomes for a in o.attempts)
    assert scores == pytest.approx(sorted([expected_big, expected_wide]))
    assert provisioner.count("create") == 2
    assert provisioner.count("delete") == 2


class SlowExecutor:
    """Scores A at once; B runs until cancelled."""

    def __init__(self, fast, slow):
        self.fast = fast
        self.slow = slow
        self.started_slow = threading.Event()

    def run(self, worker_id, instance, cancel_event=None):
        if instance == self.fast:
            return BenchmarkResult(score=1.0, config=instance)
        self.started_slow.set()
        if cancel_event.wait(10):
            raise ExecutionError(ErrorKind.CANCELLED, "Cancelled during warm-up")
        return BenchmarkResult(score=100.0, config=instance)


def test_deadline_returns_partial_best():
    a, b, c = default_instance_configs()[:3]
    executor = SlowExecutor(fast=a, slow=b)

    best = orchestrate([a, b, c], 1, executor, quiet_log(), deadline=0.2)

    assert best.cancelled
    assert best.config == a
    assert best.unprocessed == (c,)
    attempts = best.outcomes[0].attempts
    assert [x.error_kind for x in attempts] == [None, "Cancelled"]


def test_deadline_with_no_result_is_no_viable_result():
    a, b = default_instance_configs()[:2]
    executor = SlowExecutor(fast=None, slow=b)

    with pytest.raises(NoViableResult) as excinfo:
        orchestrate([a, b], 2, executor, quiet_log(), deadline=0.2)

    assert excinfo.value.details == "deadline exceeded"


class ClusterHoldingExecutor:
    """Holds a cluster until cancelled; always releases it."""

    def __init__(self, expected):
        self.expected = expected
        self.creates = 0
        self.deletes = 0
        self.all_started = threading.Event()
        self._lock = threading.Lock()

    def run(self, worker_id, instance, cancel_event=None):
        with self._lock:
            self.creates += 1
            if self.creates == self.expected:
                self.all_started.set()
        try:
            if cancel_event.wait(10):
                raise ExecutionError(ErrorKind.CANCELLED, "Cancelled during warm-up")
            return BenchmarkResult(score=1.0, config=instance)
        finally:
            with self._lock:
                self.deletes += 1


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")
def test_interrupt_cancels_workers_and_waits_for_cleanup():
    executor = ClusterHoldingExecutor(expected=2)

    def interrupt():
        executor.all_started.wait(5)
        os.kill(os.getpid(), signal.SIGINT)

    threading.Thread(target=interrupt, daemon=True).start()

    with pytest.raises(KeyboardInterrupt):
        orchestrate(default_instance_configs()[:3], 2, executor, quiet_log())

    # Every worker finished its cleanup before the interrupt surfaced
    assert executor.creates == 2
    assert executor.deletes == 2

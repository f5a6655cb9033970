#!/usr/bin/env python3
"""
Benchmark worker.

A worker pulls configurations off the shared queue until it is empty, runs
each through the lifecycle executor and keeps only its own best result. A
failed configuration is logged and skipped; it never stops the worker.
"""

import threading
from typing import List, Optional

from ..errors import ExecutionError
from ..infra.run_log import RunLog
from ..models.outcome import Attempt, WorkerOutcome
from .aggregator import better_of
from .queue import CandidateQueue


def run_worker(
    worker_id: int,
    queue: CandidateQueue,
    executor,
    result_sink,
    run_log: Optional[RunLog] = None,
    cancel_event: Optional[threading.Event] = None,
) -> WorkerOutcome:
    """
    Drain the queue and emit this worker's single outcome.

    Args:
        worker_id: Index of this worker
        queue: Shared candidate queue
        executor: Object with run(worker_id, config, cancel_event) -> BenchmarkResult
        result_sink: Object with put(outcome), receives exactly one WorkerOutcome
        run_log: Where progress is reported
        cancel_event: When set, no further configurations are taken

    Returns:
        The emitted WorkerOutcome
    """
    run_log = run_log or RunLog()
    cancel = cancel_event or threading.Event()
    best = None
    attempts: List[Attempt] = []

    try:
        while not cancel.is_set():
            instance = queue.try_dequeue()
            if instance is None:
                break

            run_log.worker(worker_id, f"Checking instance {instance}")
            try:
                result = executor.run(worker_id, instance, cancel)
            except ExecutionError as e:
                run_log.error(f"Worker {worker_id}: {e.kind.value} for {instance}: {e}")
                attempts.append(Attempt(
                    config=instance,
                    error_kind=e.kind.value,
                    error=str(e),
                    deprovision_error=e.deprovision_error,
                ))
                continue

            run_log.worker(worker_id, f"Score {result.score:.2f} for {instance}")
            attempts.append(Attempt(
                config=instance,
                score=result.score,
                deprovision_error=result.deprovision_error,
            ))
            best = better_of(best, result)
    finally:
        outcome = WorkerOutcome(worker_id=worker_id, best=best, attempts=tuple(attempts))
        result_sink.put(outcome)
        run_log.worker(worker_id, "Finished")

    return outcome

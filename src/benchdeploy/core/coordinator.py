#!/usr/bin/env python3
"""
Coordinator for the benchmark phase.

Loads the candidate set into a queue, runs a fixed pool of symmetric worker
threads over it, waits for every one of them and reduces their outcomes to a
single GlobalBest.
"""

import queue as queue_module
import threading
import time
from typing import Iterable, List, Optional

from ..errors import NoViableResult
from ..infra.run_log import RunLog
from ..models.instance import InstanceConfig
from ..models.outcome import GlobalBest, WorkerOutcome
from .aggregator import select_global_best
from .queue import CandidateQueue
from .worker import run_worker


def _join_all(threads: List[threading.Thread], cancel: threading.Event,
              deadline: Optional[float], run_log: RunLog) -> None:
    """
    Wait for every thread, setting cancel once the deadline passes.

    If the wait itself is interrupted (e.g. Ctrl+C), workers are cancelled and
    joined before the interrupt propagates, so no cluster outlives the run.
    """
    try:
        if deadline is not None:
            deadline_at = time.monotonic() + deadline
            for thread in threads:
                thread.join(max(0.0, deadline_at - time.monotonic()))
                if thread.is_alive():
                    run_log.error(f"Deadline of {deadline:g}s exceeded, cancelling workers")
                    cancel.set()
                    break

        # Workers stop at their next phase boundary and still clean up
        for thread in threads:
            thread.join()
    except BaseException:
        cancel.set()
        run_log.error("Interrupted, waiting for workers to deprovision their clusters")
        for thread in threads:
            thread.join()
        raise


def orchestrate(
    configs: Iterable[InstanceConfig],
    worker_count: int,
    executor,
    run_log: Optional[RunLog] = None,
    deadline: Optional[float] = None,
) -> GlobalBest:
    """
    Benchmark every configuration and return the best one.

    Args:
        configs: Candidate configurations, all known up front
        worker_count: Number of concurrent workers to run
        executor: Shared lifecycle executor
        run_log: Where progress is reported
        deadline: Optional overall time limit in seconds

    Returns:
        GlobalBest with the highest-scoring result

    Raises:
        ValueError: If worker_count is less than 1
        NoViableResult: If no configuration was benchmarked successfully
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be at least 1, got {worker_count}")

    run_log = run_log or RunLog()
    candidates = CandidateQueue(configs)
    candidates.close()
    total = len(candidates)

    sink = queue_module.SimpleQueue()
    cancel = threading.Event()

    run_log.log(f"Benchmarking {total} configuration(s) with {worker_count} worker(s)")
    threads = [
        threading.Thread(
            target=run_worker,
            args=(worker_id, candidates, executor, sink, run_log, cancel),
            name=f"bench-worker-{worker_id}",
            daemon=True,
        )
        for worker_id in range(worker_count)
    ]
    for thread in threads:
        thread.start()

    _join_all(threads, cancel, deadline, run_log)
    run_log.log("Tests finished")

    outcomes: List[WorkerOutcome] = []
    while not sink.empty():
        outcomes.append(sink.get_nowait())
    outcomes.sort(key=lambda o: o.worker_id)

    unprocessed = tuple(candidates.drain())
    best = select_global_best(outcomes)
    if best is None:
        raise NoViableResult(
            "No configuration survived benchmarking",
            outcomes=outcomes,
            details="deadline exceeded" if cancel.is_set() else None,
        )

    return GlobalBest(
        result=best,
        outcomes=tuple(outcomes),
        cancelled=cancel.is_set(),
        unprocessed=unprocessed,
    )

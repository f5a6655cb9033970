#!/usr/bin/env python3
"""
Text reports for bench-deploy runs.
"""

from typing import Iterable, List

from ..models.instance import InstanceConfig
from ..models.outcome import GlobalBest, WorkerOutcome


def format_candidate_table(candidates: Iterable[InstanceConfig]) -> str:
    """
    Format candidate configurations as an ASCII table.

    Args:
        candidates: Configurations to list

    Returns:
        Formatted table string
    """
    candidates = list(candidates)
    if not candidates:
        return "No candidates configured."

    lines = [
        f"{'#':<4} {'Cores':<6} {'Memory (MB)':<12} {'Cost/h':<8} {'Machine type'}",
        "-" * 52,
    ]
    for i, c in enumerate(candidates):
        lines.append(f"{i:<4} {c.cores:<6} {c.memory_mb:<12} {c.hourly_cost:<8.3f} {c.machine_type}")
    return "\n".join(lines)


def format_worker_outcomes(outcomes: Iterable[WorkerOutcome]) -> str:
    """List every configuration each worker attempted and how it went."""
    lines: List[str] = []
    for outcome in outcomes:
        lines.append(
            f"Worker {outcome.worker_id}: {len(outcome.attempts)} attempted, "
            f"{outcome.succeeded} succeeded, {outcome.failed} failed"
        )
        for attempt in outcome.attempts:
            if attempt.success:
                lines.append(f"  ✓ {attempt.config}  score={attempt.score:.2f}")
            else:
                lines.append(f"  ✗ {attempt.config}  {attempt.error_kind}: {attempt.error}")
            if attempt.deprovision_error:
                lines.append(f"    ! cluster teardown failed: {attempt.deprovision_error}")
        if outcome.best is None:
            lines.append("  best: none")
        else:
            lines.append(f"  best: {outcome.best.config} ({outcome.best.score:.2f})")
    return "\n".join(lines) if lines else "No worker outcomes."


def format_selection(best: GlobalBest) -> str:
    """
    Format the selected configuration as a text report.

    Args:
        best: The global best of the run

    Returns:
        Formatted report string
    """
    result = best.result
    lines = [
        "",
        "=" * 60,
        "Best configuration",
        "=" * 60,
        f"Best score:   {result.score:f}",
        f"Best cores:   {result.config.cores}",
        f"Best mem:     {result.config.memory_mb} MB",
        f"Hourly cost:  {result.config.hourly_cost:.3f}",
        f"Avg CPU:      {result.cpu:.1f}",
        f"Avg memory:   {result.memory:.1f}",
    ]
    if best.cancelled:
        lines.append("Note: deadline exceeded, this is the best of a partial run")
    if best.unprocessed:
        lines.append(f"Not benchmarked: {', '.join(str(c) for c in best.unprocessed)}")
    lines.append("=" * 60)
    return "\n".join(lines)

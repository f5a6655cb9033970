"""
Report generation for bench-deploy.

Contains:
- reporter: Candidate, per-worker and selection reports
"""

from .reporter import format_candidate_table, format_selection, format_worker_outcomes

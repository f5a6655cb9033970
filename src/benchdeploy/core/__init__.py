"""
Core benchmark orchestration.

Contains:
- queue: Candidate queue shared by workers
- aggregator: Scoring and reduction to the best result
- lifecycle: Per-configuration benchmark lifecycle
- worker: Queue-draining worker loop
- coordinator: Worker pool and global best selection
- promoter: Production deployment of the winner
"""

from .queue import CandidateQueue
from .aggregator import calculate_score, normalize, select_global_best
from .lifecycle import LifecycleExecutor, cluster_name, deployment_name
from .worker import run_worker
from .coordinator import orchestrate
from .promoter import Promoter

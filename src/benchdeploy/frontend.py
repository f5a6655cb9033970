#!/usr/bin/env python3
"""
Frontend module for bench-deploy.

Handles command-line argument parsing, assembles the run configuration and
wires the external tooling into the benchmark orchestrator and promoter.

Example:
    bench-deploy --image gcr.io/my-project/app:latest --iterations 3
    bench-deploy -c bench-deploy.yaml --workers 3 --deadline 3600
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import BenchDeployConfig, build_config
from .core.coordinator import orchestrate
from .core.lifecycle import LifecycleExecutor
from .core.promoter import Promoter
from .errors import ConfigError, NoViableResult, PromotionFailed
from .infra.cluster import GCloudClusterProvisioner
from .infra.communicator import Communicator, create_communicator
from .infra.deployer import KubectlDeployer
from .infra.kubectl import KubectlClient
from .infra.metrics import KubectlMetricsProvider
from .infra.run_log import RunLog, default_session_file
from .models.outcome import GlobalBest
from .reporting.reporter import format_candidate_table, format_selection, format_worker_outcomes


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="bench-deploy",
        description="Benchmark and deploy the given image. Tests the image on clusters "
                    "with different attributes and deploys it to the best performing one.",
        epilog="Example: bench-deploy -i gcr.io/my-project/app:latest -r 3",
    )

    parser.add_argument(
        "-i", "--image",
        type=str,
        help="The image to deploy",
    )

    parser.add_argument(
        "-r", "--iterations",
        type=int,
        help="Number of utilization samples per configuration (default: 3)",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to a YAML configuration file",
    )

    parser.add_argument(
        "-w", "--workers",
        type=int,
        help="Number of configurations benchmarked in parallel (default: 2)",
    )

    parser.add_argument(
        "--target",
        type=str,
        help="Where to run gcloud/kubectl: 'local' or an SSH alias",
    )

    parser.add_argument("--project", type=str, help="GCP project for the clusters")
    parser.add_argument("--zone", type=str, help="GCP zone for the clusters")

    parser.add_argument(
        "--warmup",
        dest="warmup_seconds",
        type=float,
        metavar="SECONDS",
        help="Warm-up before sampling (default: 180)",
    )

    parser.add_argument(
        "--deadline",
        type=float,
        metavar="SECONDS",
        help="Overall time limit for the benchmark phase",
    )

    parser.add_argument(
        "--session-log",
        type=str,
        metavar="PATH",
        help="Session log file (default: logs/bench_deploy_<timestamp>.log)",
    )

    parser.add_argument(
        "--list-candidates",
        action="store_true",
        help="List candidate configurations and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=None,
        help="Enable verbose output",
    )

    return parser


def run_bench_deploy(
    config: BenchDeployConfig,
    communicator: Optional[Communicator] = None,
    run_log: Optional[RunLog] = None,
) -> GlobalBest:
    """
    Benchmark every candidate and promote the best one.

    Args:
        config: Validated run configuration
        communicator: Where external commands run (built from config.target if None)
        run_log: Where progress is reported

    Returns:
        The promoted GlobalBest

    Raises:
        NoViableResult: If every configuration failed to benchmark
        PromotionFailed: If the production deployment failed
    """
    run_log = run_log or RunLog(verbose=config.verbose)
    communicator = communicator or create_communicator(config.target)

    with communicator:
        provisioner = GCloudClusterProvisioner(
            communicator,
            project=config.project,
            zone=config.zone,
            num_nodes=config.num_nodes,
        )
        kubectl = KubectlClient(communicator, namespace=config.namespace)
        deployer = KubectlDeployer(kubectl)
        executor = LifecycleExecutor(
            provisioner,
            deployer,
            KubectlMetricsProvider(kubectl),
            config,
            run_log,
        )

        run_log.step(1, f"Benchmarking {config.image}")
        best = orchestrate(
            config.candidates,
            config.workers,
            executor,
            run_log=run_log,
            deadline=config.deadline,
        )
        run_log.log(format_worker_outcomes(best.outcomes))
        run_log.log(format_selection(best))

        run_log.step(2, "Starting instance for image with best attributes")
        Promoter(provisioner, deployer, config, run_log).promote(best, config.image)

    return best


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for bench-deploy.

    Returns:
        Exit code (0 for success, 1 for a failed run, 2 for bad usage)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(
            args.config,
            validate=False,
            image=args.image,
            iterations=args.iterations,
            workers=args.workers,
            target=args.target,
            project=args.project,
            zone=args.zone,
            warmup_seconds=args.warmup_seconds,
            deadline=args.deadline,
            session_log=args.session_log,
            verbose=args.verbose,
        )
        if args.list_candidates:
            print(format_candidate_table(config.candidates))
            return EXIT_OK
        config.validate()
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    session_file = Path(config.session_log) if config.session_log else default_session_file()
    run_log = RunLog(session_file=session_file, verbose=config.verbose)

    try:
        run_bench_deploy(config, run_log=run_log)
    except NoViableResult as e:
        run_log.log(format_worker_outcomes(e.outcomes))
        run_log.error(f"{e.kind.value}: {e}")
        return EXIT_FAILED
    except PromotionFailed as e:
        run_log.error(f"{e.kind.value}: {e}")
        return EXIT_FAILED
    except KeyboardInterrupt:
        run_log.error("Interrupted")
        return EXIT_FAILED

    run_log.log(f"Done. Session log: {session_file}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Benchmark lifecycle for a single configuration.

Steps, strictly in order:
1. Provision a dedicated cluster sized to the configuration
2. Deploy the target image onto it
3. Resolve the pod name Kubernetes gave the deployment (with retries)
4. Warm up so the workload reaches steady state
5. Sample CPU and memory utilization
6. Score the averaged samples against cost
7. Deprovision the cluster, whatever happened before

Every name used here is derived from the worker id, so workers running at the
same time never collide on clusters or deployments.
"""

import threading
from dataclasses import replace
from typing import List, Optional

from ..config import BenchDeployConfig
from ..errors import (
    CommandFailedError,
    ErrorKind,
    ExecutionError,
    MetricsParseError,
    RuntimeNameNotFound,
)
from ..infra.cluster import ClusterProvisioner
from ..infra.deployer import WorkloadDeployer
from ..infra.metrics import MetricsProvider, UtilizationSample
from ..infra.run_log import RunLog
from ..models.instance import BenchmarkResult, InstanceConfig
from .aggregator import build_result


def cluster_name(worker_id: int, prefix: str = "bench") -> str:
    """Name of the cluster a worker benchmarks on."""
    return f"{prefix}-cluster-{worker_id}"


def deployment_name(worker_id: int, prefix: str = "bench") -> str:
    """Name of the deployment a worker benchmarks."""
    return f"{prefix}-pod-{worker_id}"


class LifecycleExecutor:
    """
    Runs one configuration through provision -> deploy -> sample -> score ->
    deprovision.

    The executor holds no per-run state, so one instance is shared by all
    workers.
    """

    def __init__(
        self,
        provisioner: ClusterProvisioner,
        deployer: WorkloadDeployer,
        metrics: MetricsProvider,
        config: BenchDeployConfig,
        run_log: Optional[RunLog] = None,
    ):
        self.provisioner = provisioner
        self.deployer = deployer
        self.metrics = metrics
        self.config = config
        self.run_log = run_log or RunLog()

    def run(
        self,
        worker_id: int,
        instance: InstanceConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> BenchmarkResult:
        """
        Benchmark one configuration.

        Args:
            worker_id: Index of the calling worker
            instance: Configuration to benchmark
            cancel_event: When set, the run stops at the next phase boundary

        Returns:
            BenchmarkResult for the configuration

        Raises:
            ExecutionError: If any phase before scoring failed or was cancelled
        """
        cancel = cancel_event or threading.Event()
        cluster = cluster_name(worker_id, self.config.name_prefix)
        deployment = deployment_name(worker_id, self.config.name_prefix)

        # Nothing to clean up yet
        self._check_cancelled(cancel, "provision")

        failure: Optional[ExecutionError] = None
        try:
            self._provision(worker_id, cluster, instance)
            self._check_cancelled(cancel, "deploy")

            self._deploy(worker_id, cluster, deployment)
            self._check_cancelled(cancel, "resolve")

            runtime_name = self._resolve_runtime_name(worker_id, cluster, deployment, cancel)
            self._warm_up(worker_id, cancel)

            samples = self._sample(worker_id, cluster, runtime_name, cancel)
            result = build_result(samples, instance)
            self.run_log.worker(
                worker_id,
                f"Scored {instance}: {result.score:.2f} (cpu={result.cpu:.1f}, mem={result.memory:.1f})",
            )
        except ExecutionError as e:
            failure = e
            raise
        finally:
            deprovision_error = self._deprovision(worker_id, cluster)
            if failure is not None:
                failure.deprovision_error = deprovision_error

        if deprovision_error:
            result = replace(result, deprovision_error=deprovision_error)
        return result

    def _check_cancelled(self, cancel: threading.Event, phase: str) -> None:
        if cancel.is_set():
            raise ExecutionError(ErrorKind.CANCELLED, f"Cancelled before {phase}")

    def _provision(self, worker_id: int, cluster: str, instance: InstanceConfig) -> None:
        self.run_log.worker(worker_id, f"Starting cluster {cluster} ({instance.machine_type})")
        try:
            self.provisioner.create(cluster, instance.machine_type, timeout=self.config.provision_timeout)
        except CommandFailedError as e:
            raise ExecutionError(
                ErrorKind.PROVISION_FAILED,
                f"Could not provision {cluster}",
                details=e.details,
                cluster=cluster,
            ) from e

    def _deploy(self, worker_id: int, cluster: str, deployment: str) -> None:
        self.run_log.worker(worker_id, f"Deploying {self.config.image} as {deployment}")
        try:
            self.deployer.deploy(deployment, self.config.image, cluster=cluster,
                                 timeout=self.config.deploy_timeout)
        except CommandFailedError as e:
            raise ExecutionError(
                ErrorKind.DEPLOY_FAILED,
                f"Could not deploy {deployment}",
                details=e.details,
                cluster=cluster,
            ) from e

    def _resolve_runtime_name(self, worker_id: int, cluster: str, deployment: str,
                              cancel: threading.Event) -> str:
        """Find the pod of a fresh deployment, backing off while it propagates."""
        attempts = self.config.resolve_retries + 1
        delay = self.config.resolve_backoff
        last_error = None

        for attempt in range(1, attempts + 1):
            try:
                name = self.deployer.resolve_runtime_name(deployment, cluster=cluster,
                                                          timeout=self.config.deploy_timeout)
                self.run_log.debug(f"Resolved {deployment} to {name}", f"WORKER {worker_id}")
                return name
            except (RuntimeNameNotFound, CommandFailedError) as e:
                last_error = e

            if attempt == attempts:
                break
            self.run_log.worker(
                worker_id,
                f"Pod for {deployment} not visible yet, retrying in {delay:g}s ({attempt}/{attempts - 1})",
            )
            if cancel.wait(delay):
                raise ExecutionError(ErrorKind.CANCELLED, "Cancelled while resolving pod")
            delay *= 2

        raise ExecutionError(
            ErrorKind.INSTANCE_NOT_FOUND,
            f"No pod found for {deployment} after {attempts} attempt(s)",
            details=str(last_error) if last_error else None,
            cluster=cluster,
        )

    def _warm_up(self, worker_id: int, cancel: threading.Event) -> None:
        if self.config.warmup_seconds <= 0:
            return
        self.run_log.worker(worker_id, f"Warming up for {self.config.warmup_seconds:g}s...")
        if cancel.wait(self.config.warmup_seconds):
            raise ExecutionError(ErrorKind.CANCELLED, "Cancelled during warm-up")

    def _sample(self, worker_id: int, cluster: str, runtime_name: str,
                cancel: threading.Event) -> List[UtilizationSample]:
        self.run_log.worker(worker_id, f"Getting metrics for {runtime_name}...")
        samples = []
        for i in range(self.config.iterations):
            if i > 0 and cancel.wait(self.config.sample_interval):
                raise ExecutionError(ErrorKind.CANCELLED, "Cancelled while sampling")
            try:
                sample = self.metrics.sample(runtime_name, cluster=cluster,
                                             timeout=self.config.sample_timeout)
            except (CommandFailedError, MetricsParseError) as e:
                raise ExecutionError(
                    ErrorKind.SAMPLE_FAILED,
                    f"Could not sample {runtime_name}",
                    details=str(e),
                    cluster=cluster,
                ) from e
            self.run_log.debug(f"Sample {i + 1}: cpu={sample.cpu} mem={sample.memory}", f"WORKER {worker_id}")
            samples.append(sample)
        return samples

    def _deprovision(self, worker_id: int, cluster: str) -> Optional[str]:
        """
        Tear the cluster down. Failures are reported, never raised.

        Returns:
            The failure message, or None if the cluster was deleted
        """
        self.run_log.worker(worker_id, f"Stopping cluster {cluster}")
        try:
            self.provisioner.delete(cluster, timeout=self.config.deprovision_timeout)
        except CommandFailedError as e:
            self.run_log.error(f"Worker {worker_id}: {ErrorKind.DEPROVISION_FAILED.value}: {e}")
            return str(e)
        return None

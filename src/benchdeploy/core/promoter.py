#!/usr/bin/env python3
"""
Promotion of the winning configuration.

Runs once, after the benchmark phase: provisions the production cluster sized
to the best configuration and deploys the target image onto it. There is no
fallback at this point, so every failure is fatal.
"""

from typing import Optional

from ..config import BenchDeployConfig
from ..errors import CommandFailedError, PromotionFailed
from ..infra.cluster import ClusterProvisioner
from ..infra.deployer import WorkloadDeployer
from ..infra.run_log import RunLog
from ..models.outcome import GlobalBest


class Promoter:
    """One-shot production provision + deploy."""

    def __init__(
        self,
        provisioner: ClusterProvisioner,
        deployer: WorkloadDeployer,
        config: BenchDeployConfig,
        run_log: Optional[RunLog] = None,
    ):
        self.provisioner = provisioner
        self.deployer = deployer
        self.config = config
        self.run_log = run_log or RunLog()
        self._promoted = False

    def promote(self, best: GlobalBest, image: Optional[str] = None) -> None:
        """
        Provision the production cluster and deploy image onto it.

        Args:
            best: Result of the benchmark phase
            image: Image to deploy (defaults to the configured image)

        Raises:
            PromotionFailed: If provisioning or deployment failed
            RuntimeError: If called a second time
        """
        if self._promoted:
            raise RuntimeError("Promotion has already run")
        self._promoted = True

        image = image or self.config.image
        cluster = self.config.production_cluster
        deployment = self.config.production_deployment
        machine_type = best.config.machine_type

        self.run_log.log(f"Starting cluster {cluster} ({machine_type}) for {image}")
        try:
            self.provisioner.create(cluster, machine_type, timeout=self.config.provision_timeout)
        except CommandFailedError as e:
            raise PromotionFailed(
                f"Could not provision production cluster {cluster}",
                details=e.details,
                cluster=cluster,
            ) from e

        self.run_log.log(f"Starting deployment {deployment}")
        try:
            self.deployer.deploy(deployment, image, cluster=cluster, timeout=self.config.deploy_timeout)
        except CommandFailedError as e:
            raise PromotionFailed(
                f"Could not deploy {image} to {cluster}",
                details=e.details,
                cluster=cluster,
            ) from e

        self.run_log.log(f"{image} is running on {cluster} ({best.config})")

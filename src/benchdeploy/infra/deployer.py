#!/usr/bin/env python3
"""
Workload deployment for bench-deploy.

Deploys a container image with `kubectl create deployment` and discovers the
pod Kubernetes created for it. The deployment request only knows the logical
name; the pod gets a generated suffix (``<deployment>-<replicaset>-<pod>``)
that has to be looked up.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..errors import CommandFailedError, RuntimeNameNotFound
from .kubectl import KubectlClient


RUNNING_STATUS = "Running"


def parse_runtime_name(prefix: str, output: str, require_running: bool = True) -> Optional[str]:
    """
    Find a pod belonging to a deployment.

    Parses `kubectl get pods --no-headers` output, whose rows are
    ``NAME READY STATUS RESTARTS AGE``.

    Args:
        prefix: Deployment (logical) name
        output: Raw command output
        require_running: Only accept pods in the Running state

    Returns:
        Full pod name, or None if no pod matched
    """
    marker = f"{prefix}-"
    for line in output.splitlines():
        fields = line.split()
        if not fields:
            continue
        name = fields[0]
        if marker not in name:
            continue
        status = fields[2] if len(fields) > 2 else ""
        if require_running and status != RUNNING_STATUS:
            continue
        return name
    return None


class WorkloadDeployer(ABC):
    """Deploys workloads and resolves their runtime identity."""

    @abstractmethod
    def deploy(self, deployment_name: str, image: str, cluster: Optional[str] = None,
               timeout: Optional[float] = None) -> None:
        """
        Request a deployment of image under deployment_name.

        Raises:
            CommandFailedError: If the deployment request failed
        """
        pass

    @abstractmethod
    def resolve_runtime_name(self, prefix: str, cluster: Optional[str] = None,
                             timeout: Optional[float] = None) -> str:
        """
        Look up the runtime name of a deployed workload.

        Raises:
            RuntimeNameNotFound: If no running instance matches yet
            CommandFailedError: If instances could not be listed
        """
        pass


class KubectlDeployer(WorkloadDeployer):
    """Deploys images onto Kubernetes clusters with kubectl."""

    def __init__(self, kubectl: KubectlClient):
        self.kubectl = kubectl

    def deploy(self, deployment_name: str, image: str, cluster: Optional[str] = None,
               timeout: Optional[float] = None) -> None:
        result = self.kubectl.run(
            ["create", "deployment", deployment_name, f"--image={image}"],
            cluster=cluster,
            timeout=timeout,
        )
        if not result.success:
            raise CommandFailedError(
                f"Failed to deploy {image} as {deployment_name}",
                result,
                cluster=cluster,
            )

    def resolve_runtime_name(self, prefix: str, cluster: Optional[str] = None,
                             timeout: Optional[float] = None) -> str:
        result = self.kubectl.run(["get", "pods", "--no-headers"], cluster=cluster, timeout=timeout)
        if not result.success:
            raise CommandFailedError("Failed to list pods", result, cluster=cluster)

        name = parse_runtime_name(prefix, result.stdout)
        if name is None:
            raise RuntimeNameNotFound(f"No running pod found for {prefix}", cluster=cluster)
        return name

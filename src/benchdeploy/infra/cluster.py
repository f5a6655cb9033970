#!/usr/bin/env python3
"""
Cluster provisioning for bench-deploy.

Creates and deletes single-node GKE clusters through the gcloud CLI.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..errors import CommandFailedError
from .communicator import Communicator


class ClusterProvisioner(ABC):
    """Creates and tears down compute clusters."""

    @abstractmethod
    def create(self, name: str, machine_type: str, timeout: Optional[float] = None) -> None:
        """
        Create a cluster and block until the provisioning command completes.

        Raises:
            CommandFailedError: If provisioning failed or timed out
        """
        pass

    @abstractmethod
    def delete(self, name: str, timeout: Optional[float] = None) -> None:
        """
        Delete a cluster.

        Raises:
            CommandFailedError: If deletion failed or timed out
        """
        pass


class GCloudClusterProvisioner(ClusterProvisioner):
    """Provisions GKE clusters with `gcloud container clusters`."""

    def __init__(
        self,
        communicator: Communicator,
        project: Optional[str] = None,
        zone: Optional[str] = None,
        num_nodes: int = 1,
    ):
        self.communicator = communicator
        self.project = project
        self.zone = zone
        self.num_nodes = num_nodes

    def _location_flags(self) -> List[str]:
        flags = []
        if self.zone:
            flags.append(f"--zone={self.zone}")
        if self.project:
            flags.append(f"--project={self.project}")
        return flags

    def build_create_command(self, name: str, machine_type: str) -> List[str]:
        return [
            "gcloud", "container", "clusters", "create", name,
            f"--machine-type={machine_type}",
            f"--num-nodes={self.num_nodes}",
            *self._location_flags(),
        ]

    def build_delete_command(self, name: str) -> List[str]:
        return [
            "gcloud", "container", "clusters", "delete", name,
            "--quiet",
            *self._location_flags(),
        ]

    def create(self, name: str, machine_type: str, timeout: Optional[float] = None) -> None:
        result = self.communicator.run(self.build_create_command(name, machine_type), timeout=timeout)
        if not result.success:
            raise CommandFailedError(
                f"Failed to create cluster {name} ({machine_type})",
                result,
                cluster=name,
            )

    def delete(self, name: str, timeout: Optional[float] = None) -> None:
        result = self.communicator.run(self.build_delete_command(name), timeout=timeout)
        if not result.success:
            raise CommandFailedError(f"Failed to delete cluster {name}", result, cluster=name)

#!/usr/bin/env python3
"""
Shared kubectl plumbing for bench-deploy.

`gcloud container clusters create` switches the kubeconfig current-context to
the cluster it just made. With several workers creating clusters at once the
current-context is meaningless, so every kubectl call here names its context
explicitly.
"""

import threading
from typing import Dict, List, Optional

from ..errors import CommandFailedError
from .communicator import CommandResult, Communicator


def parse_context_name(cluster_name: str, output: str) -> Optional[str]:
    """
    Find the kubeconfig context for a cluster.

    Parses `kubectl config get-contexts --no-headers` output, whose rows are
    ``[*] NAME CLUSTER AUTHINFO [NAMESPACE]``. GKE contexts are named
    ``gke_<project>_<zone>_<cluster>``.

    Args:
        cluster_name: Cluster name as given to gcloud
        output: Raw command output

    Returns:
        Context name, or None if no context belongs to the cluster
    """
    for line in output.splitlines():
        fields = line.split()
        if fields and fields[0] == "*":
            fields = fields[1:]
        if not fields:
            continue
        name = fields[0]
        if name == cluster_name or name.endswith(f"_{cluster_name}"):
            return name
    return None


class KubectlClient:
    """Runs kubectl commands pinned to a cluster's context."""

    def __init__(self, communicator: Communicator, namespace: str = "default"):
        self.communicator = communicator
        self.namespace = namespace
        self._contexts: Dict[str, str] = {}
        self._lock = threading.Lock()

    def context_for(self, cluster: str, timeout: Optional[float] = None) -> str:
        """
        Resolve (and cache) the kubeconfig context of a cluster.

        Raises:
            CommandFailedError: If contexts cannot be listed or none matches
        """
        with self._lock:
            if cluster in self._contexts:
                return self._contexts[cluster]

        result = self.communicator.run(["kubectl", "config", "get-contexts", "--no-headers"], timeout=timeout)
        if not result.success:
            raise CommandFailedError("Failed to list kubectl contexts", result, cluster=cluster)

        context = parse_context_name(cluster, result.stdout)
        if context is None:
            raise CommandFailedError(f"No kubectl context found for cluster {cluster}", result, cluster=cluster)

        with self._lock:
            self._contexts[cluster] = context
        return context

    def build_command(self, args: List[str], context: Optional[str] = None) -> List[str]:
        cmd = ["kubectl"]
        if context:
            cmd.append(f"--context={context}")
        cmd.append(f"--namespace={self.namespace}")
        return cmd + list(args)

    def run(self, args: List[str], cluster: Optional[str] = None, timeout: Optional[float] = None) -> CommandResult:
        """Run kubectl against a cluster (or the current context if cluster is None)."""
        context = self.context_for(cluster, timeout=timeout) if cluster else None
        return self.communicator.run(self.build_command(args, context), timeout=timeout)

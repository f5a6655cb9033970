"""
Infrastructure and I/O for bench-deploy.

Contains:
- communicator: Local (Invoke) and SSH (Fabric) command execution
- cluster: gcloud cluster provisioning
- kubectl: Context-pinned kubectl invocation
- deployer: kubectl workload deployment
- metrics: kubectl top utilization sampling
- run_log: Terminal and session file logging
"""

from .communicator import (
    CommandResult,
    Communicator,
    LocalCommunicator,
    SSHCommunicator,
    create_communicator,
)
from .cluster import ClusterProvisioner, GCloudClusterProvisioner
from .kubectl import KubectlClient
from .deployer import KubectlDeployer, WorkloadDeployer
from .metrics import KubectlMetricsProvider, MetricsProvider, UtilizationSample
from .run_log import RunLog

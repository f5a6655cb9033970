#!/usr/bin/env python3
"""
Communicator module for bench-deploy.

Runs the external cloud tooling (gcloud, kubectl) either on this machine or on
a remote jump host where the tooling is installed and authenticated.

Uses Invoke for local execution and Fabric for SSH, so both paths share the
same run() API, including per-command timeouts.
"""

import shlex
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from fabric import Connection
from invoke import Context
from invoke.exceptions import CommandTimedOut, UnexpectedExit
from paramiko.ssh_exception import SSHException


LOCAL_TARGET = "local"


@dataclass
class CommandResult:
    """Result of an external command execution."""
    stdout: str
    stderr: str
    return_code: int
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """Check if the command executed successfully."""
        return self.return_code == 0 and not self.timed_out

    def __str__(self) -> str:
        if self.timed_out:
            status = "TIMED OUT"
        else:
            status = "SUCCESS" if self.success else f"FAILED (code: {self.return_code})"
        return f"CommandResult({status})\nstdout: {self.stdout}\nstderr: {self.stderr}"


def format_command(args: Sequence[str]) -> str:
    """Join an argument vector into a shell-safe command line."""
    return " ".join(shlex.quote(str(a)) for a in args)


def _result_from_failure(result, timed_out: bool = False) -> CommandResult:
    return CommandResult(
        stdout=result.stdout.strip() if result.stdout else "",
        stderr=result.stderr.strip() if result.stderr else "",
        return_code=result.exited if result.exited is not None else -1,
        timed_out=timed_out,
    )


class Communicator(ABC):
    """
    Abstract base class for running external commands.

    Concrete implementations decide where the command runs. Implementations
    must be safe to call from several worker threads at once.
    """

    def __init__(self, target: str, command_timeout: Optional[float] = None):
        """
        Initialize the communicator.

        Args:
            target: Where commands run ("local" or an SSH alias/hostname)
            command_timeout: Default timeout in seconds (None waits forever)
        """
        self.target = target
        self.command_timeout = command_timeout

    @abstractmethod
    def connect(self) -> bool:
        """
        Prepare the communicator for use.

        Returns:
            True if ready, False otherwise
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Release any held connections."""
        pass

    @abstractmethod
    def _run(self, command: str, timeout: Optional[float]):
        """Run command and return the invoke Result."""
        pass

    def execute_command(self, command: str, timeout: Optional[float] = None) -> CommandResult:
        """
        Execute a command.

        Args:
            command: The command line to execute
            timeout: Optional timeout override (uses default if not specified)

        Returns:
            CommandResult containing stdout, stderr, return code and timeout flag
        """
        if timeout is None:
            timeout = self.command_timeout

        try:
            result = self._run(command, timeout)
            return CommandResult(
                stdout=result.stdout.strip() if result.stdout else "",
                stderr=result.stderr.strip() if result.stderr else "",
                return_code=result.return_code,
            )
        except CommandTimedOut as e:
            return _result_from_failure(e.result, timed_out=True)
        except UnexpectedExit as e:
            return _result_from_failure(e.result)
        except Exception as e:
            return CommandResult(
                stdout="",
                stderr=str(e),
                return_code=-1,
            )

    def run(self, args: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        """Execute an argument vector, quoting each argument."""
        return self.execute_command(format_command(args), timeout=timeout)

    def __enter__(self) -> "Communicator":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


class LocalCommunicator(Communicator):
    """Runs commands on this machine through an Invoke context."""

    def __init__(self, command_timeout: Optional[float] = None):
        super().__init__(LOCAL_TARGET, command_timeout=command_timeout)

    def connect(self) -> bool:
        return True

    def disconnect(self) -> None:
        pass

    def _run(self, command: str, timeout: Optional[float]):
        # A fresh Context per call keeps concurrent runs independent
        return Context().run(
            command,
            hide=True,
            warn=True,
            in_stream=False,
            timeout=timeout,
        )


class SSHCommunicator(Communicator):
    """
    SSH-based communicator using Fabric.

    Supports SSH config files, so you can use SSH aliases defined in
    ~/.ssh/config. Each worker thread gets its own connection.
    """

    def __init__(
        self,
        target: str,
        user: Optional[str] = None,
        port: Optional[int] = None,
        connect_timeout: int = 30,
        command_timeout: Optional[float] = None,
    ):
        """
        Initialize the SSH communicator with Fabric.

        Args:
            target: SSH alias or hostname of the jump host
            user: Optional username for SSH connection (if not in SSH config)
            port: SSH port (if not in SSH config, defaults to 22)
            connect_timeout: Timeout for establishing connection (seconds)
            command_timeout: Default timeout for command execution (seconds)
        """
        super().__init__(target, command_timeout=command_timeout)
        self.user = user
        self.port = port
        self.connect_timeout = connect_timeout
        self._local = threading.local()
        self._connections = []
        self._lock = threading.Lock()

    def _create_connection(self) -> Connection:
        """Create a new Fabric connection with the configured parameters."""
        return Connection(
            host=self.target,
            user=self.user,
            port=self.port,
            connect_timeout=self.connect_timeout,
        )

    @property
    def connection(self) -> Connection:
        """Get this thread's connection, creating one if necessary."""
        conn = getattr(self._local, "connection", None)
        if conn is None:
            conn = self._create_connection()
            self._local.connection = conn
            with self._lock:
                self._connections.append(conn)
        return conn

    def connect(self) -> bool:
        """
        Open the calling thread's SSH connection.

        Returns:
            True if connection was successful, False otherwise
        """
        try:
            self.connection.open()
            return True
        except (SSHException, OSError) as e:
            print(f"Connection to {self.target} failed: {e}")
            return False

    def disconnect(self) -> None:
        """Close every connection opened by any thread."""
        with self._lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            conn.close()
        self._local = threading.local()

    def _run(self, command: str, timeout: Optional[float]):
        return self.connection.run(
            command,
            hide=True,
            warn=True,
            in_stream=False,
            timeout=timeout,
        )


def create_communicator(target: str = LOCAL_TARGET, **kwargs) -> Communicator:
    """
    Factory function to create a communicator instance.

    Args:
        target: "local" to run on this machine, anything else is an SSH target
        **kwargs: Additional arguments passed to the communicator constructor

    Returns:
        Communicator instance
    """
    if not target or target == LOCAL_TARGET:
        return LocalCommunicator(**kwargs)
    return SSHCommunicator(target, **kwargs)

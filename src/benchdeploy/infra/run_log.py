#!/usr/bin/env python3
"""
Run log for bench-deploy.

Prints tagged progress lines to the terminal and mirrors each of them, with a
timestamp, into a session log file. Workers log concurrently, so every write
happens under one lock.
"""

import datetime
import sys
import threading
from pathlib import Path
from typing import Optional, TextIO


SEPARATOR = "═══════════════════════════════════════════════════════════════"


def default_session_file(log_dir: str = "logs") -> Path:
    """Path of a fresh session log, e.g. logs/bench_deploy_20260101_120000.log."""
    session_id = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(log_dir) / f"bench_deploy_{session_id}.log"


class RunLog:
    """Thread-safe terminal + session file logger."""

    def __init__(
        self,
        session_file: Optional[Path] = None,
        verbose: bool = False,
        stream: Optional[TextIO] = None,
    ):
        """
        Args:
            session_file: File to mirror log lines into (None disables it)
            verbose: Whether debug() lines are shown
            stream: Output stream (defaults to sys.stdout at write time)
        """
        self.session_file = Path(session_file) if session_file else None
        self.verbose = verbose
        self.stream = stream
        self._lock = threading.Lock()

        if self.session_file:
            self.session_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.session_file, "a") as f:
                f.write(f"Session started: {datetime.datetime.now()}\n")

    def _format(self, message: str, step_name: str) -> str:
        if not step_name:
            return f"  {message}"
        if step_name.startswith("STEP"):
            return f"{SEPARATOR}\n  {step_name}: {message}\n{SEPARATOR}"
        if step_name.startswith("WORKER"):
            return f"  [{step_name:^10}] {message}"
        if step_name == "ERROR":
            return f"  ✗ {message}"
        return f"  {step_name}: {message}"

    def log(self, message: str, step_name: str = "") -> None:
        """Print message to terminal and log to session file."""
        formatted = self._format(message, step_name)
        entry = f"{step_name}: {message}" if step_name else message
        with self._lock:
            print(formatted, file=self.stream or sys.stdout, flush=True)
            if self.session_file:
                with open(self.session_file, "a") as f:
                    f.write(f"{datetime.datetime.now()}: {entry}\n")

    def step(self, number: int, message: str) -> None:
        self.log(message, f"STEP {number}")

    def worker(self, worker_id: int, message: str) -> None:
        self.log(message, f"WORKER {worker_id}")

    def error(self, message: str) -> None:
        self.log(message, "ERROR")

    def debug(self, message: str, step_name: str = "") -> None:
        if self.verbose:
            self.log(message, step_name)

"""Run the routes task of a Rails app and capture its output."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import List, Optional, Sequence, Tuple

from .detector import detect_rails, rails_major_version

logger = logging.getLogger(__name__)

DEFAULT_TASK = "routes"
DEFAULT_TIMEOUT = 120


class RoutesTaskError(RuntimeError):
    """The routes task could not be started or did not finish."""


class RoutesTask:
    """Invoke `rake routes` / `rails routes` in an app directory."""

    def __init__(self, app_root: str, task: str = DEFAULT_TASK,
                 command: Optional[Sequence[str]] = None,
                 timeout: int = DEFAULT_TIMEOUT):
        self.app_root = os.path.abspath(app_root)
        self.task = task
        self.command = list(command) if command else None
        self.timeout = timeout

    def build_command(self) -> List[str]:
        if self.command:
            return self.command + [self.task]

        _, version = detect_rails(self.app_root)
        major = rails_major_version(version)
        # `rake routes` is gone in Rails 6.1+, `rails routes` needs Rails 5+
        tool = "rake" if major is not None and major < 6 else "rails"
        return ["bundle", "exec", tool, self.task]

    def run(self) -> Tuple[str, str]:
        """Return (stdout, stderr). A failing task is not an error here."""
        if not os.path.isdir(self.app_root):
            raise RoutesTaskError(f"Path does not exist: {self.app_root}")

        cmd = self.build_command()
        logger.info("Running %s in %s ...", " ".join(cmd), self.app_root)
        try:
            result = subprocess.run(
                cmd, cwd=self.app_root, capture_output=True, text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise RoutesTaskError(
                f"Routes task timed out after {self.timeout} seconds")
        except FileNotFoundError:
            raise RoutesTaskError(f"{cmd[0]} is not installed or not in PATH")

        if result.returncode != 0:
            logger.debug("Routes task exited with status %d", result.returncode)
        return result.stdout or "", result.stderr or ""

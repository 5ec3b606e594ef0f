"""git fetch tool: clone a repository and check out a revision."""
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from dpnd.core.errors import FetchError, FetchErrorKind, GitCommandError
from dpnd.tools.base import FetchTool

logger = logging.getLogger(__name__)


class GitTool(FetchTool):
    """Fetch dependencies with `git clone` followed by `git checkout`."""

    name = "git"

    def __init__(self, executable: str = "git", timeout: Optional[float] = None):
        self.executable = executable
        self.timeout = timeout

    def fetch(self, source: str, version: str, target_dir: Path) -> None:
        target_dir = Path(target_dir)

        logger.info(f"Cloning {source} into {target_dir}")
        try:
            self._run(["clone", source, "."], target_dir)
        except GitCommandError as e:
            raise FetchError(FetchErrorKind.RETRIEVE_FAILED, e) from e

        logger.info(f"Checking out {version}")
        try:
            self._run(["checkout", version], target_dir)
        except GitCommandError as e:
            raise FetchError(FetchErrorKind.VERSION_CHANGE_FAILED, e) from e

    def _run(self, args: List[str], cwd: Path) -> None:
        """Run `git <args>` in `cwd`, raising GitCommandError on any failure."""
        try:
            result = subprocess.run(
                [self.executable, *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(args, cause=e) from e
        except OSError as e:
            raise GitCommandError(args, cause=e) from e

        if result.returncode != 0:
            raise GitCommandError(
                args,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

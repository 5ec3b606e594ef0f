"""Fetch tool interface."""
from abc import ABC, abstractmethod
from pathlib import Path


class FetchTool(ABC):
    """Materializes a `(source, version)` pair into a directory.

    Implementations must leave `target_dir` holding exactly the requested
    revision on success. On failure they raise `FetchError` and may leave
    `target_dir` in any state; the executor wipes it on the next run.
    """

    #: Identifier used in the tool column of manifest and ledger lines.
    name: str = ""

    @abstractmethod
    def fetch(self, source: str, version: str, target_dir: Path) -> None:
        """Populate the empty, existing `target_dir` with `source` at `version`.

        Raises:
            FetchError: RETRIEVE_FAILED if `source` can't be obtained,
                VERSION_CHANGE_FAILED if `version` can't be checked out.
        """

"""Core exception types for dpnd.

Each error kind is a single class tagged with an enum and carrying the
lower-level failure as a field, so renderers dispatch on the tag rather than
on a class hierarchy.
"""
from enum import Enum
from pathlib import Path
from typing import List, Optional


class DpndError(Exception):
    """Base exception for all dpnd errors.

    `owner` is the name of the dependency whose nested manifest was being
    processed when the error occurred, or None for the top-level manifest.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.owner: Optional[str] = None


class ManifestNotFoundError(DpndError):
    """Raised when no manifest exists in the start directory or its ancestors."""

    def __init__(self, manifest_name: str, start: Path):
        super().__init__(
            f"'{manifest_name}' not found in {start} or its parent directories"
        )
        self.manifest_name = manifest_name
        self.start = start


class ReadError(DpndError):
    """Raised when a manifest exists but cannot be read.

    `dep_name` and `dep_dir` are set when the manifest belongs to a
    dependency being probed for nested dependencies.
    """

    def __init__(
        self,
        path: Path,
        cause: OSError,
        dep_name: Optional[str] = None,
        dep_dir: Optional[Path] = None,
    ):
        super().__init__(f"couldn't read {path}: {cause}")
        self.path = path
        self.cause = cause
        self.dep_name = dep_name
        self.dep_dir = dep_dir


class EncodingError(DpndError):
    """Raised when a manifest or ledger is not valid UTF-8."""

    def __init__(self, path: Path, valid_up_to: int, is_ledger: bool = False):
        super().__init__(
            f"{path}: invalid UTF-8 sequence after byte {valid_up_to}"
        )
        self.path = path
        self.valid_up_to = valid_up_to
        self.is_ledger = is_ledger


class ParseErrorKind(str, Enum):
    MISSING_OUTPUT_DIR = "missing_output_dir"
    INVALID_OUTPUT_DIR_PART = "invalid_output_dir_part"
    INVALID_DEP_SPEC = "invalid_dep_spec"
    INVALID_DEP_NAME_CHAR = "invalid_dep_name_char"
    RESERVED_DEP_NAME = "reserved_dep_name"
    DUPLICATE_DEP_NAME = "duplicate_dep_name"
    UNKNOWN_TOOL = "unknown_tool"


class ParseError(DpndError):
    """Raised when a manifest or ledger violates the line grammar.

    Only the fields relevant to `kind` are set. `path` and `is_ledger` are
    filled in by whoever knows which file the text came from.
    """

    def __init__(
        self,
        kind: ParseErrorKind,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
        dep_name: Optional[str] = None,
        part: Optional[str] = None,
        bad_char_index: Optional[int] = None,
        orig_line_number: Optional[int] = None,
        tool_name: Optional[str] = None,
    ):
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}{kind.value}")
        self.kind = kind
        self.line_number = line_number
        self.line = line
        self.dep_name = dep_name
        self.part = part
        self.bad_char_index = bad_char_index
        self.orig_line_number = orig_line_number
        self.tool_name = tool_name
        self.path: Optional[Path] = None
        self.is_ledger = False


class InstallPhase(str, Enum):
    READ_LEDGER = "read_ledger"
    CREATE_OUTPUT_DIR = "create_output_dir"
    WRITE_INITIAL_LEDGER = "write_initial_ledger"
    REMOVE_DIR = "remove_dir"
    WRITE_LEDGER_AFTER_REMOVE = "write_ledger_after_remove"
    CREATE_DIR = "create_dir"
    FETCH = "fetch"
    WRITE_LEDGER_AFTER_INSTALL = "write_ledger_after_install"


class InstallError(DpndError):
    """Raised when a filesystem, ledger or fetch step of reconciliation fails.

    `cause` is an OSError for filesystem and ledger phases and a FetchError
    for the fetch phase.
    """

    def __init__(
        self,
        phase: InstallPhase,
        path: Optional[Path],
        cause: Exception,
        dep_name: Optional[str] = None,
    ):
        subject = f" for '{dep_name}'" if dep_name else ""
        super().__init__(f"{phase.value}{subject} failed: {cause}")
        self.phase = phase
        self.path = path
        self.cause = cause
        self.dep_name = dep_name


class FetchErrorKind(str, Enum):
    RETRIEVE_FAILED = "retrieve_failed"
    VERSION_CHANGE_FAILED = "version_change_failed"


class FetchError(DpndError):
    """Raised by a fetch tool.

    RETRIEVE_FAILED means the source could not be obtained at all;
    VERSION_CHANGE_FAILED means it was obtained but the requested version
    could not be checked out.
    """

    def __init__(self, kind: FetchErrorKind, detail: Exception):
        action = (
            "retrieve dependency"
            if kind == FetchErrorKind.RETRIEVE_FAILED
            else "change the dependency version"
        )
        super().__init__(f"couldn't {action}: {detail}")
        self.kind = kind
        self.detail = detail


class GitCommandError(DpndError):
    """Raised when a git command can't be started or exits non-zero."""

    def __init__(
        self,
        args: List[str],
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        cause: Optional[Exception] = None,
    ):
        command = "git " + " ".join(args)
        if cause is not None:
            message = f"couldn't start `{command}`: {cause}"
        else:
            message = f"`{command}` exited with status {returncode}"
        super().__init__(message)
        self.args_list = args
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.cause = cause

    @property
    def started(self) -> bool:
        return self.cause is None

"""Ledger codec: the record of what dpnd believes is installed.

The ledger sits in a manifest's output directory and uses the same line
grammar as the manifest's dependency section, without the output directory
line. It is always rewritten in full, never patched.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Tuple

from dpnd.core.errors import EncodingError, InstallError, InstallPhase, ParseError
from dpnd.deps.manifest import Dependency, iter_lines, parse_dep_lines
from dpnd.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def decode_ledger(text: str, registry: ToolRegistry) -> Dict[str, Dependency]:
    """Parse ledger text into the current dependency map.

    Raises:
        ParseError: If a line is malformed, duplicated or names an unknown tool.
    """
    return parse_dep_lines(iter_lines(text), registry, ledger_name="", validate_names=False)


def encode_ledger(deps: Dict[str, Dependency]) -> str:
    """Render a dependency map as ledger text, one line per entry."""
    return "".join(dep.to_line(name) + "\n" for name, dep in deps.items())


def _remove_stale_temp_files(path: Path) -> None:
    """Delete temporary ledgers left behind by an interrupted `write_ledger`."""
    if not path.parent.is_dir():
        return
    for stale in path.parent.glob(f".{path.name}.*"):
        if not stale.is_file() or stale.is_symlink():
            continue
        try:
            stale.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            raise InstallError(InstallPhase.READ_LEDGER, stale, e) from e
        logger.info(f"Removed stale temporary ledger {stale}")


def read_ledger(path: Path, registry: ToolRegistry) -> Tuple[bool, Dict[str, Dependency]]:
    """Load the ledger at `path`.

    Returns:
        `(existed, deps)`; a missing ledger yields `(False, {})`.

    Raises:
        InstallError: READ_LEDGER if the file exists but can't be read, or a
            stale temporary ledger next to it can't be removed.
        EncodingError: If the ledger isn't valid UTF-8.
        ParseError: If the ledger is corrupt, with `is_ledger` set.
    """
    path = Path(path)
    _remove_stale_temp_files(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        logger.info(f"No ledger at {path}, starting from an empty state")
        return False, {}
    except OSError as e:
        raise InstallError(InstallPhase.READ_LEDGER, path, e) from e

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(path, e.start, is_ledger=True) from e

    try:
        deps = decode_ledger(text, registry)
    except ParseError as e:
        e.path = path
        e.is_ledger = True
        raise

    return True, deps


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def write_ledger(path: Path, deps: Dict[str, Dependency]) -> None:
    """Replace the ledger at `path` with an encoding of `deps`.

    The text goes to a temporary file in the same directory first and is
    then moved over the ledger, so readers see the old or the new ledger.

    Raises:
        OSError: If the file can't be written or moved into place.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(encode_ledger(deps))
        # mkstemp creates the file 0600; give the ledger the usual umask mode.
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    logger.debug(f"Wrote {len(deps)} entries to {path}")

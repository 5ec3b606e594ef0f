"""Project walker: find the manifest and reconcile it, optionally recursively."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from dpnd.core.config import Settings
from dpnd.core.errors import DpndError, EncodingError, ManifestNotFoundError, ParseError, ReadError
from dpnd.deps.executor import reconcile_project
from dpnd.deps.manifest import Dependency, Manifest, parse_manifest
from dpnd.deps.planner import Action
from dpnd.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class PendingProject:
    """A manifest waiting to be reconciled."""

    project_dir: Path
    owner: Optional[str]
    manifest_path: Path
    raw: bytes
    # Dependencies whose trees enclose this project, outermost first.
    ancestry: Tuple[Dependency, ...] = ()


@dataclass
class ProjectResult:
    project_dir: Path
    owner: Optional[str]
    actions: List[Action] = field(default_factory=list)


def try_read(path: Path) -> Optional[bytes]:
    """Return the bytes at `path`, or None if nothing exists there."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def find_manifest(start: Path, manifest_name: str) -> Optional[Tuple[Path, Path, bytes]]:
    """Find the manifest in `start` or the nearest ancestor that has one.

    Returns:
        `(project_dir, manifest_path, raw_bytes)`, or None if no directory up
        to the filesystem root holds a manifest.

    Raises:
        ReadError: If a manifest path exists but can't be read.
    """
    start = Path(start).absolute()
    for directory in (start, *start.parents):
        manifest_path = directory / manifest_name
        try:
            raw = try_read(manifest_path)
        except OSError as e:
            raise ReadError(manifest_path, e) from e
        if raw is not None:
            return directory, manifest_path, raw
    return None


def load_manifest(
    pending: PendingProject,
    registry: ToolRegistry,
    settings: Settings,
) -> Manifest:
    try:
        text = pending.raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(pending.manifest_path, e.start) from e

    try:
        return parse_manifest(text, registry, settings.ledger_name)
    except ParseError as e:
        e.path = pending.manifest_path
        raise


def install(
    cwd: Path,
    registry: ToolRegistry,
    settings: Optional[Settings] = None,
    recursive: bool = False,
) -> List[ProjectResult]:
    """Install the dependencies declared by the manifest governing `cwd`.

    With `recursive`, manifests found inside installed dependencies are
    reconciled too, each against its own output directory and ledger. A
    dependency that already encloses the project being processed is not
    descended into again.

    Returns:
        One result per reconciled project, in processing order.

    Raises:
        DpndError: On the first failure. Errors from nested manifests carry
            the owning dependency's name in `owner`.
    """
    settings = settings or Settings()

    found = find_manifest(cwd, settings.manifest_name)
    if found is None:
        raise ManifestNotFoundError(settings.manifest_name, Path(cwd))
    project_dir, manifest_path, raw = found
    logger.info(f"Using {manifest_path}")

    worklist = [PendingProject(project_dir, None, manifest_path, raw)]
    results: List[ProjectResult] = []

    while worklist:
        pending = worklist.pop()
        try:
            manifest = load_manifest(pending, registry, settings)
            actions = reconcile_project(pending.project_dir, manifest, registry, settings)
            results.append(ProjectResult(pending.project_dir, pending.owner, actions))

            if not recursive:
                break

            worklist.extend(_nested_projects(pending, manifest, settings))
        except DpndError as e:
            if e.owner is None:
                e.owner = pending.owner
            raise

    return results


def _nested_projects(
    parent: PendingProject,
    manifest: Manifest,
    settings: Settings,
) -> List[PendingProject]:
    output_dir = parent.project_dir / manifest.output_dir
    found = []

    for name in sorted(manifest.deps):
        dep = manifest.deps[name]
        dep_dir = output_dir / name
        nested_path = dep_dir / settings.manifest_name
        try:
            raw = try_read(nested_path)
        except OSError as e:
            raise ReadError(nested_path, e, dep_name=name, dep_dir=dep_dir) from e
        if raw is None:
            continue

        if dep in parent.ancestry:
            logger.warning(
                f"Not descending into {dep_dir}: {dep.source} @ {dep.version} "
                f"already encloses it"
            )
            continue

        logger.info(f"Found nested manifest {nested_path}")
        found.append(
            PendingProject(dep_dir, name, nested_path, raw, parent.ancestry + (dep,))
        )

    return found

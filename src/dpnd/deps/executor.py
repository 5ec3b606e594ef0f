"""Reconciliation executor: apply planned actions to disk and the ledger."""
import logging
import shutil
from pathlib import Path
from typing import Dict, List

from dpnd.core.config import Settings
from dpnd.core.errors import FetchError, InstallError, InstallPhase
from dpnd.deps.ledger import read_ledger, write_ledger
from dpnd.deps.manifest import Dependency, Manifest
from dpnd.deps.planner import Action, ActionKind, plan_actions
from dpnd.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def _remove_dir(path: Path) -> None:
    """Recursively delete `path`; a missing path is not an error."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass


def execute_actions(
    actions: List[Action],
    output_dir: Path,
    ledger_path: Path,
    ledger_existed: bool,
    current: Dict[str, Dependency],
    desired: Dict[str, Dependency],
    registry: ToolRegistry,
) -> Dict[str, Dependency]:
    """Apply `actions` one at a time, committing the ledger after each step.

    Every action first deletes the dependency's directory and rewrites the
    ledger without it, so when a later step fails the ledger never lists a
    directory that is gone or half-fetched.

    Returns:
        The current state after all actions.

    Raises:
        InstallError: On the first failing step; nothing after it runs.
    """
    output_dir = Path(output_dir)
    ledger_path = Path(ledger_path)
    current = dict(current)

    if not actions:
        if not ledger_existed:
            try:
                write_ledger(ledger_path, current)
            except OSError as e:
                raise InstallError(InstallPhase.WRITE_INITIAL_LEDGER, ledger_path, e) from e
            logger.info(f"Created {ledger_path}")
        return current

    # Refuse the whole plan before touching disk if any name would escape.
    for action in actions:
        if action.name in ("", ".", "..") or (output_dir / action.name).parent != output_dir:
            raise ValueError(
                f"dependency name '{action.name}' doesn't name a directory "
                f"directly inside {output_dir}"
            )

    for action in actions:
        name = action.name
        dep_dir = output_dir / name

        try:
            _remove_dir(dep_dir)
        except OSError as e:
            raise InstallError(InstallPhase.REMOVE_DIR, dep_dir, e, dep_name=name) from e
        current.pop(name, None)

        try:
            write_ledger(ledger_path, current)
        except OSError as e:
            raise InstallError(
                InstallPhase.WRITE_LEDGER_AFTER_REMOVE, ledger_path, e, dep_name=name
            ) from e

        if action.kind == ActionKind.REMOVE:
            logger.info(f"Removed {name}")
            continue

        dep = desired[name]
        try:
            dep_dir.mkdir()
        except OSError as e:
            raise InstallError(InstallPhase.CREATE_DIR, dep_dir, e, dep_name=name) from e

        # Parsing rejects unknown tools, so the lookup always succeeds.
        tool = registry[dep.tool_name]

        logger.info(f"Fetching {name} ({dep.source} @ {dep.version})")
        try:
            tool.fetch(dep.source, dep.version, dep_dir)
        except FetchError as e:
            # The ledger already omits `name`; drop the half-fetched tree too.
            try:
                _remove_dir(dep_dir)
            except OSError as cleanup_error:
                logger.warning(f"Couldn't clean up {dep_dir}: {cleanup_error}")
            raise InstallError(InstallPhase.FETCH, dep_dir, e, dep_name=name) from e
        current[name] = dep

        try:
            write_ledger(ledger_path, current)
        except OSError as e:
            raise InstallError(
                InstallPhase.WRITE_LEDGER_AFTER_INSTALL, ledger_path, e, dep_name=name
            ) from e
        logger.info(f"Installed {name}")

    return current


def reconcile_project(
    project_dir: Path,
    manifest: Manifest,
    registry: ToolRegistry,
    settings: Settings,
) -> List[Action]:
    """Bring one project's output directory in line with its manifest.

    Returns:
        The actions that were applied.
    """
    output_dir = Path(project_dir) / manifest.output_dir
    ledger_path = output_dir / settings.ledger_name

    ledger_existed, current = read_ledger(ledger_path, registry)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InstallError(InstallPhase.CREATE_OUTPUT_DIR, output_dir, e) from e

    actions = plan_actions(current, manifest.deps)
    if actions:
        logger.info(f"{len(actions)} action(s) planned for {output_dir}")
    else:
        logger.info(f"{output_dir} is up to date")

    execute_actions(
        actions,
        output_dir=output_dir,
        ledger_path=ledger_path,
        ledger_existed=ledger_existed,
        current=current,
        desired=manifest.deps,
        registry=registry,
    )
    return actions

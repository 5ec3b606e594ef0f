"""dpnd CLI - Command line interface for dpnd."""
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from dpnd.core.config import Settings
from dpnd.core.errors import DpndError
from dpnd.core.render import render_error
from dpnd.deps import install as install_deps
from dpnd.tools import default_registry

logger = logging.getLogger("dpnd")


@click.group()
@click.version_option(package_name="dpnd")
def main():
    """dpnd - Fetch pinned source dependencies into a project."""
    pass


@main.command()
@click.option(
    "-r",
    "--recursive",
    is_flag=True,
    help="Install dependencies found in dependencies",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Log each step of the installation",
)
@click.option(
    "--git",
    "git_executable",
    envvar="DPND_GIT",
    default="git",
    show_default=True,
    help="git executable used to fetch dependencies",
)
@click.option(
    "--fetch-timeout",
    envvar="DPND_FETCH_TIMEOUT",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds before a single git command is abandoned (default: no limit)",
)
def install(recursive: bool, verbose: bool, git_executable: str, fetch_timeout: Optional[float]):
    """Install dependencies defined in dpnd.txt.

    Examples:
        dpnd install
        dpnd install --recursive

    Exit codes:
        0: Success
        1: Any failure, including failures in nested dependencies
        2: Invalid CLI usage
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    settings = Settings(git_executable=git_executable, fetch_timeout=fetch_timeout)
    registry = default_registry(settings)
    cwd = Path.cwd()

    try:
        results = install_deps(cwd, registry, settings, recursive=recursive)
    except DpndError as e:
        click.echo(render_error(e, cwd), err=True)
        sys.exit(1)

    for result in results:
        where = f" ({result.owner})" if result.owner else ""
        logger.info(f"{result.project_dir}{where}: {len(result.actions)} action(s) applied")
    sys.exit(0)


if __name__ == "__main__":
    main()

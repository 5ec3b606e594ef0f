"""Reconciliation planning: diff current state against desired state."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from dpnd.deps.manifest import Dependency


class ActionKind(str, Enum):
    INSTALL = "install"
    REMOVE = "remove"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    name: str


def plan_actions(
    current: Dict[str, Dependency],
    desired: Dict[str, Dependency],
) -> List[Action]:
    """Return the actions that turn `current` into `desired`.

    A changed dependency gets a single install; the executor wipes the old
    directory before every install. Removals come first, then installs, each
    sorted by name.
    """
    removes = [
        Action(ActionKind.REMOVE, name)
        for name in sorted(current)
        if name not in desired
    ]
    installs = [
        Action(ActionKind.INSTALL, name)
        for name in sorted(desired)
        if current.get(name) != desired[name]
    ]
    return removes + installs

"""Dependency reconciliation: manifests, ledgers, planning and installation."""
from dpnd.deps.executor import execute_actions, reconcile_project
from dpnd.deps.ledger import decode_ledger, encode_ledger, read_ledger, write_ledger
from dpnd.deps.manifest import Dependency, Manifest, parse_manifest
from dpnd.deps.planner import Action, ActionKind, plan_actions
from dpnd.deps.walker import ProjectResult, find_manifest, install

__all__ = [
    "Action",
    "ActionKind",
    "Dependency",
    "Manifest",
    "ProjectResult",
    "decode_ledger",
    "encode_ledger",
    "execute_actions",
    "find_manifest",
    "install",
    "parse_manifest",
    "plan_actions",
    "read_ledger",
    "reconcile_project",
    "write_ledger",
]

"""Fetch tools: retrieving a named source at a named revision."""
from dpnd.tools.base import FetchTool
from dpnd.tools.git import GitTool
from dpnd.tools.registry import ToolRegistry, default_registry

__all__ = [
    "FetchTool",
    "GitTool",
    "ToolRegistry",
    "default_registry",
]

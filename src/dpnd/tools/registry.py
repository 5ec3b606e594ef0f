"""Registry of fetch tools keyed by the name used in manifests."""
from typing import Dict, Iterable, Iterator, List, Optional

from dpnd.core.config import Settings
from dpnd.tools.base import FetchTool
from dpnd.tools.git import GitTool


class ToolRegistry:
    """Name-keyed collection of fetch tools.

    Built once at process start and passed explicitly to the parser,
    executor and walker.
    """

    def __init__(self, tools: Iterable[FetchTool] = ()):
        self._tools: Dict[str, FetchTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: FetchTool) -> None:
        if not tool.name:
            raise ValueError(f"{type(tool).__name__} has no name")
        if tool.name in self._tools:
            raise ValueError(f"a tool named '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[FetchTool]:
        return self._tools.get(name)

    def __getitem__(self, name: str) -> FetchTool:
        return self._tools[name]

    def names(self) -> List[str]:
        return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[FetchTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)


def default_registry(settings: Optional[Settings] = None) -> ToolRegistry:
    """Registry holding every tool dpnd supports out of the box."""
    settings = settings or Settings()
    return ToolRegistry([
        GitTool(executable=settings.git_executable, timeout=settings.fetch_timeout),
    ])

"""dpnd: fetch pinned source dependencies into a project."""

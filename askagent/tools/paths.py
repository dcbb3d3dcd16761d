"""Path confinement for file-system tools."""

import os
from dataclasses import dataclass, field
from pathlib import Path


class CreatedPaths:
    """Paths created by the agent during one conversation.

    Removal tools consult this registry so the agent can only delete what it
    created itself.
    """

    def __init__(self) -> None:
        self._paths: list[Path] = []

    def add(self, path: Path) -> None:
        if path not in self._paths:
            self._paths.append(path)

    def discard(self, path: Path) -> None:
        if path in self._paths:
            self._paths.remove(path)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def as_list(self) -> list[Path]:
        return list(self._paths)


@dataclass
class ToolContext:
    """Per-conversation state shared by the built-in tools.

    ``workspace`` defaults to the process working directory at call time;
    write access is confined to it. Read access additionally covers
    ``read_only_roots``.
    """

    created_paths: CreatedPaths = field(default_factory=CreatedPaths)
    workspace: Path | None = None
    read_only_roots: list[Path] = field(default_factory=lambda: [Path.home() / ".askagent"])

    def root(self) -> Path:
        return (self.workspace or Path.cwd()).resolve()

    def resolve(self, raw_path: str | None) -> Path:
        """Resolve a user-supplied path, expanding ``~`` and relative segments."""
        if not raw_path:
            return self.root()
        path = Path(raw_path).expanduser()
        if not path.is_absolute():
            path = self.root() / path
        return path.resolve()

    def can_write(self, path: Path) -> bool:
        return path.is_relative_to(self.root())

    def can_read(self, path: Path) -> bool:
        if self.can_write(path):
            return True
        return any(path.is_relative_to(root.expanduser().resolve()) for root in self.read_only_roots)

    def relative(self, path: Path) -> str:
        return os.path.relpath(path, self.root())

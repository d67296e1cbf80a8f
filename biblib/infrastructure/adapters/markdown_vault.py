"""Filesystem vault of Markdown notes with YAML frontmatter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ...application.ports.vault import VaultPort
from ...domain.errors import VaultPathError

logger = logging.getLogger(__name__)

FRONTMATTER_FENCE = "---"


class MarkdownVault(VaultPort):
    """
    Vault rooted at a directory; all paths are vault-relative POSIX paths.

    Args:
        root: Vault root directory (created on first write)
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        relative = path.strip().lstrip("/")
        resolved = (self.root / relative).resolve()
        if not resolved.is_relative_to(self.root.resolve()):
            raise VaultPathError(path, str(self.root))
        return resolved

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read(self, path: str) -> str:
        return self._resolve(path).read_text(encoding="utf-8")

    def write(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        logger.debug("Wrote vault file", extra={"path": path, "bytes": len(content)})

    def list_markdown(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(
            p.relative_to(self.root).as_posix()
            for p in self.root.rglob("*.md")
            if p.is_file() and not any(part.startswith(".") for part in p.relative_to(self.root).parts)
        )

    def dump_frontmatter(self, frontmatter: dict[str, Any]) -> str:
        return yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True, default_flow_style=False)

    def read_frontmatter(self, path: str) -> dict[str, Any] | None:
        """
        Parse the leading ``---`` block of a note.

        Returns:
            Frontmatter mapping, or None when the note has no frontmatter or
            it is not a YAML mapping
        """
        content = self.read(path)
        lines = content.splitlines()
        if not lines or lines[0].strip() != FRONTMATTER_FENCE:
            return None
        for index, line in enumerate(lines[1:], start=1):
            if line.strip() == FRONTMATTER_FENCE:
                block = "\n".join(lines[1:index])
                break
        else:
            return None

        try:
            data = yaml.safe_load(block)
        except yaml.YAMLError as e:
            logger.warning("Invalid frontmatter YAML", extra={"path": path, "error": str(e)})
            return None
        return data if isinstance(data, dict) else None

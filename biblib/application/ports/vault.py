from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class VaultPort(Protocol):
    """Protocol for reading and writing notes in a Markdown vault."""

    def exists(self, path: str) -> bool:
        """Whether a file exists at the vault-relative ``path``."""
        ...

    def read(self, path: str) -> str:
        """
        Read a vault file as text.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        ...

    def write(self, path: str, content: str) -> None:
        """
        Write a vault file, creating parent folders as needed.

        Existing files are replaced; callers decide whether overwriting is allowed.
        """
        ...

    def list_markdown(self) -> list[str]:
        """Vault-relative paths of all Markdown notes, sorted."""
        ...

    def dump_frontmatter(self, frontmatter: dict[str, Any]) -> str:
        """
        Serialize a frontmatter mapping to YAML text (without ``---`` fences).
        """
        ...

    def read_frontmatter(self, path: str) -> dict[str, Any] | None:
        """
        Parse the frontmatter block of a note.

        Returns:
            Frontmatter mapping, or None when the note has no (valid) frontmatter
        """
        ...

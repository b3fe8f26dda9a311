from typing import List, Optional, Protocol

from twohop.domain.vault import CachedMetadata, FileStat, LinkGraph


class Vault(Protocol):
    """Protocol for the note store the link engine reads from."""

    def get_link_graph(self) -> LinkGraph:
        """Get the resolved and unresolved link graphs of the whole vault."""
        ...

    def get_cached_metadata(self, path: str) -> Optional[CachedMetadata]:
        """Get parsed links, tags and front matter of a note."""
        ...

    def get_markdown_paths(self) -> List[str]:
        """Get the paths of all markdown notes."""
        ...

    def resolve_link(self, link_text: str, source_path: str) -> Optional[str]:
        """Resolve a link written in ``source_path`` to an existing file path."""
        ...

    async def stat(self, path: str) -> FileStat:
        """Get size and timestamps of a file. Raises if the file is missing."""
        ...

    async def read_text(self, path: str) -> str:
        """Read a file as text. Raises if the file cannot be read."""
        ...

    def resource_url(self, path: str) -> str:
        """Get a URL the presentation layer can load the file from."""
        ...

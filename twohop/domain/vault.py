"""Vault domain models."""

from pydantic import BaseModel

# source path -> destination path (or raw link text when unresolved) -> occurrences
AdjacencyMap = dict[str, dict[str, int]]


class LinkGraph(BaseModel):
    """Snapshot of every link in the vault.

    Attributes:
        resolved: Links whose destination is an existing note
        unresolved: Links whose destination does not exist yet
    """

    resolved: AdjacencyMap = {}
    unresolved: AdjacencyMap = {}


class LinkCache(BaseModel):
    """A single outgoing link as written in a note."""

    link: str
    display_text: str = ""


class TagCache(BaseModel):
    """A single inline tag, including the leading ``#``."""

    tag: str


class CachedMetadata(BaseModel):
    """Parsed metadata for one note."""

    links: list[LinkCache] = []
    embeds: list[LinkCache] = []
    tags: list[TagCache] = []
    frontmatter: dict | None = None

    def all_tags(self) -> list[str]:
        """Inline and front matter tags, ``#``-prefixed, in order of appearance."""
        result: list[str] = []
        for tag in self._frontmatter_tags() + [it.tag for it in self.tags]:
            if tag not in result:
                result.append(tag)
        return result

    def _frontmatter_tags(self) -> list[str]:
        if not self.frontmatter:
            return []
        raw = self.frontmatter.get("tags", self.frontmatter.get("tag"))
        if raw is None:
            return []
        if isinstance(raw, str):
            values = raw.replace(",", " ").split()
        elif isinstance(raw, list):
            values = [str(part) for part in raw if part is not None]
        else:
            values = [str(raw)]
        return [value if value.startswith("#") else f"#{value}" for value in values if value]


class FileStat(BaseModel):
    """File system metadata, timestamps in milliseconds since the epoch."""

    size: int
    mtime: float
    ctime: float

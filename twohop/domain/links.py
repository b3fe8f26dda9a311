"""Link domain models."""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict

BLOCK_REFERENCE_PATTERN = re.compile(r"#\^[^#]*$")


def remove_block_reference(link_text: str) -> str:
    """Strip a trailing block reference (``#^id``) from a link text."""
    return BLOCK_REFERENCE_PATTERN.sub("", link_text)


def path_to_link_text(path: str) -> str:
    """Convert a vault path to the link text that points at it."""
    if path.endswith(".md"):
        return path[: -len(".md")]
    return path


class SortOrder(str, Enum):
    """Ordering applied to every link list."""

    FILENAME_ASC = "filenameAsc"
    FILENAME_DESC = "filenameDesc"
    MODIFIED_DESC = "modifiedDesc"
    MODIFIED_ASC = "modifiedAsc"
    CREATED_DESC = "createdDesc"
    CREATED_ASC = "createdAsc"


class FileEntity(BaseModel):
    """A reference to a note as seen from another note.

    Attributes:
        source_path: Path of the note used to resolve ``link_text``
        link_text: Link as written, possibly with a block reference suffix
    """

    model_config = ConfigDict(frozen=True)

    source_path: str
    link_text: str

    def key(self) -> str:
        """Identity key, ignoring block references."""
        return f"{self.source_path}::{remove_block_reference(self.link_text)}"


class TwohopLink(BaseModel):
    """An intermediate note and the notes reachable through it."""

    link: FileEntity
    file_entities: list[FileEntity]


class TagLinks(BaseModel):
    """Notes sharing ``tag`` with the active note."""

    tag: str
    file_entities: list[FileEntity]


class LinksBundle(BaseModel):
    """Everything computed for one active note."""

    active_path: str
    generation: int = 0
    forward_links: list[FileEntity] = []
    new_links: list[FileEntity] = []
    backward_links: list[FileEntity] = []
    twohop_links: list[TwohopLink] = []
    unresolved_twohop_links: list[TwohopLink] = []
    tag_links: list[TagLinks] = []

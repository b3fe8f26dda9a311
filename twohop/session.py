"""State owned by the active-note event handlers."""

from typing import Iterable, Optional

from loguru import logger

from twohop.domain.links import FileEntity
from twohop.links.preview import PreviewExtractor


class NoteSession:
    """Tracks the active note, its generation token and its last seen links/tags.

    Every change of active note bumps ``generation``. Work started for an older
    generation finishes normally but its result is discarded.
    """

    def __init__(self) -> None:
        self.active_path: Optional[str] = None
        self.generation = 0
        self._previous_links: Optional[frozenset[str]] = None
        self._previous_tags: Optional[frozenset[str]] = None

    def activate(self, path: str) -> int:
        """Make ``path`` the active note and return the current generation."""
        if path != self.active_path:
            self.active_path = path
            self.generation += 1
            self._previous_links = None
            self._previous_tags = None
            logger.debug(f"Active note is now {path} (generation {self.generation})")
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def has_metadata_changed(self, links: Iterable[str], tags: Iterable[str]) -> bool:
        """Compare links and tags with the previous call, remembering the new values."""
        current_links = frozenset(links)
        current_tags = frozenset(tags)
        changed = current_links != self._previous_links or current_tags != self._previous_tags
        self._previous_links = current_links
        self._previous_tags = current_tags
        return changed

    async def fetch_preview(
        self, extractor: PreviewExtractor, file_entity: FileEntity, generation: int
    ) -> Optional[str]:
        """Get a preview, or None if the active note changed while it was read."""
        if not self.is_current(generation):
            return None
        preview = await extractor.preview(file_entity)
        if not self.is_current(generation):
            logger.debug(f"Discarding stale preview of {file_entity.link_text}")
            return None
        return preview

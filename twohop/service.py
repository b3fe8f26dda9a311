"""Top-level handlers wiring the vault, the aggregator and the previews together."""

from typing import Optional

from loguru import logger

from twohop.config import Settings
from twohop.domain.links import FileEntity, LinksBundle
from twohop.links.aggregator import LinkAggregator
from twohop.links.preview import PreviewExtractor
from twohop.session import NoteSession
from twohop.vault.base import Vault


class TwohopLinksService:
    """Reacts to note-open and metadata events and serves previews."""

    def __init__(self, *, vault: Vault, settings: Settings):
        self.vault = vault
        self.settings = settings
        self.session = NoteSession()
        self.enabled = True
        self.rebuild_components()

    def rebuild_components(self) -> None:
        """Recreate the aggregator and extractor from the current settings."""
        self.aggregator = LinkAggregator(
            self.vault,
            exclude_paths=self.settings.exclude_paths,
            sort_order=self.settings.sort_order,
            enable_duplicate_removal=self.settings.enable_duplicate_removal,
        )
        self.extractor = PreviewExtractor(self.vault, show_image=self.settings.show_image)

    def enable(self, check: bool = False) -> bool:
        """Enable command. With ``check``, only tell whether it is available."""
        if check:
            return not self.enabled
        self.enabled = True
        logger.info("Enabled two-hop links")
        return True

    def disable(self, check: bool = False) -> bool:
        """Disable command. With ``check``, only tell whether it is available."""
        if check:
            return self.enabled
        self.enabled = False
        logger.info("Disabled two-hop links")
        return True

    async def open_note(self, path: str) -> Optional[LinksBundle]:
        """Handle a note being opened."""
        if not self.enabled:
            return None
        generation = self.session.activate(path)
        self.session.has_metadata_changed(*self._links_and_tags(path))
        return await self._aggregate(path, generation)

    async def on_metadata_resolved(self, path: str) -> Optional[LinksBundle]:
        """Handle re-parsed metadata, re-aggregating only if links or tags changed."""
        if not self.enabled or path != self.session.active_path:
            return None
        if not self.session.has_metadata_changed(*self._links_and_tags(path)):
            logger.debug(f"Links and tags of {path} unchanged")
            return None
        return await self._aggregate(path, self.session.generation)

    async def preview(self, file_entity: FileEntity, generation: int) -> Optional[str]:
        return await self.session.fetch_preview(self.extractor, file_entity, generation)

    def _links_and_tags(self, path: str) -> tuple[list[str], list[str]]:
        metadata = self.vault.get_cached_metadata(path)
        if metadata is None:
            return [], []
        return [it.link for it in metadata.links], metadata.all_tags()

    async def _aggregate(self, path: str, generation: int) -> LinksBundle:
        bundle = await self.aggregator.aggregate(path)
        bundle.generation = generation
        if not self.settings.show_forward_connected_links:
            bundle.forward_links = []
        if not self.settings.show_backward_connected_links:
            bundle.backward_links = []
        return bundle

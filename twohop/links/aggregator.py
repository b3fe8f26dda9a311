"""Aggregation of forward, backward, two-hop and tag links for the active note."""

import asyncio
from typing import Iterable, Optional, Sequence

from loguru import logger

from twohop.domain.links import (
    FileEntity,
    LinksBundle,
    SortOrder,
    TagLinks,
    TwohopLink,
    path_to_link_text,
    remove_block_reference,
)
from twohop.domain.vault import AdjacencyMap, CachedMetadata, FileStat
from twohop.vault.base import Vault

from .path_filter import PathFilter
from .sorter import SortEntry, sort_entries

# Stat used for intermediate notes that do not exist yet (unresolved links).
MISSING_FILE_STAT = FileStat(size=0, mtime=0, ctime=0)


def aggregate_twohop_links(active_path: str, links: AdjacencyMap) -> dict[str, list[str]]:
    """Find the notes that link to the same targets as the active note.

    Args:
        active_path: Path of the active note
        links: Adjacency map of source path -> destination -> weight

    Returns:
        Mapping of each of the active note's destinations to the other sources
        linking to it, in graph order
    """
    active_links = links.get(active_path)
    if not active_links:
        return {}

    result: dict[str, list[str]] = {}
    for src, dests in links.items():
        if src == active_path or not dests:
            continue
        for dest in dests:
            if dest in active_links and dest != active_path:
                result.setdefault(dest, []).append(src)
    return result


class LinkAggregator:
    """Computes the link lists shown next to the active note."""

    def __init__(
        self,
        vault: Vault,
        *,
        exclude_paths: Iterable[str] | None = None,
        sort_order: SortOrder = SortOrder.FILENAME_ASC,
        enable_duplicate_removal: bool = True,
    ):
        """Initialize the aggregator.

        Args:
            vault: Source of the link graph, metadata and file stats
            exclude_paths: Paths and folders ("folder/") never listed
            sort_order: Ordering applied to every list
            enable_duplicate_removal: Hide two-hop notes already listed elsewhere
        """
        self.vault = vault
        self.path_filter = PathFilter(exclude_paths)
        self.sort_order = SortOrder(sort_order)
        self.enable_duplicate_removal = enable_duplicate_removal

    async def aggregate(self, active_path: str) -> LinksBundle:
        """Build every link list for the active note."""
        metadata = self.vault.get_cached_metadata(active_path)
        graph = self.vault.get_link_graph()

        forward_links, new_links, forward_paths = await self.get_forward_links(
            active_path, metadata
        )
        forward_keys = {it.key() for it in forward_links}
        seen_keys: set[str] = set()
        twohop_links = await self.get_twohop_links(
            active_path, graph.resolved, forward_paths, forward_keys, seen_keys
        )
        unresolved_twohop_links = await self.get_twohop_links(
            active_path,
            graph.unresolved,
            forward_paths,
            forward_keys,
            seen_keys,
            resolved=False,
        )
        backward_links = await self.get_backward_links(active_path, graph.resolved, forward_paths)
        tag_links = await self.get_tag_links(active_path, metadata)

        logger.debug(
            f"Aggregated {active_path}: {len(forward_links)} forward, {len(new_links)} new, "
            f"{len(backward_links)} backward, {len(twohop_links)}+{len(unresolved_twohop_links)} "
            f"two-hop groups, {len(tag_links)} tag groups"
        )
        return LinksBundle(
            active_path=active_path,
            forward_links=forward_links,
            new_links=new_links,
            backward_links=backward_links,
            twohop_links=twohop_links,
            unresolved_twohop_links=unresolved_twohop_links,
            tag_links=tag_links,
        )

    async def get_forward_links(
        self, active_path: str, metadata: Optional[CachedMetadata]
    ) -> tuple[list[FileEntity], list[FileEntity], set[str]]:
        """Split the active note's links into existing and not yet created notes.

        Returns:
            Tuple of (sorted forward links, new links in encounter order,
            resolved paths of the forward links)
        """
        if metadata is None or not metadata.links:
            return [], [], set()

        resolved: list[tuple[FileEntity, str]] = []
        new_links: list[FileEntity] = []
        seen: set[str] = set()

        for it in metadata.links:
            key = remove_block_reference(it.link)
            if key in seen or not key.split("#", 1)[0].strip():
                continue
            seen.add(key)

            entity = FileEntity(source_path=active_path, link_text=it.link)
            target_path = self.vault.resolve_link(key, active_path)
            if target_path is None:
                new_links.append(entity)
            elif self.path_filter.is_excluded(target_path):
                logger.debug(f"Excluded forward link {it.link} -> {target_path}")
            else:
                resolved.append((entity, target_path))

        entries = await self._stat_entries(
            (entity.link_text, path, entity) for entity, path in resolved
        )
        forward_links = sort_entries(entries, self.sort_order)
        forward_paths = {path for entity, path in resolved if entity in forward_links}
        return forward_links, new_links, forward_paths

    async def get_backward_links(
        self, active_path: str, resolved_links: AdjacencyMap, forward_paths: set[str]
    ) -> list[FileEntity]:
        """List notes linking to the active note that it does not link back to."""
        sources = []
        for src, dests in resolved_links.items():
            if src == active_path or active_path not in dests:
                continue
            if self.path_filter.is_excluded(src):
                continue
            if src in forward_paths:
                continue
            sources.append(src)

        return await self._sorted_references(active_path, sources)

    async def get_twohop_links(
        self,
        active_path: str,
        links: AdjacencyMap,
        forward_paths: set[str],
        forward_keys: set[str],
        seen_keys: set[str],
        resolved: bool = True,
    ) -> list[TwohopLink]:
        """Group the notes sharing a link target with the active note by that target.

        Args:
            active_path: Path of the active note
            links: Resolved or unresolved adjacency map
            forward_paths: Resolved paths of the active note's forward links
            forward_keys: Identity keys of the forward links
            seen_keys: Keys already listed under another group, shared between
                the resolved and unresolved passes and updated in place
            resolved: Whether the intermediate notes exist; groups of existing
                notes whose stat fails are dropped
        """
        contributors = aggregate_twohop_links(active_path, links)
        if not contributors:
            return []

        dests = [dest for dest in contributors if not self.path_filter.is_excluded(dest)]
        sources = list(
            dict.fromkeys(
                src for dest in dests for src in self.path_filter.filter(contributors[dest])
            )
        )
        source_stats = dict(zip(sources, await self._gather_stats(sources)))
        if resolved:
            dest_stats = dict(zip(dests, await self._gather_stats(dests)))
        else:
            dest_stats = {dest: MISSING_FILE_STAT for dest in dests}

        groups: dict[str, SortEntry] = {}
        for dest in dests:
            if dest_stats[dest] is None:
                continue
            members = []
            for src in self.path_filter.filter(contributors[dest]):
                stat = source_stats[src]
                if stat is None:
                    continue
                entity = FileEntity(source_path=active_path, link_text=path_to_link_text(src))
                key = entity.key()
                if self.enable_duplicate_removal and (
                    src in forward_paths or key in forward_keys or key in seen_keys
                ):
                    continue
                members.append(SortEntry(name=entity.link_text, stat=stat, item=entity))
            if not members:
                continue
            # Only notes actually listed hide later occurrences
            seen_keys.update(entry.item.key() for entry in members)
            link = FileEntity(source_path=active_path, link_text=dest)
            twohop_link = TwohopLink(
                link=link, file_entities=sort_entries(members, self.sort_order)
            )
            groups[dest] = SortEntry(name=dest, stat=dest_stats[dest], item=twohop_link)

        entries = [groups[dest] for dest in links[active_path] if dest in groups]
        return sort_entries(entries, self.sort_order)

    async def get_tag_links(
        self, active_path: str, metadata: Optional[CachedMetadata]
    ) -> list[TagLinks]:
        """Group other notes by the tags they share with the active note."""
        if metadata is None:
            return []
        active_tags = metadata.all_tags()
        if not active_tags:
            return []
        active_tag_set = set(active_tags)

        tag_map: dict[str, list[str]] = {}
        for path in self.vault.get_markdown_paths():
            if path == active_path or self.path_filter.is_excluded(path):
                continue
            cached = self.vault.get_cached_metadata(path)
            if cached is None:
                continue
            for tag in cached.all_tags():
                if tag not in active_tag_set:
                    continue
                members = tag_map.setdefault(tag, [])
                if path not in members:
                    members.append(path)

        tag_links = []
        for tag in active_tags:
            if tag not in tag_map:
                continue
            file_entities = await self._sorted_references(active_path, tag_map[tag])
            if file_entities:
                tag_links.append(TagLinks(tag=tag, file_entities=file_entities))
        return tag_links

    async def _sorted_references(self, active_path: str, paths: Sequence[str]) -> list[FileEntity]:
        """Turn note paths into sorted references anchored at the active note."""
        references = []
        for path in paths:
            entity = FileEntity(source_path=active_path, link_text=path_to_link_text(path))
            references.append((entity.link_text, path, entity))
        entries = await self._stat_entries(references)
        return sort_entries(entries, self.sort_order)

    async def _stat_entries(self, references: Iterable[tuple[str, str, object]]) -> list[SortEntry]:
        """Stat every (name, path, item) concurrently, dropping failed lookups."""
        references = list(references)
        stats = await self._gather_stats(path for _, path, _ in references)
        return [
            SortEntry(name=name, stat=stat, item=item)
            for (name, _, item), stat in zip(references, stats)
            if stat is not None
        ]

    async def _gather_stats(self, paths: Iterable[str]) -> list[Optional[FileStat]]:
        paths = list(paths)
        results = await asyncio.gather(
            *(self.vault.stat(path) for path in paths), return_exceptions=True
        )
        stats: list[Optional[FileStat]] = []
        for path, result in zip(paths, results):
            if isinstance(result, BaseException):
                logger.debug(f"Dropping {path}: stat failed ({result!r})")
                stats.append(None)
            else:
                stats.append(result)
        return stats

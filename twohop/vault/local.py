import asyncio
import posixpath
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import quote

from loguru import logger

from twohop.domain.vault import AdjacencyMap, CachedMetadata, FileStat, LinkGraph
from twohop.vault.base import Vault
from twohop.vault.markdown_parser import MarkdownParser

MARKDOWN_SUFFIX = ".md"


class LocalVault(Vault):
    """Vault backed by a folder of markdown files on disk."""

    def __init__(self, root: str | Path, resource_url_prefix: str = "/api/resources") -> None:
        """Initialize LocalVault and scan the folder.

        Args:
            root: Vault folder. Paths handed out are relative to it, "/"-separated.
            resource_url_prefix: Prefix of the URLs returned by resource_url()
        """
        self.root = Path(root)
        self.resource_url_prefix = resource_url_prefix.rstrip("/")
        self.parser = MarkdownParser()

        self._files: set[str] = set()
        self._files_by_name: Dict[str, List[str]] = {}
        self._metadata: Dict[str, CachedMetadata] = {}
        self._graph = LinkGraph()
        self.refresh()

    def refresh(self) -> None:
        """Rescan the vault folder and rebuild metadata and the link graph."""
        files = set()
        if self.root.is_dir():
            files = {
                file.relative_to(self.root).as_posix()
                for file in self.root.rglob("*")
                if file.is_file() and not self._is_hidden(file)
            }

        files_by_name: Dict[str, List[str]] = defaultdict(list)
        for path in sorted(files):
            files_by_name[posixpath.basename(path).lower()].append(path)

        self._files = files
        self._files_by_name = dict(files_by_name)
        self._metadata = {}
        for path in self.get_markdown_paths():
            try:
                content = (self.root / path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable note {path}: {e}")
                continue
            self._metadata[path] = self.parser.parse(content)

        self._graph = self._build_link_graph()
        logger.info(
            f"Scanned vault {self.root}: {len(self._files)} files, "
            f"{len(self._metadata)} notes, {len(self._graph.resolved)} notes with links"
        )

    def get_link_graph(self) -> LinkGraph:
        return self._graph

    def get_cached_metadata(self, path: str) -> Optional[CachedMetadata]:
        return self._metadata.get(path)

    def get_markdown_paths(self) -> List[str]:
        return sorted(path for path in self._files if path.endswith(MARKDOWN_SUFFIX))

    def has_file(self, path: str) -> bool:
        return path in self._files

    def resolve_link(self, link_text: str, source_path: str) -> Optional[str]:
        """Resolve a link the way the note editor does.

        Priority:
        1. Exact vault path (with or without ".md")
        2. Relative to the folder of the source note
        3. Any file whose path ends with the link, preferring the source's folder,
           then the shortest path
        4. The same, ignoring case

        Args:
            link_text: Link as written, an optional "#subpath" is ignored
            source_path: Path of the note containing the link

        Returns:
            Vault path of the target, or None if nothing matches
        """
        link_path = link_text.split("#", 1)[0].strip()
        if not link_path:
            return source_path if source_path in self._files else None

        link_path = link_path.lstrip("/")
        candidates = [link_path, link_path + MARKDOWN_SUFFIX]
        source_folder = posixpath.dirname(source_path)
        if source_folder:
            relative = posixpath.normpath(posixpath.join(source_folder, link_path))
            candidates += [relative, relative + MARKDOWN_SUFFIX]

        for candidate in candidates:
            if candidate in self._files:
                return candidate

        for case_sensitive in (True, False):
            resolved = self._resolve_by_suffix(link_path, source_folder, case_sensitive)
            if resolved:
                return resolved

        logger.debug(f"Could not resolve link {link_text!r} from {source_path}")
        return None

    def _resolve_by_suffix(
        self, link_path: str, source_folder: str, case_sensitive: bool
    ) -> Optional[str]:
        name = posixpath.basename(link_path).lower()
        suffixes = [link_path, link_path + MARKDOWN_SUFFIX]
        if not case_sensitive:
            suffixes = [suffix.lower() for suffix in suffixes]

        matches = []
        for path in self._files_by_name.get(name, []) + self._files_by_name.get(
            name + MARKDOWN_SUFFIX, []
        ):
            compared = path if case_sensitive else path.lower()
            if any(compared == suffix or compared.endswith("/" + suffix) for suffix in suffixes):
                matches.append(path)

        if not matches:
            return None
        matches.sort(key=lambda path: (posixpath.dirname(path) != source_folder, len(path), path))
        return matches[0]

    async def stat(self, path: str) -> FileStat:
        full_path = self.full_path(path)
        result = await asyncio.to_thread(full_path.stat)
        created = getattr(result, "st_birthtime", result.st_ctime)
        return FileStat(
            size=result.st_size,
            mtime=result.st_mtime * 1000,
            ctime=created * 1000,
        )

    async def read_text(self, path: str) -> str:
        full_path = self.full_path(path)
        return await asyncio.to_thread(full_path.read_text, encoding="utf-8")

    def resource_url(self, path: str) -> str:
        return f"{self.resource_url_prefix}/{quote(path)}"

    def full_path(self, path: str) -> Path:
        """Absolute path of a vault file. Raises FileNotFoundError outside the vault."""
        root = self.root.resolve()
        full_path = (root / path).resolve()
        if not full_path.is_relative_to(root) or full_path == root:
            raise FileNotFoundError(f"{path} is not inside the vault")
        return full_path

    def _build_link_graph(self) -> LinkGraph:
        resolved: AdjacencyMap = {}
        unresolved: AdjacencyMap = {}

        for path, metadata in self._metadata.items():
            for link in metadata.links + metadata.embeds:
                link_path = link.link.split("#", 1)[0].strip()
                # Headings of the same note are not edges
                if not link_path:
                    continue
                dest = self.resolve_link(link.link, path)
                if dest is not None:
                    targets = resolved.setdefault(path, {})
                    targets[dest] = targets.get(dest, 0) + 1
                else:
                    targets = unresolved.setdefault(path, {})
                    targets[link_path] = targets.get(link_path, 0) + 1

        return LinkGraph(resolved=resolved, unresolved=unresolved)

    def _is_hidden(self, file: Path) -> bool:
        return any(part.startswith(".") for part in file.relative_to(self.root).parts)

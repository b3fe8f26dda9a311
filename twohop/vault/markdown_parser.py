"""Extraction of links, tags and front matter from markdown notes."""

import re
from typing import Iterator, List, Tuple
from urllib.parse import unquote

import yaml
from loguru import logger

from twohop.domain.vault import CachedMetadata, LinkCache, TagCache

FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
CODE_BLOCK_PATTERN = re.compile(r"^(```|~~~).*?^\1[ \t]*$", re.DOTALL | re.MULTILINE)
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]*`")
WIKILINK_PATTERN = re.compile(r"(?<!!)\[\[([^\]|]+)(?:\|([^\]]*))?\]\]")
EMBED_PATTERN = re.compile(r"!\[\[([^\]|]+)(?:\|([^\]]*))?\]\]")
MARKDOWN_LINK_PATTERN = re.compile(r"(?<![!\]])\[([^\[\]]*)\]\(([^()\s]+)\)")
TAG_PATTERN = re.compile(r"(?<![\w/#&])#([\w/-]*[^\W\d][\w/-]*)")
URL_SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)
LINK_SYNTAX_PATTERN = re.compile(r"!?\[\[[^\]]*\]\]|!?\[[^\[\]]*\]\([^()\s]*\)")


class MarkdownParser:
    """Parses the pieces of a note the link engine needs."""

    @staticmethod
    def split_frontmatter(content: str) -> Tuple[dict | None, str]:
        """Split a leading YAML front matter block from the note body.

        Args:
            content: Full note text

        Returns:
            Tuple of (parsed front matter or None, remaining body)
        """
        match = FRONTMATTER_PATTERN.match(content)
        if not match:
            return None, content

        body = content[match.end() :]
        try:
            data = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring unparsable front matter: {e}")
            return None, body

        return (data if isinstance(data, dict) else None), body

    @staticmethod
    def strip_code(content: str) -> str:
        """Remove fenced code blocks and inline code spans."""
        content = CODE_BLOCK_PATTERN.sub("", content)
        return INLINE_CODE_PATTERN.sub("", content)

    @staticmethod
    def strip_links(content: str) -> str:
        """Remove wikilinks, embeds and markdown links, whose anchors look like tags."""
        return LINK_SYNTAX_PATTERN.sub(" ", content)

    @staticmethod
    def _iter_wikilinks(content: str) -> Iterator[Tuple[int, LinkCache]]:
        for m in WIKILINK_PATTERN.finditer(content):
            link = m.group(1).strip()
            yield m.start(), LinkCache(link=link, display_text=(m.group(2) or link).strip())

    @staticmethod
    def _iter_markdown_links(content: str) -> Iterator[Tuple[int, LinkCache]]:
        for m in MARKDOWN_LINK_PATTERN.finditer(content):
            target = m.group(2).strip()
            if not target or target.startswith("#") or URL_SCHEME_PATTERN.match(target):
                continue
            yield m.start(), LinkCache(link=unquote(target), display_text=m.group(1))

    def extract_links(self, content: str) -> List[LinkCache]:
        """Extract wikilinks and markdown links in order of appearance."""
        found = list(self._iter_wikilinks(content)) + list(self._iter_markdown_links(content))
        found.sort(key=lambda it: it[0])
        return [link for _, link in found]

    @staticmethod
    def extract_embeds(content: str) -> List[LinkCache]:
        """Extract embeds in the form of ![[target]]."""
        embeds = []
        for m in EMBED_PATTERN.finditer(content):
            link = m.group(1).strip()
            embeds.append(LinkCache(link=link, display_text=(m.group(2) or link).strip()))
        return embeds

    @staticmethod
    def extract_tags(content: str) -> List[TagCache]:
        """Extract inline #tags, including the leading ``#``."""
        return [TagCache(tag=f"#{m.group(1)}") for m in TAG_PATTERN.finditer(content)]

    def parse(self, content: str) -> CachedMetadata:
        """Parse a whole note into its cached metadata."""
        frontmatter, body = self.split_frontmatter(content)
        body = self.strip_code(body)

        return CachedMetadata(
            links=self.extract_links(body),
            embeds=self.extract_embeds(body),
            tags=self.extract_tags(self.strip_links(body)),
            frontmatter=frontmatter,
        )

"""Preview extraction for referenced notes."""

import re
from typing import Optional
from urllib.parse import unquote

from loguru import logger

from twohop.domain.links import FileEntity, remove_block_reference
from twohop.vault.base import Vault

MAX_PREVIEW_FILE_SIZE = 1000 * 1000
PREVIEW_LINE_COUNT = 6

FILE_EXTENSION_PATTERN = re.compile(r"\.[a-z0-9_-]+$", re.IGNORECASE)
TEXT_EXTENSION_PATTERN = re.compile(r"\.(?:md|markdown|txt|text)$", re.IGNORECASE)
IFRAME_PATTERN = re.compile(r"<iframe[^>]*src=\"([^\"]+)\"[^>]*>", re.IGNORECASE)
YOUTUBE_EMBED_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.)?youtube\.com/embed/([^?&]+)(?:\?[^?]+)?$"
)
MARKDOWN_IMAGE_PATTERN = re.compile(
    r"!\[[^\]]*?\]\(((?:https?://[^)]+)|(?:[^)]+\.(?:png|bmp|jpg)))\)", re.IGNORECASE
)
WIKILINK_IMAGE_PATTERN = re.compile(r"!\[\[([^\]]+\.(?:png|bmp|jpg))\]\]", re.IGNORECASE)
FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n.*?\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
URL_PATTERN = re.compile(r"^https?://")


def get_thumbnail_url_from_iframe_url(iframe_url: str) -> Optional[str]:
    """Map an embedded video URL to its thumbnail image, if the host is known."""
    youtube_match = YOUTUBE_EMBED_PATTERN.match(iframe_url)
    if youtube_match:
        return f"https://img.youtube.com/vi/{youtube_match.group(1)}/mqdefault.jpg"
    return None


def extract_text_preview(content: str, line_count: int = PREVIEW_LINE_COUNT) -> str:
    """First lines of a note, skipping front matter, headers, tag and URL-only lines."""
    content = FRONTMATTER_PATTERN.sub("", content, count=1)
    lines = [
        line
        for line in content.splitlines()
        if line.strip() and not line.startswith("#") and not URL_PATTERN.match(line)
    ]
    return "\n".join(lines[:line_count])


class PreviewExtractor:
    """Builds the short preview shown in a link box."""

    def __init__(self, vault: Vault, *, show_image: bool = True):
        self.vault = vault
        self.show_image = show_image

    async def preview(self, file_entity: FileEntity) -> str:
        """Get a thumbnail URL, image URL or text excerpt for a referenced note.

        Never raises: anything that cannot be previewed yields an empty string.
        """
        link_text = remove_block_reference(file_entity.link_text)

        # Do not read non-text files, PDFs in particular.
        if FILE_EXTENSION_PATTERN.search(link_text) and not TEXT_EXTENSION_PATTERN.search(
            link_text
        ):
            logger.debug(f"{file_entity.link_text} is not a plain text file")
            return ""

        path = self.vault.resolve_link(link_text, file_entity.source_path)
        if path is None:
            return ""

        try:
            stat = await self.vault.stat(path)
            if stat.size > MAX_PREVIEW_FILE_SIZE:
                logger.debug(f"File too large ({file_entity.link_text}): {stat.size}")
                return ""
            content = await self.vault.read_text(path)
        except Exception as e:
            logger.warning(f"Could not read {path} for preview: {e}")
            return ""

        iframe_match = IFRAME_PATTERN.search(content)
        if iframe_match:
            thumbnail_url = get_thumbnail_url_from_iframe_url(iframe_match.group(1))
            if thumbnail_url:
                return thumbnail_url

        if self.show_image:
            image_url = self._find_image_url(content, path)
            if image_url:
                return image_url

        return extract_text_preview(content)

    def _find_image_url(self, content: str, note_path: str) -> Optional[str]:
        match = MARKDOWN_IMAGE_PATTERN.search(content) or WIKILINK_IMAGE_PATTERN.search(content)
        if not match:
            return None

        image = match.group(1).strip()
        logger.debug(f"Found image: {image}")
        if URL_PATTERN.match(image):
            return image

        image_path = self.vault.resolve_link(image, note_path)
        if image_path is None and unquote(image) != image:
            image_path = self.vault.resolve_link(unquote(image), note_path)
        if image_path is None:
            logger.debug(f"Image {image} in {note_path} does not resolve")
            return None

        resource_url = self.vault.resource_url(image_path)
        logger.debug(f"Found image: {image} resourcePath={resource_url}")
        return resource_url

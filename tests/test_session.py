"""Tests for the active note session and the top-level event handlers."""

import asyncio

from twohop.config import Settings
from twohop.domain.links import FileEntity
from twohop.domain.vault import LinkCache, TagCache
from twohop.links.preview import PreviewExtractor
from twohop.service import TwohopLinksService
from twohop.session import NoteSession
from tests.fakes import FakeVault


def test_generation_changes_with_active_note() -> None:
    session = NoteSession()

    first = session.activate("a.md")
    same = session.activate("a.md")
    second = session.activate("b.md")

    assert first == same
    assert second == first + 1
    assert session.is_current(second)
    assert not session.is_current(first)


def test_metadata_change_detection_compares_sets() -> None:
    """Test that reordering links or tags does not count as a change."""
    session = NoteSession()
    session.activate("a.md")

    assert session.has_metadata_changed(["x", "y"], ["#t"])
    assert not session.has_metadata_changed(["y", "x", "x"], ["#t"])
    assert session.has_metadata_changed(["y", "x"], ["#t", "#u"])


def test_metadata_change_detection_has_no_delimiter_collisions() -> None:
    """Test that ["a,b"] and ["a", "b"] are different link sets."""
    session = NoteSession()

    session.has_metadata_changed(["a,b"], [])

    assert session.has_metadata_changed(["a", "b"], [])


def test_stale_preview_is_discarded() -> None:
    """Test that a preview finishing after the active note changed is dropped."""
    vault = FakeVault({"a.md": "", "b.md": "", "note.md": "body"})
    session = NoteSession()
    extractor = PreviewExtractor(vault)
    target = FileEntity(source_path="a.md", link_text="note")

    async def switch_during_read() -> tuple[str | None, str | None]:
        generation = session.activate("a.md")
        original_read = vault.read_text

        async def slow_read(path: str) -> str:
            session.activate("b.md")
            return await original_read(path)

        vault.read_text = slow_read  # type: ignore[method-assign]
        stale = await session.fetch_preview(extractor, target, generation)
        vault.read_text = original_read  # type: ignore[method-assign]
        current = await session.fetch_preview(extractor, target, session.generation)
        return stale, current

    stale, current = asyncio.run(switch_during_read())

    assert stale is None
    assert current == "body"


def make_service(vault: FakeVault, **overrides) -> TwohopLinksService:
    return TwohopLinksService(vault=vault, settings=Settings(**overrides))


def test_open_note_returns_bundle_with_generation(twohop_vault: FakeVault) -> None:
    service = make_service(twohop_vault)

    first = asyncio.run(service.open_note("A.md"))
    second = asyncio.run(service.open_note("S3.md"))

    assert first is not None and second is not None
    assert first.active_path == "A.md"
    assert second.generation == first.generation + 1


def test_disabled_service_does_nothing(twohop_vault: FakeVault) -> None:
    service = make_service(twohop_vault)

    assert service.disable(check=True)
    assert not service.enable(check=True)
    service.disable()

    assert asyncio.run(service.open_note("A.md")) is None
    assert service.enable(check=True)
    service.enable()
    assert asyncio.run(service.open_note("A.md")) is not None


def test_metadata_resolved_only_for_changed_active_note(twohop_vault: FakeVault) -> None:
    """Test that re-parsed metadata re-aggregates only when links or tags changed."""
    service = make_service(twohop_vault)
    asyncio.run(service.open_note("A.md"))

    assert asyncio.run(service.on_metadata_resolved("S1.md")) is None
    assert asyncio.run(service.on_metadata_resolved("A.md")) is None

    twohop_vault.metadata["A.md"].tags.append(TagCache(tag="#new"))
    assert asyncio.run(service.on_metadata_resolved("A.md")) is not None

    twohop_vault.metadata["A.md"].links.append(LinkCache(link="T1"))
    assert asyncio.run(service.on_metadata_resolved("A.md")) is None


def test_hidden_sections() -> None:
    vault = FakeVault.from_links({"X.md": ["Y"], "Y.md": [], "Z.md": ["X"]})
    service = make_service(
        vault, show_forward_connected_links=False, show_backward_connected_links=False
    )

    bundle = asyncio.run(service.open_note("X.md"))

    assert bundle is not None
    assert bundle.forward_links == []
    assert bundle.backward_links == []


def test_rebuild_components_applies_new_settings(twohop_vault: FakeVault) -> None:
    service = make_service(twohop_vault, enable_duplicate_removal=True)
    service.settings = Settings(enable_duplicate_removal=False, exclude_paths=["S1.md"])

    service.rebuild_components()
    bundle = asyncio.run(service.open_note("A.md"))

    assert bundle is not None
    members = {
        group.link.link_text: [it.link_text for it in group.file_entities]
        for group in bundle.twohop_links
    }
    assert members == {"T1.md": ["S3"], "T2.md": ["S2", "S3"]}


def test_service_preview_uses_generation(twohop_vault: FakeVault) -> None:
    service = make_service(twohop_vault)
    bundle = asyncio.run(service.open_note("A.md"))
    assert bundle is not None
    target = bundle.forward_links[0]

    assert asyncio.run(service.preview(target, bundle.generation)) == "Content of T1.md"
    assert asyncio.run(service.preview(target, bundle.generation - 1)) is None

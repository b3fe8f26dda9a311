"""CLI printing the forward, backward, two-hop and tag links of a note as JSON"""

import argparse
import asyncio
import json
import sys

from loguru import logger

from twohop.config import Settings, settings
from twohop.domain.links import FileEntity, LinksBundle, SortOrder
from twohop.service import TwohopLinksService
from twohop.vault.local import LocalVault


async def collect_previews(service: TwohopLinksService, bundle: LinksBundle) -> dict[str, str]:
    """Read the preview of every listed note."""
    entities: list[FileEntity] = bundle.forward_links + bundle.backward_links
    for group in bundle.twohop_links + bundle.unresolved_twohop_links:
        entities += group.file_entities
    for tag_links in bundle.tag_links:
        entities += tag_links.file_entities

    previews = await asyncio.gather(
        *(service.preview(entity, bundle.generation) for entity in entities)
    )
    return {entity.key(): preview or "" for entity, preview in zip(entities, previews)}


async def run(
    *,
    vault_path: str,
    note: str,
    run_settings: Settings,
    with_previews: bool,
) -> dict:
    vault = LocalVault(vault_path, resource_url_prefix=run_settings.resource_url_prefix)
    service = TwohopLinksService(vault=vault, settings=run_settings)

    bundle = await service.open_note(note)
    if bundle is None:
        return {}
    output = {"links": bundle.model_dump()}
    if with_previews:
        output["previews"] = await collect_previews(service, bundle)
    return output


def main(
    in_folder: str,
    note: str,
    sort_order: str,
    exclude_paths: list[str],
    no_duplicate_removal: bool,
    no_image: bool,
    with_previews: bool,
) -> None:
    run_settings = settings.model_copy(
        update={
            "sort_order": SortOrder(sort_order),
            "exclude_paths": exclude_paths or settings.exclude_paths,
            "enable_duplicate_removal": not no_duplicate_removal,
            "show_image": not no_image,
        }
    )
    output = asyncio.run(
        run(
            vault_path=in_folder,
            note=note,
            run_settings=run_settings,
            with_previews=with_previews,
        )
    )
    print(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--vault",
        type=str,
        required=False,
        help="Folder containing the markdown notes",
        default=settings.vault_path,
    )
    parser.add_argument(
        "--note", type=str, required=True, help="Vault-relative path of the active note"
    )
    parser.add_argument(
        "--sort-order",
        type=str,
        choices=[order.value for order in SortOrder],
        default=settings.sort_order.value,
        help="Ordering of every link list",
    )
    parser.add_argument(
        "--exclude",
        type=str,
        action="append",
        default=[],
        help="Path or folder (ending in '/') to exclude, can be repeated",
    )
    parser.add_argument(
        "--no-duplicate-removal",
        action="store_true",
        help="List two-hop notes even if they appear elsewhere",
    )
    parser.add_argument("--no-image", action="store_true", help="Use text-only previews")
    parser.add_argument("--preview", action="store_true", help="Include previews")

    args = parser.parse_args()

    logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

    main(
        in_folder=args.vault,
        note=args.note,
        sort_order=args.sort_order,
        exclude_paths=args.exclude,
        no_duplicate_removal=args.no_duplicate_removal,
        no_image=args.no_image,
        with_previews=args.preview,
    )

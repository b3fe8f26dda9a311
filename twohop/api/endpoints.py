import asyncio

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from loguru import logger

from twohop.domain.links import FileEntity, LinksBundle
from twohop.service import TwohopLinksService
from twohop.vault.local import LocalVault


def _create_links_endpoint(service: TwohopLinksService, vault: LocalVault):
    """Create the note-open endpoint handler."""

    async def get_links(path: str) -> LinksBundle:
        if not vault.has_file(path):
            raise HTTPException(status_code=404, detail="Note not found")

        bundle = await service.open_note(path)
        if bundle is None:
            raise HTTPException(status_code=409, detail="Two-hop links are disabled")
        return bundle

    return get_links


def _create_metadata_resolved_endpoint(service: TwohopLinksService, vault: LocalVault):
    """Create the endpoint notified after a note has been edited."""

    async def metadata_resolved(path: str):
        await asyncio.to_thread(vault.refresh)
        bundle = await service.on_metadata_resolved(path)
        return {"changed": bundle is not None, "links": bundle}

    return metadata_resolved


def _create_preview_endpoint(service: TwohopLinksService):
    """Create the preview endpoint handler."""

    async def get_preview(source_path: str, link_text: str, generation: int):
        file_entity = FileEntity(source_path=source_path, link_text=link_text)
        preview = await service.preview(file_entity, generation)
        return {"preview": preview or "", "stale": preview is None}

    return get_preview


def _create_resource_endpoint(vault: LocalVault):
    """Create the endpoint serving vault files such as images."""

    async def get_resource(path: str) -> FileResponse:
        if not vault.has_file(path):
            logger.warning(f"Resource not found: {path}")
            raise HTTPException(status_code=404, detail="Resource not found")
        return FileResponse(vault.full_path(path))

    return get_resource


def get_endpoints_router(*, service: TwohopLinksService, vault: LocalVault) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @router.post("/api/vault/refresh")
    async def refresh_vault():
        await asyncio.to_thread(vault.refresh)
        return {"notes": len(vault.get_markdown_paths())}

    @router.post("/api/enable")
    async def enable():
        service.enable()
        return {"enabled": service.enabled}

    @router.post("/api/disable")
    async def disable():
        service.disable()
        return {"enabled": service.enabled}

    router.get("/api/links")(_create_links_endpoint(service, vault))
    router.post("/api/notes/resolved")(_create_metadata_resolved_endpoint(service, vault))
    router.get("/api/preview")(_create_preview_endpoint(service))
    router.get("/api/resources/{path:path}")(_create_resource_endpoint(vault))

    return router

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from twohop.api.endpoints import get_endpoints_router
from twohop.service import TwohopLinksService
from twohop.vault.local import LocalVault


def create_app(*, service: TwohopLinksService, vault: LocalVault) -> FastAPI:
    """Create FastAPI app."""
    app = FastAPI()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router=get_endpoints_router(service=service, vault=vault))

    return app

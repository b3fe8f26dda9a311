import sys

from loguru import logger

from twohop.api import create_app
from twohop.config import settings
from twohop.service import TwohopLinksService
from twohop.vault.local import LocalVault

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

logger.info(f"Serving two-hop links for vault {settings.vault_path}")
vault = LocalVault(settings.vault_path, resource_url_prefix=settings.resource_url_prefix)
service = TwohopLinksService(vault=vault, settings=settings)
app = create_app(service=service, vault=vault)

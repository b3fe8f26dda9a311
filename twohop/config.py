from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from twohop.domain.links import SortOrder


class Settings(BaseSettings):
    # Vault settings
    vault_path: str = "data/vault"
    resource_url_prefix: str = "/api/resources"

    # Link aggregation settings
    exclude_paths: Annotated[list[str], NoDecode] = []
    sort_order: SortOrder = SortOrder.FILENAME_ASC
    enable_duplicate_removal: bool = True

    # Presentation settings
    show_image: bool = True
    show_forward_connected_links: bool = True
    show_backward_connected_links: bool = True

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL

    @field_validator("exclude_paths", mode="before")
    @classmethod
    def split_exclude_paths(cls, value: object) -> object:
        """Accept one path per line, as typed in a text area."""
        if isinstance(value, str):
            value = value.split("\n")
        if isinstance(value, list):
            return [str(path).strip() for path in value if str(path).strip()]
        return value


settings = Settings()

"""
Configuration defaults.

Settings come from CREDITPLANNER_* environment variables:

    CREDITPLANNER_CATALOG     catalog snapshot JSON
    CREDITPLANNER_SELECTION   stored slot selection JSON
    CREDITPLANNER_API_URL     read the catalog from this API instead
    CREDITPLANNER_TIMEOUT     HTTP timeout in seconds (default 30)

Paths are returned by functions instead of constants so tests (and users,
via the environment) can point the tool somewhere else.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from creditplanner.errors import ValidationError

PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"

DEFAULT_HTTP_TIMEOUT = 30.0

DEFAULT_ALTERNATIVES_LIMIT = 5
MAX_ALTERNATIVES_LIMIT = 20


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CREDITPLANNER_", env_ignore_empty=True)

    catalog: Optional[Path] = None
    selection: Optional[Path] = None
    api_url: Optional[str] = None
    timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)

    @field_validator("api_url")
    @classmethod
    def _strip_api_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


def get_settings() -> Settings:
    """
    Read the settings from the current environment.

    Not cached: the environment is re-read on every call.
    """
    try:
        return Settings()
    except PydanticValidationError as exc:
        err = exc.errors()[0]
        name = "CREDITPLANNER_" + "_".join(str(p) for p in err["loc"]).upper()
        raise ValidationError(f"{name}: {err['msg']}") from None


def default_catalog_path() -> Path:
    """
    Catalog snapshot (courses + study plans) as produced by the data export.
    """
    return get_settings().catalog or DATA_DIR / "catalog.json"


def default_selection_path() -> Path:
    """
    The user's stored slot selection.
    """
    return get_settings().selection or DATA_DIR / "selected_slots.json"


def api_url() -> Optional[str]:
    return get_settings().api_url


def http_timeout() -> float:
    return get_settings().timeout

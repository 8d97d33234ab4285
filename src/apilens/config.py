from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Substrings marking a handler descriptor as framework/vendor owned.
DEFAULT_VENDOR_NAMESPACES = ("vendor.", "fastapi.", "starlette.", "apilens.")

# Import prefixes dropped from a controller's "uses" list.
DEFAULT_FRAMEWORK_PREFIXES = ("__future__", "apilens", "fastapi", "starlette", "pydantic")

DEFAULT_REQUEST_BASES = ("apilens.contracts.FormRequest",)
DEFAULT_RESOURCE_BASES = ("apilens.contracts.JsonResource", "apilens.contracts.ResourceCollection")
DEFAULT_MODEL_BASES = ("apilens.contracts.Model",)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APILENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app: Optional[str] = None  # "module:attr" of a RouteRegistry or FastAPI app
    log_level: str = "WARNING"

    vendor_namespaces: list[str] = Field(default_factory=lambda: list(DEFAULT_VENDOR_NAMESPACES))
    framework_prefixes: list[str] = Field(default_factory=lambda: list(DEFAULT_FRAMEWORK_PREFIXES))

    request_bases: list[str] = Field(default_factory=lambda: list(DEFAULT_REQUEST_BASES))
    resource_bases: list[str] = Field(default_factory=lambda: list(DEFAULT_RESOURCE_BASES))
    model_bases: list[str] = Field(default_factory=lambda: list(DEFAULT_MODEL_BASES))


@lru_cache
def get_settings() -> Settings:
    return Settings()

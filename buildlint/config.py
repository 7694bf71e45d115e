"""
buildlint Configuration — pydantic-settings based.

All settings are read from BUILDLINT_* environment variables or a .env file.
List and dict settings are given as JSON, e.g.
BUILDLINT_COMMAND_ELEMENTS='["PostBuildEvent", "MyHook"]'.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Application-wide settings sourced from environment variables."""

    # ── Extraction ──
    command_elements: list[str] = Field(
        default=["PreBuildEvent", "PostBuildEvent", "PreLinkEvent"],
        description="Elements whose text content is a shell command",
    )
    command_attributes: dict[str, str] = Field(
        default={"Exec": "Command"},
        description="Element name -> attribute holding a shell command",
    )
    property_containers: list[str] = Field(
        default=["PropertyGroup"],
        description="Elements whose children are property assignments",
    )
    predefined_properties: list[str] = Field(
        default_factory=list,
        description="Properties treated as defined before the first assignment",
    )

    # ── Discovery ──
    file_extensions: list[str] = Field(
        default=[".csproj", ".vbproj", ".vcxproj", ".fsproj", ".proj", ".props", ".targets"],
        description="Extensions picked up when scanning a directory",
    )

    # ── Scanning ──
    max_file_size_bytes: int = Field(
        default=2_000_000, description="Max build file size to accept (bytes)"
    )
    max_workers: int = Field(
        default=4, ge=1, description="Documents analyzed concurrently in a batch scan"
    )

    # ── Cache ──
    cache_ttl_seconds: int = Field(
        default=3600, description="Time-to-live for file-level cache entries"
    )

    model_config = SettingsConfigDict(
        env_prefix="BUILDLINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Singleton instance, imported by other modules
settings = Settings()

"""Configuration models."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RepositoryConfig(BaseModel):
    """Configuration for the Git repository to read."""

    repo_path: Path = Field(..., description="Path to the Git repository")
    search_parent_directories: bool = Field(
        True, description="Accept a path inside the work tree, not only its root"
    )

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "repo_path": "/path/to/repo",
                "search_parent_directories": True,
            }
        }


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are prefixed with TAGTICKETS_ (e.g., TAGTICKETS_TICKET_URL).
    """

    model_config = SettingsConfigDict(
        env_prefix="TAGTICKETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Ticket extraction
    ticket_pattern: Optional[str] = Field(
        None, description="Custom regex for ticket keys (default: PREFIX-123)"
    )
    ticket_url: Optional[str] = Field(
        None, description="Ticket URL template; {ticket} is replaced, else the key is appended"
    )

    # Release mapping
    include_unreleased: bool = Field(True, description="Report commits after the newest tag")
    unreleased_label: str = Field("Unreleased", description="Label of the untagged HEAD pseudo-release")
    timeout_seconds: Optional[float] = Field(None, description="Overall deadline for the graph walk")

    # Logging
    log_level: str = "WARNING"
    log_format: str = Field("console", description="console or json")

"""Pydantic models for Package History API requests and responses."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..config import normalize_file_path
from ..models import ChangeKind


class HistoryRequest(BaseModel):
    """Request model for the history endpoint."""

    repository_path: str = Field(
        ...,
        description="Absolute path of a local git repository",
        examples=["/srv/repos/webapp"],
    )
    file_path: str = Field(
        ...,
        description="Manifest path relative to the repository root",
        examples=["package.json"],
    )
    commits_count: int = Field(
        100,
        description="Number of most recent commits touching the file",
        ge=1,
        le=5000,
    )
    strategy_name: Optional[str] = Field(
        None,
        description="Manifest format; detected from the file name when omitted",
        examples=["npm"],
    )
    change_events: List[ChangeKind] = Field(
        default_factory=list,
        description="Change events to report; empty means all",
    )
    capture_dev_packages: bool = Field(True, description="Include dev packages")

    @field_validator("repository_path")
    @classmethod
    def repository_path_must_be_absolute(cls, v):
        """Only absolute local paths are accepted."""
        v = v.strip()
        if not v:
            raise ValueError("repository_path cannot be empty")
        if not (v.startswith("/") or (len(v) > 2 and v[1] == ":")):
            raise ValueError("repository_path must be an absolute path")
        return v

    @field_validator("file_path")
    @classmethod
    def file_path_must_not_be_empty(cls, v):
        """Normalize the manifest path and reject empty values."""
        v = normalize_file_path(v)
        if not v:
            raise ValueError("file_path cannot be empty")
        return v


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., examples=["healthy"])
    version: str = Field(..., examples=["1.0.0"])
    git_available: bool = Field(..., examples=[True])
    git_version: Optional[str] = Field(None, examples=["2.43.0"])


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(..., examples=["1.0.0"])
    api_version: str = Field(..., examples=["v1"])
    git_version: Optional[str] = Field(None, examples=["2.43.0"])
    strategies: List[str] = Field(default_factory=list, examples=[["composer", "npm"]])

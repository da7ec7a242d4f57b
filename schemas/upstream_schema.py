# -------------------------------------------------------------------
# schemas/upstream_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **upstream payload schemas**: the parts of
# the Gitea API responses this service reads.
#
#   GET /api/v1/repos/{owner}/{repo}
#       -> RepositoryInfo      {"default_branch": ..., <ignored>}
#
#   GET /api/v1/repos/{owner}/{repo}/commits/{ref}/status
#       -> CommitStatusResult  {"state": ..., "statuses": [...], "total_count": ...}
#
# DECODING RULES
# --------------
# - Unknown upstream fields are ignored (Gitea returns far more).
# - Missing or null fields decode to the empty value of their type.
# - A body that is not a JSON object fails validation; GiteaClient
#   translates that into DecodeError.
#
# `state` is kept verbatim. It is an open-ended, case-sensitive string;
# the state mapper decides what it means, not this schema.
#
# WHAT THIS FILE IS NOT FOR
# ------------------------
# This module does NOT call Gitea or map states to symbols.
# -------------------------------------------------------------------

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class RepositoryInfo(BaseModel):
    """Subset of the Gitea repository object."""

    model_config = ConfigDict(extra="ignore")

    default_branch: str = ""

    @field_validator("default_branch", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class CommitStatusResult(BaseModel):
    """Combined commit status for a ref."""

    model_config = ConfigDict(extra="ignore")

    state: str = ""
    statuses: List[Any] = Field(default_factory=list)
    total_count: int = 0

    @field_validator("state", "statuses", "total_count", mode="before")
    @classmethod
    def _null_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is not None:
            return v
        return {"state": "", "statuses": [], "total_count": 0}[info.field_name]

    @classmethod
    def unknown(cls) -> "CommitStatusResult":
        """Result used when Gitea has no status at all for the ref."""
        return cls(state="unknown", statuses=[], total_count=0)

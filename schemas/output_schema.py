# -------------------------------------------------------------------
# schemas/output_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **public response schema** of GET /status.
#
# Every response, success or error, has the same shape:
#
#   {
#     "owner": "...",
#     "repository": "...",
#     "branch": "...",
#     "state": "...",
#     "symbol": "...",
#     "error": "..."        <- present ONLY on failures
#   }
#
# Fields are filled in as the pipeline progresses, so a failure at an
# earlier stage leaves the later fields as empty strings.
#
# Serialize with `to_payload()`; it drops `error` when unset. Do not
# call model_dump() directly at the API boundary.
#
# Any breaking change here is a **public API change**.
# -------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


class BuildStatusResult(BaseModel):
    """
    Build status of a repository's default branch.

    Exactly one holds per response:
    - fully populated success (error is None)
    - partially populated failure (error is set)
    """

    model_config = {"extra": "forbid"}

    owner: str = ""
    repository: str = ""
    branch: str = ""
    state: str = ""
    symbol: str = ""
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

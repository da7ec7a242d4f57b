"""
functions/orchestrator/build_status_service.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *build status orchestration* behind GET /status.

It is responsible for:
- Validating the owner/repo inputs
- Driving GiteaClient through the two-step lookup
    1) default branch of owner/repo
    2) combined commit status of that branch
- Applying the state mapper (symbol + HTTP code)
- Assembling the public BuildStatusResult for success AND failure

CALL FLOW CONTEXT
-----------------
FastAPI (api.py)
  -> BuildStatusService.resolve(owner, repo)
      -> GiteaClient.fetch_default_branch()
      -> GiteaClient.fetch_commit_status()
      -> normalize_build_state()

ERROR HANDLING RULES
--------------------
- Missing owner/repo           -> 400, no upstream calls
- owner/repo of "." or ".."    -> 400, no upstream calls
- Repository info failure      -> 500, "Failed to get repository info: ..."
- Commit status failure        -> 500, "Failed to get commit status: ..."
- Success                      -> HTTP code derived from the state

Only StatusRelayError subclasses are turned into error bodies. No step
is retried; the first failure ends the request.

Fields are filled in as the pipeline progresses, so a failure leaves
every field after the failing step empty.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

import structlog

from functions.orchestrator.errors import StatusRelayError
from functions.orchestrator.gitea_client import DOT_SEGMENTS, GiteaClient
from functions.orchestrator.status_normalizer import normalize_build_state
from schemas.output_schema import BuildStatusResult

logger = structlog.get_logger(__name__)

MISSING_PARAMS_MESSAGE = "Both 'owner' and 'repo' query parameters are required"
DOT_NAME_MESSAGE = "The 'owner' and 'repo' query parameters must not be '.' or '..'"


class BuildStatusOutcome(NamedTuple):
    http_status: int
    result: BuildStatusResult


class BuildStatusService:
    def __init__(self, client: GiteaClient):
        self.client = client

    async def resolve(self, owner: Optional[str], repo: Optional[str]) -> BuildStatusOutcome:
        owner = owner or ""
        repo = repo or ""

        if not owner or not repo:
            return _rejected(MISSING_PARAMS_MESSAGE)
        if owner in DOT_SEGMENTS or repo in DOT_SEGMENTS:
            return _rejected(DOT_NAME_MESSAGE)

        result = BuildStatusResult(owner=owner, repository=repo)

        # ---------------------------------------------------------------
        # 1) Default branch
        # ---------------------------------------------------------------
        try:
            result.branch = await self.client.fetch_default_branch(owner, repo)
        except StatusRelayError as exc:
            result.error = f"Failed to get repository info: {exc}"
            return BuildStatusOutcome(500, result)

        # ---------------------------------------------------------------
        # 2) Commit status of that branch
        # ---------------------------------------------------------------
        try:
            status = await self.client.fetch_commit_status(owner, repo, result.branch)
        except StatusRelayError as exc:
            result.error = f"Failed to get commit status: {exc}"
            return BuildStatusOutcome(500, result)

        # ---------------------------------------------------------------
        # 3) Map state
        # ---------------------------------------------------------------
        symbol, http_code = normalize_build_state(status.state)
        result.state = status.state
        result.symbol = symbol

        logger.info(
            "build_status_resolved",
            owner=owner,
            repo=repo,
            branch=result.branch,
            state=status.state,
            total_count=status.total_count,
            http_status=http_code,
        )
        return BuildStatusOutcome(http_code, result)


def _rejected(message: str) -> BuildStatusOutcome:
    logger.info("build_status_rejected", reason=message)
    return BuildStatusOutcome(400, BuildStatusResult(error=message))

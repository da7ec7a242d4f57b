"""
functions/orchestrator/gitea_client.py

WHAT THIS FILE IS FOR
---------------------
This module provides a domain-aware, asynchronous client for the two
Gitea API calls the build status pipeline needs:

- GET {base}/api/v1/repos/{owner}/{repo}
    -> default branch name
- GET {base}/api/v1/repos/{owner}/{repo}/commits/{branch}/status
    -> combined commit status

It exists to:
- Own the Gitea base URL and access token
- Build endpoint URLs and the `Authorization: token ...` header
- Interpret upstream status codes and bodies into domain values
- Translate every failure into the error taxonomy in errors.py
- Release every response on every exit path

This class represents the *upstream access boundary* of the service.

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- Retries (none are performed)
- Opening sockets or applying timeouts (see http_client.py)
- Mapping states to symbols or HTTP codes (see status_normalizer.py)
- Building the public response (see build_status_service.py)

STATUS CODE RULES
-----------------
Repository info:
- 200                   -> decode RepositoryInfo
- anything else         -> UpstreamHTTPError

Commit status:
- 200                   -> decode CommitStatusResult
- 404                   -> CommitStatusResult(state="unknown"), NOT an error
- anything else         -> UpstreamHTTPError

"No status was ever reported" is a legitimate, reportable state and
must stay distinct from an upstream failure.

PATH SEGMENTS
-------------
Every URL stays under /api/v1/repos/{owner}/{repo}:
- owner and repo are percent-encoded whole; "." and ".." are rejected
  with InputValidationError before anything is sent
- the branch keeps "/" (release/1.0), and its "." / ".." components
  are sent as %2E / %2E%2E so URL normalization cannot resolve them
"""

from __future__ import annotations

from typing import Dict, Type, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from functions.orchestrator.errors import (
    DecodeError,
    InputValidationError,
    TransportError,
    UpstreamHTTPError,
)
from functions.utils.http_client import HttpTransport
from schemas.upstream_schema import CommitStatusResult, RepositoryInfo

logger = structlog.get_logger(__name__)

REPOSITORY_PATH = "/api/v1/repos/{owner}/{repo}"
COMMIT_STATUS_PATH = "/api/v1/repos/{owner}/{repo}/commits/{branch}/status"

# Upstream bodies carried in errors are cut to this many characters
BODY_SNIPPET_LIMIT = 500
# utf-8 needs at most 4 bytes per character
_SNIPPET_BYTE_BUDGET = BODY_SNIPPET_LIMIT * 4

# Path components that URL normalization would resolve away
DOT_SEGMENTS = frozenset({".", ".."})

ModelT = TypeVar("ModelT", bound=BaseModel)


class GiteaClient:
    """
    Thin async client around the Gitea REST API.

    - One shared transport for all requests (safe for concurrent use)
    - No retries; the first failure is raised to the caller
    - Token is sent on every call and never logged
    """

    def __init__(self, base_url: str, token: str, transport: HttpTransport) -> None:
        self._base_url = str(base_url).rstrip("/")
        self._token = token
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def fetch_default_branch(self, owner: str, repo: str) -> str:
        """
        Resolve the default branch of owner/repo.

        Raises:
            InputValidationError: owner or repo is "." or "..".
            TransportError: Gitea could not be reached.
            UpstreamHTTPError: Gitea answered anything but 200.
            DecodeError: the 200 body is not a repository object.
        """
        path = REPOSITORY_PATH.format(owner=_segment(owner), repo=_segment(repo))
        ctx = {"owner": owner, "repo": repo}

        url = self._base_url + path
        response = await self._send(url, ctx)
        try:
            if response.status_code != 200:
                raise await self._http_error(response, url, ctx)
            info = await self._decode(response, url, RepositoryInfo, ctx)
        finally:
            await response.aclose()

        return info.default_branch

    async def fetch_commit_status(self, owner: str, repo: str, branch: str) -> CommitStatusResult:
        """
        Fetch the combined commit status of `branch`.

        A 404 means Gitea has no status for the ref; this is reported as
        state "unknown" rather than raised.

        Raises:
            InputValidationError: owner or repo is "." or "..".
            TransportError: Gitea could not be reached.
            UpstreamHTTPError: Gitea answered anything but 200 or 404.
            DecodeError: the 200 body is not a commit status object.
        """
        path = COMMIT_STATUS_PATH.format(
            owner=_segment(owner),
            repo=_segment(repo),
            branch=_ref_path(branch),
        )
        ctx = {"owner": owner, "repo": repo, "branch": branch}

        url = self._base_url + path
        response = await self._send(url, ctx)
        try:
            if response.status_code == 404:
                logger.info("gitea_commit_status_missing", **ctx)
                return CommitStatusResult.unknown()
            if response.status_code != 200:
                raise await self._http_error(response, url, ctx)
            return await self._decode(response, url, CommitStatusResult, ctx)
        finally:
            await response.aclose()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"token {self._token}",
            "Accept": "application/json",
        }

    async def _send(self, url: str, ctx: Dict[str, str]) -> httpx.Response:
        try:
            return await self._transport.send("GET", url, headers=self._headers())
        except httpx.RequestError as exc:
            raise _transport_error(exc, url, ctx) from exc

    async def _read(self, response: httpx.Response, url: str, ctx: Dict[str, str]) -> bytes:
        # streamed bodies can still time out or drop mid-read
        try:
            return await response.aread()
        except httpx.RequestError as exc:
            raise _transport_error(exc, url, ctx) from exc

    async def _http_error(
        self, response: httpx.Response, url: str, ctx: Dict[str, str]
    ) -> UpstreamHTTPError:
        # only the head of the body is read; large error pages are never buffered
        head = bytearray()
        try:
            async for chunk in response.aiter_bytes():
                head.extend(chunk)
                if len(head) >= _SNIPPET_BYTE_BUDGET:
                    break
        except httpx.RequestError as exc:
            raise _transport_error(exc, url, ctx) from exc

        snippet = bytes(head).decode("utf-8", errors="replace")[:BODY_SNIPPET_LIMIT]
        logger.warning(
            "gitea_http_error",
            url=url,
            status_code=response.status_code,
            response_snippet=snippet,
            **ctx,
        )
        return UpstreamHTTPError(response.status_code, snippet)

    async def _decode(
        self, response: httpx.Response, url: str, model: Type[ModelT], ctx: Dict[str, str]
    ) -> ModelT:
        body = await self._read(response, url, ctx)
        try:
            return model.model_validate_json(body)
        except ValidationError as exc:
            first = exc.errors()[0] if exc.error_count() else {}
            detail = f"invalid {model.__name__} payload: {first.get('msg', 'unparseable body')}"
            logger.warning("gitea_decode_error", model=model.__name__, error=detail, **ctx)
            raise DecodeError(detail) from exc


def _segment(value: str) -> str:
    if value in DOT_SEGMENTS:
        raise InputValidationError(f"{value!r} is not a valid owner or repository name")
    return quote(value, safe="")


def _ref_path(branch: str) -> str:
    # refs like release/1.0 keep their slashes
    return "/".join(
        part.replace(".", "%2E") if part in DOT_SEGMENTS else quote(part, safe="")
        for part in branch.split("/")
    )


def _transport_error(exc: httpx.RequestError, url: str, ctx: Dict[str, str]) -> TransportError:
    # str() of some httpx timeouts is empty
    detail = str(exc) or type(exc).__name__
    logger.warning("gitea_transport_error", url=url, error=detail, **ctx)
    return TransportError(detail)

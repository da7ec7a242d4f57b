"""
functions/utils/http_client.py

WHAT THIS FILE IS FOR
---------------------
This module defines the outbound HTTP *transport capability* used by
the Gitea client: "send a request, get a response or a failure".

It exists to:
- Give the Gitea client exactly one seam to talk to the network
- Standardize timeout handling (one client-wide timeout, no per-call override)
- Allow deterministic fakes in tests without patching httpx

This module is intentionally kept *very thin*.

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- Retry logic
- Logging or structured tracing
- URL templating or authentication headers
- Status code interpretation or body decoding

Those responsibilities belong to GiteaClient.

RESPONSE OWNERSHIP
------------------
Responses are returned *unread* (httpx streaming mode). The caller owns
the response and MUST release it with `await response.aclose()` on every
exit path, including error paths.

CONCURRENCY
-----------
HttpxTransport wraps a single httpx.AsyncClient that is shared by all
in-flight requests of the process. httpx pools connections and is safe
for concurrent use from one event loop.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

import httpx

DEFAULT_TIMEOUT_SECONDS = 10.0


class HttpTransport(Protocol):
    """
    Single-operation transport capability.

    Implementations return an httpx.Response (status, headers, body stream)
    or raise httpx.RequestError (connect error, timeout, DNS failure...).
    """

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response: ...


class HttpxTransport:
    """
    Network-backed transport over a shared httpx.AsyncClient.

    The timeout is applied uniformly to connect, read, write and pool waits.
    """

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds
        self._client = httpx.AsyncClient(timeout=timeout_seconds)

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        request = self._client.build_request(method, url, headers=dict(headers or {}))
        return await self._client.send(request, stream=True)

    async def aclose(self) -> None:
        await self._client.aclose()

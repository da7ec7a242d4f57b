"""
functions/orchestrator/status_normalizer.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single canonical rule* for mapping an upstream
commit status `state` into:

- a one-character display symbol
- the HTTP status code this service answers with

MAPPING TABLE
-------------
    state     symbol  http
    success   ✓       200
    failure   ✗       417
    error     ✗       500
    pending   ●       202
    warning   ⚠       200
    unknown   ○       204
    (other)   ?       200

The lookup is literal and case-sensitive: "SUCCESS" is unrecognized.

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Call upstream services
- Log, raise, or handle exceptions
- Reject unrecognized states (they map to the defaults instead)

It performs **pure, deterministic mapping only**.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

UNRECOGNIZED_SYMBOL = "?"
UNRECOGNIZED_HTTP_CODE = 200

STATE_SYMBOLS: Mapping[str, str] = MappingProxyType(
    {
        "success": "✓",
        "failure": "✗",
        "error": "✗",
        "pending": "●",
        "warning": "⚠",
        "unknown": "○",
    }
)

STATE_HTTP_CODES: Mapping[str, int] = MappingProxyType(
    {
        "success": 200,
        "failure": 417,
        "error": 500,
        "pending": 202,
        "warning": 200,  # passed, with warnings
        "unknown": 204,
    }
)


def state_to_symbol(state: str) -> str:
    return STATE_SYMBOLS.get(state, UNRECOGNIZED_SYMBOL)


def state_to_http_code(state: str) -> int:
    return STATE_HTTP_CODES.get(state, UNRECOGNIZED_HTTP_CODE)


def normalize_build_state(state: str) -> Tuple[str, int]:
    """Return (symbol, http_code) for an upstream state string."""
    return state_to_symbol(state), state_to_http_code(state)

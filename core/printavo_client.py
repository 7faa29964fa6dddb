"""
Printavo API Client - One GraphQL exchange per call, with outcome classification.

This module is responsible for all HTTP communication with Printavo. It does
not retry and does not pace requests; RequestScheduler does both on top of it.

Authentication:
    Printavo v2 authenticates every request with two headers, ``email`` and
    ``token`` (from My Account -> API). There is no token exchange step.

Request:
    POST {api_url}
    Body: {"query": "...", "variables": {...}}

Outcome classification:
    success           -> the "data" dict is returned
    TransientFailure  -> timeout, connection error, undecodable body, HTTP 429,
                         any non-2xx other than 400/401/403, GraphQL errors
                         that are not auth/validation errors
    FatalFailure      -> HTTP 400/401/403, GraphQL auth/parse/validation errors

Pipeline context:
    Wrapped by RequestScheduler, which is used by CatalogWalker, SplitFetcher
    and PreflightChecker.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from .exceptions import FatalFailure, TransientFailure

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 10.0

FATAL_HTTP_STATUSES = {400, 401, 403}

FATAL_ERROR_CODES = {
    "UNAUTHENTICATED",
    "FORBIDDEN",
    "GRAPHQL_PARSE_FAILED",
    "GRAPHQL_VALIDATION_FAILED",
}

# Substrings of GraphQL error messages that mean the request itself is wrong.
FATAL_ERROR_MARKERS = (
    "not authenticated",
    "unauthorized",
    "invalid token",
    "parse error",
    "doesn't exist on type",
    "does not exist on type",
    "variable $",
)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given in seconds. Dates are ignored."""
    if not value:
        return None
    try:
        return max(0.0, float(value.strip()))
    except ValueError:
        return None


def is_fatal_graphql_error(error: Dict[str, Any]) -> bool:
    extensions = error.get("extensions") or {}
    code = str(extensions.get("code", "")).upper()
    if code in FATAL_ERROR_CODES:
        return True
    message = str(error.get("message", "")).lower()
    return any(marker in message for marker in FATAL_ERROR_MARKERS)


class PrintavoClient:
    """Client for the Printavo v2 GraphQL API.

    Manages a requests.Session carrying the credential headers. ``timeout`` is
    passed to requests as a (connect, read) pair: connecting may take at most
    CONNECT_TIMEOUT seconds (never more than ``timeout``), and the read limit
    applies to each wait for bytes from the server, not to the whole response.
    A server that keeps trickling bytes can hold a call past ``timeout``.
    Exceeding either limit is a TransientFailure.

    Attributes:
        api_url: GraphQL endpoint.
        email: Printavo account email.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, api_url: str, email: str, token: str, timeout: float = 60.0):
        self.api_url = api_url.rstrip("/")
        self.email = email
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "email": email,
            "token": token,
        })

    def _timeouts(self) -> Tuple[float, float]:
        return (min(CONNECT_TIMEOUT, self.timeout), self.timeout)

    def execute_graphql(self, query: str, variables: Optional[Dict] = None) -> Dict[str, Any]:
        """Execute one GraphQL query and return its "data" dict.

        Args:
            query: The GraphQL query string.
            variables: Optional dict of GraphQL variables.

        Returns:
            The "data" portion of the GraphQL response.

        Raises:
            TransientFailure: The call may succeed if retried.
            FatalFailure: The call cannot succeed as issued.
        """
        payload = {"query": query, "variables": variables or {}}

        try:
            response = self._session.post(self.api_url, json=payload, timeout=self._timeouts())
        except requests.Timeout as e:
            raise TransientFailure(f"Request timed out after {self.timeout}s: {e}") from e
        except requests.RequestException as e:
            raise TransientFailure(f"Request failed: {e}") from e

        status = response.status_code
        if status in FATAL_HTTP_STATUSES:
            raise FatalFailure(f"HTTP {status}: {response.reason}")
        if status == 429:
            raise TransientFailure(
                f"HTTP 429: {response.reason}",
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
            )
        if not 200 <= status < 300:
            raise TransientFailure(f"HTTP {status}: {response.reason}")

        try:
            result = response.json()
        except ValueError as e:
            raise TransientFailure(f"Invalid JSON response: {e}") from e

        errors: List[Dict[str, Any]] = result.get("errors") or []
        data = result.get("data")

        if errors and not data:
            messages = "; ".join(e.get("message", str(e)) for e in errors)
            if any(is_fatal_graphql_error(e) for e in errors):
                raise FatalFailure(f"GraphQL: {messages}")
            raise TransientFailure(f"GraphQL: {messages}")

        if errors:
            logger.warning(
                "GraphQL returned partial data with %d error(s): %s",
                len(errors),
                "; ".join(e.get("message", str(e)) for e in errors),
            )

        return data or {}

    def close(self):
        self._session.close()

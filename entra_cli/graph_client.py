"""
Microsoft Graph client used by the entra commands.

Thin wrapper around a ``requests.Session`` carrying a bearer token. Tokens
are acquired with MSAL from one of three sources, checked in order:

  1. ENTRA_ACCESS_TOKEN   — a pre-acquired bearer token, used as-is
  2. Client credentials   — ENTRA_TENANT_ID + ENTRA_CLIENT_ID + ENTRA_CLIENT_SECRET
  3. Device code flow     — ENTRA_CLIENT_ID (+ optional ENTRA_TENANT_ID)

The client retries transient failures (429, 5xx) itself; callers only ever
see a successful JSON payload or a TransportError.
"""

import logging
import os
import time
from typing import Callable, Optional

import msal
import requests

from .config import (
    DEFAULT_TENANT,
    DEFAULT_TIMEOUT,
    ENV_ACCESS_TOKEN,
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
    ENV_TENANT_ID,
    GRAPH_APP_SCOPES,
    GRAPH_BASE,
    GRAPH_DELEGATED_SCOPES,
    GRAPH_VERSION,
    LOGIN_AUTHORITY,
    MAX_RETRIES,
    RETRY_DELAY,
    TRANSIENT_STATUS_CODES,
)
from .exceptions import GraphAPIError, NotAuthenticatedError, TransportError

logger = logging.getLogger(__name__)


def _check_response(resp: requests.Response):
    """Raise GraphAPIError for non-2xx responses (always captures body)."""
    if resp.status_code >= 400:
        raise GraphAPIError(resp.status_code, resp.text)


def _retry_delay(resp: requests.Response, attempt: int) -> float:
    retry_after = resp.headers.get("Retry-After")
    if retry_after:
        try:
            return max(float(retry_after), 0)
        except ValueError:
            pass
    return RETRY_DELAY * (attempt + 1)


def _get_with_retry(session: requests.Session, url: str, **kwargs) -> requests.Response:
    """GET with retry on transient errors (429, 5xx)."""
    kwargs.setdefault("timeout", DEFAULT_TIMEOUT)
    for attempt in range(MAX_RETRIES + 1):
        resp = session.get(url, **kwargs)
        if resp.status_code not in TRANSIENT_STATUS_CODES or attempt == MAX_RETRIES:
            return resp
        delay = _retry_delay(resp, attempt)
        logger.info("Transient %s on %s, retrying in %ss...", resp.status_code, url.split("?")[0], delay)
        time.sleep(delay)
    return resp


def _token_or_raise(result: Optional[dict], what: str) -> str:
    if not result or "access_token" not in result:
        result = result or {}
        error_desc = result.get("error_description", result.get("error", "Unknown"))
        raise NotAuthenticatedError(f"{what} failed: {error_desc}")
    return result["access_token"]


def acquire_client_credentials_token(tenant_id: str, client_id: str, client_secret: str) -> str:
    """App-only token for a confidential client (service principal secret)."""
    app = msal.ConfidentialClientApplication(
        client_id,
        authority=f"{LOGIN_AUTHORITY}/{tenant_id}",
        client_credential=client_secret,
    )
    result = app.acquire_token_for_client(scopes=GRAPH_APP_SCOPES)
    return _token_or_raise(result, "Client credentials sign-in")


def acquire_device_code_token(client_id: str, tenant_id: str = DEFAULT_TENANT,
                              callback: Optional[Callable[[dict], None]] = None) -> str:
    """Delegated token via device code flow; the user signs in via browser."""
    app = msal.PublicClientApplication(
        client_id,
        authority=f"{LOGIN_AUTHORITY}/{tenant_id}",
    )
    flow = app.initiate_device_flow(scopes=GRAPH_DELEGATED_SCOPES)
    if "user_code" not in flow:
        raise NotAuthenticatedError(
            f"Device code flow failed: {flow.get('error_description', 'Unknown error')}"
        )

    if callback:
        callback(flow)

    result = app.acquire_token_by_device_flow(flow)
    return _token_or_raise(result, "Sign-in")


class GraphClient:
    """Read-only access to Microsoft Graph over a shared requests session."""

    def __init__(self, token: Optional[str] = None, session: Optional[requests.Session] = None,
                 base_url: str = GRAPH_BASE, version: str = GRAPH_VERSION,
                 timeout: int = DEFAULT_TIMEOUT):
        self.base_url = f"{base_url.rstrip('/')}/{version}"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if token:
            self._session.headers.update({"Authorization": f"Bearer {token}"})

    @classmethod
    def from_environment(cls, device_code_callback: Optional[Callable[[dict], None]] = None,
                         **kwargs) -> "GraphClient":
        """Build a client from ENTRA_* environment variables."""
        token = os.getenv(ENV_ACCESS_TOKEN)
        if token:
            logger.info("Using access token from %s", ENV_ACCESS_TOKEN)
            return cls(token=token, **kwargs)

        tenant_id = os.getenv(ENV_TENANT_ID)
        client_id = os.getenv(ENV_CLIENT_ID)
        client_secret = os.getenv(ENV_CLIENT_SECRET)

        if not client_id:
            raise NotAuthenticatedError(
                f"No credentials configured. Set {ENV_ACCESS_TOKEN}, or {ENV_CLIENT_ID} "
                f"(with {ENV_TENANT_ID} and {ENV_CLIENT_SECRET} for app-only access)."
            )

        if client_secret:
            if not tenant_id:
                raise NotAuthenticatedError(
                    f"{ENV_TENANT_ID} is required when {ENV_CLIENT_SECRET} is set."
                )
            logger.info("Acquiring app-only token for client %s", client_id)
            token = acquire_client_credentials_token(tenant_id, client_id, client_secret)
        else:
            logger.info("Starting device code sign-in for client %s", client_id)
            token = acquire_device_code_token(
                client_id, tenant_id or DEFAULT_TENANT, callback=device_code_callback,
            )

        return cls(token=token, **kwargs)

    def url_for(self, path: str) -> str:
        """Resolve *path* against the versioned Graph root; absolute URLs pass through."""
        if path.startswith(("https://", "http://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def get(self, path: str) -> dict:
        """GET a Graph resource and return the decoded JSON body."""
        url = self.url_for(path)
        logger.debug("GET %s", url)
        try:
            resp = _get_with_retry(self._session, url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Request to {url.split('?')[0]} failed: {e}") from e

        _check_response(resp)
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON from {url.split('?')[0]}") from e

    def get_all(self, path: str) -> list[dict]:
        """GET a collection, following @odata.nextLink until exhausted."""
        items = []
        url = path
        while url:
            data = self.get(url)
            items.extend(data.get("value", []))
            url = data.get("@odata.nextLink")
        return items

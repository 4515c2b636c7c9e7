"""Configuration constants for the entra CLI.

Values that commonly vary between environments can be overridden through
environment variables; everything else is a plain module constant.
"""

import os

# ── Microsoft Graph ───────────────────────────────────────────────────────

GRAPH_BASE = os.getenv("ENTRA_GRAPH_BASE", "https://graph.microsoft.com").rstrip("/")
GRAPH_VERSION = "v1.0"

# ── Authentication ────────────────────────────────────────────────────────

LOGIN_AUTHORITY = "https://login.microsoftonline.com"
DEFAULT_TENANT = "organizations"

ENV_TENANT_ID = "ENTRA_TENANT_ID"
ENV_CLIENT_ID = "ENTRA_CLIENT_ID"
ENV_CLIENT_SECRET = "ENTRA_CLIENT_SECRET"
ENV_ACCESS_TOKEN = "ENTRA_ACCESS_TOKEN"

# Delegated (device code) sign-in only needs read access to applications
GRAPH_DELEGATED_SCOPES = ["https://graph.microsoft.com/Application.Read.All"]
GRAPH_APP_SCOPES = ["https://graph.microsoft.com/.default"]

# ── Transport ─────────────────────────────────────────────────────────────

DEFAULT_TIMEOUT = 30  # seconds
TRANSIENT_STATUS_CODES = (429, 500, 502, 503, 504)
MAX_RETRIES = 2
RETRY_DELAY = 3  # seconds, multiplied by attempt number

# ── Resource fan-out ──────────────────────────────────────────────────────

MAX_RESOURCE_WORKERS = int(os.getenv("ENTRA_MAX_WORKERS", "8"))

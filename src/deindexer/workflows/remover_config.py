"""Deindexer defaults (endpoints, timeouts, statuses, paths).

Centralizes static defaults so the workflow modules have no embedded magic
strings. Callers can inject their own RemoverConfig to override the runtime
knobs.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from .statuses import Status

# Endpoints
INSPECTION_ENDPOINT = "https://searchconsole.googleapis.com/v1/urlInspection/index:inspect"
PUBLISH_METADATA_ENDPOINT = "https://indexing.googleapis.com/v3/urlNotifications/metadata"
PUBLISH_ENDPOINT = "https://indexing.googleapis.com/v3/urlNotifications:publish"
OAUTH_TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"

# Headers
HDR_AUTHORIZATION = "Authorization"
HDR_CONTENT_TYPE = "Content-Type"

# Notification type sent with removal requests
URL_DELETED = "URL_DELETED"

# Status reported when a request never got an HTTP response.
TRANSPORT_FAILURE_STATUS = -1

# Reconciliation policy
CACHE_TIMEOUT = timedelta(days=14)
DELETABLE_STATUSES = frozenset({Status.SubmittedAndIndexed})

# Runtime defaults
DEFAULT_CONCURRENCY = 50
DEFAULT_CACHE_DIR = Path(".cache")
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BACKOFF_INITIAL = 1.0
DEFAULT_BACKOFF_MAX = 16.0
DEFAULT_RATE_LIMIT_RETRIES = 0
DEFAULT_RATE_LIMIT_WAIT = 10.0

# Credential env vars, first match wins
ACCESS_TOKEN_ENV_VARS = ("DEINDEXER_ACCESS_TOKEN", "GOOGLE_ACCESS_TOKEN")
CLIENT_ID_ENV = "DEINDEXER_CLIENT_ID"
CLIENT_SECRET_ENV = "DEINDEXER_CLIENT_SECRET"
REFRESH_TOKEN_ENV = "DEINDEXER_REFRESH_TOKEN"

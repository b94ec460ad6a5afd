"""Access token resolution for the Google APIs."""

from __future__ import annotations

import logging
import os
from typing import Optional

import requests

from .remover_config import (
    ACCESS_TOKEN_ENV_VARS,
    CLIENT_ID_ENV,
    CLIENT_SECRET_ENV,
    OAUTH_TOKEN_ENDPOINT,
    REFRESH_TOKEN_ENV,
)
from .remover_utils import env_present

logger = logging.getLogger(__name__)


def _refresh_access_token(client_id: str, client_secret: str, refresh_token: str, *, timeout: int = 30) -> Optional[str]:
    try:
        resp = requests.post(
            OAUTH_TOKEN_ENDPOINT,
            data={
                "client_id": client_id,
                "client_secret": client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
            timeout=timeout,
        )
        resp.raise_for_status()
        token = resp.json().get("access_token")
    except (requests.RequestException, ValueError) as exc:
        logger.error("OAuth token refresh failed: %s", exc)
        return None
    if not token:
        logger.error("OAuth token refresh returned no access_token")
        return None
    return str(token)


def credentials_configured() -> bool:
    """Return True when a token or a complete refresh triple is configured."""

    if env_present(*ACCESS_TOKEN_ENV_VARS):
        return True
    return all(os.getenv(name) for name in (CLIENT_ID_ENV, CLIENT_SECRET_ENV, REFRESH_TOKEN_ENV))


def get_access_token() -> Optional[str]:
    """Return a bearer token, or None when no credentials are usable."""

    token = env_present(*ACCESS_TOKEN_ENV_VARS)
    if token:
        return token.strip()
    client_id = os.getenv(CLIENT_ID_ENV)
    client_secret = os.getenv(CLIENT_SECRET_ENV)
    refresh_token = os.getenv(REFRESH_TOKEN_ENV)
    if client_id and client_secret and refresh_token:
        return _refresh_access_token(client_id, client_secret, refresh_token)
    return None


__all__ = ["credentials_configured", "get_access_token"]

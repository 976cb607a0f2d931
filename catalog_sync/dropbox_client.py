"""Dropbox access: OAuth refresh-token exchange and file downloads.

Access tokens are short-lived. The caller owns an AccessTokenCache and
passes it to every DropboxClient it creates, so consecutive sync runs reuse
a token until it is about to expire.
"""

import json
import random
import time
from typing import Any, Callable, Dict, Optional

import requests

from catalog_sync.config import (
    DEFAULT_TOKEN_LIFETIME,
    DROPBOX_DOWNLOAD_URL,
    DROPBOX_TOKEN_URL,
    MAX_RETRIES,
    MAX_RETRY_BACKOFF,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_BASE,
    RETRY_STATUS_CODES,
    TOKEN_EXPIRY_SAFETY,
    TOKEN_REFRESH_MARGIN,
    SyncSettings,
)
from catalog_sync.errors import ConfigurationError, UpstreamFailure
from catalog_sync.logging_config import get_logger

__all__ = [
    "AccessTokenCache",
    "DropboxClient",
    "create_session",
]

logger = get_logger("dropbox")


def create_session() -> requests.Session:
    """Create a requests Session for connection reuse across downloads."""
    session = requests.Session()
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


class AccessTokenCache:
    """A single reusable access token with its expiry.

    Args:
        clock: Returns the current time in seconds (``time.time`` by default)
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def expires_at(self) -> float:
        return self._expires_at

    def is_fresh(self) -> bool:
        """True while the cached token has more than the refresh margin left."""
        return self._token is not None and self._expires_at > self.clock() + TOKEN_REFRESH_MARGIN

    def store(self, token: str, expires_in: Optional[float] = None) -> None:
        lifetime = expires_in if expires_in is not None else DEFAULT_TOKEN_LIFETIME
        self._token = token
        self._expires_at = self.clock() + lifetime - TOKEN_EXPIRY_SAFETY

    def clear(self) -> None:
        self._token = None
        self._expires_at = 0.0


def _backoff(attempt: int) -> float:
    return min(RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF) + random.uniform(0, 1)


class DropboxClient:
    """Minimal Dropbox HTTP client for the spreadsheet exports."""

    def __init__(
        self,
        app_key: str,
        app_secret: str,
        refresh_token: str,
        token_cache: Optional[AccessTokenCache] = None,
        session: Optional[requests.Session] = None,
    ):
        self.app_key = app_key
        self.app_secret = app_secret
        self.refresh_token = refresh_token
        self.token_cache = token_cache if token_cache is not None else AccessTokenCache()
        self.session = session or create_session()

    @classmethod
    def from_settings(
        cls,
        settings: SyncSettings,
        token_cache: Optional[AccessTokenCache] = None,
        session: Optional[requests.Session] = None,
    ) -> "DropboxClient":
        missing = [
            name
            for name, value in (
                ("DROPBOX_APP_KEY", settings.dropbox_app_key),
                ("DROPBOX_APP_SECRET", settings.dropbox_app_secret),
                ("DROPBOX_REFRESH_TOKEN", settings.dropbox_refresh_token),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing Dropbox settings: {', '.join(missing)}")
        return cls(
            settings.dropbox_app_key,
            settings.dropbox_app_secret,
            settings.dropbox_refresh_token,
            token_cache=token_cache,
            session=session,
        )

    def _post(self, url: str, what: str, **kwargs: Any) -> requests.Response:
        """POST with exponential backoff on retryable statuses and network errors.

        Raises:
            UpstreamFailure: On a non-retryable error or once retries run out
        """
        last_exception: Optional[Exception] = None

        for attempt in range(MAX_RETRIES):
            try:
                resp = self.session.post(url, timeout=REQUEST_TIMEOUT, **kwargs)

                if resp.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES - 1:
                    backoff = _backoff(attempt)
                    logger.warning(
                        f"{what}: received {resp.status_code}, backing off {backoff:.1f}s "
                        f"(attempt {attempt + 1}/{MAX_RETRIES})"
                    )
                    time.sleep(backoff)
                    continue

                resp.raise_for_status()
                return resp

            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else "?"
                detail = e.response.text if e.response is not None else ""
                raise UpstreamFailure(f"{what} failed with HTTP {status}: {detail}") from e

            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                last_exception = e
                if attempt < MAX_RETRIES - 1:
                    backoff = _backoff(attempt)
                    logger.warning(
                        f"{what}: {type(e).__name__}, backing off {backoff:.1f}s "
                        f"(attempt {attempt + 1}/{MAX_RETRIES})"
                    )
                    time.sleep(backoff)
                    continue

            except requests.exceptions.RequestException as e:
                raise UpstreamFailure(f"{what} failed: {e}") from e

        raise UpstreamFailure(f"{what} failed after {MAX_RETRIES} attempts") from last_exception

    def refresh_access_token(self) -> Dict[str, Any]:
        """Exchange the refresh token for a new access token."""
        resp = self._post(
            DROPBOX_TOKEN_URL,
            "Dropbox token refresh",
            data={"grant_type": "refresh_token", "refresh_token": self.refresh_token},
            auth=(self.app_key, self.app_secret),
        )
        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamFailure("Dropbox token refresh returned invalid JSON") from e
        if not payload.get("access_token"):
            raise UpstreamFailure("Dropbox token refresh returned no access_token")
        return payload

    def get_access_token(self) -> str:
        """Cached access token, refreshed when close to expiry."""
        if self.token_cache.is_fresh():
            return self.token_cache.token

        payload = self.refresh_access_token()
        self.token_cache.store(payload["access_token"], payload.get("expires_in"))
        logger.debug("Refreshed Dropbox access token")
        return self.token_cache.token

    def download_file(self, path: str) -> bytes:
        """Download a file by its Dropbox path.

        Args:
            path: Dropbox path, e.g. "/exports/productos.xlsx"

        Returns:
            Raw file content
        """
        token = self.get_access_token()
        try:
            resp = self._post(
                DROPBOX_DOWNLOAD_URL,
                f"Dropbox download {path}",
                headers={
                    "Authorization": f"Bearer {token}",
                    "Dropbox-API-Arg": json.dumps({"path": path}),
                },
            )
        except UpstreamFailure:
            # A rejected token must not be reused by the next run
            self.token_cache.clear()
            raise

        logger.info(f"Downloaded {path} ({len(resp.content)} bytes)")
        return resp.content

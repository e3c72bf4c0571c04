"""
Google OAuth access tokens from a stored refresh token.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import pendulum
import requests
from rich.console import Console

from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

console = Console()


class GoogleAuthenticator:
    """
    Exchanges a stored OAuth refresh token for short-lived access tokens.

    Obtaining the refresh token itself (the consent flow) happens outside
    this application; the token is read from config or environment.
    Access tokens are cached on disk until shortly before they expire.
    """

    TOKEN_URL = "https://oauth2.googleapis.com/token"

    # Refresh this many seconds before the token really expires
    EXPIRY_MARGIN_SECONDS = 60

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        cache_file: Path | None = None
    ):
        """
        Initialize the authenticator.

        Args:
            client_id: Google OAuth client ID
            client_secret: Google OAuth client secret
            refresh_token: Refresh token granted for the calendar scope
            cache_file: Optional path to token cache file
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.cache_file = cache_file or Path.home() / ".meetingslots_token_cache.json"

    def get_access_token(self, force_refresh: bool = False) -> str:
        """
        Get a valid access token, using cache or refreshing.

        Args:
            force_refresh: Ignore the cached token

        Returns:
            Access token string

        Raises:
            AuthenticationError: If the token endpoint rejects the refresh
        """
        if not force_refresh:
            cached = self._load_cache()
            if cached is not None:
                return cached

        return self._refresh_access_token()

    def _refresh_access_token(self) -> str:
        if not (self.client_id and self.client_secret and self.refresh_token):
            raise AuthenticationError(
                "Google OAuth credentials are incomplete. Set client_id, client_secret and "
                "refresh_token in config.yaml or GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and "
                "GOOGLE_REFRESH_TOKEN in the environment."
            )

        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
            "grant_type": "refresh_token",
        }

        try:
            response = requests.post(self.TOKEN_URL, data=payload, timeout=30)
        except requests.exceptions.RequestException as e:
            raise AuthenticationError(f"Could not reach Google token endpoint: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code != 200 or "access_token" not in data:
            error = data.get("error_description") or data.get("error") or f"HTTP {response.status_code}"
            raise AuthenticationError(f"Token refresh failed: {error}")

        expires_in = int(data.get("expires_in", 3600))
        self._save_cache(data["access_token"], pendulum.now("UTC").add(seconds=expires_in))

        return data["access_token"]

    def _load_cache(self) -> Optional[str]:
        """Return the cached access token if it is still valid."""
        if not self.cache_file.exists():
            return None

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                data: Dict[str, Any] = json.load(f)
            expires_at = pendulum.parse(data["expires_at"])
            token = data["access_token"]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not load token cache file %s: %s", self.cache_file, exc)
            return None

        if pendulum.now("UTC").add(seconds=self.EXPIRY_MARGIN_SECONDS) >= expires_at:
            return None

        return token

    def _save_cache(self, access_token: str, expires_at: pendulum.DateTime) -> None:
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_file, "w", encoding="utf-8") as f:
                json.dump(
                    {"access_token": access_token, "expires_at": expires_at.to_iso8601_string()},
                    f
                )
            self.cache_file.chmod(0o600)
        except OSError as exc:
            logger.warning("Could not save token cache to %s: %s", self.cache_file, exc)

    def clear_cache(self) -> None:
        """Clear the token cache (force a refresh next time)."""
        if self.cache_file.exists():
            self.cache_file.unlink()
        console.print("[green]Token cache cleared. A new access token will be requested.[/green]")

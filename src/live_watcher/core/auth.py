"""OAuth 2.0 authentication for read-only Gmail access, with token caching."""

from __future__ import annotations

import logging
from pathlib import Path

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import Resource, build

from live_watcher.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# The watcher never mutates the mailbox. Changing scopes invalidates the cached token.
SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]


def authenticate(credentials_path: Path, token_path: Path) -> Credentials:
    """Return valid credentials, preferring the cached token.

    Order of attempts: cached token, refresh of an expired cached token,
    then the interactive consent flow driven by the client secret file.

    Raises:
        AuthenticationError: If no valid credentials can be obtained.
    """
    creds = _load_cached_token(token_path)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except Exception as e:
            logger.warning("Token refresh failed, starting consent flow: %s", e)
        else:
            _save_token(creds, token_path)
            logger.debug("Refreshed cached token at %s", token_path)
            return creds

    return _run_consent_flow(credentials_path, token_path)


def build_gmail_service(creds: Credentials) -> Resource:
    """Build a Gmail API v1 service resource from credentials."""
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


def _load_cached_token(token_path: Path) -> Credentials | None:
    if not token_path.exists():
        return None
    try:
        return Credentials.from_authorized_user_file(str(token_path), SCOPES)
    except Exception as e:
        logger.warning("Ignoring unreadable token cache %s: %s", token_path, e)
        return None


def _run_consent_flow(credentials_path: Path, token_path: Path) -> Credentials:
    if not credentials_path.exists():
        raise AuthenticationError(
            f"Client secret file not found: {credentials_path}. "
            "Create an OAuth client in Google Cloud Console and download it."
        )

    try:
        flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), SCOPES)
        creds = flow.run_local_server(port=0)
    except Exception as e:
        raise AuthenticationError(f"OAuth consent flow failed: {e}") from e

    _save_token(creds, token_path)
    logger.info("Authorization granted, token cached at %s", token_path)
    return creds


def _save_token(creds: Credentials, token_path: Path) -> None:
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())

from __future__ import annotations

from typing import Any, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiError

from drivefs.drive.config import DriveAccount, DriveEnvironment
from drivefs.logging.ndjson import log_event


class DriveError(RuntimeError):
    pass


SCOPES = ["https://www.googleapis.com/auth/drive"]


def _oauth_credentials(acct: DriveAccount) -> Credentials:
    if acct.token_path is None or not acct.token_path.exists():
        raise DriveError(f"Drive token file not found: {acct.token_path}")

    creds = Credentials.from_authorized_user_file(str(acct.token_path), scopes=SCOPES)
    if creds.valid:
        return creds
    if not (creds.expired and creds.refresh_token):
        raise DriveError("Drive credentials are invalid/expired; re-run drive auth to create a token.")
    try:
        creds.refresh(Request())
    except GoogleAuthError as e:
        raise DriveError(f"Failed to refresh Drive token: {e}") from e
    try:
        acct.token_path.parent.mkdir(parents=True, exist_ok=True)
        acct.token_path.write_text(creds.to_json(), encoding="utf-8")
    except OSError:
        # best-effort; token still usable in-memory
        pass
    return creds


def build_drive_credentials(acct: DriveAccount):
    if not acct.credentials_path.exists():
        raise DriveError(f"Drive credentials file not found: {acct.credentials_path}")
    if acct.kind == "service_account":
        try:
            return service_account.Credentials.from_service_account_file(
                str(acct.credentials_path), scopes=SCOPES
            )
        except (ValueError, GoogleAuthError) as e:
            raise DriveError(f"Invalid service account key {acct.credentials_path}: {e}") from e
    return _oauth_credentials(acct)


def build_drive_service(acct: DriveAccount, env: DriveEnvironment):
    creds = build_drive_credentials(acct)
    http = AuthorizedHttp(creds, http=httplib2.Http(timeout=env.read_timeout_seconds))
    service = build("drive", "v3", http=http, cache_discovery=False)
    log_event(
        level="info",
        event="drive.service",
        data={"account": acct.name, "kind": acct.kind, "timeout": env.read_timeout_seconds},
    )
    return service


def drive_list_drives(
    service,
    *,
    env: DriveEnvironment,
    page_token: Optional[str] = None,
) -> dict[str, Any]:
    """
    Fetch one page of shared drives visible to the account.
    Returns the raw `drives.list` response ({"drives": [...], "nextPageToken": ...}).
    """
    kwargs: dict[str, Any] = {
        "pageSize": env.page_size,
        "fields": "nextPageToken, drives(id, name)",
    }
    if page_token:
        kwargs["pageToken"] = page_token
    try:
        resp = service.drives().list(**kwargs).execute(num_retries=env.effective_retries)
    except (GoogleApiError, httplib2.HttpLib2Error, OSError) as e:
        raise DriveError(f"Failed to list shared drives: {e}") from e
    if not isinstance(resp, dict):
        raise DriveError("Unexpected drives.list response")
    return resp

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional


class DriveConfigError(RuntimeError):
    pass


AccountKind = Literal["oauth", "service_account"]
_KINDS = ("oauth", "service_account")


@dataclass(frozen=True)
class DriveAccount:
    name: str
    kind: AccountKind
    credentials_path: Path
    # Authorized-user token written by scripts/drive_auth.py; unused for service accounts.
    token_path: Optional[Path] = None


@dataclass(frozen=True)
class DriveEnvironment:
    """
    Transport settings handed to the Drive client. Retries use googleapiclient's
    built-in exponential backoff.
    """

    read_timeout_seconds: float = 20.0
    exponential_backoff: bool = True
    num_retries: int = 3
    page_size: int = 100

    @property
    def effective_retries(self) -> int:
        return self.num_retries if self.exponential_backoff else 0


def _backend_dir() -> Path:
    # backend/drivefs/drive/config.py -> backend/
    return Path(__file__).resolve().parents[2]


def _resolve_path(p: str) -> Path:
    path = Path(p).expanduser()
    if not path.is_absolute():
        path = (_backend_dir() / path).resolve()
    else:
        path = path.resolve()
    return path


def _make_account(name: str, kind: str, cred: str, tok: str, *, where: str) -> DriveAccount:
    if kind not in _KINDS:
        raise DriveConfigError(f"{where}.kind must be one of {', '.join(_KINDS)} (got {kind!r})")
    if not cred:
        raise DriveConfigError(f"{where} requires credentialsPath")
    if kind == "oauth" and not tok:
        raise DriveConfigError(f"{where} requires tokenPath for oauth accounts")
    return DriveAccount(
        name=name,
        kind=kind,  # type: ignore[arg-type]
        credentials_path=_resolve_path(cred),
        token_path=_resolve_path(tok) if tok else None,
    )


def load_drive_accounts() -> dict[str, DriveAccount]:
    """
    Load Drive account configs from environment.

    Supported env vars:
    - DRIVEFS_ACCOUNTS: JSON list of objects:
        [{"name":"work","kind":"oauth","credentialsPath":"...","tokenPath":"..."},
         {"name":"bot","kind":"service_account","credentialsPath":"..."}]
    - OR single-account fallback:
        DRIVEFS_ACCOUNT_NAME (default "drive")
        DRIVEFS_ACCOUNT_KIND (default "oauth")
        DRIVEFS_CREDENTIALS_PATH
        DRIVEFS_TOKEN_PATH
    """
    raw = os.environ.get("DRIVEFS_ACCOUNTS")
    if raw:
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise DriveConfigError(f"DRIVEFS_ACCOUNTS is not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise DriveConfigError("DRIVEFS_ACCOUNTS must be a JSON list")
        out: dict[str, DriveAccount] = {}
        for idx, item in enumerate(data):
            where = f"DRIVEFS_ACCOUNTS[{idx}]"
            if not isinstance(item, dict):
                raise DriveConfigError(f"{where} must be an object")
            name = str(item.get("name") or "").strip()
            if not name:
                raise DriveConfigError(f"{where}.name is required")
            if name in out:
                raise DriveConfigError(f"{where}.name duplicates account {name!r}")
            kind = str(item.get("kind") or "oauth").strip()
            cred = str(item.get("credentialsPath") or "").strip()
            tok = str(item.get("tokenPath") or "").strip()
            out[name] = _make_account(name, kind, cred, tok, where=where)
        return out

    # single-account fallback
    name = os.environ.get("DRIVEFS_ACCOUNT_NAME", "drive").strip() or "drive"
    kind = os.environ.get("DRIVEFS_ACCOUNT_KIND", "oauth").strip() or "oauth"
    cred = (os.environ.get("DRIVEFS_CREDENTIALS_PATH") or "").strip()
    tok = (os.environ.get("DRIVEFS_TOKEN_PATH") or "").strip()
    if not cred:
        return {}
    acct = _make_account(name, kind, cred, tok, where="DRIVEFS")
    return {acct.name: acct}


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise DriveConfigError(f"{key} must be a number: {raw!r}") from e


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise DriveConfigError(f"{key} must be an integer: {raw!r}") from e


def _env_bool(key: str, default: bool) -> bool:
    raw = (os.environ.get(key) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def load_drive_environment() -> DriveEnvironment:
    env = DriveEnvironment(
        read_timeout_seconds=_env_float("DRIVEFS_READ_TIMEOUT_SECONDS", 20.0),
        exponential_backoff=_env_bool("DRIVEFS_EXPONENTIAL_BACKOFF", True),
        num_retries=_env_int("DRIVEFS_NUM_RETRIES", 3),
        page_size=_env_int("DRIVEFS_PAGE_SIZE", 100),
    )
    if env.num_retries < 0:
        raise DriveConfigError("DRIVEFS_NUM_RETRIES must be >= 0")
    if not 1 <= env.page_size <= 100:
        # drives.list caps pageSize at 100
        raise DriveConfigError("DRIVEFS_PAGE_SIZE must be between 1 and 100")
    return env

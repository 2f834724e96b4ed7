from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import pytest

from drivefs.drive.config import DriveAccount


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DRIVEFS_LOG_DIR", str(tmp_path / "logs"))
    for key in (
        "DRIVEFS_ACCOUNTS",
        "DRIVEFS_ACCOUNT_NAME",
        "DRIVEFS_ACCOUNT_KIND",
        "DRIVEFS_CREDENTIALS_PATH",
        "DRIVEFS_TOKEN_PATH",
        "DRIVEFS_READ_TIMEOUT_SECONDS",
        "DRIVEFS_EXPONENTIAL_BACKOFF",
        "DRIVEFS_NUM_RETRIES",
        "DRIVEFS_PAGE_SIZE",
    ):
        monkeypatch.delenv(key, raising=False)


class FakeRequest:
    def __init__(self, drives: "FakeDrives", resp: Any) -> None:
        self._drives = drives
        self._resp = resp

    def execute(self, num_retries: int = 0) -> Any:
        self._drives.retries.append(num_retries)
        if isinstance(self._resp, Exception):
            raise self._resp
        return self._resp


class FakeDrives:
    def __init__(self, pages: dict[Optional[str], Any]) -> None:
        self._pages = pages
        self.calls: list[dict[str, Any]] = []
        self.retries: list[int] = []

    def list(self, **kwargs: Any) -> FakeRequest:
        self.calls.append(kwargs)
        return FakeRequest(self, self._pages[kwargs.get("pageToken")])


class FakeDriveService:
    """
    Minimal stand-in for the discovery client: only drives().list().execute().
    """

    def __init__(self, pages: dict[Optional[str], Any]) -> None:
        self.drives_resource = FakeDrives(pages)
        self.closed = False

    def drives(self) -> FakeDrives:
        return self.drives_resource

    def close(self) -> None:
        self.closed = True


SHARED_DRIVE_PAGES: dict[Optional[str], Any] = {
    None: {"drives": [{"id": "0AteamDrive", "name": "Team"}], "nextPageToken": "t1"},
    "t1": {"drives": [{"id": "0AopsDrive", "name": "Ops"}, {"name": "missing id"}]},
}


@pytest.fixture
def fake_service() -> FakeDriveService:
    return FakeDriveService(SHARED_DRIVE_PAGES)


@pytest.fixture
def work_account(tmp_path: Path) -> DriveAccount:
    return DriveAccount(
        name="work",
        kind="oauth",
        credentials_path=tmp_path / "client.json",
        token_path=tmp_path / "token.json",
    )

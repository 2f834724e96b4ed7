from __future__ import annotations

import re
import threading
from typing import Any, Callable, Iterator, Optional

from drivefs.drive.client import DriveError, build_drive_service, drive_list_drives
from drivefs.drive.config import DriveAccount, DriveEnvironment, load_drive_accounts, load_drive_environment
from drivefs.fs.errors import InvalidPatternError, UnknownAccountError
from drivefs.fs.glob import compile_glob
from drivefs.fs.paginated import Page, PaginatedIterable
from drivefs.fs.path import (
    SCHEME,
    SEPARATOR,
    DrivePath,
    IdentifierPath,
    NamedPath,
    as_drive_path,
    parse_path,
)
from drivefs.fs.store import MY_DRIVE, FileStore, shared_drive_store
from drivefs.logging.ndjson import log_event

ServiceFactory = Callable[[DriveAccount, DriveEnvironment], Any]
PathMatcher = Callable[[object], bool]


class DriveFileSystem:
    """
    Drive namespace of one account.

    Hands out paths bound to the account, enumerates its file stores (My Drive and
    shared drives) and builds path matchers. The Google API client is built on
    first use.
    """

    separator = SEPARATOR
    scheme = SCHEME

    def __init__(
        self,
        account: Optional[DriveAccount] = None,
        *,
        env: Optional[DriveEnvironment] = None,
        service: Any = None,
        service_factory: ServiceFactory = build_drive_service,
    ) -> None:
        self._account = account
        self._env = env or DriveEnvironment()
        self._service = service
        self._service_factory = service_factory
        # Google API client objects are not thread-safe; serialize usage.
        self._lock = threading.Lock()
        self._open = True

    @property
    def account_name(self) -> Optional[str]:
        return self._account.name if self._account else None

    @property
    def environment(self) -> DriveEnvironment:
        return self._env

    def _api(self) -> Any:
        if self._service is None:
            if self._account is None:
                raise DriveError("No Drive account configured")
            self._service = self._service_factory(self._account, self._env)
        return self._service

    def get_path(self, root_id: Optional[str] = None, *segments: str) -> NamedPath:
        return NamedPath(root_id, segments, self.account_name)

    def get_identifier_path(self, file_id: str) -> IdentifierPath:
        return IdentifierPath(file_id, account_id=self.account_name)

    def parse_path(self, text: str) -> DrivePath:
        path = parse_path(text)
        if path.account_id is None and self.account_name:
            return path.with_account(self.account_name)
        return path

    def _fetch_store_page(self, page_token: Optional[str]) -> Optional[Page[FileStore]]:
        with self._lock:
            resp = drive_list_drives(self._api(), env=self._env, page_token=page_token)
        stores: list[FileStore] = []
        for d in resp.get("drives") or []:
            if not isinstance(d, dict):
                continue
            store = shared_drive_store(d)
            if store is not None:
                stores.append(store)
        next_token = str(resp.get("nextPageToken") or "") or None
        log_event(
            level="debug",
            event="drive.page",
            account=self.account_name,
            data={"stores": len(stores), "pageToken": bool(page_token), "more": next_token is not None},
        )
        return Page(stores, next_token)

    def file_stores(self) -> PaginatedIterable[FileStore]:
        return PaginatedIterable(self._fetch_store_page, initial=(MY_DRIVE,))

    def root_directories(self) -> Iterator[NamedPath]:
        for store in self.file_stores():
            yield NamedPath(store.root_id, (), self.account_name)

    def path_matcher(self, syntax_and_pattern: str) -> PathMatcher:
        """
        Build a predicate from "glob:<pattern>" or "regex:<pattern>".
        Paths are matched against their URI without the account query.
        """
        syntax, sep, pattern = syntax_and_pattern.partition(":")
        if not sep:
            raise InvalidPatternError(f"Expected 'syntax:pattern', got {syntax_and_pattern!r}")
        if syntax == "glob":
            regex = compile_glob(pattern)
        elif syntax == "regex":
            try:
                regex = re.compile(pattern)
            except re.error as e:
                raise InvalidPatternError(f"Invalid regex {pattern!r}: {e}") from e
        else:
            raise InvalidPatternError(f"Unsupported pattern syntax: {syntax!r}")

        def matches(path: object) -> bool:
            return regex.fullmatch(as_drive_path(path).to_uri(include_account=False)) is not None

        return matches

    def is_read_only(self) -> bool:
        return False

    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        with self._lock:
            svc, self._service = self._service, None
            self._open = False
        close = getattr(svc, "close", None)
        if callable(close):
            close()


class FileSystemRegistry:
    """
    One DriveFileSystem per configured account, created on demand.
    """

    def __init__(
        self,
        accounts: Optional[dict[str, DriveAccount]] = None,
        *,
        env: Optional[DriveEnvironment] = None,
        service_factory: ServiceFactory = build_drive_service,
    ) -> None:
        self._accounts = accounts
        self._env = env
        self._service_factory = service_factory
        self._filesystems: dict[str, DriveFileSystem] = {}
        self._lock = threading.Lock()

    def accounts(self) -> dict[str, DriveAccount]:
        if self._accounts is None:
            self._accounts = load_drive_accounts()
        return self._accounts

    def _environment(self) -> DriveEnvironment:
        if self._env is None:
            self._env = load_drive_environment()
        return self._env

    def default_account(self) -> str:
        accts = self.accounts()
        if len(accts) == 1:
            return next(iter(accts))
        if not accts:
            raise UnknownAccountError("No Drive accounts configured")
        raise UnknownAccountError("Multiple Drive accounts configured; an account id is required")

    def for_account(self, name: Optional[str] = None) -> DriveFileSystem:
        name = name or self.default_account()
        with self._lock:
            fs = self._filesystems.get(name)
            if fs is not None and fs.is_open():
                return fs
            acct = self.accounts().get(name)
            if acct is None:
                raise UnknownAccountError(f"Unknown Drive account: {name}")
            fs = DriveFileSystem(acct, env=self._environment(), service_factory=self._service_factory)
            self._filesystems[name] = fs
        log_event(level="info", event="fs.open", account=name, data={"kind": acct.kind})
        return fs

    def for_path(self, path: object) -> DriveFileSystem:
        return self.for_account(as_drive_path(path).account_id)

    def close(self) -> None:
        with self._lock:
            filesystems = list(self._filesystems.values())
            self._filesystems.clear()
        for fs in filesystems:
            fs.close()

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

from drivefs.fs.path import DEFAULT_ROOT

StoreKind = Literal["user", "shared"]


@dataclass(frozen=True)
class FileStore:
    """
    A Drive volume: the account's My Drive or one shared drive.
    """

    name: str
    root_id: str
    kind: StoreKind

    def is_read_only(self) -> bool:
        # Write access depends on the OAuth scope, which is not tracked per store.
        return False


MY_DRIVE = FileStore(name="My Drive", root_id=DEFAULT_ROOT, kind="user")


def shared_drive_store(drive: dict[str, Any]) -> Optional[FileStore]:
    """
    Build a store from a `drives.list` resource; entries without an id are skipped.
    """
    drive_id = str(drive.get("id") or "").strip()
    if not drive_id:
        return None
    name = str(drive.get("name") or "").strip() or drive_id
    return FileStore(name=name, root_id=drive_id, kind="shared")

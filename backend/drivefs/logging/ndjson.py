from __future__ import annotations

import json
import os
import threading
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

_lock = threading.Lock()

_PREFIX = "drivefs"


def _backend_dir() -> Path:
    # backend/drivefs/logging/ndjson.py -> backend/
    return Path(__file__).resolve().parents[2]


def log_dir() -> Path:
    p = os.environ.get("DRIVEFS_LOG_DIR")
    if p:
        return Path(p)
    return _backend_dir() / "data" / "logs"


def _today_prefix(ts: Optional[float] = None) -> str:
    dt = datetime.fromtimestamp(ts or time.time())
    return dt.strftime(f"{_PREFIX}-%Y-%m-%d")


def _max_bytes() -> int:
    try:
        return int(os.environ.get("DRIVEFS_LOG_MAX_BYTES", str(20 * 1024 * 1024)))
    except ValueError:
        return 20 * 1024 * 1024


def _retention_days() -> int:
    try:
        return int(os.environ.get("DRIVEFS_LOG_RETENTION_DAYS", "7"))
    except ValueError:
        return 7


def _truncate(v: Any, *, max_len: int = 400) -> Any:
    if v is None or isinstance(v, (int, float, bool)):
        return v
    if isinstance(v, str):
        if len(v) <= max_len:
            return v
        return v[:max_len] + f"...(+{len(v) - max_len} chars)"
    if isinstance(v, dict):
        out: dict[str, Any] = {}
        for k, vv in list(v.items())[:50]:
            out[str(k)] = _truncate(vv, max_len=max_len)
        if len(v) > 50:
            out["_truncated_keys"] = len(v) - 50
        return out
    if isinstance(v, (list, tuple)):
        items = [_truncate(x, max_len=max_len) for x in v[:50]]
        if len(v) > 50:
            items.append({"_truncated_items": len(v) - 50})
        return items
    # paths and other values log as their string form
    return _truncate(str(v), max_len=max_len)


def _pick_log_file(*, ts: Optional[float] = None) -> Path:
    d = log_dir()
    d.mkdir(parents=True, exist_ok=True)
    prefix = _today_prefix(ts)
    base = d / f"{prefix}.ndjson"
    max_b = _max_bytes()

    if not base.exists() or base.stat().st_size < max_b:
        return base

    # Size exceeded; pick next suffix.
    for i in range(1, 1000):
        p = d / f"{prefix}.{i}.ndjson"
        if not p.exists() or p.stat().st_size < max_b:
            return p
    return base


def _prune_old_files() -> None:
    d = log_dir()
    if not d.exists():
        return
    cutoff = datetime.now() - timedelta(days=_retention_days())
    for p in d.glob(f"{_PREFIX}-*.ndjson"):
        try:
            if datetime.fromtimestamp(p.stat().st_mtime) < cutoff:
                p.unlink(missing_ok=True)
        except OSError:
            continue


def init_logging() -> None:
    """
    Best-effort init: ensure log dir exists and prune old files.
    """
    with _lock:
        try:
            log_dir().mkdir(parents=True, exist_ok=True)
            _prune_old_files()
        except OSError:
            pass


def log_event(
    *,
    level: str,
    event: str,
    data: Optional[dict[str, Any]] = None,
    account: Optional[str] = None,
    requestId: Optional[str] = None,
) -> None:
    """
    Append a single structured NDJSON record.
    Never include credentials or tokens; callers pass ids and counts.
    """
    rec: dict[str, Any] = {
        "ts": int(time.time() * 1000),
        "level": level,
        "event": event,
    }
    if account:
        rec["account"] = account
    if requestId:
        rec["requestId"] = requestId
    if data:
        rec["data"] = _truncate(data)

    line = json.dumps(rec, ensure_ascii=False)
    with _lock:
        try:
            p = _pick_log_file()
            with open(p, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            # Best-effort: never crash the caller due to logging.
            pass

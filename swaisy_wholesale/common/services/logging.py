import json
import os
import sys
from datetime import datetime, timezone

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


def _threshold() -> int:
    return _LEVELS.get(os.getenv("LOG_LEVEL", "INFO").strip().lower(), 20)


def log_event(level: str, event: str, **fields) -> None:
    """Write one JSON line describing ``event`` to stdout."""
    lvl = level.lower()
    if _LEVELS.get(lvl, 20) < _threshold():
        return
    payload = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "level": lvl,
        "event": event,
    }
    payload.update(fields or {})
    try:
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
    except (OSError, ValueError):
        # best-effort logging
        pass

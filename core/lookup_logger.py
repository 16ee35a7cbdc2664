"""Structured JSONL log of lookup attempts.

One ``LookupRecord`` is appended per lookup, success or failure, so failed
geocodes and fetches leave a diagnostic trail even though the UI keeps the
previous values. API keys are scrubbed from every string before it reaches
disk, and files rotate into numbered backups once they exceed ``max_bytes``.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, IO, Iterable, Optional, Pattern

_API_KEY_PATTERN: Pattern[str] = re.compile(r"(appid=)[^&\s\"']+", re.IGNORECASE)
_REDACTED = "[REDACTED]"


def _utc_now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def redact_secrets(value: str, secrets: Iterable[str] = ()) -> str:
    """Mask ``appid=`` query values and any literal secret in ``value``."""

    sanitized = _API_KEY_PATTERN.sub(r"\1" + _REDACTED, value)
    for secret in secrets:
        if secret:
            sanitized = sanitized.replace(secret, _REDACTED)
    return sanitized


class ApiKeyRedactionFilter(logging.Filter):
    """Logging filter that applies ``redact_secrets`` to rendered messages."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self._secrets = tuple(secret for secret in secrets if secret)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message, self._secrets)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


@dataclass
class LookupRecord:
    """Schema of one line in the lookup log."""

    timestamp: str
    query: str
    status: str
    sequence: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    min_temp: float | None = None
    max_temp: float | None = None
    error: str | None = None
    status_code: int | None = None
    latency_ms: int | None = None

    @classmethod
    def new(
        cls,
        *,
        query: str,
        status: str,
        sequence: int | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        min_temp: float | None = None,
        max_temp: float | None = None,
        error: str | None = None,
        status_code: int | None = None,
        latency_ms: int | None = None,
    ) -> "LookupRecord":
        return cls(
            timestamp=_utc_now(),
            query=query,
            status=status,
            sequence=sequence,
            latitude=latitude,
            longitude=longitude,
            min_temp=min_temp,
            max_temp=max_temp,
            error=error,
            status_code=status_code,
            latency_ms=latency_ms,
        )


class LookupLogger:
    """Append-only JSONL writer with secret redaction and size rotation.

    WHAT: persists one ``LookupRecord`` per lookup to ``log_path``.
    WHY: the display keeps its previous values on failure, so the log is the
    only place a failed geocode or fetch is recorded with its status code and
    latency.
    HOW: every string field passes through ``redact_secrets`` before it is
    serialized; when the next line would push the file past ``max_bytes`` the
    file moves to ``.1`` and older backups shift up to ``backup_count``. The
    web API calls this from worker threads, so rotation and append happen
    under one lock.
    """

    def __init__(
        self,
        *,
        log_path: Path,
        enabled: bool = True,
        secrets: Iterable[str] = (),
        max_bytes: int = 0,
        backup_count: int = 0,
    ) -> None:
        self._log_path = log_path
        self._enabled = enabled
        self._secrets = tuple(secret for secret in secrets if secret)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def log_path(self) -> Path:
        return self._log_path

    def log_lookup(self, record: LookupRecord) -> None:
        if not self._enabled:
            return
        self._append_json_line(self._log_path, asdict(record))

    def _append_json_line(self, path: Path, payload: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        prepared = {key: self._scrub_value(value) for key, value in payload.items()}
        line = json.dumps(prepared, ensure_ascii=False)
        with self._lock:
            self._rotate_if_needed(path, len(line.encode("utf-8")) + 1)
            with self._open_file(path) as handle:
                handle.write(line)
                handle.write("\n")

    @staticmethod
    def _open_file(path: Path) -> IO[str]:
        return path.open("a", encoding="utf-8")

    def _scrub_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return redact_secrets(value, self._secrets)
        return value

    def _rotate_if_needed(self, path: Path, incoming_bytes: int) -> None:
        """Move ``path`` to ``path.1`` (shifting older backups) when full."""

        if self._max_bytes <= 0:
            return
        if not path.exists():
            return

        current_size = path.stat().st_size
        if current_size + incoming_bytes <= self._max_bytes:
            return

        if self._backup_count <= 0:
            path.unlink()
            return

        for index in range(self._backup_count - 1, 0, -1):
            src = Path(f"{path}.{index}")
            dst = Path(f"{path}.{index + 1}")
            if src.exists():
                src.replace(dst)

        rotated = Path(f"{path}.1")
        if rotated.exists():
            rotated.unlink()
        path.replace(rotated)


def read_lookup_log(path: Path, limit: Optional[int] = None) -> list[Dict[str, Any]]:
    """Return decoded records from ``path`` (newest last), skipping bad lines."""

    if not path.exists():
        return []
    rows: list[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError:
                continue
    if limit is not None:
        return rows[-limit:] if limit > 0 else []
    return rows


__all__ = [
    "ApiKeyRedactionFilter",
    "LookupLogger",
    "LookupRecord",
    "read_lookup_log",
    "redact_secrets",
]

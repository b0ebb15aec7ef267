"""Write-ahead log of table mutations, rotated into time-stamped files."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import IO

ROTATION_INTERVAL = 600
LOG_RETENTION = 3600 * 24 * 7
LAST_ID_FILE_NAME = "last_id.txt"
LOG_SUFFIX = ".log"

logger = logging.getLogger(__name__)


class LogEntryType(IntEnum):
    """Kind of mutation recorded in a log entry."""

    INSERT = 1
    DELETE = 2


@dataclass(frozen=True)
class LogEntry:
    """One line of the log: its global id, its kind and its payload."""

    global_id: int
    entry_type: LogEntryType
    content: str


def _log_sort_key(path: Path) -> tuple[int, str]:
    stem = path.stem
    return (int(stem), path.name) if stem.isdigit() else (-1, path.name)


class WriteAheadLog:
    """Append-only log kept under ``<base_path>/<table_id>/wal/``.

    Each entry is one line ``<id> <type> <content>``. The highest id handed
    out is stored in ``last_id.txt`` when the log is closed or replayed.
    """

    def __init__(
        self,
        base_path: str | os.PathLike[str],
        table_id: int,
        *,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.logs_folder = Path(base_path) / str(table_id) / "wal"
        self.enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()
        self._file: IO[str] | None = None
        self._counter = 0
        self._last_rotation = clock()

        id_path = self.logs_folder / LAST_ID_FILE_NAME
        if id_path.is_file():
            text = id_path.read_text(encoding="utf-8").strip()
            if text:
                self._counter = int(text.split()[0])
        self.logs_folder.mkdir(parents=True, exist_ok=True)
        self._rotate_file()

    @property
    def last_id(self) -> int:
        """The highest entry id handed out so far."""
        return self._counter

    def write_entry(self, entry_type: LogEntryType, entry: str) -> int:
        """Append an entry and return its id; when disabled, return the current id."""
        with self._lock:
            if not self.enabled:
                return self._counter
            if self._clock() - self._last_rotation > ROTATION_INTERVAL:
                self._rotate_file()
            if self._file is None:
                raise ValueError("write-ahead log is closed")
            self._counter += 1
            self._file.write(f"{self._counter} {int(entry_type)} {entry}\n")
            self._file.flush()
            return self._counter

    def replay(self, consumed_id: int, apply: Callable[[LogEntry], None]) -> None:
        """Hand every entry newer than ``consumed_id`` to ``apply``, oldest first.

        Files whose entries were all consumed already are removed, except the
        newest one.
        """
        files = self._sorted_log_files()
        for position, path in enumerate(files):
            updated = False
            with path.open(encoding="utf-8") as fh:
                for raw in fh:
                    line = raw.rstrip("\n")
                    if not line:
                        continue
                    parts = line.split(" ", 2)
                    global_id = int(parts[0])
                    with self._lock:
                        if self._counter < global_id:
                            self._counter = global_id
                    if global_id <= consumed_id:
                        continue
                    updated = True
                    try:
                        entry_type = LogEntryType(int(parts[1]))
                    except (IndexError, ValueError):
                        continue
                    content = parts[2] if len(parts) > 2 else ""
                    try:
                        apply(LogEntry(global_id, entry_type, content))
                    except Exception as exc:  # a bad entry must not stop the replay
                        logger.warning("Fail to apply wal entry: %s", exc)
            if not updated and position < len(files) - 1:
                path.unlink(missing_ok=True)
        self._save_last_id()

    def clean_up_old_files(self, now: float | None = None) -> None:
        """Remove log files older than the retention period."""
        now_seconds = int(self._clock() if now is None else now)
        for path in self._sorted_log_files():
            if not path.stem.isdigit():
                continue
            if now_seconds - int(path.stem) > LOG_RETENTION:
                path.unlink(missing_ok=True)
            else:
                break

    def close(self) -> None:
        """Close the current file and store the last id."""
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
        self._save_last_id()

    def __enter__(self) -> WriteAheadLog:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _save_last_id(self) -> None:
        self.logs_folder.mkdir(parents=True, exist_ok=True)
        (self.logs_folder / LAST_ID_FILE_NAME).write_text(
            str(self._counter), encoding="utf-8"
        )

    def _sorted_log_files(self) -> list[Path]:
        if not self.logs_folder.is_dir():
            logger.info("Directory %s does not exist or is not a directory.", self.logs_folder)
            return []
        return sorted(
            (p for p in self.logs_folder.iterdir() if p.suffix == LOG_SUFFIX),
            key=_log_sort_key,
        )

    def _rotate_file(self) -> None:
        if self._file is not None:
            self._file.close()
        now = self._clock()
        path = self.logs_folder / f"{int(now)}{LOG_SUFFIX}"
        self._file = path.open("a", encoding="utf-8")
        self._last_rotation = now
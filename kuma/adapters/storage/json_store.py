"""Append-only JSON-lines storage with a record cap."""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List


class JsonLineStorage:
    """One ``<key>.jsonl`` file per key under ``storage_dir``.

    When a file grows past ``max_records`` the oldest records are dropped and
    the remainder is rewritten atomically.
    """

    def __init__(self, storage_dir: str = "memory", max_records: int = 5000):
        self._storage_dir = Path(storage_dir)
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        self._max_records = max_records
        self._counts: Dict[str, int] = {}

    def _path(self, key: str) -> Path:
        return self._storage_dir / f"{key}.jsonl"

    def append(self, key: str, record: dict) -> None:
        path = self._path(key)
        line = json.dumps(record, ensure_ascii=False, default=str)
        with open(path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

        if key not in self._counts:
            self._counts[key] = len(self._read_lines(path))
        else:
            self._counts[key] += 1
        if self._counts[key] > self._max_records:
            self._trim(key)

    def tail(self, key: str, limit: int) -> List[dict]:
        """Last ``limit`` records, oldest first. Undecodable lines are skipped."""
        if limit <= 0:
            return []
        records = []
        for line in self._read_lines(self._path(key)):
            try:
                record = json.loads(line)
            except ValueError:
                continue
            if isinstance(record, dict):
                records.append(record)
        return records[-limit:]

    def _read_lines(self, path: Path) -> List[str]:
        if not path.exists():
            return []
        return [line for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]

    def _trim(self, key: str):
        path = self._path(key)
        kept = self._read_lines(path)[-self._max_records:]
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write("".join(line + "\n" for line in kept))
            os.replace(tmp_path, str(path))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        self._counts[key] = len(kept)

# backend/facade_annotator/services/storage/files.py
"""Directory-per-building JSON/blob storage.

Layout is ``<root>/<building_id>/<key>``. No locking: concurrent writes to one key
are last-write-wins.
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from facade_annotator.errors import NotFound, StorageFailure

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._\- ]")


def sanitize_component(name: str) -> str:
    candidate = Path((name or "").strip()).name  # ディレクトリ成分を除去
    candidate = _UNSAFE.sub("_", candidate)
    if candidate in ("", ".", ".."):
        raise NotFound(f"invalid name: {name!r}")
    return candidate


class FileStore:
    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    def _building_dir(self, building_id: str) -> Path:
        return self.root / sanitize_component(building_id)

    def path_for(self, building_id: str, key: str) -> Path:
        target = (self._building_dir(building_id) / sanitize_component(key)).resolve()
        try:
            target.relative_to(self.root)
        except ValueError as exc:
            raise NotFound("path outside store") from exc
        return target

    def save_bytes(self, building_id: str, key: str, data: bytes) -> Path:
        path = self.path_for(building_id, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            logger.error("write failed %s: %s", path, exc)
            raise StorageFailure(f"failed to write {key}") from exc
        logger.info("saved %s", path)
        return path

    def save(self, building_id: str, key: str, blob: Any) -> Path:
        data = json.dumps(blob, ensure_ascii=False, indent=2).encode("utf-8")
        return self.save_bytes(building_id, key, data)

    def list(self, building_id: str, suffix: str | None = None) -> list[str]:
        folder = self._building_dir(building_id)
        if not folder.is_dir():
            raise NotFound(f"no such building: {building_id}")
        try:
            names = sorted(p.name for p in folder.iterdir() if p.is_file())
        except OSError as exc:
            raise StorageFailure(f"failed to list {building_id}") from exc
        if suffix:
            names = [n for n in names if n.endswith(suffix)]
        return names

    def read_bytes(self, building_id: str, key: str) -> bytes:
        path = self.path_for(building_id, key)
        if not path.is_file():
            raise NotFound(f"{key} not found")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageFailure(f"failed to read {key}") from exc

    def read(self, building_id: str, key: str) -> Any:
        data = self.read_bytes(building_id, key)
        try:
            return json.loads(data)
        except ValueError as exc:
            raise StorageFailure(f"{key} is not valid JSON") from exc

    def delete(self, building_id: str, key: str) -> None:
        path = self.path_for(building_id, key)
        if not path.is_file():
            raise NotFound(f"{key} not found")
        try:
            path.unlink()
        except OSError as exc:
            logger.error("delete failed %s: %s", path, exc)
            raise StorageFailure(f"failed to delete {key}") from exc
        logger.info("deleted %s", path)

# backend/facade_annotator/services/reference/table.py
import logging
import re
from pathlib import Path
from typing import Optional

from facade_annotator.models.reference import ReferenceOrientation

logger = logging.getLogger(__name__)

# アップロード時に付与される "<ms>_" プレフィックス
_UPLOAD_PREFIX = re.compile(r"^\d+_")


def strip_upload_prefix(name: str) -> str:
    return _UPLOAD_PREFIX.sub("", name, count=1)


class ReferenceTable:
    """Camera orientation per photo filename (omega/phi/kappa, degrees)."""

    def __init__(self, entries: Optional[dict[str, ReferenceOrientation]] = None):
        self.entries = dict(entries or {})

    def __len__(self) -> int:
        return len(self.entries)

    def lookup(self, image_name: Optional[str]) -> Optional[ReferenceOrientation]:
        if not image_name:
            return None
        name = image_name.strip()
        hit = self.entries.get(name)
        if hit is None:
            hit = self.entries.get(strip_upload_prefix(name))
        return hit


def parse_reference_table(text: str) -> ReferenceTable:
    entries: dict[str, ReferenceOrientation] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 7 or not parts[0]:
            logger.warning("reference table line %d: expected 7 fields", lineno)
            continue
        try:
            lon, lat, alt, omega, phi, kappa = (float(p) for p in parts[1:7])
        except ValueError:
            logger.warning("reference table line %d: non-numeric field", lineno)
            continue
        entries[parts[0]] = ReferenceOrientation(parts[0], lon, lat, alt, omega, phi, kappa)
    return ReferenceTable(entries)


def load_reference_table(path: Path) -> ReferenceTable:
    path = Path(path)
    if not path.exists():
        logger.info("reference table not found: %s", path)
        return ReferenceTable()
    return parse_reference_table(path.read_text(encoding="utf-8"))

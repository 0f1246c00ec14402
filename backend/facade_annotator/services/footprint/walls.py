# backend/facade_annotator/services/footprint/walls.py
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable

from facade_annotator.models.wall import LonLat, WallSegment

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _load_footprints_cached(path: str, mtime: float) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_footprints(path: Path) -> dict:
    """Building footprint FeatureCollection; an absent file reads as empty."""
    path = Path(path)
    if not path.exists():
        logger.warning("footprint dataset not found: %s", path)
        return {"type": "FeatureCollection", "features": []}
    # ファイル更新時は mtime が変わるのでキャッシュが外れる
    return _load_footprints_cached(str(path), path.stat().st_mtime)


def ring_centroid(ring: Iterable) -> LonLat:
    pts = [(float(c[0]), float(c[1])) for c in ring]
    if len(pts) > 1 and pts[0] == pts[-1]:
        pts = pts[:-1]
    n = len(pts)
    return sum(p[0] for p in pts) / n, sum(p[1] for p in pts) / n


def _is_wall(ring) -> bool:
    return any(len(c) > 2 and c[2] == 0 for c in ring)


def wall_segments(building_id: str, footprints: dict) -> list[WallSegment]:
    """Ground-level rings of a building, numbered by encounter order.

    A ring counts as a wall when any vertex sits at z == 0; roof and floor
    surfaces without a ground vertex are left out.
    """
    walls: list[WallSegment] = []
    for feat in footprints.get("features") or []:
        props = feat.get("properties") or {}
        geom = feat.get("geometry") or {}
        if props.get("uid") != building_id or geom.get("type") != "MultiPolygon":
            continue
        for surface in geom.get("coordinates") or []:
            for ring in surface:
                if not ring or not _is_wall(ring):
                    continue
                coords = tuple((float(c[0]), float(c[1])) for c in ring)
                walls.append(WallSegment(coords=coords, centroid=ring_centroid(coords), side=len(walls) + 1))
    if not walls:
        logger.info("no wall segments for building %s", building_id)
    return walls


def walls_feature_collection(walls: Iterable[WallSegment]) -> dict:
    feats = []
    for w in walls:
        feats.append({
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [[list(c) for c in w.coords]]},
            "properties": {
                "side": f"Side {w.side}",
                "sideIndex": w.side,
                "centroid": list(w.centroid),
            },
        })
    return {"type": "FeatureCollection", "features": feats}

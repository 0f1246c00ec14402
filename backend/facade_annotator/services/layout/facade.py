# backend/facade_annotator/services/layout/facade.py
"""Lay placed window polygons out as oriented boxes on a building facade.

Windows are bucketed into rows by latitude, ordered left to right by longitude,
centred on the nearest wall segment and stacked upward row by row. Every constant
below is a calibration value for the survey data this tool was built on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from math import cos, radians, sin
from operator import attrgetter
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from shapely.geometry import Polygon

from facade_annotator.models.placement import HeadingPitchRoll, Placement
from facade_annotator.models.wall import LonLat, WallSegment
from facade_annotator.services.footprint.walls import ring_centroid
from facade_annotator.services.linking.assign import (
    nearest_wall,
    orientation_from_reference,
    orientation_from_wall,
)
from facade_annotator.services.projection.camera import M_PER_DEG_LAT, M_PER_DEG_LON
from facade_annotator.services.reference.table import ReferenceTable

logger = logging.getLogger(__name__)

ROW_THRESHOLD = 8e-9  # degrees of latitude
SCALE_FACTOR = 2000.0  # widthInMeters/heightInMeters -> scene metres
FIXED_DEPTH = 0.3
BASE_Z = 0.2
XY_GAP = 1.0
WALL_CLEARANCE = 0.9
MIN_ROW_GAP = 0.003

T = TypeVar("T")


@dataclass
class LayoutItem:
    feature: dict
    lon: float
    lat: float
    width: float
    height: float
    min_z: float
    max_z: float

    @property
    def image_name(self) -> Optional[str]:
        name = (self.feature.get("properties") or {}).get("imageName")
        return name.strip() if isinstance(name, str) else None


def feature_ring(feature: dict) -> list:
    geom = feature.get("geometry")
    if not isinstance(geom, dict) or geom.get("type") != "Polygon":
        return []
    coords = geom.get("coordinates") or []
    return coords[0] if coords and isinstance(coords[0], list) else []


def is_valid_ring(ring: Sequence) -> bool:
    # 3 点以上の異なる頂点を持ち、面積 > 0
    try:
        pts = [(float(c[0]), float(c[1])) for c in ring]
    except (TypeError, ValueError, IndexError):
        return False
    if len(set(pts)) < 3:
        return False
    return Polygon(pts).area > 0


def feature_centroid(feature: dict) -> Optional[LonLat]:
    ring = feature_ring(feature)
    if not ring:
        return None
    return ring_centroid(ring)


def feature_z_range(feature: dict) -> tuple[float, float]:
    props = feature.get("properties") or {}
    fallback = float(props.get("altitude") or 0.0)
    zs = [(float(c[2]) if len(c) > 2 and c[2] else fallback) for c in feature_ring(feature)]
    if not zs:
        return fallback, fallback
    return min(zs), max(zs)


def group_rows(
    items: Iterable[T],
    threshold: float = ROW_THRESHOLD,
    key: Callable[[T], float] = attrgetter("lat"),
) -> list[list[T]]:
    """Greedy single-pass latitude bucketing.

    Items are sorted by latitude; each joins the first row whose first member lies
    within ``threshold``, otherwise it starts a new row. Result depends on order.
    """
    rows: list[list[T]] = []
    for item in sorted(items, key=key):
        lat = key(item)
        for row in rows:
            if abs(key(row[0]) - lat) < threshold:
                row.append(item)
                break
        else:
            rows.append([item])
    return rows


def row_offsets(widths: Sequence[float], gap: float = XY_GAP) -> list[float]:
    """Centre x of each item for a row centred on 0."""
    if not widths:
        return []
    total = sum(widths) + gap * (len(widths) - 1)
    x = -total / 2
    out = []
    for w in widths:
        out.append(x + w / 2)
        x += w + gap
    return out


def row_gap(current_max_z: float, next_min_z: float) -> float:
    # ソースの高度が逆転・ノイズの場合は最小値で下支え
    return max(next_min_z - current_max_z, MIN_ROW_GAP)


def local_to_lonlat(anchor: tuple[float, float, float], heading: float,
                    translation: tuple[float, float, float]) -> tuple[float, float, float]:
    """Offset an anchor by a translation in the heading-rotated east/north/up frame."""
    tx, ty, tz = translation
    # heading は北から時計回り（局所 x 軸 = (cos h, -sin h)）
    east = tx * cos(heading) + ty * sin(heading)
    north = -tx * sin(heading) + ty * cos(heading)
    lon = anchor[0] + east / (M_PER_DEG_LON * cos(radians(anchor[1])))
    lat = anchor[1] + north / M_PER_DEG_LAT
    return lon, lat, anchor[2] + tz


def _scaled(props: dict, key: str) -> float:
    try:
        value = float(props.get(key) or 1)
    except (TypeError, ValueError):
        value = 1.0
    return value * SCALE_FACTOR


def _to_items(features: Iterable[dict]) -> list[LayoutItem]:
    items = []
    for i, f in enumerate(features):
        if not isinstance(f.get("properties") or {}, dict):
            logger.warning("skip feature #%d: properties is not an object", i)
            continue
        ring = feature_ring(f)
        if not ring:
            logger.warning("skip feature #%d: no Polygon coordinates", i)
            continue
        if not is_valid_ring(ring):
            logger.warning("skip feature #%d: degenerate polygon", i)
            continue
        try:
            min_z, max_z = feature_z_range(f)
        except (TypeError, ValueError):
            logger.warning("skip feature #%d: bad altitude", i)
            continue
        lon, lat = feature_centroid(f)
        props = f.get("properties") or {}
        items.append(LayoutItem(
            feature=f,
            lon=lon,
            lat=lat,
            width=_scaled(props, "widthInMeters"),
            height=_scaled(props, "heightInMeters"),
            min_z=min_z,
            max_z=max_z,
        ))
    return items


def layout_building(
    features: Iterable[dict],
    walls: Sequence[WallSegment],
    reference: Optional[ReferenceTable] = None,
) -> list[Placement]:
    rows = group_rows(_to_items(features))
    for row in rows:
        row.sort(key=attrgetter("lon"))

    placements: list[Placement] = []
    base_z = BASE_Z
    for row_idx, row in enumerate(rows):
        offsets = row_offsets([it.width for it in row])
        for item, x_offset in zip(row, offsets):
            z_center = base_z + item.height / 2
            wall = nearest_wall((item.lon, item.lat), walls) if walls else None
            ref = reference.lookup(item.image_name) if (reference and wall is None) else None

            if wall is not None:
                hpr = orientation_from_wall(wall)
                source = "wall"
                anchor = (wall.centroid[0], wall.centroid[1], 0.0)
                # 壁面に沿って配置し、箱の半幅 + 余白だけ法線方向へ押し出す
                translation = (x_offset, -(item.width / 2 + WALL_CLEARANCE), z_center)
                logger.debug("(%.6f, %.6f) placed on Side %d", item.lon, item.lat, wall.side)
            else:
                hpr = orientation_from_reference(ref) if ref else HeadingPitchRoll()
                source = "reference" if ref else "identity"
                anchor = (item.lon, item.lat, 0.0)
                translation = (0.0, 0.0, z_center)

            placements.append(Placement(
                image_name=item.image_name,
                anchor=anchor,
                orientation=hpr,
                translation=translation,
                half_extents=(item.width / 2, FIXED_DEPTH / 2, item.height / 2),
                center=local_to_lonlat(anchor, hpr.heading, translation),
                row=row_idx,
                side=wall.side if wall is not None else None,
                orientation_source=source,
                properties=dict(item.feature.get("properties") or {}),
            ))

        if row_idx < len(rows) - 1:
            current_max = max(it.max_z for it in row)
            next_min = min(it.min_z for it in rows[row_idx + 1])
            base_z += max(it.height for it in row) + row_gap(current_max, next_min)

    logger.info("placed %d windows in %d rows (%d walls)", len(placements), len(rows), len(walls))
    return placements

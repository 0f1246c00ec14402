# backend/facade_annotator/services/projection/camera.py
"""Photo pixel <-> lon/lat conversion around the camera's GPS position.

Small-area equirectangular approximation: a pixel offset from the image centre is
scaled to metres with a single meters-per-pixel factor and then to degrees with
fixed metres-per-degree constants. Not valid near the poles or for wide spans.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from math import cos, radians
from typing import Iterable, Optional, Protocol

from facade_annotator.errors import MissingGeoreference
from facade_annotator.models.photo import PhotoMetadata

logger = logging.getLogger(__name__)

SENSOR_WIDTH_MM = 5.6  # typical phone wide camera
DEFAULT_FOCAL_LENGTH_MM = 6.0
SUBJECT_DISTANCE_M = 10.0  # assumed camera-to-wall distance
M_PER_DEG_LON = 111320.0  # at the equator, scaled by cos(lat)
M_PER_DEG_LAT = 110540.0
DEFAULT_METER_PER_PIXEL = 0.01
MIN_RECT_PX = 5  # 両辺ともこれより大きい矩形のみ採用


class RectLike(Protocol):
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class CameraCenter:
    lon: float
    lat: float
    width: float  # image size in pixels; the centre is (width/2, height/2)
    height: float
    altitude: float = 0.0

    @classmethod
    def from_metadata(cls, meta: PhotoMetadata) -> "CameraCenter":
        if not meta.has_gps:
            raise MissingGeoreference("missing GPS metadata")
        return cls(
            lon=meta.lon,
            lat=meta.lat,
            width=meta.width,
            height=meta.height,
            altitude=meta.altitude or 0.0,
        )


def meters_per_pixel(image_width_px: float, focal_length_mm: Optional[float] = None) -> float:
    focal = focal_length_mm if focal_length_mm and focal_length_mm > 0 else DEFAULT_FOCAL_LENGTH_MM
    mm_per_pixel = SENSOR_WIDTH_MM / image_width_px
    return mm_per_pixel * SUBJECT_DISTANCE_M / focal / 1000


def pixel_to_lonlat(x: float, y: float, camera: CameraCenter, mpp: float) -> tuple[float, float, float]:
    dx = x - camera.width / 2
    dy = y - camera.height / 2
    lon = camera.lon + (dx * mpp) / (M_PER_DEG_LON * cos(radians(camera.lat)))
    # 画像の y は下向き
    lat = camera.lat - (dy * mpp) / M_PER_DEG_LAT
    return lon, lat, camera.altitude


def lonlat_to_pixel(lon: float, lat: float, camera: CameraCenter, mpp: float) -> tuple[float, float]:
    dx = (lon - camera.lon) * M_PER_DEG_LON * cos(radians(camera.lat))
    dy = (camera.lat - lat) * M_PER_DEG_LAT
    return camera.width / 2 + dx / mpp, camera.height / 2 + dy / mpp


def rectangle_corners(rect: RectLike) -> Optional[list[tuple[float, float]]]:
    """Corners ordered top-left, top-right, bottom-right, bottom-left.

    Rectangles dragged up or left (negative size) are normalised first. Returns
    None when either side is MIN_RECT_PX or smaller (an accidental click).
    """
    if abs(rect.width) <= MIN_RECT_PX or abs(rect.height) <= MIN_RECT_PX:
        return None
    x1, x2 = sorted((rect.x, rect.x + rect.width))
    y1, y2 = sorted((rect.y, rect.y + rect.height))
    return [(x1, y1), (x2, y1), (x2, y2), (x1, y2)]


def project_rectangles(
    rects: Iterable[RectLike],
    camera: CameraCenter,
    mpp: float,
    image_name: str,
    building_id: str,
) -> dict:
    features = []
    for i, r in enumerate(rects):
        corners = rectangle_corners(r)
        if corners is None:
            logger.warning("skip degenerate rectangle #%d on %s", i, image_name)
            continue
        ring = [list(pixel_to_lonlat(x, y, camera, mpp)) for x, y in corners]
        ring.append(list(ring[0]))
        features.append({
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [ring]},
            "properties": {
                "imageName": image_name,
                "buildingId": building_id,
                "source": "photo-annotation",
                "altitude": camera.altitude,
                "meterPerPixel": mpp,
                "widthInMeters": abs(r.width) * mpp,
                "heightInMeters": abs(r.height) * mpp,
            },
        })
    return {"type": "FeatureCollection", "features": features}


def project_photo(rects: Iterable[RectLike], meta: PhotoMetadata, image_name: str, building_id: str) -> dict:
    camera = CameraCenter.from_metadata(meta)
    mpp = meters_per_pixel(meta.exif_width or meta.width, meta.focal_length_mm)
    logger.info("project %s/%s: meterPerPixel=%.3e", building_id, image_name, mpp)
    return project_rectangles(rects, camera, mpp, image_name, building_id)


def feature_meter_per_pixel(properties: Optional[dict]) -> float:
    value = (properties or {}).get("meterPerPixel")
    try:
        value = float(value)
    except (TypeError, ValueError):
        return DEFAULT_METER_PER_PIXEL
    return value if value > 0 else DEFAULT_METER_PER_PIXEL


def reproject_features(collection: dict, camera: CameraCenter) -> list[list[tuple[float, float]]]:
    """Pixel rings of every Polygon feature, for overlay on the source photo."""
    features = collection.get("features") or []
    if not features:
        return []
    # 保存時の meterPerPixel は全 feature 共通なので先頭のものを使う
    first = features[0] if isinstance(features[0], dict) else {}
    mpp = feature_meter_per_pixel(first.get("properties"))
    out = []
    for i, f in enumerate(features):
        geom = f.get("geometry") if isinstance(f, dict) else None
        if not isinstance(geom, dict) or geom.get("type") != "Polygon" or not geom.get("coordinates"):
            continue
        try:
            ring = [lonlat_to_pixel(float(c[0]), float(c[1]), camera, mpp) for c in geom["coordinates"][0]]
        except (TypeError, ValueError, IndexError):
            logger.warning("skip feature #%d: malformed coordinates", i)
            continue
        out.append(ring)
    return out

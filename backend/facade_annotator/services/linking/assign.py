# backend/facade_annotator/services/linking/assign.py
from __future__ import annotations
from math import atan2, pi, radians
from typing import Optional, Sequence

from facade_annotator.models.placement import HeadingPitchRoll
from facade_annotator.models.reference import ReferenceOrientation
from facade_annotator.models.wall import LonLat, WallSegment

# 壁の最長辺から求めた heading に足す補正（由来不明の現地合わせ値、変更しない）
HEADING_OFFSET_DEG = -13.0


def distance_squared(a: LonLat, b: LonLat) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def nearest_wall(point: LonLat, walls: Sequence[WallSegment]) -> Optional[WallSegment]:
    # 同距離なら先に出現した壁（strict < で更新）
    best = None
    best_d = 0.0
    for w in walls:
        d = distance_squared(point, w.centroid)
        if best is None or d < best_d:
            best, best_d = w, d
    return best


def wall_heading(wall: WallSegment) -> float:
    """Direction of the wall's longest edge plus a quarter turn, in radians."""
    coords = wall.coords
    if len(coords) < 2:
        return 0.0
    max_len = 0.0
    heading = 0.0
    for p1, p2 in zip(coords, coords[1:]):
        dx = p2[0] - p1[0]
        dy = p2[1] - p1[1]
        length = dx * dx + dy * dy
        if length > max_len:
            max_len = length
            heading = atan2(dy, dx) + pi / 2
    return heading


def orientation_from_wall(wall: WallSegment) -> HeadingPitchRoll:
    return HeadingPitchRoll(heading=wall_heading(wall) + radians(HEADING_OFFSET_DEG))


def orientation_from_reference(ref: ReferenceOrientation) -> HeadingPitchRoll:
    # omega→roll, phi→pitch, kappa→heading
    return HeadingPitchRoll(
        heading=radians(ref.kappa or 0.0),
        pitch=radians(ref.phi or 0.0),
        roll=radians(ref.omega or 0.0),
    )

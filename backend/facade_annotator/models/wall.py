# backend/facade_annotator/models/wall.py
from dataclasses import dataclass

LonLat = tuple[float, float]


@dataclass(frozen=True)
class WallSegment:
    coords: tuple[LonLat, ...]  # z=0 を含むリング（2D化済み）
    centroid: LonLat
    side: int  # 1 始まり、リング出現順

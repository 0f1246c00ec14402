# backend/facade_annotator/models/placement.py
from dataclasses import dataclass, asdict
from typing import Literal, Optional

OrientationSource = Literal["wall", "reference", "identity"]


@dataclass(frozen=True)
class HeadingPitchRoll:
    heading: float = 0.0  # radians
    pitch: float = 0.0
    roll: float = 0.0


@dataclass(frozen=True)
class Placement:
    image_name: Optional[str]
    anchor: tuple[float, float, float]  # lon, lat, height of the frame origin
    orientation: HeadingPitchRoll
    # 局所座標（heading 回転後の east/north/up、単位 m）
    translation: tuple[float, float, float]
    half_extents: tuple[float, float, float]
    center: tuple[float, float, float]  # lon, lat, height of the box centre
    row: int
    side: Optional[int]
    orientation_source: OrientationSource
    properties: dict

    def to_dict(self) -> dict:
        return asdict(self)

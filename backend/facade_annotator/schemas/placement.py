# backend/facade_annotator/schemas/placement.py
from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class ClassificationIn(BaseModel):
    jenisJendela: str = Field(..., min_length=1)


class OrientationOut(BaseModel):
    heading: float
    pitch: float
    roll: float


class PlacementOut(BaseModel):
    image_name: Optional[str] = None
    anchor: List[float]
    orientation: OrientationOut
    translation: List[float]
    half_extents: List[float]
    center: List[float]
    row: int
    side: Optional[int] = None
    orientation_source: Literal["wall", "reference", "identity"]
    properties: dict = Field(default_factory=dict)


class LayoutOut(BaseModel):
    buildingId: str
    walls: int
    placements: List[PlacementOut]

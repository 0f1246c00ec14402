# backend/facade_annotator/schemas/annotation.py
from pydantic import BaseModel, Field
from typing import List, Optional


class PixelRect(BaseModel):
    # 画像の画素座標（左上原点）。幅・高さは負でも可（ドラッグ方向）
    x: float
    y: float
    width: float
    height: float


class ProjectRequest(BaseModel):
    rectangles: List[PixelRect] = Field(default_factory=list)


class PixelPoint(BaseModel):
    x: float
    y: float


class ReprojectOut(BaseModel):
    imageName: str
    buildingId: str
    meterPerPixel: float
    width: int
    height: int
    polygons: List[List[PixelPoint]]


class PlaceResult(BaseModel):
    status: str = "success"
    message: str
    filePath: Optional[str] = None

# backend/facade_annotator/schemas/photo.py
from pydantic import BaseModel
from typing import List, Optional


class ImageOut(BaseModel):
    name: str
    url: str


class UploadOut(BaseModel):
    message: str
    files: List[ImageOut]


class ReferenceOut(BaseModel):
    omega: float
    phi: float
    kappa: float


class PhotoMetadataOut(BaseModel):
    name: str
    width: int
    height: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    focalLength: Optional[float] = None
    exifImageWidth: Optional[int] = None
    exifImageHeight: Optional[int] = None
    takenAt: Optional[str] = None
    meterPerPixel: float
    reference: Optional[ReferenceOut] = None


class BuildingSummary(BaseModel):
    buildingId: str
    images: int
    annotations: int
    placedWindows: int
    windowFeatures: int

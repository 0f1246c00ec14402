# backend/facade_annotator/models/photo.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PhotoMetadata:
    width: int
    height: int
    lat: Optional[float] = None
    lon: Optional[float] = None
    altitude: Optional[float] = None
    focal_length_mm: Optional[float] = None
    # ExifImageWidth/Length（無ければ復号した画素数）
    exif_width: Optional[int] = None
    exif_height: Optional[int] = None
    taken_at: Optional[datetime] = None

    @property
    def has_gps(self) -> bool:
        return self.lat is not None and self.lon is not None

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "latitude": self.lat,
            "longitude": self.lon,
            "altitude": self.altitude,
            "focalLength": self.focal_length_mm,
            "exifImageWidth": self.exif_width,
            "exifImageHeight": self.exif_height,
            "takenAt": self.taken_at.isoformat() if self.taken_at else None,
        }

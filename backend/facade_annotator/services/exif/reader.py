# backend/facade_annotator/services/exif/reader.py
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import exifread
from PIL import Image, UnidentifiedImageError

from facade_annotator.errors import PhotoMetadataError
from facade_annotator.models.photo import PhotoMetadata

logger = logging.getLogger(__name__)

EXIF_DT_KEYS = ["EXIF DateTimeOriginal", "EXIF DateTimeDigitized", "Image DateTime"]
GPS_IFD = 0x8825


def _ratio(value) -> Optional[float]:
    # Pillow IFDRational / exifread Ratio / (num, den) タプルのいずれも受ける
    if value is None:
        return None
    if isinstance(value, tuple) and len(value) == 2:
        num, den = value
        return num / den if den else None
    num = getattr(value, "num", None)
    den = getattr(value, "den", None)
    if num is not None and den is not None:
        return num / den if den else None
    try:
        return float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def _to_deg(values, ref) -> Optional[float]:
    if not values or len(values) < 3:
        return None
    d, m, s = (_ratio(v) for v in values[:3])
    if d is None or m is None or s is None:
        return None
    deg = d + m / 60 + s / 3600
    if ref in ("S", "W", b"S", b"W"):
        deg *= -1
    return deg


def _first_value(tags: dict, key: str):
    tag = tags.get(key)
    if tag is None:
        return None
    values = getattr(tag, "values", None)
    if isinstance(values, (list, tuple)):
        return values[0] if values else None
    return values


def read_photo_metadata(path: Union[str, Path]) -> PhotoMetadata:
    """Camera position and optics needed for pixel-to-world projection.

    GPS comes from Pillow's GPS IFD; focal length, EXIF image size and capture
    time from ExifRead. Absent tags are returned as None.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            tags = exifread.process_file(f, details=False)
        with Image.open(path) as img:
            width, height = img.size
            exif = img.getexif()
            gps_info = exif.get_ifd(GPS_IFD) if exif else {}
    except (OSError, UnidentifiedImageError) as exc:
        raise PhotoMetadataError(f"failed to read image metadata: {path.name}") from exc

    lat = lon = alt = None
    if gps_info:
        lat = _to_deg(gps_info.get(2), gps_info.get(1))
        lon = _to_deg(gps_info.get(4), gps_info.get(3))
        alt = _ratio(gps_info.get(6))
        if alt is not None and gps_info.get(5) in (1, b"\x01"):
            alt = -alt  # 海面下

    focal = _ratio(_first_value(tags, "EXIF FocalLength"))
    exif_w = _first_value(tags, "EXIF ExifImageWidth")
    exif_h = _first_value(tags, "EXIF ExifImageLength")

    taken_at = None
    for k in EXIF_DT_KEYS:
        if k in tags:
            try:
                taken_at = datetime.strptime(str(tags[k]), "%Y:%m:%d %H:%M:%S")
                break
            except ValueError:
                continue

    meta = PhotoMetadata(
        width=width,
        height=height,
        lat=lat,
        lon=lon,
        altitude=alt,
        focal_length_mm=focal,
        exif_width=int(exif_w) if exif_w else None,
        exif_height=int(exif_h) if exif_h else None,
        taken_at=taken_at,
    )
    logger.debug("EXIF %s: %s", path.name, meta)
    return meta

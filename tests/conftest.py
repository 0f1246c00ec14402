import json
from pathlib import Path

import piexif
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from facade_annotator.config import Settings
from facade_annotator.main import create_app


def _dms(value: float):
    value = abs(value)
    d = int(value)
    m = int((value - d) * 60)
    s = round(((value - d) * 60 - m) * 60 * 10000)
    return ((d, 1), (m, 1), (s, 10000))


def write_jpeg(path: Path, size=(1000, 1000), lat=None, lon=None, alt=None, focal_mm=None) -> Path:
    """JPEG with optional GPS / focal length EXIF (written with piexif)."""
    exif_ifd = {piexif.ExifIFD.PixelXDimension: size[0], piexif.ExifIFD.PixelYDimension: size[1]}
    if focal_mm is not None:
        exif_ifd[piexif.ExifIFD.FocalLength] = (int(focal_mm * 100), 100)
    gps = {}
    if lat is not None and lon is not None:
        gps[piexif.GPSIFD.GPSLatitudeRef] = b"S" if lat < 0 else b"N"
        gps[piexif.GPSIFD.GPSLatitude] = _dms(lat)
        gps[piexif.GPSIFD.GPSLongitudeRef] = b"W" if lon < 0 else b"E"
        gps[piexif.GPSIFD.GPSLongitude] = _dms(lon)
    if alt is not None:
        gps[piexif.GPSIFD.GPSAltitudeRef] = 0
        gps[piexif.GPSIFD.GPSAltitude] = (int(alt * 100), 100)
    exif = piexif.dump({"0th": {}, "Exif": exif_ifd, "GPS": gps, "1st": {}, "thumbnail": None})
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, (90, 90, 90)).save(path, "JPEG", exif=exif)
    return path


def wall_ring(lon0, lat0, lon1, lat1, height=10.0):
    # 鉛直な壁面: 地上の 2 点 + 上端の 2 点
    return [
        [lon0, lat0, 0.0],
        [lon1, lat1, 0.0],
        [lon1, lat1, height],
        [lon0, lat0, height],
        [lon0, lat0, 0.0],
    ]


def roof_ring(lon0, lat0, lon1, lat1, height=10.0):
    return [
        [lon0, lat0, height],
        [lon1, lat0, height],
        [lon1, lat1, height],
        [lon0, lat1, height],
        [lon0, lat0, height],
    ]


@pytest.fixture
def footprints():
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"uid": "B1"},
                "geometry": {
                    "type": "MultiPolygon",
                    "coordinates": [
                        [roof_ring(106.8000, -6.2000, 106.8010, -6.2010)],
                        [wall_ring(106.8000, -6.2000, 106.8010, -6.2000)],
                        [wall_ring(106.8010, -6.2000, 106.8010, -6.2010)],
                    ],
                },
            },
            {
                "type": "Feature",
                "properties": {"uid": "B2"},
                "geometry": {
                    "type": "MultiPolygon",
                    "coordinates": [[wall_ring(107.0, -6.0, 107.001, -6.0)]],
                },
            },
        ],
    }


@pytest.fixture
def settings(tmp_path, footprints) -> Settings:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    fp = data_dir / "building_with_parts.geojson"
    fp.write_text(json.dumps(footprints))
    ref = data_dir / "reference_lab.txt"
    ref.write_text("# filename, lon, lat, alt, omega, phi, kappa\nIMG_0001.jpg, 107.5, -6.5, 12.0, 10.0, 20.0, 90.0\n")
    return Settings(
        data_dir=data_dir,
        footprints_path=fp,
        reference_table_path=ref,
        ion_access_token="test-token",
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
